"""Entry point for running the Flask development server."""

import os

from leave_tracker import create_app
from leave_tracker.config import parse_bool


app = create_app()


def run_options(environ=os.environ):
    """Bind to localhost without the debugger unless HOST/FLASK_DEBUG say otherwise."""
    return {
        "host": environ.get("HOST", "127.0.0.1"),
        "port": int(environ.get("PORT", "3001")),
        "debug": parse_bool(environ.get("FLASK_DEBUG", "")),
    }


if __name__ == "__main__":
    app.run(**run_options())
