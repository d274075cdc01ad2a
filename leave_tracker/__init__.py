import atexit
import logging

from flask import Flask


from .cli import clear_entries_command
from .config import load_config
from .email_service import EmailNotifier
from .notifications import NotificationDispatcher
from .routes import api_bp, ui_bp
from .storage import EntryStore


LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def create_app(config=None, notifier=None):
    """Application factory for the leave tracker.

    ``notifier`` replaces the SMTP notifier, which tests use to record mails.
    """
    app = Flask(__name__)

    app.config.setdefault("SECRET_KEY", "leave-tracker-secret")
    app.config.update(load_config(config))

    logging.basicConfig(level=app.config["LOG_LEVEL"], format=LOG_FORMAT)

    dispatcher = NotificationDispatcher(
        notifier or EmailNotifier(app.config),
        synchronous=app.config["NOTIFICATIONS_SYNC"],
    )
    atexit.register(dispatcher.shutdown)

    app.extensions["leave_tracker"] = {
        "store": EntryStore(app.config["ENTRIES_FILE"]),
        "notifier": dispatcher,
    }

    app.register_blueprint(api_bp)
    app.register_blueprint(ui_bp)
    app.cli.add_command(clear_entries_command)

    return app


__all__ = ["create_app"]
