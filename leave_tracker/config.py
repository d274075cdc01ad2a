"""Configuration defaults for the leave tracker.

Every key may be overridden from the environment, and again by the mapping
handed to :func:`leave_tracker.create_app`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List


PROJECT_ROOT = Path(__file__).resolve().parent.parent

DEFAULT_LEAVE_TYPES = [
    "Leave",
    "Sick",
    "WFH",
    "Work Travel",
    "Work From Stavanger",
    "Work From Oslo",
    "Public Holiday",
]

_TRUE_VALUES = {"1", "true", "yes", "on"}


def parse_bool(raw_value: str) -> bool:
    return raw_value.strip().lower() in _TRUE_VALUES


def _parse_list(raw_value: str) -> List[str]:
    """Return a list parsed from a comma separated string."""
    return [item.strip() for item in raw_value.split(",") if item.strip()]


DEFAULTS: Dict[str, Any] = {
    "DATA_DIR": str(PROJECT_ROOT / "data"),
    "ENTRIES_FILE": None,
    "ROLES_FILE": None,
    "REPORTING_FILE": None,
    "EMAIL_DOMAIN": "example.com",
    "LEAVE_TYPES": DEFAULT_LEAVE_TYPES,
    "SERVER_URL": "http://localhost:3001",
    "EMAIL_ENABLED": True,
    "EMAIL_TEST_MODE": False,
    "EMAIL_TEST_ADDRESS": "",
    "SMTP_SERVER": "localhost",
    "SMTP_PORT": 25,
    "SMTP_USERNAME": "",
    "SMTP_PASSWORD": "",
    "SMTP_STARTTLS": False,
    "SMTP_TIMEOUT": 20,
    "MAIL_FROM": "Holiday Calendar <noreply@example.com>",
    "APPROVER_EMAIL": "",
    "TEST_USER_EMAIL": "",
    "NOTIFICATIONS_SYNC": False,
    "LOG_LEVEL": "INFO",
}


def load_config(overrides: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """Build the effective configuration.

    Values found in the environment are coerced to the type of the default
    they replace. File locations left unset are derived from ``DATA_DIR``.
    """
    config = dict(DEFAULTS)

    for key, default in DEFAULTS.items():
        raw_value = os.getenv(key)
        if raw_value is None:
            continue
        if isinstance(default, bool):
            config[key] = parse_bool(raw_value)
        elif isinstance(default, int):
            try:
                config[key] = int(raw_value)
            except ValueError as exc:
                raise RuntimeError(f"{key} must be an integer") from exc
        elif isinstance(default, list):
            config[key] = _parse_list(raw_value)
        else:
            config[key] = raw_value.strip()

    if overrides:
        config.update(overrides)
    config["LEAVE_TYPES"] = list(config["LEAVE_TYPES"])

    data_dir = Path(config["DATA_DIR"])
    config["ENTRIES_FILE"] = str(config["ENTRIES_FILE"] or data_dir / "entries.json")
    config["ROLES_FILE"] = str(config["ROLES_FILE"] or data_dir / "roles.json")
    config["REPORTING_FILE"] = str(config["REPORTING_FILE"] or data_dir / "reporting.json")
    return config


__all__ = ["DEFAULT_LEAVE_TYPES", "DEFAULTS", "load_config", "parse_bool"]
