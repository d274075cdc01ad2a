"""Read-only access to the optional roles file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)

DEFAULT_ROLE = "developer"


def normalize_roles(raw: Any, email_domain: str) -> Dict[str, Any]:
    """Accept either roles-file shape and return ``users``/``rolesMap``/``defaultRole``.

    Supported inputs::

        {"roles": {"408275a": "admin"}, "defaultRole": "developer"}
        {"users": [{"employeeId": ..., "displayName": ..., "email": ..., "role": ...}]}
    """
    obj = raw if isinstance(raw, dict) else {}
    default_role = str(obj.get("defaultRole") or DEFAULT_ROLE).lower()

    users = obj.get("users") if isinstance(obj.get("users"), list) else []
    roles_map = obj.get("roles") if isinstance(obj.get("roles"), dict) else {}

    if not users and roles_map:
        users = [{"employeeId": employee_id, "role": role} for employee_id, role in roles_map.items()]

    normalized = []
    for user in users:
        if not isinstance(user, dict) or not user.get("employeeId"):
            continue
        employee_id = str(user["employeeId"]).strip()
        normalized.append(
            {
                "employeeId": employee_id,
                "role": str(user.get("role") or default_role).lower(),
                "displayName": str(user.get("displayName") or employee_id).strip(),
                "email": str(user.get("email") or f"{employee_id}@{email_domain}").strip(),
            }
        )

    return {
        "users": normalized,
        "rolesMap": {user["employeeId"]: user["role"] for user in normalized},
        "defaultRole": default_role,
    }


def load_roles(path: str | Path, email_domain: str = "example.com") -> Dict[str, Any]:
    path = Path(path)
    raw: Any = {}
    if path.exists():
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.error("Could not read roles file %s: %s", path, exc)
    return normalize_roles(raw, email_domain)


def find_user(roles: Dict[str, Any], employee_id: str) -> Optional[Dict[str, Any]]:
    for user in roles.get("users", []):
        if user["employeeId"] == employee_id:
            return user
    return None


__all__ = ["DEFAULT_ROLE", "find_user", "load_roles", "normalize_roles"]
