"""Resolve the acting user from single sign-on headers.

Authentication happens upstream (App Service EasyAuth or a reverse proxy);
this module only reads what the proxy forwards and trusts it.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Dict, Mapping, Optional

from flask import current_app, g, request

from .roles import DEFAULT_ROLE, find_user, load_roles


logger = logging.getLogger(__name__)

DIRECT_EMAIL_HEADERS = (
    "x-user-email",
    "x-ms-client-principal-name",
    "x-forwarded-user",
    "remote_user",
    "x-auth-user",
)
PRINCIPAL_HEADER = "x-ms-client-principal"
EMAIL_CLAIM_TYPES = (
    "preferred_username",
    "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/emailaddress",
    "email",
)

UNKNOWN_USER = {
    "employeeId": "unknown",
    "email": "",
    "displayName": "Unknown",
    "role": DEFAULT_ROLE,
}


def _email_from_principal(encoded: str) -> Optional[str]:
    try:
        principal = json.loads(base64.b64decode(encoded).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        logger.warning("Failed to parse %s header: %s", PRINCIPAL_HEADER, exc)
        return None
    if not isinstance(principal, dict):
        return None

    user_details = str(principal.get("userDetails") or "")
    if "@" in user_details:
        return user_details.lower()

    claims = principal.get("claims") if isinstance(principal.get("claims"), list) else []
    for claim_type in EMAIL_CLAIM_TYPES:
        for claim in claims:
            if isinstance(claim, dict) and claim.get("typ") == claim_type and claim.get("val"):
                return str(claim["val"]).lower()
    return None


def email_from_headers(headers: Mapping[str, str]) -> str:
    for name in DIRECT_EMAIL_HEADERS:
        value = headers.get(name)
        if value and "@" in value:
            return value.strip().lower()

    encoded = headers.get(PRINCIPAL_HEADER)
    if encoded:
        return _email_from_principal(encoded) or ""
    return ""


def build_user(email: str, roles: Dict[str, Any]) -> Dict[str, Any]:
    """Combine an email with whatever the roles file knows about it."""
    employee_id = email.split("@", 1)[0] if "@" in email else email
    listed = find_user(roles, employee_id)
    return {
        "employeeId": employee_id,
        "email": listed["email"] if listed else email,
        "displayName": listed["displayName"] if listed else employee_id,
        "role": listed["role"] if listed else roles.get("defaultRole", DEFAULT_ROLE),
    }


def current_user() -> Dict[str, Any]:
    """The user for the current request, resolved once and cached on ``g``."""
    if "user" in g:
        return g.user

    email = email_from_headers(request.headers)
    if not email:
        email = str(current_app.config.get("TEST_USER_EMAIL") or "").strip().lower()

    if email:
        roles = load_roles(current_app.config["ROLES_FILE"], current_app.config["EMAIL_DOMAIN"])
        g.user = build_user(email, roles)
    else:
        g.user = dict(UNKNOWN_USER)
    return g.user


__all__ = ["UNKNOWN_USER", "build_user", "current_user", "email_from_headers"]
