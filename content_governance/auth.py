from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict

from fastapi import Header, HTTPException

from .context import get_request_id, set_request_context


@dataclass(frozen=True)
class AuthedUser:
    user_id: str


def parse_api_keys(env_str: str | None) -> Dict[str, str]:
    if not env_str:
        return {}
    items: Dict[str, str] = {}
    for part in env_str.split(","):
        part = part.strip()
        if not part:
            continue
        if ":" not in part:
            continue
        key, user_id = part.split(":", 1)
        key = key.strip()
        user_id = user_id.strip()
        if not key or not user_id:
            continue
        items[key] = user_id
    return items


def lookup_user(api_key: str | None) -> str | None:
    if not api_key:
        return None
    return parse_api_keys(os.getenv("GOVERNANCE_API_KEYS")).get(api_key)


def optional_user(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> AuthedUser | None:
    """Resolve the acting user; no key means anonymous, an unknown key is rejected."""
    if not x_api_key:
        return None
    user_id = lookup_user(x_api_key)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    set_request_context(get_request_id(), user_id=user_id)
    return AuthedUser(user_id=user_id)


def require_user(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> AuthedUser:
    user = optional_user(x_api_key)
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
