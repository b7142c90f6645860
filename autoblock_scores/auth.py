from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict

from fastapi import Header, HTTPException

from .context import get_request_id, get_user_id, set_request_context


@dataclass(frozen=True)
class AuthedOrganization:
    organization_id: str


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
        key, organization_id = part.split(":", 1)
        key = key.strip()
        organization_id = organization_id.strip()
        if not key or not organization_id:
            continue
        items[key] = organization_id
    return items


def require_organization(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> AuthedOrganization:
    mapping = parse_api_keys(os.getenv("AUTOBLOCK_SCORES_API_KEYS"))
    if not x_api_key or x_api_key not in mapping:
        raise HTTPException(status_code=401, detail="Unauthorized")
    organization_id = mapping[x_api_key]
    set_request_context(get_request_id(), user_id=get_user_id(), organization_id=organization_id)
    return AuthedOrganization(organization_id=organization_id)
