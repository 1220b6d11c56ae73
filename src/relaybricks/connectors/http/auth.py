from __future__ import annotations

import base64
from typing import Dict

from relaybricks.connectors.http.types import EndpointAuth


def build_auth_headers(auth: EndpointAuth) -> Dict[str, str]:
    if auth.kind == "none":
        return {}

    if auth.kind == "api_key":
        if not auth.api_key_name or not auth.api_key_value:
            raise ValueError("api_key auth requires api_key_name and api_key_value")
        return {auth.api_key_name: auth.api_key_value}

    if auth.kind == "bearer":
        if not auth.bearer_token:
            raise ValueError("bearer auth requires bearer_token")
        return {"Authorization": f"Bearer {auth.bearer_token}"}

    if auth.kind == "basic":
        if not auth.username or not auth.password:
            raise ValueError("basic auth requires username and password")
        credentials = f"{auth.username}:{auth.password}".encode("utf-8")
        return {"Authorization": f"Basic {base64.b64encode(credentials).decode('ascii')}"}

    raise ValueError(f"Unsupported auth kind: {auth.kind!r}")
