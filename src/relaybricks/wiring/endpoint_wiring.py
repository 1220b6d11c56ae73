from __future__ import annotations

from relaybricks.connectors.http.types import EndpointAuth, EndpointConnection
from relaybricks.models.client_config import EndpointConfig


def _auth_from_config(cfg: EndpointConfig) -> EndpointAuth:
    auth = cfg.auth
    kind = auth.kind

    if kind == "none":
        return EndpointAuth(kind="none")

    if kind == "api_key":
        return EndpointAuth(
            kind="api_key",
            api_key_name=auth.api_key_name,
            api_key_value=auth.api_key_value,
        )

    if kind == "bearer":
        return EndpointAuth(kind="bearer", bearer_token=auth.bearer_token)

    if kind == "basic":
        return EndpointAuth(kind="basic", username=auth.username, password=auth.password)

    raise ValueError(f"Unsupported endpoint auth kind: {kind!r}")


def build_endpoint_connection(cfg: EndpointConfig) -> EndpointConnection:
    # The only layer allowed to read Pydantic config.
    return EndpointConnection(
        base_url=cfg.base_url,
        timeout_seconds=float(cfg.timeout_seconds),
        headers=dict(cfg.headers),
        auth=_auth_from_config(cfg),
    )
