from relaybricks.connectors.http.auth import build_auth_headers
from relaybricks.connectors.http.endpoint import Endpoint, HttpEndpoint
from relaybricks.connectors.http.types import EndpointAuth, EndpointConnection, QueryStrategy

__all__ = [
    "Endpoint",
    "EndpointAuth",
    "EndpointConnection",
    "HttpEndpoint",
    "QueryStrategy",
    "build_auth_headers",
]
