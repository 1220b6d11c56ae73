from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Literal, Optional


AuthKind = Literal["none", "api_key", "bearer", "basic"]


@dataclass(frozen=True)
class EndpointAuth:
    kind: AuthKind = "none"

    api_key_name: Optional[str] = None
    api_key_value: Optional[str] = None

    bearer_token: Optional[str] = None

    username: Optional[str] = None
    password: Optional[str] = None


@dataclass(frozen=True)
class EndpointConnection:
    base_url: str
    timeout_seconds: float = 30.0
    headers: Dict[str, str] = field(default_factory=dict)
    auth: EndpointAuth = field(default_factory=EndpointAuth)


class QueryStrategy(Enum):
    """How the backend delivers query results to the push store.

    The value is sent as ``WebQuery.delivered_transactionally``.
    """

    ALL_AT_ONCE = True
    ONE_BY_ONE = False


COMMAND_PATH = "/command"
QUERY_PATH = "/query"
SUBSCRIPTION_CREATE_PATH = "/subscription/create"
SUBSCRIPTION_KEEP_UP_PATH = "/subscription/keep-up"
SUBSCRIPTION_CANCEL_PATH = "/subscription/cancel"
