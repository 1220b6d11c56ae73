from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, PositiveFloat, field_validator, model_validator


# -----------------
# Endpoint auth
# -----------------


class AuthNoneConfig(BaseModel):
    kind: Literal["none"] = "none"


class AuthApiKeyConfig(BaseModel):
    kind: Literal["api_key"] = "api_key"

    api_key_name: str = "X-Api-Key"
    api_key_value: str


class AuthBearerConfig(BaseModel):
    kind: Literal["bearer"] = "bearer"

    bearer_token: str


class AuthBasicConfig(BaseModel):
    kind: Literal["basic"] = "basic"

    username: str
    password: Optional[str] = None

    @model_validator(mode="after")
    def _validate_password(self) -> "AuthBasicConfig":
        if not self.password:
            raise ValueError("basic auth requires a non-empty password")
        return self


AuthConfig = Annotated[
    Union[
        AuthNoneConfig,
        AuthApiKeyConfig,
        AuthBearerConfig,
        AuthBasicConfig,
    ],
    Field(discriminator="kind"),
]


# -----------------
# Client
# -----------------


class EndpointConfig(BaseModel):
    base_url: str
    timeout_seconds: PositiveFloat = 30.0
    headers: Dict[str, str] = Field(default_factory=dict)

    auth: AuthConfig = Field(default_factory=AuthNoneConfig)

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got {value!r}")
        return value.rstrip("/")


class ClientConfig(BaseModel):
    actor: str = Field(min_length=1)
    endpoint: EndpointConfig

    # The backend closes subscriptions that are not kept up for a while.
    keep_up_interval_seconds: PositiveFloat = 120.0

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientConfig":
        return cls.model_validate(data)
