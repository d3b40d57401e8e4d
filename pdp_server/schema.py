from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class User(BaseModel):
    """Principal making the request.

    A bare string is accepted as shorthand for ``{"key": <string>}``.
    Inline ``attributes`` override stored ones for this request only.
    """
    key: str
    attributes: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _from_key(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"key": data}
        return data


class Resource(BaseModel):
    """Resource being accessed.

    Shorthand strings: ``"document"`` (type only) or ``"document:doc-1"``.
    """
    type: str
    key: str | None = None
    tenant: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            resource_type, _, key = data.partition(":")
            return {"type": resource_type, "key": key or None}
        return data


class CheckRequest(BaseModel):
    user: User
    action: str
    resource: Resource
    context: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class CheckResult(BaseModel):
    allow: bool
    tenant: str
    reason: str | None = None


class ErrorKind(str, Enum):
    TIMEOUT = "timeout"
    ROUTING = "routing"
    INTERNAL = "internal"


class CheckError(BaseModel):
    """Per-entry error marker in bulk results."""
    error: ErrorKind
    message: str
    tenant: str | None = None


class BulkCheckRequest(BaseModel):
    checks: list[CheckRequest]


class BulkCheckResponse(BaseModel):
    allow: list[CheckResult | CheckError]


class AllTenantsResponse(BaseModel):
    allowed_tenants: list[str]


# Debug / explain


class RuleTrace(BaseModel):
    name: str
    effect: str
    matched: bool
    reason: str | None = None


class EvaluationTrace(BaseModel):
    tenant: str
    action: str
    user: dict[str, Any]
    resource: dict[str, Any]
    tenant_attributes: dict[str, Any] = Field(default_factory=dict)
    context: dict[str, Any] = Field(default_factory=dict)
    custom: dict[str, Any] = Field(default_factory=dict)
    plugin_errors: dict[str, str] = Field(default_factory=dict)
    missing_attributes: list[str] = Field(default_factory=list)
    rules: list[RuleTrace] = Field(default_factory=list)
    combining_algorithm: str
    allow: bool
    reason: str | None = None


class HealthResponse(BaseModel):
    status: str = "ok"
    shards: list[str] = Field(default_factory=list)
