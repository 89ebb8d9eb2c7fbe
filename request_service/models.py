"""Internal data models for request-service.

All models use Pydantic v2. Request and response descriptors are the records
passed across the transport boundary; options are what callers hand to
RequestService.send().
"""

from __future__ import annotations

from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Request Models
# =============================================================================


class ParsedTarget(NamedTuple):
    """Method and path template extracted from a target string."""

    method: str | None
    path: str


class RequestOptions(BaseModel):
    """Caller-supplied options for one request.

    Explicit method/url/path take precedence over whatever the target string
    encodes. None values in params, query and headers are skipped, never
    serialized.
    """

    model_config = ConfigDict(extra="forbid")

    method: str | None = Field(default=None, description="HTTP method override")
    url: str | None = Field(default=None, description="URL or path override (wins over path)")
    path: str | None = Field(default=None, description="Path override")
    params: dict[str, Any] = Field(
        default_factory=dict, description="Path placeholder values, e.g., {'id': 10}"
    )
    query: dict[str, Any] = Field(
        default_factory=dict, description="Query parameters appended in insertion order"
    )
    headers: dict[str, Any] = Field(default_factory=dict, description="Request headers")
    body: Any = Field(default=None, description="Request body, passed to the transport as-is")

    @field_validator("params", "query", "headers", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return {} if v is None else v


class RequestDescriptor(BaseModel):
    """A fully resolved request, ready for the transport callback.

    Created fresh per call. The url is always absolute.
    """

    model_config = ConfigDict(extra="forbid")

    target: str | None = Field(default=None, description="Target the request was resolved from")
    method: str | None = Field(default=None, description="HTTP method, if known")
    url: str = Field(description="Absolute URL including query string")
    headers: dict[str, str] = Field(
        default_factory=dict, description="String-valued request headers"
    )
    body: Any = Field(default=None, description="Request body")


class ResponseDescriptor(BaseModel):
    """A response as reported by the transport callback.

    Header keys are lowercase when produced by HTTPXTransport.
    """

    model_config = ConfigDict(extra="forbid")

    ok: bool | None = Field(default=None, description="Whether the transport considers this a success")
    status: int | None = Field(default=None, description="HTTP status code")
    status_text: str | None = Field(default=None, description="HTTP reason phrase")
    headers: dict[str, str] = Field(default_factory=dict, description="Response headers")
    body: Any = Field(default=None, description="Decoded response body")


class RequestErrorRecord(BaseModel):
    """Immutable description of a failed request.

    status and status_text are always present so consumers can read them
    without checking for None.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(description="Error name")
    message: str = Field(description="Human-readable message")
    status: int = Field(default=0, description="HTTP status code, 0 if not applicable")
    status_text: str = Field(default="", description="HTTP reason phrase")
    data: Any = Field(default=None, description="Whatever the failure site reported")


# =============================================================================
# Runtime Configuration Models
# =============================================================================


class ServiceConfig(BaseModel):
    """Top-level configuration file structure for a RequestService."""

    model_config = ConfigDict(extra="forbid")

    endpoint: str = Field(description="Absolute base URL every relative target resolves against")
    aliases: dict[str, str] = Field(
        default_factory=dict, description="Alias name -> target mapping"
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Default headers for the bundled transport (supports ${ENV_VAR} substitution)",
    )
    timeout: float = Field(default=30.0, description="Transport timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify server TLS certificates")
    ca_bundle: str | None = Field(default=None, description="Path to CA bundle for verification")
