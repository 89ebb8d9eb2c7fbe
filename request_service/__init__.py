"""request-service: resolve request targets and dispatch them to a pluggable transport."""

from request_service.errors import ErrorKind, RequestError, raise_for_status
from request_service.models import (
    ParsedTarget,
    RequestDescriptor,
    RequestErrorRecord,
    RequestOptions,
    ResponseDescriptor,
    ServiceConfig,
)
from request_service.resolver import compose_url, parse_target, resolve_request, substitute_params
from request_service.service import AliasNamespace, RequestHandler, RequestService
from request_service.transport import HTTPXTransport

__all__ = [
    "AliasNamespace",
    "ErrorKind",
    "HTTPXTransport",
    "ParsedTarget",
    "RequestDescriptor",
    "RequestError",
    "RequestErrorRecord",
    "RequestHandler",
    "RequestOptions",
    "RequestService",
    "ResponseDescriptor",
    "ServiceConfig",
    "compose_url",
    "parse_target",
    "raise_for_status",
    "resolve_request",
    "substitute_params",
]
