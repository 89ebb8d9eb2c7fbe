"""Request errors - one error type for every failure surfaced by the engine.

Failures are tagged with an ErrorKind instead of being modeled as a class
hierarchy. The error data itself lives in a frozen RequestErrorRecord.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from request_service.models import RequestErrorRecord, ResponseDescriptor

DEFAULT_REQUEST_ERROR_NAME = "RequestError"
DEFAULT_REQUEST_ERROR_MESSAGE = "Unspecified"


class ErrorKind(str, Enum):
    """Which stage of a request failed."""

    NO_HANDLER = "no_handler"  # No transport callback registered
    INVALID_URL = "invalid_url"  # Endpoint/path did not compose into an absolute URL
    TRANSPORT_FAILURE = "transport_failure"  # Reported by the transport


def build_error_record(
    name: str | None = None,
    message: str | None = None,
    status: int | None = None,
    status_text: str | None = None,
    data: Any = None,
) -> RequestErrorRecord:
    """Build a RequestErrorRecord, filling in defaults for missing fields.

    The message falls back to "<status> <status_text>" (empty parts dropped),
    then to DEFAULT_REQUEST_ERROR_MESSAGE.
    """
    if not message and (status is not None or status_text is not None):
        message = " ".join(str(part) for part in (status, status_text) if part).strip()

    return RequestErrorRecord(
        name=name or DEFAULT_REQUEST_ERROR_NAME,
        message=message or DEFAULT_REQUEST_ERROR_MESSAGE,
        status=int(status) if status is not None else 0,
        status_text=str(status_text) if status_text is not None else "",
        data=data,
    )


class RequestError(Exception):
    """Raised when a request cannot be resolved, dispatched, or fails in transport.

    Usage:
        try:
            response = await service.send("GET /items/:id", {"params": {"id": 1}})
        except RequestError as e:
            if e.kind is ErrorKind.NO_HANDLER:
                ...
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        *,
        name: str | None = None,
        status: int | None = None,
        status_text: str | None = None,
        data: Any = None,
    ) -> None:
        self.kind = kind
        self.record = build_error_record(
            name=name,
            message=message,
            status=status,
            status_text=status_text,
            data=data,
        )
        super().__init__(self.record.message)

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def message(self) -> str:
        return self.record.message

    @property
    def status(self) -> int:
        return self.record.status

    @property
    def status_text(self) -> str:
        return self.record.status_text

    @property
    def data(self) -> Any:
        return self.record.data

    def __repr__(self) -> str:
        return f"RequestError(kind={self.kind.value!r}, message={self.message!r}, status={self.status})"

    @classmethod
    def from_response(
        cls, response: ResponseDescriptor | Mapping[str, Any]
    ) -> "RequestError":
        """Build a TRANSPORT_FAILURE error from a response the transport reported as failed."""
        if isinstance(response, ResponseDescriptor):
            response = response.model_dump()

        return cls(
            ErrorKind.TRANSPORT_FAILURE,
            response.get("message"),
            name=response.get("name"),
            status=response.get("status"),
            status_text=response.get("status_text"),
            data=response,
        )


def raise_for_status(response: ResponseDescriptor) -> ResponseDescriptor:
    """Return response unchanged unless it is marked ok=False, then raise.

    The engine never calls this itself; transports that report failure by
    returning ok=False leave the choice to the caller.

    Raises:
        RequestError: With kind TRANSPORT_FAILURE if response.ok is False.
    """
    if response.ok is False:
        raise RequestError.from_response(response)
    return response
