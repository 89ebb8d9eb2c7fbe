"""Pytest configuration and shared helpers for request-service tests.

This file provides:
- make_response_descriptor: ResponseDescriptor factory with sensible defaults
- RecordingHandler: transport callback that records every descriptor it gets
- Fixtures: a service wired to a RecordingHandler
"""

from __future__ import annotations

from typing import Any

import pytest

from request_service.models import RequestDescriptor, ResponseDescriptor
from request_service.service import RequestService

WIKTIONARY = "https://en.wiktionary.org"


def make_response_descriptor(
    ok: bool | None = True,
    status: int | None = 200,
    status_text: str | None = "OK",
    headers: dict[str, str] | None = None,
    body: Any = None,
) -> ResponseDescriptor:
    """Create a ResponseDescriptor for handler stubs.

    Prefer this over constructing ResponseDescriptor directly - it documents
    which fields tests typically vary.
    """
    return ResponseDescriptor(
        ok=ok,
        status=status,
        status_text=status_text,
        headers=headers or {},
        body=body,
    )


class RecordingHandler:
    """Async transport callback that records requests and returns a canned response."""

    def __init__(self, response: ResponseDescriptor | None = None) -> None:
        self.requests: list[RequestDescriptor] = []
        self.response = response or make_response_descriptor()

    async def __call__(self, request: RequestDescriptor) -> ResponseDescriptor:
        self.requests.append(request)
        return self.response

    @property
    def last(self) -> RequestDescriptor:
        return self.requests[-1]


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def service(handler: RecordingHandler) -> RequestService:
    """A RequestService pointed at Wiktionary with a RecordingHandler."""
    return RequestService(WIKTIONARY, handler)
