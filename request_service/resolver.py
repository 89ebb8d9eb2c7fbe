"""Resolver - Turns a target plus request options into a RequestDescriptor.

Three steps, each usable on its own:
- parse_target: "GET /items/:id" -> ("GET", "/items/:id")
- substitute_params: "/items/:id" + {"id": 10} -> "/items/10"
- compose_url: endpoint + path + query -> absolute URL

resolve_request() runs all three and applies the caller's overrides.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping
from urllib.parse import quote

import httpx

from request_service.errors import ErrorKind, RequestError
from request_service.models import ParsedTarget, RequestDescriptor, RequestOptions

logger = logging.getLogger(__name__)

# "<METHOD> <path>": one or more uppercase letters followed by whitespace.
# Any uppercase token is accepted so that non-HTTP target vocabularies work.
_METHOD_PREFIX = re.compile(r"^[A-Z]+\s")
_WHITESPACE = re.compile(r"\s+")

# RFC 3986 scheme followed by a colon, e.g. "https:", "mailto:", "git+ssh:"
_ABSOLUTE_URL = re.compile(r"^[A-Za-z][A-Za-z0-9+\-.]*:")

# Characters left as-is when a parameter value is placed in a path.
# "/" stays so a value may span segments; "?", "#", "%" and spaces are encoded.
_PATH_VALUE_SAFE = "/:@!$&'()*+,;=~"


def _to_string(value: Any) -> str:
    """Render a scalar the way it appears in a URL (booleans as true/false)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def is_absolute_url(url: str) -> bool:
    """True if url starts with a scheme."""
    return bool(_ABSOLUTE_URL.match(url))


def to_string_value_map(values: Mapping[str, Any] | None) -> dict[str, str]:
    """Copy a mapping with every non-None value converted to a string."""
    if not values:
        return {}
    return {key: _to_string(value) for key, value in values.items() if value is not None}


def parse_target(target: str) -> ParsedTarget:
    """Split a target into (method, path).

    Only targets starting with an uppercase token and whitespace carry a
    method. Anything else is returned whole as the path.
    """
    if not _METHOD_PREFIX.match(target):
        return ParsedTarget(None, target)

    method, path = _WHITESPACE.split(target, maxsplit=1)
    return ParsedTarget(method, path.strip())


def substitute_params(template: str, params: Mapping[str, Any] | None) -> str:
    """Replace colon-prefixed placeholders in template with values from params.

    Every occurrence of ":<key>" is replaced, where the key is not followed by
    more word characters (":id" matches in "/items/:id" but not in "/:idx").
    Values are percent-encoded for use in a path. Keys with None values are
    skipped and their placeholders stay in place.
    """
    if not params:
        return template

    for key, value in params.items():
        if value is None:
            continue
        pattern = re.compile(":" + re.escape(key) + r"\b")
        replacement = quote(_to_string(value), safe=_PATH_VALUE_SAFE)
        template = pattern.sub(lambda _match: replacement, template)

    return template


def _parse_url(url: str) -> httpx.URL:
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise RequestError(ErrorKind.INVALID_URL, f"Invalid URL '{url}': {e}", data={"url": url}) from e

    if not parsed.scheme:
        raise RequestError(
            ErrorKind.INVALID_URL,
            f"URL is not absolute: '{url}'",
            data={"url": url},
        )
    return parsed


def _query_pairs(query: Mapping[str, Any]) -> list[tuple[str, str]]:
    """Flatten query to (key, value) pairs, skipping None and repeating list values."""
    pairs: list[tuple[str, str]] = []
    for key, value in query.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((key, _to_string(item)) for item in value if item is not None)
        else:
            pairs.append((key, _to_string(value)))
    return pairs


def compose_url(
    endpoint: str,
    path: str | None = None,
    query: Mapping[str, Any] | None = None,
) -> str:
    """Build an absolute URL from an endpoint, a path, and query parameters.

    An absolute path is used as-is and the endpoint is ignored. A relative
    path is joined to the endpoint's path with exactly one slash, so
    ("https://a.com/api/", "/items") and ("https://a.com/api", "items") both
    give "https://a.com/api/items".

    Raises:
        RequestError: With kind INVALID_URL if no absolute URL results.
    """
    if path and is_absolute_url(path):
        url = _parse_url(path)
    else:
        url = _parse_url(endpoint)

        if path:
            base_path = url.path
            if base_path.endswith("/"):
                base_path = base_path[:-1]
            if path.startswith("/"):
                path = path[1:]

            try:
                url = url.copy_with(path=base_path + "/" + path)
            except httpx.InvalidURL as e:
                raise RequestError(
                    ErrorKind.INVALID_URL,
                    f"Cannot join '{path}' to endpoint '{endpoint}': {e}",
                    data={"endpoint": endpoint, "path": path},
                ) from e

    if query:
        pairs = _query_pairs(query)
        if pairs:
            # A bare host gets a "/" path so the query reads "https://a.com/?q=1"
            if url.host and url.path == "/":
                url = url.copy_with(path="/")
            # Keep any query string already present on the URL, then append
            url = url.copy_with(params=httpx.QueryParams(list(url.params.multi_items()) + pairs))

    return str(url)


def resolve_request(
    endpoint: str,
    target: str | None,
    options: RequestOptions,
) -> RequestDescriptor:
    """Resolve target and options into a RequestDescriptor.

    Explicit options.method wins over the target's method; options.url, then
    options.path, win over the target's path.
    """
    method = options.method
    path = options.url if options.url is not None else options.path

    if target:
        parsed = parse_target(target)
        if method is None:
            method = parsed.method
        if path is None:
            path = parsed.path

    if path is not None:
        path = substitute_params(path, options.params)

    url = compose_url(endpoint, path, options.query)
    logger.debug("Resolved %r to %s %s", target, method or "-", url)

    return RequestDescriptor(
        target=target,
        method=method,
        url=url,
        headers=to_string_value_map(options.headers),
        body=options.body,
    )
