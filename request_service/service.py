"""RequestService - Dispatches targets to a pluggable transport callback.

The service owns the endpoint, the active transport callback (the handler),
and a registry of aliases. It resolves each target into a RequestDescriptor
and hands it to the handler; everything network-related is the handler's job.
"""

from __future__ import annotations

import functools
import keyword
import logging
from typing import Any, Awaitable, Callable, Iterator, Mapping

from request_service.errors import ErrorKind, RequestError
from request_service.models import RequestDescriptor, RequestOptions, ResponseDescriptor
from request_service.resolver import resolve_request

logger = logging.getLogger(__name__)

RequestHandler = Callable[[RequestDescriptor], Awaitable[ResponseDescriptor]]
Options = RequestOptions | Mapping[str, Any] | None


def _validate_alias_name(name: str) -> None:
    """Reject alias names that could not be attributes of an AliasNamespace."""
    if not isinstance(name, str) or not name.isidentifier():
        raise ValueError(f"Alias name must be a valid identifier: {name!r}")
    if keyword.iskeyword(name):
        raise ValueError(f"Alias name cannot be a Python keyword: {name!r}")
    if name.startswith("_"):
        raise ValueError(f"Alias name cannot start with an underscore: {name!r}")


class AliasNamespace:
    """Attribute access to aliases: namespace.search(options) sends the aliased target.

    Backed by a name -> target mapping. RequestService.api shares the service's
    own mapping, so later set_alias() calls show up; RequestService.assign()
    returns a namespace over a private copy.
    """

    def __init__(self, send: Callable[..., Awaitable[ResponseDescriptor]], aliases: dict[str, str]) -> None:
        self._send = send
        self._aliases = aliases

    def __getattr__(self, name: str) -> Callable[..., Awaitable[ResponseDescriptor]]:
        # Only called when normal lookup fails, so own attributes are never shadowed
        aliases = self.__dict__.get("_aliases", {})
        if name not in aliases:
            raise AttributeError(f"No alias named '{name}'")
        return functools.partial(self._send, aliases[name])

    def __getitem__(self, name: str) -> Callable[..., Awaitable[ResponseDescriptor]]:
        try:
            return getattr(self, name)
        except AttributeError:
            raise KeyError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._aliases

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._aliases))

    def __len__(self) -> int:
        return len(self._aliases)

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._aliases))

    def __repr__(self) -> str:
        return f"AliasNamespace({self._aliases!r})"


class RequestService:
    """Resolves targets against an endpoint and sends them through a handler.

    Usage:
        service = RequestService("https://en.wiktionary.org", handler)
        response = await service.send("GET /w", {"query": {"search": "example"}})

        service.set_alias("search", "GET /w")
        response = await service.api.search({"query": {"search": "example"}})
    """

    def __init__(
        self,
        endpoint: str,
        handler: RequestHandler | None = None,
        aliases: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            endpoint: Absolute base URL that relative targets resolve against.
            handler: Transport callback. May be set later with use().
            aliases: Initial alias name -> target mapping.
        """
        self.endpoint = endpoint
        self.handler = handler
        self._aliases: dict[str, str] = {}
        self.api = AliasNamespace(self.send, self._aliases)

        if aliases:
            self.set_aliases(aliases)

    def use(self, handler: RequestHandler) -> None:
        """Replace the transport callback for all subsequent send() calls."""
        self.handler = handler

    set_handler = use

    def resolve(self, target: str | None, options: Options = None) -> RequestDescriptor:
        """Resolve a target and options without sending anything."""
        return resolve_request(self.endpoint, target, _coerce_options(options))

    def send(self, target: str, options: Options = None) -> Awaitable[ResponseDescriptor]:
        """Resolve target and pass the descriptor to the handler.

        The handler check and URL resolution happen immediately, before this
        method returns; only the transport call is awaited by the caller.
        Whatever the handler returns or raises reaches the caller unchanged.

        Returns:
            The handler's awaitable, resolving to a ResponseDescriptor.

        Raises:
            RequestError: NO_HANDLER if no handler is set, INVALID_URL if the
                target cannot be composed into an absolute URL.
        """
        # Captured now so a later use() does not affect this call
        handler = self.handler
        if handler is None:
            raise RequestError(ErrorKind.NO_HANDLER, "Missing request handler", data={"target": target})

        request = self.resolve(target, options)
        logger.debug("Sending %s %s", request.method or "-", request.url)
        return handler(request)

    # -------------------------------------------------------------------------
    # Aliases
    # -------------------------------------------------------------------------

    @property
    def aliases(self) -> dict[str, str]:
        """Copy of the alias name -> target mapping."""
        return dict(self._aliases)

    def set_alias(self, name: str, target: str) -> None:
        """Bind name to target. Re-binding an existing name replaces its target.

        Raises:
            ValueError: If name is not a usable attribute name.
        """
        _validate_alias_name(name)
        if name in self._aliases and self._aliases[name] != target:
            logger.debug("Alias %r rebound from %r to %r", name, self._aliases[name], target)
        self._aliases[name] = target

    def set_aliases(self, aliases: Mapping[str, str]) -> None:
        """Bind every name -> target pair in aliases."""
        for name, target in aliases.items():
            self.set_alias(name, target)

    def assign(self, aliases: Mapping[str, str]) -> AliasNamespace:
        """Return a standalone namespace for aliases without registering them.

        Raises:
            ValueError: If any name is not a usable attribute name.
        """
        snapshot: dict[str, str] = {}
        for name, target in aliases.items():
            _validate_alias_name(name)
            snapshot[name] = target
        return AliasNamespace(self.send, snapshot)


def _coerce_options(options: Options) -> RequestOptions:
    if options is None:
        return RequestOptions()
    if isinstance(options, RequestOptions):
        return options
    return RequestOptions.model_validate(dict(options))
