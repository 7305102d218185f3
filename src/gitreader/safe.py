"""Decorators that route version-addressed reads through a CoalescingCache.

Provides:
- @coalesced(operation): for methods of an object owning a ``_cache``
- safe(fn): for free coroutine functions, with a cache of their own
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

from gitreader.cache import CoalescingCache, TTLPolicy, VersionTTLPolicy
from gitreader.config import DEFAULT_STABLE_TTL, DEFAULT_VOLATILE_TTL
from gitreader.duration import parse_duration
from gitreader.types import Version, as_version

R = TypeVar("R")


def _bind(
    sig: inspect.Signature,
    version_param: str,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> tuple[inspect.BoundArguments, Version]:
    """Bind call arguments with defaults filled in and the version coerced."""
    bound = sig.bind(*args, **kwargs)
    bound.apply_defaults()
    # Rejected before cache or queue state is touched
    version = as_version(bound.arguments[version_param])
    bound.arguments[version_param] = version
    return bound, version


def _key(
    operation: str, version: Version, bound: inspect.BoundArguments, skip: int
) -> tuple[Any, ...]:
    """Operation, version, remaining positional args, then sorted keyword args."""
    return (
        operation,
        str(version),
        *bound.args[skip:],
        *sorted(bound.kwargs.items()),
    )


def _version_first(
    fn: Callable[..., Any], *, skip_self: bool
) -> tuple[inspect.Signature, str]:
    sig = inspect.signature(fn)
    params = [
        p
        for p in sig.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    if skip_self:
        params = params[1:]
    if not params:
        raise TypeError(f"{fn.__name__}: first parameter must be a version")
    return sig, params[0].name


class CoalescedMethod:
    """Descriptor that wraps version-addressed read methods."""

    def __init__(
        self,
        fn: Callable[..., Awaitable[Any]],
        operation: str | None = None,
        cache_attr: str = "_cache",
    ) -> None:
        self._fn = fn
        self._operation = operation or fn.__name__
        self._cache_attr = cache_attr
        self._signature, self._version_param = _version_first(fn, skip_self=True)
        self.__doc__ = fn.__doc__
        self.__wrapped__ = fn

    def __get__(self, obj: Any, owner: type) -> Any:
        if obj is None:
            return self
        return BoundCoalesced(self, obj)


class BoundCoalesced:
    """A coalesced read method bound to its owner."""

    __slots__ = ("_descriptor", "_owner")

    def __init__(self, descriptor: CoalescedMethod, owner: Any) -> None:
        self._descriptor = descriptor
        self._owner = owner

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        descriptor = self._descriptor
        bound, version = _bind(
            descriptor._signature,
            descriptor._version_param,
            (self._owner, *args),
            kwargs,
        )
        key = _key(descriptor._operation, version, bound, skip=2)
        cache: CoalescingCache = getattr(self._owner, descriptor._cache_attr)

        async def fetch() -> Any:
            return await descriptor._fn(*bound.args, **bound.kwargs)

        return await cache.fetch(key, fetch, version=version)


def coalesced(operation: str | None = None, *, cache_attr: str = "_cache") -> Any:
    """Decorator for version-addressed read methods.

    Usage:
        class Reader:
            def __init__(self):
                self._cache = CoalescingCache(policy=VersionTTLPolicy(3600000, 100))

            @coalesced()
            async def read_file(self, version, path, encoding=None):
                ...

    The first parameter after ``self`` must be the version. The cache key is
    the operation name plus every argument, defaults included.
    """

    def decorator(fn: Callable[..., Awaitable[Any]]) -> CoalescedMethod:
        return CoalescedMethod(fn, operation, cache_attr)

    return decorator


def safe(
    fn: Callable[..., Awaitable[R]],
    *,
    cache: CoalescingCache | None = None,
    policy: TTLPolicy | None = None,
) -> Callable[..., Awaitable[R]]:
    """Wrap a coroutine function whose first argument is a version.

    Concurrent calls with equal arguments share one execution; successful
    results are cached with the stable or volatile TTL of the version.
    The wrapper exposes its cache as ``.cache``.
    """
    if cache is None:
        cache = CoalescingCache(
            policy=policy
            or VersionTTLPolicy(
                stable=parse_duration(DEFAULT_STABLE_TTL),
                volatile=parse_duration(DEFAULT_VOLATILE_TTL),
            ),
            name=fn.__name__,
        )
    sig, version_param = _version_first(fn, skip_self=False)
    operation = fn.__qualname__

    @wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> R:
        bound, version = _bind(sig, version_param, args, kwargs)
        key = _key(operation, version, bound, skip=1)

        async def fetch() -> R:
            return await fn(*bound.args, **bound.kwargs)

        return await cache.fetch(key, fetch, version=version)

    wrapper.cache = cache  # type: ignore[attr-defined]
    return wrapper


__all__ = ["BoundCoalesced", "CoalescedMethod", "coalesced", "safe"]
