"""
Memoization wrappers that own their caches.

Contains:
    class Memoized
        (fn: Func, key: Callable[[tuple, dict], Hashable] | None = None)
        cache, closed, cache_clear, close
    memoize             (fn: Func, key: Callable | None = None) -> Memoized
    unmemoize           (fn: Memoized) -> Func
    is_memoized         (fn: Any) -> bool
    memoize_method      (obj: Any, name: str) -> Memoized
    unmemoize_method    (obj: Any, name: str) -> Func
"""
from __future__ import annotations

from clonekit.basetypes import *
from clonekit.reflection import put

import functools
import json
import logging

logger = logging.getLogger(__name__)


def json_key(args: tuple, kwargs: dict) -> Hashable:
    """
    The default cache key.
    Arguments JSON can encode are keyed by their JSON text. Otherwise the arguments themselves form the
    key when they are hashable, and their ids when they are not; the cache entry keeps the arguments
    alive, so an id cannot be reused by another object while the entry exists.
    :param args: The positional arguments of the call.
    :param kwargs: The keyword arguments of the call.
    :returns: A hashable value identifying the call.
    """
    try:
        return json.dumps([list(args), kwargs], sort_keys=True)
    except (TypeError, ValueError):
        pass
    key = (args, tuple(sorted(kwargs.items())))
    try:
        hash(key)
    except TypeError:
        return 'id', tuple(map(id, args)), tuple((name, id(value)) for name, value in sorted(kwargs.items()))
    return key


class Memoized:
    """
    A function wrapper caching results by call arguments.
    The cache belongs to the wrapper itself. Once closed (see unmemoize), the wrapper
    keeps working but forwards every call to the wrapped function.
    """
    def __init__(self, fn: Func, key: Callable[[tuple, dict], Hashable] | None = None) -> None:
        expect_function(fn)
        functools.update_wrapper(self, fn)
        self.key = key or json_key
        self.cache: dict[Hashable, tuple[tuple, dict, Any]] = {}
        self.closed = False

    def __call__(self, *args, **kwargs) -> Any:
        if self.closed:
            return self.__wrapped__(*args, **kwargs)
        cache_key = self.key(args, kwargs)
        if cache_key not in self.cache:
            # entries hold the arguments so that id-based keys stay valid
            self.cache[cache_key] = (args, kwargs, self.__wrapped__(*args, **kwargs))
        return self.cache[cache_key][2]

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        # decorating a method: bind like a function would
        if instance is None:
            return self
        return functools.partial(self, instance)

    def __repr__(self) -> str:
        state = "closed" if self.closed else f"{len(self.cache)} cached"
        return f"<Memoized {getattr(self, '__qualname__', '?')} ({state})>"

    def cache_clear(self) -> None:
        self.cache.clear()

    def close(self) -> None:
        self.cache.clear()
        self.closed = True


def is_memoized(fn: Any) -> bool:
    """Check whether 'fn' is a memoization wrapper that has not been closed."""
    return isinstance(fn, Memoized) and not fn.closed

def memoize(fn: Func, key: Callable[[tuple, dict], Hashable] | None = None) -> Memoized:
    """
    Wrap 'fn' so that calls with the same arguments are computed once.
    :param fn: The function to memoize; must not already be a memoization wrapper.
    :param key: Maps (args, kwargs) to a hashable cache key. Defaults to json_key.
    :returns: The memoization wrapper.
    """
    if is_memoized(fn):
        raise ValueError("The given function is already memoized.")
    logger.debug(f"Memoizing {getattr(fn, '__qualname__', fn)!r}")
    return Memoized(fn, key)

def unmemoize(fn: Memoized) -> Func:
    """
    Close a memoization wrapper and return the function it wraps.
    The cache is emptied and the wrapper turns into a plain pass-through.
    :param fn: The memoization wrapper.
    :returns: The original function.
    """
    if not is_memoized(fn):
        raise ValueError("The given function is not a memoization wrapper.")
    logger.debug(f"Unmemoizing {fn!r}")
    fn.close()
    return fn.__wrapped__

def memoize_method(obj: Any, name: str) -> Memoized:
    """
    Replace the method 'name' of 'obj' with a memoized version, stored on 'obj' itself.
    :param obj: The object owning the method.
    :param name: The method name.
    :returns: The memoization wrapper now stored on 'obj'.
    """
    expect_non_primitive(obj)
    method = getattr(obj, name)
    expect_function(method)
    wrapper = memoize(method)
    put(obj, name, wrapper)
    return wrapper

def unmemoize_method(obj: Any, name: str) -> Func:
    """
    Undo memoize_method: store the original method back on 'obj'.
    :param obj: The object owning the method.
    :param name: The method name.
    :returns: The original method.
    """
    expect_non_primitive(obj)
    original = unmemoize(getattr(obj, name))
    put(obj, name, original)
    return original
