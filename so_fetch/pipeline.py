"""Interceptor Pipeline - Sequential application of interceptor chains.

Each interceptor receives the previous interceptor's output. Results that are
awaitable are awaited before the next interceptor runs, so sync and async
interceptors can be mixed freely and never run concurrently.

Interceptors may mutate their input and return it, or return a new object.
Nothing here copies or freezes values between steps: an interceptor must not
hold on to a request or response after its call returns.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Iterable, TypeVar

from so_fetch.errors import InterceptorError

T = TypeVar("T")


def _interceptor_name(interceptor: Callable[..., Any]) -> str:
    return getattr(interceptor, "__qualname__", None) or repr(interceptor)


async def run_interceptors(
    initial: T,
    interceptors: Iterable[Callable[[T], Any]],
    expected_type: type | None = None,
) -> T:
    """Fold initial through interceptors in order.

    Args:
        initial: Starting value. Returned unchanged for an empty chain.
        interceptors: Transforms to apply, in registration order.
        expected_type: If given, every interceptor result must be an instance
            of this type.

    Returns:
        The last interceptor's (awaited) result.

    Raises:
        InterceptorError: If an interceptor returns a value of the wrong type.
        Exception: Whatever an interceptor raises; the rest of the chain is skipped.
    """
    value = initial
    for interceptor in interceptors:
        result = interceptor(value)
        if inspect.isawaitable(result):
            result = await result
        if expected_type is not None and not isinstance(result, expected_type):
            raise InterceptorError(
                f"Interceptor {_interceptor_name(interceptor)} returned "
                f"{type(result).__name__}, expected {expected_type.__name__}"
            )
        value = result
    return value
