"""
Decorators for aclguard enforcement.

The decision engine only answers questions. This module shows the usual
way to enforce its answers in application code: wrap a function so that
each call is checked against the rule tables before it runs.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Callable
from typing import Any, ParamSpec, TypeVar

from aclguard.engines.base import BasePolicyEngine
from aclguard.exceptions import AuthorizationError
from aclguard.types import AuthorizationResult, UserContext

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def _type_name(annotation: Any) -> str:
    if annotation is inspect.Parameter.empty:
        return "object"
    if isinstance(annotation, str):
        return annotation
    if isinstance(annotation, type):
        return annotation.__qualname__
    return str(annotation)


def _invocation(
    sig: inspect.Signature,
    user_param: str,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> tuple[UserContext | None, list[Any], list[str]]:
    """Split a call into the caller, the argument values and their type names."""
    bound = sig.bind(*args, **kwargs)
    bound.apply_defaults()

    user = bound.arguments.get(user_param)
    values: list[Any] = []
    types: list[str] = []

    for name, param in sig.parameters.items():
        if name == user_param or param.kind is inspect.Parameter.VAR_KEYWORD:
            continue
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            extra = bound.arguments.get(name, ())
            values.extend(extra)
            types.extend(_type_name(param.annotation) for _ in extra)
            continue
        values.append(bound.arguments[name])
        types.append(_type_name(param.annotation))

    return user, values, types


def _raise_denied(
    user: UserContext,
    method: str,
    resource: str,
    result: AuthorizationResult,
) -> None:
    logger.info(f"Denied '{method}' on '{resource}' for user {user.user_id}: {result.reason}")
    raise AuthorizationError(
        user=user.user_id,
        action=method,
        resource=resource,
        reason=result.reason,
        required_roles=result.metadata.get("required_roles"),
    )


def guarded(
    engine: BasePolicyEngine,
    resource: str,
    user_param: str = "user",
    method_name: str | None = None,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator that checks every call of a function against an engine.

    The signature of the invocation is built from the parameter
    annotations (``object`` where a parameter is unannotated), and the
    argument values are the actual call arguments, so rules may match on
    values. The user parameter takes no part in either.

    Args:
        engine: The policy engine that decides.
        resource: The resource identifier the function belongs to.
        user_param: Parameter name containing the UserContext.
        method_name: Method name to check. Defaults to the function name.

    Returns:
        A decorator function.

    Raises:
        AuthorizationError: When no user is passed or the engine denies
            the call.

    Example:
        >>> @guarded(engine, "org.example:type=Config")
        ... def set_property(key: str, value: str, user: UserContext = None):
        ...     store[key] = value
        >>>
        >>> # Table "jmx.acl.org.example.Config":
        >>> #   set_property["password",/.*/] = admin
        >>> #   set_property = editor
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        is_async = inspect.iscoroutinefunction(func)
        method = method_name or func.__name__
        sig = inspect.signature(func)

        def check_inputs(
            args: tuple[Any, ...], kwargs: dict[str, Any]
        ) -> tuple[UserContext, dict[str, Any]]:
            user, values, types = _invocation(sig, user_param, args, kwargs)
            if user is None:
                raise AuthorizationError(
                    user="unknown",
                    action=method,
                    resource=resource,
                    reason="No user context provided",
                )
            return user, {"args": values, "signature": types}

        if is_async:
            @functools.wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                user, context = check_inputs(args, kwargs)
                result = await engine.evaluate_async(user, method, resource, context)
                if not result.allowed:
                    _raise_denied(user, method, resource, result)
                return await func(*args, **kwargs)

            return async_wrapper  # type: ignore
        else:
            @functools.wraps(func)
            def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                user, context = check_inputs(args, kwargs)
                result = engine.evaluate(user, method, resource, context)
                if not result.allowed:
                    _raise_denied(user, method, resource, result)
                return func(*args, **kwargs)

            return sync_wrapper  # type: ignore

    return decorator
