"""
Custom exceptions for aclguard.

This module defines the exception hierarchy for the library. The decision
engine itself only returns data; exceptions signal resources that cannot be
identified, bad configuration, malformed queries, and (for enforcement
adapters) denied invocations.
"""

from __future__ import annotations

from typing import Any


class AclGuardError(Exception):
    """
    Base exception for all aclguard errors.

    Attributes:
        message: Human-readable error description.
        details: Additional context about the error.

    Example:
        >>> try:
        ...     engine.get_required_roles("bad name", "doit")
        ... except AclGuardError as e:
        ...     logger.error(f"aclguard error: {e}")
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ResourceResolutionError(AclGuardError):
    """
    Raised when a resource identifier cannot be mapped to rule tables.

    This is distinct from a resource that simply has no rules: a resource
    without rules is allowed by default, while an identifier that cannot
    be understood makes every check on it fail closed.

    Attributes:
        resource: The identifier that could not be resolved.
        reason: Why it could not be resolved.

    Example:
        >>> raise ResourceResolutionError(
        ...     resource="foo.bar",
        ...     reason="missing ':' between domain and key properties",
        ... )
    """

    def __init__(self, resource: str, reason: str | None = None) -> None:
        self.resource = resource
        self.reason = reason or "unrecognized resource identifier"

        message = f"Cannot resolve resource '{resource}': {self.reason}"
        details = {
            "resource": resource,
            "reason": self.reason,
        }
        super().__init__(message, details)


class AuthorizationError(AclGuardError):
    """
    Raised by enforcement adapters when a caller may not invoke a method.

    The decision engine never raises this itself; adapters such as the
    ``guarded`` decorator turn a denied decision into this exception.

    Attributes:
        user: The user ID who attempted the invocation.
        action: The method that was invoked.
        resource: The resource the method belongs to.
        reason: Explanation of why the invocation was denied.
        required_roles: The roles that would have allowed it.

    Example:
        >>> raise AuthorizationError(
        ...     user="user_123",
        ...     action="shutdown",
        ...     resource="org.example:type=Server",
        ...     required_roles=["admin"],
        ... )
    """

    def __init__(
        self,
        user: str,
        action: str,
        resource: str,
        reason: str | None = None,
        required_roles: list[str] | None = None,
    ) -> None:
        self.user = user
        self.action = action
        self.resource = resource
        self.reason = reason or "Insufficient credentials"
        self.required_roles = required_roles or []

        message = (
            f"Authorization denied: User '{user}' cannot invoke "
            f"'{action}' on resource '{resource}'. Reason: {self.reason}"
        )
        if self.required_roles:
            message += f" | Required roles: {', '.join(self.required_roles)}"

        details = {
            "user": user,
            "action": action,
            "resource": resource,
            "reason": self.reason,
            "required_roles": self.required_roles,
        }
        super().__init__(message, details)


class ConfigurationError(AclGuardError):
    """
    Raised when an engine or source is configured incorrectly.

    Attributes:
        config_key: The configuration key that has an issue.
        expected: What was expected for this configuration.
        received: What was actually provided.

    Example:
        >>> raise ConfigurationError(
        ...     config_key="default_allow",
        ...     expected="a boolean",
        ...     received="yes",
        ... )
    """

    def __init__(
        self,
        config_key: str,
        expected: str | None = None,
        received: Any = None,
    ) -> None:
        self.config_key = config_key
        self.expected = expected
        self.received = received

        message = f"Configuration error for '{config_key}'"
        if expected:
            message += f": expected {expected}"
        if received is not None:
            message += f", got {received!r}"

        details = {
            "config_key": config_key,
            "expected": expected,
            "received": str(received) if received is not None else None,
        }
        super().__init__(message, details)


class InvalidQueryError(AclGuardError):
    """
    Raised when a method query string such as ``"foo(int,long)"`` is malformed.

    Attributes:
        query: The query string.
        reason: What is wrong with it.
    """

    def __init__(self, query: str, reason: str) -> None:
        self.query = query
        self.reason = reason

        message = f"Invalid method query '{query}': {reason}"
        details = {
            "query": query,
            "reason": reason,
        }
        super().__init__(message, details)
