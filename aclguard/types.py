"""
Core type definitions for aclguard.

This module defines the data structures passed between enforcement
adapters and the decision engine: the caller's user context, the
invocation being checked, and the results the engine hands back.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from aclguard.exceptions import InvalidQueryError


@dataclass(frozen=True)
class UserContext:
    """
    Represents the caller whose invocation is being checked.

    Authentication and role membership are managed elsewhere; the engine
    only needs the caller's roles.

    Attributes:
        user_id: Unique identifier for the user.
        roles: Role names the user holds (e.g., ["admin", "viewer"]).
        attributes: Additional custom attributes for adapters and logging.

    Example:
        >>> user = UserContext(user_id="karaf", roles=["admin", "viewer"])
    """
    user_id: str
    roles: list[str] = field(default_factory=list)
    attributes: dict[str, Any] = field(default_factory=dict)

    def has_role(self, role: str) -> bool:
        """Check if user has a specific role."""
        return role in self.roles

    def has_any_role(self, roles: list[str]) -> bool:
        """Check if user has any of the specified roles."""
        return any(role in self.roles for role in roles)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "user_id": self.user_id,
            "roles": self.roles,
            "attributes": self.attributes,
        }


@dataclass(frozen=True)
class InvocationKey:
    """
    Describes the invocation being checked.

    Attributes:
        method_name: Name of the method being invoked.
        signature: Parameter type names of the overload, or None when the
            overload is not known. An empty tuple is the no-argument overload.
        args: Actual argument values, or None when they are not known
            (advisory checks).

    Example:
        >>> InvocationKey("setLevel", ("java.lang.String",), ("DEBUG",))
        >>> InvocationKey.from_query("setLevel(java.lang.String)")
    """
    method_name: str
    signature: tuple[str, ...] | None = None
    args: tuple[Any, ...] | None = None

    @classmethod
    def create(
        cls,
        method_name: str,
        args: Sequence[Any] | None = None,
        signature: Sequence[str] | None = None,
    ) -> InvocationKey:
        """Build a key from any sequences, stripping type names."""
        return cls(
            method_name=method_name,
            signature=tuple(s.strip() for s in signature) if signature is not None else None,
            args=tuple(args) if args is not None else None,
        )

    @classmethod
    def from_query(cls, query: str) -> InvocationKey:
        """
        Parse a method query such as ``"foo"``, ``"foo()"`` or ``"foo(int, long)"``.

        A bare name leaves the signature unknown; parentheses pin it down.
        The arguments of a parsed query are always unknown.

        Raises:
            InvalidQueryError: If the query is empty or its parentheses are
                unbalanced.
        """
        text = query.strip()
        if not text:
            raise InvalidQueryError(query, "empty method name")

        open_idx = text.find("(")
        if open_idx < 0:
            if ")" in text:
                raise InvalidQueryError(query, "unbalanced parentheses")
            return cls(method_name=text)

        name = text[:open_idx].strip()
        if not name:
            raise InvalidQueryError(query, "empty method name")
        if not text.endswith(")") or "(" in text[open_idx + 1 :] or text.count(")") != 1:
            raise InvalidQueryError(query, "unbalanced parentheses")

        params = text[open_idx + 1 : -1].strip()
        if not params:
            return cls(method_name=name, signature=())

        signature = tuple(p.strip() for p in params.split(","))
        if any(not p for p in signature):
            raise InvalidQueryError(query, "empty parameter type")
        return cls(method_name=name, signature=signature)

    @property
    def advisory(self) -> bool:
        """True when the actual arguments are not known."""
        return self.args is None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "method_name": self.method_name,
            "signature": list(self.signature) if self.signature is not None else None,
            "args": [str(a) for a in self.args] if self.args is not None else None,
        }


@dataclass(frozen=True)
class AuthorizationResult:
    """
    Result of an authorization check.

    Attributes:
        allowed: Whether the invocation is authorized.
        reason: Human-readable explanation of the decision.
        policies_evaluated: Rule tables that were consulted.
        metadata: Additional information about the decision
            (e.g., required roles, matched rule keys).

    Example:
        >>> result = AuthorizationResult(
        ...     allowed=True,
        ...     reason="User has 'admin' role",
        ...     policies_evaluated=["jmx.acl.org.apache.karaf.bundle"],
        ... )
    """
    allowed: bool
    reason: str | None = None
    policies_evaluated: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def allow(cls, reason: str | None = None,
              policies: list[str] | None = None,
              metadata: dict[str, Any] | None = None) -> AuthorizationResult:
        """Create an allowed result."""
        return cls(
            allowed=True,
            reason=reason,
            policies_evaluated=policies or [],
            metadata=metadata or {},
        )

    @classmethod
    def deny(cls, reason: str,
             policies: list[str] | None = None,
             metadata: dict[str, Any] | None = None) -> AuthorizationResult:
        """Create a denied result."""
        return cls(
            allowed=False,
            reason=reason,
            policies_evaluated=policies or [],
            metadata=metadata or {},
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "allowed": self.allowed,
            "reason": self.reason,
            "policies_evaluated": self.policies_evaluated,
            "metadata": self.metadata,
        }


@dataclass(frozen=True)
class BulkCheckResult:
    """
    One row of a bulk ``can_invoke`` answer.

    Attributes:
        resource: The resource identifier from the query.
        method: The method query string, or "" for a resource-level check.
        allowed: Whether the caller can (potentially) invoke it.
    """
    resource: str
    method: str
    allowed: bool

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "resource": self.resource,
            "method": self.method,
            "allowed": self.allowed,
        }
