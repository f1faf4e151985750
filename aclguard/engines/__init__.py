"""
Policy engines for aclguard.

This module provides the decision engine abstraction layer, so that
enforcement adapters can be wired to any engine registered here.
Available engines:

- AclPolicyEngine: Rule table engine (roles per method, signature and
  argument value)

Quick Start:
    >>> from aclguard.engines import EngineFactory
    >>> from aclguard.sources import InMemoryRuleTableSource
    >>>
    >>> source = InMemoryRuleTableSource({"shell.bundle": {"uninstall": "admin"}})
    >>> engine = EngineFactory.create("acl", source=source)
    >>>
    >>> # Or deny invocations that no rule covers
    >>> engine = EngineFactory.create("acl", {"default_allow": False}, source=source)
"""

from __future__ import annotations

import logging
from typing import Any

from aclguard.engines.acl import AclPolicyEngine
from aclguard.engines.base import (
    BasePolicyEngine,
    EngineCapabilities,
    EngineNotAvailableError,
    PolicyEngine,
    PolicyEngineError,
)

logger = logging.getLogger(__name__)


class EngineFactory:
    """
    Factory for creating policy engine instances.

    Engines are looked up by name in a registry. Keyword arguments other
    than ``config`` (such as ``source`` and ``resolver``) are passed to the
    engine constructor unchanged.

    Example:
        >>> engine = EngineFactory.create("acl", source=source)
        >>> engine = EngineFactory.create(
        ...     "acl",
        ...     {"role_wildcard": None},
        ...     source=source,
        ...     resolver=ManagementNameResolver(),
        ... )

    Available Engine Types:
        - "acl": AclPolicyEngine (always available)
    """

    _engines: dict[str, type[BasePolicyEngine]] = {
        "acl": AclPolicyEngine,
    }

    @classmethod
    def create(
        cls,
        engine_type: str = "acl",
        config: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> BasePolicyEngine:
        """
        Create a policy engine instance.

        Args:
            engine_type: The type of engine to create.
            config: Engine-specific configuration.
            **kwargs: Further constructor arguments for the engine.

        Returns:
            An initialized policy engine instance.

        Raises:
            EngineNotAvailableError: If the engine type is not registered.
            ConfigurationError: If the engine rejects its configuration.
        """
        engine_type = engine_type.lower()

        if engine_type not in cls._engines:
            available = cls.get_available_engines()
            raise EngineNotAvailableError(
                f"Unknown engine type: '{engine_type}'. "
                f"Available engines: {', '.join(available)}",
                engine_name=engine_type,
            )

        engine_class = cls._engines[engine_type]
        return engine_class(config, **kwargs)

    @classmethod
    def register(
        cls,
        engine_type: str,
        engine_class: type[BasePolicyEngine],
    ) -> None:
        """
        Register a custom engine type.

        Example:
            >>> class DenyAllEngine(BasePolicyEngine):
            ...     def evaluate(self, user, action, resource, context=None):
            ...         return AuthorizationResult.deny("Denied")
            >>>
            >>> EngineFactory.register("deny", DenyAllEngine)
            >>> engine = EngineFactory.create("deny")
        """
        cls._engines[engine_type.lower()] = engine_class
        logger.debug(f"Registered engine type: {engine_type}")

    @classmethod
    def get_available_engines(cls) -> list[str]:
        """Get a sorted list of registered engine types."""
        return sorted(cls._engines)


def create_engine(
    engine_type: str = "acl",
    config: dict[str, Any] | None = None,
    **kwargs: Any,
) -> BasePolicyEngine:
    """
    Create a policy engine instance.

    Convenience function that delegates to EngineFactory.create().

    Example:
        >>> from aclguard.engines import create_engine
        >>> engine = create_engine("acl", source=source)
    """
    return EngineFactory.create(engine_type, config, **kwargs)


__all__ = [
    # Protocol and base classes
    "PolicyEngine",
    "BasePolicyEngine",
    "EngineCapabilities",
    # Engines
    "AclPolicyEngine",
    # Factory
    "EngineFactory",
    "create_engine",
    # Exceptions
    "PolicyEngineError",
    "EngineNotAvailableError",
]
