"""
Decision point interface for aclguard.

Enforcement adapters only need ``evaluate`` (and its async twin), so they
are written against PolicyEngine and never import a concrete engine.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from aclguard.types import AuthorizationResult, UserContext


@runtime_checkable
class PolicyEngine(Protocol):
    """
    What an adapter calls at its interception point.

    ``action`` is the method name. ``context`` may carry ``args`` and
    ``signature``; when ``args`` is absent the check is advisory.
    """

    def evaluate(
        self,
        user: UserContext,
        action: str,
        resource: str,
        context: dict[str, Any] | None = None,
    ) -> AuthorizationResult:
        ...

    async def evaluate_async(
        self,
        user: UserContext,
        action: str,
        resource: str,
        context: dict[str, Any] | None = None,
    ) -> AuthorizationResult:
        ...


class BasePolicyEngine(ABC):
    """
    Shared plumbing for engines: config access and an executor-backed
    ``evaluate_async``.
    """

    name: str = "base"

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self.config = config or {}

    @abstractmethod
    def evaluate(
        self,
        user: UserContext,
        action: str,
        resource: str,
        context: dict[str, Any] | None = None,
    ) -> AuthorizationResult:
        ...

    async def evaluate_async(
        self,
        user: UserContext,
        action: str,
        resource: str,
        context: dict[str, Any] | None = None,
    ) -> AuthorizationResult:
        # Rule lookups take locks on the source, so keep them off the loop.
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, self.evaluate, user, action, resource, context
        )

    def get_config(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)


@dataclass(frozen=True)
class EngineCapabilities:
    """
    What an engine can answer beyond a plain ``evaluate``.

    Attributes:
        supports_async: ``evaluate_async`` is available.
        supports_explain: The engine can describe how a decision was made.
        supports_advisory: Checks without concrete argument values are
            meaningful (method name and signature only).
        supports_bulk: The engine answers many method queries in one call.
        max_batch_size: Largest bulk query accepted, 0 for no limit.
    """

    supports_async: bool = True
    supports_explain: bool = False
    supports_advisory: bool = False
    supports_bulk: bool = False
    max_batch_size: int = 1


class PolicyEngineError(Exception):
    """An engine could not be created or used."""

    def __init__(self, message: str, engine_name: str | None = None) -> None:
        self.engine_name = engine_name
        super().__init__(f"[{engine_name or 'unknown'}] {message}")


class EngineNotAvailableError(PolicyEngineError):
    """No engine is registered under the requested name."""
