"""
Rule table sources for aclguard.

A source supplies the rule tables the decision engine consults. Each
lookup hands out an immutable snapshot, so a single decision never sees
two generations of the same table.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from aclguard.exceptions import ConfigurationError
from aclguard.rules.keys import normalize_table

logger = logging.getLogger(__name__)


@runtime_checkable
class RuleTableSource(Protocol):
    """
    Protocol for anything that can supply rule tables.

    Implementations might read configuration files, a configuration
    service, or a database. aclguard ships the in-memory implementation
    below; loading and caching belong to the surrounding application.
    """

    def get_table(self, table_id: str) -> Mapping[str, Any] | None:
        """
        Return a snapshot of the rule table with this id.

        Returns:
            The table, or None if no table with this id exists.
        """
        ...

    def get_operations(self, resource: str) -> Sequence[str] | None:
        """
        Return the method queries (``"name(sig)"``) a resource exposes.

        Returns:
            The operation catalog, or None when it is not known.
        """
        ...


class InMemoryRuleTableSource:
    """
    Thread-safe in-memory rule table store.

    Tables are normalized once when stored. Replacing a table swaps in a
    new snapshot; decisions already holding the old snapshot keep using it.

    Example:
        >>> source = InMemoryRuleTableSource({
        ...     "jmx.acl.foo.bar.Test": {"doit": "master", "fryIt": "editor, viewer"},
        ... })
        >>> source.get_table("jmx.acl.foo.bar.Test")["doit"]
        'master'
    """

    def __init__(self, tables: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._tables: dict[str, Mapping[str, Any]] = {}
        self._operations: dict[str, tuple[str, ...]] = {}
        self._lock = threading.RLock()

        for table_id, table in (tables or {}).items():
            self.put_table(table_id, table)

    def get_table(self, table_id: str) -> Mapping[str, Any] | None:
        with self._lock:
            return self._tables.get(table_id)

    def put_table(self, table_id: str, table: Mapping[str, Any]) -> None:
        """
        Store or replace a rule table.

        Raises:
            ConfigurationError: If the table is not a mapping with string keys.
        """
        if not isinstance(table, Mapping):
            raise ConfigurationError(
                config_key=table_id,
                expected="a mapping of rule keys to role strings",
                received=type(table).__name__,
            )
        bad_keys = [k for k in table if not isinstance(k, str)]
        if bad_keys:
            raise ConfigurationError(
                config_key=table_id,
                expected="string rule keys",
                received=bad_keys[0],
            )

        snapshot = normalize_table(table)
        with self._lock:
            replaced = table_id in self._tables
            self._tables[table_id] = snapshot

        logger.debug(
            f"{'Replaced' if replaced else 'Stored'} rule table '{table_id}' "
            f"with {len(snapshot)} rules"
        )

    def remove_table(self, table_id: str) -> bool:
        """
        Remove a rule table.

        Returns:
            True if a table was removed.
        """
        with self._lock:
            return self._tables.pop(table_id, None) is not None

    def table_ids(self) -> list[str]:
        """Ids of all stored tables, in insertion order."""
        with self._lock:
            return list(self._tables)

    def get_operations(self, resource: str) -> Sequence[str] | None:
        with self._lock:
            return self._operations.get(resource)

    def put_operations(self, resource: str, operations: Sequence[str]) -> None:
        """
        Record the operations a resource exposes.

        The catalog lets resource-level checks test each operation instead
        of estimating from the rule table alone.
        """
        if isinstance(operations, str):
            raise ConfigurationError(
                config_key=resource,
                expected="a sequence of method queries",
                received=operations,
            )
        with self._lock:
            self._operations[resource] = tuple(operations)

    def clear(self) -> None:
        """Remove all tables and operation catalogs."""
        with self._lock:
            self._tables.clear()
            self._operations.clear()
