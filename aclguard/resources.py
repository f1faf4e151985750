"""
Resource identifiers for aclguard.

A resource resolver maps the identifier of a protected resource to the ids
of the rule tables that may govern it, most specific first. The decision
engine consults those tables in order.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from aclguard.exceptions import ResourceResolutionError

logger = logging.getLogger(__name__)


@runtime_checkable
class ResourceResolver(Protocol):
    """Maps a resource identifier to candidate rule table ids."""

    def candidates(self, resource: str) -> list[str]:
        """
        Return the rule table ids for a resource, most specific first.

        Raises:
            ResourceResolutionError: If the identifier is malformed.
        """
        ...


class FlatResourceResolver:
    """
    Uses the resource identifier itself as the only table id.

    Suitable for domains where each resource has exactly one rule table,
    such as published services or shell command scopes.
    """

    def __init__(self, prefix: str | None = None) -> None:
        self.prefix = prefix

    def candidates(self, resource: str) -> list[str]:
        name = resource.strip()
        if not name:
            raise ResourceResolutionError(resource, "empty resource identifier")
        if self.prefix:
            return [f"{self.prefix}.{name}"]
        return [name]


class ManagementNameResolver:
    """
    Resolves management object names such as ``org.apache.karaf:type=bundle,name=root``.

    The name is split into segments: the whole domain, followed by the
    values of the key properties in declaration order. Candidate table ids
    are built from the longest run of segments down to the domain alone,
    each joined with dots under ``prefix``:

        jmx.acl.org.apache.karaf.bundle.root
        jmx.acl.org.apache.karaf.bundle
        jmx.acl.org.apache.karaf

    Parts of the domain and the bare prefix are never consulted.

    Example:
        >>> ManagementNameResolver().candidates("foo.bar:type=Test")
        ['jmx.acl.foo.bar.Test', 'jmx.acl.foo.bar']
    """

    def __init__(self, prefix: str = "jmx.acl") -> None:
        self.prefix = prefix

    def candidates(self, resource: str) -> list[str]:
        segments = self.segments(resource)
        ids = []
        for end in range(len(segments), 0, -1):
            name = ".".join(segments[:end])
            ids.append(f"{self.prefix}.{name}" if self.prefix else name)
        logger.debug(f"Rule tables for '{resource}': {ids}")
        return ids

    def segments(self, resource: str) -> list[str]:
        """
        Split an object name into its domain and key property values.

        Raises:
            ResourceResolutionError: If the name has no domain, no key
                properties, or a property without a value.
        """
        domain, sep, properties = resource.partition(":")
        domain = domain.strip()
        if not sep:
            raise ResourceResolutionError(resource, "missing ':' between domain and key properties")
        if not domain:
            raise ResourceResolutionError(resource, "empty domain")
        if not properties.strip():
            raise ResourceResolutionError(resource, "no key properties")

        segments = [domain]
        for prop in properties.split(","):
            key, eq, value = prop.partition("=")
            if not eq or not key.strip():
                raise ResourceResolutionError(resource, f"malformed key property '{prop}'")
            segments.append(value.strip())

        return segments
