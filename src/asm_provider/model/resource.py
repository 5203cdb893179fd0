"""Declarative resource set backed by an explicit dependency graph.

Every declared resource is a node.  Every ``require`` or ``before``
reference recorded against a node is an edge.  The graph is the primary
model; :meth:`ResourceSet.to_dict` flattens it back to the nested
``{type: {name: {attr: value}}}`` mapping handed to the apply engine.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Literal

from asm_provider.client.errors import ResourceConflictError

logger = logging.getLogger(__name__)

RefStyle = Literal["scalar", "list"]


def resource_ref(resource_type: str, name: str | int) -> str:
    """Return the reference string for a resource.

    Each ``::`` separated segment of the type is capitalized, so
    ``("vcenter::dvswitch", "/dc/vds")`` becomes ``"Vcenter::Dvswitch[/dc/vds]"``.
    """
    segments = [s[:1].upper() + s[1:] for s in resource_type.split("::")]
    return "%s[%s]" % ("::".join(segments), name)


@dataclass
class Resource:
    """A single declared resource.

    Attributes:
        resource_type: Declarative type name, e.g. ``"force10_interface"``.
        name: Resource identifier within the type.
        attributes: Type specific properties, excluding ordering references.
        requires: References this resource must be applied after.
        befores: References this resource must be applied before.
        require_style: ``"scalar"`` serializes a single require as a plain
            string, ``"list"`` always serializes a list.
        before_style: ``"list"`` always serializes ``before`` as a list,
            ``"scalar"`` serializes the first reference or ``None``, and
            ``None`` emits ``before`` only when references exist.
    """

    resource_type: str
    name: str
    attributes: dict[str, Any] = field(default_factory=dict)
    requires: list[str] = field(default_factory=list)
    befores: list[str] = field(default_factory=list)
    require_style: RefStyle = "scalar"
    before_style: RefStyle | None = None

    @property
    def ref(self) -> str:
        return resource_ref(self.resource_type, self.name)

    def __getitem__(self, key: str) -> Any:
        return self.attributes[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def render(self) -> dict[str, Any]:
        """Flatten this node to its attribute mapping including ordering refs."""
        out = copy.deepcopy(self.attributes)
        if self.requires:
            if self.require_style == "scalar" and len(self.requires) == 1:
                out["require"] = self.requires[0]
            else:
                out["require"] = list(self.requires)
        if self.before_style == "scalar":
            out["before"] = self.befores[0] if self.befores else None
        elif self.befores or self.before_style == "list":
            out["before"] = list(self.befores)
        return out


class ResourceSet:
    """Accumulator of resources declared by a creator or builder.

    Args:
        certname: Device certname used in conflict error messages.
    """

    def __init__(self, certname: str = "") -> None:
        self.certname = certname
        self._resources: dict[str, dict[str, Resource]] = {}

    # ------------------------------------------------------------------
    # Declaration
    # ------------------------------------------------------------------

    def declare(
        self,
        resource_type: str,
        name: str | int,
        attributes: dict[str, Any] | None = None,
    ) -> Resource:
        """Declare a new resource.

        Args:
            resource_type: Declarative type name.
            name: Resource identifier.
            attributes: Initial attributes.

        Raises:
            ResourceConflictError: If ``(resource_type, name)`` already exists.
        """
        name = str(name)
        if self.has(resource_type, name):
            raise ResourceConflictError(
                resource_type=resource_type,
                name=name,
                certname=self.certname,
            )
        resource = Resource(resource_type, name, dict(attributes or {}))
        self._resources.setdefault(resource_type, {})[name] = resource
        logger.debug("Declared %s on %s", resource.ref, self.certname or "<unknown>")
        return resource

    def declare_or_get(
        self,
        resource_type: str,
        name: str | int,
        attributes: dict[str, Any] | None = None,
    ) -> tuple[Resource, bool]:
        """Return the existing resource or declare it; the flag is ``True`` when new."""
        existing = self.get(resource_type, name)
        if existing is not None:
            return existing, False
        return self.declare(resource_type, name, attributes), True

    def replace_type(self, resource_type: str, resources: dict[str, dict[str, Any]]) -> None:
        """Replace every resource of *resource_type* with verbatim *resources*."""
        self._resources[resource_type] = {
            str(name): Resource(resource_type, str(name), copy.deepcopy(attrs))
            for name, attrs in resources.items()
        }

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    @staticmethod
    def add_require(resource: Resource, ref: str, *, style: RefStyle | None = None) -> None:
        """Record that *resource* must be applied after *ref*.

        Self references are dropped; duplicate references are ignored.
        """
        if style is not None:
            resource.require_style = style
        if ref == resource.ref:
            logger.debug("Dropping self reference on %s", ref)
            return
        if ref not in resource.requires:
            resource.requires.append(ref)

    @staticmethod
    def set_require(resource: Resource, ref: str) -> None:
        """Replace every require of *resource* with the single reference *ref*."""
        resource.requires = [] if ref == resource.ref else [ref]
        resource.require_style = "scalar"

    @staticmethod
    def add_before(resource: Resource, ref: str) -> None:
        """Record that *resource* must be applied before *ref*."""
        if ref != resource.ref and ref not in resource.befores:
            resource.befores.append(ref)

    def edges(self) -> list[tuple[str, str]]:
        """Return every ordering edge as ``(first, then)`` reference pairs."""
        result: list[tuple[str, str]] = []
        for resource in self:
            for ref in resource.requires:
                result.append((ref, resource.ref))
            for ref in resource.befores:
                result.append((resource.ref, ref))
        return result

    def dependencies(self, ref: str) -> list[str]:
        """Return every reference that must be applied before *ref*."""
        return [first for first, then in self.edges() if then == ref]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has(self, resource_type: str, name: str | int) -> bool:
        return str(name) in self._resources.get(resource_type, {})

    def get(self, resource_type: str, name: str | int) -> Resource | None:
        return self._resources.get(resource_type, {}).get(str(name))

    def of_type(self, resource_type: str) -> dict[str, Resource]:
        return self._resources.get(resource_type, {})

    def types(self) -> list[str]:
        return list(self._resources)

    def clear(self) -> None:
        self._resources.clear()

    def is_empty(self) -> bool:
        return not self._resources

    def __bool__(self) -> bool:
        return not self.is_empty()

    def __iter__(self) -> Iterator[Resource]:
        for by_name in self._resources.values():
            yield from by_name.values()

    def __len__(self) -> int:
        return sum(len(v) for v in self._resources.values())

    def merge(self, other: ResourceSet) -> None:
        """Merge all resources of *other* into this set.

        Raises:
            ResourceConflictError: If a resource exists in both sets.
        """
        for resource in other:
            if self.has(resource.resource_type, resource.name):
                raise ResourceConflictError(
                    resource.resource_type, resource.name, self.certname
                )
            self._resources.setdefault(resource.resource_type, {})[resource.name] = resource

    def to_dict(self) -> dict[str, dict[str, dict[str, Any]]]:
        """Flatten the graph to the nested mapping consumed by the apply engine."""
        return {
            rtype: {name: res.render() for name, res in by_name.items()}
            for rtype, by_name in self._resources.items()
        }


class Sequencer:
    """Rolling "last declared resource" pointer.

    Each resource chained through the sequencer requires the previously
    chained one, producing a single linear chain.

    Args:
        start: Reference the first chained resource should require.
    """

    def __init__(self, start: str | None = None) -> None:
        self.current: str | None = start

    def reset(self, start: str | None = None) -> None:
        self.current = start

    def advance(self, resource: Resource) -> None:
        self.current = resource.ref

    def chain(self, resource: Resource, *, advance: bool = True) -> Resource:
        """Make *resource* require the current pointer and optionally advance it."""
        if self.current is not None:
            ResourceSet.set_require(resource, self.current)
        if advance:
            self.current = resource.ref
        return resource
