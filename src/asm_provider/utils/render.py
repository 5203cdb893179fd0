"""Serialization of resource sets to the apply engine mapping."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from asm_provider.model.resource import ResourceSet
from asm_provider.utils.normalize import join_vlans


def render_resources(
    resources: ResourceSet,
    joins: dict[str, Iterable[str]] | None = None,
    skip_empty: bool = False,
) -> dict[str, dict[str, dict[str, Any]]]:
    """Flatten *resources* and join list valued VLAN properties.

    Args:
        resources: The resource graph to serialize.
        joins: Resource type to the property names whose list values are
            joined with :func:`~asm_provider.utils.normalize.join_vlans`.
            A ``"*"`` entry in the property list joins every list property.
        skip_empty: Leave empty lists untouched instead of joining them to ``""``.

    Returns:
        The nested ``{type: {name: {attr: value}}}`` mapping.
    """
    out = resources.to_dict()
    for rtype, props in (joins or {}).items():
        props = list(props)
        for attrs in out.get(rtype, {}).values():
            names = list(attrs) if "*" in props else props
            for prop in names:
                if prop in ("require", "before"):
                    continue
                value = attrs.get(prop)
                if not isinstance(value, list):
                    continue
                if skip_empty and not value:
                    continue
                attrs[prop] = join_vlans(value)
    return out
