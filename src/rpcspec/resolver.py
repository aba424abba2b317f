"""Resolve type-name strings against the spec's type registry.

Type names in a spec document encode their wrapping as a prefix: zero or
more array markers (``[]``), then zero or more pointer markers (``*``), then
a base name that is either a primitive keyword or a key of the ``types``
registry::

    [][]*api.User   ->  array_depth=2, pointer_depth=1, base="api.User"

:func:`resolve_type` strips the markers and looks the base name up,
returning a :class:`~rpcspec.models.TypeDescriptor`. It is a pure function
of its two arguments: it never raises, never mutates the registry, and can
be called concurrently.

Public functions:

* :func:`parse_type_name` -- strip the markers and count them.
* :func:`resolve_type` -- parse and look up a single name.
* :func:`format_type_name` -- rebuild the display string of a descriptor.
* :func:`expand_type` -- resolve a type and, recursively, its fields.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError

from rpcspec.models import (
    MAP_KIND,
    PRIMITIVE_KINDS,
    UNKNOWN_KIND,
    FieldRef,
    TypeDescriptor,
    TypeEntry,
    TypeNode,
)

logger = logging.getLogger(__name__)

ARRAY_MARKER = "[]"
POINTER_MARKER = "*"

Registry = Optional[Mapping[str, Any]]


def parse_type_name(name: str) -> tuple[int, int, str]:
    """Split a type name into its wrapper depths and base name.

    All array markers are stripped first, then all pointer markers. A name
    that interleaves the two (``*[]Foo``) keeps whatever follows the
    pointer run as its base name.

    Args:
        name: A type-name string such as ``"[]*User"``.

    Returns:
        ``(array_depth, pointer_depth, base_name)``.
    """
    pos = 0
    array_depth = 0
    while name.startswith(ARRAY_MARKER, pos):
        pos += len(ARRAY_MARKER)
        array_depth += 1

    pointer_depth = 0
    while name.startswith(POINTER_MARKER, pos):
        pos += len(POINTER_MARKER)
        pointer_depth += 1

    return array_depth, pointer_depth, name[pos:]


def _lookup(registry: Registry, name: str) -> Optional[TypeEntry]:
    """Return the registry entry for *name*, validating raw JSON dicts on the way."""
    if not registry:
        return None
    entry = registry.get(name)
    if entry is None or isinstance(entry, TypeEntry):
        return entry
    try:
        return TypeEntry.model_validate(entry)
    except ValidationError as exc:
        logger.debug("Ignoring malformed registry entry %r: %s", name, exc)
        return None


def resolve_type(name: Optional[str], registry: Registry) -> Optional[TypeDescriptor]:
    """Resolve a type-name string into a :class:`~rpcspec.models.TypeDescriptor`.

    Primitive keywords shadow registry entries of the same name. Names that
    are neither primitive nor registered resolve to an ``"unknown"``
    descriptor rather than failing.

    For registry hits the entry's own ``is_array`` / ``is_pointer`` flags
    are OR-ed into the result, but the depths always come from the markers
    stripped off *name*: ``resolve_type("IDs", {"IDs": {"isArray": True}})``
    reports ``is_array=True`` with ``array_depth=0``.

    Args:
        name: The type name, possibly ``None`` or empty.
        registry: Mapping of base type name to :class:`~rpcspec.models.TypeEntry`
            (or to the raw dict it was decoded from). ``None`` is treated as
            an empty registry.

    Returns:
        The descriptor, or ``None`` when *name* is empty or ``None``.
    """
    if not name:
        return None

    array_depth, pointer_depth, base = parse_type_name(name)

    if base in PRIMITIVE_KINDS:
        return TypeDescriptor(
            name=base,
            kind=base,
            is_array=array_depth > 0,
            array_depth=array_depth,
            is_pointer=pointer_depth > 0,
            pointer_depth=pointer_depth,
        )

    entry = _lookup(registry, base)
    if entry is None:
        return TypeDescriptor(
            name=base,
            kind=UNKNOWN_KIND,
            is_array=array_depth > 0,
            array_depth=array_depth,
            is_pointer=pointer_depth > 0,
            pointer_depth=pointer_depth,
        )

    return TypeDescriptor(
        name=base,
        package=entry.package,
        kind=entry.kind,
        is_array=array_depth > 0 or entry.is_array,
        array_depth=array_depth,
        is_pointer=pointer_depth > 0 or entry.is_pointer,
        pointer_depth=pointer_depth,
        element_type=entry.element_type,
        key_type=entry.key_type,
        value_type=entry.value_type,
        fields=tuple(entry.fields),
    )


def format_type_name(descriptor: TypeDescriptor, qualified: bool = False) -> str:
    """Rebuild the display string for *descriptor*.

    The inverse of :func:`parse_type_name` for well-formed names:
    ``format_type_name(resolve_type("[]*User", types))`` gives ``"[]*User"``.

    Args:
        descriptor: A resolved descriptor.
        qualified: Prefix the name with ``package.`` when the descriptor
            has a package and the name is not already qualified.

    Returns:
        The type name with its array and pointer markers.
    """
    if descriptor.kind == MAP_KIND and descriptor.key_type and descriptor.value_type:
        base = f"map[{descriptor.key_type}]{descriptor.value_type}"
    elif (
        qualified
        and descriptor.package
        and not descriptor.name.startswith(f"{descriptor.package}.")
    ):
        base = f"{descriptor.package}.{descriptor.name}"
    else:
        base = descriptor.name
    return (
        ARRAY_MARKER * descriptor.array_depth
        + POINTER_MARKER * descriptor.pointer_depth
        + base
    )


def expand_type(
    name: Optional[str],
    registry: Registry,
    max_depth: int = 8,
) -> Optional[TypeNode]:
    """Resolve *name* and recursively resolve the declared type of every field.

    Self-referential types (a ``Node`` with a ``Children []Node`` field)
    are cut where the base name repeats on the current path: that node is
    returned with ``recursive=True`` and no children. Sibling branches are
    tracked independently, so a type used by two fields is expanded twice.

    Args:
        name: Root type name.
        registry: The type registry, as for :func:`resolve_type`.
        max_depth: Maximum nesting depth below the root; deeper fields are
            resolved but not expanded.

    Returns:
        The root :class:`~rpcspec.models.TypeNode`, or ``None`` when *name*
        is empty.
    """
    descriptor = resolve_type(name, registry)
    if descriptor is None:
        return None
    return _expand(descriptor, None, registry, frozenset(), max_depth)


def _expand(
    descriptor: TypeDescriptor,
    field: Optional[FieldRef],
    registry: Registry,
    seen: frozenset[str],
    depth_left: int,
) -> TypeNode:
    if descriptor.name in seen:
        return TypeNode(descriptor=descriptor, field=field, recursive=True)

    if depth_left <= 0 or not descriptor.fields:
        return TypeNode(descriptor=descriptor, field=field)

    seen = seen | {descriptor.name}
    children: list[TypeNode] = []
    for member in descriptor.fields:
        child = _field_descriptor(member, registry)
        children.append(_expand(child, member, registry, seen, depth_left - 1))
    return TypeNode(descriptor=descriptor, field=field, children=tuple(children))


def _field_descriptor(member: FieldRef, registry: Registry) -> TypeDescriptor:
    """Resolve a field's declared type, falling back to the field's own metadata.

    Fields carry their wrapper depths separately from ``type`` (the server
    sends ``type: "api.User", arrayDepth: 1`` rather than ``"[]api.User"``),
    so those depths are re-applied before resolving.
    """
    if not member.type:
        return TypeDescriptor(
            name=member.name,
            kind=member.kind or UNKNOWN_KIND,
            fields=tuple(member.fields),
        )

    declared = (
        ARRAY_MARKER * member.array_depth
        + POINTER_MARKER * member.pointer_depth
        + member.type
    )
    descriptor = resolve_type(declared, registry)
    assert descriptor is not None  # declared is never empty here

    updates: dict[str, Any] = {}
    if descriptor.is_unknown and member.kind:
        updates["kind"] = member.kind
    if not descriptor.fields and member.fields:
        updates["fields"] = tuple(member.fields)
    if member.key_type and not descriptor.key_type:
        updates["key_type"] = member.key_type
        updates["value_type"] = member.value_type
    if updates:
        descriptor = descriptor.model_copy(update=updates)
    return descriptor
