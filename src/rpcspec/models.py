"""Canonical Pydantic models shared across all rpcspec modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Spec document models** -- the wire format served by an RPC server's spec
endpoint:
    :class:`FieldRef`, :class:`TypeEntry`, :class:`MethodSpec` and
    :class:`SpecDocument`.

**Resolver output models** -- produced by :mod:`rpcspec.resolver`:
    :class:`TypeDescriptor` and :class:`TypeNode`.

**Configuration models** -- serialised as JSON in the user's config
directory:
    :class:`RequestConfig`, :class:`OutputConfig` and :class:`GlobalConfig`.

The wire format uses camelCase keys (``isArray``, ``elementType``); the
models expose snake_case attributes with camelCase aliases, so
``model_validate`` accepts either spelling and ``model_dump(by_alias=True)``
reproduces the wire keys. Spec document models use ``extra="allow"`` so
that keys added by newer servers survive a load/dump cycle.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from rpcspec.exceptions import SpecParseError


PRIMITIVE_KINDS: frozenset[str] = frozenset(
    {
        "bool",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "float32",
        "float64",
        "string",
    }
)
"""Base type names that always resolve to themselves, never to a registry entry."""

UNKNOWN_KIND = "unknown"
"""Kind reported for type names that are neither primitive nor in the registry."""

MAP_KIND = "map"


# --- Spec document ---


def _drop_nulls(model: type[BaseModel], data: Any) -> Any:
    """Remove ``null`` values of declared fields so their defaults apply.

    Servers emit ``null`` for empty slices and zero values; unknown keys are
    left as they are.
    """
    if not isinstance(data, dict):
        return data
    declared: set[str] = set()
    for name, info in model.model_fields.items():
        declared.add(name)
        if info.alias:
            declared.add(info.alias)
    return {key: value for key, value in data.items() if value is not None or key not in declared}


class FieldRef(BaseModel):
    """A member field of a composite type.

    Only ``name`` and ``type`` are needed for display; everything else is
    passed through from the server untouched. ``type`` is itself a type-name
    string and can be fed back into :func:`~rpcspec.resolver.resolve_type`.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = ""
    json_name: str = Field(default="", alias="jsonName")
    type: str = ""
    kind: str = ""
    required: bool = False
    validation_rules: list[str] = Field(default_factory=list, alias="validationRules")
    is_array: bool = Field(default=False, alias="isArray")
    array_depth: int = Field(default=0, alias="arrayDepth")
    is_pointer: bool = Field(default=False, alias="isPointer")
    pointer_depth: int = Field(default=0, alias="pointerDepth")
    element_type: str = Field(default="", alias="elementType")
    key_type: str = Field(default="", alias="keyType")
    value_type: str = Field(default="", alias="valueType")
    fields: list[FieldRef] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _nulls_as_defaults(cls, data: Any) -> Any:
        return _drop_nulls(cls, data)


class TypeEntry(BaseModel):
    """A named type in the spec's type registry.

    ``is_array`` / ``is_pointer`` describe the registered type itself: a
    named alias such as ``type IDs []int64`` is registered with
    ``isArray: true`` even though the name ``IDs`` carries no ``[]`` marker.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = ""
    package: str = ""
    kind: str = ""
    is_array: bool = Field(default=False, alias="isArray")
    array_depth: int = Field(default=0, alias="arrayDepth")
    is_pointer: bool = Field(default=False, alias="isPointer")
    pointer_depth: int = Field(default=0, alias="pointerDepth")
    element_type: str = Field(default="", alias="elementType")
    key_type: str = Field(default="", alias="keyType")
    value_type: str = Field(default="", alias="valueType")
    fields: list[FieldRef] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _nulls_as_defaults(cls, data: Any) -> Any:
        return _drop_nulls(cls, data)


class MethodSpec(BaseModel):
    """A single RPC method: its name plus the type names of its params and result.

    ``params`` and ``result`` are normally type-name strings, but whatever the
    server sends is kept as is.
    """

    model_config = ConfigDict(extra="allow")

    name: str = ""
    params: Any = ""
    result: Any = ""

    @model_validator(mode="before")
    @classmethod
    def _nulls_as_defaults(cls, data: Any) -> Any:
        return _drop_nulls(cls, data)


class SpecDocument(BaseModel):
    """The full spec document: ordered methods plus the named-type registry.

    Both keys are optional on the wire. A missing or ``null`` key yields an
    empty container.
    """

    model_config = ConfigDict(extra="allow")

    methods: list[MethodSpec] = Field(default_factory=list)
    types: dict[str, TypeEntry] = Field(default_factory=dict)

    @field_validator("methods", mode="before")
    @classmethod
    def _methods_default(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("types", mode="before")
    @classmethod
    def _types_default(cls, value: Any) -> Any:
        return {} if value is None else value

    @classmethod
    def from_payload(cls, payload: Any) -> SpecDocument:
        """Build a document from a decoded JSON body.

        Args:
            payload: The decoded JSON value.

        Returns:
            The validated :class:`SpecDocument`.

        Raises:
            SpecParseError: If the payload is not a JSON object or its
                ``methods`` / ``types`` values have the wrong shape.
        """
        if not isinstance(payload, dict):
            raise SpecParseError(
                f"Spec must be a JSON object (got {type(payload).__name__})"
            )
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise SpecParseError(f"Invalid spec document: {exc}") from exc


# --- Resolver output ---


class TypeDescriptor(BaseModel):
    """The resolved shape of a type reference.

    Built fresh by every :func:`~rpcspec.resolver.resolve_type` call and
    immutable afterwards. ``name`` is the base name with all ``[]`` and
    ``*`` markers stripped; ``array_depth`` / ``pointer_depth`` count the
    markers that were stripped.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    package: str = ""
    kind: str = UNKNOWN_KIND
    is_array: bool = Field(default=False, alias="isArray")
    array_depth: int = Field(default=0, alias="arrayDepth")
    is_pointer: bool = Field(default=False, alias="isPointer")
    pointer_depth: int = Field(default=0, alias="pointerDepth")
    element_type: str = Field(default="", alias="elementType")
    key_type: str = Field(default="", alias="keyType")
    value_type: str = Field(default="", alias="valueType")
    fields: tuple[FieldRef, ...] = ()

    @property
    def is_primitive(self) -> bool:
        return self.kind in PRIMITIVE_KINDS and self.name == self.kind

    @property
    def is_unknown(self) -> bool:
        return self.kind == UNKNOWN_KIND


class TypeNode(BaseModel):
    """One node of an expanded type tree, see :func:`~rpcspec.resolver.expand_type`.

    The root node has no ``field``. ``recursive`` is set when the node's
    type already appears on the path from the root; such nodes are not
    expanded further.
    """

    model_config = ConfigDict(frozen=True)

    descriptor: TypeDescriptor
    field: Optional[FieldRef] = None
    recursive: bool = False
    children: tuple[TypeNode, ...] = ()


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP settings used when fetching the spec document."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/rpcspec/config.json``.

    Loaded by :func:`~rpcspec.config.load_global_config`. See
    :func:`~rpcspec.config.resolve_config` for the precedence chain.
    """

    spec_url: str = Field(
        default="/spec.json", description="URL (or path relative to base_url) of the spec"
    )
    base_url: Optional[str] = Field(
        default=None, description="Base URL that relative spec URLs resolve against"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


FieldRef.model_rebuild()
TypeNode.model_rebuild()
