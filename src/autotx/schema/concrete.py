"""Concrete message models generated from descriptors.

The transaction pipeline works with pydantic models: they validate on
construction, serialize predictably, and can be embedded in other models
(proposals, transaction bodies).  One model class is generated per message
descriptor and cached by the registry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any, ClassVar, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, create_model

from autotx.schema.descriptors import INT_RANGES, FieldDescriptor, FieldKind, MessageDescriptor
from autotx.schema.message import canonical_json

if TYPE_CHECKING:
    from autotx.schema.registry import SchemaRegistry


class ConcreteMessage(BaseModel):
    """Base class for every generated message model."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        ser_json_bytes="base64",
        val_json_bytes="base64",
        protected_namespaces=(),
    )

    descriptor: ClassVar[MessageDescriptor]

    @classmethod
    def type_url(cls) -> str:
        return cls.descriptor.type_url

    def to_dict(self) -> dict[str, Any]:
        """JSON-shaped view with default-valued fields omitted."""
        return self.model_dump(mode="json", exclude_defaults=True, by_alias=True)

    def marshal(self) -> bytes:
        """Serialize to the canonical wire encoding."""
        return canonical_json(self.to_dict())

    @classmethod
    def unmarshal(cls, data: bytes) -> Self:
        """Parse the canonical wire encoding."""
        return cls.model_validate_json(data)


# Schema field names that would replace model attributes are stored under a
# trailing underscore and keep their schema name as the alias.
SHADOWED_NAMES = frozenset(dir(ConcreteMessage)) | {"descriptor"}


def _scalar_annotation(field: FieldDescriptor) -> Any:
    match field.kind:
        case FieldKind.STRING:
            return str
        case FieldKind.BOOL:
            return bool
        case FieldKind.BYTES:
            return bytes
        case FieldKind.ENUM:
            return Literal[field.enum_values]  # type: ignore[valid-type]
        case _:
            low, high = INT_RANGES[field.kind]
            return Annotated[int, Field(ge=low, le=high, strict=True)]


def build_concrete_type(
    descriptor: MessageDescriptor, registry: SchemaRegistry
) -> type[ConcreteMessage]:
    """Generate a :class:`ConcreteMessage` subclass for *descriptor*.

    Nested message fields resolve their own concrete types through
    *registry* so the whole model graph shares cached classes.  A field
    whose name is in :data:`SHADOWED_NAMES` becomes ``<name>_`` aliased to
    ``<name>``.
    """
    definitions: dict[str, Any] = {}
    for field in descriptor.fields:
        if field.kind == FieldKind.MESSAGE:
            assert field.message_type is not None
            item: Any = registry.concrete_type(field.message_type)
            default: Any = None
            singular: Any = item | None
        else:
            item = _scalar_annotation(field)
            singular = item
            default = field.enum_values[0] if field.kind == FieldKind.ENUM else _zero(field.kind)
        attr = f"{field.name}_" if field.name in SHADOWED_NAMES else field.name
        alias: dict[str, Any] = {"alias": field.name} if attr != field.name else {}
        if field.repeated:
            definitions[attr] = (list[item], Field(default_factory=list, **alias))
        else:
            definitions[attr] = (singular, Field(default, **alias))

    model = create_model(  # type: ignore[call-overload]
        descriptor.name,
        __base__=ConcreteMessage,
        __module__=__name__,
        **definitions,
    )
    model.descriptor = descriptor
    return model


def _zero(kind: FieldKind) -> Any:
    if kind == FieldKind.STRING:
        return ""
    if kind == FieldKind.BOOL:
        return False
    if kind == FieldKind.BYTES:
        return b""
    return 0
