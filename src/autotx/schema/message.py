"""DynamicMessage — a mutable, descriptor-described message instance.

A DynamicMessage is constructed empty and populated field-by-field by the
flag decoder and the signer/proposal logic.  It is the command-side
representation; the transaction pipeline only accepts concrete models
(see :mod:`autotx.schema.concrete`) and the two meet through the canonical
wire encoding produced by :meth:`DynamicMessage.marshal`.

Canonical wire encoding:
- UTF-8 JSON, sorted keys, compact separators
- default-valued fields omitted (empty string, 0, False, b"", first enum
  value, unset message, empty list)
- bytes as URL-safe base64, enums by value name
"""

from __future__ import annotations

import base64
import json
from typing import TYPE_CHECKING, Any

from autotx.schema.descriptors import INT_RANGES, FieldDescriptor, FieldKind

if TYPE_CHECKING:
    from autotx.schema.descriptors import MessageDescriptor
    from autotx.schema.registry import SchemaRegistry


def canonical_json(payload: dict[str, Any]) -> bytes:
    """Encode *payload* with the canonical wire settings."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )


def default_for(field: FieldDescriptor) -> Any:
    """Return the zero value of a singular field."""
    match field.kind:
        case FieldKind.STRING:
            return ""
        case FieldKind.BOOL:
            return False
        case FieldKind.BYTES:
            return b""
        case FieldKind.ENUM:
            return field.enum_values[0]
        case FieldKind.MESSAGE:
            return None
        case _:
            return 0


class DynamicMessage:
    """Mutable key -> value record whose shape is a :class:`MessageDescriptor`."""

    def __init__(self, descriptor: MessageDescriptor, registry: SchemaRegistry) -> None:
        self.descriptor = descriptor
        self._registry = registry
        self._values: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"DynamicMessage({self.descriptor.full_name}, {self._values!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DynamicMessage):
            return NotImplemented
        return (
            self.descriptor.full_name == other.descriptor.full_name
            and self.to_dict() == other.to_dict()
        )

    __hash__ = None  # type: ignore[assignment]

    # ------------------------------------------------------------------
    # Field access
    # ------------------------------------------------------------------

    def _field(self, name: str) -> FieldDescriptor:
        field = self.descriptor.field_by_name(name)
        if field is None:
            raise KeyError(f"{self.descriptor.full_name} has no field {name!r}")
        return field

    def get(self, name: str) -> Any:
        """Return the field value, or its zero value when unset."""
        field = self._field(name)
        if name in self._values:
            return self._values[name]
        return [] if field.repeated else default_for(field)

    def has(self, name: str) -> bool:
        """Whether *name* holds a non-default value."""
        self._field(name)
        return name in self._values

    def set(self, name: str, value: Any) -> None:
        """Validate and store *value*; storing the zero value clears the field."""
        field = self._field(name)
        if field.repeated:
            if isinstance(value, (str, bytes, dict)) or not hasattr(value, "__iter__"):
                raise TypeError(f"field {name!r} is repeated; expected a list")
            coerced: Any = [self._coerce(field, item) for item in value]
            if not coerced:
                self._values.pop(name, None)
                return
        else:
            coerced = self._coerce(field, value)
            if field.kind != FieldKind.MESSAGE and coerced == default_for(field):
                self._values.pop(name, None)
                return
            if coerced is None:
                self._values.pop(name, None)
                return
        self._values[name] = coerced

    def new_nested(self, name: str) -> DynamicMessage:
        """Create an empty message of the type held by message field *name*."""
        field = self._field(name)
        if field.kind != FieldKind.MESSAGE or field.message_type is None:
            raise TypeError(f"field {name!r} is not a message field")
        return self._registry.new_message(field.message_type)

    def _coerce(self, field: FieldDescriptor, value: Any) -> Any:
        match field.kind:
            case FieldKind.STRING:
                if not isinstance(value, str):
                    raise TypeError(f"field {field.name!r} expects str, got {type(value).__name__}")
                return value
            case FieldKind.BOOL:
                if not isinstance(value, bool):
                    raise TypeError(
                        f"field {field.name!r} expects bool, got {type(value).__name__}"
                    )
                return value
            case FieldKind.BYTES:
                if not isinstance(value, (bytes, bytearray)):
                    raise TypeError(
                        f"field {field.name!r} expects bytes, got {type(value).__name__}"
                    )
                return bytes(value)
            case FieldKind.ENUM:
                if value not in field.enum_values:
                    raise ValueError(
                        f"field {field.name!r} expects one of {', '.join(field.enum_values)}"
                    )
                return value
            case FieldKind.MESSAGE:
                return self._coerce_message(field, value)
            case _:
                if isinstance(value, bool) or not isinstance(value, int):
                    raise TypeError(
                        f"field {field.name!r} expects int, got {type(value).__name__}"
                    )
                low, high = INT_RANGES[field.kind]
                if not low <= value <= high:
                    raise ValueError(
                        f"field {field.name!r} value {value} out of {field.kind} range"
                    )
                return value

    def _coerce_message(self, field: FieldDescriptor, value: Any) -> DynamicMessage | None:
        if value is None:
            return None
        if isinstance(value, DynamicMessage):
            if value.descriptor.full_name != field.message_type:
                raise TypeError(
                    f"field {field.name!r} expects {field.message_type}, "
                    f"got {value.descriptor.full_name}"
                )
            return value
        if isinstance(value, dict):
            assert field.message_type is not None
            nested = self._registry.new_message(field.message_type)
            nested.update(value)
            return nested
        raise TypeError(f"field {field.name!r} expects a message, got {type(value).__name__}")

    def update(self, values: dict[str, Any]) -> None:
        """Set several fields from a plain dict (JSON-shaped input)."""
        for name, value in values.items():
            field = self._field(name)
            if field.kind == FieldKind.BYTES and isinstance(value, str):
                value = base64.urlsafe_b64decode(value)
            elif field.repeated and field.kind == FieldKind.BYTES:
                value = [base64.urlsafe_b64decode(v) if isinstance(v, str) else v for v in value]
            self.set(name, value)

    # ------------------------------------------------------------------
    # Wire encoding
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """JSON-shaped view with default-valued fields omitted."""
        out: dict[str, Any] = {}
        for field in self.descriptor.fields:
            if field.name not in self._values:
                continue
            value = self._values[field.name]
            if field.repeated:
                out[field.name] = [_encode_value(field, item) for item in value]
            else:
                out[field.name] = _encode_value(field, value)
        return out

    def marshal(self) -> bytes:
        """Serialize to the canonical wire encoding."""
        return canonical_json(self.to_dict())

    @classmethod
    def unmarshal(
        cls, data: bytes, descriptor: MessageDescriptor, registry: SchemaRegistry
    ) -> DynamicMessage:
        """Parse canonical wire bytes into a new DynamicMessage."""
        payload = json.loads(data)
        if not isinstance(payload, dict):
            raise ValueError(f"wire payload for {descriptor.full_name} is not an object")
        msg = cls(descriptor, registry)
        msg.update(payload)
        return msg


def _encode_value(field: FieldDescriptor, value: Any) -> Any:
    if field.kind == FieldKind.BYTES:
        return base64.urlsafe_b64encode(value).decode("ascii")
    if field.kind == FieldKind.MESSAGE:
        return value.to_dict()
    return value
