"""Frozen descriptor models for services, methods, messages and fields.

Descriptors are the closed, tagged description of a schema: field kinds
are an explicit enum and semantic annotations (signer, validator address,
consensus address) are carried as data rather than inferred.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, model_validator


class FieldKind(StrEnum):
    """Wire-level kind of a message field."""

    STRING = "string"
    BOOL = "bool"
    INT32 = "int32"
    INT64 = "int64"
    UINT32 = "uint32"
    UINT64 = "uint64"
    BYTES = "bytes"
    ENUM = "enum"
    MESSAGE = "message"


class ScalarType(StrEnum):
    """Semantic annotation on a scalar field (``cosmos_proto.scalar``)."""

    ADDRESS = "cosmos.AddressString"
    VALIDATOR_ADDRESS = "cosmos.ValidatorAddressString"
    CONSENSUS_ADDRESS = "cosmos.ConsensusAddressString"
    DEC = "cosmos.Dec"
    INT = "cosmos.Int"


ADDRESS_SCALARS = frozenset(
    {ScalarType.ADDRESS, ScalarType.VALIDATOR_ADDRESS, ScalarType.CONSENSUS_ADDRESS}
)

INT_RANGES: dict[FieldKind, tuple[int, int]] = {
    FieldKind.INT32: (-(2**31), 2**31 - 1),
    FieldKind.INT64: (-(2**63), 2**63 - 1),
    FieldKind.UINT32: (0, 2**32 - 1),
    FieldKind.UINT64: (0, 2**64 - 1),
}


class FieldDescriptor(BaseModel):
    """One named, typed slot within a message shape."""

    model_config = {"frozen": True}

    name: str
    kind: FieldKind
    repeated: bool = False
    message_type: str | None = None
    enum_values: tuple[str, ...] = ()
    scalar: ScalarType | None = None
    description: str = ""

    @model_validator(mode="after")
    def _check_kind_details(self) -> FieldDescriptor:
        if self.kind == FieldKind.MESSAGE and not self.message_type:
            raise ValueError(f"message field {self.name!r} needs a message_type")
        if self.kind == FieldKind.ENUM and not self.enum_values:
            raise ValueError(f"enum field {self.name!r} needs enum_values")
        if self.scalar in ADDRESS_SCALARS and self.kind != FieldKind.STRING:
            raise ValueError(f"address field {self.name!r} must be a string field")
        return self

    @property
    def is_address(self) -> bool:
        return self.scalar in ADDRESS_SCALARS


class MessageDescriptor(BaseModel):
    """Schema of one message: an ordered field list plus signer declaration."""

    model_config = {"frozen": True}

    full_name: str
    fields: tuple[FieldDescriptor, ...] = ()
    signers: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_unique_fields(self) -> MessageDescriptor:
        seen: set[str] = set()
        for field in self.fields:
            if field.name in seen:
                raise ValueError(f"duplicate field {field.name!r} in {self.full_name}")
            seen.add(field.name)
        return self

    @property
    def name(self) -> str:
        """Short name (last dotted segment)."""
        return self.full_name.rsplit(".", 1)[-1]

    @property
    def type_url(self) -> str:
        return f"/{self.full_name}"

    def field_by_name(self, name: str) -> FieldDescriptor | None:
        for field in self.fields:
            if field.name == name:
                return field
        return None


class MethodDescriptor(BaseModel):
    """One RPC operation: name plus input and output message names."""

    model_config = {"frozen": True}

    name: str
    input_type: str
    output_type: str
    since: str | None = None
    service: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.service}.{self.name}" if self.service else self.name


class ServiceDescriptor(BaseModel):
    """A named RPC service owning an ordered set of methods."""

    model_config = {"frozen": True}

    full_name: str
    methods: tuple[MethodDescriptor, ...] = ()

    @model_validator(mode="after")
    def _check_unique_methods(self) -> ServiceDescriptor:
        names = [m.name for m in self.methods]
        if len(names) != len(set(names)):
            raise ValueError(f"duplicate method names in service {self.full_name}")
        return self

    def bound(self) -> ServiceDescriptor:
        """Return a copy whose methods all carry this service's full name."""
        methods = tuple(m.model_copy(update={"service": self.full_name}) for m in self.methods)
        return self.model_copy(update={"methods": methods})

    def method_by_name(self, name: str) -> MethodDescriptor | None:
        for method in self.methods:
            if method.name == name:
                return method
        return None
