"""Signer resolution — which field signs, and which codec encodes it."""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

from autotx.errors import ConfigurationError
from autotx.schema.descriptors import FieldKind, ScalarType

if TYPE_CHECKING:
    from autotx.address.codec import AddressCodec, AddressCodecs
    from autotx.schema.descriptors import FieldDescriptor, MessageDescriptor


class SignerField(NamedTuple):
    field: FieldDescriptor
    codec: AddressCodec


def signer_field_name(descriptor: MessageDescriptor) -> str:
    """Name of the single field declared as the message signer."""
    if len(descriptor.signers) != 1:
        raise ConfigurationError(
            f"message {descriptor.full_name} must declare exactly one signer field, "
            f"got {list(descriptor.signers)}",
            message=descriptor.full_name,
        )
    return descriptor.signers[0]


def resolve_signer(descriptor: MessageDescriptor, codecs: AddressCodecs) -> SignerField:
    """Return the signer field of *descriptor* and the codec for its value."""
    name = signer_field_name(descriptor)
    field = descriptor.field_by_name(name)
    if field is None or field.kind != FieldKind.STRING or field.repeated:
        raise ConfigurationError(
            f"signer {name!r} of {descriptor.full_name} is not a singular string field",
            message=descriptor.full_name,
            field=name,
        )
    return SignerField(field, codec_for_scalar(field.scalar, codecs))


def codec_for_scalar(scalar: ScalarType | None, codecs: AddressCodecs) -> AddressCodec:
    """Codec for an address field annotated with *scalar* (account by default)."""
    match scalar:
        case ScalarType.VALIDATOR_ADDRESS:
            return codecs.validator
        case ScalarType.CONSENSUS_ADDRESS:
            return codecs.consensus
        case _:
            return codecs.account
