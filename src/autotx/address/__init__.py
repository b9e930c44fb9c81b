"""Address codecs — bech32 encoding of raw account, validator and consensus addresses."""

from autotx.address.codec import AddressCodec, AddressCodecs, Bech32Codec, module_address

__all__ = ["AddressCodec", "AddressCodecs", "Bech32Codec", "module_address"]
