"""Message flags — Click parameters generated from a message descriptor.

Each input field becomes a ``--kebab-name`` option (or a positional
argument when listed in ``positional_args``).  Parameter destinations are
prefixed with ``msg__`` so they never clash with the tx and gov flags
sharing the same command.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from typing import TYPE_CHECKING, Any

import click

from autotx.autocli.signer import codec_for_scalar
from autotx.client.coins import parse_coins
from autotx.errors import ConfigurationError, ResolutionError, TransformationError
from autotx.schema.descriptors import INT_RANGES, FieldKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from autotx.address.codec import AddressCodecs
    from autotx.autocli.options import RpcCommandOptions
    from autotx.schema.descriptors import FieldDescriptor, MessageDescriptor
    from autotx.schema.message import DynamicMessage

MSG_PARAM_PREFIX = "msg__"
COIN_TYPE = "cosmos.base.v1beta1.Coin"


def kebab(name: str) -> str:
    """``UpdateParams`` / ``to_address`` -> ``update-params`` / ``to-address``."""
    text = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "-", name)
    return text.replace("_", "-").lower()


def param_name(field_name: str) -> str:
    return f"{MSG_PARAM_PREFIX}{field_name}"


class BytesParamType(click.ParamType):
    """``0x``-prefixed hex or base64."""

    name = "bytes"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Any:
        if isinstance(value, bytes):
            return value
        text = str(value)
        try:
            if text.startswith("0x"):
                return bytes.fromhex(text[2:])
            return base64.b64decode(text, validate=True)
        except (ValueError, binascii.Error):
            self.fail(f"{text!r} is neither 0x-hex nor base64", param, ctx)


class MessageParamType(click.ParamType):
    """A nested message given as JSON; coins also accept ``10stake``.

    Repeated fields also take a JSON array, so one occurrence may yield
    several messages.
    """

    name = "json"

    def __init__(self, message_type: str, *, repeated: bool = False) -> None:
        self.message_type = message_type
        self.repeated = repeated
        if message_type == COIN_TYPE:
            self.name = "coins" if repeated else "coin"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Any:
        if isinstance(value, (dict, list)):
            return value
        text = str(value)
        if self.message_type == COIN_TYPE and not text.lstrip().startswith(("{", "[")):
            try:
                coins = parse_coins(text)
            except ValueError as exc:
                self.fail(str(exc), param, ctx)
            if self.repeated:
                return coins
            if len(coins) != 1:
                self.fail(f"expected exactly one coin, got {text!r}", param, ctx)
            return coins[0]
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            self.fail(f"invalid JSON for {self.message_type}: {exc.msg}", param, ctx)
        if self.repeated and isinstance(data, list):
            if not all(isinstance(item, dict) for item in data):
                self.fail(f"expected an array of JSON objects for {self.message_type}", param, ctx)
            return data
        if not isinstance(data, dict):
            self.fail(f"expected a JSON object for {self.message_type}", param, ctx)
        return data


def _param_type(field: FieldDescriptor) -> Any:
    match field.kind:
        case FieldKind.BOOL:
            return click.BOOL
        case FieldKind.BYTES:
            return BytesParamType()
        case FieldKind.ENUM:
            return click.Choice(field.enum_values, case_sensitive=False)
        case FieldKind.MESSAGE:
            assert field.message_type is not None
            return MessageParamType(field.message_type, repeated=field.repeated)
        case FieldKind.STRING:
            return click.STRING
        case _:
            low, high = INT_RANGES[field.kind]
            return click.IntRange(low, high)


def build_message_params(
    descriptor: MessageDescriptor,
    options: RpcCommandOptions,
    *,
    reserved: Iterable[str] = (),
) -> list[click.Parameter]:
    """Create the Click parameters for every field of *descriptor*.

    Raises :class:`ConfigurationError` for positional args naming unknown
    fields, a repeated positional arg that is not last, or a flag name that
    collides with one in *reserved*.
    """
    reserved_names = set(reserved)
    params: list[click.Parameter] = []

    positional = list(options.positional_args)
    for idx, name in enumerate(positional):
        field = descriptor.field_by_name(name)
        if field is None:
            raise ConfigurationError(
                f"positional arg {name!r} is not a field of {descriptor.full_name}",
                message=descriptor.full_name,
                field=name,
            )
        if field.repeated and idx != len(positional) - 1:
            raise ConfigurationError(
                f"repeated positional arg {name!r} must be the last one",
                message=descriptor.full_name,
                field=name,
            )
        nargs = -1 if field.repeated else 1
        params.append(
            click.Argument(
                [param_name(name)],
                type=_param_type(field),
                nargs=nargs,
                metavar=name.upper(),
            )
        )

    for field in descriptor.fields:
        if field.name in positional:
            continue
        flag_opts = options.flag_options.get(field.name)
        flag_name = flag_opts.name if flag_opts and flag_opts.name else kebab(field.name)
        if flag_name in reserved_names:
            raise ConfigurationError(
                f"flag --{flag_name} of {descriptor.full_name} collides with a built-in flag; "
                "rename it with flag_options",
                message=descriptor.full_name,
                field=field.name,
            )
        decls = [f"--{flag_name}"]
        if flag_opts and flag_opts.shorthand:
            decls.append(f"-{flag_opts.shorthand}")
        decls.append(param_name(field.name))
        is_flag = field.kind == FieldKind.BOOL and not field.repeated
        multiple = field.repeated
        usage = flag_opts.usage if flag_opts and flag_opts.usage else field.description
        kwargs: dict[str, Any] = {
            "help": usage or None,
            "hidden": bool(flag_opts and flag_opts.hidden),
        }
        if flag_opts and flag_opts.default_value:
            kwargs["default"] = (
                (flag_opts.default_value,) if multiple else flag_opts.default_value
            )
            kwargs["show_default"] = True
        if is_flag:
            params.append(click.Option(decls, is_flag=True, **kwargs))
        else:
            params.append(click.Option(decls, type=_param_type(field), multiple=multiple, **kwargs))
    return params


def decode_message(
    msg: DynamicMessage,
    params: Mapping[str, Any],
    codecs: AddressCodecs,
    accounts: Mapping[str, str],
) -> DynamicMessage:
    """Populate *msg* from parsed Click parameter values.

    Address fields accept an ``[accounts]`` key name or an address, and
    are validated with their codec.
    """
    for field in msg.descriptor.fields:
        value = params.get(param_name(field.name))
        if value is None or value == () or value == []:
            continue
        if field.is_address:
            value = _resolve_addresses(field, value, codecs, accounts)
        if field.repeated and field.kind == FieldKind.MESSAGE:
            value = _flatten_messages(value)
        elif field.repeated:
            value = list(value)
        try:
            msg.set(field.name, value)
        except (KeyError, TypeError, ValueError) as exc:
            raise TransformationError(
                f"invalid value for {field.name}: {exc}", field=field.name
            ) from exc
    return msg


def _resolve_addresses(
    field: FieldDescriptor, value: Any, codecs: AddressCodecs, accounts: Mapping[str, str]
) -> Any:
    codec = codec_for_scalar(field.scalar, codecs)

    def resolve(text: str) -> str:
        if text in accounts:
            return codec.bytes_to_string(codecs.account.string_to_bytes(accounts[text]))
        try:
            codec.string_to_bytes(text)
        except ResolutionError as exc:
            raise ResolutionError(
                f"invalid address for {field.name}: {exc.message}", field=field.name, address=text
            ) from exc
        return text

    if field.repeated:
        return [resolve(v) for v in value]
    return resolve(value)


def _flatten_messages(value: Any) -> list[Any]:
    """Join the occurrences of a repeated message flag into one list."""
    if isinstance(value, dict):
        return [value]
    items: list[Any] = []
    for item in value:
        if isinstance(item, list):
            items.extend(item)
        else:
            items.append(item)
    return items
