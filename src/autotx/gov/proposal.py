"""Governance proposal flags and the MsgSubmitProposal payload.

A governance-gated method is not submitted directly: its message is
wrapped, as the sole entry, inside a ``MsgSubmitProposal`` whose proposer
is the acting account.  The wrapped message carries the gov module
authority as its signer.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, ClassVar

import click
from pydantic import BaseModel, ConfigDict, Field

from autotx.address.codec import module_address
from autotx.client.coins import parse_coins
from autotx.errors import TransformationError

if TYPE_CHECKING:
    from autotx.address.codec import AddressCodec
    from autotx.schema.concrete import ConcreteMessage

GOV_MODULE_NAME = "gov"

FLAG_TITLE = "gov_title"
FLAG_SUMMARY = "gov_summary"
FLAG_METADATA = "gov_metadata"
FLAG_DEPOSIT = "gov_deposit"
FLAG_EXPEDITED = "gov_expedited"

GOV_FLAG_NAMES = frozenset({FLAG_TITLE, FLAG_SUMMARY, FLAG_METADATA, FLAG_DEPOSIT, FLAG_EXPEDITED})


def gov_authority(codec: AddressCodec) -> str:
    """Address string of the gov module account."""
    return codec.bytes_to_string(module_address(GOV_MODULE_NAME))


def add_gov_prop_flags(cmd: click.Command) -> None:
    """Attach the proposal flags read by :func:`read_gov_prop_flags`."""
    cmd.params.extend(
        [
            click.Option(["--title", FLAG_TITLE], default="", help="Proposal title."),
            click.Option(["--summary", FLAG_SUMMARY], default="", help="Proposal summary."),
            click.Option(["--metadata", FLAG_METADATA], default="", help="Proposal metadata."),
            click.Option(
                ["--deposit", FLAG_DEPOSIT], default="", help="Initial deposit, e.g. 10stake."
            ),
            click.Option(
                ["--expedited", FLAG_EXPEDITED],
                is_flag=True,
                help="Submit as an expedited proposal.",
            ),
        ]
    )


class AnyMessage(BaseModel):
    """A packed message: type URL plus canonical wire bytes."""

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64", val_json_bytes="base64")

    type_url: str
    value: bytes

    def to_json(self) -> dict[str, Any]:
        """Unpacked JSON view (``@type`` plus the message fields)."""
        return {"@type": self.type_url, **json.loads(self.value)}


class MsgSubmitProposal(BaseModel):
    """``cosmos.gov.v1.MsgSubmitProposal``."""

    TYPE_URL: ClassVar[str] = "/cosmos.gov.v1.MsgSubmitProposal"

    messages: list[AnyMessage] = Field(default_factory=list)
    initial_deposit: list[dict[str, str]] = Field(default_factory=list)
    proposer: str
    metadata: str = ""
    title: str = ""
    summary: str = ""
    expedited: bool = False

    @classmethod
    def type_url(cls) -> str:
        return cls.TYPE_URL

    def set_msgs(self, msgs: Sequence[ConcreteMessage]) -> None:
        """Replace the wrapped messages, packing each into an :class:`AnyMessage`."""
        packed: list[AnyMessage] = []
        for msg in msgs:
            try:
                packed.append(AnyMessage(type_url=msg.type_url(), value=msg.marshal()))
            except (AttributeError, TypeError, ValueError) as exc:
                raise TransformationError(f"failed to set msg in proposal: {exc}") from exc
        self.messages = packed

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", exclude={"messages"}, exclude_defaults=True)
        data["proposer"] = self.proposer
        data["messages"] = [m.to_json() for m in self.messages]
        return data


def read_gov_prop_flags(proposer: str, params: dict[str, Any]) -> MsgSubmitProposal:
    """Read the proposal flags into a :class:`MsgSubmitProposal` with no messages."""
    deposit_text = params.get(FLAG_DEPOSIT) or ""
    try:
        deposit = parse_coins(deposit_text)
    except ValueError as exc:
        raise TransformationError(f"invalid --deposit: {exc}", deposit=deposit_text) from exc
    return MsgSubmitProposal(
        proposer=proposer,
        initial_deposit=deposit,
        title=params.get(FLAG_TITLE) or "",
        summary=params.get(FLAG_SUMMARY) or "",
        metadata=params.get(FLAG_METADATA) or "",
        expedited=bool(params.get(FLAG_EXPEDITED)),
    )
