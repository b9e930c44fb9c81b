"""Shared pytest fixtures and test helpers for autotx tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from autotx.address.codec import AddressCodecs
from autotx.autocli.options import AppOptions
from autotx.builtin import BUILTIN_SCHEMA
from autotx.client.context import ClientContext
from autotx.schema.registry import SchemaRegistry
from autotx.services.result import ServiceResult

ALICE_RAW = bytes([1]) * 20
BOB_RAW = bytes([2]) * 20

# A small service exercising every signer flavour the builder supports.
TEST_SCHEMA: dict[str, Any] = {
    "messages": [
        {
            "full_name": "test.v1.MsgPing",
            "signers": ["sender"],
            "fields": [
                {"name": "sender", "kind": "string", "scalar": "cosmos.AddressString"},
                {"name": "text", "kind": "string", "description": "Free text."},
                {"name": "count", "kind": "uint32"},
                {"name": "loud", "kind": "bool"},
                {"name": "payload", "kind": "bytes"},
                {"name": "tags", "kind": "string", "repeated": True},
            ],
        },
        {"full_name": "test.v1.MsgPingResponse"},
        {
            "full_name": "test.v1.MsgRotate",
            "signers": ["consensus_address"],
            "fields": [
                {
                    "name": "consensus_address",
                    "kind": "string",
                    "scalar": "cosmos.ConsensusAddressString",
                },
                {"name": "epoch", "kind": "int64"},
            ],
        },
        {"full_name": "test.v1.MsgRotateResponse"},
        {
            "full_name": "test.v1.MsgSetConfig",
            "signers": ["authority"],
            "fields": [
                {"name": "authority", "kind": "string", "scalar": "cosmos.AddressString"},
                {"name": "value", "kind": "string"},
            ],
        },
        {"full_name": "test.v1.MsgSetConfigResponse"},
    ],
    "services": [
        {
            "full_name": "test.v1.Msg",
            "methods": [
                {
                    "name": "Ping",
                    "input_type": "test.v1.MsgPing",
                    "output_type": "test.v1.MsgPingResponse",
                },
                {
                    "name": "Rotate",
                    "input_type": "test.v1.MsgRotate",
                    "output_type": "test.v1.MsgRotateResponse",
                },
                {
                    "name": "SetConfig",
                    "input_type": "test.v1.MsgSetConfig",
                    "output_type": "test.v1.MsgSetConfigResponse",
                },
                {
                    "name": "Hidden",
                    "input_type": "test.v1.MsgPing",
                    "output_type": "test.v1.MsgPingResponse",
                },
                {
                    "name": "Future",
                    "input_type": "test.v1.MsgPing",
                    "output_type": "test.v1.MsgPingResponse",
                    "since": "cosmos-sdk 0.99",
                },
            ],
        }
    ],
}

TEST_MODULES: dict[str, Any] = {
    "modules": {
        "test": {
            "tx": {
                "service": "test.v1.Msg",
                "rpc_command_options": [
                    {"rpc_method": "SetConfig", "gov_proposal": True},
                    {"rpc_method": "Hidden", "skip": True},
                ],
            }
        }
    }
}

TEST_SCHEMA_TOML = textwrap.dedent(
    """\
    [[messages]]
    full_name = "test.v1.MsgPing"
    signers = ["sender"]
    fields = [
      { name = "sender", kind = "string", scalar = "cosmos.AddressString" },
      { name = "text", kind = "string" },
    ]

    [[messages]]
    full_name = "test.v1.MsgPingResponse"

    [[messages]]
    full_name = "test.v1.MsgSetConfig"
    signers = ["authority"]
    fields = [
      { name = "authority", kind = "string", scalar = "cosmos.AddressString" },
      { name = "value", kind = "string" },
    ]

    [[messages]]
    full_name = "test.v1.MsgSetConfigResponse"

    [[services]]
    full_name = "test.v1.Msg"

    [[services.methods]]
    name = "Ping"
    input_type = "test.v1.MsgPing"
    output_type = "test.v1.MsgPingResponse"

    [[services.methods]]
    name = "SetConfig"
    input_type = "test.v1.MsgSetConfig"
    output_type = "test.v1.MsgSetConfigResponse"

    [modules.test.tx]
    service = "test.v1.Msg"
    rpc_command_options = [
      { rpc_method = "SetConfig", gov_proposal = true },
    ]
    """
)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def codecs() -> AddressCodecs:
    return AddressCodecs.from_prefix("cosmos")


@pytest.fixture
def alice(codecs: AddressCodecs) -> str:
    return codecs.account.bytes_to_string(ALICE_RAW)


@pytest.fixture
def bob(codecs: AddressCodecs) -> str:
    return codecs.account.bytes_to_string(BOB_RAW)


@pytest.fixture
def registry() -> SchemaRegistry:
    """Built-in schemas plus the ``test.v1`` service, validated."""
    reg = SchemaRegistry()
    reg.load_dict(BUILTIN_SCHEMA, source="builtin")
    reg.load_dict(TEST_SCHEMA, source="test")
    reg.validate()
    return reg


@pytest.fixture
def test_options() -> AppOptions:
    return AppOptions.from_dict(TEST_MODULES, source="test")


@pytest.fixture
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run from an empty directory with no config file in reach.

    Use via ``@pytest.mark.usefixtures("_isolated")`` on test classes that
    invoke commands without a project.
    """
    monkeypatch.delenv("AUTOTX_CONFIG", raising=False)
    monkeypatch.setenv("AUTOTX_PLUGINS__ENABLED", "false")
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def project(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, alice: str, bob: str
) -> Path:
    """A project directory with ``autotx.toml``, two accounts and a schema file."""
    (tmp_path / "schemas").mkdir()
    (tmp_path / "schemas" / "test.toml").write_text(TEST_SCHEMA_TOML, encoding="utf-8")
    (tmp_path / "autotx.toml").write_text(
        textwrap.dedent(
            f"""\
            [chain]
            chain_id = "testnet-1"

            [accounts]
            alice = "{alice}"
            bob = "{bob}"

            [schemas]
            files = ["schemas/test.toml"]
            """
        ),
        encoding="utf-8",
    )
    monkeypatch.delenv("AUTOTX_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


class RecordingPipeline:
    """Tx pipeline stand-in that records what it was handed."""

    def __init__(self) -> None:
        self.calls: list[tuple[ClientContext, str, Any]] = []

    def __call__(self, client_ctx: ClientContext, signer: str, msg: Any) -> ServiceResult:
        self.calls.append((client_ctx, signer, msg))
        return ServiceResult(ok=True, op="recorded", data={"type_url": msg.type_url()})

    @property
    def last(self) -> tuple[ClientContext, str, Any]:
        assert self.calls, "pipeline was never called"
        return self.calls[-1]


def alice_context(ctx: Any, params: dict[str, Any]) -> ClientContext:
    """Client context factory that always acts as ALICE."""
    return ClientContext(from_address=ALICE_RAW, from_name="alice", chain_id="testnet-1")
