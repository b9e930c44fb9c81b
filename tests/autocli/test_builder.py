"""Tests for the tx command tree builder and generated method commands."""

from __future__ import annotations

import click
import pytest
from click.testing import CliRunner, Result

from autotx.address.codec import AddressCodecs
from autotx.autocli.builder import (
    Builder,
    command_paths,
    copy_command_tree,
    find_sub_command,
    merge_command,
    top_level_group,
)
from autotx.autocli.options import AppOptions, RpcCommandOptions, ServiceCommandDescriptor
from autotx.builtin import builtin_app_options
from autotx.commands._base import TxCommand
from autotx.errors import ConfigurationError
from autotx.gov.proposal import MsgSubmitProposal, gov_authority
from autotx.schema.registry import SchemaRegistry
from tests.conftest import ALICE_RAW, RecordingPipeline, alice_context

SDK_050 = {"cosmos-sdk": "0.50.0"}

_ADDR = "cosmos.AddressString"

# Repeated nested messages and a self-referencing message type.
NESTED_SCHEMA = {
    "messages": [
        {
            "full_name": "r.v1.Out",
            "fields": [{"name": "to", "kind": "string"}, {"name": "n", "kind": "uint32"}],
        },
        {
            "full_name": "r.v1.MsgMulti",
            "signers": ["sender"],
            "fields": [
                {"name": "sender", "kind": "string", "scalar": _ADDR},
                {
                    "name": "outputs",
                    "kind": "message",
                    "message_type": "r.v1.Out",
                    "repeated": True,
                },
            ],
        },
        {
            "full_name": "r.v1.Node",
            "fields": [{"name": "child", "kind": "message", "message_type": "r.v1.Node"}],
        },
        {
            "full_name": "r.v1.MsgNest",
            "signers": ["sender"],
            "fields": [
                {"name": "sender", "kind": "string", "scalar": _ADDR},
                {"name": "node", "kind": "message", "message_type": "r.v1.Node"},
            ],
        },
        {"full_name": "r.v1.R"},
    ],
    "services": [
        {
            "full_name": "r.v1.Msg",
            "methods": [
                {"name": "Multi", "input_type": "r.v1.MsgMulti", "output_type": "r.v1.R"},
                {"name": "Nest", "input_type": "r.v1.MsgNest", "output_type": "r.v1.R"},
            ],
        }
    ],
}


@pytest.fixture
def pipeline() -> RecordingPipeline:
    return RecordingPipeline()


@pytest.fixture
def builder(
    registry: SchemaRegistry, codecs: AddressCodecs, alice: str, pipeline: RecordingPipeline
) -> Builder:
    return Builder(
        registry=registry,
        codecs=codecs,
        app_versions=dict(SDK_050),
        accounts={"alice": alice},
        tx_pipeline=pipeline,
        client_context=alice_context,
    )


@click.command("ping")
def _custom_ping() -> None:
    """Hand-written ping."""
    click.echo("custom ping")


class TestTreeHelpers:
    def test_merge_attaches_when_free(self) -> None:
        parent = top_level_group("root", "Root")
        child = click.Command("a")
        assert merge_command(parent, child) is child
        assert parent.commands["a"] is child

    def test_merge_existing_wins(self) -> None:
        parent = top_level_group("root", "Root")
        first = click.Command("a")
        parent.add_command(first)
        assert merge_command(parent, click.Command("a")) is first
        assert parent.commands["a"] is first

    def test_find_sub_command(self) -> None:
        parent = top_level_group("root", "Root")
        parent.add_command(click.Command("a"))
        assert find_sub_command(parent, "a") is not None
        assert find_sub_command(parent, "b") is None
        assert find_sub_command(click.Command("leaf"), "a") is None

    def test_copy_command_tree_isolates_groups(self) -> None:
        group = top_level_group("test", "Test")
        group.add_command(_custom_ping)
        clone = copy_command_tree(group)
        assert isinstance(clone, click.Group)
        clone.add_command(click.Command("extra"))
        assert "extra" not in group.commands
        assert clone.commands["ping"] is _custom_ping


class TestBuildMsgCommand:
    def test_root_and_module_groups(self, builder: Builder, test_options: AppOptions) -> None:
        root = builder.build_msg_command(builtin_app_options().merged(test_options))
        assert root.name == "tx"
        assert sorted(root.commands) == ["bank", "gov", "slashing", "staking", "test"]
        assert root.commands["test"].help == "Transactions commands for the test module"

    def test_method_commands(self, builder: Builder, test_options: AppOptions) -> None:
        test = builder.build_msg_command(test_options).commands["test"]
        assert isinstance(test, click.Group)
        assert list(test.commands) == ["ping", "rotate", "set-config"]
        assert isinstance(test.commands["ping"], TxCommand)
        assert test.commands["ping"].short_help == "Execute the Ping RPC method"

    def test_skip_and_unsupported_version_omitted(
        self, builder: Builder, test_options: AppOptions
    ) -> None:
        paths = command_paths(builder.build_msg_command(test_options))
        assert ("test", "hidden") not in paths
        assert ("test", "future") not in paths

    def test_supported_version_included(
        self, builder: Builder, test_options: AppOptions
    ) -> None:
        builder.app_versions = {"cosmos-sdk": "1.0.0"}
        paths = command_paths(builder.build_msg_command(test_options))
        assert ("test", "future") in paths

    def test_deterministic(self, builder: Builder, test_options: AppOptions) -> None:
        options = builtin_app_options().merged(test_options)
        first = builder.build_msg_command(options)
        second = builder.build_msg_command(options)
        assert command_paths(first) == command_paths(second)
        for name in first.commands:
            assert list(first.commands[name].commands) == list(  # type: ignore[attr-defined]
                second.commands[name].commands  # type: ignore[attr-defined]
            )

    def test_unknown_service(self, builder: Builder) -> None:
        options = AppOptions.from_dict({"modules": {"x": {"tx": {"service": "x.v1.Msg"}}}})
        with pytest.raises(ConfigurationError, match="can't find service x.v1.Msg"):
            builder.build_msg_command(options)

    def test_unknown_override_names_method_and_service(self, builder: Builder) -> None:
        options = AppOptions.from_dict(
            {
                "modules": {
                    "test": {
                        "tx": {
                            "service": "test.v1.Msg",
                            "rpc_command_options": [{"rpc_method": "Pong"}],
                        }
                    }
                }
            }
        )
        with pytest.raises(ConfigurationError) as exc_info:
            builder.build_msg_command(options)
        assert "'Pong'" in exc_info.value.message
        assert "'test.v1.Msg'" in exc_info.value.message

    def test_module_without_service_is_empty_group(self, builder: Builder) -> None:
        options = AppOptions.from_dict({"modules": {"empty": {"tx": {"short": "Nothing"}}}})
        root = builder.build_msg_command(options)
        assert root.commands["empty"].help == "Nothing"
        assert root.commands["empty"].commands == {}  # type: ignore[attr-defined]


class TestCustomCommands:
    def test_existing_leaf_wins_without_enhance(
        self, builder: Builder, test_options: AppOptions
    ) -> None:
        custom = top_level_group("test", "Custom test")
        custom.add_command(_custom_ping)
        root = builder.build_msg_command(test_options, {"test": custom})
        assert list(root.commands["test"].commands) == ["ping"]  # type: ignore[attr-defined]
        assert root.commands["test"].commands["ping"] is _custom_ping  # type: ignore[attr-defined]

    def test_enhance_adds_only_missing_commands(
        self, builder: Builder, test_options: AppOptions
    ) -> None:
        custom = top_level_group("test", "Custom test")
        custom.add_command(_custom_ping)
        descriptor = test_options.module_options["test"].tx
        assert descriptor is not None
        enhanced = AppOptions.from_dict(
            {
                "modules": {
                    "test": {"tx": {**descriptor.model_dump(), "enhance_custom_command": True}}
                }
            }
        )
        root = builder.build_msg_command(enhanced, {"test": custom})
        group = root.commands["test"]
        assert isinstance(group, click.Group)
        assert group.commands["ping"] is _custom_ping
        assert set(group.commands) == {"ping", "rotate", "set-config"}
        # the caller's tree is untouched
        assert list(custom.commands) == ["ping"]

    def test_custom_module_without_options_kept(self, builder: Builder) -> None:
        custom = top_level_group("extra", "Extra")
        root = builder.build_msg_command(AppOptions(), {"extra": custom})
        assert "extra" in root.commands

    def test_pre_existing_paths_survive(
        self, builder: Builder, test_options: AppOptions
    ) -> None:
        custom = top_level_group("test", "Custom test")
        custom.add_command(_custom_ping)
        before = {("test", *path) for path in command_paths(custom)} | {("test",)}
        root = builder.build_msg_command(test_options, {"test": custom})
        assert before <= command_paths(root)


class TestSubCommands:
    def test_nested_descriptor(self, builder: Builder) -> None:
        descriptor = ServiceCommandDescriptor(
            sub_commands={"inner": ServiceCommandDescriptor(service="test.v1.Msg")}
        )
        group = top_level_group("outer", "Outer")
        builder.add_msg_service_commands(group, descriptor)
        inner = group.commands["inner"]
        assert inner.help == "Tx commands for the test.v1.Msg service"
        assert "ping" in inner.commands  # type: ignore[attr-defined]

    def test_enhance_reuses_existing_sub_group(self, builder: Builder) -> None:
        group = top_level_group("outer", "Outer")
        existing = top_level_group("inner", "Existing inner")
        group.add_command(existing)
        descriptor = ServiceCommandDescriptor(
            sub_commands={
                "inner": ServiceCommandDescriptor(
                    service="test.v1.Msg", enhance_custom_command=True
                )
            }
        )
        builder.add_msg_service_commands(group, descriptor)
        assert group.commands["inner"] is existing
        assert "rotate" in existing.commands

    def test_existing_leaf_not_expanded(self, builder: Builder) -> None:
        group = top_level_group("outer", "Outer")
        leaf = click.Command("inner")
        group.add_command(leaf)
        descriptor = ServiceCommandDescriptor(
            sub_commands={"inner": ServiceCommandDescriptor(service="test.v1.Msg")}
        )
        builder.add_msg_service_commands(group, descriptor)
        assert group.commands["inner"] is leaf


class TestBuildMsgMethodCommand:
    def test_options_applied(self, builder: Builder, registry: SchemaRegistry) -> None:
        method = registry.find_service_by_name("test.v1.Msg").method_by_name("Ping")
        assert method is not None
        cmd = builder.build_msg_method_command(
            method,
            RpcCommandOptions(
                rpc_method="Ping",
                use="poke [text]",
                short="Poke",
                long="Poke at length",
                alias=["p"],
                deprecated="use ping2",
                example="autotx tx test poke",
            ),
        )
        assert cmd.name == "poke"
        assert cmd.help == "Poke at length"
        assert cmd.short_help == "Poke"
        assert cmd.aliases == ("p",)
        assert cmd.deprecated
        assert "--examples" in {opt for p in cmd.params for opt in getattr(p, "opts", [])}

    def test_tx_flags_attached(self, builder: Builder, registry: SchemaRegistry) -> None:
        method = registry.find_service_by_name("test.v1.Msg").method_by_name("Ping")
        assert method is not None
        cmd = builder.build_msg_method_command(method, RpcCommandOptions())
        opts = {opt for p in cmd.params for opt in getattr(p, "opts", [])}
        assert {"--from", "--chain-id", "--generate-only", "--note"} <= opts
        assert "--no-proposal" not in opts

    def test_gated_method_exposes_gov_flags(
        self, builder: Builder, registry: SchemaRegistry
    ) -> None:
        method = registry.find_service_by_name("test.v1.Msg").method_by_name("SetConfig")
        assert method is not None
        cmd = builder.build_msg_method_command(method, RpcCommandOptions(gov_proposal=True))
        opts = {opt for p in cmd.params for opt in getattr(p, "opts", [])}
        assert {"--no-proposal", "--title", "--summary", "--deposit", "--expedited"} <= opts

    def test_conn_flags_optional(self, builder: Builder, registry: SchemaRegistry) -> None:
        builder.add_tx_conn_flags = None
        method = registry.find_service_by_name("test.v1.Msg").method_by_name("Ping")
        assert method is not None
        cmd = builder.build_msg_method_command(method, RpcCommandOptions())
        opts = {opt for p in cmd.params for opt in getattr(p, "opts", [])}
        assert "--from" not in opts

    def test_bad_signer_fails_at_build(self, codecs: AddressCodecs) -> None:
        registry = SchemaRegistry()
        registry.load_dict(
            {
                "messages": [
                    {"full_name": "x.v1.MsgTwo", "signers": ["a", "b"]},
                    {"full_name": "x.v1.R"},
                ],
                "services": [
                    {
                        "full_name": "x.v1.Msg",
                        "methods": [
                            {"name": "Two", "input_type": "x.v1.MsgTwo", "output_type": "x.v1.R"}
                        ],
                    }
                ],
            }
        )
        builder = Builder(registry=registry, codecs=codecs)
        options = AppOptions.from_dict({"modules": {"x": {"tx": {"service": "x.v1.Msg"}}}})
        with pytest.raises(ConfigurationError, match="exactly one signer"):
            builder.build_msg_command(options)


@pytest.mark.usefixtures("_isolated")
class TestMethodExecution:
    """Invoke generated commands and inspect what reaches the tx pipeline."""

    def _invoke(self, builder: Builder, test_options: AppOptions, args: list[str]) -> Result:
        root = builder.build_msg_command(builtin_app_options().merged(test_options))
        return CliRunner().invoke(root, args)

    def test_signer_filled_from_sender(
        self,
        builder: Builder,
        test_options: AppOptions,
        pipeline: RecordingPipeline,
        alice: str,
    ) -> None:
        result = self._invoke(builder, test_options, ["test", "ping", "--text", "hi"])
        assert result.exit_code == 0, result.output
        _, signer, msg = pipeline.last
        assert msg.sender == alice
        assert msg.text == "hi"
        assert signer == alice
        assert type(msg).type_url() == "/test.v1.MsgPing"

    def test_explicit_signer_kept(
        self,
        builder: Builder,
        test_options: AppOptions,
        pipeline: RecordingPipeline,
        bob: str,
    ) -> None:
        result = self._invoke(builder, test_options, ["test", "ping", "--sender", bob])
        assert result.exit_code == 0, result.output
        assert pipeline.last[2].sender == bob

    def test_consensus_signer_uses_consensus_codec(
        self,
        builder: Builder,
        test_options: AppOptions,
        pipeline: RecordingPipeline,
        codecs: AddressCodecs,
    ) -> None:
        result = self._invoke(builder, test_options, ["test", "rotate", "--epoch", "3"])
        assert result.exit_code == 0, result.output
        msg = pipeline.last[2]
        assert msg.consensus_address == codecs.consensus.bytes_to_string(ALICE_RAW)
        assert msg.consensus_address.startswith("cosmosvalcons1")

    def test_validator_signer_uses_validator_codec(
        self, builder: Builder, test_options: AppOptions, pipeline: RecordingPipeline
    ) -> None:
        result = self._invoke(builder, test_options, ["slashing", "unjail"])
        assert result.exit_code == 0, result.output
        assert pipeline.last[2].validator_addr.startswith("cosmosvaloper1")

    def test_gated_method_wrapped_in_proposal(
        self,
        builder: Builder,
        test_options: AppOptions,
        pipeline: RecordingPipeline,
        codecs: AddressCodecs,
        alice: str,
    ) -> None:
        result = self._invoke(
            builder,
            test_options,
            ["test", "set-config", "--value", "on", "--title", "T", "--deposit", "10stake"],
        )
        assert result.exit_code == 0, result.output
        _, signer, proposal = pipeline.last
        assert isinstance(proposal, MsgSubmitProposal)
        assert proposal.proposer == alice
        assert signer == alice
        assert proposal.title == "T"
        assert proposal.initial_deposit == [{"denom": "stake", "amount": "10"}]
        (inner,) = proposal.messages
        assert inner.type_url == "/test.v1.MsgSetConfig"
        assert inner.to_json()["authority"] == gov_authority(codecs.account)
        assert inner.to_json()["value"] == "on"

    def test_gated_method_overwrites_supplied_signer(
        self,
        builder: Builder,
        test_options: AppOptions,
        pipeline: RecordingPipeline,
        codecs: AddressCodecs,
        bob: str,
    ) -> None:
        result = self._invoke(builder, test_options, ["test", "set-config", "--authority", bob])
        assert result.exit_code == 0, result.output
        (inner,) = pipeline.last[2].messages
        assert inner.to_json()["authority"] == gov_authority(codecs.account)

    def test_no_proposal_submits_directly(
        self,
        builder: Builder,
        test_options: AppOptions,
        pipeline: RecordingPipeline,
        alice: str,
    ) -> None:
        result = self._invoke(
            builder, test_options, ["test", "set-config", "--value", "on", "--no-proposal"]
        )
        assert result.exit_code == 0, result.output
        msg = pipeline.last[2]
        assert not isinstance(msg, MsgSubmitProposal)
        assert msg.authority == alice

    def test_no_proposal_keeps_supplied_signer(
        self,
        builder: Builder,
        test_options: AppOptions,
        pipeline: RecordingPipeline,
        bob: str,
    ) -> None:
        args = ["test", "set-config", "--no-proposal", "--authority", bob]
        result = self._invoke(builder, test_options, args)
        assert result.exit_code == 0, result.output
        assert pipeline.last[2].authority == bob

    def test_positional_args_and_alias(
        self, builder: Builder, test_options: AppOptions, pipeline: RecordingPipeline
    ) -> None:
        result = self._invoke(builder, test_options, ["gov", "v", "7", "VOTE_OPTION_NO"])
        assert result.exit_code == 0, result.output
        msg = pipeline.last[2]
        assert msg.proposal_id == 7
        assert msg.option == "VOTE_OPTION_NO"

    def test_usage_suppressed_on_bad_flag(
        self, builder: Builder, test_options: AppOptions
    ) -> None:
        result = self._invoke(builder, test_options, ["test", "ping", "--count", "lots"])
        assert result.exit_code == 2
        assert "Invalid value" in result.output
        assert "Usage:" not in result.output

    def test_invalid_address_reported(
        self, builder: Builder, test_options: AppOptions, pipeline: RecordingPipeline
    ) -> None:
        result = self._invoke(builder, test_options, ["test", "ping", "--sender", "nobody"])
        assert result.exit_code == 1
        assert "invalid address for sender" in result.stderr
        assert pipeline.calls == []

    def test_examples_flag(self, builder: Builder, test_options: AppOptions) -> None:
        result = self._invoke(builder, test_options, ["staking", "delegate", "--examples"])
        assert result.exit_code == 0
        assert "autotx tx staking delegate" in result.output


@pytest.mark.usefixtures("_isolated")
class TestNestedMessageCommands:
    """Generated commands for messages holding other messages."""

    @pytest.fixture
    def nested_builder(
        self, codecs: AddressCodecs, alice: str, pipeline: RecordingPipeline
    ) -> Builder:
        registry = SchemaRegistry()
        registry.load_dict(NESTED_SCHEMA)
        return Builder(
            registry=registry,
            codecs=codecs,
            accounts={"alice": alice},
            tx_pipeline=pipeline,
            client_context=alice_context,
        )

    def _invoke(self, builder: Builder, args: list[str]) -> Result:
        options = AppOptions.from_dict({"modules": {"r": {"tx": {"service": "r.v1.Msg"}}}})
        return CliRunner().invoke(builder.build_msg_command(options), args)

    def test_repeated_flag_keeps_every_value(
        self, nested_builder: Builder, pipeline: RecordingPipeline
    ) -> None:
        args = ["r", "multi", "--outputs", '{"to": "a", "n": 1}']
        args += ["--outputs", '{"to": "b", "n": 2}']
        result = self._invoke(nested_builder, args)
        assert result.exit_code == 0, result.output
        outputs = pipeline.last[2].outputs
        assert [(o.to, o.n) for o in outputs] == [("a", 1), ("b", 2)]

    def test_repeated_flag_accepts_json_array(
        self, nested_builder: Builder, pipeline: RecordingPipeline
    ) -> None:
        args = ["r", "multi", "--outputs", '[{"to": "a"}, {"to": "b"}]']
        args += ["--outputs", '{"to": "c"}']
        result = self._invoke(nested_builder, args)
        assert result.exit_code == 0, result.output
        assert [o.to for o in pipeline.last[2].outputs] == ["a", "b", "c"]

    def test_repeated_flag_rejects_non_objects(
        self, nested_builder: Builder, pipeline: RecordingPipeline
    ) -> None:
        result = self._invoke(nested_builder, ["r", "multi", "--outputs", "[1]"])
        assert result.exit_code == 2
        assert "array of JSON objects" in result.output
        assert pipeline.calls == []

    def test_recursive_message_fails_cleanly(
        self, nested_builder: Builder, pipeline: RecordingPipeline
    ) -> None:
        result = self._invoke(nested_builder, ["r", "nest", "--node", '{"child": {}}'])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "recursive message type r.v1.Node" in result.stderr
        assert pipeline.calls == []
