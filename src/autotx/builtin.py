"""Built-in schemas and command options for the standard modules.

Covers bank, staking, slashing and gov transactions so ``autotx tx`` is
useful without any schema file.  Extra modules are added through
``[schemas] files`` in ``autotx.toml``.
"""

from __future__ import annotations

from typing import Any

from autotx.autocli.options import AppOptions

_ADDR = "cosmos.AddressString"
_VALOPER = "cosmos.ValidatorAddressString"

BUILTIN_SCHEMA: dict[str, Any] = {
    "messages": [
        {
            "full_name": "cosmos.base.v1beta1.Coin",
            "fields": [
                {"name": "denom", "kind": "string"},
                {"name": "amount", "kind": "string", "scalar": "cosmos.Int"},
            ],
        },
        # bank
        {
            "full_name": "cosmos.bank.v1beta1.MsgSend",
            "signers": ["from_address"],
            "fields": [
                {"name": "from_address", "kind": "string", "scalar": _ADDR},
                {"name": "to_address", "kind": "string", "scalar": _ADDR},
                {
                    "name": "amount",
                    "kind": "message",
                    "message_type": "cosmos.base.v1beta1.Coin",
                    "repeated": True,
                },
            ],
        },
        {"full_name": "cosmos.bank.v1beta1.MsgSendResponse"},
        {
            "full_name": "cosmos.bank.v1beta1.Params",
            "fields": [{"name": "default_send_enabled", "kind": "bool"}],
        },
        {
            "full_name": "cosmos.bank.v1beta1.MsgUpdateParams",
            "signers": ["authority"],
            "fields": [
                {"name": "authority", "kind": "string", "scalar": _ADDR},
                {
                    "name": "params",
                    "kind": "message",
                    "message_type": "cosmos.bank.v1beta1.Params",
                },
            ],
        },
        {"full_name": "cosmos.bank.v1beta1.MsgUpdateParamsResponse"},
        # staking
        {
            "full_name": "cosmos.staking.v1beta1.MsgDelegate",
            "signers": ["delegator_address"],
            "fields": [
                {"name": "delegator_address", "kind": "string", "scalar": _ADDR},
                {"name": "validator_address", "kind": "string", "scalar": _VALOPER},
                {
                    "name": "amount",
                    "kind": "message",
                    "message_type": "cosmos.base.v1beta1.Coin",
                },
            ],
        },
        {"full_name": "cosmos.staking.v1beta1.MsgDelegateResponse"},
        # slashing
        {
            "full_name": "cosmos.slashing.v1beta1.MsgUnjail",
            "signers": ["validator_addr"],
            "fields": [{"name": "validator_addr", "kind": "string", "scalar": _VALOPER}],
        },
        {"full_name": "cosmos.slashing.v1beta1.MsgUnjailResponse"},
        # gov
        {
            "full_name": "cosmos.gov.v1.MsgVote",
            "signers": ["voter"],
            "fields": [
                {"name": "proposal_id", "kind": "uint64"},
                {"name": "voter", "kind": "string", "scalar": _ADDR},
                {
                    "name": "option",
                    "kind": "enum",
                    "enum_values": [
                        "VOTE_OPTION_UNSPECIFIED",
                        "VOTE_OPTION_YES",
                        "VOTE_OPTION_ABSTAIN",
                        "VOTE_OPTION_NO",
                        "VOTE_OPTION_NO_WITH_VETO",
                    ],
                },
                {"name": "metadata", "kind": "string"},
            ],
        },
        {"full_name": "cosmos.gov.v1.MsgVoteResponse"},
        {
            "full_name": "cosmos.gov.v1.MsgCancelProposal",
            "signers": ["proposer"],
            "fields": [
                {"name": "proposal_id", "kind": "uint64"},
                {"name": "proposer", "kind": "string", "scalar": _ADDR},
            ],
        },
        {"full_name": "cosmos.gov.v1.MsgCancelProposalResponse"},
    ],
    "services": [
        {
            "full_name": "cosmos.bank.v1beta1.Msg",
            "methods": [
                {
                    "name": "Send",
                    "input_type": "cosmos.bank.v1beta1.MsgSend",
                    "output_type": "cosmos.bank.v1beta1.MsgSendResponse",
                },
                {
                    "name": "UpdateParams",
                    "input_type": "cosmos.bank.v1beta1.MsgUpdateParams",
                    "output_type": "cosmos.bank.v1beta1.MsgUpdateParamsResponse",
                    "since": "cosmos-sdk 0.47",
                },
            ],
        },
        {
            "full_name": "cosmos.staking.v1beta1.Msg",
            "methods": [
                {
                    "name": "Delegate",
                    "input_type": "cosmos.staking.v1beta1.MsgDelegate",
                    "output_type": "cosmos.staking.v1beta1.MsgDelegateResponse",
                },
            ],
        },
        {
            "full_name": "cosmos.slashing.v1beta1.Msg",
            "methods": [
                {
                    "name": "Unjail",
                    "input_type": "cosmos.slashing.v1beta1.MsgUnjail",
                    "output_type": "cosmos.slashing.v1beta1.MsgUnjailResponse",
                },
            ],
        },
        {
            "full_name": "cosmos.gov.v1.Msg",
            "methods": [
                {
                    "name": "Vote",
                    "input_type": "cosmos.gov.v1.MsgVote",
                    "output_type": "cosmos.gov.v1.MsgVoteResponse",
                },
                {
                    "name": "CancelProposal",
                    "input_type": "cosmos.gov.v1.MsgCancelProposal",
                    "output_type": "cosmos.gov.v1.MsgCancelProposalResponse",
                    "since": "cosmos-sdk 0.50",
                },
            ],
        },
    ],
}

BUILTIN_MODULES: dict[str, Any] = {
    "modules": {
        "bank": {
            "tx": {
                "service": "cosmos.bank.v1beta1.Msg",
                "enhance_custom_command": True,
                "rpc_command_options": [
                    {
                        "rpc_method": "Send",
                        "use": "send",
                        "short": "Send funds from one account to another",
                        "positional_args": ["from_address", "to_address", "amount"],
                    },
                    {
                        "rpc_method": "UpdateParams",
                        "short": "Update the bank module parameters",
                        "gov_proposal": True,
                    },
                ],
            }
        },
        "staking": {
            "tx": {
                "service": "cosmos.staking.v1beta1.Msg",
                "rpc_command_options": [
                    {
                        "rpc_method": "Delegate",
                        "short": "Delegate liquid tokens to a validator",
                        "positional_args": ["validator_address", "amount"],
                        "example": (
                            "  autotx tx staking delegate cosmosvaloper1... 1000stake --from mykey"
                        ),
                    },
                ],
            }
        },
        "slashing": {
            "tx": {
                "service": "cosmos.slashing.v1beta1.Msg",
                "rpc_command_options": [
                    {
                        "rpc_method": "Unjail",
                        "short": "Unjail a validator previously jailed for downtime",
                    },
                ],
            }
        },
        "gov": {
            "tx": {
                "service": "cosmos.gov.v1.Msg",
                "rpc_command_options": [
                    {
                        "rpc_method": "Vote",
                        "short": "Vote for an active proposal",
                        "positional_args": ["proposal_id", "option"],
                        "alias": ["v"],
                    },
                    {
                        "rpc_method": "CancelProposal",
                        "use": "cancel-proposal",
                        "short": "Cancel a governance proposal before the voting period ends",
                        "positional_args": ["proposal_id"],
                    },
                ],
            }
        },
    }
}


def builtin_app_options() -> AppOptions:
    return AppOptions.from_dict(BUILTIN_MODULES, source="builtin")
