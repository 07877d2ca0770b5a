"""Command line interface for building and decoding multisignature addresses."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Sequence

from .config import SettingsError, load_network_name, load_rpc_config, set_default_config_path
from .encoding import Network, get_network
from .keystore import Keystore, RPCKeystore
from .policy import MultisigPolicy
from .registrar import WalletRegistrar
from .rpc_client import DigiByteRPCClient, RPCError, RPCTransportError

logger = logging.getLogger(__name__)


class CLIError(RuntimeError):
    """Raised when CLI arguments are invalid."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="DigiByte multisignature address tool")
    parser.add_argument("--config", default=None, help="Path to a YAML config file")
    parser.add_argument(
        "--network",
        default=None,
        help="Address network (digibyte, digibyte-testnet, pivx); defaults to config or digibyte",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create_parser = subparsers.add_parser(
        "create", help="build an M-of-N redeem script from owner keys or addresses"
    )
    create_parser.add_argument(
        "-m",
        "--required",
        type=int,
        required=True,
        help="Number of signatures required to spend",
    )
    create_parser.add_argument(
        "owners", nargs="+", help="Owner public keys (hex) or wallet addresses"
    )
    create_parser.add_argument(
        "--use-wallet",
        action="store_true",
        help="Resolve owner addresses through the RPC wallet",
    )

    decode_parser = subparsers.add_parser(
        "decode", help="parse a structured, hex, or spaced redeem script"
    )
    decode_parser.add_argument("redeem", help="Redeem text in any accepted form")
    decode_parser.add_argument(
        "--use-wallet",
        action="store_true",
        help="Resolve owner addresses through the RPC wallet",
    )

    add_parser = subparsers.add_parser(
        "add-to-wallet", help="import a redeem script into the RPC wallet"
    )
    add_parser.add_argument("redeem", help="Redeem text in any accepted form")
    add_parser.add_argument("--label", default="", help="Address book label")

    return parser


def _resolve_network(args: argparse.Namespace) -> Network:
    return get_network(load_network_name(override=args.network))


def _rpc_keystore() -> RPCKeystore:
    return RPCKeystore(DigiByteRPCClient(load_rpc_config()))


def _emit_policy(policy: MultisigPolicy, *, include_forms: bool = False) -> None:
    if not policy.is_valid:
        raise CLIError(policy.error_status)
    payload = policy.to_dict()
    if include_forms:
        payload["spaced"] = policy.to_spaced()
        payload["structured"] = policy.to_structured()
    print(json.dumps(payload, indent=2))


def cmd_create(args: argparse.Namespace) -> None:
    network = _resolve_network(args)
    keystore: Keystore | None = _rpc_keystore() if args.use_wallet else None
    policy = MultisigPolicy.from_owners(
        args.required, args.owners, keystore=keystore, network=network
    )
    _emit_policy(policy)


def cmd_decode(args: argparse.Namespace) -> None:
    network = _resolve_network(args)
    keystore: Keystore | None = _rpc_keystore() if args.use_wallet else None
    policy = MultisigPolicy.from_text(args.redeem, keystore=keystore, network=network)
    _emit_policy(policy, include_forms=True)


def cmd_add_to_wallet(args: argparse.Namespace) -> None:
    network = _resolve_network(args)
    keystore = _rpc_keystore()
    policy = MultisigPolicy.from_text(args.redeem, keystore=keystore, network=network)
    if not policy.is_valid:
        raise CLIError(policy.error_status)
    result = WalletRegistrar(keystore).add_to_wallet(policy, label=args.label)
    if not result.is_ok:
        raise CLIError(str(result.error))
    print(json.dumps({"address": result.address, "redeemScript": policy.to_hex()}, indent=2))


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    if args.config:
        set_default_config_path(args.config)
    try:
        if args.command == "create":
            cmd_create(args)
        elif args.command == "decode":
            cmd_decode(args)
        elif args.command == "add-to-wallet":
            cmd_add_to_wallet(args)
        else:  # pragma: no cover - argparse enforces choices
            raise CLIError(f"Unknown command: {args.command}")
    except KeyboardInterrupt:  # pragma: no cover - interactive use
        logger.info("Interrupted by user")
    except (CLIError, SettingsError, RPCError, RPCTransportError, ValueError) as exc:
        parser.exit(1, f"error: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
