"""Command-line interface for building, signing and broadcasting gno transactions.

Each transaction command validates its flags, builds a message and either
prints the signed transaction as JSON (the default) or broadcasts it with
``--broadcast``.
"""

from __future__ import annotations

import argparse
import base64
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from .broadcast import SimulateMode
from .client import Client
from .codec import COMPACT_JSON_SEPARATORS, AminoJSONCodec
from .config import ConfigurationError, RPCConfig, load_rpc_config, set_default_config_path
from .crypto import Address, Bech32Error
from .errors import GnoClientError
from .msgs import MsgAddPackage, MsgCall, MsgRun, MsgSend
from .package import MemFile, MemPackage
from .results import ABCIQueryResult, BroadcastTxCommitResult
from .rpc_client import GnoRPCClient, RPCError, RPCTransportError
from .signer import ENV_PRIVATE_KEY, PrivKeySigner
from .std import Tx
from .tx_builder import BaseTxCfg, SponsorTxCfg

logger = logging.getLogger(__name__)


class CLIError(RuntimeError):
    """Raised when CLI arguments are invalid."""


def _add_rpc_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--remote", default=None, help="Node RPC address (default: config or env)")
    parser.add_argument("--chainid", default=None, help="Chain identifier (default: config or env)")
    parser.add_argument("--config", default=None, help="Path to a YAML config with an 'rpc' section")


def _add_tx_args(parser: argparse.ArgumentParser) -> None:
    _add_rpc_args(parser)
    parser.add_argument("--gas-wanted", type=int, required=True, help="Gas limit for the transaction")
    parser.add_argument("--gas-fee", required=True, help="Gas fee as a single coin, e.g. 1000000ugnot")
    parser.add_argument("--memo", default="", help="Optional transaction memo")
    parser.add_argument(
        "--account-number", type=int, default=0, help="Account number (0 with --sequence 0 queries the node)"
    )
    parser.add_argument("--sequence", type=int, default=0, help="Account sequence")
    parser.add_argument(
        "--key-env",
        default=ENV_PRIVATE_KEY,
        help=f"Environment variable holding the hex private key (default: {ENV_PRIVATE_KEY})",
    )
    parser.add_argument(
        "--broadcast",
        action="store_true",
        help="Broadcast the transaction instead of printing the signed JSON",
    )
    parser.add_argument(
        "--simulate",
        choices=[mode.value for mode in SimulateMode],
        default=SimulateMode.TEST.value,
        help="test: simulate then broadcast; skip: broadcast only; only: simulate only",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="gno transaction client")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    call_parser = subparsers.add_parser("call", help="call an exported realm function")
    call_parser.add_argument("pkgpath", help="Realm path, e.g. gno.land/r/demo/boards")
    call_parser.add_argument("func", help="Function name")
    call_parser.add_argument(
        "--args", action="append", default=[], help="Function argument (repeat for several)"
    )
    call_parser.add_argument("--send", default="", help="Coins sent with the call")
    _add_tx_args(call_parser)

    send_parser = subparsers.add_parser("send", help="transfer coins to an address")
    send_parser.add_argument("to", help="Destination address (g1...)")
    send_parser.add_argument("--send", required=True, help="Coins to transfer, e.g. 1000ugnot")
    _add_tx_args(send_parser)

    run_parser = subparsers.add_parser("run", help="execute a script as package main")
    run_parser.add_argument("source", help="A .gno file or a directory of sources")
    run_parser.add_argument("--send", default="", help="Coins sent with the script")
    _add_tx_args(run_parser)

    addpkg_parser = subparsers.add_parser("addpkg", help="publish a package or realm")
    addpkg_parser.add_argument("pkgdir", help="Directory containing the package sources")
    addpkg_parser.add_argument("--pkgpath", required=True, help="Package path to publish at")
    addpkg_parser.add_argument("--deposit", default="", help="Storage deposit coins")
    _add_tx_args(addpkg_parser)

    query_parser = subparsers.add_parser("query", help="run an ABCI query")
    query_parser.add_argument("path", help="Query path, e.g. auth/accounts/g1... or vm/qrender")
    query_parser.add_argument("--data", default="", help="Query data (UTF-8)")
    _add_rpc_args(query_parser)

    sponsor_sign_parser = subparsers.add_parser(
        "sponsor-sign", help="sign a realm call for another account to pay and broadcast"
    )
    sponsor_sign_parser.add_argument("pkgpath", help="Realm path")
    sponsor_sign_parser.add_argument("func", help="Function name")
    sponsor_sign_parser.add_argument("--args", action="append", default=[], help="Function argument")
    sponsor_sign_parser.add_argument("--send", default="", help="Coins sent with the call")
    sponsor_sign_parser.add_argument("--sponsor", required=True, help="Address paying the fees")
    _add_tx_args(sponsor_sign_parser)

    sponsor_exec_parser = subparsers.add_parser(
        "sponsor-exec", help="countersign and broadcast a pre-signed sponsor transaction"
    )
    sponsor_exec_parser.add_argument("txfile", help="Signed transaction JSON ('-' for stdin)")
    sponsor_exec_parser.add_argument("--account-number", type=int, default=0, help="Sponsor account number")
    sponsor_exec_parser.add_argument("--sequence", type=int, default=0, help="Sponsor account sequence")
    sponsor_exec_parser.add_argument(
        "--key-env", default=ENV_PRIVATE_KEY, help="Environment variable holding the sponsor's hex key"
    )
    sponsor_exec_parser.add_argument(
        "--simulate",
        choices=[SimulateMode.TEST.value, SimulateMode.SKIP.value],
        default=SimulateMode.TEST.value,
        help="test: simulate then broadcast; skip: broadcast only",
    )
    _add_rpc_args(sponsor_exec_parser)

    return parser


def _rpc_config(args: argparse.Namespace) -> RPCConfig:
    if args.config:
        set_default_config_path(args.config)
    return load_rpc_config(overrides={"remote": args.remote, "chain_id": args.chainid})


def _client_from_args(args: argparse.Namespace, *, with_signer: bool = True) -> Client:
    config = _rpc_config(args)
    signer = None
    if with_signer:
        try:
            signer = PrivKeySigner.from_env(args.key_env, chain_id=config.chain_id)
        except ValueError as exc:
            raise CLIError(str(exc)) from exc
    simulate = SimulateMode(getattr(args, "simulate", SimulateMode.SKIP.value))
    if simulate is SimulateMode.ONLY:
        simulate = SimulateMode.SKIP
    return Client(signer, GnoRPCClient(config), simulate=simulate)


def _base_cfg(args: argparse.Namespace) -> BaseTxCfg:
    return BaseTxCfg(
        gas_fee=args.gas_fee,
        gas_wanted=args.gas_wanted,
        account_number=args.account_number,
        sequence_number=args.sequence,
        memo=args.memo,
    )


def _parse_address(raw: str) -> Address:
    try:
        return Address.from_bech32(raw)
    except Bech32Error as exc:
        raise CLIError(f"invalid address {raw!r}: {exc}") from exc


def _load_run_package(source: str) -> MemPackage:
    path = Path(source).expanduser()
    if path.is_dir():
        return MemPackage.from_dir(path)
    if not path.is_file():
        raise CLIError(f"script not found: {path}")
    return MemPackage(name="main", path="", files=(MemFile(name=path.name, body=path.read_text()),))


def _decode_data(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return base64.b64encode(data).decode("ascii")


def _result_summary(result: BroadcastTxCommitResult) -> dict[str, Any]:
    return {
        "height": result.height,
        "hash": result.hash_hex,
        "gas_wanted": result.gas_wanted,
        "gas_used": result.gas_used,
        "data": _decode_data(result.data),
        "events": [
            {
                "type": event.type,
                "pkg_path": event.pkg_path,
                "func": event.func,
                "attrs": {attr.key: attr.value for attr in event.attrs},
            }
            for event in result.events
        ],
    }


def _query_summary(result: ABCIQueryResult) -> dict[str, Any]:
    return {
        "height": result.height,
        "data": _decode_data(result.data),
        "log": result.response.log,
    }


def _emit(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, separators=COMPACT_JSON_SEPARATORS))


def _finish(client: Client, args: argparse.Namespace, msgs: Sequence[Any]) -> None:
    """Print the signed tx, simulate it, or broadcast it depending on flags."""

    cfg = _base_cfg(args)
    if args.broadcast and args.simulate != SimulateMode.ONLY.value:
        _dispatch_broadcast(client, args.command, cfg, msgs)
        return

    tx = client.build_tx(cfg, *msgs)
    signed = client.sign_transaction(tx, cfg.account_number, cfg.sequence_number)
    if args.broadcast:
        _emit(_query_summary(client.simulate(signed)))
        return
    _emit(signed.to_json())


def _dispatch_broadcast(client: Client, command: str, cfg: BaseTxCfg, msgs: Sequence[Any]) -> None:
    handlers = {
        "call": client.call,
        "send": client.send,
        "run": client.run,
        "addpkg": client.add_package,
    }
    result = handlers[command](cfg, *msgs)
    _emit(_result_summary(result))


def cmd_call(args: argparse.Namespace) -> None:
    client = _client_from_args(args)
    msg = MsgCall(pkg_path=args.pkgpath, func_name=args.func, args=tuple(args.args), send=args.send)
    _finish(client, args, [msg])


def cmd_send(args: argparse.Namespace) -> None:
    client = _client_from_args(args)
    msg = MsgSend(to_address=_parse_address(args.to), send=args.send)
    _finish(client, args, [msg])


def cmd_run(args: argparse.Namespace) -> None:
    client = _client_from_args(args)
    msg = MsgRun(package=_load_run_package(args.source), send=args.send)
    _finish(client, args, [msg])


def cmd_addpkg(args: argparse.Namespace) -> None:
    client = _client_from_args(args)
    package = MemPackage.from_dir(args.pkgdir, pkg_path=args.pkgpath)
    msg = MsgAddPackage(package=package, deposit=args.deposit)
    _finish(client, args, [msg])


def cmd_query(args: argparse.Namespace) -> None:
    client = _client_from_args(args, with_signer=False)
    result = client.query(args.path, args.data.encode("utf-8"))
    _emit(_query_summary(result))


def cmd_sponsor_sign(args: argparse.Namespace) -> None:
    client = _client_from_args(args)
    cfg = SponsorTxCfg(base=_base_cfg(args), sponsor_address=_parse_address(args.sponsor))
    msg = MsgCall(pkg_path=args.pkgpath, func_name=args.func, args=tuple(args.args), send=args.send)
    signed = client.new_sponsor_transaction(cfg, msg)
    _emit(signed.to_json())


def _read_tx(source: str) -> Tx:
    raw = sys.stdin.read() if source == "-" else Path(source).expanduser().read_text()
    return AminoJSONCodec().unmarshal_tx(raw)


def cmd_sponsor_exec(args: argparse.Namespace) -> None:
    client = _client_from_args(args)
    tx = _read_tx(args.txfile)
    result = client.execute_sponsor_transaction(tx, args.account_number, args.sequence)
    _emit(_result_summary(result))


COMMANDS = {
    "call": cmd_call,
    "send": cmd_send,
    "run": cmd_run,
    "addpkg": cmd_addpkg,
    "query": cmd_query,
    "sponsor-sign": cmd_sponsor_sign,
    "sponsor-exec": cmd_sponsor_exec,
}


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    try:
        COMMANDS[args.command](args)
    except KeyboardInterrupt:  # pragma: no cover - interactive use
        logger.info("Interrupted by user")
    except (
        CLIError,
        ConfigurationError,
        GnoClientError,
        RPCError,
        RPCTransportError,
        FileNotFoundError,
    ) as exc:
        parser.exit(1, f"error: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
