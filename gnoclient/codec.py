"""Deterministic JSON encoding of transactions and sign documents.

The node-facing binary format is pluggable: anything exposing ``marshal_tx``
and ``sign_bytes`` can be handed to :class:`~gnoclient.client.Client`. The
default codec emits compact, key-sorted JSON so that the same transaction
always yields the same bytes and therefore the same signature.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import TYPE_CHECKING, Any, Callable, Protocol

from . import bank, vm
from .coins import parse_coin, parse_coins
from .crypto import Address
from .errors import EncodingError, ErrorKind
from .package import MemFile, MemPackage
from .std import ChainMsg, Fee, PubKeySecp256k1, Signature, Tx

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .signer import SignCfg

logger = logging.getLogger(__name__)

COMPACT_JSON_SEPARATORS = (",", ":")


class Codec(Protocol):
    def marshal_tx(self, tx: Tx) -> bytes:
        ...

    def sign_bytes(self, cfg: "SignCfg") -> bytes:
        ...


def canonical_json(payload: Any) -> bytes:
    return json.dumps(payload, sort_keys=True, separators=COMPACT_JSON_SEPARATORS).encode("utf-8")


class AminoJSONCodec:
    """JSON codec mirroring the amino-JSON layout of tm2 transactions."""

    def marshal_tx(self, tx: Tx) -> bytes:
        try:
            encoded = canonical_json(tx.to_json())
        except (TypeError, ValueError) as exc:
            raise EncodingError(ErrorKind.ENCODE_FAILED, detail=str(exc)) from exc
        logger.debug("Encoded tx with %d msgs into %d bytes", len(tx.msgs), len(encoded))
        return encoded

    def unmarshal_tx(self, raw: bytes | str) -> Tx:
        """Rebuild a :class:`Tx` from bytes produced by :meth:`marshal_tx`."""

        try:
            return tx_from_json(json.loads(raw))
        except (KeyError, TypeError, ValueError) as exc:
            raise EncodingError(ErrorKind.ENCODE_FAILED, detail=f"malformed tx: {exc}") from exc

    def sign_bytes(self, cfg: "SignCfg") -> bytes:
        tx = cfg.tx
        doc = {
            "chain_id": cfg.chain_id,
            "account_number": str(cfg.account_number),
            "sequence": str(cfg.sequence_number),
            "fee": tx.fee.to_json(),
            "msgs": [msg.to_json() for msg in tx.msgs],
            "memo": tx.memo,
        }
        try:
            return canonical_json(doc)
        except (TypeError, ValueError) as exc:
            raise EncodingError(ErrorKind.ENCODE_FAILED, detail=str(exc)) from exc


def _package_from_json(data: dict[str, Any]) -> MemPackage:
    files = tuple(MemFile(name=f["name"], body=f["body"]) for f in data.get("files") or [])
    return MemPackage(name=data["name"], path=data.get("path", ""), files=files)


_MSG_DECODERS: dict[str, Callable[[dict[str, Any]], ChainMsg]] = {
    vm.MsgCall.type_url: lambda d: vm.MsgCall(
        caller=Address.from_bech32(d["caller"]),
        pkg_path=d["pkg_path"],
        func=d["func"],
        args=tuple(d.get("args") or ()),
        send=parse_coins(d.get("send", "")),
    ),
    vm.MsgRun.type_url: lambda d: vm.MsgRun(
        caller=Address.from_bech32(d["caller"]),
        package=_package_from_json(d["package"]),
        send=parse_coins(d.get("send", "")),
    ),
    vm.MsgAddPackage.type_url: lambda d: vm.MsgAddPackage(
        creator=Address.from_bech32(d["creator"]),
        package=_package_from_json(d["package"]),
        deposit=parse_coins(d.get("deposit", "")),
    ),
    vm.MsgNoop.type_url: lambda d: vm.MsgNoop(caller=Address.from_bech32(d["caller"])),
    bank.MsgSend.type_url: lambda d: bank.MsgSend(
        from_address=Address.from_bech32(d["from_address"]),
        to_address=Address.from_bech32(d["to_address"]),
        amount=parse_coins(d.get("amount", "")),
    ),
}


def msg_from_json(data: dict[str, Any]) -> ChainMsg:
    type_url = data.get("@type")
    decoder = _MSG_DECODERS.get(type_url)  # type: ignore[arg-type]
    if decoder is None:
        raise ValueError(f"unknown message type {type_url!r}")
    return decoder(data)


def _signature_from_json(data: dict[str, Any]) -> Signature:
    pub_key = None
    raw_pub = data.get("pub_key")
    if isinstance(raw_pub, dict) and raw_pub.get("value"):
        pub_key = PubKeySecp256k1(base64.b64decode(raw_pub["value"]))
    return Signature(pub_key=pub_key, signature=base64.b64decode(data.get("signature") or ""))


def tx_from_json(data: dict[str, Any]) -> Tx:
    fee = data["fee"]
    return Tx(
        msgs=tuple(msg_from_json(m) for m in data.get("msg") or []),
        fee=Fee(gas_wanted=int(fee["gas_wanted"]), gas_fee=parse_coin(fee["gas_fee"])),
        signatures=tuple(_signature_from_json(s) for s in data.get("signatures") or []),
        memo=data.get("memo", ""),
    )
