"""Transaction, fee, signature and account types shared across the client."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field, replace
from typing import Any, List, Protocol, Tuple

from .coins import Coin
from .crypto import Address
from .vm import MsgNoop

PUBKEY_SECP256K1_TYPE = "/tm.PubKeySecp256k1"


class ChainMsg(Protocol):
    """Structural type of every chain-side message."""

    type_url: str

    def signers(self) -> List[Address]:
        ...

    def to_json(self) -> dict[str, Any]:
        ...


@dataclass(frozen=True)
class Fee:
    gas_wanted: int
    gas_fee: Coin

    def to_json(self) -> dict[str, Any]:
        return {"gas_wanted": str(self.gas_wanted), "gas_fee": str(self.gas_fee)}


@dataclass(frozen=True)
class PubKeySecp256k1:
    """Compressed (33 byte) secp256k1 public key."""

    key: bytes

    def address(self) -> Address:
        return Address.from_pubkey(self.key)

    def to_json(self) -> dict[str, Any]:
        return {
            "@type": PUBKEY_SECP256K1_TYPE,
            "value": base64.b64encode(self.key).decode("ascii"),
        }


@dataclass(frozen=True)
class Signature:
    pub_key: PubKeySecp256k1 | None
    signature: bytes

    def to_json(self) -> dict[str, Any]:
        return {
            "pub_key": self.pub_key.to_json() if self.pub_key is not None else None,
            "signature": base64.b64encode(self.signature).decode("ascii"),
        }


@dataclass(frozen=True)
class Tx:
    """An assembled transaction.

    Instances are immutable; signing produces a new ``Tx`` with one more
    signature appended, so an unsigned value is never modified in place.
    """

    msgs: Tuple[ChainMsg, ...]
    fee: Fee
    signatures: Tuple[Signature, ...] = field(default_factory=tuple)
    memo: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "msgs", tuple(self.msgs))
        object.__setattr__(self, "signatures", tuple(self.signatures))

    def with_signature(self, signature: Signature) -> "Tx":
        return replace(self, signatures=self.signatures + (signature,))

    def is_signed(self) -> bool:
        return bool(self.signatures)

    def is_sponsor_tx(self) -> bool:
        return bool(self.msgs) and isinstance(self.msgs[0], MsgNoop)

    def signers(self) -> List[Address]:
        """Unique message signers in first-seen order; index 0 pays the fee."""

        seen: List[Address] = []
        for msg in self.msgs:
            for signer in msg.signers():
                if signer not in seen:
                    seen.append(signer)
        return seen

    def to_json(self) -> dict[str, Any]:
        return {
            "msg": [msg.to_json() for msg in self.msgs],
            "fee": self.fee.to_json(),
            "signatures": [sig.to_json() for sig in self.signatures],
            "memo": self.memo,
        }


@dataclass(frozen=True)
class BaseAccount:
    address: Address
    coins: str = ""
    account_number: int = 0
    sequence: int = 0
    public_key: PubKeySecp256k1 | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "BaseAccount":
        pub_key = None
        raw_pub = data.get("public_key")
        if isinstance(raw_pub, dict) and raw_pub.get("value"):
            pub_key = PubKeySecp256k1(base64.b64decode(raw_pub["value"]))
        address = data.get("address")
        return cls(
            address=Address.from_bech32(address) if address else Address(),
            coins=str(data.get("coins") or ""),
            account_number=int(data.get("account_number") or 0),
            sequence=int(data.get("sequence") or 0),
            public_key=pub_key,
        )
