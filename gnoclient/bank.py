"""Chain-side messages handled by the bank keeper."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, List

from .coins import Coins
from .crypto import Address


@dataclass(frozen=True)
class MsgSend:
    from_address: Address
    to_address: Address
    amount: Coins = field(default_factory=Coins)

    type_url: ClassVar[str] = "/bank.MsgSend"

    def signers(self) -> List[Address]:
        return [self.from_address]

    def to_json(self) -> dict[str, Any]:
        return {
            "@type": self.type_url,
            "from_address": str(self.from_address),
            "to_address": str(self.to_address),
            "amount": str(self.amount),
        }
