"""Chain-side messages handled by the Gno VM keeper."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, List, Tuple

from .coins import Coins
from .crypto import Address
from .package import MemPackage


@dataclass(frozen=True)
class MsgCall:
    caller: Address
    pkg_path: str
    func: str
    args: Tuple[str, ...] = ()
    send: Coins = field(default_factory=Coins)

    type_url: ClassVar[str] = "/vm.m_call"

    def signers(self) -> List[Address]:
        return [self.caller]

    def to_json(self) -> dict[str, Any]:
        return {
            "@type": self.type_url,
            "caller": str(self.caller),
            "send": str(self.send),
            "pkg_path": self.pkg_path,
            "func": self.func,
            "args": list(self.args),
        }


@dataclass(frozen=True)
class MsgRun:
    caller: Address
    package: MemPackage
    send: Coins = field(default_factory=Coins)

    type_url: ClassVar[str] = "/vm.m_run"

    def signers(self) -> List[Address]:
        return [self.caller]

    def to_json(self) -> dict[str, Any]:
        return {
            "@type": self.type_url,
            "caller": str(self.caller),
            "send": str(self.send),
            "package": self.package.to_json(),
        }


@dataclass(frozen=True)
class MsgAddPackage:
    creator: Address
    package: MemPackage
    deposit: Coins = field(default_factory=Coins)

    type_url: ClassVar[str] = "/vm.m_addpkg"

    def signers(self) -> List[Address]:
        return [self.creator]

    def to_json(self) -> dict[str, Any]:
        return {
            "@type": self.type_url,
            "creator": str(self.creator),
            "package": self.package.to_json(),
            "deposit": str(self.deposit),
        }


@dataclass(frozen=True)
class MsgNoop:
    """Placeholder marking a transaction as sponsored; the caller pays fees."""

    caller: Address

    type_url: ClassVar[str] = "/vm.m_noop"

    def signers(self) -> List[Address]:
        return [self.caller]

    def to_json(self) -> dict[str, Any]:
        return {"@type": self.type_url, "caller": str(self.caller)}
