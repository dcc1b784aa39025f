"""User-facing message descriptors.

The five variants form a closed tagged union: each class carries exactly one
:class:`MsgType` and dispatches through :meth:`accept` to the matching
``visit_*`` method of a :class:`MsgVisitor`. Adding a variant means adding a
tag, a class and a visitor method; the check at the bottom of this module
refuses to import if the three drift apart.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Generic, Tuple, TypeVar, Union

from .coins import CoinParseError, Coins, parse_coins
from .crypto import Address
from .errors import ErrorKind, ValidationError
from .package import MemPackage

T = TypeVar("T")


class MsgType(str, Enum):
    CALL = "call"
    SEND = "send"
    RUN = "run"
    ADD_PACKAGE = "add_package"
    NOOP = "noop"


def _parse_amount(raw: str, field_name: str) -> Coins:
    try:
        return parse_coins(raw)
    except CoinParseError as exc:
        raise ValidationError(
            ErrorKind.INVALID_AMOUNT, field=field_name, value=raw, detail=str(exc)
        ) from exc


def _validate_package(package: MemPackage | None) -> None:
    if package is None or package.is_empty():
        raise ValidationError(ErrorKind.EMPTY_PACKAGE, field="package", value=package)


@dataclass(frozen=True)
class MsgCall:
    """Call an exported function of a realm."""

    pkg_path: str
    func_name: str
    args: Tuple[str, ...] = ()
    send: str = ""

    msg_type: ClassVar[MsgType] = MsgType.CALL

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))

    def validate(self) -> None:
        if not self.pkg_path:
            raise ValidationError(ErrorKind.EMPTY_PKG_PATH, field="pkg_path", value=self.pkg_path)
        if not self.func_name:
            raise ValidationError(ErrorKind.EMPTY_FUNC_NAME, field="func_name", value=self.func_name)

    def coins(self) -> Coins:
        return _parse_amount(self.send, "send")

    def accept(self, visitor: "MsgVisitor[T]") -> T:
        return visitor.visit_call(self)


@dataclass(frozen=True)
class MsgSend:
    """Transfer coins to another account."""

    to_address: Address = field(default_factory=Address)
    send: str = ""

    msg_type: ClassVar[MsgType] = MsgType.SEND

    def validate(self) -> None:
        if self.to_address.is_zero():
            raise ValidationError(
                ErrorKind.INVALID_TO_ADDRESS, field="to_address", value=str(self.to_address)
            )
        self.coins()

    def coins(self) -> Coins:
        return _parse_amount(self.send, "send")

    def accept(self, visitor: "MsgVisitor[T]") -> T:
        return visitor.visit_send(self)


@dataclass(frozen=True)
class MsgRun:
    """Execute an ephemeral script; it always runs as package ``main``."""

    package: MemPackage | None = None
    send: str = ""

    msg_type: ClassVar[MsgType] = MsgType.RUN

    def validate(self) -> None:
        _validate_package(self.package)

    def coins(self) -> Coins:
        return _parse_amount(self.send, "send")

    def accept(self, visitor: "MsgVisitor[T]") -> T:
        return visitor.visit_run(self)


@dataclass(frozen=True)
class MsgAddPackage:
    """Publish a package or realm at its path."""

    package: MemPackage | None = None
    deposit: str = ""

    msg_type: ClassVar[MsgType] = MsgType.ADD_PACKAGE

    def validate(self) -> None:
        _validate_package(self.package)

    def coins(self) -> Coins:
        return _parse_amount(self.deposit, "deposit")

    def accept(self, visitor: "MsgVisitor[T]") -> T:
        return visitor.visit_add_package(self)


@dataclass(frozen=True)
class MsgNoop:
    """Sponsorship marker; built internally, never by callers."""

    caller: Address = field(default_factory=Address)

    msg_type: ClassVar[MsgType] = MsgType.NOOP

    def validate(self) -> None:
        return None

    def coins(self) -> Coins:
        return Coins()

    def accept(self, visitor: "MsgVisitor[T]") -> T:
        return visitor.visit_noop(self)


Msg = Union[MsgCall, MsgSend, MsgRun, MsgAddPackage, MsgNoop]
MSG_CLASSES: Tuple[type, ...] = (MsgCall, MsgSend, MsgRun, MsgAddPackage, MsgNoop)


class MsgVisitor(ABC, Generic[T]):
    """Exhaustive dispatch over :data:`Msg`."""

    @abstractmethod
    def visit_call(self, msg: MsgCall) -> T: ...

    @abstractmethod
    def visit_send(self, msg: MsgSend) -> T: ...

    @abstractmethod
    def visit_run(self, msg: MsgRun) -> T: ...

    @abstractmethod
    def visit_add_package(self, msg: MsgAddPackage) -> T: ...

    @abstractmethod
    def visit_noop(self, msg: MsgNoop) -> T: ...


def is_msg(value: object) -> bool:
    """Return True when *value* is exactly one of the known variants."""

    return type(value) in MSG_CLASSES


if {cls.msg_type for cls in MSG_CLASSES} != set(MsgType) or len(MSG_CLASSES) != len(MsgType):
    raise ImportError("every MsgType must map to exactly one message class")
