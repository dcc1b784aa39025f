"""Transaction assembly and account sequence resolution."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Protocol, Tuple

from . import bank, vm
from .coins import CoinParseError, parse_coin
from .crypto import Address
from .errors import ConfigError, ConsistencyError, ErrorKind, NetworkError, ValidationError
from .msgs import MsgAddPackage, MsgCall, MsgNoop, MsgRun, MsgSend, MsgVisitor, is_msg
from .results import ABCIQueryResult
from .std import BaseAccount, ChainMsg, Fee, Tx

logger = logging.getLogger(__name__)

ACCOUNT_QUERY_PATH = "auth/accounts/{address}"


class QueryClient(Protocol):
    def abci_query(self, path: str, data: bytes = b"") -> ABCIQueryResult:
        ...


@dataclass(frozen=True)
class BaseTxCfg:
    """Per-call transaction parameters.

    ``account_number`` and ``sequence_number`` both left at zero ask the client
    to look the values up on chain before signing.
    """

    gas_fee: str
    gas_wanted: int
    account_number: int = 0
    sequence_number: int = 0
    memo: str = ""

    def validate(self) -> None:
        if self.gas_wanted <= 0:
            raise ConfigError(ErrorKind.INVALID_GAS_WANTED, field="gas_wanted", value=self.gas_wanted)
        if self.gas_fee == "":
            raise ConfigError(ErrorKind.INVALID_GAS_FEE, field="gas_fee", value=self.gas_fee)
        if self.account_number < 0:
            raise ConfigError(
                ErrorKind.INVALID_ACCOUNT_NUMBER, field="account_number", value=self.account_number
            )
        if self.sequence_number < 0:
            raise ConfigError(
                ErrorKind.INVALID_SEQUENCE_NUMBER, field="sequence_number", value=self.sequence_number
            )

    def fee(self) -> Fee:
        try:
            gas_fee = parse_coin(self.gas_fee)
        except CoinParseError as exc:
            raise ConfigError(
                ErrorKind.INVALID_GAS_FEE, field="gas_fee", value=self.gas_fee, detail=str(exc)
            ) from exc
        return Fee(gas_wanted=self.gas_wanted, gas_fee=gas_fee)


@dataclass(frozen=True)
class SponsorTxCfg:
    """Parameters for a transaction whose fees another account will pay."""

    base: BaseTxCfg
    sponsor_address: Address

    @property
    def gas_fee(self) -> str:
        return self.base.gas_fee

    @property
    def gas_wanted(self) -> int:
        return self.base.gas_wanted

    @property
    def account_number(self) -> int:
        return self.base.account_number

    @property
    def sequence_number(self) -> int:
        return self.base.sequence_number

    @property
    def memo(self) -> str:
        return self.base.memo

    def validate(self) -> None:
        self.base.validate()
        if self.sponsor_address.is_zero():
            raise ConfigError(
                ErrorKind.INVALID_SPONSOR_ADDRESS,
                field="sponsor_address",
                value=str(self.sponsor_address),
            )


class ChainMsgBuilder(MsgVisitor[ChainMsg]):
    """Converts validated descriptors to chain messages sent by *sender*."""

    def __init__(self, sender: Address) -> None:
        self.sender = sender

    def visit_call(self, msg: MsgCall) -> ChainMsg:
        return vm.MsgCall(
            caller=self.sender,
            pkg_path=msg.pkg_path,
            func=msg.func_name,
            args=msg.args,
            send=msg.coins(),
        )

    def visit_send(self, msg: MsgSend) -> ChainMsg:
        return bank.MsgSend(from_address=self.sender, to_address=msg.to_address, amount=msg.coins())

    def visit_run(self, msg: MsgRun) -> ChainMsg:
        if msg.package is None:
            raise ValidationError(ErrorKind.EMPTY_PACKAGE, field="package")
        return vm.MsgRun(caller=self.sender, package=msg.package.as_run_script(), send=msg.coins())

    def visit_add_package(self, msg: MsgAddPackage) -> ChainMsg:
        if msg.package is None:
            raise ValidationError(ErrorKind.EMPTY_PACKAGE, field="package")
        return vm.MsgAddPackage(creator=self.sender, package=msg.package, deposit=msg.coins())

    def visit_noop(self, msg: MsgNoop) -> ChainMsg:
        return vm.MsgNoop(caller=msg.caller)


def to_chain_msg(msg: Any, sender: Address) -> ChainMsg:
    """Validate *msg*, parse its coins and bind it to *sender*."""

    if not is_msg(msg):
        raise ConsistencyError(ErrorKind.INVALID_MSG_TYPE, value=type(msg).__name__)
    msg.validate()
    return msg.accept(ChainMsgBuilder(sender))


def convert_msgs(msgs: Iterable[Any], sender: Address, expected: type) -> Tuple[ChainMsg, ...]:
    """Convert a homogeneous list of *expected* descriptors, failing fast."""

    converted = []
    for msg in msgs:
        if not isinstance(msg, expected):
            raise ConsistencyError(
                ErrorKind.INVALID_MSG_TYPE,
                value=type(msg).__name__,
                detail=f"expected {expected.__name__}, got {type(msg).__name__}",
            )
        converted.append(to_chain_msg(msg, sender))
    return tuple(converted)


def assemble_tx(cfg: BaseTxCfg, msgs: Iterable[ChainMsg]) -> Tx:
    """Pack chain messages, the parsed fee and the memo into an unsigned Tx."""

    tx = Tx(msgs=tuple(msgs), fee=cfg.fee(), signatures=(), memo=cfg.memo)
    logger.debug(
        "Assembled tx with %d msgs, gas_wanted=%d gas_fee=%s",
        len(tx.msgs),
        tx.fee.gas_wanted,
        tx.fee.gas_fee,
    )
    return tx


def query_account(rpc: QueryClient, address: Address) -> BaseAccount | None:
    """Fetch the account state for *address*; ``None`` if the chain has none."""

    try:
        result = rpc.abci_query(ACCOUNT_QUERY_PATH.format(address=address))
    except Exception as exc:
        raise NetworkError(ErrorKind.QUERY_FAILED, value=str(address), detail=str(exc)) from exc
    if result.is_err():
        raise NetworkError(
            ErrorKind.QUERY_FAILED,
            value=str(address),
            detail=result.response.log or str(result.response.error),
        )
    if not result.data or result.data.strip() == b"null":
        return None
    try:
        payload = json.loads(result.data)
    except ValueError as exc:
        raise NetworkError(
            ErrorKind.QUERY_FAILED, value=str(address), detail="unexpected account payload"
        ) from exc
    account = payload.get("BaseAccount", payload) if isinstance(payload, dict) else None
    if not isinstance(account, dict):
        raise NetworkError(ErrorKind.QUERY_FAILED, value=str(address), detail="unexpected account payload")
    return BaseAccount.from_json(account)


def resolve_account_sequence(
    rpc: QueryClient,
    address: Address,
    account_number: int,
    sequence_number: int,
    *,
    allow_missing: bool = False,
) -> tuple[int, int]:
    """Return ``(account_number, sequence_number)`` for signing.

    The chain is only queried when both supplied values are zero; any other
    combination is used verbatim. With *allow_missing*, an account unknown to
    the chain resolves to ``(0, 0)`` instead of failing.
    """

    if account_number < 0:
        raise ConfigError(ErrorKind.INVALID_ACCOUNT_NUMBER, field="account_number", value=account_number)
    if sequence_number < 0:
        raise ConfigError(ErrorKind.INVALID_SEQUENCE_NUMBER, field="sequence_number", value=sequence_number)
    if account_number != 0 or sequence_number != 0:
        return account_number, sequence_number

    logger.debug("Resolving account number and sequence for %s", address)
    try:
        account = query_account(rpc, address)
    except NetworkError:
        raise
    except Exception as exc:
        raise NetworkError(ErrorKind.QUERY_FAILED, value=str(address), detail=str(exc)) from exc

    if account is None:
        if allow_missing:
            logger.info("Account %s has no on-chain state yet; signing with 0/0", address)
            return 0, 0
        raise NetworkError(ErrorKind.QUERY_FAILED, value=str(address), detail=f"account {address} not found")
    return account.account_number, account.sequence
