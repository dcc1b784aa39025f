"""Signing, submission and classification of transactions.

A submission moves through ``UNSIGNED -> SIGNED -> SUBMITTED`` and ends in
``COMMITTED`` or ``REJECTED``. The outcome of ``broadcast_tx_commit`` has two
tiers: a CheckTx error means the mempool refused the transaction and nothing
was spent; a DeliverTx error means it was executed in a block and failed,
which is final. The two are reported as different exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from .codec import Codec
from .errors import (
    CheckTxError,
    DeliverTxError,
    ErrorKind,
    GnoClientError,
    NetworkError,
    SignError,
    SimulationError,
)
from .results import ABCIQueryResult, BroadcastTxCommitResult
from .signer import SignCfg, Signer
from .std import Tx

logger = logging.getLogger(__name__)

SIMULATE_QUERY_PATH = ".app/simulate"


class BroadcastClient(Protocol):
    def broadcast_tx_commit(self, tx_bytes: bytes) -> BroadcastTxCommitResult:
        ...

    def abci_query(self, path: str, data: bytes = b"") -> ABCIQueryResult:
        ...


class TxState(str, Enum):
    UNSIGNED = "unsigned"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    COMMITTED = "committed"
    REJECTED = "rejected"


class SimulateMode(str, Enum):
    """How a broadcast interacts with the node's dry-run endpoint."""

    TEST = "test"  # simulate, then broadcast if the simulation passed
    SKIP = "skip"
    ONLY = "only"  # dry run, never broadcast


_TERMINAL = {TxState.COMMITTED, TxState.REJECTED}


@dataclass
class Submission:
    """Tracks one submission attempt of one transaction."""

    tx: Tx
    state: TxState = TxState.UNSIGNED
    result: BroadcastTxCommitResult | None = None
    error: GnoClientError | None = None

    def advance(self, state: TxState) -> None:
        if self.state in _TERMINAL:
            raise RuntimeError(f"submission already {self.state.value}")
        logger.debug("Submission %s -> %s", self.state.value, state.value)
        self.state = state

    def reject(self, error: GnoClientError) -> GnoClientError:
        self.advance(TxState.REJECTED)
        self.error = error
        return error


def classify_result(result: BroadcastTxCommitResult) -> None:
    """Raise the matching :class:`ChainError` for a failed commit result.

    DeliverTx is only looked at once CheckTx has passed.
    """

    if result.check_tx.is_err():
        raise CheckTxError(log=result.check_tx.log, error=result.check_tx.error, result=result)
    if result.deliver_tx.is_err():
        raise DeliverTxError(log=result.deliver_tx.log, error=result.deliver_tx.error, result=result)


class SubmissionDriver:
    """Signs, serializes and broadcasts transactions through a node."""

    def __init__(self, signer: Signer, rpc: BroadcastClient, codec: Codec) -> None:
        self.signer = signer
        self.rpc = rpc
        self.codec = codec

    def sign(self, tx: Tx, account_number: int, sequence_number: int) -> Tx:
        cfg = SignCfg(
            tx=tx,
            sequence_number=sequence_number,
            account_number=account_number,
            chain_id=self.signer.chain_id,
        )
        try:
            return self.signer.sign(cfg)
        except GnoClientError:
            raise
        except Exception as exc:
            raise SignError(ErrorKind.SIGN_FAILED, detail=str(exc)) from exc

    def simulate(self, tx: Tx) -> ABCIQueryResult:
        """Dry-run a signed transaction; raises :class:`SimulationError` on failure."""

        tx_bytes = self.codec.marshal_tx(tx)
        try:
            result = self.rpc.abci_query(SIMULATE_QUERY_PATH, tx_bytes)
        except Exception as exc:
            raise NetworkError(ErrorKind.QUERY_FAILED, value=SIMULATE_QUERY_PATH, detail=str(exc)) from exc
        if result.is_err():
            logger.warning("Simulation failed: %s", result.response.log)
            raise SimulationError(log=result.response.log, error=result.response.error, result=result)
        return result

    def run(
        self,
        submission: Submission,
        account_number: int,
        sequence_number: int,
        *,
        simulate: SimulateMode = SimulateMode.SKIP,
    ) -> BroadcastTxCommitResult:
        """Drive *submission* to a terminal state and return the commit result."""

        try:
            signed = self.sign(submission.tx, account_number, sequence_number)
        except GnoClientError as exc:
            raise submission.reject(exc)
        submission.tx = signed
        submission.advance(TxState.SIGNED)

        try:
            tx_bytes = self.codec.marshal_tx(signed)
            if simulate is SimulateMode.TEST:
                self.simulate(signed)
        except GnoClientError as exc:
            raise submission.reject(exc)

        try:
            result = self.rpc.broadcast_tx_commit(tx_bytes)
        except Exception as exc:
            error = NetworkError(ErrorKind.BROADCAST_FAILED, detail=str(exc))
            raise submission.reject(error) from exc
        submission.advance(TxState.SUBMITTED)
        submission.result = result

        try:
            classify_result(result)
        except (CheckTxError, DeliverTxError) as exc:
            logger.warning("Transaction rejected (%s): %s", exc.kind.value, exc.log)
            raise submission.reject(exc)

        submission.advance(TxState.COMMITTED)
        logger.info(
            "Transaction committed at height %d (hash=%s gas_wanted=%d gas_used=%d)",
            result.height,
            result.hash_hex,
            result.gas_wanted,
            result.gas_used,
        )
        return result
