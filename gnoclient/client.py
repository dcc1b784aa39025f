"""High level client for building, signing and broadcasting gno transactions."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol, Sequence

from .broadcast import SimulateMode, Submission, SubmissionDriver
from .codec import AminoJSONCodec, Codec
from .crypto import Address
from .errors import ConfigError, ConsistencyError, ErrorKind, NetworkError
from .msgs import MsgAddPackage, MsgCall, MsgRun, MsgSend
from .results import ABCIQueryResult, BroadcastTxCommitResult
from .signer import Signer
from .sponsor import build_sponsor_batch, verify_sponsor_tx
from .std import BaseAccount, ChainMsg, Tx
from .tx_builder import (
    BaseTxCfg,
    SponsorTxCfg,
    assemble_tx,
    convert_msgs,
    query_account,
    resolve_account_sequence,
)

logger = logging.getLogger(__name__)

QRENDER_PATH = "vm/qrender"
QEVAL_PATH = "vm/qeval"


class RPCClient(Protocol):
    def abci_query(self, path: str, data: bytes = b"") -> ABCIQueryResult:
        ...

    def broadcast_tx_commit(self, tx_bytes: bytes) -> BroadcastTxCommitResult:
        ...


class Client:
    """Entry point for transaction construction and submission.

    A client only holds references to its signer, RPC client and codec. It
    keeps no per-call state and may be shared, but submissions from the same
    account have to be serialized by the caller or sequence numbers collide.

    Example:
        >>> client = Client(PrivKeySigner.from_env(), GnoRPCClient.from_env())
        >>> cfg = BaseTxCfg(gas_fee="10000ugnot", gas_wanted=2_000_000)
        >>> client.call(cfg, MsgCall("gno.land/r/demo/boards", "CreateBoard", ("news",)))
    """

    def __init__(
        self,
        signer: Signer | None,
        rpc_client: RPCClient | None,
        codec: Codec | None = None,
        *,
        simulate: SimulateMode = SimulateMode.SKIP,
    ) -> None:
        if simulate is SimulateMode.ONLY:
            raise ValueError("SimulateMode.ONLY never broadcasts; call Client.simulate() instead")
        self.signer = signer
        self.rpc_client = rpc_client
        self.codec = codec or AminoJSONCodec()
        self.simulate_mode = simulate

    def validate_client(self) -> None:
        if self.signer is None:
            raise ConfigError(ErrorKind.MISSING_SIGNER, field="signer")
        if self.rpc_client is None:
            raise ConfigError(ErrorKind.MISSING_RPC_CLIENT, field="rpc_client")
        self.signer.validate()

    def _driver(self) -> SubmissionDriver:
        self.validate_client()
        return SubmissionDriver(self.signer, self.rpc_client, self.codec)

    # Transaction construction --------------------------------------------

    def build_tx(self, cfg: BaseTxCfg, *msgs: Any) -> Tx:
        """Validate *msgs* (all of one variant) and assemble an unsigned Tx.

        Every message must be of the variant of the first one; the batch is
        bound to the client's signer as sender.
        """

        self.validate_client()
        cfg.validate()
        if not msgs:
            raise ConsistencyError(ErrorKind.NO_MESSAGES)
        chain_msgs = convert_msgs(msgs, self.signer.address, type(msgs[0]))
        return assemble_tx(cfg, chain_msgs)

    def _submit(
        self, cfg: BaseTxCfg, msgs: Sequence[Any], expected: type
    ) -> BroadcastTxCommitResult:
        self.validate_client()
        cfg.validate()
        if not msgs:
            raise ConsistencyError(ErrorKind.NO_MESSAGES)
        chain_msgs = convert_msgs(msgs, self.signer.address, expected)
        return self._sign_and_broadcast(cfg, chain_msgs)

    def _sign_and_broadcast(
        self, cfg: BaseTxCfg, chain_msgs: Iterable[ChainMsg]
    ) -> BroadcastTxCommitResult:
        tx = assemble_tx(cfg, chain_msgs)
        account_number, sequence_number = resolve_account_sequence(
            self.rpc_client, self.signer.address, cfg.account_number, cfg.sequence_number
        )
        return self._driver().run(
            Submission(tx=tx), account_number, sequence_number, simulate=self.simulate_mode
        )

    def call(self, cfg: BaseTxCfg, *msgs: MsgCall) -> BroadcastTxCommitResult:
        """Call exported realm functions."""

        return self._submit(cfg, msgs, MsgCall)

    def send(self, cfg: BaseTxCfg, *msgs: MsgSend) -> BroadcastTxCommitResult:
        """Transfer coins."""

        return self._submit(cfg, msgs, MsgSend)

    def run(self, cfg: BaseTxCfg, *msgs: MsgRun) -> BroadcastTxCommitResult:
        """Execute ephemeral scripts as package ``main``."""

        return self._submit(cfg, msgs, MsgRun)

    def add_package(self, cfg: BaseTxCfg, *msgs: MsgAddPackage) -> BroadcastTxCommitResult:
        """Publish packages or realms."""

        return self._submit(cfg, msgs, MsgAddPackage)

    # Sponsorship ---------------------------------------------------------

    def sponsor(
        self, cfg: BaseTxCfg, sponsoree: Address, *msgs: Any
    ) -> BroadcastTxCommitResult:
        """Pay the fees for *msgs* sent on behalf of *sponsoree* and broadcast.

        The client's signer is the fee payer and signs the transaction.
        """

        self.validate_client()
        cfg.validate()
        batch = build_sponsor_batch(msgs, fee_payer=self.signer.address, sender=sponsoree)
        logger.info("Sponsoring %d msgs for %s", len(msgs), sponsoree)
        return self._sign_and_broadcast(cfg, batch)

    def build_sponsor_transaction(self, cfg: SponsorTxCfg, *msgs: Any) -> Tx:
        """Assemble an unsigned transaction for ``cfg.sponsor_address`` to pay.

        The messages act on behalf of the client's signer.
        """

        self.validate_client()
        cfg.validate()
        batch = build_sponsor_batch(
            msgs, fee_payer=cfg.sponsor_address, sender=self.signer.address
        )
        return assemble_tx(cfg.base, batch)

    def new_sponsor_transaction(self, cfg: SponsorTxCfg, *msgs: Any) -> Tx:
        """Build a sponsor transaction and sign it as the sponsoree for hand-off."""

        tx = self.build_sponsor_transaction(cfg, *msgs)
        account_number, sequence_number = resolve_account_sequence(
            self.rpc_client,
            self.signer.address,
            cfg.account_number,
            cfg.sequence_number,
            allow_missing=True,
        )
        return self._driver().sign(tx, account_number, sequence_number)

    def sign_transaction(self, tx: Tx, account_number: int = 0, sequence_number: int = 0) -> Tx:
        """Append the client's signature to *tx*."""

        self.validate_client()
        account_number, sequence_number = resolve_account_sequence(
            self.rpc_client, self.signer.address, account_number, sequence_number
        )
        return self._driver().sign(tx, account_number, sequence_number)

    def execute_sponsor_transaction(
        self, tx: Tx, account_number: int = 0, sequence_number: int = 0
    ) -> BroadcastTxCommitResult:
        """Countersign a pre-signed sponsor transaction as the fee payer and broadcast it."""

        self.validate_client()
        verify_sponsor_tx(tx)
        account_number, sequence_number = resolve_account_sequence(
            self.rpc_client, self.signer.address, account_number, sequence_number
        )
        logger.info("Executing sponsor transaction as %s", self.signer.address)
        return self._driver().run(
            Submission(tx=tx), account_number, sequence_number, simulate=self.simulate_mode
        )

    def simulate(self, tx: Tx) -> ABCIQueryResult:
        """Dry-run a signed transaction without broadcasting it."""

        self.validate_client()
        return self._driver().simulate(tx)

    # Queries -------------------------------------------------------------

    def query(self, path: str, data: bytes = b"") -> ABCIQueryResult:
        """Run a raw ABCI query; a failed query raises :class:`NetworkError`."""

        if self.rpc_client is None:
            raise ConfigError(ErrorKind.MISSING_RPC_CLIENT, field="rpc_client")
        try:
            result = self.rpc_client.abci_query(path, data)
        except Exception as exc:
            raise NetworkError(ErrorKind.QUERY_FAILED, value=path, detail=str(exc)) from exc
        if result.is_err():
            raise NetworkError(
                ErrorKind.QUERY_FAILED,
                value=path,
                detail=result.response.log or str(result.response.error),
            )
        return result

    def query_account(self, address: Address) -> BaseAccount | None:
        if self.rpc_client is None:
            raise ConfigError(ErrorKind.MISSING_RPC_CLIENT, field="rpc_client")
        return query_account(self.rpc_client, address)

    def render(self, pkg_path: str, args: str = "") -> str:
        """Return the output of ``Render(args)`` for the realm at *pkg_path*."""

        result = self.query(QRENDER_PATH, f"{pkg_path}:{args}".encode("utf-8"))
        return result.data.decode("utf-8")

    def qeval(self, pkg_path: str, expression: str) -> str:
        """Evaluate a read-only expression in the package at *pkg_path*."""

        result = self.query(QEVAL_PATH, f"{pkg_path}.{expression}".encode("utf-8"))
        return result.data.decode("utf-8")
