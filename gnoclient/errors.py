"""Error taxonomy for transaction construction and submission.

Every failure raised by the client carries an :class:`ErrorKind` so callers can
branch on ``exc.kind`` instead of matching message text. The enum value is the
human-readable message, which keeps ``str(exc)`` stable for logs and CLI output.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .results import ABCIQueryResult, BroadcastTxCommitResult


class ErrorKind(str, Enum):
    """Closed set of failure conditions."""

    # configuration
    MISSING_SIGNER = "missing Signer"
    MISSING_RPC_CLIENT = "missing RPCClient"
    INVALID_GAS_WANTED = "invalid gas wanted"
    INVALID_GAS_FEE = "invalid gas fee"
    INVALID_ACCOUNT_NUMBER = "invalid account number"
    INVALID_SEQUENCE_NUMBER = "invalid sequence number"
    INVALID_SPONSOR_ADDRESS = "invalid sponsor address"

    # message validation
    EMPTY_PKG_PATH = "empty pkg path"
    EMPTY_FUNC_NAME = "empty function name"
    INVALID_TO_ADDRESS = "invalid send to address"
    INVALID_AMOUNT = "invalid amount"
    EMPTY_PACKAGE = "empty package to run"

    # batch consistency
    NO_MESSAGES = "no messages provided"
    MIXED_MESSAGE_TYPES = "mixed message types not allowed"
    INVALID_MSG_TYPE = "invalid msg type"
    NO_SIGNATURES = "no signatures provided"
    INVALID_SPONSOR_TX = "invalid sponsor tx: first message must be a noop"

    SIGN_FAILED = "sign"
    ENCODE_FAILED = "marshaling tx binary bytes"
    QUERY_FAILED = "query account"
    BROADCAST_FAILED = "broadcasting bytes"

    CHECK_TX_FAILED = "check transaction failed"
    DELIVER_TX_FAILED = "deliver transaction failed"
    SIMULATE_FAILED = "simulate transaction failed"


class GnoClientError(RuntimeError):
    """Base class for every error raised by :mod:`gnoclient`."""

    def __init__(
        self,
        kind: ErrorKind,
        *,
        field: str | None = None,
        value: Any = None,
        detail: str | None = None,
    ) -> None:
        self.kind = kind
        self.field = field
        self.value = value
        self.detail = detail
        super().__init__(self._format())

    def _format(self) -> str:
        if self.detail:
            return f"{self.kind.value}: {self.detail}"
        return self.kind.value


class ConfigError(GnoClientError):
    """Client or base transaction configuration is unusable."""


class ValidationError(GnoClientError):
    """A message descriptor failed its structural checks."""


class ConsistencyError(GnoClientError):
    """A batch of messages (or a pre-signed transaction) is malformed as a whole."""


class SignError(GnoClientError):
    """The signer refused or failed to sign."""


class EncodingError(GnoClientError):
    """The codec could not serialize the transaction."""


class NetworkError(GnoClientError):
    """The node could not be reached or returned an unusable response."""


class ChainError(GnoClientError):
    """The chain rejected the transaction.

    ``result`` holds the full response so callers can still inspect gas usage
    and events on failure.
    """

    def __init__(
        self,
        kind: ErrorKind,
        *,
        log: str = "",
        error: Any = None,
        result: "BroadcastTxCommitResult | ABCIQueryResult | None" = None,
    ) -> None:
        self.log = log
        self.error = error
        self.result = result
        super().__init__(kind, value=error, detail=f"log:{log}")


class CheckTxError(ChainError):
    """Rejected before execution (mempool admission); nothing was spent."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(ErrorKind.CHECK_TX_FAILED, **kwargs)


class DeliverTxError(ChainError):
    """Included in a block but execution failed; the transaction is final."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(ErrorKind.DELIVER_TX_FAILED, **kwargs)


class SimulationError(ChainError):
    """The node's dry run of the transaction failed."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(ErrorKind.SIMULATE_FAILED, **kwargs)
