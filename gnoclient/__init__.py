"""Client library for building, signing and broadcasting gno transactions."""

from .broadcast import SimulateMode, Submission, SubmissionDriver, TxState
from .client import Client
from .coins import Coin, CoinParseError, Coins, parse_coin, parse_coins
from .config import ConfigurationError, RPCConfig, load_rpc_config
from .crypto import Address, ZERO_ADDRESS
from .errors import (
    ChainError,
    CheckTxError,
    ConfigError,
    ConsistencyError,
    DeliverTxError,
    EncodingError,
    ErrorKind,
    GnoClientError,
    NetworkError,
    SignError,
    SimulationError,
    ValidationError,
)
from .msgs import MsgAddPackage, MsgCall, MsgNoop, MsgRun, MsgSend, MsgType
from .package import MemFile, MemPackage
from .results import BroadcastTxCommitResult, GnoEvent
from .rpc_client import GnoRPCClient
from .signer import PrivKeySigner, SignCfg, Signer
from .std import Tx
from .tx_builder import BaseTxCfg, SponsorTxCfg

__all__ = [
    "Client",
    "BaseTxCfg",
    "SponsorTxCfg",
    "MsgCall",
    "MsgSend",
    "MsgRun",
    "MsgAddPackage",
    "MsgNoop",
    "MsgType",
    "MemFile",
    "MemPackage",
    "Coin",
    "Coins",
    "CoinParseError",
    "parse_coin",
    "parse_coins",
    "Address",
    "ZERO_ADDRESS",
    "Tx",
    "Signer",
    "SignCfg",
    "PrivKeySigner",
    "GnoRPCClient",
    "RPCConfig",
    "ConfigurationError",
    "load_rpc_config",
    "BroadcastTxCommitResult",
    "GnoEvent",
    "SimulateMode",
    "Submission",
    "SubmissionDriver",
    "TxState",
    "ErrorKind",
    "GnoClientError",
    "ConfigError",
    "ValidationError",
    "ConsistencyError",
    "SignError",
    "EncodingError",
    "NetworkError",
    "ChainError",
    "CheckTxError",
    "DeliverTxError",
    "SimulationError",
]
