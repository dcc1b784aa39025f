"""JSON-RPC client for tm2 nodes.

Only the endpoints the transaction pipeline needs are wrapped: ABCI queries
(account lookup, render, simulation) and ``broadcast_tx_commit``. Errors are
split the same way the node splits them: :class:`RPCTransportError` when the
endpoint cannot be reached or answers garbage, :class:`RPCError` when the node
answers with a JSON-RPC error object.
"""

from __future__ import annotations

import base64
import json
import logging
import uuid
from typing import Any, Dict, Optional

import requests
from requests import RequestException, Response

from .config import RPCConfig, load_rpc_config
from .results import ABCIQueryResult, BroadcastTxCommitResult, MalformedResultError

logger = logging.getLogger(__name__)


class RPCError(RuntimeError):
    """Raised when the node responds with a JSON-RPC error."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        detail = f"RPC error {code}: {message}"
        if data:
            detail = f"{detail} ({data})"
        super().__init__(detail)
        self.code = code
        self.message = message
        self.data = data


class RPCTransportError(RuntimeError):
    """Raised when the RPC endpoint is unreachable or returns malformed data."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GnoRPCClient:
    """Thin typed wrapper over a tm2 node's HTTP JSON-RPC interface.

    A single ``requests.Session`` is reused across calls; the client keeps no
    other state and can be shared by independent callers.
    """

    def __init__(self, config: RPCConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self._session = session or requests.Session()

    @classmethod
    def from_env(cls) -> "GnoRPCClient":
        """Instantiate a client using environment variables or config file."""

        return cls(load_rpc_config())

    def call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Perform a JSON-RPC request and return its ``result`` member."""

        payload = {
            "jsonrpc": "2.0",
            "id": str(uuid.uuid4()),
            "method": method,
            "params": params or {},
        }
        logger.debug("RPC call %s params=%s", method, params)
        try:
            response = self._session.post(
                self.config.base_url,
                data=json.dumps(payload),
                headers={"content-type": "application/json"},
                timeout=self.config.timeout,
            )
        except RequestException as exc:
            logger.error(
                "RPC connection failed: %s",
                exc,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            raise RPCTransportError(
                f"RPC connection to {self.config.base_url} failed. Ensure the node is reachable "
                "and GNO_RPC_REMOTE (or ~/.gnoclient.yaml) points to the right host and port."
            ) from exc
        self._raise_for_status(response)
        try:
            result = response.json()
        except ValueError as exc:
            logger.debug("RPC JSON parse error: %s", response.text, exc_info=True)
            raise RPCTransportError("RPC server returned malformed JSON") from exc
        if not isinstance(result, dict):
            raise RPCTransportError("RPC server returned an unexpected payload")
        if result.get("error"):
            error = result["error"]
            raise RPCError(error.get("code", -1), error.get("message", "unknown"), error.get("data"))
        return result.get("result")

    def _raise_for_status(self, response: Response) -> None:
        if response.ok:
            return
        # JSON-RPC errors may arrive with a 500; surface the body when it parses
        try:
            err_body = response.json()
        except ValueError:
            err_body = None
        if isinstance(err_body, dict) and err_body.get("error"):
            return
        logger.error("RPC HTTP error %s from %s", response.status_code, response.url)
        logger.error("RPC error body: %s", err_body if err_body is not None else response.text)
        raise RPCTransportError(
            f"RPC server returned HTTP {response.status_code}; check the remote URL.",
            status_code=response.status_code,
        )

    # Convenience wrappers -------------------------------------------------

    def status(self) -> Dict[str, Any]:
        return self.call("status")

    def abci_query(self, path: str, data: bytes = b"") -> ABCIQueryResult:
        params = {"path": path, "data": base64.b64encode(data).decode("ascii")}
        result = self.call("abci_query", params) or {}
        try:
            return ABCIQueryResult.from_json(result)
        except MalformedResultError as exc:
            logger.debug("Malformed abci_query result: %s", result)
            raise RPCTransportError(f"RPC server returned a malformed abci_query result: {exc}") from exc

    def broadcast_tx_commit(self, tx_bytes: bytes) -> BroadcastTxCommitResult:
        params = {"tx": base64.b64encode(tx_bytes).decode("ascii")}
        result = self.call("broadcast_tx_commit", params) or {}
        try:
            return BroadcastTxCommitResult.from_json(result)
        except MalformedResultError as exc:
            logger.debug("Malformed broadcast_tx_commit result: %s", result)
            raise RPCTransportError(
                f"RPC server returned a malformed broadcast_tx_commit result: {exc}"
            ) from exc
