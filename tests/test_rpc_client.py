import base64
import json

import pytest
import requests

from gnoclient.config import RPCConfig
from gnoclient.rpc_client import GnoRPCClient, RPCError, RPCTransportError


class StubResponse:
    def __init__(self, payload=None, status_code: int = 200, text: str | None = None) -> None:
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)
        self.url = "http://node:26657"

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class StubSession:
    def __init__(self, response: StubResponse | None = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.requests: list[dict] = []

    def post(self, url, data=None, headers=None, timeout=None):
        self.requests.append({"url": url, "body": json.loads(data), "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _client(session: StubSession) -> GnoRPCClient:
    return GnoRPCClient(RPCConfig(remote="http://node:26657/", timeout=5), session=session)  # type: ignore[arg-type]


def test_broadcast_tx_commit_sends_base64_tx() -> None:
    session = StubSession(StubResponse({"jsonrpc": "2.0", "id": "1", "result": {"height": "3"}}))

    result = _client(session).broadcast_tx_commit(b'{"msg":[]}')

    request = session.requests[0]
    assert request["url"] == "http://node:26657"
    assert request["timeout"] == 5
    assert request["body"]["method"] == "broadcast_tx_commit"
    assert base64.b64decode(request["body"]["params"]["tx"]) == b'{"msg":[]}'
    assert result.height == 3


def test_abci_query_encodes_path_and_data() -> None:
    payload = {"result": {"response": {"ResponseBase": {"Data": base64.b64encode(b"ok").decode()}, "Height": "4"}}}
    session = StubSession(StubResponse(payload))

    result = _client(session).abci_query("vm/qrender", b"gno.land/r/demo/hello:")

    params = session.requests[0]["body"]["params"]
    assert params["path"] == "vm/qrender"
    assert base64.b64decode(params["data"]) == b"gno.land/r/demo/hello:"
    assert result.data == b"ok"
    assert result.height == 4


def test_json_rpc_error_is_raised_even_with_http_500() -> None:
    payload = {"error": {"code": -32603, "message": "Internal error", "data": "tx already exists in cache"}}
    session = StubSession(StubResponse(payload, status_code=500))

    with pytest.raises(RPCError) as excinfo:
        _client(session).call("broadcast_tx_commit", {"tx": ""})

    assert excinfo.value.code == -32603
    assert "tx already exists in cache" in str(excinfo.value)


def test_http_errors_become_transport_errors() -> None:
    session = StubSession(StubResponse(None, status_code=502, text="bad gateway"))

    with pytest.raises(RPCTransportError) as excinfo:
        _client(session).status()

    assert excinfo.value.status_code == 502


def test_connection_errors_become_transport_errors() -> None:
    session = StubSession(error=requests.ConnectionError("refused"))

    with pytest.raises(RPCTransportError, match="GNO_RPC_REMOTE"):
        _client(session).status()


def test_malformed_json_is_a_transport_error() -> None:
    session = StubSession(StubResponse(None, text="<html>"))

    with pytest.raises(RPCTransportError, match="malformed"):
        _client(session).status()


def test_malformed_result_fields_are_transport_errors() -> None:
    payload = {"result": {"check_tx": {}, "deliver_tx": {}, "hash": "%%%", "height": "1"}}
    session = StubSession(StubResponse(payload))

    with pytest.raises(RPCTransportError, match="malformed broadcast_tx_commit result") as excinfo:
        _client(session).broadcast_tx_commit(b"{}")

    assert isinstance(excinfo.value.__cause__, ValueError)


def test_abci_query_rejects_non_base64_data() -> None:
    payload = {"result": {"response": {"ResponseBase": {"Data": "not base64!"}}}}
    session = StubSession(StubResponse(payload))

    with pytest.raises(RPCTransportError, match="malformed abci_query result"):
        _client(session).abci_query("vm/qrender", b"gno.land/r/demo/hello:")
