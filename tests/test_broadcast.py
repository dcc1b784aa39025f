import pytest

from gnoclient import vm
from gnoclient.broadcast import SimulateMode, Submission, SubmissionDriver, TxState, classify_result
from gnoclient.codec import AminoJSONCodec
from gnoclient.coins import parse_coin
from gnoclient.crypto import Address
from gnoclient.errors import CheckTxError, DeliverTxError, EncodingError, ErrorKind, NetworkError, SignError
from gnoclient.results import ABCIQueryResult, BroadcastTxCommitResult, ResponseBase, ResponseTx
from gnoclient.signer import SignCfg, Signer
from gnoclient.std import Fee, Signature, Tx

CALLER = Address(b"\x33" * 20)


class StubSigner(Signer):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail

    @property
    def address(self) -> Address:
        return CALLER

    def sign(self, cfg: SignCfg) -> Tx:
        if self.fail:
            raise RuntimeError("refused")
        return cfg.tx.with_signature(Signature(pub_key=None, signature=b"\x01"))


class StubRPC:
    def __init__(self, result: BroadcastTxCommitResult | None = None, fail: bool = False) -> None:
        self.result = result or BroadcastTxCommitResult(height=7)
        self.fail = fail

    def abci_query(self, path: str, data: bytes = b"") -> ABCIQueryResult:
        return ABCIQueryResult()

    def broadcast_tx_commit(self, tx_bytes: bytes) -> BroadcastTxCommitResult:
        if self.fail:
            raise TimeoutError("timed out")
        return self.result


class BrokenCodec(AminoJSONCodec):
    def marshal_tx(self, tx: Tx) -> bytes:
        raise EncodingError(ErrorKind.ENCODE_FAILED, detail="unsupported message")


def _tx() -> Tx:
    return Tx(
        msgs=(vm.MsgCall(caller=CALLER, pkg_path="p", func="f"),),
        fee=Fee(gas_wanted=1000, gas_fee=parse_coin("1ugnot")),
    )


def _failed(log: str) -> ResponseTx:
    return ResponseTx(base=ResponseBase(error={"@type": "/std.Error"}, log=log))


def test_successful_submission_reaches_committed() -> None:
    submission = Submission(tx=_tx())
    driver = SubmissionDriver(StubSigner(), StubRPC(), AminoJSONCodec())

    result = driver.run(submission, 1, 1)

    assert result.height == 7
    assert submission.state is TxState.COMMITTED
    assert submission.result is result
    assert submission.tx.is_signed()
    assert submission.error is None


@pytest.mark.parametrize(
    "signer, rpc, codec, error_type",
    [
        (StubSigner(fail=True), StubRPC(), AminoJSONCodec(), SignError),
        (StubSigner(), StubRPC(), BrokenCodec(), EncodingError),
        (StubSigner(), StubRPC(fail=True), AminoJSONCodec(), NetworkError),
        (StubSigner(), StubRPC(BroadcastTxCommitResult(check_tx=_failed("bad"))), AminoJSONCodec(), CheckTxError),
        (StubSigner(), StubRPC(BroadcastTxCommitResult(deliver_tx=_failed("bad"))), AminoJSONCodec(), DeliverTxError),
    ],
)
def test_failures_end_in_rejected(signer, rpc, codec, error_type) -> None:
    submission = Submission(tx=_tx())

    with pytest.raises(error_type) as excinfo:
        SubmissionDriver(signer, rpc, codec).run(submission, 1, 1)

    assert submission.state is TxState.REJECTED
    assert submission.error is excinfo.value


def test_terminal_states_cannot_be_left() -> None:
    submission = Submission(tx=_tx())
    SubmissionDriver(StubSigner(), StubRPC(), AminoJSONCodec()).run(submission, 1, 1)

    with pytest.raises(RuntimeError):
        submission.advance(TxState.SUBMITTED)


def test_classify_result_checks_check_tx_first() -> None:
    result = BroadcastTxCommitResult(check_tx=_failed("mempool full"), deliver_tx=_failed("vm panic"))

    with pytest.raises(CheckTxError) as excinfo:
        classify_result(result)

    assert excinfo.value.log == "mempool full"


def test_classify_result_accepts_clean_results() -> None:
    classify_result(BroadcastTxCommitResult())


class UnreachableRPC(StubRPC):
    def abci_query(self, path: str, data: bytes = b"") -> ABCIQueryResult:
        raise ConnectionError("connection refused")


def test_simulation_transport_failure_is_a_query_error() -> None:
    rpc = UnreachableRPC()
    submission = Submission(tx=_tx())

    with pytest.raises(NetworkError) as excinfo:
        SubmissionDriver(StubSigner(), rpc, AminoJSONCodec()).run(submission, 1, 1, simulate=SimulateMode.TEST)

    assert excinfo.value.kind is ErrorKind.QUERY_FAILED
    assert excinfo.value.value == ".app/simulate"
    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert submission.state is TxState.REJECTED
