from __future__ import annotations

import json
from pathlib import Path

import pytest

from gnoclient import vm
from gnoclient.crypto import Address
from gnoclient.errors import ConfigError, ErrorKind, NetworkError, ValidationError
from gnoclient.msgs import MsgAddPackage, MsgCall, MsgRun
from gnoclient.package import MemFile, MemPackage
from gnoclient.results import ABCIQueryResult, ResponseBase
from gnoclient.tx_builder import (
    BaseTxCfg,
    ChainMsgBuilder,
    SponsorTxCfg,
    assemble_tx,
    query_account,
    resolve_account_sequence,
    to_chain_msg,
)

OWNER = Address(b"\x44" * 20)


class StubRPC:
    def __init__(self, data: bytes = b"null", error=None, raises: Exception | None = None) -> None:
        self.data = data
        self.error = error
        self.raises = raises
        self.paths: list[str] = []

    def abci_query(self, path: str, data: bytes = b"") -> ABCIQueryResult:
        self.paths.append(path)
        if self.raises is not None:
            raise self.raises
        return ABCIQueryResult(response=ResponseBase(error=self.error, data=self.data, log="boom" if self.error else ""))


def test_assemble_tx_packs_fee_memo_and_msgs() -> None:
    cfg = BaseTxCfg(gas_fee="10000ugnot", gas_wanted=100000, memo="note")
    msg = to_chain_msg(MsgCall("p", "f", send="1ugnot"), OWNER)

    tx = assemble_tx(cfg, [msg])

    assert tx.msgs == (msg,)
    assert tx.fee.gas_wanted == 100000
    assert str(tx.fee.gas_fee) == "10000ugnot"
    assert tx.memo == "note"
    assert tx.signatures == ()


def test_gas_fee_must_be_a_single_coin() -> None:
    with pytest.raises(ConfigError) as excinfo:
        BaseTxCfg(gas_fee="1ugnot,2atom", gas_wanted=1).fee()

    assert excinfo.value.kind is ErrorKind.INVALID_GAS_FEE
    assert excinfo.value.field == "gas_fee"


def test_sponsor_cfg_forwards_base_fields() -> None:
    base = BaseTxCfg(gas_fee="1ugnot", gas_wanted=5, account_number=2, sequence_number=3, memo="m")
    cfg = SponsorTxCfg(base=base, sponsor_address=OWNER)

    assert (cfg.gas_fee, cfg.gas_wanted, cfg.account_number, cfg.sequence_number, cfg.memo) == (
        "1ugnot",
        5,
        2,
        3,
        "m",
    )
    with pytest.raises(ConfigError):
        SponsorTxCfg(base=BaseTxCfg(gas_fee="1ugnot", gas_wanted=0), sponsor_address=OWNER).validate()


def test_sponsor_cfg_rejects_the_zero_address() -> None:
    with pytest.raises(ConfigError) as excinfo:
        SponsorTxCfg(base=BaseTxCfg(gas_fee="1ugnot", gas_wanted=1), sponsor_address=Address()).validate()

    assert excinfo.value.kind is ErrorKind.INVALID_SPONSOR_ADDRESS
    assert excinfo.value.field == "sponsor_address"


@pytest.mark.parametrize(
    "cfg, kind, field",
    [
        (BaseTxCfg(gas_fee="1ugnot", gas_wanted=1, account_number=-1), ErrorKind.INVALID_ACCOUNT_NUMBER, "account_number"),
        (BaseTxCfg(gas_fee="1ugnot", gas_wanted=1, sequence_number=-5), ErrorKind.INVALID_SEQUENCE_NUMBER, "sequence_number"),
    ],
)
def test_negative_account_state_is_rejected(cfg: BaseTxCfg, kind: ErrorKind, field: str) -> None:
    with pytest.raises(ConfigError) as excinfo:
        cfg.validate()

    assert excinfo.value.kind is kind
    assert excinfo.value.field == field


def test_builder_refuses_messages_without_a_package() -> None:
    builder = ChainMsgBuilder(OWNER)

    with pytest.raises(ValidationError) as excinfo:
        builder.visit_run(MsgRun(None))
    assert excinfo.value.kind is ErrorKind.EMPTY_PACKAGE

    with pytest.raises(ValidationError):
        builder.visit_add_package(MsgAddPackage(None))


def test_run_conversion_copies_the_package() -> None:
    package = MemPackage("script", "gno.land/r/me/script", (MemFile("a.gno", "package script"),))

    msg = to_chain_msg(MsgRun(package), OWNER)

    assert isinstance(msg, vm.MsgRun)
    assert (msg.package.name, msg.package.path) == ("main", "")
    assert msg.package.files == package.files
    assert (package.name, package.path) == ("script", "gno.land/r/me/script")


def test_resolve_uses_account_state_when_both_zero() -> None:
    payload = {"BaseAccount": {"address": str(OWNER), "account_number": "11", "sequence": "6"}}
    rpc = StubRPC(data=json.dumps(payload).encode())

    assert resolve_account_sequence(rpc, OWNER, 0, 0) == (11, 6)
    assert rpc.paths == [f"auth/accounts/{OWNER}"]


def test_resolve_keeps_explicit_values() -> None:
    rpc = StubRPC()

    assert resolve_account_sequence(rpc, OWNER, 0, 1) == (0, 1)
    assert resolve_account_sequence(rpc, OWNER, 1, 0) == (1, 0)
    assert rpc.paths == []


def test_resolve_unknown_account() -> None:
    with pytest.raises(NetworkError) as excinfo:
        resolve_account_sequence(StubRPC(), OWNER, 0, 0)
    assert excinfo.value.kind is ErrorKind.QUERY_FAILED

    assert resolve_account_sequence(StubRPC(), OWNER, 0, 0, allow_missing=True) == (0, 0)


def test_resolve_wraps_transport_errors() -> None:
    cause = ConnectionError("refused")

    with pytest.raises(NetworkError, match="query account") as excinfo:
        resolve_account_sequence(StubRPC(raises=cause), OWNER, 0, 0)

    assert excinfo.value.__cause__ is cause


def test_resolve_reports_query_errors() -> None:
    with pytest.raises(NetworkError, match="boom"):
        resolve_account_sequence(StubRPC(error={"@type": "/std.Error"}), OWNER, 0, 0)


def test_resolve_rejects_negative_values_without_querying() -> None:
    rpc = StubRPC()

    with pytest.raises(ConfigError) as excinfo:
        resolve_account_sequence(rpc, OWNER, -1, 0)

    assert excinfo.value.kind is ErrorKind.INVALID_ACCOUNT_NUMBER
    assert rpc.paths == []


def test_query_account_rejects_malformed_json() -> None:
    with pytest.raises(NetworkError, match="unexpected account payload") as excinfo:
        query_account(StubRPC(data=b"{bad"), OWNER)

    assert excinfo.value.kind is ErrorKind.QUERY_FAILED
    assert isinstance(excinfo.value.__cause__, json.JSONDecodeError)


def test_package_from_dir_reads_sources_sorted(tmp_path: Path) -> None:
    (tmp_path / "b.gno").write_text("package pkg\n")
    (tmp_path / "a.gno").write_text("package pkg\n")
    (tmp_path / "gnomod.toml").write_text('module = "gno.land/p/demo/pkg"\n')
    (tmp_path / "image.png").write_bytes(b"\x89PNG")

    package = MemPackage.from_dir(tmp_path, pkg_path="gno.land/p/demo/pkg")

    assert package.name == "pkg"
    assert [f.name for f in package.files] == ["a.gno", "b.gno", "gnomod.toml"]


def test_package_from_dir_requires_directory(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        MemPackage.from_dir(tmp_path / "missing")
