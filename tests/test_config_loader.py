from pathlib import Path

import pytest

from gnoclient.config import ConfigurationError, RPCConfig, load_rpc_config


def test_load_rpc_config_prefers_environment_over_yaml(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
        rpc:
          remote: http://filehost:1111
          chain_id: file-chain
          timeout: 12
        """
    )

    env_map = {
        "GNO_RPC_REMOTE": "https://envhost:3333",
        "GNO_CHAIN_ID": "env-chain",
        "GNO_RPC_TIMEOUT": "7.5",
    }

    config = load_rpc_config(config_path=config_path, env=env_map)

    assert isinstance(config, RPCConfig)
    assert config.remote == "https://envhost:3333"
    assert config.chain_id == "env-chain"
    assert config.timeout == 7.5


def test_load_rpc_config_reads_yaml_when_env_missing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / ".gnoclient.yaml"
    monkeypatch.setattr("gnoclient.config.DEFAULT_CONFIG_PATH", config_path)

    config_path.write_text(
        """
        rpc:
          remote: tcp://yamlhost:26657
          chain_id: test5
          timeout: 12
        """
    )

    config = load_rpc_config(env={})

    assert config.remote == "http://yamlhost:26657"
    assert config.chain_id == "test5"
    assert config.timeout == 12.0


def test_overrides_win_over_environment(tmp_path: Path) -> None:
    config = load_rpc_config(
        config_path=None,
        env={"GNOCLIENT_REMOTE": "envhost:1", "GNOCLIENT_CHAIN_ID": "env"},
        overrides={"remote": "http://flag:2", "chain_id": "flag", "timeout": None},
    )

    assert config.remote == "http://flag:2"
    assert config.chain_id == "flag"


def test_defaults_apply_without_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("gnoclient.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.yaml")

    config = load_rpc_config(env={})

    assert config.remote == "http://127.0.0.1:26657"
    assert config.chain_id == "dev"
    assert config.timeout == 30.0


def test_explicit_config_path_must_exist(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_rpc_config(config_path=tmp_path / "nope.yaml", env={})


@pytest.mark.parametrize(
    "env_map",
    [
        {"GNO_RPC_TIMEOUT": "soon"},
        {"GNO_RPC_TIMEOUT": "0"},
        {"GNO_RPC_REMOTE": "ftp://node"},
        {"GNO_CHAIN_ID": "  "},
    ],
)
def test_invalid_values_are_rejected(env_map: dict, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("gnoclient.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.yaml")

    with pytest.raises(ConfigurationError):
        load_rpc_config(env=env_map)


def test_rpc_section_must_be_a_mapping(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("rpc: [1, 2]\n")

    with pytest.raises(ConfigurationError):
        load_rpc_config(config_path=config_path, env={})
