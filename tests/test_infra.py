"""Tests for the workspace connection and the command-line entry points."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from infra import connect_workspace, ensure_compute, ensure_environment
from provisioning.config import ProvisionReport
from provisioning.errors import QuotaExceeded
from provisioning.resolver import Resolution
from scripts import provision_resources

WORKSPACE_VARS = ("AZURE_SUBSCRIPTION_ID", "AZURE_RESOURCE_GROUP", "AZURE_ML_WORKSPACE_NAME", "AZURE_ML_CONFIG_PATH")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for var in WORKSPACE_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


# ---- connect_workspace ----


@patch("infra.connect_workspace.DefaultAzureCredential")
def test_get_ml_client_requires_workspace_vars(mock_cred: MagicMock, clean_env) -> None:
    clean_env.setenv("AZURE_SUBSCRIPTION_ID", "sub")
    with pytest.raises(ValueError, match="AZURE_RESOURCE_GROUP"):
        connect_workspace.get_ml_client()


@patch("infra.connect_workspace.MLClient")
@patch("infra.connect_workspace.DefaultAzureCredential")
def test_get_ml_client_from_env(mock_cred: MagicMock, mock_client: MagicMock, clean_env) -> None:
    clean_env.setenv("AZURE_SUBSCRIPTION_ID", "sub")
    clean_env.setenv("AZURE_RESOURCE_GROUP", "rg")
    clean_env.setenv("AZURE_ML_WORKSPACE_NAME", "ws")
    connect_workspace.get_ml_client()
    mock_client.assert_called_once_with(
        credential=mock_cred.return_value,
        subscription_id="sub",
        resource_group_name="rg",
        workspace_name="ws",
    )


@patch("infra.connect_workspace.MLClient")
@patch("infra.connect_workspace.DefaultAzureCredential")
def test_get_ml_client_from_config_file(mock_cred: MagicMock, mock_client: MagicMock, clean_env) -> None:
    clean_env.setenv("AZURE_ML_CONFIG_PATH", "/tmp/config.json")
    connect_workspace.get_ml_client()
    mock_client.from_config.assert_called_once_with(credential=mock_cred.return_value, path="/tmp/config.json")


# ---- ensure_compute ----


@patch("infra.ensure_compute.get_or_create_compute")
@patch("infra.ensure_compute.get_ml_client")
def test_ensure_compute_resolves_cluster(mock_get_client: MagicMock, mock_resolve: MagicMock) -> None:
    mock_resolve.return_value = Resolution(name="aml-cluster", kind="compute", created=True, handle=MagicMock())
    ensure_compute.main(["--name", "aml-cluster", "--size", "STANDARD_DS11_V2", "--max-nodes", "4"])
    client, spec = mock_resolve.call_args.args
    assert client is mock_get_client.return_value
    assert spec.name == "aml-cluster"
    assert spec.min_nodes == 0
    assert spec.max_nodes == 4


@patch("infra.ensure_compute.get_or_create_compute")
@patch("infra.ensure_compute.get_ml_client")
def test_ensure_compute_rejects_bad_range(mock_get_client: MagicMock, mock_resolve: MagicMock) -> None:
    """Invalid node range exits before the workspace is contacted."""
    with pytest.raises(SystemExit) as info:
        ensure_compute.main(["--min-nodes", "5", "--max-nodes", "2"])
    assert info.value.code == 1
    mock_get_client.assert_not_called()
    mock_resolve.assert_not_called()


@patch("infra.ensure_compute.get_or_create_compute")
@patch("infra.ensure_compute.get_ml_client")
def test_ensure_compute_quota_exits(mock_get_client: MagicMock, mock_resolve: MagicMock) -> None:
    mock_resolve.side_effect = QuotaExceeded("no cores", name="cpu-cluster")
    with pytest.raises(SystemExit) as info:
        ensure_compute.main([])
    assert info.value.code == 1


# ---- ensure_environment ----


def test_build_spec_from_conda_file(tmp_path: Path) -> None:
    conda = tmp_path / "conda.yml"
    conda.write_text("name: x\ndependencies:\n  - numpy\n", encoding="utf-8")
    args = ensure_environment.parse_args(["--name", "training-env", "--conda-file", str(conda)])
    spec = ensure_environment.build_spec(args)
    assert spec.name == "training-env"
    assert spec.packages == ["numpy"]


def test_build_spec_user_managed() -> None:
    args = ensure_environment.parse_args(
        ["--name", "byo", "--user-managed", "--image", "myregistry.azurecr.io/train:1"]
    )
    spec = ensure_environment.build_spec(args)
    assert spec.user_managed
    assert spec.interpreter_path == "python"


@patch("infra.ensure_environment.get_or_create_environment")
@patch("infra.ensure_environment.get_ml_client")
def test_ensure_environment_rejects_empty_packages(mock_get_client: MagicMock, mock_resolve: MagicMock) -> None:
    with pytest.raises(SystemExit) as info:
        ensure_environment.main(["--name", "empty"])
    assert info.value.code == 1
    mock_resolve.assert_not_called()


@patch("infra.ensure_environment.get_or_create_environment")
@patch("infra.ensure_environment.get_ml_client")
def test_ensure_environment_inline_packages(mock_get_client: MagicMock, mock_resolve: MagicMock) -> None:
    handle = MagicMock(version="1")
    handle.name = "training-env"
    mock_resolve.return_value = Resolution(name="training-env", kind="environment", created=True, handle=handle)
    ensure_environment.main(["--name", "training-env", "--packages", "numpy", "--pip-packages", "mlflow"])
    _, spec = mock_resolve.call_args.args
    assert spec.packages == ["numpy"]
    assert spec.pip_packages == ["mlflow"]


# ---- provision_resources ----

BUNDLED_CONFIG = str(Path(__file__).resolve().parents[1] / "infra" / "resources.yml")


@patch("scripts.provision_resources.provision")
@patch("scripts.provision_resources.get_ml_client")
def test_provision_validate_only_skips_workspace(mock_get_client: MagicMock, mock_provision: MagicMock) -> None:
    """--validate-only checks the file without contacting the workspace."""
    provision_resources.main(["--config", BUNDLED_CONFIG, "--validate-only"])
    mock_get_client.assert_not_called()
    mock_provision.assert_not_called()


@patch("scripts.provision_resources.get_ml_client")
def test_provision_invalid_file_exits(mock_get_client: MagicMock, tmp_path: Path) -> None:
    path = tmp_path / "resources.yml"
    path.write_text("environments:\n  - requirements_file: requirements.txt\n", encoding="utf-8")
    with pytest.raises(SystemExit) as info:
        provision_resources.main(["--config", str(path)])
    assert info.value.code == 1
    mock_get_client.assert_not_called()


@patch("scripts.provision_resources.AzureComputeRegistry")
@patch("scripts.provision_resources.AzureEnvironmentRegistry")
@patch("scripts.provision_resources.get_ml_client")
def test_provision_list_prints_names(
    mock_get_client: MagicMock,
    mock_env_class: MagicMock,
    mock_compute_class: MagicMock,
    capsys: pytest.CaptureFixture,
) -> None:
    mock_env_class.return_value.list_names.return_value = ["training-env"]
    mock_compute_class.return_value.list_names.return_value = ["cpu-cluster"]
    provision_resources.main(["--list"])
    out = capsys.readouterr().out
    assert "training-env" in out
    assert "cpu-cluster" in out
    mock_env_class.assert_called_once_with(mock_get_client.return_value)


@patch("scripts.provision_resources.provision")
@patch("scripts.provision_resources.get_ml_client")
def test_provision_quota_exits(mock_get_client: MagicMock, mock_provision: MagicMock) -> None:
    mock_provision.side_effect = QuotaExceeded("no cores", name="cpu-cluster")
    with pytest.raises(SystemExit) as info:
        provision_resources.main(["--config", BUNDLED_CONFIG])
    assert info.value.code == 1


@patch("scripts.provision_resources.provision")
@patch("scripts.provision_resources.get_ml_client")
def test_provision_prints_summary(
    mock_get_client: MagicMock, mock_provision: MagicMock, capsys: pytest.CaptureFixture
) -> None:
    mock_provision.return_value = ProvisionReport(
        created=["compute/cpu-cluster"],
        reused=["environment/training-env"],
        references={"compute/cpu-cluster": "cpu-cluster", "environment/training-env": "training-env:2"},
    )
    provision_resources.main(["--config", BUNDLED_CONFIG])
    out = capsys.readouterr().out
    assert "Created: 1" in out
    assert "environment/training-env -> training-env:2" in out
