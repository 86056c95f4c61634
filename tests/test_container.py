"""Test settings and service wiring."""

import pytest

from edge_deployer.backends.docker_backend import DockerBackend
from edge_deployer.backends.libvirt_backend import LibvirtBackend
from edge_deployer.config import DeployerSettings
from edge_deployer.container import build_orchestrator
from edge_deployer.core.errors import ApplicationNotFound
from edge_deployer.core.models import AppType


class TestDeployerSettings:

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("EDGE_DEPLOYER_MAX_CORES", "16")
        monkeypatch.setenv("EDGE_DEPLOYER_IMAGE_ONLY_MODE", "true")

        settings = DeployerSettings()

        assert settings.max_cores == 16
        assert settings.image_only_mode is True

    def test_default_metadata_url_under_apps_dir(self, tmp_path):
        settings = DeployerSettings(apps_dir=tmp_path)

        assert settings.metadata_url == f"sqlite:///{tmp_path / 'metadata.db'}"

    def test_explicit_database_url(self, tmp_path):
        settings = DeployerSettings(apps_dir=tmp_path, database_url="sqlite://")

        assert settings.metadata_url == "sqlite://"


class TestBuildOrchestrator:

    @pytest.fixture
    def orchestrator(self, tmp_path):
        settings = DeployerSettings(apps_dir=tmp_path / "apps")
        return build_orchestrator(settings)

    def test_backends_wired(self, orchestrator):
        assert isinstance(orchestrator._backends[AppType.CONTAINER], DockerBackend)
        assert isinstance(orchestrator._backends[AppType.VM], LibvirtBackend)

    def test_sql_metadata_ready(self, orchestrator, tmp_path):
        assert orchestrator.recover() == []
        assert (tmp_path / "apps" / "metadata.db").exists()

        with pytest.raises(ApplicationNotFound):
            orchestrator.get_status("app1")
