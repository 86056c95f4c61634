#tests\conftest.py

"""Pytest configuration and fixtures."""

import logging
from pathlib import Path

import pytest

from edge_deployer.backends.base import Backend
from edge_deployer.core.errors import BackendError, ImageFetchError
from edge_deployer.core.metadata import AppMetadata
from edge_deployer.core.models import Application, AppType, HttpsSource
from edge_deployer.core.validation import ApplicationValidator
from edge_deployer.infrastructure.memory.repository import InMemoryMetadataRepository
from edge_deployer.infrastructure.sql.database import (
    create_db_engine,
    drop_db,
    get_session_factory,
    init_db,
)
from edge_deployer.infrastructure.sql.repository import SqlMetadataRepository
from edge_deployer.orchestrator.deployment_orchestrator import DeploymentOrchestrator

MAX_CORES = 4
MAX_APP_MEM = 1024


class FakeBackend(Backend):
    """Records calls and hands out sequential handles."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        self.deployed = []
        self.undeployed = []
        self.fail_deploy = False
        self.fail_undeploy = False
        self._counter = 0

    def deploy(self, dapp, image_path: Path) -> str:
        if self.fail_deploy:
            raise BackendError("ContainerCreate failed: boom")
        self._counter += 1
        self.deployed.append((dapp.app_id, image_path))
        return f"{self.prefix}-{self._counter}"

    def undeploy(self, dapp) -> None:
        if self.fail_undeploy:
            raise BackendError(f"Undeploy({dapp.deployed_id}) failed: boom")
        self.undeployed.append(dapp.app_id)


class FakeDownloader:
    """Writes a small payload instead of fetching the URL."""

    def __init__(self):
        self.calls = []
        self.fail = False

    def __call__(self, url, target):
        self.calls.append((url, Path(target)))
        if self.fail:
            raise ImageFetchError("unexpected HTTP code 404 returned")
        Path(target).write_bytes(b"image-bytes")


@pytest.fixture
def apps_dir(tmp_path):
    return tmp_path / "applications"


@pytest.fixture
def repository():
    return InMemoryMetadataRepository()


@pytest.fixture
def metadata(repository, apps_dir):
    return AppMetadata(repository, apps_dir)


@pytest.fixture
def container_backend():
    return FakeBackend("container")


@pytest.fixture
def vm_backend():
    return FakeBackend("vm")


@pytest.fixture
def downloader():
    return FakeDownloader()


@pytest.fixture
def test_logger():
    logger = logging.getLogger("tests.orchestrator")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture
def orchestrator(metadata, container_backend, vm_backend, downloader, test_logger):
    return DeploymentOrchestrator(
        metadata=metadata,
        backends={
            AppType.CONTAINER: container_backend,
            AppType.VM: vm_backend,
        },
        downloader=downloader,
        validator=ApplicationValidator(max_cores=MAX_CORES, max_app_mem=MAX_APP_MEM),
        logger=test_logger,
    )


@pytest.fixture
def sample_app():
    """The app1 example: 2 cores, 256 MiB."""
    return Application(
        id="app1",
        cores=2,
        memory=256,
        source=HttpsSource("https://example/img.tar"),
    )


@pytest.fixture
def sql_engine(tmp_path):
    """SQLite engine with all tables created."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'metadata.db'}")
    init_db(engine)

    yield engine

    drop_db(engine)
    engine.dispose()


@pytest.fixture
def sql_repository(sql_engine):
    return SqlMetadataRepository(session_factory=get_session_factory(sql_engine))
