#edge_deployer\container.py

"""Dependency injection container - wires all services together."""

import logging
from typing import Optional

from edge_deployer.backends.docker_backend import DockerBackend
from edge_deployer.backends.libvirt_backend import LibvirtBackend
from edge_deployer.config import DeployerSettings, settings as default_settings
from edge_deployer.core.metadata import AppMetadata
from edge_deployer.core.models import AppType
from edge_deployer.core.validation import ApplicationValidator
from edge_deployer.images.downloader import ImageDownloader
from edge_deployer.infrastructure.sql.database import (
    create_db_engine,
    get_session_factory,
    init_db,
)
from edge_deployer.infrastructure.sql.repository import SqlMetadataRepository
from edge_deployer.orchestrator.deployment_orchestrator import DeploymentOrchestrator


def build_metadata(settings: DeployerSettings) -> AppMetadata:
    """SQL backed metadata store, tables created on first use."""
    settings.apps_dir.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(settings.metadata_url, echo=settings.echo_sql)
    init_db(engine)

    repository = SqlMetadataRepository(session_factory=get_session_factory(engine))
    return AppMetadata(repository, settings.apps_dir)


def build_orchestrator(
    settings: Optional[DeployerSettings] = None,
    logger: Optional[logging.Logger] = None,
) -> DeploymentOrchestrator:
    settings = settings or default_settings

    # ============================================
    # BACKENDS
    # ============================================

    backends = {
        AppType.CONTAINER: DockerBackend(image_only_mode=settings.image_only_mode),
        AppType.VM: LibvirtBackend(
            uri=settings.libvirt_uri,
            emulator=settings.qemu_emulator,
            vhost_socket=settings.vhost_socket,
            start_on_deploy=settings.vm_start_on_deploy,
        ),
    }

    # ============================================
    # SERVICES
    # ============================================

    return DeploymentOrchestrator(
        metadata=build_metadata(settings),
        backends=backends,
        downloader=ImageDownloader(timeout=settings.download_timeout),
        validator=ApplicationValidator(
            max_cores=settings.max_cores,
            max_app_mem=settings.max_app_mem,
        ),
        logger=logger,
    )
