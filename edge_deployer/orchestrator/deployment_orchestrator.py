# edge_deployer/orchestrator/deployment_orchestrator.py
"""Deployment orchestrator - drives applications through deploy/undeploy."""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from edge_deployer.backends.base import Backend
from edge_deployer.core.errors import (
    ApplicationAlreadyDeployed,
    ApplicationNotDeployed,
    ApplicationNotFound,
    ApplicationValidationError,
    DeploymentFailed,
    ImageFetchError,
    UnsupportedOperation,
)
from edge_deployer.core.locks import KeyedLock
from edge_deployer.core.metadata import AppMetadata
from edge_deployer.core.models import (
    Application,
    AppType,
    DeployedApp,
    HttpsSource,
    LifecycleStatus,
)
from edge_deployer.core.validation import ApplicationValidator

Downloader = Callable[[str, Union[str, Path]], None]


class DeploymentOrchestrator:
    """
    Orchestrates application deployments on the appliance.

    Deploy flow:
    1. Sanitize the request and refuse an already deployed ID
    2. Persist DEPLOYING so the record and its directory exist
    3. Download the image into the application directory
    4. Hand the image to the backend of the application type
    5. Persist the outcome, READY or ERROR, on every exit path

    Every call holds a per-application lock for its whole duration.
    """

    def __init__(
        self,
        metadata: AppMetadata,
        backends: Dict[AppType, Backend],
        downloader: Downloader,
        validator: ApplicationValidator,
        logger: Optional[logging.Logger] = None,
    ):
        self._metadata = metadata
        self._backends = dict(backends)
        self._download = downloader
        self._validator = validator
        self._logger = logger or logging.getLogger(__name__)
        self._locks = KeyedLock()

    # ============================================
    # DEPLOY
    # ============================================

    def deploy_container(self, app: Application) -> DeployedApp:
        return self._deploy(AppType.CONTAINER, app)

    def deploy_vm(self, app: Application) -> DeployedApp:
        return self._deploy(AppType.VM, app)

    def _deploy(self, app_type: AppType, app: Application) -> DeployedApp:
        backend = self._backend_for(app_type)

        with self._locks.hold(app.id):
            dapp = self._deploy_common(app_type, app)
            image_path = self._metadata.image_file_path(dapp.app_id)

            with self._metadata.persisting(dapp):
                # Status will be error unless explicitly reset
                dapp.app.status = LifecycleStatus.ERROR

                try:
                    self._download(dapp.url, image_path)
                except ImageFetchError as e:
                    self._logger.error(f"[{dapp.app_id}] image download failed: {e}")
                    raise ImageFetchError(
                        f"Image download for {dapp.app_id} failed: {e}"
                    ) from e

                handle = backend.deploy(dapp, image_path)
                dapp.set_deployed(handle)
                dapp.app.status = LifecycleStatus.READY

            self._logger.info(
                f"[{dapp.app_id}] deployed as {app_type.value} "
                f"(handle: '{dapp.deployed_id}')"
            )
            return dapp

    def _deploy_common(self, app_type: AppType, app: Application) -> DeployedApp:
        """Validate and record intent. Nothing is persisted on rejection."""
        url = self._validator.validate(app)

        try:
            existing = self._metadata.load(app.id)
        except ApplicationNotFound:
            existing = None
        if existing is not None and existing.is_deployed:
            raise ApplicationAlreadyDeployed(f"app {app.id} already deployed")

        dapp = self._metadata.new_deployed_app(
            app_type, replace(app, status=LifecycleStatus.DEPLOYING)
        )
        dapp.url = url

        # Initial save - creates the app directory if needed
        self._metadata.save(dapp, create_dir=True)
        self._logger.info(f"[{app.id}] deploying {app_type.value} from {url}")
        return dapp

    # ============================================
    # REDEPLOY
    # ============================================

    def redeploy(self, app_id: str, app: Optional[Application] = None) -> DeployedApp:
        """
        Undeploy then deploy again on the stored application type.

        Without ``app`` the stored descriptor and image URL are reused. Not a
        transaction: a failed deploy leaves the application undeployed.
        """
        with self._locks.hold(app_id):
            dapp = self._metadata.load(app_id)

            if app is None:
                app = Application(
                    id=dapp.app.id,
                    cores=dapp.app.cores,
                    memory=dapp.app.memory,
                    source=HttpsSource(dapp.url) if dapp.url else None,
                )
            elif app.id != app_id:
                raise ApplicationValidationError(
                    f"Application id mismatch: {app.id} != {app_id}"
                )

            self._logger.info(f"[{app_id}] redeploy running")
            self.undeploy(app_id)

            if dapp.type not in self._backends:
                raise UnsupportedOperation(f"not implemented app type {dapp.type}")
            return self._deploy(dapp.type, app)

    # ============================================
    # UNDEPLOY
    # ============================================

    def undeploy(self, app_id: str) -> DeployedApp:
        self._logger.info(f"Undeploy({app_id}) running")

        with self._locks.hold(app_id):
            try:
                dapp = self._metadata.load(app_id)
            except ApplicationNotFound as e:
                raise ApplicationNotDeployed(
                    f"Application {app_id} not found: {e}"
                ) from e
            if not dapp.is_deployed:
                raise ApplicationNotDeployed(f"Application {app_id} is not deployed")

            backend = self._backend_for(dapp.type)

            with self._metadata.persisting(dapp):
                try:
                    backend.undeploy(dapp)
                    dapp.set_undeployed()
                except Exception as e:
                    self._logger.error(f"Undeploy({app_id}) failed: {e}")
                    # We're in a bad state, the record stays deployed
                    dapp.app.status = LifecycleStatus.ERROR
                    raise DeploymentFailed(f"Undeploy({app_id}) failed: {e}") from e

                self._remove_image_file(app_id)
                # App is removed, no state left
                dapp.app.status = LifecycleStatus.UNKNOWN

            return dapp

    def _remove_image_file(self, app_id: str) -> None:
        path = self._metadata.image_file_path(app_id)
        try:
            path.unlink()
            self._logger.info(f"Deleted image file of {app_id}")
        except FileNotFoundError:
            pass
        except OSError as e:
            self._logger.warning(f"Failed to delete image file {path}: {e}")

    # ============================================
    # QUERIES
    # ============================================

    def get_status(self, app_id: str) -> DeployedApp:
        return self._metadata.load(app_id)

    def recover(self) -> List[DeployedApp]:
        """Report records that still reference a live backend resource."""
        deployed = self._metadata.deployed_apps()
        for dapp in deployed:
            self._logger.info(
                f"[recovery] {dapp.app_id} ({dapp.type.value}) presumed live, "
                f"handle '{dapp.deployed_id}', status {dapp.status.value}"
            )
        self._logger.info(f"[recovery] {len(deployed)} deployed application(s)")
        return deployed

    # ============================================
    # INTERNAL HELPERS
    # ============================================

    def _backend_for(self, app_type: AppType) -> Backend:
        backend = self._backends.get(app_type)
        if backend is None:
            raise UnsupportedOperation(f"not implemented app type {app_type}")
        return backend
