"""Application metadata store - records plus per-application directories."""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator, List

from edge_deployer.core.errors import ApplicationNotFound, MetadataPersistenceError
from edge_deployer.core.models import Application, AppType, DeployedApp
from edge_deployer.core.repository import MetadataRepository
from edge_deployer.core.validation import check_app_id

logger = logging.getLogger(__name__)

IMAGE_FILE_NAME = "image"


class AppMetadata:
    """
    Durable record of each deployed application.

    Records go through the repository; staged images live under
    ``<apps_dir>/<app_id>/``.
    """

    def __init__(self, repository: MetadataRepository, apps_dir: Path):
        self._repo = repository
        self._apps_dir = Path(apps_dir)

    # -------------------------
    # PATHS
    # -------------------------

    def app_dir(self, app_id: str) -> Path:
        check_app_id(app_id)
        return self._apps_dir / app_id

    def image_file_path(self, app_id: str) -> Path:
        return self.app_dir(app_id) / IMAGE_FILE_NAME

    # -------------------------
    # RECORDS
    # -------------------------

    def new_deployed_app(self, app_type: AppType, app: Application) -> DeployedApp:
        return DeployedApp(app=app, type=app_type)

    def load(self, app_id: str) -> DeployedApp:
        dapp = self._repo.get(app_id)
        if dapp is None:
            raise ApplicationNotFound(f"Application {app_id} not found")
        return dapp

    def deployed_apps(self) -> List[DeployedApp]:
        return list(self._repo.list_deployed())

    def save(self, dapp: DeployedApp, create_dir: bool = False) -> None:
        """
        Persist the full record.

        With ``create_dir`` the application directory is created first so
        the image download has somewhere to land.
        """
        if create_dir:
            try:
                self.app_dir(dapp.app_id).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise MetadataPersistenceError(
                    f"Failed to create directory for {dapp.app_id}: {e}"
                ) from e

        dapp.updated_at = datetime.now(timezone.utc)
        self._repo.upsert(dapp)

    @contextmanager
    def persisting(self, dapp: DeployedApp) -> Generator[DeployedApp, None, None]:
        """
        Save ``dapp`` on every exit path.

        Usage:
            with metadata.persisting(dapp):
                dapp.app.status = LifecycleStatus.ERROR
                ...

        A failed save on the success path raises. On a failing path it is
        logged so the original error is the one the caller sees.
        """
        try:
            yield dapp
        except BaseException:
            try:
                self.save(dapp)
            except MetadataPersistenceError as e:
                logger.error(f"Failed to save final state of {dapp.app_id}: {e}")
            raise
        self.save(dapp)
