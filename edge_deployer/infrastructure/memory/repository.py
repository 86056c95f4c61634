# edge_deployer/infrastructure/memory/repository.py

from copy import deepcopy
from threading import Lock
from typing import Iterable, Optional

from edge_deployer.core.models import DeployedApp
from edge_deployer.core.repository import MetadataRepository


class InMemoryMetadataRepository(MetadataRepository):
    """Records are copied in and out so callers never share state."""

    def __init__(self):
        self._store: dict[str, DeployedApp] = {}
        self._lock = Lock()

    def get(self, app_id: str) -> Optional[DeployedApp]:
        with self._lock:
            dapp = self._store.get(app_id)
            return deepcopy(dapp) if dapp else None

    def upsert(self, dapp: DeployedApp) -> None:
        with self._lock:
            self._store[dapp.app_id] = deepcopy(dapp)

    def list_deployed(self) -> Iterable[DeployedApp]:
        with self._lock:
            return [deepcopy(d) for d in self._store.values() if d.is_deployed]
