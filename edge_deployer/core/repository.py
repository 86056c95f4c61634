# edge_deployer/core/repository.py

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from edge_deployer.core.models import DeployedApp


class MetadataRepository(ABC):
    """
    Persistence contract for deployed application records.
    """

    @abstractmethod
    def get(self, app_id: str) -> Optional[DeployedApp]:
        """
        Fetch record by application ID.
        Returns None if not found.
        """
        raise NotImplementedError

    @abstractmethod
    def upsert(self, dapp: DeployedApp) -> None:
        """
        Persist the full record, creating it if absent.
        """
        raise NotImplementedError

    @abstractmethod
    def list_deployed(self) -> Iterable[DeployedApp]:
        """
        List records whose backend resource is presumed live.
        Used for recovery after a restart.
        """
        raise NotImplementedError
