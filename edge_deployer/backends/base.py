"""Execution backend contract."""

from abc import ABC, abstractmethod
from pathlib import Path

from edge_deployer.core.models import DeployedApp


class Backend(ABC):
    """Provisions and tears down the workload of one application type."""

    @abstractmethod
    def deploy(self, dapp: DeployedApp, image_path: Path) -> str:
        """
        Provision the workload from the staged image.

        Returns the backend handle to record on the application.
        """
        raise NotImplementedError

    @abstractmethod
    def undeploy(self, dapp: DeployedApp) -> None:
        """Remove every backend resource created by ``deploy``."""
        raise NotImplementedError
