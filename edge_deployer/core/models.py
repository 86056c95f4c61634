"""Core domain models for deployed applications."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union


class LifecycleStatus(Enum):
    """Externally visible application lifecycle state."""

    UNKNOWN = "UNKNOWN"
    DEPLOYING = "DEPLOYING"
    READY = "READY"
    RUNNING = "RUNNING"
    ERROR = "ERROR"


class AppType(Enum):
    """Execution backend an application is deployed on."""

    CONTAINER = "CONTAINER"
    VM = "VM"


# ============================================
# APPLICATION SOURCE
# ============================================

@dataclass(frozen=True)
class HttpsSource:
    """Image served over HTTPS."""
    http_uri: str


@dataclass(frozen=True)
class UnsupportedSource:
    """Any source variant this deployer cannot fetch."""
    kind: str


ApplicationSource = Union[HttpsSource, UnsupportedSource]


# ============================================
# APPLICATION
# ============================================

@dataclass
class Application:
    """Caller supplied application descriptor."""

    id: str
    cores: int
    memory: int  # MiB
    source: Optional[ApplicationSource] = None
    status: LifecycleStatus = LifecycleStatus.UNKNOWN


@dataclass
class DeployedApp:
    """Persisted deployment record of one application."""

    app: Application
    type: AppType

    # Resolved image URL, the source itself is not persisted
    url: str = ""

    # Backend handle: container ID or domain name
    deployed_id: str = ""
    is_deployed: bool = False

    updated_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def app_id(self) -> str:
        return self.app.id

    @property
    def status(self) -> LifecycleStatus:
        return self.app.status

    # -------------------------
    # STATE TRANSITIONS
    # -------------------------

    def set_deployed(self, deployed_id: str) -> None:
        """Mark the record as backed by a provisioned resource."""
        if self.is_deployed:
            raise ValueError(
                f"Application {self.app_id} already deployed as "
                f"'{self.deployed_id}'"
            )

        self.is_deployed = True
        self.deployed_id = deployed_id
        self.updated_at = datetime.now(timezone.utc)

    def set_undeployed(self) -> None:
        """Clear the backend handle after a successful teardown."""
        if not self.is_deployed:
            raise ValueError(f"Application {self.app_id} is not deployed")

        self.is_deployed = False
        self.deployed_id = ""
        self.updated_at = datetime.now(timezone.utc)
