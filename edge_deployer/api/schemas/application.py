from typing import Optional

from pydantic import BaseModel, Field

from edge_deployer.core.models import (
    Application,
    DeployedApp,
    HttpsSource,
    UnsupportedSource,
)


class ApplicationRequest(BaseModel):
    """Application descriptor."""
    id: str = Field(..., description="Caller chosen unique application ID")
    cores: int = Field(..., description="Core count")
    memory: int = Field(..., description="Memory in MiB")
    http_uri: Optional[str] = Field(default=None, description="HTTPS image URL")

    def to_domain(self) -> Application:
        if self.http_uri is not None:
            source = HttpsSource(http_uri=self.http_uri)
        else:
            source = UnsupportedSource(kind="none")
        return Application(
            id=self.id,
            cores=self.cores,
            memory=self.memory,
            source=source,
        )


class ApplicationResponse(BaseModel):
    id: str
    type: str
    status: str
    cores: int
    memory: int
    url: str
    deployed: bool
    deployed_id: str

    @classmethod
    def from_domain(cls, dapp: DeployedApp) -> "ApplicationResponse":
        return cls(
            id=dapp.app_id,
            type=dapp.type.value,
            status=dapp.status.value,
            cores=dapp.app.cores,
            memory=dapp.app.memory,
            url=dapp.url,
            deployed=dapp.is_deployed,
            deployed_id=dapp.deployed_id,
        )
