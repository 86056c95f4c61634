from typing import Optional

from fastapi import APIRouter, Body, Depends

from edge_deployer.api.container import get_orchestrator
from edge_deployer.api.schemas.application import (
    ApplicationRequest,
    ApplicationResponse,
)

router = APIRouter(prefix="/applications", tags=["applications"])


@router.post("/container", response_model=ApplicationResponse)
def deploy_container(
    request: ApplicationRequest,
    orchestrator=Depends(get_orchestrator),
):
    dapp = orchestrator.deploy_container(request.to_domain())
    return ApplicationResponse.from_domain(dapp)


@router.post("/vm", response_model=ApplicationResponse)
def deploy_vm(
    request: ApplicationRequest,
    orchestrator=Depends(get_orchestrator),
):
    dapp = orchestrator.deploy_vm(request.to_domain())
    return ApplicationResponse.from_domain(dapp)


@router.post("/{app_id}/redeploy", response_model=ApplicationResponse)
def redeploy(
    app_id: str,
    request: Optional[ApplicationRequest] = Body(default=None),
    orchestrator=Depends(get_orchestrator),
):
    app = request.to_domain() if request is not None else None
    dapp = orchestrator.redeploy(app_id, app)
    return ApplicationResponse.from_domain(dapp)


@router.delete("/{app_id}", response_model=ApplicationResponse)
def undeploy(
    app_id: str,
    orchestrator=Depends(get_orchestrator),
):
    dapp = orchestrator.undeploy(app_id)
    return ApplicationResponse.from_domain(dapp)


@router.get("/{app_id}", response_model=ApplicationResponse)
def get_status(
    app_id: str,
    orchestrator=Depends(get_orchestrator),
):
    return ApplicationResponse.from_domain(orchestrator.get_status(app_id))
