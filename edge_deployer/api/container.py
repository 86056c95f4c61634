#edge_deployer\api\container.py
from functools import lru_cache

from edge_deployer.container import build_orchestrator
from edge_deployer.orchestrator.deployment_orchestrator import DeploymentOrchestrator


@lru_cache(maxsize=1)
def get_orchestrator() -> DeploymentOrchestrator:
    return build_orchestrator()
