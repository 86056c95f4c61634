# edge_deployer/core/errors.py

from enum import Enum


class StatusCode(Enum):
    """Caller facing error class."""

    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    UNIMPLEMENTED = "UNIMPLEMENTED"
    INTERNAL = "INTERNAL"


# -----------------------------
# Base Errors
# -----------------------------

class DeployerError(Exception):
    """Base class for all deployer errors."""
    code = StatusCode.INTERNAL


# -----------------------------
# Validation Errors
# -----------------------------

class ApplicationValidationError(DeployerError):
    """Invalid cores, memory or other request field."""
    code = StatusCode.INVALID_ARGUMENT


class UnsupportedOperation(DeployerError):
    """Source variant or application type not implemented."""
    code = StatusCode.UNIMPLEMENTED


# -----------------------------
# Conflict Errors
# -----------------------------

class ApplicationNotFound(DeployerError):
    code = StatusCode.NOT_FOUND


class ApplicationAlreadyDeployed(DeployerError):
    code = StatusCode.ALREADY_EXISTS


class ApplicationNotDeployed(DeployerError):
    """Undeploy requested for an application without a deployed record."""
    code = StatusCode.FAILED_PRECONDITION


# -----------------------------
# Internal Errors
# -----------------------------

class DeploymentFailed(DeployerError):
    pass


class ImageFetchError(DeployerError):
    pass


class BackendError(DeployerError):
    """Container engine or hypervisor call failed."""
    pass


class MetadataPersistenceError(DeployerError):
    pass
