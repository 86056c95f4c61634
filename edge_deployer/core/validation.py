#edge_deployer\core\validation.py
import re

from edge_deployer.core.models import Application, HttpsSource
from edge_deployer.core.errors import (
    ApplicationValidationError,
    UnsupportedOperation,
)

# Docker repository path component; also a single path segment
APP_ID_PATTERN = re.compile(r"[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*")
# Docker container names need at least two characters
APP_ID_MIN_LEN = 2
APP_ID_MAX_LEN = 128


def check_app_id(app_id: str) -> None:
    """
    Reject identifiers that cannot key a staged-image directory.

    Raises:
        ApplicationValidationError: If the id is empty or not a single
            lowercase path segment
    """
    if not app_id:
        raise ApplicationValidationError("Application id is required")
    if (
        not APP_ID_MIN_LEN <= len(app_id) <= APP_ID_MAX_LEN
        or not APP_ID_PATTERN.fullmatch(app_id)
    ):
        raise ApplicationValidationError(f"Application id invalid: {app_id!r}")


def sanitize_application(app: Application, max_cores: int, max_app_mem: int) -> None:
    # -------------------------
    # Identity
    # -------------------------
    check_app_id(app.id)

    # -------------------------
    # Resources
    # -------------------------
    if app.cores <= 0:
        raise ApplicationValidationError(f"Cores value incorrect: {app.cores}")
    elif app.cores > max_cores:
        raise ApplicationValidationError(
            f"Cores value over limit: {app.cores} > {max_cores}"
        )

    if app.memory <= 0:
        raise ApplicationValidationError(f"Memory value incorrect: {app.memory}")
    elif app.memory > max_app_mem:
        raise ApplicationValidationError(
            f"Memory value over limit: {app.memory} > {max_app_mem}"
        )


def resolve_source_url(app: Application) -> str:
    """Return the image URL of the only implemented source variant."""
    if isinstance(app.source, HttpsSource):
        if not app.source.http_uri:
            raise ApplicationValidationError("Application source URI is empty")
        return app.source.http_uri

    raise UnsupportedOperation("unknown app source")


class ApplicationValidator:
    def __init__(self, max_cores: int, max_app_mem: int):
        self._max_cores = max_cores
        self._max_app_mem = max_app_mem

    def validate(self, app: Application) -> str:
        """Sanitize limits and return the resolved image URL."""
        sanitize_application(app, self._max_cores, self._max_app_mem)
        return resolve_source_url(app)
