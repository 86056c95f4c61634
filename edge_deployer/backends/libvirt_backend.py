# edge_deployer/backends/libvirt_backend.py
"""VM backend - defines KVM domains through libvirt."""

import logging
from pathlib import Path
from typing import Any, Callable, Optional

from edge_deployer.backends.base import Backend
from edge_deployer.backends.domain_xml import build_domain_xml
from edge_deployer.core.errors import BackendError
from edge_deployer.core.models import DeployedApp

logger = logging.getLogger(__name__)

# virDomainState values that need a destroy before undefine
VIR_DOMAIN_RUNNING = 1
VIR_DOMAIN_BLOCKED = 2
VIR_DOMAIN_PAUSED = 3
VIR_DOMAIN_SHUTDOWN = 4
VIR_DOMAIN_PMSUSPENDED = 7
ACTIVE_STATES = {
    VIR_DOMAIN_RUNNING,
    VIR_DOMAIN_BLOCKED,
    VIR_DOMAIN_PAUSED,
    VIR_DOMAIN_SHUTDOWN,
    VIR_DOMAIN_PMSUSPENDED,
}

VIR_ERR_NO_DOMAIN = 42
VIR_ERR_OPERATION_INVALID = 55


def open_libvirt(uri: str):
    """Open a read-write hypervisor connection."""
    import libvirt

    return libvirt.open(uri)


def _error_code(error: Exception) -> Optional[int]:
    get_code = getattr(error, "get_error_code", None)
    return get_code() if callable(get_code) else None


def _is_missing_domain(error: Exception) -> bool:
    return _error_code(error) == VIR_ERR_NO_DOMAIN


class LibvirtBackend(Backend):
    """Drives the hypervisor, the domain name is the backend handle."""

    def __init__(
        self,
        uri: str,
        emulator: str,
        vhost_socket: str,
        start_on_deploy: bool = False,
        connect: Optional[Callable[[str], Any]] = None,
    ):
        self._uri = uri
        self._emulator = emulator
        self._vhost_socket = vhost_socket
        self._start_on_deploy = start_on_deploy
        self._connect = connect or open_libvirt

    def _open(self):
        try:
            return self._connect(self._uri)
        except Exception as e:
            raise BackendError(f"Failed to connect to {self._uri}: {e}") from e

    def _close(self, conn) -> None:
        try:
            code = conn.close()
            if code is not None and code < 0:
                logger.error(f"Failed to close libvirt connection: code: {code}")
        except Exception as e:
            logger.error(f"Failed to close libvirt connection: {e}")

    # ============================================
    # DEPLOY
    # ============================================

    def deploy(self, dapp: DeployedApp, image_path: Path) -> str:
        app = dapp.app
        conn = self._open()
        try:
            xmldoc = build_domain_xml(
                name=app.id,
                cores=app.cores,
                memory=app.memory,
                disk_path=image_path,
                emulator=self._emulator,
                vhost_socket=self._vhost_socket,
            )
            logger.debug(f"XML doc for {app.id}:\n{xmldoc}")

            try:
                dom = conn.defineXML(xmldoc)
            except Exception as e:
                raise BackendError(f"Failed to define domain '{app.id}': {e}") from e
            logger.info(f"VM '{app.id}' defined")

            if self._start_on_deploy:
                try:
                    dom.create()
                except Exception as e:
                    self._undefine_quietly(dom, app.id)
                    raise BackendError(f"Failed to start domain '{app.id}': {e}") from e
                logger.info(f"VM '{app.id}' started")

            return app.id
        finally:
            self._close(conn)

    def _undefine_quietly(self, dom, name: str) -> None:
        try:
            dom.undefine()
        except Exception as e:
            logger.error(f"Failed to undefine '{name}' after start failure: {e}")

    # ============================================
    # UNDEPLOY
    # ============================================

    def undeploy(self, dapp: DeployedApp) -> None:
        name = dapp.app_id
        conn = self._open()
        try:
            try:
                dom = conn.lookupByName(name)
            except Exception as e:
                if _is_missing_domain(e):
                    logger.warning(f"Domain (VM) '{name}' already gone")
                    return
                raise BackendError(f"Failed to look up domain '{name}': {e}") from e

            state = None
            try:
                state, _reason = dom.state()
            except Exception as e:
                logger.error(f"Could not get domain '{name}' state: {e}")

            if state in ACTIVE_STATES:
                logger.info(f"Domain (VM) '{name}' is running - stopping before undeploy")
                try:
                    dom.destroy()
                except Exception as e:
                    raise BackendError(f"Failed to destroy '{name}': {e}") from e
            elif state is None:
                # Unknown state, a domain that is not running refuses destroy
                try:
                    dom.destroy()
                except Exception as e:
                    if _error_code(e) != VIR_ERR_OPERATION_INVALID:
                        raise BackendError(f"Failed to destroy '{name}': {e}") from e
                    logger.info(f"Domain (VM) '{name}' was not running")

            try:
                dom.undefine()
            except Exception as e:
                raise BackendError(f"Failed to undefine '{name}': {e}") from e
            logger.info(f"Domain (VM) '{name}' undefined")
        finally:
            self._close(conn)
