#edge_deployer\infrastructure\sql\repository.py

"""SQL metadata repository implementation using SQLAlchemy."""

from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from edge_deployer.core.errors import MetadataPersistenceError
from edge_deployer.core.models import Application, DeployedApp, HttpsSource
from edge_deployer.core.repository import MetadataRepository
from edge_deployer.infrastructure.sql.models import DeployedAppORM


# ============================================
# Mapping Functions
# ============================================

def orm_to_domain(orm: DeployedAppORM) -> DeployedApp:
    """Convert ORM model to domain model."""
    app = Application(
        id=orm.app_id,
        cores=orm.cores,
        memory=orm.memory,
        source=HttpsSource(orm.url) if orm.url else None,
        status=orm.status,
    )
    return DeployedApp(
        app=app,
        type=orm.app_type,
        url=orm.url,
        deployed_id=orm.deployed_id,
        is_deployed=orm.is_deployed,
        updated_at=orm.updated_at,
    )


def apply_domain(orm: DeployedAppORM, dapp: DeployedApp) -> DeployedAppORM:
    """Copy domain fields onto an ORM row."""
    orm.cores = dapp.app.cores
    orm.memory = dapp.app.memory
    orm.status = dapp.app.status
    orm.app_type = dapp.type
    orm.url = dapp.url
    orm.deployed_id = dapp.deployed_id
    orm.is_deployed = dapp.is_deployed
    orm.updated_at = dapp.updated_at
    return orm


# ============================================
# Repository Implementation
# ============================================

class SqlMetadataRepository(MetadataRepository):
    """SQLAlchemy implementation with an injected session factory."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _get_session(self) -> Session:
        return self._session_factory()

    # -------------------------
    # READ
    # -------------------------

    def get(self, app_id: str) -> Optional[DeployedApp]:
        session = self._get_session()
        try:
            orm = session.get(DeployedAppORM, app_id)
            if orm is None:
                return None
            return orm_to_domain(orm)
        except SQLAlchemyError as e:
            raise MetadataPersistenceError(
                f"Failed to load application {app_id}: {e}"
            ) from e
        finally:
            session.close()

    # -------------------------
    # WRITE
    # -------------------------

    def upsert(self, dapp: DeployedApp) -> None:
        session = self._get_session()
        try:
            orm = session.get(DeployedAppORM, dapp.app_id)
            if orm is None:
                orm = DeployedAppORM(app_id=dapp.app_id)
                session.add(orm)
            apply_domain(orm, dapp)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise MetadataPersistenceError(
                f"Failed to save application {dapp.app_id}: {e}"
            ) from e
        finally:
            session.close()

    # -------------------------
    # RECOVERY
    # -------------------------

    def list_deployed(self) -> Iterable[DeployedApp]:
        session = self._get_session()
        try:
            rows = (
                session.query(DeployedAppORM)
                .filter(DeployedAppORM.is_deployed)
                .order_by(DeployedAppORM.app_id.asc())
                .all()
            )
            return [orm_to_domain(orm) for orm in rows]
        except SQLAlchemyError as e:
            raise MetadataPersistenceError(
                f"Failed to list deployed applications: {e}"
            ) from e
        finally:
            session.close()
