"""SQLAlchemy ORM models for database tables."""

from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, DateTime, Boolean, Enum as SQLEnum
)

from edge_deployer.core.models import AppType, LifecycleStatus
from edge_deployer.infrastructure.sql.database import Base


class DeployedAppORM(Base):
    """
    Deployed application table - one row per application ID.

    Indexes:
    - Primary key on app_id
    - Index on is_deployed for start-up recovery
    """

    __tablename__ = "deployed_apps"

    # Primary key
    app_id = Column(String(255), primary_key=True, nullable=False)

    # Declared resources
    cores = Column(Integer, nullable=False)
    memory = Column(Integer, nullable=False)
    status = Column(
        SQLEnum(LifecycleStatus, name="lifecycle_status"),
        nullable=False,
        default=LifecycleStatus.UNKNOWN,
    )

    # Runtime, fixed at creation
    app_type = Column(SQLEnum(AppType, name="app_type"), nullable=False)
    url = Column(String(2048), nullable=False, default="")

    # Recovery checkpoint
    deployed_id = Column(String(255), nullable=False, default="")
    is_deployed = Column(Boolean, nullable=False, default=False, index=True)

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self):
        return (
            f"<DeployedAppORM(app_id={self.app_id}, type={self.app_type}, "
            f"status={self.status}, deployed={self.is_deployed})>"
        )
