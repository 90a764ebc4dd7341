"""Provider credentials and their authorization to write into operations."""

from enum import Enum
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, Enum as SqlEnum, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from carrier_recon.db.base import Base, enum_values


class ProviderKeyEnum(str, Enum):
    """Closed set of providers feeding the reconciliation engine."""

    EUROPEAN_FULFILLMENT = "european_fulfillment"
    FHB = "fhb"
    ELOGY = "elogy"
    DIGISTORE = "digistore"


class WarehouseAccountStatusEnum(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    PAUSED = "paused"
    ERROR = "error"


class WarehouseAccount(Base):
    __tablename__ = "warehouse_accounts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    provider_key = Column(
        SqlEnum(ProviderKeyEnum, name="provider_key_enum", values_callable=enum_values),
        nullable=False,
        index=True,
    )
    status = Column(
        SqlEnum(WarehouseAccountStatusEnum, name="warehouse_account_status_enum", values_callable=enum_values),
        nullable=False,
        server_default=WarehouseAccountStatusEnum.PENDING.value,
    )
    label = Column(String, nullable=True)
    credentials = Column(JSON, nullable=True)
    last_sync_at = Column(DateTime(timezone=True), nullable=True)
    last_sync_cursor = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    operation_links = relationship(
        "WarehouseAccountOperation",
        back_populates="account",
        cascade="all, delete-orphan",
    )


class WarehouseAccountOperation(Base):
    __tablename__ = "warehouse_account_operations"
    __table_args__ = (UniqueConstraint("account_id", "operation_id", name="uq_account_operation"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    account_id = Column(
        UUID(as_uuid=True), ForeignKey("warehouse_accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    operation_id = Column(UUID(as_uuid=True), ForeignKey("operations.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    account = relationship("WarehouseAccount", back_populates="operation_links")
    operation = relationship("Operation")
