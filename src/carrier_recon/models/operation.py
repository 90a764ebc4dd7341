"""Tenant stores and the sales operations that belong to them."""

from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, DateTime, Enum as SqlEnum, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from carrier_recon.db.base import Base, enum_values


class OperationStatusEnum(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    ARCHIVED = "archived"


class Store(Base):
    __tablename__ = "stores"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    operations = relationship("Operation", back_populates="store", cascade="all, delete-orphan")


class Operation(Base):
    """A sales operation; ``order_number_prefix`` routes provider records to it."""

    __tablename__ = "operations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    store_id = Column(UUID(as_uuid=True), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    order_number_prefix = Column(String(32), nullable=True)
    country = Column(String(2), nullable=True)
    status = Column(
        SqlEnum(OperationStatusEnum, name="operation_status_enum", values_callable=enum_values),
        nullable=False,
        server_default=OperationStatusEnum.ACTIVE.value,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    store = relationship("Store", back_populates="operations")
    orders = relationship("Order", back_populates="operation")
