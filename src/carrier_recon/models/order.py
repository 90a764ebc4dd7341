from enum import Enum
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Enum as SqlEnum, ForeignKey, Index, JSON, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from carrier_recon.db.base import Base, enum_values


class OrderStatusEnum(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    RETURNED = "returned"
    CANCELLED = "cancelled"


class OrderDataSourceEnum(str, Enum):
    SHOPIFY = "shopify"
    CARTPANDA = "cartpanda"
    DIGISTORE = "digistore"
    MANUAL = "manual"


class Order(Base):
    """Canonical sales order created by the sales-platform ingestion path.

    The reconciliation workers only ever touch the carrier columns (status,
    tracking, ``carrier_*``, ``provider*`` and ``last_status_update``).
    """

    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_scope", "store_id", "operation_id"),
        Index("ix_orders_operation_number", "operation_id", "order_number"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    store_id = Column(UUID(as_uuid=True), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)
    operation_id = Column(UUID(as_uuid=True), ForeignKey("operations.id", ondelete="SET NULL"), nullable=True)
    data_source = Column(
        SqlEnum(OrderDataSourceEnum, name="order_data_source_enum", values_callable=enum_values),
        nullable=False,
        server_default=OrderDataSourceEnum.SHOPIFY.value,
    )
    order_number = Column(String, nullable=True)

    customer_name = Column(String, nullable=True)
    customer_email = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    customer_city = Column(String, nullable=True)
    customer_address = Column(Text, nullable=True)

    total = Column(Numeric(10, 2), nullable=True)
    currency = Column(String(8), nullable=False, server_default="EUR")
    status = Column(
        SqlEnum(OrderStatusEnum, name="order_status_enum", values_callable=enum_values),
        nullable=False,
        server_default=OrderStatusEnum.PENDING.value,
    )

    # Carrier reconciliation
    tracking_number = Column(String, nullable=True)
    carrier_imported = Column(Boolean, nullable=False, server_default="false", default=False)
    carrier_matched_at = Column(DateTime(timezone=True), nullable=True)
    carrier_order_id = Column(String, nullable=True, index=True)
    provider = Column(String(32), nullable=True)
    provider_data = Column(JSON, nullable=True)
    last_status_update = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    operation = relationship("Operation", back_populates="orders")
