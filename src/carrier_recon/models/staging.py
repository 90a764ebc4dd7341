"""Per-provider staging tables holding raw delivery records awaiting linking."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declared_attr

from carrier_recon.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StagingRecordMixin:
    """Columns shared by every provider staging table.

    ``processed_to_orders`` is the only idempotence marker: ingestion writes it
    as false, the provider's linking worker flips it to true once the record has
    been applied to a canonical order.
    """

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    provider_record_id = Column(String(128), nullable=False)
    order_number_hint = Column(String(128), nullable=True)
    customer_name = Column(String, nullable=True)
    customer_email = Column(String, nullable=True)
    customer_phone = Column(String(64), nullable=True)
    customer_city = Column(String, nullable=True)
    order_value = Column(Numeric(10, 2), nullable=True)
    status = Column(String(64), nullable=True)
    tracking_code = Column(String(128), nullable=True)
    raw_payload = Column(JSON, nullable=True)
    processed_to_orders = Column(Boolean, nullable=False, server_default="false", default=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    match_tier = Column(Integer, nullable=True)
    match_method = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    @declared_attr
    def account_id(cls):  # noqa: N805
        return Column(
            UUID(as_uuid=True),
            ForeignKey("warehouse_accounts.id", ondelete="CASCADE"),
            nullable=False,
        )

    @declared_attr
    def linked_order_id(cls):  # noqa: N805
        return Column(UUID(as_uuid=True), ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)

    @declared_attr.directive
    def __table_args__(cls):  # noqa: N805
        table = cls.__tablename__
        return (
            UniqueConstraint("account_id", "provider_record_id", name=f"uq_{table}_account_record"),
            Index(f"ix_{table}_pending", "processed_to_orders", "created_at"),
        )


class EuropeanFulfillmentLead(StagingRecordMixin, Base):
    """Carrier lead feed (``n_lead`` records) reconciled with the 4-tier matcher."""

    __tablename__ = "european_fulfillment_leads"


class FhbOrder(StagingRecordMixin, Base):
    __tablename__ = "fhb_orders"


class ElogyOrder(StagingRecordMixin, Base):
    __tablename__ = "elogy_orders"


class DigistoreDelivery(StagingRecordMixin, Base):
    __tablename__ = "digistore_deliveries"


StagingModel = type[StagingRecordMixin]

__all__ = [
    "DigistoreDelivery",
    "ElogyOrder",
    "EuropeanFulfillmentLead",
    "FhbOrder",
    "StagingModel",
    "StagingRecordMixin",
]
