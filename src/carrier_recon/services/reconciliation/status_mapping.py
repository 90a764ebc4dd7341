"""Provider status vocabularies mapped onto the canonical order status."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from loguru import logger

from carrier_recon.models.order import OrderStatusEnum
from carrier_recon.models.warehouse_account import ProviderKeyEnum

_CANCELLED = OrderStatusEnum.CANCELLED

EUROPEAN_FULFILLMENT_STATUSES: Mapping[str, OrderStatusEnum] = MappingProxyType(
    {
        "pending": OrderStatusEnum.PENDING,
        "new order": OrderStatusEnum.PENDING,
        "incident": OrderStatusEnum.PENDING,
        "processing": OrderStatusEnum.PROCESSING,
        "redeployment": OrderStatusEnum.PROCESSING,
        "confirmed": OrderStatusEnum.CONFIRMED,
        "shipped": OrderStatusEnum.SHIPPED,
        "sent": OrderStatusEnum.SHIPPED,
        "in delivery": OrderStatusEnum.SHIPPED,
        "in transit": OrderStatusEnum.SHIPPED,
        # unpacked by the customer but not yet confirmed as delivered
        "unpacked": OrderStatusEnum.SHIPPED,
        "delivered": OrderStatusEnum.DELIVERED,
        "returned": OrderStatusEnum.RETURNED,
        "canceled": _CANCELLED,
        "cancelled": _CANCELLED,
        "rejected": _CANCELLED,
    }
)

FHB_STATUSES: Mapping[str, OrderStatusEnum] = MappingProxyType(
    {
        "pending": OrderStatusEnum.PENDING,
        "processing": OrderStatusEnum.CONFIRMED,
        "shipped": OrderStatusEnum.SHIPPED,
        "sent": OrderStatusEnum.SHIPPED,
        "delivered": OrderStatusEnum.DELIVERED,
        "returned": OrderStatusEnum.RETURNED,
        "canceled": _CANCELLED,
        "cancelled": _CANCELLED,
        # customer refused the delivery
        "rejected": _CANCELLED,
    }
)

ELOGY_STATUSES: Mapping[str, OrderStatusEnum] = MappingProxyType(
    {
        "pending": OrderStatusEnum.PENDING,
        "processing": OrderStatusEnum.PROCESSING,
        "in_warehouse": OrderStatusEnum.CONFIRMED,
        "in_transit": OrderStatusEnum.SHIPPED,
        "out_for_delivery": OrderStatusEnum.SHIPPED,
        "shipped": OrderStatusEnum.SHIPPED,
        "delivered": OrderStatusEnum.DELIVERED,
        "returned": OrderStatusEnum.RETURNED,
        "canceled": _CANCELLED,
        "cancelled": _CANCELLED,
    }
)

DIGISTORE_STATUSES: Mapping[str, OrderStatusEnum] = MappingProxyType(
    {
        "request": OrderStatusEnum.PENDING,
        "in_progress": OrderStatusEnum.CONFIRMED,
        "delivery": OrderStatusEnum.SHIPPED,
        "partial_delivery": OrderStatusEnum.SHIPPED,
        "return": OrderStatusEnum.RETURNED,
        "cancel": _CANCELLED,
    }
)

STATUS_MAPS: Mapping[ProviderKeyEnum, Mapping[str, OrderStatusEnum]] = MappingProxyType(
    {
        ProviderKeyEnum.EUROPEAN_FULFILLMENT: EUROPEAN_FULFILLMENT_STATUSES,
        ProviderKeyEnum.FHB: FHB_STATUSES,
        ProviderKeyEnum.ELOGY: ELOGY_STATUSES,
        ProviderKeyEnum.DIGISTORE: DIGISTORE_STATUSES,
    }
)


def map_provider_status(provider: ProviderKeyEnum | str, raw_status: str | None) -> OrderStatusEnum:
    """Translate a provider status string; unknown values fall back to ``pending``."""

    if not raw_status or not str(raw_status).strip():
        return OrderStatusEnum.PENDING

    key = ProviderKeyEnum(provider)
    normalized = str(raw_status).strip().lower()
    mapped = STATUS_MAPS[key].get(normalized)
    if mapped is None:
        logger.warning(
            "Unrecognized provider status, defaulting to pending",
            provider=key.value,
            raw_status=raw_status,
        )
        return OrderStatusEnum.PENDING
    return mapped


__all__ = ["STATUS_MAPS", "map_provider_status"]
