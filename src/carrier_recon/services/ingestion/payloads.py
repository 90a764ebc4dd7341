"""Boundary validation of raw provider records.

Each provider model accepts the field aliases the provider is known to send
and converts into a :class:`StagingPayload`, the provider-neutral shape written
into the staging tables. The untouched raw record is kept alongside.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Mapping, Type

from pydantic import AliasChoices, AliasPath, BaseModel, ConfigDict, Field, ValidationError, field_validator

from carrier_recon.models.warehouse_account import ProviderKeyEnum
from carrier_recon.services.reconciliation.errors import PayloadValidationError
from carrier_recon.services.reconciliation.normalization import parse_amount


class StagingPayload(BaseModel):
    """Provider-neutral staging record."""

    model_config = ConfigDict(frozen=True)

    provider_record_id: str
    order_number_hint: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    customer_city: str | None = None
    order_value: Decimal | None = None
    status: str | None = None
    tracking_code: str | None = None
    raw_payload: Dict[str, Any] = Field(default_factory=dict)

    def column_values(self) -> Dict[str, Any]:
        return self.model_dump()


class _ProviderRecord(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_scalars(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value

    def to_staging(self, raw: Mapping[str, Any]) -> StagingPayload:
        raise NotImplementedError


class EuropeanFulfillmentLeadRecord(_ProviderRecord):
    lead_number: str = Field(validation_alias=AliasChoices("n_lead", "number", "lead_number", "id"))
    order_reference: str | None = Field(
        default=None, validation_alias=AliasChoices("order_number", "order_ref", "reference")
    )
    customer_name: str | None = Field(default=None, validation_alias=AliasChoices("customer_name", "name"))
    customer_email: str | None = Field(default=None, validation_alias=AliasChoices("customer_email", "email"))
    customer_phone: str | None = Field(default=None, validation_alias=AliasChoices("customer_phone", "phone"))
    city: str | None = Field(default=None, validation_alias=AliasChoices("shipping_city", "city"))
    value: str | None = Field(default=None, validation_alias=AliasChoices("total", "amount", "lead_value"))
    status: str | None = None
    tracking: str | None = Field(default=None, validation_alias=AliasChoices("tracking_number", "tracking"))

    def to_staging(self, raw: Mapping[str, Any]) -> StagingPayload:
        return StagingPayload(
            provider_record_id=self.lead_number,
            order_number_hint=self.order_reference or self.lead_number,
            customer_name=self.customer_name,
            customer_email=self.customer_email,
            customer_phone=self.customer_phone,
            customer_city=self.city,
            order_value=parse_amount(self.value),
            status=self.status,
            tracking_code=self.tracking,
            raw_payload=dict(raw),
        )


class FhbOrderRecord(_ProviderRecord):
    id: str
    variable_symbol: str | None = None
    value: str | None = None
    status: str | None = None
    tracking: str | None = None
    recipient_name: str | None = Field(default=None, validation_alias=AliasPath("recipient", "address", "name"))
    recipient_city: str | None = Field(default=None, validation_alias=AliasPath("recipient", "address", "city"))
    recipient_contact: str | None = Field(default=None, validation_alias=AliasPath("recipient", "contact"))

    def to_staging(self, raw: Mapping[str, Any]) -> StagingPayload:
        # FHB sends a single contact field holding either an email or a phone
        contact = self.recipient_contact or ""
        email = contact if "@" in contact else None
        phone = contact if contact and email is None else None
        return StagingPayload(
            provider_record_id=self.id,
            order_number_hint=self.variable_symbol,
            customer_name=self.recipient_name,
            customer_email=email,
            customer_phone=phone,
            customer_city=self.recipient_city,
            order_value=parse_amount(self.value),
            status=self.status,
            tracking_code=self.tracking,
            raw_payload=dict(raw),
        )


class ElogyOrderRecord(_ProviderRecord):
    id: str
    order_number: str | None = None
    status: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    customer_city: str | None = Field(default=None, validation_alias=AliasChoices("customer_city", "city"))
    total: str | None = None
    tracking_number: str | None = Field(
        default=None, validation_alias=AliasChoices("tracking_number", "tracking")
    )

    def to_staging(self, raw: Mapping[str, Any]) -> StagingPayload:
        return StagingPayload(
            provider_record_id=self.id,
            order_number_hint=self.order_number,
            customer_name=self.customer_name,
            customer_email=self.customer_email,
            customer_phone=self.customer_phone,
            customer_city=self.customer_city,
            order_value=parse_amount(self.total),
            status=self.status,
            tracking_code=self.tracking_number,
            raw_payload=dict(raw),
        )


class DigistoreDeliveryRecord(_ProviderRecord):
    delivery_id: str = Field(validation_alias=AliasChoices("id", "delivery_id"))
    purchase_id: str | None = None
    delivery_type: str | None = None
    first_name: str | None = Field(default=None, validation_alias=AliasPath("delivery_address", "first_name"))
    last_name: str | None = Field(default=None, validation_alias=AliasPath("delivery_address", "last_name"))
    email: str | None = Field(default=None, validation_alias=AliasPath("delivery_address", "email"))
    phone: str | None = Field(default=None, validation_alias=AliasPath("delivery_address", "phone_no"))
    city: str | None = Field(default=None, validation_alias=AliasPath("delivery_address", "city"))
    tracking_id: str | None = Field(default=None, validation_alias=AliasPath("tracking", 0, "tracking_id"))
    amount: str | None = Field(default=None, validation_alias=AliasChoices("amount", "total_amount"))

    def to_staging(self, raw: Mapping[str, Any]) -> StagingPayload:
        name = " ".join(part for part in (self.first_name, self.last_name) if part) or None
        return StagingPayload(
            provider_record_id=self.delivery_id,
            order_number_hint=self.purchase_id,
            customer_name=name,
            customer_email=self.email,
            customer_phone=self.phone,
            customer_city=self.city,
            order_value=parse_amount(self.amount),
            status=self.delivery_type,
            tracking_code=self.tracking_id,
            raw_payload=dict(raw),
        )


RECORD_MODELS: Mapping[ProviderKeyEnum, Type[_ProviderRecord]] = {
    ProviderKeyEnum.EUROPEAN_FULFILLMENT: EuropeanFulfillmentLeadRecord,
    ProviderKeyEnum.FHB: FhbOrderRecord,
    ProviderKeyEnum.ELOGY: ElogyOrderRecord,
    ProviderKeyEnum.DIGISTORE: DigistoreDeliveryRecord,
}


def parse_provider_record(provider: ProviderKeyEnum | str, raw: Mapping[str, Any]) -> StagingPayload:
    """Validate ``raw`` for ``provider``; raises :class:`PayloadValidationError`."""

    key = ProviderKeyEnum(provider)
    if not isinstance(raw, Mapping):
        raise PayloadValidationError(f"{key.value} record must be an object, got {type(raw).__name__}")
    try:
        record = RECORD_MODELS[key].model_validate(dict(raw))
    except ValidationError as exc:
        raise PayloadValidationError(f"Invalid {key.value} record: {exc.error_count()} error(s)") from exc
    return record.to_staging(raw)


__all__ = [
    "DigistoreDeliveryRecord",
    "ElogyOrderRecord",
    "EuropeanFulfillmentLeadRecord",
    "FhbOrderRecord",
    "StagingPayload",
    "parse_provider_record",
]
