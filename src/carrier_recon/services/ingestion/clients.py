"""HTTP clients pulling raw records from each provider API."""

from __future__ import annotations

import base64
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Type

import httpx
from loguru import logger

from carrier_recon.models.warehouse_account import ProviderKeyEnum
from carrier_recon.services.reconciliation.errors import ProviderClientError


def _extract_list(payload: Any, *keys: str) -> List[Dict[str, Any]]:
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]
    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if isinstance(value, dict):
                nested = _extract_list(value, *keys)
                if nested:
                    return nested
            if isinstance(value, list):
                return [item for item in value if isinstance(item, dict)]
    return []


class ProviderClient:
    """Base class; subclasses implement :meth:`fetch_records`.

    ``credentials`` is the JSON stored on the warehouse account. ``base_url``
    may be overridden there, which is how sandbox environments are selected.
    """

    provider: ProviderKeyEnum
    default_base_url: str = ""

    def __init__(
        self,
        credentials: Mapping[str, Any] | None,
        *,
        http_client: httpx.AsyncClient,
        max_pages: int = 10,
    ) -> None:
        self.credentials: Mapping[str, Any] = credentials or {}
        self.base_url = str(self.credentials.get("base_url") or self.default_base_url).rstrip("/")
        self._http = http_client
        self.max_pages = max(max_pages, 1)

    def _credential(self, key: str) -> str:
        value = self.credentials.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ProviderClientError(f"{self.provider.value} credentials missing '{key}'")
        return value.strip()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = await self._http.request(method, url, headers=headers, params=params, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProviderClientError(
                f"{self.provider.value} {method} {path} returned {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.RequestError as exc:
            raise ProviderClientError(f"{self.provider.value} {method} {path} failed: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise ProviderClientError(f"{self.provider.value} {method} {path} returned invalid JSON") from exc

    async def fetch_records(self, *, since: datetime | None = None) -> List[Dict[str, Any]]:
        raise NotImplementedError


class EuropeanFulfillmentClient(ProviderClient):
    """Carrier lead feed; authenticates with email/password for a bearer token."""

    provider = ProviderKeyEnum.EUROPEAN_FULFILLMENT
    default_base_url = "https://api.ecomfulfilment.eu"

    async def _token(self) -> str:
        payload = await self._request(
            "POST",
            "api/login",
            params={"email": self._credential("email"), "password": self._credential("password")},
        )
        token = payload.get("token") if isinstance(payload, dict) else None
        if not token:
            raise ProviderClientError("european_fulfillment login returned no token")
        return str(token)

    async def fetch_records(self, *, since: datetime | None = None) -> List[Dict[str, Any]]:
        headers = {"Authorization": f"Bearer {await self._token()}"}
        params: Dict[str, Any] = {}
        country = self.credentials.get("country")
        if country:
            params["country"] = country
        if since is not None:
            params["date_from"] = since.date().isoformat()

        leads: List[Dict[str, Any]] = []
        for page in range(1, self.max_pages + 1):
            payload = await self._request("GET", "api/leads", headers=headers, params={**params, "page": page})
            batch = _extract_list(payload, "leads", "data")
            if not batch:
                break
            leads.extend(batch)
            last_page = payload.get("last_page") if isinstance(payload, dict) else None
            if not isinstance(last_page, int) or page >= last_page:
                break
        return leads


class FhbClient(ProviderClient):
    """Warehouse order history, paged by day range."""

    provider = ProviderKeyEnum.FHB
    default_base_url = "https://api.fhb.sk/v3"
    default_lookback = timedelta(days=30)

    async def _token(self) -> str:
        payload = await self._request(
            "POST",
            "login",
            json={"app_id": self._credential("app_id"), "secret": self._credential("secret")},
        )
        token = payload.get("token") if isinstance(payload, dict) else None
        if not token:
            raise ProviderClientError("fhb login returned no token")
        return str(token)

    async def fetch_records(self, *, since: datetime | None = None) -> List[Dict[str, Any]]:
        token = await self._token()
        headers = {"X-Authentication-Simple": base64.b64encode(token.encode()).decode()}
        today = datetime.now(timezone.utc)
        start = since or (today - self.default_lookback)
        params = {"from": start.date().isoformat(), "to": today.date().isoformat()}

        orders: List[Dict[str, Any]] = []
        for page in range(1, self.max_pages + 1):
            payload = await self._request("GET", "order/history", headers=headers, params={**params, "page": page})
            batch = _extract_list(payload, "orders", "data")
            if not batch:
                break
            orders.extend(batch)
        return orders


class ElogyClient(ProviderClient):
    """Warehouse orders scoped by ``warehouse_id``, paged by offset."""

    provider = ProviderKeyEnum.ELOGY
    default_base_url = "https://api.elogy.io"
    page_length = 15

    async def fetch_records(self, *, since: datetime | None = None) -> List[Dict[str, Any]]:
        headers = {"Authorization": self._credential("auth_header")}
        warehouse_id = self._credential("warehouse_id")

        orders: List[Dict[str, Any]] = []
        for page in range(self.max_pages):
            params = {
                "sort": "order_number",
                "sort_dir": "asc",
                "offset": page * self.page_length,
                "length": self.page_length,
                "warehouse_id": warehouse_id,
            }
            payload = await self._request("GET", "api/blockOrders", headers=headers, params=params)
            batch = _extract_list(payload, "data", "orders")
            orders.extend(batch)
            if len(batch) < self.page_length:
                break
        return orders


class DigistoreClient(ProviderClient):
    """Physical-delivery requests of a digital-product platform."""

    provider = ProviderKeyEnum.DIGISTORE
    default_base_url = "https://www.digistore24.com/api/call"
    delivery_types = "request,in_progress"
    default_lookback = timedelta(days=7)

    async def fetch_records(self, *, since: datetime | None = None) -> List[Dict[str, Any]]:
        headers = {"X-DS-API-KEY": self._credential("api_key"), "Accept": "application/json"}
        start = since or (datetime.now(timezone.utc) - self.default_lookback)
        params = {"type": self.delivery_types, "from": start.strftime("%Y-%m-%d %H:%M:%S")}
        payload = await self._request("GET", "listDeliveries", headers=headers, params=params)
        return _extract_list(payload, "data", "delivery")


CLIENT_CLASSES: Mapping[ProviderKeyEnum, Type[ProviderClient]] = {
    ProviderKeyEnum.EUROPEAN_FULFILLMENT: EuropeanFulfillmentClient,
    ProviderKeyEnum.FHB: FhbClient,
    ProviderKeyEnum.ELOGY: ElogyClient,
    ProviderKeyEnum.DIGISTORE: DigistoreClient,
}


def build_provider_client(
    provider: ProviderKeyEnum | str,
    credentials: Mapping[str, Any] | None,
    *,
    http_client: httpx.AsyncClient,
    max_pages: int = 10,
) -> ProviderClient:
    key = ProviderKeyEnum(provider)
    client_cls = CLIENT_CLASSES[key]
    logger.debug("Provider client selected", provider=key.value, client=client_cls.__name__)
    return client_cls(credentials, http_client=http_client, max_pages=max_pages)


__all__ = [
    "DigistoreClient",
    "ElogyClient",
    "EuropeanFulfillmentClient",
    "FhbClient",
    "ProviderClient",
    "build_provider_client",
]
