import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


def _configure_path() -> None:
    src_path = Path(__file__).resolve().parents[1] / "src"
    if src_path.exists():
        sys.path.insert(0, str(src_path))


_configure_path()

from carrier_recon import models  # noqa: E402,F401
from carrier_recon.db.base import Base  # noqa: E402
from carrier_recon.models import (  # noqa: E402
    Operation,
    Order,
    ProviderKeyEnum,
    Store,
    WarehouseAccount,
    WarehouseAccountOperation,
    WarehouseAccountStatusEnum,
)
from carrier_recon.observability.reconciliation import get_reconciliation_store  # noqa: E402

BASE_TIME = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture(autouse=True)
def reset_reconciliation_store():
    store = get_reconciliation_store()
    store.reset()
    yield store
    store.reset()


@pytest_asyncio.fixture
async def recon_scope(session_factory):
    """One store with a prefixed operation and an active account per provider."""

    async with session_factory() as session:
        store = Store(name="Lisboa Shop")
        session.add(store)
        await session.flush()

        operation = Operation(store_id=store.id, name="Portugal", order_number_prefix="PT", country="PT")
        session.add(operation)
        await session.flush()

        accounts = {}
        for provider in ProviderKeyEnum:
            account = WarehouseAccount(
                provider_key=provider,
                status=WarehouseAccountStatusEnum.ACTIVE,
                label=f"{provider.value} main",
                credentials={},
            )
            session.add(account)
            await session.flush()
            session.add(WarehouseAccountOperation(account_id=account.id, operation_id=operation.id))
            accounts[provider] = account.id

        await session.commit()

    return SimpleNamespace(store_id=store.id, operation_id=operation.id, accounts=accounts)


@pytest.fixture
def make_order(session_factory, recon_scope):
    async def _make_order(**fields):
        fields.setdefault("store_id", recon_scope.store_id)
        fields.setdefault("operation_id", recon_scope.operation_id)
        if "total" in fields and fields["total"] is not None:
            fields["total"] = Decimal(str(fields["total"]))
        async with session_factory() as session:
            order = Order(**fields)
            session.add(order)
            await session.commit()
            return order.id

    return _make_order


@pytest.fixture
def make_staging(session_factory, recon_scope):
    counter = {"value": 0}

    async def _make_staging(model, *, provider=None, **fields):
        counter["value"] += 1
        if provider is not None:
            fields.setdefault("account_id", recon_scope.accounts[provider])
        fields.setdefault("created_at", BASE_TIME + timedelta(seconds=counter["value"]))
        fields.setdefault("raw_payload", {"id": fields.get("provider_record_id")})
        if fields.get("order_value") is not None:
            fields["order_value"] = Decimal(str(fields["order_value"]))
        async with session_factory() as session:
            row = model(**fields)
            session.add(row)
            await session.commit()
            return row.id

    return _make_staging
