"""Resolve which operation a provider record is allowed to write into."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carrier_recon.models.operation import Operation
from carrier_recon.models.warehouse_account import (
    ProviderKeyEnum,
    WarehouseAccount,
    WarehouseAccountOperation,
    WarehouseAccountStatusEnum,
)


@dataclass(frozen=True, slots=True)
class OperationRef:
    id: UUID
    store_id: UUID
    name: str
    order_number_prefix: str | None = None


@dataclass(frozen=True, slots=True)
class OperationResolution:
    operation: OperationRef
    via_fallback: bool = False


@dataclass(frozen=True, slots=True)
class AccountOperationsCache:
    """Per-tick, read-only view of account -> authorized operations."""

    provider: ProviderKeyEnum
    operations_by_account: Mapping[UUID, tuple[OperationRef, ...]]

    @property
    def account_ids(self) -> tuple[UUID, ...]:
        return tuple(self.operations_by_account)

    def operations_for(self, account_id: UUID | None) -> tuple[OperationRef, ...]:
        if account_id is None:
            return ()
        return self.operations_by_account.get(account_id, ())

    def __len__(self) -> int:
        return len(self.operations_by_account)


def authorized_account_statuses(include_pending: bool) -> tuple[WarehouseAccountStatusEnum, ...]:
    if include_pending:
        return (WarehouseAccountStatusEnum.ACTIVE, WarehouseAccountStatusEnum.PENDING)
    return (WarehouseAccountStatusEnum.ACTIVE,)


async def build_account_operations_cache(
    session: AsyncSession,
    provider: ProviderKeyEnum,
    *,
    include_pending: bool = False,
) -> AccountOperationsCache:
    """Load every authorized account of ``provider`` with its operations in one query.

    Accounts without any linked operation are kept with an empty tuple so their
    records can be reported as unauthorized instead of silently ignored.
    """

    stmt = (
        select(WarehouseAccount.id, Operation)
        .outerjoin(WarehouseAccountOperation, WarehouseAccountOperation.account_id == WarehouseAccount.id)
        .outerjoin(Operation, Operation.id == WarehouseAccountOperation.operation_id)
        .where(
            WarehouseAccount.provider_key == provider,
            WarehouseAccount.status.in_(authorized_account_statuses(include_pending)),
        )
        .order_by(
            WarehouseAccount.created_at.asc(),
            WarehouseAccountOperation.created_at.asc(),
            WarehouseAccountOperation.id.asc(),
        )
    )
    result = await session.execute(stmt)

    grouped: dict[UUID, list[OperationRef]] = {}
    for account_id, operation in result.all():
        operations = grouped.setdefault(account_id, [])
        if operation is None:
            continue
        operations.append(
            OperationRef(
                id=operation.id,
                store_id=operation.store_id,
                name=operation.name,
                order_number_prefix=operation.order_number_prefix,
            )
        )

    cache = AccountOperationsCache(
        provider=provider,
        operations_by_account=MappingProxyType({key: tuple(value) for key, value in grouped.items()}),
    )
    logger.info(
        "Account operations cache built",
        provider=provider.value,
        accounts=len(cache),
        operations=sum(len(ops) for ops in grouped.values()),
    )
    return cache


def find_operation_by_prefix(order_number_hint: str | None, operations: Iterable[OperationRef]) -> OperationRef | None:
    if not order_number_hint:
        return None
    for operation in operations:
        prefix = operation.order_number_prefix
        if prefix and order_number_hint.startswith(prefix):
            return operation
    return None


def resolve_operation(
    order_number_hint: str | None,
    operations: Sequence[OperationRef],
) -> OperationResolution | None:
    """Pick the operation whose prefix starts the hint, else the first authorized one."""

    if not operations:
        return None

    matched = find_operation_by_prefix(order_number_hint, operations)
    if matched is not None:
        return OperationResolution(operation=matched)

    fallback = operations[0]
    logger.warning(
        "No operation prefix matched, using fallback operation",
        order_number_hint=order_number_hint,
        operation_id=str(fallback.id),
        operation_name=fallback.name,
    )
    return OperationResolution(operation=fallback, via_fallback=True)


__all__ = [
    "AccountOperationsCache",
    "OperationRef",
    "OperationResolution",
    "authorized_account_statuses",
    "build_account_operations_cache",
    "find_operation_by_prefix",
    "resolve_operation",
]
