"""SQLAlchemy models package."""

from .operation import Operation, OperationStatusEnum, Store  # noqa: F401
from .order import Order, OrderDataSourceEnum, OrderStatusEnum  # noqa: F401
from .staging import (  # noqa: F401
    DigistoreDelivery,
    ElogyOrder,
    EuropeanFulfillmentLead,
    FhbOrder,
    StagingModel,
    StagingRecordMixin,
)
from .warehouse_account import (  # noqa: F401
    ProviderKeyEnum,
    WarehouseAccount,
    WarehouseAccountOperation,
    WarehouseAccountStatusEnum,
)
