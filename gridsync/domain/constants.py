"""Domain constants for the sync core and the ledger."""

OPERATION_CREATE = "create"
OPERATION_UPDATE = "update"
OPERATION_DELETE = "delete"
OPERATIONS = (OPERATION_CREATE, OPERATION_UPDATE, OPERATION_DELETE)

EVENT_STATE_UPDATE = "state-update"
EVENT_REQUEST_REFRESH = "request-refresh"
EVENT_TYPES = (EVENT_STATE_UPDATE, EVENT_REQUEST_REFRESH)

SYNC_MODE_ONLINE = "online"
SYNC_MODE_OFFLINE = "offline"

TEMP_ID_PREFIX = "local-"

TRANSACTION_INCOME = "income"
TRANSACTION_EXPENSE = "expense"

LINK_SALE = "sale"
LINK_PURCHASE = "purchase"
LINK_MANUAL = "manual"
LINK_TYPES = (LINK_SALE, LINK_PURCHASE, LINK_MANUAL)

LINK_CATEGORIES = {
    LINK_SALE: "Sales",
    LINK_PURCHASE: "Purchases",
    LINK_MANUAL: "Operations",
}

TRANSFER_CATEGORY = "Transfer between accounts"
TRANSFER_DEFAULT_DESCRIPTION = "Transfer between accounts"

DEFAULT_CURRENCY = "ARS"
DEFAULT_ACCOUNT_TYPE = "BANK"


__all__ = [
    "OPERATION_CREATE",
    "OPERATION_UPDATE",
    "OPERATION_DELETE",
    "OPERATIONS",
    "EVENT_STATE_UPDATE",
    "EVENT_REQUEST_REFRESH",
    "EVENT_TYPES",
    "SYNC_MODE_ONLINE",
    "SYNC_MODE_OFFLINE",
    "TEMP_ID_PREFIX",
    "TRANSACTION_INCOME",
    "TRANSACTION_EXPENSE",
    "LINK_SALE",
    "LINK_PURCHASE",
    "LINK_MANUAL",
    "LINK_TYPES",
    "LINK_CATEGORIES",
    "TRANSFER_CATEGORY",
    "TRANSFER_DEFAULT_DESCRIPTION",
    "DEFAULT_CURRENCY",
    "DEFAULT_ACCOUNT_TYPE",
]
