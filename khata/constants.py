# constants.py
APP_NAME = "Khata Ledger"

DATA_DIR = "data"
DB_FILE_NAME = "khata.db"
LOG_DIR = "logs"

TABLE_KV_STORE = "kv_store"
TABLE_SCHEMA_VERSION = "schema_version"
SCHEMA_VERSION = "1"

# ---- storage keys (also the keys of a backup document) ----
KEY_CUSTOMERS = "khata_customers"
KEY_SALES = "khata_sales"
KEY_SALE_ITEMS = "khata_sale_items"
KEY_PAYMENTS = "khata_payments"
KEY_SETTINGS = "khata_settings"
KEY_DAILY_SUMMARY = "khata_daily_summary"

# Collections stored as a list of records
LIST_KEYS: tuple[str, ...] = (
    KEY_CUSTOMERS,
    KEY_SALES,
    KEY_SALE_ITEMS,
    KEY_PAYMENTS,
)
# Collections stored as a single JSON object
MAPPING_KEYS: tuple[str, ...] = (
    KEY_SETTINGS,
    KEY_DAILY_SUMMARY,
)
STORAGE_KEYS: tuple[str, ...] = LIST_KEYS + MAPPING_KEYS

# ---- defaults ----
DEFAULT_CURRENCY = "PKR"
DEFAULT_BUSINESS_NAME = "My Business"
DEFAULT_TAX_RATE = 0.0
DEFAULT_PAYMENT_METHOD = "cash"

UNKNOWN_CUSTOMER = "Unknown"

BACKUP_FILE_PREFIX = "khata_backup_"
BACKUP_FILE_SUFFIX = ".json"
