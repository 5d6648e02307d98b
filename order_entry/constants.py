APP_NAME = "Order Entry"
DATA_DIR = "data"
DB_FILE_NAME = "order_entry.db"
STYLE_FILE = "styles.qss"

TABLE_SCHEMA_VERSION = "schema_version"
SCHEMA_VERSION = "1"

# ---- pricing ----
VAT_RATE = 5.0            # percent, fixed for every document
MONEY_PLACES = 2
QTY_DECIMALS = 4          # max-quantity display precision (rounded down)

# ---- stock lookups ----
STOCK_CACHE_TTL_SECONDS = 30.0
STOCK_DEBOUNCE_MS = 300

# ---- rate types ----
RATE_RETAIL = "retail"
RATE_WHOLESALE = "wholesale"
RATE_SPECIAL_1 = "special_1"
RATE_SPECIAL_2 = "special_2"
RATE_TYPES = (RATE_RETAIL, RATE_WHOLESALE, RATE_SPECIAL_1, RATE_SPECIAL_2)

TAX_INCLUSIVE = "inclusive"
TAX_EXCLUSIVE = "exclusive"

MERGED_BATCH_NUMBER = "MERGED"
