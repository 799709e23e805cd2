import os
import sys
from dotenv import load_dotenv
load_dotenv()


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name)
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    return max(value, minimum)


# ---- Fund-flow heuristics ----
EXCHANGE_THRESHOLD = 5000       # degree at which an account is treated as a hub
MAX_SEARCH_TIME_MS = 10000      # wall-clock budget per query
DAY_RANGE_SEC = 86400           # width of the first hop's time window
VALUE_RETENTION_DIVISOR = 10    # next hop must move >= 1/10 of the previous value
DEPOSIT_LABEL = "deposit"

# ---- Traversal depth bounds ----
FORWARD_MIN_DEPTH = 2
FORWARD_MAX_DEPTH = 14
REVERSE_MAX_DEPTH = 2

# ---- Expansion ----
EXPANDER_WORKERS = _env_int("FUNDFLOW_EXPANDER_WORKERS", 1)   # non-numeric -> 1

# ---- Logging ----
LOG_LEVEL = os.environ.get("FUNDFLOW_LOG_LEVEL", "INFO")

# ---- Neo4j ----
NEO4J_URI = os.environ.get("NEO4J_URI", "bolt://localhost:7687")
NEO4J_USERNAME = os.environ.get("NEO4J_USERNAME", "neo4j")
NEO4J_PASSWORD = os.environ.get("NEO4J_PASSWORD")
NEO4J_DATABASE = os.environ.get("NEO4J_DATABASE", "neo4j")

# Graph schema names
ACCOUNT_LABEL = "account"
TRANSACTION_LABEL = "transaction"
INPUT_TYPE = "input"
OUTPUT_TYPE = "output"
ACCOUNT_KEY = "address"

# ----- CLI defaults -----
DEFAULT_TIMESPAN_SEC = DAY_RANGE_SEC
DEFAULT_MAX_RELATIONSHIP_COUNT = 10
DEFAULT_MIN_VALUE = 0
DEFAULT_MAX_VALUE = sys.maxsize
