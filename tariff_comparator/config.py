# tariff_comparator/config.py
import os
from dotenv import load_dotenv

# Load from .env file for local development
load_dotenv()


def get_env(key: str, default=None):
    """
    Get a configuration value from os.environ/.env.

    Parameters
    ----------
    key : str
        Environment variable name
    default : str, optional
        Default value if key not found

    Returns
    -------
    str
        Environment variable value or default
    """
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    return value


def get_env_float(key: str, default: float) -> float:
    """Numeric variant of get_env(); malformed values fall back to the default."""
    raw = get_env(key)
    if raw is None:
        return default
    try:
        return float(str(raw).replace(",", "."))
    except ValueError:
        return default


# -------------------------
# Paths & runtime
# -------------------------
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
DATA_DIR = get_env("DATA_DIR", os.path.join(BASE_DIR, "data"))
LOG_LEVEL = get_env("LOG_LEVEL", "INFO").upper()

# Timezone used to decide what "today" is when checking offer validity dates
REFERENCE_TIMEZONE = get_env("REFERENCE_TIMEZONE", "UTC")

# -------------------------
# Regulator source files and build outputs
# -------------------------
PRICES_FILE = get_env("PRICES_FILE", "Precos_ELEGN.csv")
CONDITIONS_FILE = get_env("CONDITIONS_FILE", "CondComerciais.csv")
OFFERS_FILE = get_env("OFFERS_FILE", "offers.json")
META_FILE = get_env("META_FILE", "meta.json")
BUILD_SCRIPT_VERSION = "2.1.0"

# -------------------------
# Taxes and fees (Portuguese residential electricity)
# -------------------------
VAT_RATE = get_env_float("VAT_RATE", 0.23)
VAT_MULTIPLIER = 1 + VAT_RATE
IEC_PER_KWH = get_env_float("IEC_PER_KWH", 0.001)
AUDIOVISUAL_CONTRIBUTION = get_env_float("AUDIOVISUAL_CONTRIBUTION", 2.85)
DAYS_PER_MONTH = 30

# -------------------------
# Consumption split assumptions for time-of-use tariffs
# -------------------------
TWO_RATE_OFF_PEAK_SHARE = get_env_float("TWO_RATE_OFF_PEAK_SHARE", 0.35)
THREE_RATE_OFF_PEAK_SHARE = get_env_float("THREE_RATE_OFF_PEAK_SHARE", 0.30)
THREE_RATE_MID_SHARE = get_env_float("THREE_RATE_MID_SHARE", 0.50)
THREE_RATE_PEAK_SHARE = get_env_float("THREE_RATE_PEAK_SHARE", 0.20)

# -------------------------
# Catalog policy
# -------------------------
ELECTRICITY_SUPPLY = "ELE"
LOCK_IN_YES = "S"
INDEXED_YES = "S"
POWER_TOLERANCE_KVA = 0.01
STANDARD_POWERS_KVA = (1.15, 2.3, 3.45, 4.6, 5.75, 6.9, 10.35, 13.8, 17.25, 20.7)
DEFAULT_POWER_KVA = 4.6
DEFAULT_TARIFF_STRUCTURE = 1
TARIFF_STRUCTURES = (1, 2, 3)
PROMOTION_PRIORITY_COLUMNS = 5

# Costs below this are treated as data errors, not prices
MIN_PLAUSIBLE_MONTHLY_COST = 5.0
MAX_PLAUSIBLE_MONTHLY_COST = 1000.0

# -------------------------
# Consumption estimation
# -------------------------
ESTIMATE_MIN_KWH = 50
ESTIMATE_MAX_KWH = 5000
ESTIMATE_AVG_PRICE_KWH = get_env_float("ESTIMATE_AVG_PRICE_KWH", 0.16)
ESTIMATE_FIXED_DAILY_RATE = get_env_float("ESTIMATE_FIXED_DAILY_RATE", 0.25)
