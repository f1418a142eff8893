import os
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")

# --- Path Configuration ---
# Use Path objects for robust, OS-agnostic path handling.
INPUT_DIR = BASE_DIR / os.getenv("INPUT_DIR", "input")
OUTPUT_DIR = BASE_DIR / os.getenv("OUTPUT_DIR", "output")

# --- Filename Configuration ---
SALE_FILENAME_PREFIX = os.getenv("SALE_FILENAME_PREFIX", "sale_")
FC_FILENAME_PREFIX = os.getenv("FC_FILENAME_PREFIX", "fc_")
CENTRAL_FILENAME_PREFIX = os.getenv("CENTRAL_FILENAME_PREFIX", "uniware_")
REPORT_FILENAME_BASE = os.getenv("REPORT_FILENAME_BASE", "restock_report")

# --- SKU Mapping ---
# The mapping lives at a fixed location next to the code; MAPPING_URL overrides it.
MAPPING_PATH = BASE_DIR / os.getenv("MAPPING_PATH", "data/sku_mapping.csv")
MAPPING_URL = os.getenv("MAPPING_URL")
MAPPING_TIMEOUT = float(os.getenv("MAPPING_TIMEOUT", "15"))

# --- Logging ---
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")
LOG_FILENAME = os.getenv("LOG_FILENAME", "restock.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", str(5 * 1024 * 1024)))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "3"))

# --- Outputs ---
SAVE_JSON_OUTPUT = os.getenv("SAVE_JSON_OUTPUT", "false").lower() in ("1", "true", "yes")
WEBHOOK_URL = os.getenv("WEBHOOK_URL")
PAGE_SIZE = int(os.getenv("PAGE_SIZE", "25"))

# --- Decision Thresholds ---
REPORTING_WINDOW_DAYS = int(os.getenv("REPORTING_WINDOW_DAYS", "30"))
TARGET_COVER_DAYS = float(os.getenv("TARGET_COVER_DAYS", "45"))
MIN_CENTRAL_STOCK = float(os.getenv("MIN_CENTRAL_STOCK", "45"))
MAX_RETURN_PCT = float(os.getenv("MAX_RETURN_PCT", "30"))

# --- Source Schemas ---
# "minimal" is canonical. "rich" additionally demands the shipping columns
# found in newer sale exports.
SALE_SCHEMA = os.getenv("SALE_SCHEMA", "minimal")

# Transaction type prefixes counted as units sold / units returned.
SALE_TRANSACTION_PREFIXES = ("Shipment", "FreeReplacement")
RETURN_TRANSACTION_PREFIXES = ("Refund",)

SELLABLE_DISPOSITION = "SELLABLE"
