import os
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")

# --- Path Configuration ---
INPUT_DIR = BASE_DIR / os.getenv("INPUT_DIR", "input")
OUTPUT_DIR = BASE_DIR / os.getenv("OUTPUT_DIR", "output")
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Filename Configuration ---
INVENTORY_FILENAME_PREFIX = os.getenv("INVENTORY_FILENAME_PREFIX", "spare_parts_")
EXPORT_FILENAME_BASE = os.getenv("EXPORT_FILENAME", "spare_parts")
SAVE_JSON_OUTPUT = os.getenv("SAVE_JSON_OUTPUT", "false").lower() in ("1", "true", "yes")

# --- Record Store ---
# STORE_URL unset means records are kept in memory only (dry run).
STORE_URL = os.getenv("STORE_URL")
STORE_NAMESPACE = os.getenv("STORE_NAMESPACE", "artifacts/default-app-id/spareParts")
IDENTITY_FALLBACK = os.getenv("IDENTITY_FALLBACK", "uuid")
STORE_TIMEOUT = int(os.getenv("STORE_TIMEOUT", "15"))

# --- Field Names ---
ROW_NUMBER = "No."
ITEM_CODE = "Kode Barang"
ITEM_NAME = "Nama Barang"
CATEGORY = "Kategori"
PREVIOUS_STOCK = "Stock Sebelumnya"
CURRENT_STOCK = "Stock Sekarang"
STOCK_OUT = "Stock Keluar"
UNIT_PRICE = "Harga Satuan"
STOCK_AGE = "Umur Stock (Dalam Hari)"
MIN_STOCK_THRESHOLD = "MinStockThreshold"

# Fixed display/export order. Any other field is appended after these.
KNOWN_HEADER_ORDER = [
    "No.",
    "Kode Barang",
    "Nama Barang",
    "Kategori",
    "Model",
    "Satuan",
    "Stock Sebelumnya",
    "Stock Sekarang",
    "Harga Satuan",
    "Total Harga Stock Keluar",
    "Total Harga Stock Sekarang",
    "Umur Stock (Dalam Hari)",
    "MinStockThreshold",
]

# Fields read from the CSV as numbers. MinStockThreshold is computed, never read.
NUMERIC_FIELDS = [
    "No.",
    "Stock Sebelumnya",
    "Stock Sekarang",
    "Stock Keluar",
    "Harga Satuan",
    "Total Harga Stock Keluar",
    "Total Harga Stock Sekarang",
    "Umur Stock (Dalam Hari)",
]

# --- Threshold Heuristic ---
MIN_BASE_STOCK = 2
DROP_IMPACT_RATE = 0.10
CURRENT_STOCK_RATE = 0.10
OUTFLOW_RATE = 0.25

# --- Stock Status ---
STATUS_OUT_OF_STOCK = "Out of Stock"
STATUS_LOW_STOCK = "Low Stock"
STATUS_SUFFICIENT = "Sufficient Stock"

# Ascending order puts the most urgent status first.
STATUS_ORDER = {
    STATUS_OUT_OF_STOCK: 0,
    STATUS_LOW_STOCK: 1,
    STATUS_SUFFICIENT: 2,
}
UNKNOWN_STATUS_RANK = 99

# --- Dashboard ---
UNCATEGORIZED = "Uncategorized"
UNKNOWN_ITEM = "Unknown Item"
UNKNOWN_PRODUCT = "Unknown Product"
STOCK_COMPARISON_TOP_N = 25
TOP_SOLD_TOP_N = 25
LONGEST_AGE_TOP_N = 15
HISTOGRAM_TARGET_BINS = 10
NAME_MAX_LENGTH = 20
NAME_TRUNCATE_LENGTH = 17
