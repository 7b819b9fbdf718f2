# config.py
import os

# Compute the project root relative to this file.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Default location of the exported results (created on demand by the caller).
OUTPUT_DIR = os.path.join(PROJECT_ROOT, "out")
DEFAULT_INPUT_PATH = os.path.join(OUTPUT_DIR, "results.json")
DEFAULT_OUTPUT_PATH = os.path.join(OUTPUT_DIR, "results.csv")

ENCODING = "utf-8"

# Record fields with special handling.
SORT_FIELD = "rollNo"
SGPA_FIELD = "SGPA"
TRAILING_FIELD = "instituteName"

# One column per semester, always emitted in order.
SEMESTER_COUNT = 8
SEMESTER_KEYS = [f"sem{i}" for i in range(1, SEMESTER_COUNT + 1)]
SGPA_HEADERS = [f"{SGPA_FIELD}_{sem}" for sem in SEMESTER_KEYS]

# Columns that always close the header row.
TRAILING_HEADERS = SGPA_HEADERS + [TRAILING_FIELD]

HEADER_STRATEGIES = ["first", "union"]
QUOTING_MODES = ["json", "csv"]

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
