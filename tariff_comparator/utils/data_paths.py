"""
data_paths.py
--------------
Centralized file-path management utility.

📍 Purpose:
This module standardizes where the regulator source tables, the built
offer catalog and exported rankings live. Every stage imports these
paths instead of hard-coding directories.

Example:
    from tariff_comparator.utils.data_paths import RAW_DIR, get_file_path
"""

import os

from tariff_comparator.config import DATA_DIR

# ---------------------------------------------------------------------
# 1️⃣  Sub-directories for the different pipeline stages
# ---------------------------------------------------------------------
SUBDIRS = {
    "raw": "raw",              # Regulator CSVs (prices + commercial conditions)
    "processed": "processed",  # offers.json + meta.json snapshot
    "incoming": "incoming",    # Uploaded invoice PDFs
    "output": "output",        # Ranking exports
}

RAW_DIR = os.path.join(DATA_DIR, SUBDIRS["raw"])
PROCESSED_DIR = os.path.join(DATA_DIR, SUBDIRS["processed"])
INCOMING_DIR = os.path.join(DATA_DIR, SUBDIRS["incoming"])
OUTPUT_DIR = os.path.join(DATA_DIR, SUBDIRS["output"])

# ---------------------------------------------------------------------
# 2️⃣  Ensure all folders exist (creates them automatically if missing)
# ---------------------------------------------------------------------
for folder in [RAW_DIR, PROCESSED_DIR, INCOMING_DIR, OUTPUT_DIR]:
    os.makedirs(folder, exist_ok=True)


# ---------------------------------------------------------------------
# 3️⃣  Helper function to build safe file paths
# ---------------------------------------------------------------------
def get_file_path(subdir: str, filename: str, data_dir: str = None) -> str:
    """
    Returns a full path for a given filename inside one of the known sub-folders.
    Example: get_file_path("raw", "Precos_ELEGN.csv")

    `data_dir` points the lookup at another data root (tests, alternative pulls);
    the sub-folder is created there when missing.
    """
    if subdir not in SUBDIRS:
        raise ValueError(f"❌ Invalid subdir '{subdir}'. Must be one of: {list(SUBDIRS.keys())}")

    folder = os.path.join(data_dir or DATA_DIR, SUBDIRS[subdir])
    os.makedirs(folder, exist_ok=True)
    return os.path.join(folder, filename)


if __name__ == "__main__":
    print("✅ Data path configuration loaded successfully!\n")
    print(f"Data Directory   : {DATA_DIR}")
    print(f"Raw Folder       : {RAW_DIR}")
    print(f"Processed Folder : {PROCESSED_DIR}")
    print(f"Incoming Folder  : {INCOMING_DIR}")
    print(f"Output Folder    : {OUTPUT_DIR}")
