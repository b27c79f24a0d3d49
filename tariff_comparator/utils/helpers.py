"""
helpers.py
-----------
🧰 Common utility functions for file handling and text normalization.

Purpose:
--------
Centralized helper methods used by the catalog build and comparison stages.
Includes:
- JSON and CSV utilities (offer snapshot, build metadata, ranking exports)
- Text normalization for keyword matching

Dependencies:
-------------
- pandas
- json
- unicodedata
- tariff_comparator.utils.logger

Usage Example:
--------------
from tariff_comparator.utils.helpers import read_json, save_json
meta = read_json(meta_path)
save_json(meta, meta_path)
"""

import os
import re
import json
import unicodedata

import pandas as pd

from tariff_comparator.utils.logger import get_logger

logger = get_logger(__name__)


# ----------------------------------------------------------------------
# 1️⃣ CSV File Handlers
# ----------------------------------------------------------------------
def save_csv(df: pd.DataFrame, file_path: str):
    """
    Saves a pandas DataFrame as a semicolon-delimited CSV.
    """
    df.to_csv(file_path, index=False, sep=";", encoding="utf-8")
    logger.info(f"💾 Saved CSV file: {file_path} | Rows: {len(df)}")


# ----------------------------------------------------------------------
# 2️⃣ JSON File Handlers
# ----------------------------------------------------------------------
def read_json(file_path: str):
    """
    Reads a JSON file and returns the decoded object.
    Missing or invalid files are logged and yield an empty dict.
    """
    if not os.path.exists(file_path):
        logger.warning(f"⚠️ JSON file not found: {file_path}")
        return {}
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        logger.info(f"📜 Loaded JSON file: {file_path}")
        return data
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"❌ Failed to read JSON {file_path}: {e}")
        return {}


def save_json(data, file_path: str):
    """
    Saves data as a pretty-printed UTF-8 JSON file.
    """
    try:
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        logger.info(f"💾 JSON saved successfully: {file_path}")
    except (OSError, TypeError) as e:
        logger.error(f"❌ Failed to save JSON {file_path}: {e}")
        raise


# ----------------------------------------------------------------------
# 3️⃣ Text normalization
# ----------------------------------------------------------------------
def normalize_text_for_tokens(text) -> str:
    """
    Lowercases and strips accents so 'Fidelização' and 'fidelizacao' match.
    """
    if text is None:
        return ""
    text = unicodedata.normalize("NFD", str(text).lower())
    return "".join(ch for ch in text if not unicodedata.combining(ch))


def collapse_whitespace(text, limit: int = None) -> str:
    """
    Cuts text to `limit` characters, then squeezes runs of whitespace.
    """
    text = "" if text is None else str(text)
    if limit is not None:
        text = text[:limit]
    return re.sub(r"\s+", " ", text).strip()
