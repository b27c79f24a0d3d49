"""
csv_parser.py
--------------
📑 Parses the regulator's semicolon-delimited tables into row dictionaries.

Purpose:
--------
Both regulator sources (pricing table and commercial-conditions table) are
published as semicolon-delimited text with Portuguese comma decimals and a
variable encoding (UTF-8 with or without BOM, CRLF or LF line endings).

Workflow:
---------
1️⃣ Read the table with pandas (every cell as text, ";" separator, no
   quoting, BOM removed by the utf-8-sig codec).
2️⃣ The first line is the header; its stripped field names are opaque keys.
3️⃣ Every later line becomes a dict; values are trimmed and numeric-looking
   values are coerced ("0,1658" -> 0.1658, "2" -> 2).

Inputs:
-------
- Raw text of one CSV file

Outputs:
--------
- List of row dicts (header name -> str | int | float)

Depends On:
-----------
- pandas
- tariff_comparator.utils.logger
"""

import csv
import io
import os
import re
from typing import Dict, List, Union

import pandas as pd

from tariff_comparator.utils.logger import get_logger

logger = get_logger(__name__)

CellValue = Union[str, int, float]
Row = Dict[str, CellValue]

INTEGER_RE = re.compile(r"-?\d+")
DECIMAL_RE = re.compile(r"-?\d+[,.]\d+")

# Every cell is read as text and coerced afterwards; quotes are ordinary characters.
READ_OPTIONS = {
    "sep": ";",
    "header": None,
    "dtype": str,
    "keep_default_na": False,
    "engine": "python",
    "quoting": csv.QUOTE_NONE,
    "skip_blank_lines": True,
}


class CsvParseError(ValueError):
    """Raised when a source table has no header or no data rows."""


class SourceDataError(RuntimeError):
    """Raised when a regulator source file is missing or empty (fatal for a build)."""


def coerce_value(raw: str) -> CellValue:
    """
    Trims a cell and converts integers / comma-or-dot decimals to numbers.
    Anything else (including the empty string) stays a trimmed string.
    """
    value = raw.strip()
    if value == "":
        return ""
    if INTEGER_RE.fullmatch(value):
        return int(value)
    if DECIMAL_RE.fullmatch(value):
        return float(value.replace(",", "."))
    return value


def _keep_leading_fields(fields: List[str]) -> List[str]:
    # pandas drops the fields past the header width once the row is handed back
    return fields


def _read_frame(source, **options) -> pd.DataFrame:
    try:
        return pd.read_csv(source, on_bad_lines=_keep_leading_fields, **READ_OPTIONS, **options)
    except pd.errors.EmptyDataError as e:
        raise CsvParseError("CSV text is empty (no header)") from e
    except pd.errors.ParserError as e:
        raise CsvParseError(f"CSV text could not be split into fields: {e}") from e


def frame_to_rows(df: pd.DataFrame) -> List[Row]:
    """
    First frame row is the header; every later row becomes a dict keyed by
    the stripped header names. Missing trailing fields become "" and rows
    with nothing but blanks are skipped.
    """
    df = df.fillna("")
    if df.empty:
        raise CsvParseError("CSV text is empty (no header)")

    headers = [str(h).replace("\ufeff", "").strip() for h in df.iloc[0]]
    if not any(headers):
        raise CsvParseError("CSV header has no field names")

    rows: List[Row] = []
    for values in df.iloc[1:].itertuples(index=False, name=None):
        row = {header: coerce_value(str(value)) for header, value in zip(headers, values)}
        if any(value != "" for value in row.values()):
            rows.append(row)

    if not rows:
        raise CsvParseError("CSV file has no data rows")
    return rows


def parse_semicolon_text(text: str) -> List[Row]:
    """
    Parse semicolon-delimited text into a list of row dicts.

    Rows shorter than the header get "" for the missing fields; extra
    trailing fields are ignored. Blank lines are skipped.
    """
    return frame_to_rows(_read_frame(io.StringIO(text or "")))


def load_source_table(file_path: str) -> List[Row]:
    """
    Read and parse one regulator source file (UTF-8, optional BOM).

    Missing, empty, undecodable or unparseable files raise SourceDataError
    so the build stops before anything is written.
    """
    if not os.path.exists(file_path):
        logger.error(f"❌ Missing source file: {file_path}")
        raise SourceDataError(f"Missing source file: {file_path}")
    if os.path.getsize(file_path) == 0:
        logger.error(f"❌ Empty source file: {file_path}")
        raise SourceDataError(f"Empty source file: {file_path}")

    try:
        rows = frame_to_rows(_read_frame(file_path, encoding="utf-8-sig"))
    except UnicodeDecodeError as e:
        logger.error(f"❌ Source file is not valid UTF-8 {file_path}: {e}")
        raise SourceDataError(f"Source file is not valid UTF-8 {file_path}: {e}") from e
    except CsvParseError as e:
        logger.error(f"❌ Unparseable source file {file_path}: {e}")
        raise SourceDataError(f"Unparseable source file {file_path}: {e}") from e

    logger.info(f"📄 Parsed {os.path.basename(file_path)} | Rows: {len(rows)}")
    return rows
