import logging
from datetime import date, datetime
from pathlib import Path
import pandas as pd

from .errors import LoadError

logger = logging.getLogger(__name__)

# Day-month-year with '-', '/' or '.' separators; anything after the year
# (a time component, a timezone) is ignored.
DAY_MONTH_YEAR_PATTERN = r"^\s*(\d{1,2})[-/.](\d{1,2})[-/.](\d{4}|\d{2})"


def get_date_suffix_for_filename() -> str:
    """Returns the current date as a YYYY-MM-DD string for filenames."""
    return datetime.now().strftime("%Y-%m-%d")


def coerce_numeric(series: pd.Series, default: float = 0) -> pd.Series:
    """
    Lenient numeric policy for report columns.
    Values that don't parse as numbers (blank cells, 'N/A', stray text)
    become `default` instead of failing the row.
    """
    return pd.to_numeric(series.astype(str).str.strip(), errors="coerce").fillna(default)


def parse_day_month_year(series: pd.Series) -> pd.Series:
    """
    Parses 'DD-MM-YYYY' style dates into sortable timestamps.
    Two-digit years are read as 20YY. Unparseable values become NaT.
    """
    parts = series.astype(str).str.extract(DAY_MONTH_YEAR_PATTERN)
    day = parts[0].str.zfill(2)
    month = parts[1].str.zfill(2)
    year = parts[2].where(parts[2].str.len() == 4, "20" + parts[2])
    return pd.to_datetime(day + "-" + month + "-" + year, format="%d-%m-%Y", errors="coerce")


def read_text(file_path: Path) -> str:
    """
    Reads a report with an encoding fallback:
    1. UTF-8 with BOM support ('utf-8-sig').
    2. Latin-1, which can read any byte.
    Any I/O failure is raised as a LoadError.
    """
    try:
        return file_path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError:
        logger.info(f"UTF-8 decoding failed for {file_path.name}. Retrying with 'latin-1'.")
    except FileNotFoundError as e:
        raise LoadError(f"Report not found at {file_path}") from e
    except OSError as e:
        raise LoadError(f"Could not read {file_path.name}: {e}") from e

    try:
        return file_path.read_text(encoding="latin-1")
    except OSError as e:
        raise LoadError(f"Could not read {file_path.name}: {e}") from e


def find_latest_report(directory: Path, prefix: str) -> tuple[Path, date] | None:
    """
    Finds the most recently modified '<prefix>*.csv' in `directory`.
    Returns the path and its modification date, or None when nothing matches.
    """
    if not directory.is_dir():
        return None

    candidates = [p for p in directory.glob(f"{prefix}*.csv") if p.is_file()]
    if not candidates:
        return None

    latest = max(candidates, key=lambda p: p.stat().st_mtime)
    return latest, datetime.fromtimestamp(latest.stat().st_mtime).date()
