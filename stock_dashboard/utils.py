import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from . import settings

logger = logging.getLogger(__name__)


def get_date_suffix_for_filename() -> str:
    """Returns the current date as a YYYY-MM-DD string for filenames."""
    return datetime.now().strftime("%Y-%m-%d")


def canonical_headers(records: Iterable[Mapping[str, Any]]) -> list[str]:
    """
    Every field seen across the record set, known fields first in their fixed
    order, then the rest in case-insensitive lexical order.
    """
    seen = set()
    for record in records:
        seen.update(record.keys())

    known = [header for header in settings.KNOWN_HEADER_ORDER if header in seen]
    extra = sorted(
        (header for header in seen if header not in settings.KNOWN_HEADER_ORDER),
        key=lambda header: (header.casefold(), header),
    )
    return known + extra


def load_csv_text(file_path: Path) -> Optional[str]:
    """
    Reads an export from disk with a multi-stage encoding fallback:
    1. UTF-8 with BOM support ('utf-8-sig').
    2. Latin-1, which can read any byte.
    Returns None when the file does not exist.
    """
    try:
        return file_path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError:
        logger.info(
            f"UTF-8 decoding failed for {file_path.name}. Retrying with 'latin-1'."
        )
        return file_path.read_text(encoding="latin-1")
    except FileNotFoundError:
        logger.info(f"Report not found at {file_path}, skipping.")
        return None


def find_latest_export(directory: Path, prefix: str) -> Optional[Path]:
    """Newest CSV in the directory whose name starts with the prefix."""
    if not directory.exists():
        return None
    candidates = sorted(
        directory.glob(f"{prefix}*.csv"), key=lambda path: path.stat().st_mtime
    )
    return candidates[-1] if candidates else None
