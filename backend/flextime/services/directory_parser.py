"""
Client directory parser for spreadsheet uploads (CSV or XLSX).

Expected columns (case-insensitive, any of the aliases):
  Email / client email / e-mail / contact
  Group / groups / group id / group name / client group

A group cell may list several groups separated by "," or ";".
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import IO

import pandas as pd

logger = logging.getLogger(__name__)

COLUMN_ALIASES: dict[str, list[str]] = {
    "email": [
        "email", "e-mail", "client email", "client_email", "contact", "contact email",
    ],
    "groups": [
        "group", "groups", "group id", "group_id", "group name", "group_name",
        "client group", "client groups", "jibble group id",
    ],
}

# Flat set of all known aliases, used for header row detection
_ALL_ALIASES: frozenset[str] = frozenset(
    alias for aliases in COLUMN_ALIASES.values() for alias in aliases
)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_GROUP_SPLIT_RE = re.compile(r"[;,]")


@dataclass(frozen=True)
class DirectoryEntry:
    email: str
    group_labels: tuple[str, ...]


def _read(file: IO[bytes], is_csv: bool, **kwargs) -> pd.DataFrame:
    if is_csv:
        return pd.read_csv(file, dtype=str, **kwargs)
    return pd.read_excel(file, engine="openpyxl", dtype=str, **kwargs)


def _find_header_row(file: IO[bytes], is_csv: bool) -> int:
    """
    Scan the first 20 rows looking for the one with the most column-alias
    matches. Returns the 0-based row index to pass as ``header=``.
    """
    try:
        probe = _read(file, is_csv, nrows=20, header=None)
    except (ValueError, OSError, pd.errors.ParserError):
        return 0
    finally:
        # Always reset so the caller can read the file again
        file.seek(0)

    best_row, best_score = 0, 0
    for row_idx, row in probe.iterrows():
        score = sum(
            1 for cell in row
            if isinstance(cell, str) and cell.lower().strip() in _ALL_ALIASES
        )
        if score > best_score:
            best_score = score
            best_row = int(row_idx)

    return best_row if best_score >= 2 else 0


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename DataFrame columns to canonical names using COLUMN_ALIASES."""
    lower_cols = {str(c).lower().strip(): c for c in df.columns}
    rename_map: dict[str, str] = {}
    for canonical, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in lower_cols:
                rename_map[lower_cols[alias]] = canonical
                break
    return df.rename(columns=rename_map)


def _clean_cell(value: object) -> str:
    """Normalize pandas NaN placeholders to empty string."""
    text = str(value or "").strip()
    return "" if text.lower() in ("nan", "none", "nat") else text


def parse_directory(
    file: IO[bytes], filename: str
) -> tuple[list[DirectoryEntry], list[str]]:
    """
    Parse a client directory file and return (entries, error_messages).

    Rows for the same email are merged; group labels keep first-seen order.
    """
    is_csv = filename.lower().endswith(".csv")
    header_row = _find_header_row(file, is_csv)

    try:
        df = _read(file, is_csv, header=header_row)
    except (ValueError, OSError, pd.errors.ParserError) as exc:
        return [], [f"Could not open file: {exc}"]

    df = _normalize_columns(df)

    missing = [c for c in ("email", "groups") if c not in df.columns]
    if missing:
        return [], [f"Missing required columns: {', '.join(missing)}"]

    merged: dict[str, list[str]] = {}
    errors: list[str] = []
    skipped_empty = 0

    # header_row is 0-based; the header takes one row, so data starts at +2 (1-indexed)
    for i, row in enumerate(df.itertuples(index=False), start=header_row + 2):
        email = _clean_cell(getattr(row, "email", "")).lower()
        raw_groups = _clean_cell(getattr(row, "groups", ""))

        if not email and not raw_groups:
            skipped_empty += 1
            continue

        if not _EMAIL_RE.match(email):
            msg = f"Row {i}: invalid email '{email}'"
            logger.warning("Skipped: %s", msg)
            errors.append(msg)
            continue

        labels = [g.strip() for g in _GROUP_SPLIT_RE.split(raw_groups) if g.strip()]
        if not labels:
            msg = f"Row {i}: no group listed for {email}"
            logger.warning("Skipped: %s", msg)
            errors.append(msg)
            continue

        bucket = merged.setdefault(email, [])
        bucket.extend(label for label in labels if label not in bucket)

    entries = [DirectoryEntry(email=e, group_labels=tuple(g)) for e, g in merged.items()]
    logger.info(
        "Directory parsed: clients=%d, errors=%d, empty rows=%d",
        len(entries), len(errors), skipped_empty,
    )
    return entries, errors
