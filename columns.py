# columns.py
"""
Column headers for the master, sales and report sheets, plus header
resolution for files whose headers drift from the canonical spelling.
"""

from difflib import SequenceMatcher
from typing import Dict, List, Tuple
import re

import pandas as pd


# =========================
# CANONICAL HEADERS
# =========================

PARTY_NAME = "Party Name"
MASTER_NUMBER = "Number"
ADDRESS = "Address"
SALES_PHONE = "Phone No."

NAME = "Name"
LATITUDE = "Latitude"
LONGITUDE = "Longitude"
PHONE = "Phone"
GROUP = "Group"
NOTES = "Notes"

REPORT_COLUMNS = [NAME, LATITUDE, LONGITUDE, ADDRESS, PHONE, GROUP, NOTES]
MISSING_COLUMNS = [PARTY_NAME, SALES_PHONE, ADDRESS]


# Canonical header -> accepted variants. Party Name is the only required column.
MASTER_COLUMN_MAP = {
    "required": {
        PARTY_NAME: ["party name", "party", "party_name", "customer name", "name"],
    },
    "optional": {
        MASTER_NUMBER: ["number", "phone", "phone no.", "phone no", "phone number", "contact"],
        ADDRESS: ["address", "party address", "location"],
    },
}

SALES_COLUMN_MAP = {
    "required": {
        PARTY_NAME: ["party name", "party", "party_name", "customer name", "name"],
    },
    "optional": {
        SALES_PHONE: ["phone no.", "phone no", "phone", "phone number", "number", "contact"],
    },
}

MISSING_COLUMN_MAP = {
    "required": {
        PARTY_NAME: ["party name", "name", "party"],
    },
    "optional": {
        SALES_PHONE: ["phone no.", "phone no", "phone", "number"],
        ADDRESS: ["address", "location"],
    },
}

FUZZY_THRESHOLD = 0.8


# =========================
# MATCHING
# =========================

def normalize_header(header) -> str:
    """Lowercase, trim and collapse internal whitespace of a header."""
    return re.sub(r"\s+", " ", str(header).strip().lower())


def similarity_score(a: str, b: str) -> float:
    """Calculate similarity between two strings (0.0 to 1.0)."""
    return SequenceMatcher(None, a.lower(), b.lower()).ratio()


def _find_column(
    variants: List[str],
    normalized_to_actual: Dict[str, str],
    taken: set,
) -> str | None:
    # Exact (normalized) match first, in variant order
    for variant in variants:
        actual = normalized_to_actual.get(normalize_header(variant))
        if actual is not None and actual not in taken:
            return actual

    # Fuzzy fallback for typos like "Party Nmae"
    best_col = None
    best_similarity = 0.0
    for variant in variants:
        for norm, actual in normalized_to_actual.items():
            if actual in taken:
                continue
            sim = similarity_score(normalize_header(variant), norm)
            if sim > best_similarity and sim >= FUZZY_THRESHOLD:
                best_similarity = sim
                best_col = actual
    return best_col


def infer_column_mapping(columns, column_map: Dict[str, Dict]) -> Tuple[Dict[str, str], List[str]]:
    """
    Map canonical headers to the actual headers of a table.

    Returns:
        (mapping, missing_required)
        mapping is canonical -> actual header; missing_required lists the
        required canonical headers that could not be found.
    """
    normalized_to_actual = {}
    for col in columns:
        normalized_to_actual.setdefault(normalize_header(col), col)

    mapping: Dict[str, str] = {}
    missing_required: List[str] = []
    taken: set = set()

    for tier in ("required", "optional"):
        for canonical, variants in (column_map.get(tier) or {}).items():
            found = _find_column([canonical] + variants, normalized_to_actual, taken)
            if found is not None:
                mapping[canonical] = found
                taken.add(found)
            elif tier == "required":
                missing_required.append(canonical)

    return mapping, missing_required


def apply_column_mapping(
    df: pd.DataFrame,
    column_map: Dict[str, Dict],
) -> Tuple[pd.DataFrame, List[str]]:
    """
    Rename a table's headers to the canonical ones.

    Optional columns that are absent are added as empty strings so every
    row carries every canonical header.
    """
    mapping, missing_required = infer_column_mapping(df.columns, column_map)

    df = df.copy()
    rename_map = {actual: canonical for canonical, actual in mapping.items() if actual != canonical}
    if rename_map:
        df = df.rename(columns=rename_map)

    for canonical in (column_map.get("optional") or {}):
        if canonical not in df.columns:
            df[canonical] = ""

    return df, missing_required
