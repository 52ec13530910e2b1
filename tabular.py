# tabular.py
"""
Spreadsheet codec: CSV / Excel files in, ordered row-mappings out, and the
route report workbook back out.
"""

from pathlib import Path
from typing import Iterable, Optional
import io

import pandas as pd

from columns import (
    MASTER_COLUMN_MAP,
    MISSING_COLUMN_MAP,
    MISSING_COLUMNS,
    REPORT_COLUMNS,
    SALES_COLUMN_MAP,
    apply_column_mapping,
)
from reconcile import (
    MasterRecord,
    MissingParty,
    ReportRow,
    SalesRecord,
    master_from_rows,
    sales_from_rows,
)


EXCEL_SUFFIXES = (".xlsx", ".xls")
REPORT_SHEET_NAME = "Route Report"
MISSING_SHEET_NAME = "Missing Parties"
DEFAULT_REPORT_FILE = "Updated_Route_Report.xlsx"


class TabularReadError(RuntimeError):
    """Raised when an input file cannot be read or lacks required columns."""

    def __init__(self, label: str, message: str):
        self.label = label
        super().__init__(f"Failed to read {label} file: {message}")


class ReportWriteError(RuntimeError):
    """Raised when the report workbook cannot be produced."""


# ==============================
# File loading
# ==============================

def _source_name(source, name: Optional[str]) -> str:
    if name:
        return name
    if isinstance(source, (str, Path)):
        return str(source)
    return getattr(source, "name", "") or ""


def load_table(source, name: Optional[str] = None, label: str = "input") -> pd.DataFrame:
    """
    Load CSV or Excel into a DataFrame of strings.

    `source` may be a path, raw bytes, or a file-like object (e.g. a
    Streamlit upload). The file type is taken from `name` or the source's
    own name; anything that is not .xlsx/.xls is parsed as CSV. Only the
    first sheet of a workbook is read and its first row holds the headers.
    """
    file_name = _source_name(source, name)

    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise TabularReadError(label, f"file not found: {path}")
        handle = path
    elif isinstance(source, (bytes, bytearray)):
        handle = io.BytesIO(source)
    else:
        handle = source

    try:
        if Path(file_name).suffix.lower() in EXCEL_SUFFIXES:
            df = pd.read_excel(handle, sheet_name=0, dtype=str, keep_default_na=False)
        else:
            df = pd.read_csv(handle, dtype=str, keep_default_na=False, encoding="utf-8-sig")
    except Exception as exc:
        raise TabularReadError(label, f"{file_name or 'upload'} is not a valid CSV or XLSX ({exc})") from exc

    # Cell text such as "NA" or "None" is data, not a missing value
    df = df.fillna("")
    # Blank rows are skipped, as spreadsheet-to-JSON readers do
    df = df[(df != "").any(axis=1)].reset_index(drop=True)
    df.columns = [str(c).strip() for c in df.columns]
    return df


def read_rows(
    source,
    name: Optional[str] = None,
    label: str = "input",
    column_map: Optional[dict] = None,
) -> list[dict[str, str]]:
    """
    Decode a file into row-mappings keyed by header.

    With a column_map, headers are resolved to their canonical spelling and
    a missing required column is reported as a read error.
    """
    df = load_table(source, name=name, label=label)

    if column_map is not None:
        df, missing_required = apply_column_mapping(df, column_map)
        if missing_required:
            raise TabularReadError(
                label, f"missing required column(s): {', '.join(missing_required)}"
            )

    return df.to_dict(orient="records")


def read_master(source, name: Optional[str] = None) -> list[MasterRecord]:
    return master_from_rows(read_rows(source, name, label="master", column_map=MASTER_COLUMN_MAP))


def read_sales(source, name: Optional[str] = None) -> list[SalesRecord]:
    return sales_from_rows(read_rows(source, name, label="sales", column_map=SALES_COLUMN_MAP))


def read_missing_parties(source, name: Optional[str] = None) -> list[MissingParty]:
    rows = read_rows(source, name, label="missing parties", column_map=MISSING_COLUMN_MAP)
    return [MissingParty.from_row(row) for row in rows]


# ==============================
# Writing
# ==============================

def report_frame(rows: Iterable[ReportRow]) -> pd.DataFrame:
    return pd.DataFrame([row.as_row() for row in rows], columns=REPORT_COLUMNS)


def _write_workbook(df: pd.DataFrame, target, sheet_name: str) -> None:
    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)


def report_to_bytes(rows: Iterable[ReportRow]) -> bytes:
    """Encode the report workbook in memory (for download buttons)."""
    buffer = io.BytesIO()
    try:
        _write_workbook(report_frame(rows), buffer, REPORT_SHEET_NAME)
    except Exception as exc:
        raise ReportWriteError(f"Could not encode report: {exc}") from exc
    return buffer.getvalue()


def write_report(
    rows: Iterable[ReportRow],
    output_dir: Path,
    file_name: str = DEFAULT_REPORT_FILE,
) -> Path:
    """Write the one-sheet route report and return its path."""
    output_dir = Path(output_dir)
    report_path = output_dir / file_name
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        _write_workbook(report_frame(rows), report_path, REPORT_SHEET_NAME)
    except Exception as exc:
        raise ReportWriteError(f"Could not write {report_path}: {exc}") from exc
    return report_path


def write_missing_parties(parties: Iterable[MissingParty], path: Path) -> Path:
    """Write the operator review sheet (Party Name, Phone No., Address)."""
    path = Path(path)
    df = pd.DataFrame([party.as_row() for party in parties], columns=MISSING_COLUMNS)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.suffix.lower() in EXCEL_SUFFIXES:
            _write_workbook(df, path, MISSING_SHEET_NAME)
        else:
            df.to_csv(path, index=False)
    except Exception as exc:
        raise ReportWriteError(f"Could not write {path}: {exc}") from exc
    return path
