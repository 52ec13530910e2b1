# session.py
"""
Wizard session for the route report flow.

The session owns everything that changes while the operator works: the
uploaded master and sales records, the missing-party edits, the current
step and the last error. The reconciliation functions in reconcile.py stay
pure; this module calls them and catches codec failures so the UI can show
a message instead of crashing.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Optional
import hashlib

from reconcile import (
    MasterRecord,
    MissingParty,
    ReportRow,
    SalesRecord,
    build_report,
    find_missing,
    find_name_collisions,
    merge_missing,
)
from tabular import (
    DEFAULT_REPORT_FILE,
    ReportWriteError,
    TabularReadError,
    load_table,
    read_master,
    read_sales,
    report_to_bytes,
)


class WizardStep(IntEnum):
    UPLOAD_INITIAL = 1
    VERIFY_MISSING = 2
    UPLOAD_TEMPLATE = 3
    COMPLETE = 4


EDITABLE_FIELDS = ("name", "phone", "address")

MISSING_PREREQUISITES = "Please upload both Master and Sales files first."
REPORT_FAILED = "Error generating final report."


def read_failed_message(kind: str) -> str:
    return f"Failed to read {kind} file. Please ensure it's a valid CSV or XLSX."


def upload_fingerprint(data: bytes) -> str:
    """SHA-256 of an upload, so a re-upload under the same name is noticed."""
    return hashlib.sha256(data).hexdigest()


@dataclass
class RouteSession:
    step: WizardStep = WizardStep.UPLOAD_INITIAL
    master: list[MasterRecord] = field(default_factory=list)
    sales: list[SalesRecord] = field(default_factory=list)
    missing: list[MissingParty] = field(default_factory=list)
    master_file_name: str = ""
    sales_file_name: str = ""
    report_rows: list[ReportRow] = field(default_factory=list)
    report_bytes: Optional[bytes] = None
    report_file_name: str = DEFAULT_REPORT_FILE
    error: Optional[str] = None
    error_detail: Optional[str] = None
    fingerprints: dict[str, str] = field(default_factory=dict)

    # ---------- Step 1: uploads ----------

    def load_file(self, kind: str, source, name: Optional[str] = None) -> bool:
        """
        Load the master or sales file.

        On failure the previously loaded data for that kind is kept and
        `error` is set; returns False.
        """
        if kind not in ("master", "sales"):
            raise ValueError(f"Unknown file kind: {kind}")

        self.clear_error()
        reader = read_master if kind == "master" else read_sales
        try:
            records = reader(source, name)
        except TabularReadError as exc:
            self._fail(read_failed_message(kind), exc)
            return False

        file_name = name or getattr(source, "name", "")
        if not file_name:
            file_name = str(source) if isinstance(source, (str, Path)) else "upload"
        if isinstance(source, (bytes, bytearray)):
            self.fingerprints[kind] = upload_fingerprint(source)
        if kind == "master":
            self.master = records
            self.master_file_name = file_name
        else:
            self.sales = records
            self.sales_file_name = file_name
        return True

    def has_loaded(self, kind: str, data: bytes) -> bool:
        """True when these exact upload bytes are already loaded for `kind`."""
        return self.fingerprints.get(kind) == upload_fingerprint(data)

    @property
    def ready_to_analyze(self) -> bool:
        return bool(self.master) and bool(self.sales)

    def analyze(self) -> bool:
        """Find the missing parties and move to the verify (or template) step."""
        if not self.ready_to_analyze:
            self.error = MISSING_PREREQUISITES
            self.error_detail = None
            return False

        self.clear_error()
        self.missing = find_missing(self.master, self.sales)
        if self.missing:
            self.step = WizardStep.VERIFY_MISSING
        else:
            self.step = WizardStep.UPLOAD_TEMPLATE
        return True

    # ---------- Step 2: operator review ----------

    def edit_missing(self, index: int, field_name: str, value: str) -> None:
        if field_name not in EDITABLE_FIELDS:
            raise ValueError(f"Field {field_name!r} is not editable")
        setattr(self.missing[index], field_name, value)

    def name_collisions(self) -> list[MissingParty]:
        return find_name_collisions(self.master, self.missing)

    def back(self) -> None:
        if self.step == WizardStep.VERIFY_MISSING:
            self.step = WizardStep.UPLOAD_INITIAL

    def finalize_missing(self) -> None:
        """Merge the reviewed parties into master exactly once."""
        if self.step != WizardStep.VERIFY_MISSING:
            return
        self.master = merge_missing(self.master, self.missing)
        self.step = WizardStep.UPLOAD_TEMPLATE

    # ---------- Step 3: report ----------

    def generate_report(self, template_source, name: Optional[str] = None) -> bool:
        """
        Build and encode the route report.

        The template is only decoded to confirm it is a readable sheet; the
        report columns are fixed. On failure the step stays put so the
        operator can retry.
        """
        self.clear_error()
        try:
            load_table(template_source, name=name, label="template")
        except TabularReadError as exc:
            self._fail(read_failed_message("template"), exc)
            return False

        rows = build_report(self.master, self.sales)
        try:
            encoded = report_to_bytes(rows)
        except ReportWriteError as exc:
            self._fail(REPORT_FAILED, exc)
            return False

        self.report_rows = rows
        self.report_bytes = encoded
        self.step = WizardStep.COMPLETE
        return True

    # ---------- housekeeping ----------

    def clear_error(self) -> None:
        self.error = None
        self.error_detail = None

    def _fail(self, message: str, exc: Exception) -> None:
        self.error = message
        self.error_detail = str(exc)

    def reset(self) -> None:
        """Start over with an empty session."""
        self.__dict__.update(RouteSession().__dict__)
