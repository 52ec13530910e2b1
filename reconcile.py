# reconcile.py

from dataclasses import dataclass
from typing import Iterable, Optional
import re

from columns import (
    ADDRESS,
    GROUP,
    LATITUDE,
    LONGITUDE,
    MASTER_NUMBER,
    NAME,
    NOTES,
    PARTY_NAME,
    PHONE,
    SALES_PHONE,
)


# Two ASCII decimal numbers (fraction required), optional comma between them.
COORD_PATTERN = re.compile(r"(-?\d+\.\d+)\s*,?\s*(-?\d+\.\d+)", re.ASCII)


# ==============================
# Records
# ==============================

def cell_text(value) -> str:
    """
    Render a cell value as text.

    None / NaN become "", integral floats lose their trailing ".0"
    (spreadsheets store phone numbers as numbers).
    """
    if value is None:
        return ""
    if isinstance(value, float):
        if value != value:
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


@dataclass(frozen=True)
class MasterRecord:
    party_name: str
    phone: str = ""
    address: str = ""

    @classmethod
    def from_row(cls, row: dict) -> "MasterRecord":
        return cls(
            party_name=cell_text(row.get(PARTY_NAME)),
            phone=cell_text(row.get(MASTER_NUMBER)),
            address=cell_text(row.get(ADDRESS)),
        )

    def as_row(self) -> dict[str, str]:
        return {PARTY_NAME: self.party_name, MASTER_NUMBER: self.phone, ADDRESS: self.address}


@dataclass(frozen=True)
class SalesRecord:
    party_name: str
    phone: str = ""

    @classmethod
    def from_row(cls, row: dict) -> "SalesRecord":
        return cls(
            party_name=cell_text(row.get(PARTY_NAME)),
            phone=cell_text(row.get(SALES_PHONE)),
        )


@dataclass
class MissingParty:
    """Candidate master entry; the operator edits it before the merge."""

    name: str
    phone: str = ""
    address: str = ""

    @classmethod
    def from_row(cls, row: dict) -> "MissingParty":
        return cls(
            name=cell_text(row.get(PARTY_NAME)),
            phone=cell_text(row.get(SALES_PHONE)),
            address=cell_text(row.get(ADDRESS)),
        )

    def as_row(self) -> dict[str, str]:
        return {PARTY_NAME: self.name, SALES_PHONE: self.phone, ADDRESS: self.address}


@dataclass(frozen=True)
class Coordinates:
    lat: str = ""
    lng: str = ""

    def __bool__(self) -> bool:
        return bool(self.lat or self.lng)


@dataclass(frozen=True)
class ReportRow:
    name: str
    latitude: str
    longitude: str
    address: str
    phone: str
    group: str = ""
    notes: str = ""

    def as_row(self) -> dict[str, str]:
        return {
            NAME: self.name,
            LATITUDE: self.latitude,
            LONGITUDE: self.longitude,
            ADDRESS: self.address,
            PHONE: self.phone,
            GROUP: self.group,
            NOTES: self.notes,
        }


def master_from_rows(rows: Iterable[dict]) -> list[MasterRecord]:
    return [MasterRecord.from_row(row) for row in rows]


def sales_from_rows(rows: Iterable[dict]) -> list[SalesRecord]:
    return [SalesRecord.from_row(row) for row in rows]


# ==============================
# Matching primitives
# ==============================

def normalize_name(name: Optional[str]) -> str:
    """Comparison key for a party name: trimmed and lowercased."""
    return (name or "").strip().lower()


def extract_coordinates(address: Optional[str]) -> Coordinates:
    """
    Pull the first embedded "lat lng" pair out of a free-text address.

    Matches e.g. "31.65 74.89", "31.65, 74.89", "-31.5,74.2". Both numbers
    need a decimal part, and the captured text is returned verbatim so
    precision and sign survive. Anything else yields empty Coordinates.
    """
    if not address:
        return Coordinates()

    match = COORD_PATTERN.search(address)
    if match:
        return Coordinates(lat=match.group(1), lng=match.group(2))

    return Coordinates()


# ==============================
# Reconciliation
# ==============================

def find_missing(
    master: Iterable[MasterRecord],
    sales: Iterable[SalesRecord],
) -> list[MissingParty]:
    """
    Parties that appear in sales but not in master.

    - One entry per distinct normalized name, in first-occurrence order.
    - The entry keeps the sales spelling of the name and its phone.
    - Address starts empty for the operator to fill in.
    """
    master_keys = {normalize_name(record.party_name) for record in master}

    missing: list[MissingParty] = []
    seen: set[str] = set()
    for sale in sales:
        key = normalize_name(sale.party_name)
        if key in master_keys or key in seen:
            continue
        seen.add(key)
        missing.append(MissingParty(name=sale.party_name, phone=sale.phone or "", address=""))

    return missing


def merge_missing(
    master: Iterable[MasterRecord],
    confirmed: Iterable[MissingParty],
) -> list[MasterRecord]:
    """
    Append the confirmed parties to the end of master, in order.

    No duplicate check is made here: a party whose name the operator edited
    into an existing master name ends up twice. Use find_name_collisions to
    warn about that before merging.
    """
    merged = list(master)
    merged.extend(
        MasterRecord(party_name=party.name, phone=party.phone, address=party.address)
        for party in confirmed
    )
    return merged


def find_name_collisions(
    master: Iterable[MasterRecord],
    confirmed: Iterable[MissingParty],
) -> list[MissingParty]:
    """Confirmed parties whose name already exists in master or earlier in the list."""
    taken = {normalize_name(record.party_name) for record in master}
    collisions = []
    for party in confirmed:
        key = normalize_name(party.name)
        if key in taken:
            collisions.append(party)
        taken.add(key)
    return collisions


# ==============================
# Report
# ==============================

def build_report(
    master: Iterable[MasterRecord],
    sales: Iterable[SalesRecord],
) -> list[ReportRow]:
    """
    One report row per sales record, in sales order.

    Address comes from the matching master record (last one wins when master
    holds the same name twice). Phone prefers the sales value and falls back
    to master. Group and Notes are left blank for manual use.
    """
    master_map: dict[str, MasterRecord] = {}
    for record in master:
        master_map[normalize_name(record.party_name)] = record

    rows: list[ReportRow] = []
    for sale in sales:
        matched = master_map.get(normalize_name(sale.party_name))
        address = matched.address if matched else ""
        coords = extract_coordinates(address)
        phone = sale.phone or (matched.phone if matched else "") or ""

        rows.append(
            ReportRow(
                name=sale.party_name,
                latitude=coords.lat,
                longitude=coords.lng,
                address=address,
                phone=phone,
            )
        )

    return rows


def report_summary(rows: Iterable[ReportRow]) -> dict[str, int]:
    rows = list(rows)
    return {
        "rows": len(rows),
        "with_address": sum(1 for r in rows if r.address),
        "with_coordinates": sum(1 for r in rows if r.latitude and r.longitude),
    }
