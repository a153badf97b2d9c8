"""
csv_io.py
---------

CSV import and export for the journal.

Import is forgiving about headers: names are lower-cased, stripped of
whitespace and underscores, then looked up in an alias table covering the
English and Portuguese column names (including this app's own export
header). Unknown columns are ignored. Row coercion is all-or-nothing: the
first row with a non-numeric operation number or lot count aborts the
whole batch before anything is merged.
"""

import csv
import io
import logging
import re
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional

from .models import (
    EXPORT_FIELDS,
    Operation,
    SIDES,
    SIDE_BUY,
    STATUSES,
    STATUS_BREAK_EVEN,
    recover_point_value,
)
from .numbers import is_iso_date, parse_currency, parse_int

logger = logging.getLogger(__name__)

HEADER_ALIASES: Dict[str, str] = {
    "opnumber": "op_number", "op#": "op_number", "nro.daoperação": "op_number",
    "asset": "asset", "ativo": "asset",
    "side": "side", "lado": "side",
    "date": "date", "data": "date",
    "lots": "lots", "lotes": "lots",
    "entryprice": "entry_price", "preçodeentrada": "entry_price", "entrada": "entry_price",
    "exitprice": "exit_price", "preçodesaída": "exit_price", "saída": "exit_price",
    "pointvalue": "point_value", "valorporponto": "point_value",
    "points": "points", "pontos": "points",
    "result": "result", "resultado": "result",
    "status": "status",
    "region": "region", "região": "region",
    "structure": "structure", "estrutura": "structure",
    "trigger": "trigger", "gatilho": "trigger",
}

_HEADER_STRIP = re.compile(r"[\s_]")


class CSVImportError(Exception):
    """Base class for failures that abort an import."""


class CSVFormatError(CSVImportError):
    """The file itself could not be parsed as CSV."""


class ImportRowError(CSVImportError):
    """A data row could not be coerced into an operation."""

    def __init__(self, row_number: int, reason: str = "Invalid number") -> None:
        self.row_number = row_number
        self.reason = reason
        super().__init__(f"{reason} in row {row_number}.")


def normalize_header(name: str) -> str:
    return _HEADER_STRIP.sub("", (name or "").lower())


def canonical_field(name: str) -> Optional[str]:
    return HEADER_ALIASES.get(normalize_header(name))


UPLOAD_ENCODINGS = ("utf-8", "cp1252")


def decode_upload(data: bytes) -> str:
    """Decode an upload as UTF-8, falling back to Windows-1252 (Excel's
    default for Portuguese sheets)."""
    for encoding in UPLOAD_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise CSVFormatError("The file is not UTF-8 or Windows-1252 text.")


def read_csv(text: str) -> List[Dict[str, str]]:
    """Parse CSV text with a required header row into a list of dicts."""
    if text.startswith("\ufeff"):
        text = text[1:]
    reader = csv.DictReader(io.StringIO(text), strict=True)
    try:
        if not reader.fieldnames:
            raise CSVFormatError("The file has no header row.")
        rows = []
        for row in reader:
            # extra trailing cells are collected under the None key
            rows.append({k: (v or "") for k, v in row.items() if isinstance(k, str)})
    except csv.Error as e:
        raise CSVFormatError(str(e)) from e
    return rows


def normalize_row(row: Mapping[str, str]) -> Dict[str, str]:
    """Map a raw row onto canonical field names, dropping unknown columns."""
    out: Dict[str, str] = {}
    for key, value in row.items():
        field = canonical_field(key)
        if field is not None:
            out[field] = value
    return out


def _coerce(row: Dict[str, str], op_id: int, row_number: int, today: date) -> Operation:
    op_number = parse_int(row.get("op_number") or "0")
    lots = parse_int(row.get("lots") or "0")
    if op_number is None or lots is None:
        raise ImportRowError(row_number)
    if lots <= 0:
        raise ImportRowError(row_number, "Lots must be a positive number")

    side = row.get("side", "")
    if side not in SIDES:
        side = SIDE_BUY

    file_status = row.get("status", "")
    if file_status not in STATUSES:
        file_status = STATUS_BREAK_EVEN

    raw_date = (row.get("date") or "").strip()
    points = parse_currency(row.get("points"))
    result = parse_currency(row.get("result"))
    if "point_value" in row:
        point_value = parse_currency(row["point_value"])
    else:
        point_value = recover_point_value(points, result, lots)

    op = Operation(
        id=op_id,
        op_number=op_number,
        asset=str(row.get("asset") or ""),
        side=side,
        date=raw_date if is_iso_date(raw_date) else today.isoformat(),
        lots=lots,
        entry_price=parse_currency(row.get("entry_price")),
        exit_price=parse_currency(row.get("exit_price")),
        point_value=point_value,
        points=points,
        result=result,
        region=str(row.get("region") or ""),
        structure=str(row.get("structure") or ""),
        trigger=str(row.get("trigger") or ""),
    )
    if row.get("status") and file_status != op.status:
        logger.warning(
            "Row %d: status %r disagrees with result %.2f, using %r",
            row_number, file_status, result, op.status,
        )
    return op


def normalize_rows(
    rows: Iterable[Mapping[str, str]], first_id: int, today: date
) -> List[Operation]:
    """Coerce raw CSV rows into operations.

    Parameters
    ----------
    rows: Iterable[Mapping[str, str]]
        Rows keyed by the file's own header names.
    first_id: int
        Identifier for the first row; row ``i`` gets ``first_id + i``.
    today: date
        Fallback date for rows with a missing or malformed date.

    Raises
    ------
    ImportRowError
        On the first row whose operation number or lot count is not a
        number, or whose lot count is not positive. Its row number counts
        the header as row 1.
    """
    ops = []
    for index, raw in enumerate(rows):
        ops.append(_coerce(normalize_row(raw), first_id + index, index + 2, today))
    return ops


def export_csv(operations: Iterable[Operation]) -> str:
    """Serialize every operation, header first."""
    out = io.StringIO()
    w = csv.DictWriter(out, fieldnames=EXPORT_FIELDS, lineterminator="\r\n")
    w.writeheader()
    for op in operations:
        w.writerow(op.to_row())
    return out.getvalue()


def export_filename(today: date) -> str:
    return f"Diario_Trade_{today:%d-%m-%Y}.csv"
