"""
journal.py
----------

The in-memory journal: owner of the operation list, the period filter,
the display language, the REG tag sets and the AI feedback slot.

Every mutating method returns a ``JournalSnapshot``, an immutable view of
the operations plus the aggregates derived from them. Aggregates are
recomputed on demand from the current state; nothing is cached. State
lives only as long as the process.
"""

import logging
import threading
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .analytics import (
    Breakdown,
    CumulativeSeries,
    PERIODS,
    PERIOD_ALL,
    compute_breakdowns,
    compute_dashboard,
    cumulative_series,
    filter_operations,
    utc_today,
)
from .coach import Coach
from .csv_io import export_csv, export_filename, normalize_rows, read_csv
from .i18n import DEFAULT_LANGUAGE, DEFAULT_REGIONS, DEFAULT_TRIGGERS, LANGUAGES
from .models import DEFAULT_POINT_VALUE, SIDES, SIDE_BUY, Operation, TagSet, compute_points
from .numbers import is_iso_date, parse_currency, parse_int

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationDraft:
    """Validated form input, before an id and op number are assigned."""

    asset: str
    side: str
    date: str
    lots: int
    entry_price: float
    exit_price: float
    point_value: float
    region: str
    structure: str
    trigger: str


def parse_form(form: Mapping[str, str]) -> Optional[OperationDraft]:
    """Turn raw form fields into a draft, or None when the submission is invalid.

    ``new_region`` / ``new_trigger`` take precedence over the selected
    values when they are not blank.
    """
    lots = parse_int(form.get("lots"))
    if lots is None or lots <= 0:
        return None
    day = (form.get("date") or "").strip()
    if not is_iso_date(day):
        return None
    try:
        date.fromisoformat(day)
    except ValueError:
        return None

    side = form.get("side", SIDE_BUY)
    if side not in SIDES:
        side = SIDE_BUY

    region = (form.get("new_region") or "").strip() or form.get("region", "")
    trigger = (form.get("new_trigger") or "").strip() or form.get("trigger", "")
    point_value = form.get("point_value")

    return OperationDraft(
        asset=(form.get("asset") or "").strip(),
        side=side,
        date=day,
        lots=lots,
        entry_price=parse_currency(form.get("entry_price")),
        exit_price=parse_currency(form.get("exit_price")),
        point_value=parse_currency(point_value) if point_value not in (None, "") else DEFAULT_POINT_VALUE,
        region=region,
        structure=(form.get("structure") or "").strip(),
        trigger=trigger,
    )


@dataclass(frozen=True)
class JournalSnapshot:
    operations: Tuple[Operation, ...]
    filtered: Tuple[Operation, ...]
    period: str
    language: str
    dashboard: Dict[str, float]
    breakdowns: Dict[str, Breakdown]
    cumulative: CumulativeSeries
    regions: Tuple[str, ...]
    triggers: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operations": [op.to_row() for op in self.operations],
            "filtered_ids": [op.id for op in self.filtered],
            "period": self.period,
            "language": self.language,
            "dashboard": self.dashboard,
            "breakdowns": self.breakdowns,
            "cumulative": self.cumulative.to_dict(),
            "regions": list(self.regions),
            "triggers": list(self.triggers),
        }


class Journal:
    """Owns the operation list and derives everything shown on the page."""

    def __init__(
        self,
        coach: Optional[Coach] = None,
        language: str = DEFAULT_LANGUAGE,
        today: Callable[[], date] = utc_today,
    ) -> None:
        if language not in LANGUAGES:
            raise ValueError(f"Unsupported language: {language!r}")
        self._lock = threading.RLock()
        self._operations: List[Operation] = []
        self._next_id = 1
        self._period = PERIOD_ALL
        self._language = language
        self._today = today
        self.coach = coach or Coach(client=None)
        self.regions = TagSet(DEFAULT_REGIONS[language])
        self.triggers = TagSet(DEFAULT_TRIGGERS[language])

    # ---------- read ----------
    @property
    def language(self) -> str:
        return self._language

    @property
    def period(self) -> str:
        return self._period

    def today(self) -> date:
        return self._today()

    def get(self, op_id: int) -> Operation:
        with self._lock:
            for op in self._operations:
                if op.id == op_id:
                    return op
        raise KeyError(op_id)

    def snapshot(self) -> JournalSnapshot:
        with self._lock:
            operations = tuple(self._operations)
            filtered = tuple(filter_operations(operations, self._period, self._today()))
            return JournalSnapshot(
                operations=operations,
                filtered=filtered,
                period=self._period,
                language=self._language,
                dashboard=compute_dashboard(filtered),
                breakdowns=compute_breakdowns(filtered),
                cumulative=cumulative_series(filtered),
                regions=self.regions.as_tuple(),
                triggers=self.triggers.as_tuple(),
            )

    # ---------- write ----------
    def _take_id(self) -> int:
        op_id = self._next_id
        self._next_id += 1
        return op_id

    def _remember_tags(self, draft: OperationDraft) -> None:
        if draft.region:
            self.regions.add(draft.region)
        if draft.trigger:
            self.triggers.add(draft.trigger)

    def add_operation(self, form: Mapping[str, str]) -> JournalSnapshot:
        """Log a new operation from form fields; invalid input is ignored."""
        draft = parse_form(form)
        if draft is None:
            logger.debug("Ignoring invalid submission: %r", dict(form))
            return self.snapshot()
        with self._lock:
            op_number = max((op.op_number for op in self._operations), default=0) + 1
            op = Operation.create(id=self._take_id(), op_number=op_number, **vars(draft))
            self._operations.append(op)
            self._remember_tags(draft)
            snap = self.snapshot()
        self.coach.request(op, snap.dashboard["win_rate"], self._language)
        return snap

    def update_operation(self, op_id: int, form: Mapping[str, str]) -> JournalSnapshot:
        """Replace an operation's fields, keeping its id and op number."""
        draft = parse_form(form)
        with self._lock:
            current = self.get(op_id)
            if draft is None:
                return self.snapshot()
            points = compute_points(draft.side, draft.entry_price, draft.exit_price)
            updated = replace(
                current,
                **vars(draft),
                points=points,
                result=points * draft.lots * draft.point_value,
            )
            self._operations = [updated if op.id == op_id else op for op in self._operations]
            self._remember_tags(draft)
            return self.snapshot()

    def delete_operation(self, op_id: int) -> JournalSnapshot:
        """Remove an operation and renumber the rest 1..N by old op number."""
        with self._lock:
            self.get(op_id)
            remaining = sorted(
                (op for op in self._operations if op.id != op_id),
                key=lambda op: op.op_number,
            )
            self._operations = [op.renumbered(i) for i, op in enumerate(remaining, start=1)]
            return self.snapshot()

    def set_filter(self, period: str) -> JournalSnapshot:
        if period not in PERIODS:
            raise ValueError(f"Unknown period: {period!r}")
        with self._lock:
            self._period = period
            return self.snapshot()

    def set_language(self, language: str) -> JournalSnapshot:
        """Switch language and reseed the region/trigger lists for it."""
        if language not in LANGUAGES:
            raise ValueError(f"Unsupported language: {language!r}")
        with self._lock:
            self._language = language
            self.regions = TagSet(DEFAULT_REGIONS[language])
            self.triggers = TagSet(DEFAULT_TRIGGERS[language])
            return self.snapshot()

    def toggle_language(self) -> JournalSnapshot:
        return self.set_language("en" if self._language == "pt" else "pt")

    # ---------- csv ----------
    def import_csv(self, text: str) -> int:
        """Merge the operations in ``text``; all rows or none.

        Raises CSVFormatError / ImportRowError without touching state.
        """
        rows = read_csv(text)
        with self._lock:
            imported = normalize_rows(rows, self._next_id, self._today())
            self._next_id += len(imported)
            self._operations = sorted(
                self._operations + imported, key=lambda op: op.op_number
            )
        logger.info("Imported %d operations", len(imported))
        return len(imported)

    def export_csv(self) -> Tuple[str, str]:
        """(filename, csv text) for every operation, ignoring the filter."""
        with self._lock:
            return export_filename(self._today()), export_csv(self._operations)
