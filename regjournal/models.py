"""
models.py
---------

Defines the core data model for an operation. An operation represents a
single discretionary trade logged in the journal, tagged with the REG
methodology (Region, Structure, Trigger). Keeping this in a separate
module lets the analytics, CSV and web layers share one definition.
"""

from dataclasses import dataclass, fields, replace
from datetime import date
from typing import Iterable, Iterator, List, Optional

from .numbers import is_iso_date

SIDE_BUY = "Buy"
SIDE_SELL = "Sell"
SIDES = (SIDE_BUY, SIDE_SELL)

STATUS_GAIN = "Gain"
STATUS_LOSS = "Loss"
STATUS_BREAK_EVEN = "Break-even"
STATUSES = (STATUS_GAIN, STATUS_LOSS, STATUS_BREAK_EVEN)

DEFAULT_POINT_VALUE = 10.0

EPOCH = date(1970, 1, 1)


def compute_points(side: str, entry_price: float, exit_price: float) -> float:
    """Signed price movement in the trade's favour."""
    if side == SIDE_BUY:
        return exit_price - entry_price
    return entry_price - exit_price


def status_for(result: float) -> str:
    if result > 0:
        return STATUS_GAIN
    if result < 0:
        return STATUS_LOSS
    return STATUS_BREAK_EVEN


def recover_point_value(points: float, result: float, lots: int) -> float:
    """Money per point implied by a stored result, or the form default."""
    denom = points * lots
    if denom == 0:
        return DEFAULT_POINT_VALUE
    return result / denom


def parse_iso_day(value: str) -> date:
    """Calendar date of a 'YYYY-MM-DD' string; anything else maps to 1970-01-01."""
    try:
        return date.fromisoformat(value) if is_iso_date(value) else EPOCH
    except ValueError:
        return EPOCH


@dataclass(frozen=True)
class Operation:
    """Represents a single logged operation.

    Attributes
    ----------
    id: int
        Unique identifier, increasing in creation order.
    op_number: int
        1-based display sequence number.
    asset: str
        Symbol of the traded instrument (e.g. 'WINFUT').
    side: str
        Either 'Buy' or 'Sell'. Determines the sign of ``points``.
    date: str
        Trade date as a 'YYYY-MM-DD' string.
    lots: int
        Position size multiplier.
    entry_price, exit_price: float
        Prices at which the position was opened and closed.
    point_value: float
        Money earned per point per lot.
    points, result: float
        Derived on create/update; imported rows keep the file's values.
    region, structure, trigger: str
        REG classification tags.
    """

    id: int
    op_number: int
    asset: str
    side: str
    date: str
    lots: int
    entry_price: float
    exit_price: float
    point_value: float
    points: float
    result: float
    region: str = ""
    structure: str = ""
    trigger: str = ""

    @classmethod
    def create(
        cls,
        id: int,
        op_number: int,
        asset: str,
        side: str,
        date: str,
        lots: int,
        entry_price: float,
        exit_price: float,
        point_value: float = DEFAULT_POINT_VALUE,
        region: str = "",
        structure: str = "",
        trigger: str = "",
    ) -> "Operation":
        """Build an operation, computing points and result from the prices."""
        points = compute_points(side, entry_price, exit_price)
        return cls(
            id=id,
            op_number=op_number,
            asset=asset,
            side=side,
            date=date,
            lots=lots,
            entry_price=entry_price,
            exit_price=exit_price,
            point_value=point_value,
            points=points,
            result=points * lots * point_value,
            region=region,
            structure=structure,
            trigger=trigger,
        )

    @property
    def status(self) -> str:
        """Gain / Loss / Break-even, always derived from ``result``."""
        return status_for(self.result)

    @property
    def day(self) -> date:
        return parse_iso_day(self.date)

    def renumbered(self, op_number: int) -> "Operation":
        return replace(self, op_number=op_number)

    def to_row(self) -> dict:
        """Flat dict of every field plus the derived status, in export order."""
        row = {f.name: getattr(self, f.name) for f in fields(self)}
        row["status"] = self.status
        return row


EXPORT_FIELDS: List[str] = [f.name for f in fields(Operation)] + ["status"]


class TagSet:
    """Ordered set of free-text category values (regions or triggers)."""

    def __init__(self, values: Iterable[str] = ()) -> None:
        self._values: List[str] = []
        for v in values:
            self.add(v)

    def add(self, value: str) -> bool:
        """Append ``value`` unless an identical string is already present."""
        if value in self._values:
            return False
        self._values.append(value)
        return True

    def first(self) -> Optional[str]:
        return self._values[0] if self._values else None

    def as_tuple(self) -> tuple:
        return tuple(self._values)

    def __contains__(self, value: object) -> bool:
        return value in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)
