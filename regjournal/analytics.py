"""
analytics.py
-------------

This module contains functions to compute performance metrics from a list
of Operation objects: the period filter, the dashboard summary, the REG
breakdowns by trigger/region/side and the cumulative result series.
Nothing here knows about Flask or the journal state, so the functions can
be reused from tests or a command-line tool as is.

All period filters compare calendar dates against the current UTC date.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import (
    Operation,
    SIDE_BUY,
    SIDE_SELL,
    STATUS_BREAK_EVEN,
    STATUS_GAIN,
    STATUS_LOSS,
)

PERIOD_ALL = "all"
PERIOD_TODAY = "today"
PERIOD_WEEK = "week"
PERIOD_MONTH = "month"
PERIODS = (PERIOD_ALL, PERIOD_TODAY, PERIOD_WEEK, PERIOD_MONTH)

Bucket = Dict[str, float]
Breakdown = Dict[str, Bucket]


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def start_of_week(today: date) -> date:
    """Most recent Sunday on or before ``today``."""
    # weekday(): Monday=0 .. Sunday=6
    return today - timedelta(days=(today.weekday() + 1) % 7)


def filter_operations(
    operations: Iterable[Operation], period: str, today: Optional[date] = None
) -> List[Operation]:
    """Return the operations falling inside ``period``.

    Parameters
    ----------
    operations: Iterable[Operation]
        Operations in display order; the order is preserved.
    period: str
        One of 'all', 'today', 'week' (Sunday through today) or 'month'.
    today: Optional[date]
        Reference UTC date; defaults to the current one.
    """
    if period not in PERIODS:
        raise ValueError(f"Unknown period: {period!r}")
    operations = list(operations)
    if period == PERIOD_ALL:
        return operations

    today = today or utc_today()
    if period == PERIOD_TODAY:
        return [op for op in operations if op.day == today]
    if period == PERIOD_WEEK:
        start = start_of_week(today)
        return [op for op in operations if start <= op.day <= today]
    start = today.replace(day=1)
    return [op for op in operations if op.day >= start]


def compute_dashboard(operations: Sequence[Operation]) -> Dict[str, float]:
    """Compute summary statistics for the given operations.

    Keys: total_ops, win_rate (percentage), net_result, total_points,
    total_lots, wins, losses, break_even, average_result, average_win,
    average_loss, largest_win, largest_loss, profit_factor, expectancy.
    Every value is 0 for an empty list.
    """
    metrics = {
        "total_ops": 0,
        "win_rate": 0.0,
        "net_result": 0.0,
        "total_points": 0.0,
        "total_lots": 0,
        "wins": 0,
        "losses": 0,
        "break_even": 0,
        "average_result": 0.0,
        "average_win": 0.0,
        "average_loss": 0.0,
        "largest_win": 0.0,
        "largest_loss": 0.0,
        "profit_factor": 0.0,
        "expectancy": 0.0,
    }
    if not operations:
        return metrics

    results = [op.result for op in operations]
    wins = [op.result for op in operations if op.status == STATUS_GAIN]
    losses = [op.result for op in operations if op.status == STATUS_LOSS]
    total_ops = len(operations)
    net_result = sum(results)
    win_rate = len(wins) / total_ops * 100
    loss_rate = len(losses) / total_ops * 100
    average_win = sum(wins) / len(wins) if wins else 0.0
    average_loss = sum(losses) / len(losses) if losses else 0.0
    total_losses = -sum(losses)

    metrics.update(
        {
            "total_ops": total_ops,
            "win_rate": win_rate,
            "net_result": net_result,
            "total_points": sum(op.points for op in operations),
            "total_lots": sum(op.lots for op in operations),
            "wins": len(wins),
            "losses": len(losses),
            "break_even": total_ops - len(wins) - len(losses),
            "average_result": net_result / total_ops,
            "average_win": average_win,
            "average_loss": average_loss,
            "largest_win": max(wins) if wins else 0.0,
            "largest_loss": min(losses) if losses else 0.0,
            "profit_factor": sum(wins) / total_losses if total_losses else 0.0,
            # expected result per operation
            "expectancy": (win_rate / 100 * average_win) + (loss_rate / 100 * average_loss),
        }
    )
    return metrics


def _accumulate(bucket: Breakdown, key: str, result: float) -> None:
    entry = bucket.setdefault(key, {"result": 0.0, "count": 0})
    entry["result"] += result
    entry["count"] += 1


def compute_breakdowns(operations: Iterable[Operation]) -> Dict[str, Breakdown]:
    """Group results by trigger, region and side, skipping break-even trades.

    The side breakdown always carries both 'Buy' and 'Sell'.
    """
    by_trigger: Breakdown = {}
    by_region: Breakdown = {}
    by_side: Breakdown = {
        SIDE_BUY: {"result": 0.0, "count": 0},
        SIDE_SELL: {"result": 0.0, "count": 0},
    }
    for op in operations:
        if op.status == STATUS_BREAK_EVEN:
            continue
        _accumulate(by_trigger, op.trigger, op.result)
        _accumulate(by_region, op.region, op.result)
        _accumulate(by_side, SIDE_BUY if op.side == SIDE_BUY else SIDE_SELL, op.result)
    return {"by_trigger": by_trigger, "by_region": by_region, "by_side": by_side}


@dataclass(frozen=True)
class CumulativeSeries:
    points: Tuple[Tuple[str, float], ...]

    @property
    def sufficient(self) -> bool:
        """A trend needs at least two points."""
        return len(self.points) >= 2

    @property
    def values(self) -> List[float]:
        return [v for _, v in self.points]

    @property
    def max_drawdown(self) -> float:
        """Largest fall of the running total from a previous peak (peak starts at 0)."""
        peak, worst = 0.0, 0.0
        for v in self.values:
            peak = max(peak, v)
            worst = max(worst, peak - v)
        return worst

    @property
    def trend(self) -> str:
        if not self.sufficient:
            return "flat"
        delta = self.points[-1][1] - self.points[0][1]
        if delta > 0:
            return "up"
        if delta < 0:
            return "down"
        return "flat"

    def to_dict(self) -> dict:
        return {
            "points": [{"date": d, "value": v} for d, v in self.points],
            "sufficient": self.sufficient,
            "max_drawdown": self.max_drawdown,
            "trend": self.trend,
        }


def cumulative_series(operations: Iterable[Operation]) -> CumulativeSeries:
    """Running sum of results ordered by (date, op_number)."""
    ordered = sorted(operations, key=lambda op: (op.day, op.op_number))
    total = 0.0
    out = []
    for op in ordered:
        total += op.result
        out.append((op.date, total))
    return CumulativeSeries(points=tuple(out))
