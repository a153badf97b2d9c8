"""
numbers.py
----------

Parsing and display helpers for the numbers typed into the journal.

Prices arrive as free text in either the Brazilian convention
("5.123,50") or the US/UK one ("5,123.50"). ``parse_currency`` picks the
decimal separator from whichever of ',' and '.' appears last.

Known ambiguity: a string with a single dot and no comma, such as
"1.234", is read as a decimal fraction (1.234). There is no way to tell
it apart from a Brazilian thousands separator without more context, so
the heuristic is left as is.
"""

import re
from typing import Optional, Union

_FLOAT_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_RE = re.compile(r"^[+-]?\d+")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _leading_float(s: str) -> float:
    m = _FLOAT_RE.match(s)
    return float(m.group(0)) if m else 0.0


def parse_currency(value: Union[str, int, float, None]) -> float:
    """Convert a locale-ambiguous numeric string into a float.

    Never raises; anything that does not start with a number gives 0.0.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if value is None:
        return 0.0
    s = str(value).strip()
    if not s:
        return 0.0

    last_comma = s.rfind(",")
    last_dot = s.rfind(".")

    if last_comma > last_dot:
        # comma is the decimal separator, dots group thousands
        s = s.replace(".", "").replace(",", ".", 1)
    else:
        s = s.replace(",", "")
        if s.count(".") > 1:
            s = s.replace(".", "")

    return _leading_float(s)


def parse_int(value: Union[str, int, None]) -> Optional[int]:
    """Parse the leading integer of ``value`` ("12abc" -> 12, "3.7" -> 3).

    Returns None when the text does not start with an integer.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if value is None:
        return None
    m = _INT_RE.match(str(value).strip())
    return int(m.group(0)) if m else None


def is_iso_date(value: str) -> bool:
    """Shape check only: 'YYYY-MM-DD' digits, no calendar validation."""
    return bool(_ISO_DATE_RE.match(value or ""))


# ---------- display ----------
def _group(int_part: str, sep: str) -> str:
    out = []
    while len(int_part) > 3:
        out.insert(0, int_part[-3:])
        int_part = int_part[:-3]
    out.insert(0, int_part)
    return sep.join(out)


def _separators(lang: str):
    return (".", ",") if lang == "pt" else (",", ".")


def format_decimal(value: float, lang: str = "pt", max_fraction: int = 3, min_fraction: int = 0) -> str:
    """Locale number formatting with grouped thousands and trimmed zeros."""
    thousands, decimal = _separators(lang)
    negative = value < 0
    text = f"{abs(value):.{max_fraction}f}"
    int_part, _, frac = text.partition(".")
    frac = frac.rstrip("0")
    if len(frac) < min_fraction:
        frac = frac.ljust(min_fraction, "0")
    out = _group(int_part, thousands)
    if frac:
        out = f"{out}{decimal}{frac}"
    if negative and out.strip("0.,") != "":
        out = "-" + out
    return out


def format_currency(value: float, lang: str = "pt") -> str:
    """Format as BRL regardless of language ('R$ 1.234,56' / 'R$1,234.56')."""
    body = format_decimal(abs(value), lang, max_fraction=2, min_fraction=2)
    symbol = "R$ " if lang == "pt" else "R$"
    sign = "-" if round(value, 2) < 0 else ""
    return f"{sign}{symbol}{body}"


def format_date_br(date_string: str) -> str:
    """'2024-05-17' -> '17/05/2024'; other shapes are returned unchanged."""
    if not is_iso_date(date_string):
        return date_string
    year, month, day = date_string.split("-")
    return f"{day}/{month}/{year}"
