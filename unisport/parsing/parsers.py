"""Parsers for the provider's free-text time and price fields.

Grammars::

    clock      := digits ":" digits                 e.g. "08:30"
    time_range := clock "-" clock                   e.g. "08:30-10:00"
    price      := digit (digit | "," | ".")*        e.g. "12,50", "1.234"

A price token is converted by turning its first comma into a dot and
reading the longest ``digits ["." digits]`` prefix, so ``"18,00"`` is 18.0.
Anything between tokens (currency symbols, slashes, words) is skipped.

Known limitation: thousands grouping is not understood.  ``"1.234,50"``
reads as 1.234, not 1234.5, because the group dot is taken for the decimal
point.  Course fees published by the providers stay below 1000.
"""

from __future__ import annotations

MAX_PRICES = 4

_PRICE_CHARS = frozenset("0123456789,.")


def parse_clock(text: str) -> int | None:
    """Convert ``"HH:MM"`` into minutes since midnight.

    Returns ``None`` when *text* does not follow the grammar.

    Examples:
        >>> parse_clock("08:30")
        510
        >>> parse_clock("8:05")
        485
        >>> parse_clock("abends") is None
        True
    """
    parts = text.strip().split(":")
    if len(parts) != 2:
        return None
    hours, minutes = (p.strip() for p in parts)
    if not (hours.isdigit() and minutes.isdigit()):
        return None
    return int(hours) * 60 + int(minutes)


def format_clock(minutes: int) -> str:
    """Inverse of :func:`parse_clock`, zero padded.

    Examples:
        >>> format_clock(510)
        '08:30'
        >>> format_clock(1320)
        '22:00'
    """
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def parse_time_range(text: str) -> tuple[int, int] | None:
    """Split ``"HH:MM-HH:MM"`` into ``(start, end)`` minutes.

    Strings without a dash (``"nach Vereinbarung"``) and ranges whose clock
    parts are not parseable yield ``None``.  The range is not reordered.
    """
    if "-" not in text:
        return None
    parts = text.split("-")
    start = parse_clock(parts[0])
    end = parse_clock(parts[1])
    if start is None or end is None:
        return None
    return start, end


def tokenize_prices(text: str) -> list[str]:
    """Return the raw numeric tokens of *text*, left to right."""
    tokens: list[str] = []
    current: list[str] = []
    for char in text:
        if current and char in _PRICE_CHARS:
            current.append(char)
        elif char.isdigit() and char.isascii():
            current.append(char)
        else:
            if current:
                tokens.append("".join(current))
                current = []
    if current:
        tokens.append("".join(current))
    return tokens


def _token_value(token: str) -> float | None:
    """Read the leading decimal number of a price token."""
    token = token.replace(",", ".", 1)
    integer, _, rest = token.partition(".")
    if not integer.isdigit():
        return None
    fraction = ""
    for char in rest:
        if not char.isdigit():
            break
        fraction += char
    return float(f"{integer}.{fraction}" if fraction else integer)


def parse_prices(text: str | None) -> list[float]:
    """Extract up to four prices from a provider's price string.

    Examples:
        >>> parse_prices("12,50 € / 18,00 €")
        [12.5, 18.0]
        >>> parse_prices("kostenlos")
        []
    """
    if not text:
        return []
    prices: list[float] = []
    for token in tokenize_prices(text):
        value = _token_value(token)
        if value is None:
            continue
        prices.append(value)
        if len(prices) == MAX_PRICES:
            break
    return prices
