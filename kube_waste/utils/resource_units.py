import re
from decimal import (
    ROUND_CEILING,
    ROUND_HALF_EVEN,
    Context,
    Decimal,
    DecimalException,
    DivisionByZero,
    Inexact,
    InvalidOperation,
    Overflow,
    Underflow,
    localcontext,
)
from typing import Literal, Optional

BINARY_UNITS: dict[str, Decimal] = {
    "Ki": Decimal(1024),
    "Mi": Decimal(1024**2),
    "Gi": Decimal(1024**3),
    "Ti": Decimal(1024**4),
    "Pi": Decimal(1024**5),
    "Ei": Decimal(1024**6),
}

DECIMAL_UNITS: dict[str, Decimal] = {
    "n": Decimal("1e-9"),
    "u": Decimal("1e-6"),
    "m": Decimal("1e-3"),
    "": Decimal(1),
    "k": Decimal("1e3"),
    "M": Decimal("1e6"),
    "G": Decimal("1e9"),
    "T": Decimal("1e12"),
    "P": Decimal("1e15"),
    "E": Decimal("1e18"),
}

# NOTE: The exponent alternative goes first, so "1E3" is 1000 and "1E" is one exa
QUANTITY_PATTERN = re.compile(
    r"^(?P<number>[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+))"
    r"(?P<suffix>[eE][+-]?[0-9]+|Ki|Mi|Gi|Ti|Pi|Ei|n|u|m|k|M|G|T|P|E)?$"
)

NANO = Decimal("1e-9")

# Amounts outside of 1e-48..1e48 are not quantities any cluster reports
MAX_EXPONENT = 48

# Every amount within MAX_EXPONENT, counted in nano-units, fits in the precision. Nothing is ever rounded.
CONTEXT = Context(
    prec=100,
    rounding=ROUND_HALF_EVEN,
    traps=[InvalidOperation, DivisionByZero, Overflow, Underflow, Inexact],
)

Base = Literal[1024, 1000]


def parse(x: str, /) -> Optional[tuple[Decimal, Base]]:
    """Converts a quantity string to an exact amount and the base of its unit.

    Returns None if the string is not a valid quantity.
    """

    match = QUANTITY_PATTERN.match(x.strip())
    if match is None:
        return None

    number = Decimal(match.group("number"))
    suffix = match.group("suffix") or ""

    base: Base = 1024 if suffix in BINARY_UNITS else 1000
    try:
        with localcontext(CONTEXT):
            if suffix in BINARY_UNITS:
                amount = number * BINARY_UNITS[suffix]
            elif suffix in DECIMAL_UNITS:
                amount = number * DECIMAL_UNITS[suffix]
            else:
                # decimal exponent, e.g. "12e6"
                amount = number.scaleb(int(suffix[1:]))
    except (DecimalException, ValueError):
        return None

    if amount != 0 and not -MAX_EXPONENT <= amount.adjusted() <= MAX_EXPONENT:
        return None

    return amount, base


def format(x: Decimal, /, *, base: Base = 1000) -> str:
    """Converts an exact amount to its canonical string with respect of units."""

    with localcontext(CONTEXT):
        return _format(x, base)


def _format(x: Decimal, base: Base) -> str:
    if x == 0:
        return "0"

    sign = "-" if x < 0 else ""
    x = abs(x)

    if base == 1024 and x == x.to_integral_value():
        for unit, multiplier in reversed(BINARY_UNITS.items()):
            if x % multiplier == 0:
                return f"{sign}{int(x // multiplier)}{unit}"
        if x < 1024:
            return f"{sign}{int(x)}"

    # amounts finer than a nano-unit are rounded up, as Kubernetes does
    if x % NANO != 0:
        x = (x / NANO).to_integral_value(rounding=ROUND_CEILING) * NANO

    for unit, multiplier in reversed(DECIMAL_UNITS.items()):
        if x % multiplier == 0:
            return f"{sign}{int(x / multiplier)}{unit}"

    return f"{sign}{x}"
