"""
Invoice totals calculator.

WHAT: Derives line amounts, subtotal, tax and total from raw line items.

WHY: Every path that stores or displays money (invoice create/update,
PDF, email placeholders) must agree to the cent. Doing the arithmetic
once, in Decimal with half-up rounding, keeps float drift out of the
stored values.

HOW:
- amount   = round2(quantity * rate)
- subtotal = sum(amount)
- tax      = round2(subtotal * tax_rate / 100)
- total    = subtotal + tax
Unparseable inputs count as zero. Negative values are allowed through;
rejecting them is the caller's business.
"""

from dataclasses import dataclass, field
from decimal import Context, Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

CENT = Decimal("0.01")
ZERO = Decimal("0")

# Largest value a Numeric(10, 2) money column holds
MAX_AMOUNT = Decimal("99999999.99")

# Quantizing large amounts to cents needs more than the default 28 digits
_ROUNDING_CONTEXT = Context(prec=60)


def to_decimal(value: Any) -> Decimal:
    """
    Coerce a user-supplied number to Decimal.

    None, empty strings, garbage, NaN and infinities all become 0.
    Floats go through str() so 0.1 stays 0.1.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return ZERO
    if not result.is_finite():
        return ZERO
    return result


def round2(value: Decimal) -> Decimal:
    """Round half-up to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP, context=_ROUNDING_CONTEXT)


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


@dataclass(frozen=True)
class InvoiceTotals:
    """Computed money values, all rounded to cents."""

    amounts: List[Decimal] = field(default_factory=list)
    subtotal: Decimal = ZERO
    tax: Decimal = ZERO
    total: Decimal = ZERO

    def as_strings(self) -> Dict[str, str]:
        """Exactly-two-decimal strings, e.g. {"subtotal": "450.00", ...}."""
        return {
            "subtotal": format(round2(self.subtotal), "f"),
            "tax": format(round2(self.tax), "f"),
            "total": format(round2(self.total), "f"),
        }


def calculate_line_amount(quantity: Any, rate: Any) -> Decimal:
    return round2(to_decimal(quantity) * to_decimal(rate))


def calculate_invoice_totals(
    items: Iterable[Any],
    tax_rate: Optional[Any] = None,
) -> InvoiceTotals:
    """
    Calculate totals for a list of line items.

    Args:
        items: Mappings or objects exposing `quantity` and `rate`
        tax_rate: Tax percentage (10 means 10%), missing means no tax

    Returns:
        InvoiceTotals with one amount per item, in input order

    Example:
        >>> totals = calculate_invoice_totals(
        ...     [{"quantity": 8, "rate": 50}, {"quantity": 2, "rate": 25}], 10
        ... )
        >>> totals.as_strings()
        {'subtotal': '450.00', 'tax': '45.00', 'total': '495.00'}
    """
    amounts = [
        calculate_line_amount(_field(item, "quantity"), _field(item, "rate"))
        for item in items
    ]
    subtotal = round2(sum(amounts, ZERO))
    tax = round2(subtotal * to_decimal(tax_rate) / Decimal(100))

    return InvoiceTotals(
        amounts=amounts,
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
    )
