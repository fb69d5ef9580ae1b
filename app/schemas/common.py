"""
Shared schema types.

WHAT: Money type used by every schema that exposes amounts.

WHY: Amounts are Decimal in the database and must reach the client as
exact two-decimal strings ("450.00"), never floats.
"""

from decimal import Decimal
from typing import Annotated

from pydantic import PlainSerializer

from app.services.invoice_totals import round2

Money = Annotated[
    Decimal,
    PlainSerializer(lambda value: format(round2(value), "f"), return_type=str),
]
