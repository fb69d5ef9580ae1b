"""
Invoice metadata snapshotter.

WHAT: Captures who billed whom at the moment an invoice is created, and
resolves the parties to print later.

WHY: Clients get renamed and businesses move. An invoice already issued
must keep showing the details it was issued with, so renderers read the
snapshot first and only fall back to live rows for fields the snapshot
does not have (older invoices, or invoices created before settings
existed).

HOW: The snapshot is a JSON document stored on the invoice:

    {
        "billTo":   {name, address, city, state, postal_code, country,
                     email, cc_email},
        "business": {every BusinessSettings field} | null,
        "terms":    str,
        "notes":    str | null,
    }

It is written once and never mutated. Resolution is per field: a
snapshot value wins whenever it is not None.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from app.models.business_settings import BUSINESS_FIELDS

BILL_TO_FIELDS = (
    "name",
    "address",
    "city",
    "state",
    "postal_code",
    "country",
    "email",
    "cc_email",
)

# Label, BusinessSettings field; printed in this order on PDFs and in notes
PAYMENT_INFORMATION_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("Beneficiary Name", "beneficiary_name"),
    ("Beneficiary CNPJ", "beneficiary_cnpj"),
    ("SWIFT/BIC Code", "swift_code"),
    ("Bank Address", "bank_address"),
    ("Routing Number", "routing_number"),
    ("Account Number", "account_number"),
    ("Account Type", "account_type"),
)

PAYMENT_INFORMATION_TITLE = "Payment Information"


def client_bill_to(client: Any) -> Dict[str, Any]:
    """Live bill-to block for a client row."""
    return {
        "name": client.name,
        "address": client.address,
        "city": client.city,
        "state": client.state,
        "postal_code": client.postal_code,
        "country": client.country,
        "email": client.target_email,
        "cc_email": client.cc_email,
    }


def _business_dict(settings: Any) -> Optional[Dict[str, Any]]:
    if settings is None:
        return None
    if isinstance(settings, Mapping):
        return {name: settings.get(name) for name in BUSINESS_FIELDS}
    return settings.to_dict()


def payment_information_lines(business: Optional[Mapping[str, Any]]) -> List[str]:
    """The seven "Label: value" lines, empty when there is no business."""
    if not business:
        return []
    return [
        f"{label}: {business.get(name) or ''}"
        for label, name in PAYMENT_INFORMATION_FIELDS
    ]


def build_payment_information(settings: Any) -> str:
    """
    Payment instructions stored in an invoice's notes.

    Returns:
        "Payment Information" heading, a blank line, then one line per
        bank field. Empty string when settings are missing.
    """
    lines = payment_information_lines(_business_dict(settings))
    if not lines:
        return ""
    return f"{PAYMENT_INFORMATION_TITLE}\n\n" + "\n".join(lines)


def build_invoice_metadata(
    client: Any,
    settings: Any,
    terms: Optional[str] = None,
    notes: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the snapshot for a new invoice.

    Args:
        client: Billed client (may be None)
        settings: BusinessSettings row or mapping (may be None)
        terms: Explicit terms, defaults to the client's terms
        notes: Explicit notes, defaults to the payment information text

    Returns:
        JSON-serialisable snapshot dict
    """
    if terms is None:
        terms = client.terms if client is not None else ""
    if notes is None:
        notes = build_payment_information(settings) or None

    return {
        "billTo": client_bill_to(client) if client is not None else None,
        "business": _business_dict(settings),
        "terms": terms or "",
        "notes": notes,
    }


def _pick(snapshot_value: Any, live_value: Any) -> Any:
    return snapshot_value if snapshot_value is not None else live_value


@dataclass
class ResolvedParties:
    """
    The bill-to, business and wording to print for one invoice.

    has_bill_to is False only when neither a snapshot nor a live client
    exists, in which case renderers print placeholder names.
    """

    bill_to: Dict[str, Any] = field(default_factory=dict)
    business: Optional[Dict[str, Any]] = None
    terms: str = ""
    notes: Optional[str] = None
    has_bill_to: bool = False

    def bill_to_value(self, name: str, default: str = "") -> str:
        return self.bill_to.get(name) or default

    def business_value(self, name: str, default: str = "") -> str:
        if not self.business:
            return default
        return self.business.get(name) or default


def resolve_invoice_parties(invoice: Any, client: Any, settings: Any) -> ResolvedParties:
    """
    Resolve what to print, snapshot first, per field.

    Args:
        invoice: Invoice whose invoice_metadata may hold a snapshot
        client: Live client row (may be None or renamed since)
        settings: Live BusinessSettings row (may be None)

    Returns:
        ResolvedParties

    Example:
        With metadata billTo.name "Snapshot Co" and a live client named
        "Renamed Co", bill_to["name"] is "Snapshot Co".
    """
    metadata = invoice.invoice_metadata or {}

    snapshot_bill_to = metadata.get("billTo") or {}
    live_bill_to = client_bill_to(client) if client is not None else {}
    bill_to = {
        name: _pick(snapshot_bill_to.get(name), live_bill_to.get(name))
        for name in BILL_TO_FIELDS
    }

    snapshot_business = metadata.get("business") or {}
    live_business = _business_dict(settings) or {}
    business = None
    if snapshot_business or live_business:
        business = {
            name: _pick(snapshot_business.get(name), live_business.get(name))
            for name in BUSINESS_FIELDS
        }

    terms = (
        metadata.get("terms")
        or invoice.terms
        or (client.terms if client is not None else "")
        or ""
    )
    notes = _pick(metadata.get("notes"), invoice.notes)

    return ResolvedParties(
        bill_to=bill_to,
        business=business,
        terms=terms,
        notes=notes,
        has_bill_to=bool(snapshot_bill_to) or client is not None,
    )
