"""
Shared pieces for priced business documents (quotations, invoices,
orders, credit notes): the line/total column mixins and the totals
calculation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List

from fastapi import HTTPException, status
from sqlalchemy import Column, Numeric, String

MONEY = Decimal("0.01")
LINE_FIELDS = ("description", "quantity", "unit_price", "tax_rate")


def money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(MONEY, rounding=ROUND_HALF_UP)


class LineColumns:
    """Columns every document line carries. tax_rate is a percentage."""

    description = Column(String(500), nullable=False)
    quantity = Column(Numeric(12, 2), nullable=False, default=1)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    tax_rate = Column(Numeric(5, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    line_total = Column(Numeric(12, 2), nullable=False, default=0)


class TotalsColumns:
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False, default=0)


@dataclass
class ComputedLine:
    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    line_total: Decimal
    extra: Dict[str, Any] = field(default_factory=dict)

    def as_columns(self) -> Dict[str, Any]:
        data = {
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "tax_rate": self.tax_rate,
            "tax_amount": self.tax_amount,
            "line_total": self.line_total,
        }
        data.update(self.extra)
        return data


@dataclass
class DocumentTotals:
    lines: List[ComputedLine]
    subtotal: Decimal
    discount: Decimal
    tax_amount: Decimal
    total: Decimal

    @property
    def net(self) -> Decimal:
        """Subtotal after discount, i.e. the revenue or cost side of a posting."""
        return self.subtotal - self.discount


def compute_totals(items: Iterable[Any], discount=0) -> DocumentTotals:
    """
    line_total = quantity * unit_price, tax_amount = line_total * tax_rate / 100,
    total = subtotal - discount + tax.

    `items` are pydantic line payloads; any fields beyond the pricing ones
    are carried through in `extra` so callers can store them on the line.
    """
    lines: List[ComputedLine] = []
    for item in items:
        data = item.model_dump() if hasattr(item, "model_dump") else dict(item)
        quantity = Decimal(str(data["quantity"]))
        unit_price = Decimal(str(data["unit_price"]))
        tax_rate = Decimal(str(data.get("tax_rate") or 0))
        line_total = money(quantity * unit_price)
        lines.append(
            ComputedLine(
                description=data["description"],
                quantity=quantity,
                unit_price=unit_price,
                tax_rate=tax_rate,
                tax_amount=money(line_total * tax_rate / 100),
                line_total=line_total,
                extra={k: v for k, v in data.items() if k not in LINE_FIELDS},
            )
        )

    subtotal = sum((line.line_total for line in lines), Decimal("0.00"))
    tax = sum((line.tax_amount for line in lines), Decimal("0.00"))
    discount = money(discount)
    if discount < 0 or discount > subtotal:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Discount cannot exceed the subtotal.",
        )
    return DocumentTotals(
        lines=lines,
        subtotal=subtotal,
        discount=discount,
        tax_amount=tax,
        total=subtotal - discount + tax,
    )


def apply_totals(document, totals: DocumentTotals, line_model) -> None:
    """Replace the document's lines and copy the totals onto it."""
    document.items = [line_model(**line.as_columns()) for line in totals.lines]
    document.subtotal = totals.subtotal
    document.discount = totals.discount
    document.tax_amount = totals.tax_amount
    document.total = totals.total


def totals_from_document(document, extra_fields: Iterable[str] = ()) -> DocumentTotals:
    """Rebuild a DocumentTotals from a stored document, for copying it onto another."""
    extra_fields = tuple(extra_fields)
    return DocumentTotals(
        lines=[
            ComputedLine(
                description=line.description,
                quantity=line.quantity,
                unit_price=line.unit_price,
                tax_rate=line.tax_rate,
                tax_amount=line.tax_amount,
                line_total=line.line_total,
                extra={name: getattr(line, name) for name in extra_fields},
            )
            for line in document.items
        ],
        subtotal=money(document.subtotal),
        discount=money(document.discount),
        tax_amount=money(document.tax_amount),
        total=money(document.total),
    )
