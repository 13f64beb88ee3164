"""Category rollups for BOQ and quotation line items.

The rollup columns on `Boq` and `Quotation` are caches of the sums computed
here. Services call `apply_boq_totals` / `apply_quotation_totals` after every
item insert, update or delete, inside the same transaction as the item
change; nothing else writes those columns.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping

from app.models.enums.boq_status import BoqCategory
from app.models.enums.quotation_status import QuotationItemCategory
from app.utils.decimal_utils import ZERO, TWOPLACES, parse_decimal, to_decimal


@dataclass(frozen=True)
class CategoryTotals:
    by_category: Mapping[str, Decimal] = field(default_factory=dict)
    grand_total: Decimal = ZERO

    def get(self, category) -> Decimal:
        key = category.value if hasattr(category, "value") else category
        return self.by_category.get(key, ZERO)


def _category_key(raw, allowed: set[str], fallback: str) -> str:
    value = raw.value if hasattr(raw, "value") else raw
    if isinstance(value, str):
        value = value.strip().lower()
    return value if value in allowed else fallback


def recompute(
    items: Iterable,
    categories: Iterable,
    *,
    amount_attr: str,
    fallback,
    category_attr: str = "category",
) -> CategoryTotals:
    """Sum `amount_attr` per category.

    Sums are exact Decimal arithmetic; amounts that are missing or not a
    finite number count as zero. Items whose category is not one of
    `categories` are counted under `fallback`.
    """
    keys = [c.value if hasattr(c, "value") else c for c in categories]
    fallback_key = fallback.value if hasattr(fallback, "value") else fallback
    sums = {key: ZERO for key in keys}
    allowed = set(keys)

    for item in items or ():
        key = _category_key(getattr(item, category_attr, None), allowed, fallback_key)
        sums[key] += parse_decimal(getattr(item, amount_attr, None))

    return CategoryTotals(by_category=sums, grand_total=sum(sums.values(), ZERO))


# =====================================================
# BOQ
# =====================================================
BOQ_ROLLUP_FIELDS = {
    BoqCategory.material: "material_cost",
    BoqCategory.labor: "labor_cost",
    BoqCategory.equipment: "equipment_cost",
    BoqCategory.subcontract: "subcontract_cost",
    BoqCategory.other: "other_cost",
}


def boq_totals(items: Iterable) -> CategoryTotals:
    return recompute(items, BoqCategory, amount_attr="total_amount", fallback=BoqCategory.other)


def apply_boq_totals(boq) -> CategoryTotals:
    totals = boq_totals(boq.items)
    for category, attr in BOQ_ROLLUP_FIELDS.items():
        setattr(boq, attr, to_decimal(totals.get(category)))
    boq.total_cost = to_decimal(totals.grand_total)
    return totals


# =====================================================
# QUOTATION
# =====================================================
QUOTATION_ROLLUP_FIELDS = {
    QuotationItemCategory.engineering: "engineering_cost",
    QuotationItemCategory.material: "material_cost",
    QuotationItemCategory.labor: "labor_cost",
    QuotationItemCategory.overhead: "overhead_cost",
    QuotationItemCategory.margin: "profit_margin",
}


def quotation_totals(items: Iterable) -> CategoryTotals:
    return recompute(
        items,
        QuotationItemCategory,
        amount_attr="total_price",
        fallback=QuotationItemCategory.material,
    )


def compute_tax(subtotal, tax_rate) -> Decimal:
    return (parse_decimal(subtotal) * parse_decimal(tax_rate)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def apply_quotation_totals(quotation, tax_rate) -> CategoryTotals:
    totals = quotation_totals(quotation.items)
    for category, attr in QUOTATION_ROLLUP_FIELDS.items():
        setattr(quotation, attr, to_decimal(totals.get(category)))
    quotation.subtotal = to_decimal(totals.grand_total)
    quotation.tax = compute_tax(quotation.subtotal, tax_rate)
    quotation.total = quotation.subtotal + quotation.tax
    return totals
