from typing import Iterable, Optional

from app.core.errors import validation_error

DEDUCTION_TYPES = frozenset({"deduction", "tax", "insurance", "loan"})


def _item_value(item, key: str):
    return item.get(key) if isinstance(item, dict) else getattr(item, key)


def derive_pay(
    items: Iterable,
    gross_pay: Optional[float] = None,
    deductions: Optional[float] = None,
    net_pay: Optional[float] = None,
) -> tuple[float, float, float]:
    """
    Work out (gross, deductions, net) for a payslip.

    Explicit figures win; missing ones are summed from the items, where
    deduction-type items count against the employee and everything else is
    an earning. Net defaults to gross minus deductions.
    """
    items = list(items)
    earned = sum(
        float(_item_value(i, "amount")) for i in items
        if str(_item_value(i, "type")).lower() not in DEDUCTION_TYPES
    )
    deducted = sum(
        abs(float(_item_value(i, "amount"))) for i in items
        if str(_item_value(i, "type")).lower() in DEDUCTION_TYPES
    )

    gross = round(earned if gross_pay is None else gross_pay, 2)
    total_deductions = round(deducted if deductions is None else deductions, 2)
    net = round(gross - total_deductions if net_pay is None else net_pay, 2)

    if gross < 0 or total_deductions < 0:
        raise validation_error("Gross pay and deductions must not be negative")
    return gross, total_deductions, net
