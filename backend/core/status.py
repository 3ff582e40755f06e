"""
Derived item status.

`derive_status` is the automatic rule; `resolve_status` decides, for one write,
whether the automatic rule applies or an explicit manual status wins.
"""

from typing import Optional

AVAILABLE = "Available"
LOW_STOCK = "Low Stock"
OUT_OF_STOCK = "Out of Stock"
RESTOCKING = "Restocking"
PHASED_OUT = "Phased Out"

ALL_STATUSES = (AVAILABLE, LOW_STOCK, OUT_OF_STOCK, RESTOCKING, PHASED_OUT)

# Only ever set by an explicit request; never produced by derive_status.
MANUAL_STATUSES = frozenset({PHASED_OUT, RESTOCKING})


def _as_stock(x) -> float:
    try:
        v = float(x)
    except (TypeError, ValueError):
        return 0.0
    if v != v or v < 0:  # NaN or negative
        return 0.0
    return v


def _as_threshold(x) -> Optional[float]:
    if x is None or isinstance(x, bool):
        return None
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    if v != v:
        return None
    return max(v, 0.0)


def derive_status(stock, reorder_point, current_status: Optional[str]) -> str:
    """Status an item should carry for the given stock level.

    Phased Out is sticky. Without a reorder point the item is either Available
    or Out of Stock; with one, stock equal to the threshold counts as Low Stock.
    Never raises: unusable numbers are treated as 0 (stock) or absent (threshold).
    """
    if current_status == PHASED_OUT:
        return PHASED_OUT

    qty = _as_stock(stock)
    threshold = _as_threshold(reorder_point)

    if qty <= 0:
        return OUT_OF_STOCK
    if threshold is None or qty > threshold:
        return AVAILABLE
    return LOW_STOCK


def resolve_status(
    *,
    current_status: Optional[str],
    stock,
    reorder_point,
    quantities_changed: bool,
    status_override: Optional[str] = None,
    requested_status: Optional[str] = None,
) -> Optional[str]:
    """Pick the status to store for one write, or None to leave it untouched.

    Precedence: explicit override, then recomputation when stock or
    reorder point changed, then a plain requested status (manual transition).
    """
    if status_override is not None:
        return status_override
    if quantities_changed:
        return derive_status(stock, reorder_point, current_status)
    if requested_status is not None:
        return requested_status
    return None
