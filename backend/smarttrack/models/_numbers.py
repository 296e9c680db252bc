from __future__ import annotations

from decimal import Decimal


def quantity_to_json(value: Decimal | int | float | None):
    """Render a Numeric quantity as an int when whole, else a float."""
    if value is None:
        return None
    d = Decimal(value)
    if d == d.to_integral_value():
        return int(d)
    return float(d.normalize())
