"""Rental fee calculation. Pure; pricing of the base session comes from the caller."""

from decimal import ROUND_HALF_UP, Decimal

from services.rentals_service.models import Coach, FeeType

# fee_value for PERCENTAGE coaches is percent x 100
PERCENT_SCALE = Decimal(10000)


def calculate_rental_fee(
    coach: Coach, base_price_cents: int = 0, guest_count: int = 0
) -> int:
    """Fee in cents owed by ``coach`` for a rental.

    FIXED coaches pay ``fee_value`` cents regardless of attendance.
    PERCENTAGE coaches pay ``fee_value / 10000`` of ``base_price_cents`` per
    guest, rounded half-up to the cent.
    """
    if coach.fee_type == FeeType.FIXED:
        return coach.fee_value

    if base_price_cents < 0 or guest_count < 0:
        raise ValueError("base_price_cents and guest_count must be non-negative")

    fee = (
        Decimal(coach.fee_value) / PERCENT_SCALE
        * Decimal(base_price_cents)
        * Decimal(guest_count)
    )
    return int(fee.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
