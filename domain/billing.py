"""Billing rules for the 24-hour (noon cutoff) stay convention.

Every stay is billed as if it started at 12:00 on the check-in date, whatever
the actual arrival time. A guest leaving at or after 12:00 on the day after
check-in is billed a second night.
"""
import math
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple, Union

from domain.enums import PaymentMethod

NOON_HOUR = 12
CENT = Decimal("0.01")
ZERO = Decimal("0.00")

DateLike = Union[date, datetime]


def to_money(value) -> Decimal:
    """Quantize a numeric value to currency precision"""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def normalize_billing_date(instant: Optional[DateLike] = None) -> date:
    """Return the billing date for an arrival instant (noon of that day)"""
    if instant is None:
        instant = datetime.now()
    if isinstance(instant, datetime):
        return instant.date()
    return instant


def default_checkout_date(check_in_date: DateLike) -> date:
    """Default checkout is noon of the following day"""
    return normalize_billing_date(check_in_date) + timedelta(days=1)


def nights_billed(
    check_in_date: DateLike,
    check_out_date: DateLike,
    actual_check_out_time: Optional[datetime] = None
) -> int:
    """Number of nights to bill, never less than one"""
    if isinstance(check_in_date, datetime) != isinstance(check_out_date, datetime):
        check_in_date = normalize_billing_date(check_in_date)
        check_out_date = normalize_billing_date(check_out_date)

    diff = check_out_date - check_in_date
    diff_days = math.ceil(diff.total_seconds() / 86400)

    if diff_days == 1 and actual_check_out_time is not None:
        if actual_check_out_time.hour >= NOON_HOUR:
            return 2

    return max(1, diff_days)


def gst_amount(base_amount, rate_percent) -> Decimal:
    return to_money(Decimal(str(base_amount)) * Decimal(str(rate_percent)) / Decimal("100"))


def total_amount(base_amount, gst) -> Decimal:
    return to_money(Decimal(str(base_amount)) + Decimal(str(gst)))


def payment_method_for(qr_amount: Decimal, cash_amount: Decimal) -> PaymentMethod:
    """Derive the payment method tag from a cash/QR split"""
    if qr_amount > 0 and cash_amount > 0:
        return PaymentMethod.MIXED
    if qr_amount > 0:
        return PaymentMethod.QR
    return PaymentMethod.CASH


def trim_payment(
    qr_amount: Decimal,
    cash_amount: Decimal,
    max_additional: Decimal
) -> Tuple[Decimal, Decimal]:
    """Scale a cash/QR split down to max_additional, keeping its ratio.

    The QR share is rounded and cash takes the remainder, so the two parts
    always add up to exactly max_additional.
    """
    requested = qr_amount + cash_amount
    if requested <= max_additional:
        return qr_amount, cash_amount
    if max_additional <= 0 or requested <= 0:
        return ZERO, ZERO

    ratio = max_additional / requested
    trimmed_qr = to_money(qr_amount * ratio)
    trimmed_cash = to_money(max_additional - trimmed_qr)
    return trimmed_qr, trimmed_cash
