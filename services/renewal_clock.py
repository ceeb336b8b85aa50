"""
services/renewal_clock.py
-------------------------
Pure date arithmetic for billing cycles.

All dates are calendar dates; datetimes are reduced to their date before
any comparison. The n-th renewal is always computed as
``anchor + n * unit`` rather than by adding one unit at a time, so a
subscription started on Jan 31 renews on Feb 28 (or 29), then Mar 31,
never drifting to the 28th. relativedelta clamps to the last day of the
target month, which is the overflow rule for every cycle.
"""

from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Union

from dateutil.relativedelta import relativedelta

from models.subscription import BillingCycle

DateLike = Union[date, datetime]

_UNITS: dict[BillingCycle, Union[timedelta, relativedelta]] = {
    BillingCycle.DAILY: timedelta(days=1),
    BillingCycle.WEEKLY: timedelta(weeks=1),
    BillingCycle.MONTHLY: relativedelta(months=1),
    BillingCycle.QUARTERLY: relativedelta(months=3),
    BillingCycle.YEARLY: relativedelta(years=1),
}

# Longest possible length of one unit in days. Dividing elapsed days by it
# never overestimates how many units have passed.
_MAX_UNIT_DAYS: dict[BillingCycle, int] = {
    BillingCycle.DAILY: 1,
    BillingCycle.WEEKLY: 7,
    BillingCycle.MONTHLY: 31,
    BillingCycle.QUARTERLY: 92,
    BillingCycle.YEARLY: 366,
}


def _as_date(value: Optional[DateLike]) -> date:
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


def occurrence(anchor: DateLike, billing_cycle, n: int) -> date:
    """Return the n-th boundary after ``anchor`` (n=0 is the anchor itself)."""
    cycle = BillingCycle.parse(billing_cycle)
    anchor = _as_date(anchor)
    if cycle is BillingCycle.ONE_TIME or n == 0:
        return anchor
    return anchor + _UNITS[cycle] * n


def _first_index_after(anchor: date, cycle: BillingCycle, after: date) -> int:
    """Smallest n >= 1 such that occurrence(anchor, cycle, n) > after."""
    elapsed = (after - anchor).days
    n = max(1, elapsed // _MAX_UNIT_DAYS[cycle])
    while n > 1 and occurrence(anchor, cycle, n - 1) > after:
        n -= 1
    while occurrence(anchor, cycle, n) <= after:
        n += 1
    return n


def next_renewal(start_date: DateLike, billing_cycle, reference_date: Optional[DateLike] = None) -> date:
    """
    Next date a subscription renews, strictly after ``reference_date``.

    Args:
        start_date: First billing date of the subscription.
        billing_cycle: BillingCycle or raw value; unknown values mean monthly.
        reference_date: "Now"; defaults to today.

    Returns:
        ``start_date`` if it is still in the future or the cycle is
        one-time, otherwise the first cycle boundary after the reference.
    """
    cycle = BillingCycle.parse(billing_cycle)
    start = _as_date(start_date)
    today = _as_date(reference_date)

    if cycle is BillingCycle.ONE_TIME or start > today:
        return start
    return occurrence(start, cycle, _first_index_after(start, cycle, today))


def iter_missed_renewals(
    last_occurrence: DateLike,
    billing_cycle,
    reference_date: Optional[DateLike] = None,
    anchor: Optional[DateLike] = None,
) -> Iterator[date]:
    """
    Lazily yield every boundary in (last_occurrence, reference_date].

    Args:
        last_occurrence: Last renewal already accounted for (exclusive).
        billing_cycle: BillingCycle or raw value; unknown values mean monthly.
        reference_date: "Now" (inclusive); defaults to today.
        anchor: Date the boundaries are counted from. Defaults to
            ``last_occurrence``; pass the subscription start date so
            month-end clamping does not drift.
    """
    cycle = BillingCycle.parse(billing_cycle)
    last = _as_date(last_occurrence)
    today = _as_date(reference_date)
    base = _as_date(anchor) if anchor is not None else last

    if cycle is BillingCycle.ONE_TIME or last >= today:
        return
    if base > last:
        # Nothing can be due before the anchor itself.
        if base > today:
            return
        yield base
        last = base

    n = _first_index_after(base, cycle, last)
    current = occurrence(base, cycle, n)
    while current <= today:
        yield current
        n += 1
        current = occurrence(base, cycle, n)


def missed_renewals(
    last_occurrence: DateLike,
    billing_cycle,
    reference_date: Optional[DateLike] = None,
    anchor: Optional[DateLike] = None,
) -> list[date]:
    """List form of :func:`iter_missed_renewals`, ascending."""
    return list(iter_missed_renewals(last_occurrence, billing_cycle, reference_date, anchor))
