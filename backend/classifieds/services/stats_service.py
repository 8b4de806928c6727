# Overview: Read-only dashboard aggregates for the admin panel.

from __future__ import annotations

from datetime import datetime, timedelta

from ..extensions import db
from ..models import Ad, Payment, User
from ..models.ads import AD_STATUS_APPROVED, PAYMENT_STATUS_PENDING
from classifieds.time_utils import utcnow, to_utc_z


MONTH = timedelta(days=30)
WEEK = timedelta(days=7)


def percent_change(current: int, previous: int) -> str:
    """
    Period-over-period change as a one-decimal string.

    Defined as "0.0" when the previous period is zero, whatever the
    current count.
    """
    if not previous:
        return "0.0"
    return f"{(current - previous) / previous * 100:.1f}"


def _count_between(column, start: datetime, end: datetime, *criteria) -> int:
    query = db.session.query(db.func.count()).select_from(column.class_)
    query = query.filter(column > start, column <= end, *criteria)
    return query.scalar() or 0


def _period_pair(column, window: timedelta, now: datetime, *criteria) -> tuple[int, int]:
    current = _count_between(column, now - window, now, *criteria)
    previous = _count_between(column, now - 2 * window, now - window, *criteria)
    return current, previous


def dashboard_stats(now: datetime | None = None) -> dict:
    """
    Totals plus deltas:
    - users, ads: created in the last 30 days vs the 30 days before
    - payments: submitted in the last 7 days vs the 7 days before
    - approved ads: approved in the last 7 days vs the 7 days before
    """
    now = now or utcnow()

    live_ad = Ad.is_deleted.is_(False)

    total_users = db.session.query(db.func.count(User.id)).scalar() or 0
    total_ads = db.session.query(db.func.count(Ad.id)).filter(live_ad).scalar() or 0
    pending_payments = (
        db.session.query(db.func.count(Payment.id))
        .filter(Payment.status == PAYMENT_STATUS_PENDING)
        .scalar() or 0
    )
    approved_ads = (
        db.session.query(db.func.count(Ad.id))
        .filter(live_ad, Ad.status == AD_STATUS_APPROVED)
        .scalar() or 0
    )

    users_cur, users_prev = _period_pair(User.created_at, MONTH, now)
    ads_cur, ads_prev = _period_pair(Ad.created_at, MONTH, now, live_ad)
    pay_cur, pay_prev = _period_pair(Payment.created_at, WEEK, now)
    appr_cur, appr_prev = _period_pair(Ad.approved_at, WEEK, now, live_ad)

    return {
        "total_users": total_users,
        "total_ads": total_ads,
        "pending_payments": pending_payments,
        "approved_ads": approved_ads,
        "changes": {
            "users_month_over_month": percent_change(users_cur, users_prev),
            "ads_month_over_month": percent_change(ads_cur, ads_prev),
            "payments_week_over_week": percent_change(pay_cur, pay_prev),
            "approved_ads_week_over_week": percent_change(appr_cur, appr_prev),
        },
        "periods": {
            "new_users": {"current": users_cur, "previous": users_prev},
            "new_ads": {"current": ads_cur, "previous": ads_prev},
            "payments_submitted": {"current": pay_cur, "previous": pay_prev},
            "ads_approved": {"current": appr_cur, "previous": appr_prev},
        },
        "generated_at": to_utc_z(now),
    }
