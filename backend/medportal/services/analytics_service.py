"""
Analytics — aggregated figures for the admin dashboard.

Revenue only counts orders that were actually paid (PAID or FULFILLED).
All amounts are integer cents.
"""
from datetime import datetime, timedelta
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from medportal.db.base import utcnow
from medportal.models.order import Order, OrderStatus
from medportal.models.payment import Payment, PaymentStatus
from medportal.services import patient_service, product_service

RECENT_PAYMENTS_LIMIT = 10


def orders(db: Session, days: int = 30) -> List[Dict]:
    """
    Orders per day for the last `days` days.
    Returns: [{date: "2024-01-15", orders: 3, revenue: 12500}, ...] sorted by date.
    Days without orders are omitted.
    """
    start = utcnow() - timedelta(days=days)
    rows = (
        db.query(Order.created_at, Order.total_cents, Order.status)
        .filter(Order.created_at >= start)
        .all()
    )

    by_date: Dict[str, Dict[str, int]] = {}
    for created_at, total_cents, status in rows:
        day = by_date.setdefault(created_at.date().isoformat(), {"orders": 0, "revenue": 0})
        day["orders"] += 1
        if status in OrderStatus.REVENUE:
            day["revenue"] += total_cents

    return [{"date": d, **by_date[d]} for d in sorted(by_date)]


def inventory(db: Session) -> Dict:
    return {
        "low_stock_items": [
            {"id": p.id, "name": p.name, "quantity": p.quantity, "par_level": p.par_level}
            for p in product_service.get_low_stock(db)
        ]
    }


def _paid_orders(db: Session, since: datetime | None = None):
    q = db.query(func.coalesce(func.sum(Order.total_cents), 0), func.count(Order.id)).filter(
        Order.status.in_(OrderStatus.REVENUE)
    )
    if since is not None:
        q = q.filter(Order.created_at >= since)
    total, count = q.one()
    return int(total or 0), int(count or 0)


def revenue(db: Session) -> Dict:
    month_start = utcnow().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    total_revenue, total_orders = _paid_orders(db)
    monthly_revenue, monthly_orders = _paid_orders(db, since=month_start)
    return {
        "total_revenue": total_revenue,
        "total_orders": total_orders,
        "monthly_revenue": monthly_revenue,
        "monthly_orders": monthly_orders,
    }


def payments(db: Session) -> Dict:
    total_payments = db.query(func.count(Payment.id)).scalar() or 0

    succeeded = db.query(
        func.count(Payment.id),
        func.coalesce(func.sum(Payment.amount_cents), 0),
        func.avg(Payment.amount_cents),
    ).filter(Payment.status == PaymentStatus.SUCCEEDED)
    successful_payments, total_revenue_cents, average_cents = succeeded.one()

    today = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    tomorrow = today + timedelta(days=1)
    payments_today = db.query(func.count(Payment.id)).filter(
        Payment.created_at >= today, Payment.created_at < tomorrow
    ).scalar() or 0
    revenue_today_cents = db.query(func.coalesce(func.sum(Payment.amount_cents), 0)).filter(
        Payment.status == PaymentStatus.SUCCEEDED,
        Payment.created_at >= today,
        Payment.created_at < tomorrow,
    ).scalar() or 0

    success_rate = (successful_payments / total_payments) * 100 if total_payments else 0

    recent = (
        db.query(Payment)
        .options(joinedload(Payment.order))
        .order_by(Payment.created_at.desc())
        .limit(RECENT_PAYMENTS_LIMIT)
        .all()
    )

    return {
        "total_payments": total_payments,
        "total_revenue_cents": int(total_revenue_cents or 0),
        "average_order_value_cents": round(float(average_cents or 0)),
        "payments_today": payments_today,
        "revenue_today_cents": int(revenue_today_cents),
        "success_rate": round(success_rate, 2),
        "recent_payments": [
            {
                "id": p.id,
                "order_id": p.order_id,
                "amount": p.amount_cents,
                "status": p.status,
                "patient_name": p.order.patient_name if p.order else None,
                "created_at": p.created_at.isoformat(),
            }
            for p in recent
        ],
    }


def patients_count(db: Session) -> Dict:
    return {"count": patient_service.count(db)}
