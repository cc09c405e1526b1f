"""
Analytics API — dashboard data for the admin portal.

Provides:
- Orders and paid revenue per day
- Low-stock inventory
- Revenue totals (all time and this month)
- Payment statistics
- Patient count
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from medportal.api.deps import get_db, require_admin
from medportal.models.user import User
from medportal.services import analytics_service

router = APIRouter()


@router.get("/orders")
def orders_per_day(
    days: int = Query(30, ge=1, le=365, description="Number of days to fetch"),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Returns: [{date: "2024-01-15", orders: 3, revenue: 12500}, ...]"""
    return analytics_service.orders(db, days=days)


@router.get("/inventory")
def inventory(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return analytics_service.inventory(db)


@router.get("/revenue")
def revenue(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return analytics_service.revenue(db)


@router.get("/payments")
def payments(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return analytics_service.payments(db)


@router.get("/patients-count")
def patients_count(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return analytics_service.patients_count(db)
