"""Products: public catalog reads, admin-only writes and low-stock alerts."""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from medportal.api.deps import get_db, require_admin
from medportal.core.audit import AuditLog
from medportal.models.user import User
from medportal.schemas.order import MessageResponse
from medportal.schemas.product import ProductCreate, ProductUpdate, ProductResponse
from medportal.services import product_service

router = APIRouter()


@router.get("", response_model=List[ProductResponse])
def list_products(
    include_out_of_stock: bool = Query(True, description="Include products with zero quantity"),
    db: Session = Depends(get_db),
):
    return product_service.find_all(db, include_out_of_stock=include_out_of_stock)


@router.get("/low-stock/alerts", response_model=List[ProductResponse])
def low_stock_alerts(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    """Products below par level, emptiest first."""
    return product_service.get_low_stock(db)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: str, db: Session = Depends(get_db)):
    return product_service.find_one(db, product_id)


@router.post("", response_model=ProductResponse, status_code=201)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    product = product_service.create(db, data)
    AuditLog.log_action("create", "product", product.id, actor=admin.email, changes={"sku": product.sku})
    return product


@router.patch("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: str,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    product = product_service.update(db, product_id, data)
    AuditLog.log_action(
        "update", "product", product.id, actor=admin.email,
        changes=data.model_dump(exclude_unset=True),
    )
    return product


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    result = product_service.remove(db, product_id)
    AuditLog.log_action("delete", "product", product_id, actor=admin.email)
    return result
