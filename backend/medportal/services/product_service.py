"""Product catalog and stock access. Used by routes, order service and the stock monitor."""
import logging
import time
from typing import List

from sqlalchemy.orm import Session

from medportal.core.exceptions import BusinessError
from medportal.models.order import OrderItem
from medportal.models.product import Product
from medportal.schemas.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

# Cost defaults to 60% of price when the catalog entry does not supply one
DEFAULT_COST_RATIO = 0.6


def find_all(db: Session, include_out_of_stock: bool = True) -> List[Product]:
    started = time.perf_counter()
    q = db.query(Product)
    if not include_out_of_stock:
        q = q.filter(Product.quantity > 0)
    products = q.order_by(Product.name.asc()).all()
    logger.debug(f"Products query completed in {(time.perf_counter() - started) * 1000:.1f}ms")
    return products


def find_one(db: Session, product_id: str, for_update: bool = False) -> Product:
    q = db.query(Product).filter(Product.id == product_id)
    if for_update:
        q = q.with_for_update()
    product = q.first()
    if not product:
        raise BusinessError.not_found("Product", product_id)
    return product


def create(db: Session, data: ProductCreate) -> Product:
    if db.query(Product).filter(Product.sku == data.sku).first():
        raise BusinessError.conflict(f"Product with SKU {data.sku} already exists")

    cost_cents = data.cost_cents
    if cost_cents is None:
        cost_cents = max(0, int(data.price_cents * DEFAULT_COST_RATIO))

    product = Product(
        name=data.name,
        sku=data.sku,
        price_cents=data.price_cents,
        cost_cents=cost_cents,
        quantity=data.quantity,
        expiration_date=data.expiration_date,
        par_level=data.par_level,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info(f"Created product {product.sku} ({product.id})")
    return product


def update(db: Session, product_id: str, data: ProductUpdate) -> Product:
    product = find_one(db, product_id)
    changes = data.model_dump(exclude_unset=True)

    new_sku = changes.get("sku")
    if new_sku and new_sku != product.sku:
        if db.query(Product).filter(Product.sku == new_sku).first():
            raise BusinessError.conflict(f"Product with SKU {new_sku} already exists")

    for field, value in changes.items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)
    return product


def remove(db: Session, product_id: str) -> dict:
    product = find_one(db, product_id)
    if db.query(OrderItem.id).filter(OrderItem.product_id == product_id).first():
        raise BusinessError.conflict("Product is referenced by existing orders and cannot be deleted")
    db.delete(product)
    db.commit()
    logger.info(f"Deleted product {product_id}")
    return {"message": "Product deleted successfully"}


def get_low_stock(db: Session) -> List[Product]:
    """Products whose quantity is below their par level, emptiest first."""
    return (
        db.query(Product)
        .filter(Product.quantity < Product.par_level)
        .order_by(Product.quantity.asc())
        .all()
    )


def update_quantity(db: Session, product_id: str, quantity: int, commit: bool = True) -> Product:
    """Set absolute stock. Caller controls the transaction when commit=False."""
    if quantity < 0:
        raise BusinessError.bad_request("Quantity cannot be negative")
    product = find_one(db, product_id)
    product.quantity = quantity
    if commit:
        db.commit()
        db.refresh(product)
    else:
        db.flush()
    return product


def adjust_quantity(db: Session, product: Product, delta: int) -> Product:
    """Add delta to stock inside the caller's transaction. Never goes below zero."""
    new_quantity = product.quantity + delta
    if new_quantity < 0:
        logger.warning(
            f"Stock for {product.sku} would go negative ({product.quantity} {delta:+d}); clamping to 0"
        )
        new_quantity = 0
    product.quantity = new_quantity
    db.flush()
    return product


def check_stock(db: Session, product_id: str, requested_quantity: int) -> bool:
    return find_one(db, product_id).quantity >= requested_quantity
