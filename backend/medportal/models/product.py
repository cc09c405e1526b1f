from sqlalchemy import Column, String, Integer, Date, DateTime

from medportal.db.base import Base, new_id, utcnow


class Product(Base):
    """
    Catalog item and its stock level.

    quantity is the on-hand count; it is adjusted by order creation
    (patient orders consume, stock orders replenish) and by cancellation
    of paid orders. par_level is the reorder threshold used by the
    low-stock alerts.
    """
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    sku = Column(String(64), unique=True, nullable=False, index=True)
    price_cents = Column(Integer, nullable=False)
    cost_cents = Column(Integer, nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=0)
    expiration_date = Column(Date, nullable=True)
    par_level = Column(Integer, nullable=False, default=10)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def is_low_stock(self) -> bool:
        return self.quantity < self.par_level

    def __repr__(self):
        return f"<Product sku={self.sku} quantity={self.quantity}>"
