"""Seed the catalog with starter medical supplies and an admin + doctor account."""
from datetime import date

from medportal.core.security import get_password_hash
from medportal.db.init_db import init_db
from medportal.db.session import SessionLocal
from medportal.models import Product, User, UserRole

DEMO_PASSWORD = "changeme123"

USERS = [
    {"email": "admin@medportal.com", "name": "Portal Admin", "role": UserRole.ADMIN},
    {"email": "doctor@medportal.com", "name": "Dr. Demo", "role": UserRole.DOCTOR},
]

PRODUCTS = [
    {
        "name": "Insulin Pen (Humalog)",
        "sku": "INS-HUM-001",
        "price_cents": 12500,
        "quantity": 25,
        "expiration_date": date(2024, 12, 31),
        "par_level": 10,
    },
    {
        "name": "Blood Pressure Monitor",
        "sku": "BPM-DIG-001",
        "price_cents": 7999,
        "quantity": 15,
        "expiration_date": None,
        "par_level": 5,
    },
    {
        "name": "Glucose Test Strips (50 count)",
        "sku": "GTS-50-001",
        "price_cents": 2499,
        "quantity": 40,
        "expiration_date": date(2025, 6, 30),
        "par_level": 20,
    },
    {
        "name": "Digital Thermometer",
        "sku": "THM-DIG-001",
        "price_cents": 1999,
        "quantity": 30,
        "expiration_date": None,
        "par_level": 15,
    },
    {
        "name": "Metformin 500mg (30 tablets)",
        "sku": "MET-500-30",
        "price_cents": 1200,
        "quantity": 50,
        "expiration_date": date(2025, 3, 15),
        "par_level": 25,
    },
]


def seed_catalog():
    init_db()
    db = SessionLocal()
    try:
        for data in USERS:
            if db.query(User).filter(User.email == data["email"]).first():
                continue
            db.add(User(hashed_password=get_password_hash(DEMO_PASSWORD), **data))
            print(f"[OK] Created {data['role']} user {data['email']} (password: {DEMO_PASSWORD})")

        created = 0
        for data in PRODUCTS:
            if db.query(Product).filter(Product.sku == data["sku"]).first():
                continue
            db.add(Product(cost_cents=int(data["price_cents"] * 0.6), **data))
            created += 1

        db.commit()
        print(f"[OK] Seeded {created} products ({len(PRODUCTS) - created} already present)")
    except Exception as e:
        db.rollback()
        print(f"[ERROR] Seeding failed: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_catalog()
