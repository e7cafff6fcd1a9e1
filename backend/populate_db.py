"""Seeds an admin account and a small demo catalog. Safe to run repeatedly."""
import os
import sys

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from config import settings
from database import create_db_engine, create_session_factory, init_db
from models.product import Product
from models.users import User
from utils.hashing import get_password_hash

# Configuration
DEMO_PRODUCTS = [
    {"name": "Espresso Beans 1kg", "description": "Dark roast, whole bean.", "price": 24.90, "stock": 40, "category": "coffee"},
    {"name": "Filter Coffee 500g", "description": "Medium roast, ground.", "price": 11.50, "stock": 60, "category": "coffee"},
    {"name": "Hand Grinder", "description": "Ceramic burr grinder.", "price": 39.00, "stock": 15, "category": "equipment"},
    {"name": "Pour-over Kettle", "description": "Gooseneck, 1 l.", "price": 45.00, "stock": 10, "category": "equipment"},
    {"name": "Paper Filters (100)", "description": "Size 02.", "price": 5.00, "stock": 200, "category": "accessories"},
]
# End Configuration

def seed():
    engine = create_db_engine(settings.DATABASE_URL)
    init_db(engine)
    session = create_session_factory(engine)()

    try:
        admin_email = settings.SEED_ADMIN_EMAIL.strip().lower()
        admin = session.query(User).filter(User.email == admin_email).first()
        if not admin:
            session.add(User(
                username="admin",
                email=admin_email,
                password_hash=get_password_hash(settings.SEED_ADMIN_PASSWORD),
                role="admin",
            ))
            print(f"Created admin account {admin_email}")
        else:
            print(f"Admin account {admin_email} already exists")

        added = 0
        for data in DEMO_PRODUCTS:
            if session.query(Product).filter(Product.name == data["name"]).first():
                continue
            session.add(Product(**data))
            added += 1

        session.commit()
        print(f"Inserted {added} products")
    finally:
        session.close()
        engine.dispose()

if __name__ == "__main__":
    seed()
