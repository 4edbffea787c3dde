#!/usr/bin/env python3
"""
Seed script to create demo canteen users and menu data
"""

import asyncio
import uuid

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


async def seed_demo_data():
    """Seed demo data for development"""
    from app.database import SessionLocal, engine, Base
    from app.models.menu import MenuItem
    from app.models.user import User

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if demo admin already exists
        from sqlalchemy import select
        result = await db.execute(
            select(User).where(User.email == "admin@canteen.example.com")
        )
        existing = result.scalar_one_or_none()

        if existing:
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo users...")

        # Create admin user
        admin_user = User(
            id=uuid.uuid4(),
            email="admin@canteen.example.com",
            hashed_password=pwd_context.hash("admin123"),
            name="Canteen Admin",
            is_admin=True,
            is_active=True,
            email_verified=True,
        )
        db.add(admin_user)

        # Create customer user
        customer = User(
            id=uuid.uuid4(),
            email="student@canteen.example.com",
            hashed_password=pwd_context.hash("student123"),
            name="Demo Student",
            is_admin=False,
            is_active=True,
            email_verified=True,
        )
        db.add(customer)

        print("Creating menu items...")

        # Create menu items
        menu_items = [
            # Breakfast
            {"item_code": "BF-01", "name": "Masala Dosa", "description": "Crisp rice crepe with spiced potato filling, sambar and chutney", "price_cents": 6000},
            {"item_code": "BF-02", "name": "Idli Vada", "description": "Two idlis and one medu vada with sambar", "price_cents": 5000},
            {"item_code": "BF-03", "name": "Poha", "description": "Flattened rice with peanuts, onion and curry leaves", "price_cents": 3500},
            {"item_code": "BF-04", "name": "Aloo Paratha", "description": "Stuffed flatbread with curd and pickle", "price_cents": 5500},

            # Meals
            {"item_code": "ML-01", "name": "Veg Thali", "description": "Rice, two rotis, dal, two sabzis, curd and sweet", "price_cents": 12000},
            {"item_code": "ML-02", "name": "Veg Biryani", "description": "Basmati rice cooked with vegetables and whole spices", "price_cents": 11000},
            {"item_code": "ML-03", "name": "Chole Bhature", "description": "Spiced chickpeas with two fried breads", "price_cents": 9000},
            {"item_code": "ML-04", "name": "Rajma Chawal", "description": "Kidney bean curry with steamed rice", "price_cents": 8500},

            # Snacks
            {"item_code": "SN-01", "name": "Samosa", "description": "Two potato samosas with mint chutney", "price_cents": 2500},
            {"item_code": "SN-02", "name": "Paneer Roll", "description": "Grilled paneer wrapped in a paratha", "price_cents": 8000},
            {"item_code": "SN-03", "name": "Veg Sandwich", "description": "Grilled sandwich with vegetables and cheese", "price_cents": 6000},

            # Beverages
            {"item_code": "BV-01", "name": "Filter Coffee", "description": "South Indian filter coffee", "price_cents": 2500},
            {"item_code": "BV-02", "name": "Masala Chai", "description": "Spiced milk tea", "price_cents": 2000},
            {"item_code": "BV-03", "name": "Sweet Lassi", "description": "Chilled sweetened yogurt drink", "price_cents": 4000},
        ]

        for item_data in menu_items:
            db.add(MenuItem(**item_data))

        await db.commit()

        print(f"""
Demo data created successfully!

Users:
  Admin:
    Email: admin@canteen.example.com
    Password: admin123

  Customer:
    Email: student@canteen.example.com
    Password: student123

Menu: {len(menu_items)} items created
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
