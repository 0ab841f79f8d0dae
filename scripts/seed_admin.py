# scripts/seed_admin.py
import argparse

from agriconnect import market, users
from agriconnect.config import settings
from agriconnect.database import Base, SessionLocal, engine
from agriconnect.logger import get_logger

logger = get_logger("seed_admin")

# A handful of listings so a fresh dashboard has something to chart
SAMPLE_ITEMS = [
    ("tomato", "vegetable", "Punjab", 95.0),
    ("potato", "vegetable", "Sindh", 58.0),
    ("onion", "vegetable", "KPK", 132.0),
    ("mango", "fruit", "Sindh", 180.0),
    ("apple", "fruit", "Balochistan", 220.0),
    ("carrot", "vegetable", "Punjab", 72.0),
]


def seed(with_samples: bool = False):
    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        admin = users.get_user_by_email(db, settings.ADMIN_EMAIL)
        if admin:
            logger.info("Admin already exists: %s", admin.email)
        else:
            admin = users.create_user(db, name=settings.ADMIN_NAME, email=settings.ADMIN_EMAIL, role="admin")

        if with_samples:
            for name, category, region, price in SAMPLE_ITEMS:
                market.create_item(
                    db,
                    name=name,
                    category=category,
                    region=region,
                    current_price=price,
                    created_by_id=admin.id,
                )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the admin user.")
    parser.add_argument("--with-samples", action="store_true", help="Also add sample market items")
    args = parser.parse_args()
    seed(with_samples=args.with_samples)
