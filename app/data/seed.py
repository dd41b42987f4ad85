# app/data/seed.py
import secrets
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from app.data.database import init_db, make_engine, make_session_factory
from app.data.models import ProductModel, UserModel
from app.utils.settings import load_settings
from app.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {"name_ar": "هودي أسود", "name_en": "Black Hoodie", "price": Decimal("700.00"),
     "sale_price": Decimal("600.00"), "stock": 5, "images": ["/images/hoodie-black.jpg"]},
    {"name_ar": "تيشيرت أبيض", "name_en": "White T-Shirt", "price": Decimal("350.00"),
     "sale_price": None, "stock": 20, "images": ["/images/tshirt-white.jpg"]},
    {"name_ar": "حذاء رياضي", "name_en": "Sneakers", "price": Decimal("1450.00"),
     "sale_price": Decimal("1299.99"), "stock": 3, "images": []},
]


def seed(session_factory: sessionmaker[Session]) -> str | None:
    """Zwraca token demo usera jesli zostal utworzony."""
    db = session_factory()
    try:
        # not forcing: only seed if empty
        if db.execute(select(ProductModel)).first():
            return None

        db.add_all(ProductModel(**p) for p in PRODUCTS)
        token = secrets.token_urlsafe(32)
        db.add(UserModel(id=1, name="Demo", email="demo@widewear.com", api_token=token))
        db.commit()
        return token
    finally:
        db.close()


if __name__ == "__main__":
    settings = load_settings()
    configure_logging(settings.log_level)

    engine = make_engine(settings.database_url)
    init_db(engine)
    token = seed(make_session_factory(engine))
    if token:
        logger.info(f"Seeded products and demo user 1, token: {token}")
    else:
        logger.info("Database already seeded")
