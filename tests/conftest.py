import copy
import time
from decimal import Decimal

import pytest
import redis
from fastapi.testclient import TestClient

from app.celery_worker import celery_app
from app.data.models import CartItemModel, ProductModel, UserModel
from app.domain.signature import webhook_signature
from app.main import create_app
from app.services.notification_service import NotificationService
from app.utils.settings import Settings

# taski wykonywane lokalnie, bez brokera
celery_app.conf.task_always_eager = True

SECRET = "test-secure-key"
MERCHANT = "TESTMERCHANT"

VALID_CHECKOUT = {
    "shippingAddress": {
        "fullName": "Mona Hassan",
        "addressLine1": "12 Tahrir Street",
        "addressLine2": "Flat 4",
        "city": "Cairo",
    },
    "phone": "01012345678",
    "paymentMethod": "cod",
    "shippingMethod": "standard",
    "notes": "Ring twice",
}


class FakeRedis:
    """Minimalny redis w pamieci: get, set NX EX, eval skryptu release."""

    def __init__(self):
        self.store: dict[str, tuple[str, float | None]] = {}
        self.offset = 0.0

    def _now(self) -> float:
        return time.monotonic() + self.offset

    def advance(self, seconds: float) -> None:
        self.offset += seconds

    def _alive(self, name):
        entry = self.store.get(name)
        if entry is None:
            return None
        value, expires = entry
        if expires is not None and expires <= self._now():
            del self.store[name]
            return None
        return value

    def get(self, name):
        return self._alive(name)

    def set(self, name, value, nx=False, ex=None):
        if nx and self._alive(name) is not None:
            return None
        self.store[name] = (value, self._now() + ex if ex else None)
        return True

    def eval(self, script, numkeys, *args):
        key, token = args[0], args[1]
        if self._alive(key) == token:
            del self.store[key]
            return 1
        return 0

    def close(self):
        pass


class BrokenRedis:
    def _fail(self, *args, **kwargs):
        raise redis.ConnectionError("redis is down")

    get = set = eval = _fail

    def close(self):
        pass


class RecordingNotifications(NotificationService):
    def __init__(self):
        super().__init__("EGP")
        self.messages: list[str] = []

    def notify(self, text: str) -> None:
        self.messages.append(text)


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'checkout.db'}",
        fawry_merchant_code=MERCHANT,
        fawry_secure_key=SECRET,
        site_url="http://shop.test",
    )


@pytest.fixture()
def fake_redis():
    return FakeRedis()


@pytest.fixture()
def app(settings, fake_redis):
    app = create_app(settings, redis_client=fake_redis)
    app.state.notifications = RecordingNotifications()
    return app


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def notifications(app):
    return app.state.notifications


@pytest.fixture()
def db(app):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture()
def make_user(db):
    def _make(user_id: int = 1, email: str | None = "mona@example.com") -> UserModel:
        user = UserModel(id=user_id, name=f"user-{user_id}", email=email, api_token=f"token-{user_id}")
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture()
def user(make_user):
    return make_user(1)


@pytest.fixture()
def auth():
    return {"Authorization": "Bearer token-1"}


@pytest.fixture()
def make_product(db):
    def _make(
        name: str = "Hoodie",
        price: str = "700.00",
        sale_price: str | None = None,
        stock: int = 5,
    ) -> ProductModel:
        product = ProductModel(
            name_ar=f"{name} ar",
            name_en=name,
            price=Decimal(price),
            sale_price=Decimal(sale_price) if sale_price else None,
            stock=stock,
            images=[f"/images/{name.lower()}.jpg"],
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture()
def add_to_cart(db):
    def _add(user_id: int, product: ProductModel, quantity: int, size: str = "L", color: str | None = None):
        item = CartItemModel(
            user_id=user_id, product_id=product.id, size=size, color=color, quantity=quantity
        )
        db.add(item)
        db.commit()
        return item

    return _add


@pytest.fixture()
def checkout_payload():
    return copy.deepcopy(VALID_CHECKOUT)


@pytest.fixture()
def signed_webhook(settings):
    def _sign(
        order_id: str,
        status: str = "PAID",
        amount: str = "1200.00",
        fawry_ref: str = "FAW-100200",
        payment_method: str = "PayAtFawry",
        reference: str = "REF-1",
    ) -> dict:
        return {
            "requestId": "req-1",
            "fawryRefNumber": fawry_ref,
            "merchantRefNumber": order_id,
            "customerMobile": "01012345678",
            "paymentAmount": float(amount),
            "orderAmount": float(amount),
            "fawryFees": 0,
            "shippingFees": 0,
            "orderStatus": status,
            "paymentMethod": payment_method,
            "paymentRefrenceNumber": reference,
            "messageSignature": webhook_signature(
                fawry_ref, order_id, amount, amount, status, payment_method, reference,
                settings.fawry_secure_key,
            ),
            "orderExpiryDate": 1893456000000,
        }

    return _sign


@pytest.fixture()
def broken_redis():
    return BrokenRedis()
