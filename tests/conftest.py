import itertools
from decimal import Decimal
import pytest
from app import create_app
from config import TestingConfig
from extensions import db
from models import Product, TransactionType
from mlm.accounts import create_member
from mlm.placement import place_user
from mlm.wallet import WalletService


DEFAULT_PASSWORD = "password123"


@pytest.fixture(scope="session")
def log_dir(tmp_path_factory):
    return str(tmp_path_factory.mktemp("logs"))


@pytest.fixture
def app(log_dir):
    class Config(TestingConfig):
        LOG_DIR = log_dir

    app = create_app(Config)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = itertools.count(1)

    def _make(email=None, password=DEFAULT_PASSWORD, role="user", status="active",
              parent=None, side="left", sponsor=None, is_hidden=False, first_name="Test"):
        n = next(counter)
        user = create_member(
            email=email or f"user{n}@example.com",
            password=password,
            first_name=first_name,
            last_name=f"User{n}",
            role=role,
            status=status,
            sponsor_id=sponsor.id if sponsor else None,
            is_hidden=is_hidden,
        )
        if parent is not None:
            place_user(user.id, parent.id, side)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def make_product(app):
    counter = itertools.count(1)

    def _make(price="11500.00", bv="5750.00", purchase_type="first_purchase", name=None):
        product = Product(
            name=name or f"Product {next(counter)}",
            price=Decimal(price),
            bv=Decimal(bv),
            gst=Decimal("18.00"),
            category="water_purifier",
            purchase_type=purchase_type,
            is_active=True,
        )
        db.session.add(product)
        db.session.commit()
        return product

    return _make


@pytest.fixture
def fund(app):
    def _fund(user, amount):
        WalletService.credit(user.id, amount, TransactionType.ADMIN_ADJUSTMENT, "test funding")
        db.session.commit()

    return _fund


@pytest.fixture
def login(client):
    def _login(user, password=DEFAULT_PASSWORD):
        resp = client.post("/api/auth/login", json={"email": user.email, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp

    return _login
