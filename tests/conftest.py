from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from chefbot.config import Settings
from chefbot.db import get_db, init_db
from chefbot.ordering.brain import OrderingEngine
from chefbot.ordering.domain import MenuItem
from chefbot.ordering.menu_store import StaticCatalog
from chefbot.ordering.session_store import SessionStore
from chefbot.reply import ReplyGenerator

MENU = [
    ("1", "Bruschetta", "18.90", "Entradas"),
    ("2", "Bolinho de Bacalhau", "24.90", "Entradas"),
    ("3", "Hambúrguer Artesanal", "32.90", "Pratos Principais"),
    ("4", "Salmão Grelhado", "45.90", "Pratos Principais"),
    ("5", "Risotto de Camarão", "38.90", "Pratos Principais"),
    ("6", "Coca-Cola 350ml", "6.90", "Bebidas"),
    ("7", "Suco Natural de Laranja", "8.90", "Bebidas"),
    ("8", "Caipirinha", "14.90", "Bebidas"),
    ("9", "Pudim de Leite", "12.90", "Sobremesas"),
    ("10", "Petit Gateau", "16.90", "Sobremesas"),
]


class FakeClock:
    """Injectable clock; tests move time forward explicitly."""

    def __init__(self):
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def menu_items():
    return [MenuItem(id=i, name=n, price=p, category=c) for (i, n, p, c) in MENU]


@pytest.fixture
def items_by_name(menu_items):
    return {it.name: it for it in menu_items}


@pytest.fixture
def catalog(menu_items):
    return StaticCatalog(menu_items)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return SessionStore(max_age=timedelta(minutes=30), clock=clock)


@pytest.fixture
def engine(store, catalog):
    return OrderingEngine(store, catalog)


@pytest.fixture
def test_settings():
    return Settings(llm_enabled=False, openai_api_key="", sweep_interval_seconds=0, log_level="WARNING")


@pytest.fixture
def db_engine():
    eng = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(eng)
    return eng


@pytest.fixture
def db_session(db_engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(test_settings, catalog, store, db_engine):
    """FastAPI TestClient wired to an in-memory SQLite DB and the test menu."""
    from chefbot.main import create_app

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app = create_app(
        settings=test_settings,
        catalog=catalog,
        store=store,
        db_engine=db_engine,
        reply_generator=ReplyGenerator(test_settings),
    )
    app.dependency_overrides[get_db] = _get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
