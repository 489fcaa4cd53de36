import os
import sys
import pytest

CURRENT_DIR = os.path.dirname(__file__)
SERVICE_ROOT = os.path.dirname(CURRENT_DIR)
if SERVICE_ROOT not in sys.path:
    sys.path.insert(0, SERVICE_ROOT)

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from school_records.infrastructure.models import Base, Account, Class, Student
from school_records.infrastructure.db import get_db
from school_records.infrastructure.rate_limit import limiter
from school_records.infrastructure.security import create_access_token

# Тестовая БД в памяти: одно соединение на все потоки TestClient
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

# Переопределяем engine в infrastructure.db и main.py для тестов
import school_records.infrastructure.db
import school_records.main
school_records.infrastructure.db.engine = test_engine
school_records.main.engine = test_engine
school_records.infrastructure.db.SessionLocal = TestingSessionLocal

# Импортируем app после переопределения engine
from school_records.main import app

app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def tables():
    # Счётчики rate limit не переживают тест
    limiter.reset()
    # Создаем таблицы перед каждым тестом
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    # Очищаем после теста
    Base.metadata.drop_all(bind=test_engine)

@pytest.fixture
def client():
    yield TestClient(app)

@pytest.fixture
def db():
    """Сессия для подготовки данных и проверок напрямую через ядро"""
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def make_account(db):
    """Фабрика учётных записей (пароль в тестах через неё не проверяется)"""
    counter = {"n": 0}

    def _make(role="teacher", name=None, email=None):
        counter["n"] += 1
        n = counter["n"]
        row = Account(
            name=name or f"{role.title()} {n}",
            email=email or f"{role}{n}@example.com",
            password_hash="not-a-real-hash",
            role=role,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make

@pytest.fixture
def make_class(db):
    def _make(name="Math", section="A", teacher_id=None):
        row = Class(name=name, section=section, teacher_id=teacher_id)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make

@pytest.fixture
def make_student(db):
    counter = {"n": 0}

    def _make(name=None, age=12, class_id=None, account_id=None):
        counter["n"] += 1
        row = Student(name=name or f"Student {counter['n']:02d}", age=age, class_id=class_id, account_id=account_id)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make


def bearer(account) -> dict:
    token = create_access_token(account.id, account.email, account.role)
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def admin(make_account):
    return make_account("admin", name="Admin", email="admin@example.com")

@pytest.fixture
def admin_headers(admin):
    return bearer(admin)

@pytest.fixture
def teacher(make_account):
    return make_account("teacher", name="Ada Teacher", email="ada@example.com")

@pytest.fixture
def teacher_headers(teacher):
    return bearer(teacher)
