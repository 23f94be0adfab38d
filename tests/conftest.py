from datetime import date, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from salonbook.booking import Actor
from salonbook.db import create_db_and_tables, get_session, make_engine
from salonbook.main import create_app
from salonbook.models import Client, Employee, Merchant, PayType, Service, UserRole
from salonbook.repository import SQLModelRepository

# Wednesday; schedules number it 3 (0 = Sunday)
DAY = date(2030, 1, 16)
NOW = datetime(2030, 1, 14, 10, 0)


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'salonbook-test.db'}")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def repo(session):
    return SQLModelRepository(session)


@pytest.fixture
def merchant(repo):
    return repo.save(Merchant(name="Studio Bela", email="owner@bela.test", timezone="America/Sao_Paulo"))


@pytest.fixture
def employee(repo, merchant):
    return repo.save(Employee(
        merchant_id=merchant.id,
        name="Ana",
        email="ana@bela.test",
        payment_type=PayType.percentage,
        payment_value=1000,
    ))


@pytest.fixture
def service(repo, merchant):
    return repo.save(Service(merchant_id=merchant.id, name="Corte", duration=60, price=10000))


@pytest.fixture
def client(repo, merchant):
    return repo.save(Client(merchant_id=merchant.id, name="Carla", phone="+5511999990000"))


@pytest.fixture
def merchant_actor(merchant):
    return Actor(role=UserRole.merchant, merchant_id=merchant.id, email="owner@bela.test")


@pytest.fixture
def employee_actor(merchant, employee):
    return Actor(role=UserRole.employee, merchant_id=merchant.id, employee_id=employee.id, email="ana@bela.test")


@pytest.fixture
def client_actor(merchant, client):
    return Actor(role=UserRole.client, merchant_id=merchant.id, client_id=client.id, email="carla@bela.test")


@pytest.fixture
def api(engine):
    app = create_app()

    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    return TestClient(app)


def upcoming(weekday: int, weeks_ahead: int = 2) -> date:
    """A date ``weeks_ahead`` weeks out that falls on Python ``weekday``."""
    start = date.today() + timedelta(weeks=weeks_ahead)
    return start + timedelta(days=(weekday - start.weekday()) % 7)
