"""
Pytest fixtures for Clowee backend tests.

Provides an in-memory database, a test client, and factories for users,
machines and counter readings.
"""

from datetime import date

import pytest
from clowee import create_app
from clowee.extensions import db
from clowee.models import User, Machine, CounterReading


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def operator(db_session):
    """Active admin user used for attribution."""
    user = User(username="operator", name="Ops Desk", role="admin")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def operator_headers(operator):
    return {'X-User-Id': str(operator.id)}


@pytest.fixture(scope='function')
def make_machine(db_session, operator):
    """Factory for machines; keyword arguments override the defaults."""
    def _make(**overrides):
        values = dict(
            name="Claw A",
            location="Bashundhara City",
            installation_date=date(2024, 12, 1),
            coin_price=2.0,
            doll_price=5.0,
            electricity_cost=100.0,
            vat_percentage=10.0,
            maintenance_percentage=5.0,
            owner_profit_share_percentage=50.0,
            clowee_profit_share_percentage=50.0,
            duration="half_month",
            created_by_user_id=operator.id,
        )
        values.update(overrides)
        machine = Machine(**values)
        db_session.add(machine)
        db_session.commit()
        return machine

    return _make


@pytest.fixture(scope='function')
def add_reading(db_session, operator):
    """Factory for cumulative counter readings."""
    def _add(machine, report_date, coins, prizes):
        reading = CounterReading(
            machine_id=machine.id,
            report_date=report_date,
            coin_count=coins,
            prize_count=prizes,
            created_by_user_id=operator.id,
        )
        db_session.add(reading)
        db_session.commit()
        return reading

    return _add
