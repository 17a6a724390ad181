"""
Pytest fixtures for Motostock backend tests.

Provides the test database, one location of each kind, one user per role,
a motorcycle factory and the test client.
"""

import pytest

from motostock import create_app
from motostock.extensions import db
from motostock.models import Location, LocationType, Motorcycle, Role
from motostock.services import stock_service
from motostock.services.auth_service import create_user
from motostock.time_utils import utcnow


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'LOW_STOCK_THRESHOLD': 5,
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


# =============================================================================
# LOCATIONS
# =============================================================================

def _location(session, code, name, location_type):
    location = Location(code=code, name=name, type=location_type, address=f"{name} Road")
    session.add(location)
    session.commit()
    return location


@pytest.fixture(scope='function')
def warehouse(db_session):
    return _location(db_session, "loc_wh_1", "Central Warehouse", LocationType.WAREHOUSE)


@pytest.fixture(scope='function')
def branch(db_session):
    return _location(db_session, "loc_br_1", "Downtown Branch", LocationType.BRANCH)


@pytest.fixture(scope='function')
def other_branch(db_session):
    return _location(db_session, "loc_br_2", "Northside Branch", LocationType.BRANCH)


# =============================================================================
# USERS
# =============================================================================

def _user(session, name, email, role, location=None):
    user = create_user(
        name=name,
        email=email,
        password=PASSWORD,
        role=role,
        location_id=location.id if location else None,
    )
    session.commit()
    return user


@pytest.fixture(scope='function')
def admin(db_session):
    return _user(db_session, "Admin User", "admin@binawoo.com", Role.ADMIN)


@pytest.fixture(scope='function')
def warehouse_manager(db_session, warehouse):
    return _user(db_session, "Warehouse Mgr", "warehouse@binawoo.com", Role.WAREHOUSE_MANAGER, warehouse)


@pytest.fixture(scope='function')
def branch_manager(db_session, branch):
    return _user(db_session, "Branch Mgr 1", "branch1@binawoo.com", Role.BRANCH_MANAGER, branch)


@pytest.fixture(scope='function')
def other_branch_manager(db_session, other_branch):
    return _user(db_session, "Branch Mgr 2", "branch2@binawoo.com", Role.BRANCH_MANAGER, other_branch)


@pytest.fixture(scope='function')
def sales_officer(db_session, branch):
    return _user(db_session, "Sales Officer 1", "sales1@binawoo.com", Role.SALES_OFFICER, branch)


@pytest.fixture(scope='function')
def other_sales_officer(db_session, branch):
    return _user(db_session, "Sales Officer 2", "sales2@binawoo.com", Role.SALES_OFFICER, branch)


# =============================================================================
# MOTORCYCLES
# =============================================================================

@pytest.fixture(scope='function')
def make_bikes(db_session):
    """
    Factory: make_bikes(location, count, prefix="BW") places `count` unsold
    bikes at `location` and returns their chassis numbers.
    """
    counter = {"next": 1000}

    def _make(location, count=1, prefix="BW"):
        chassis_numbers = []
        for _ in range(count):
            chassis = f"{prefix}-{counter['next']}"
            counter["next"] += 1
            bike = Motorcycle(
                chassis_number=chassis,
                model_type="Sport 150cc",
                color="Red",
                imported_at=utcnow(),
            )
            stock_service.place_at(bike, location)
            db_session.add(bike)
            chassis_numbers.append(chassis)
        db_session.commit()
        return chassis_numbers

    return _make


def bike(chassis_number):
    """Fresh read of one motorcycle."""
    return db.session.get(Motorcycle, chassis_number)


# =============================================================================
# API HELPERS
# =============================================================================

def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def login_headers(client, user) -> dict:
    return auth_headers(get_auth_token(client, user.email))
