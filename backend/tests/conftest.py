import pytest
from sqlalchemy.exc import OperationalError

from app.models.user import UserClaims, UserRole


@pytest.fixture
def customer_claims() -> UserClaims:
    return UserClaims(id="U1", role=int(UserRole.CUSTOMER))


@pytest.fixture
def admin_claims() -> UserClaims:
    return UserClaims(id="U9", role=int(UserRole.ADMIN))


class FakePgError(Exception):
    """Stands in for a psycopg error carrying a SQLSTATE."""

    def __init__(self, sqlstate=None, constraint_name=None):
        super().__init__(f"pg error {sqlstate}")
        self.sqlstate = sqlstate
        self.diag = type("Diag", (), {"constraint_name": constraint_name})()


def db_error(sqlstate=None, constraint_name=None) -> OperationalError:
    return OperationalError("SELECT 1", {}, FakePgError(sqlstate, constraint_name))


@pytest.fixture(name="db_error")
def db_error_factory():
    return db_error
