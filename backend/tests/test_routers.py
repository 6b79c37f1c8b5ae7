from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app import main
from app.database import get_db
from app.models.common import PaginateRes
from app.models.product import Product
from app.models.user import Role, User, UserClaims, UserPassport
from app.routers.orders import get_order_service
from app.routers.products import get_product_service
from app.routers.users import get_user_service
from app.services.auth import TokenKind, new_auth
from app.services.middlewares import get_middlewares_repository, jwt_auth
from app.utils.errors import AppError, ErrorKind

app = main.app


@pytest.fixture
def middlewares_repo():
    repo = MagicMock()
    repo.find_role.return_value = [Role(id=1, title="customer"), Role(id=2, title="admin")]
    repo.find_access_token.return_value = True
    return repo


@pytest.fixture
def client(monkeypatch, tmp_path, middlewares_repo):
    monkeypatch.setattr(main.journal, "log_dir", str(tmp_path))
    monkeypatch.setattr(main.journal, "logs", [])
    app.dependency_overrides[get_db] = lambda: MagicMock()
    app.dependency_overrides[get_middlewares_repository] = lambda: middlewares_repo
    yield TestClient(app)
    app.dependency_overrides.clear()


def as_caller(claims: UserClaims) -> None:
    app.dependency_overrides[jwt_auth] = lambda: claims


def override(dependency, service) -> MagicMock:
    app.dependency_overrides[dependency] = lambda: service
    return service


def bearer(claims: UserClaims) -> dict:
    return {"Authorization": f"Bearer {new_auth(TokenKind.ACCESS, claims).sign_token()}"}


def test_monitor(client):
    res = client.get("/")
    assert res.status_code == 200
    assert res.json() == {"name": main.settings.APP_NAME, "version": main.settings.APP_VERSION}
    assert res.headers["X-Request-ID"]


def test_unknown_route(client):
    res = client.get("/v1/nothing-here")
    assert res.status_code == 404
    assert res.json() == {"traceId": "middleware-001", "msg": "router not found"}


def test_missing_bearer_token(client):
    res = client.get("/v1/users/U1")
    assert res.status_code == 401
    assert res.json()["traceId"] == "middleware-002"


def test_token_without_live_session(client, middlewares_repo, customer_claims):
    middlewares_repo.find_access_token.return_value = False
    res = client.get("/v1/users/U1", headers=bearer(customer_claims))
    assert res.status_code == 401
    assert res.json()["traceId"] == "middleware-002"


def test_expired_or_foreign_token(client):
    token = new_auth(TokenKind.API_KEY).sign_token()
    res = client.get("/v1/users/U1", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401
    assert res.json() == {"traceId": "middleware-002", "msg": "invalid token"}


def test_profile_of_another_user_is_forbidden(client, customer_claims):
    override(get_user_service, MagicMock())
    res = client.get("/v1/users/U2", headers=bearer(customer_claims))
    assert res.status_code == 403
    assert res.json()["traceId"] == "middleware-003"


def test_own_profile(client, customer_claims):
    service = override(get_user_service, MagicMock())
    service.get_profile.return_value = User(id="U1", email="a@example.com", username="alice", role_id=1)
    res = client.get("/v1/users/U1", headers=bearer(customer_claims))
    assert res.status_code == 200
    assert res.json()["username"] == "alice"


def test_order_listing_is_admin_only(client, customer_claims):
    as_caller(customer_claims)
    override(get_order_service, MagicMock())
    res = client.get("/v1/orders")
    assert res.status_code == 403
    assert res.json()["traceId"] == "middleware-004"


def test_order_listing_rejects_bad_dates(client, admin_claims):
    as_caller(admin_claims)
    service = override(get_order_service, MagicMock())
    res = client.get("/v1/orders", params={"start_date": "01/02/2024"})
    assert res.status_code == 400
    assert res.json()["traceId"] == "orders-002"
    service.find_order.assert_not_called()


def test_order_listing_rejects_unpadded_dates(client, admin_claims):
    as_caller(admin_claims)
    service = override(get_order_service, MagicMock())
    res = client.get("/v1/orders", params={"start_date": "2024-1-5"})
    assert res.status_code == 400
    assert res.json() == {"traceId": "orders-002", "msg": "start_date must be in YYYY-MM-DD format"}
    service.find_order.assert_not_called()


def test_order_listing_builds_filter(client, admin_claims):
    as_caller(admin_claims)
    service = override(get_order_service, MagicMock())
    service.find_order.return_value = PaginateRes(data=[], page=1, limit=5, total_page=0, total_item=0)

    res = client.get("/v1/orders", params={"status": "waiting", "limit": 1, "end_date": "2024-02-01"})

    assert res.status_code == 200
    req = service.find_order.call_args.args[0]
    assert req.status == "waiting"
    assert req.limit == 5
    assert req.end_date == "2024-02-01"


def test_products_require_api_key(client):
    override(get_product_service, MagicMock())
    res = client.get("/v1/products")
    assert res.status_code == 401
    assert res.json()["traceId"] == "middleware-005"


def test_product_not_found_keeps_router_code(client):
    service = override(get_product_service, MagicMock())
    service.find_one_product.side_effect = AppError(ErrorKind.NOT_FOUND, "product P9 not found")
    api_key = new_auth(TokenKind.API_KEY).sign_token()

    res = client.get("/v1/products/P9", headers={"X-Api-Key": api_key})

    assert res.status_code == 404
    assert res.json() == {"traceId": "products-001", "msg": "product P9 not found"}


def test_product_found(client):
    service = override(get_product_service, MagicMock())
    service.find_one_product.return_value = Product(id="P1", title="Mug", price=4.5)
    api_key = new_auth(TokenKind.API_KEY).sign_token()

    res = client.get("/v1/products/P1", headers={"X-Api-Key": api_key})

    assert res.status_code == 200
    assert res.json()["images"] == []


def test_admin_signup_requires_admin_token(client):
    service = override(get_user_service, MagicMock())
    body = {"email": "root@example.com", "username": "root", "password": "pw"}

    res = client.post("/v1/users/signup-admin", json=body)
    assert res.status_code == 401
    assert res.json()["traceId"] == "middleware-006"

    service.insert_admin.return_value = UserPassport(
        user=User(id="U2", email="root@example.com", username="root", role_id=2)
    )
    admin_token = new_auth(TokenKind.ADMIN).sign_token()
    res = client.post("/v1/users/signup-admin", json=body, headers={"X-Admin-Token": admin_token})
    assert res.status_code == 201
    assert res.json()["token"] is None


def test_signup_conflict(client):
    service = override(get_user_service, MagicMock())
    service.insert_customer.side_effect = AppError(ErrorKind.CONFLICT, "email already exists")
    res = client.post("/v1/users/signup", json={"email": "a@example.com", "username": "a", "password": "pw"})
    assert res.status_code == 409
    assert res.json() == {"traceId": "users-001", "msg": "email already exists"}


def test_request_validation_error(client):
    override(get_user_service, MagicMock())
    res = client.post("/v1/users/signup", json={"email": "not-an-email", "username": "a", "password": "pw"})
    assert res.status_code == 400
    assert res.json()["traceId"] == "request-001"


def test_signin_body_is_not_journaled(client):
    service = override(get_user_service, MagicMock())
    service.get_passport.side_effect = AppError(ErrorKind.UNAUTHORIZED, "email or password is invalid")

    client.post("/v1/users/signin", json={"email": "a@example.com", "password": "hunter2"})

    entry = main.journal.get_logs(1)[0]
    assert entry["path"] == "/v1/users/signin"
    assert entry["statusCode"] == 401
    assert entry["body"] == "***"


def test_signout_of_a_foreign_session(client, customer_claims):
    as_caller(customer_claims)
    service = override(get_user_service, MagicMock())
    service.delete_oauth.side_effect = AppError(ErrorKind.NOT_FOUND, "oauth not found")

    res = client.post("/v1/users/signout", json={"oauth_id": "S7"})

    assert res.status_code == 404
    assert res.json() == {"traceId": "users-005", "msg": "oauth not found"}
    service.delete_oauth.assert_called_once_with("S7", customer_claims)


def test_every_response_is_journaled(client):
    client.get("/")
    entry = main.journal.get_logs(1)[0]
    assert entry["path"] == "/"
    assert entry["statusCode"] == 200
    assert entry["response"]["name"] == main.settings.APP_NAME
