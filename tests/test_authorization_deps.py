import pytest
from fastapi import HTTPException
from starlette.requests import Request

from foodmarket.deps import AuthenticatedUser, get_current_user, require_role
from foodmarket.services.auth import create_access_token, decode_access_token


def _build_request(path: str = "/api/resource", method: str = "GET") -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": b"",
        "headers": [],
        "path_params": {},
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
        "scheme": "http",
    }
    return Request(scope)


def test_token_round_trip_keeps_subject_and_role():
    payload = decode_access_token(create_access_token("customer-9", "customer"))

    assert payload["sub"] == "customer-9"
    assert payload["role"] == "customer"


def test_get_current_user_reads_token():
    request = _build_request()
    token = create_access_token("owner-3", "restaurantOwner")

    user = get_current_user(request=request, token=token)

    assert user == AuthenticatedUser(id="owner-3", role="restaurant_owner")
    assert request.state.user == user


@pytest.mark.parametrize(
    "token",
    [None, "not-a-jwt", create_access_token("x", "admin"), create_access_token("x", "customer", expires_minutes=-5)],
)
def test_get_current_user_rejects_bad_tokens(token):
    with pytest.raises(HTTPException) as exc:
        get_current_user(request=_build_request(), token=token)

    assert exc.value.status_code == 401


def test_token_signed_with_other_secret_is_rejected():
    token = create_access_token("customer-1", "customer", secret_key="someone-else")

    with pytest.raises(HTTPException) as exc:
        get_current_user(request=_build_request(), token=token)

    assert exc.value.status_code == 401


def test_require_role_denies_wrong_role():
    dependency = require_role(["restaurant_owner"])
    user = AuthenticatedUser(id="customer-1", role="customer")

    with pytest.raises(HTTPException) as exc:
        dependency(request=_build_request(path="/api/restaurants/r1/orders"), user=user)

    assert exc.value.status_code == 403
    assert exc.value.detail == "Insufficient permissions"


def test_require_role_accepts_legacy_alias():
    dependency = require_role(["restaurantOwner"])
    user = AuthenticatedUser(id="owner-1", role="restaurant_owner")

    assert dependency(request=_build_request(), user=user) is user
