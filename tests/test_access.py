from storespark.access import Outcome, guard, home_for, resolve
from storespark.schemas import Role, UserPublic


def make_user(role):
    return UserPublic(id="u", name="Someone With A Long Name", email="u@x.com", address="a", role=role)


def test_home_routes():
    assert home_for(Role.ADMIN) == "/admin/dashboard"
    assert home_for(Role.STORE_OWNER) == "/store-owner/dashboard"
    assert home_for(Role.USER) == "/dashboard"


def test_guard_without_session():
    decision = guard(None, [Role.ADMIN])
    assert decision.outcome == Outcome.LOGIN
    assert decision.redirect_to == "/login"


def test_guard_disallowed_role_goes_home():
    decision = guard(make_user(Role.USER), [Role.ADMIN])
    assert decision.outcome == Outcome.HOME
    assert decision.redirect_to == "/dashboard"


def test_guard_allows():
    assert guard(make_user(Role.ADMIN), [Role.ADMIN]).outcome == Outcome.RENDER
    assert guard(make_user(Role.STORE_OWNER)).outcome == Outcome.RENDER


def test_resolve_route_table():
    owner = make_user(Role.STORE_OWNER)
    admin = make_user(Role.ADMIN)

    assert resolve("/login", None).outcome == Outcome.RENDER
    assert resolve("/", None).redirect_to == "/login"
    assert resolve("/", owner).redirect_to == "/store-owner/dashboard"
    assert resolve("/admin/users/user1", admin).outcome == Outcome.RENDER
    assert resolve("/admin/users/user1", owner).redirect_to == "/store-owner/dashboard"
    assert resolve("/dashboard", admin).redirect_to == "/admin/dashboard"
    assert resolve("/update-password", owner).outcome == Outcome.RENDER
    assert resolve("/update-password", None).outcome == Outcome.LOGIN
    assert resolve("/nowhere", owner).redirect_to == "/"
