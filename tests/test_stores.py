import math
from datetime import timedelta

import pytest

from storespark.errors import ErrorKind
from storespark.schemas import NewStore, Rating, Role, Store, utcnow
from storespark.stores import StoreService, overall_rating, user_submitted_rating


@pytest.fixture
def service(db):
    return StoreService(db)


def test_overall_rating_is_zero_without_ratings():
    result = overall_rating([])
    assert result == 0
    assert not math.isnan(result)


def test_overall_rating_is_mean(db):
    ratings = db.list_ratings(store_id="store1")
    assert overall_rating(ratings) == pytest.approx((5 + 4 + 2) / 3)


def test_user_submitted_rating_distinguishes_absent(db):
    ratings = db.list_ratings(store_id="store1")
    assert user_submitted_rating(ratings, "user1") == 5
    assert user_submitted_rating(ratings, "storeowner1") is None
    assert user_submitted_rating(ratings, None) is None


def test_stores_with_details(service, db):
    user = db.get_user("user1")
    stores = {s.id: s for s in service.fetch_stores_with_details(user)}
    assert len(stores) == 21
    assert stores["store1"].overall_rating == pytest.approx(11 / 3)
    assert stores["store1"].user_submitted_rating == 5
    assert stores["store3"].overall_rating == 0
    assert stores["store3"].user_submitted_rating is None
    assert stores["store5"].user_submitted_rating is None


def test_stores_without_user_have_no_submitted_rating(service):
    assert all(s.user_submitted_rating is None for s in service.fetch_stores_with_details(None))


def test_every_overall_rating_matches_its_ratings(service, db):
    for store in service.fetch_stores_with_details(None):
        values = [r.value for r in db.list_ratings(store_id=store.id)]
        expected = sum(values) / len(values) if values else 0
        assert store.overall_rating == pytest.approx(expected)


def test_upsert_keeps_one_rating_per_pair(service, db):
    first = service.submit_or_update_rating("store1", "user1", 5)
    second = service.submit_or_update_rating("store1", "user1", 2)
    pair = db.list_ratings(store_id="store1", user_id="user1")
    assert len(pair) == 1
    assert pair[0].value == 2
    assert second.id == first.id == "rating1"
    assert second.timestamp >= first.timestamp


def test_upsert_creates_new_rating(service, db):
    before = utcnow()
    total = db.count_ratings()
    for value in (1, 4, 3):
        rating = service.submit_or_update_rating("store3", "user2", value)
    pair = db.list_ratings(store_id="store3", user_id="user2")
    assert len(pair) == 1
    assert pair[0].value == 3
    assert rating.timestamp >= before
    assert db.count_ratings() == total + 1


def test_upsert_rejects_out_of_range(service, db):
    total = db.count_ratings()
    assert service.submit_or_update_rating("store1", "user1", 6) is None
    assert service.error.kind == ErrorKind.VALIDATION
    assert service.submit_or_update_rating("store1", "user1", 0) is None
    assert db.count_ratings() == total
    assert db.find_rating("store1", "user1").value == 5


def test_upsert_unknown_store(service):
    assert service.submit_or_update_rating("nope", "user1", 3) is None
    assert service.error.kind == ErrorKind.NOT_FOUND


def test_add_store_links_owner(service, db, auth):
    from storespark.schemas import CreateUserRequest

    owner = auth.add_user_by_admin(CreateUserRequest(
        name="Another Store Owner Person Name",
        email="owner2@store.com",
        address="12 Owner Way",
        password="OwnerPass2!",
        role=Role.STORE_OWNER,
    ))
    store = service.add_store(NewStore(name="New Corner Shop", email="shop@new.com",
                                       address="1 New Street", owner_id=owner.id))
    assert store is not None
    assert db.get_store(store.id).owner_id == owner.id
    assert db.get_user(owner.id).store_id == store.id


def test_add_store_rejects_non_owner(service):
    store = service.add_store(NewStore(name="New Corner Shop", email="shop@new.com",
                                       address="1 New Street", owner_id="user1"))
    assert store is None
    assert service.error.kind == ErrorKind.VALIDATION


def test_owner_dashboard(service, db):
    dashboard = service.owner_dashboard(db.get_user("storeowner1"))
    assert dashboard.store.id == "store1"
    assert dashboard.average_rating == pytest.approx(11 / 3)
    names = {e.user_name for e in dashboard.ratings}
    assert "Bob User Example VeryLongName" in names


def test_owner_dashboard_unknown_rater(service, db):
    db.insert_rating(Rating(id="ghost", store_id="store1", user_id="deleted-user", value=1,
                            timestamp=utcnow() - timedelta(seconds=5)))
    dashboard = service.owner_dashboard(db.get_user("storeowner1"))
    ghost = [e for e in dashboard.ratings if e.rating_id == "ghost"][0]
    assert ghost.user_name == "Unknown User"


def test_owner_dashboard_requires_store(service, db):
    assert service.owner_dashboard(db.get_user("user1")) is None
    assert service.error.message == "Access denied or store not assigned."

    db.set_user_store("storeowner1", "missing-store")
    assert service.owner_dashboard(db.get_user("storeowner1")) is None
    assert service.error.message == "Your store could not be found."


def test_fetch_store_by_id(service):
    assert service.fetch_store_by_id("store2").name == "Corner Goods & Groceries"
    assert service.fetch_store_by_id("store999") is None
    assert service.error.kind == ErrorKind.NOT_FOUND


def test_store_without_owner_is_allowed(service):
    store = service.add_store(NewStore(name="Ownerless Shop", email="o@shop.com", address="9 Road"))
    assert isinstance(store, Store)
    assert store.owner_id is None
