import mongomock
import pytest

from storespark.database import MongoDatabase
from storespark.errors import DuplicateEmailError
from storespark.schemas import Role, Store, User
from storespark.seed import seed_demo_data
from storespark.stores import StoreService


@pytest.fixture
def mongo_db(security):
    client = mongomock.MongoClient()
    client.drop_database("storespark_test")
    database = MongoDatabase(client["storespark_test"])
    seed_demo_data(database, security)
    yield database
    client.drop_database("storespark_test")


def test_seeded_counts(mongo_db):
    assert mongo_db.count_users() == 4
    assert mongo_db.count_stores() == 21
    assert mongo_db.count_ratings() == 6


def test_seed_skips_populated_repository(mongo_db, security):
    assert seed_demo_data(mongo_db, security) is False
    assert mongo_db.count_users() == 4


def test_user_roundtrip(mongo_db):
    owner = mongo_db.get_user("storeowner1")
    assert owner.role == Role.STORE_OWNER
    assert owner.store_id == "store1"
    assert mongo_db.find_user_by_email("admin@example.com").id == "admin1"


def test_duplicate_email(mongo_db):
    user = User(id="dupe", name="Duplicate Admin Account Name", email="admin@example.com",
                address="x", role=Role.USER, password_hash="h")
    with pytest.raises(DuplicateEmailError):
        mongo_db.insert_user(user)


def test_upsert_rating(mongo_db):
    first = mongo_db.upsert_rating("store3", "user1", 4)
    second = mongo_db.upsert_rating("store3", "user1", 1)
    assert first.id == second.id
    pair = mongo_db.list_ratings(store_id="store3", user_id="user1")
    assert len(pair) == 1
    assert pair[0].value == 1


def test_upsert_existing_seed_rating(mongo_db):
    rating = mongo_db.upsert_rating("store1", "user1", 2)
    assert rating.id == "rating1"
    assert mongo_db.count_ratings() == 6


def test_store_service_on_mongo(mongo_db):
    service = StoreService(mongo_db)
    stores = {s.id: s for s in service.fetch_stores_with_details(mongo_db.get_user("user2"))}
    assert stores["store5"].user_submitted_rating == 5
    assert stores["store1"].overall_rating == pytest.approx(11 / 3)
    assert stores["store9"].overall_rating == 0


def test_sessions(mongo_db):
    from storespark.schemas import Session

    mongo_db.insert_session(Session(id="s1", user_id="user1"))
    assert mongo_db.get_session("s1").user_id == "user1"
    assert mongo_db.delete_session("s1") is True
    assert mongo_db.get_session("s1") is None


def test_update_password_and_store_link(mongo_db):
    assert mongo_db.update_password("user1", "new-hash") is True
    assert mongo_db.get_user("user1").password_hash == "new-hash"
    assert mongo_db.update_password("missing", "x") is False
    mongo_db.insert_store(Store(id="s99", name="Extra Store", email="e@x.com", address="a"))
    mongo_db.set_user_store("storeowner1", "s99")
    assert mongo_db.get_user("storeowner1").store_id == "s99"
