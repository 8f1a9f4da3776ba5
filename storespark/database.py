"""
Repositories for users, stores, ratings and sessions.

``MemoryDatabase`` keeps everything in process and is the default.
``MongoDatabase`` stores one MongoDB collection per record type and enforces
the uniqueness rules with indexes. Both expose the same methods; the
application builds exactly one of them per process (see ``create_database``).
"""
import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError

from storespark.config import Settings
from storespark.errors import DuplicateEmailError
from storespark.schemas import Rating, Session, Store, User, utcnow

logger = logging.getLogger(__name__)


def new_id() -> str:
    return str(ObjectId())


class Database:
    """Interface shared by the repository implementations."""

    name = "abstract"

    # Users
    def list_users(self) -> List[User]:
        raise NotImplementedError

    def get_user(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def find_user_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def insert_user(self, user: User) -> User:
        raise NotImplementedError

    def update_password(self, user_id: str, password_hash: str) -> bool:
        raise NotImplementedError

    def set_user_store(self, user_id: str, store_id: str) -> None:
        raise NotImplementedError

    # Stores
    def list_stores(self) -> List[Store]:
        raise NotImplementedError

    def get_store(self, store_id: str) -> Optional[Store]:
        raise NotImplementedError

    def insert_store(self, store: Store) -> Store:
        raise NotImplementedError

    # Ratings
    def list_ratings(self, store_id: Optional[str] = None, user_id: Optional[str] = None) -> List[Rating]:
        raise NotImplementedError

    def find_rating(self, store_id: str, user_id: str) -> Optional[Rating]:
        raise NotImplementedError

    def insert_rating(self, rating: Rating) -> Rating:
        raise NotImplementedError

    def upsert_rating(self, store_id: str, user_id: str, value: int,
                      timestamp: Optional[datetime] = None) -> Rating:
        """Overwrites the (store, user) rating in place, or creates it."""
        raise NotImplementedError

    # Sessions
    def insert_session(self, session: Session) -> Session:
        raise NotImplementedError

    def get_session(self, session_id: str) -> Optional[Session]:
        raise NotImplementedError

    def delete_session(self, session_id: str) -> bool:
        raise NotImplementedError

    # Counters
    def count_users(self) -> int:
        return len(self.list_users())

    def count_stores(self) -> int:
        return len(self.list_stores())

    def count_ratings(self) -> int:
        return len(self.list_ratings())


class MemoryDatabase(Database):
    name = "memory"

    def __init__(self):
        self._users: Dict[str, User] = {}
        self._stores: Dict[str, Store] = {}
        self._ratings: Dict[str, Rating] = {}
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def _snapshot(self, records: Dict) -> List:
        with self._lock:
            return list(records.values())

    def _get(self, records: Dict, key: str):
        with self._lock:
            record = records.get(key)
            return record.model_copy() if record else None

    def list_users(self):
        return [u.model_copy() for u in self._snapshot(self._users)]

    def get_user(self, user_id):
        return self._get(self._users, user_id)

    def find_user_by_email(self, email):
        for user in self._snapshot(self._users):
            if user.email == email:
                return user.model_copy()
        return None

    def insert_user(self, user):
        with self._lock:
            if any(u.email == user.email for u in self._users.values()):
                raise DuplicateEmailError(user.email)
            self._users[user.id] = user.model_copy()
        return user

    def update_password(self, user_id, password_hash):
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return False
            self._users[user_id] = user.model_copy(update={"password_hash": password_hash})
        return True

    def set_user_store(self, user_id, store_id):
        with self._lock:
            user = self._users.get(user_id)
            if user is not None:
                self._users[user_id] = user.model_copy(update={"store_id": store_id})

    def list_stores(self):
        return [s.model_copy() for s in self._snapshot(self._stores)]

    def get_store(self, store_id):
        return self._get(self._stores, store_id)

    def insert_store(self, store):
        with self._lock:
            self._stores[store.id] = store.model_copy()
        return store

    def list_ratings(self, store_id=None, user_id=None):
        # records are mutated in place by upsert_rating
        with self._lock:
            return [
                r.model_copy() for r in self._ratings.values()
                if (store_id is None or r.store_id == store_id)
                and (user_id is None or r.user_id == user_id)
            ]

    def find_rating(self, store_id, user_id):
        ratings = self.list_ratings(store_id=store_id, user_id=user_id)
        return ratings[0] if ratings else None

    def insert_rating(self, rating):
        with self._lock:
            self._ratings[rating.id] = rating.model_copy()
        return rating

    def upsert_rating(self, store_id, user_id, value, timestamp=None):
        timestamp = timestamp or utcnow()
        # Lookup and write happen under one lock so concurrent submissions for
        # the same pair cannot both insert.
        with self._lock:
            for rating in self._ratings.values():
                if rating.store_id == store_id and rating.user_id == user_id:
                    rating.value = value
                    rating.timestamp = timestamp
                    return rating.model_copy()
            rating = Rating(id=new_id(), store_id=store_id, user_id=user_id,
                            value=value, timestamp=timestamp)
            self._ratings[rating.id] = rating
            return rating.model_copy()

    def insert_session(self, session):
        now = utcnow()
        with self._lock:
            for sid in [s.id for s in self._sessions.values() if s.is_expired(now)]:
                del self._sessions[sid]
            self._sessions[session.id] = session.model_copy()
        return session

    def get_session(self, session_id):
        return self._get(self._sessions, session_id)

    def delete_session(self, session_id):
        with self._lock:
            return self._sessions.pop(session_id, None) is not None


def sanitize(doc: Optional[Dict]) -> Optional[Dict]:
    if not doc:
        return doc
    d = {**doc}
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    return d


def to_doc(model) -> Dict:
    d = model.model_dump(mode="python")
    d["_id"] = d.pop("id")
    if "role" in d:
        d["role"] = d["role"].value
    return d


class MongoDatabase(Database):
    """MongoDB-backed repository. ``db`` is a ``pymongo`` database handle."""

    name = "mongodb"

    def __init__(self, db):
        self.db = db
        self.ensure_indexes()

    def ensure_indexes(self):
        self.db["user"].create_index("email", unique=True)
        self.db["store"].create_index("owner_id")
        self.db["rating"].create_index(
            [("store_id", ASCENDING), ("user_id", ASCENDING)], unique=True
        )
        self.db["session"].create_index("expires_at", expireAfterSeconds=0)

    def list_users(self):
        return [User(**sanitize(d)) for d in self.db["user"].find({})]

    def get_user(self, user_id):
        doc = self.db["user"].find_one({"_id": user_id})
        return User(**sanitize(doc)) if doc else None

    def find_user_by_email(self, email):
        doc = self.db["user"].find_one({"email": email})
        return User(**sanitize(doc)) if doc else None

    def insert_user(self, user):
        if self.db["user"].find_one({"email": user.email}):
            raise DuplicateEmailError(user.email)
        try:
            self.db["user"].insert_one(to_doc(user))
        except DuplicateKeyError:
            raise DuplicateEmailError(user.email)
        return user

    def update_password(self, user_id, password_hash):
        res = self.db["user"].update_one({"_id": user_id}, {"$set": {"password_hash": password_hash}})
        return res.matched_count == 1

    def set_user_store(self, user_id, store_id):
        self.db["user"].update_one({"_id": user_id}, {"$set": {"store_id": store_id}})

    def list_stores(self):
        return [Store(**sanitize(d)) for d in self.db["store"].find({})]

    def get_store(self, store_id):
        doc = self.db["store"].find_one({"_id": store_id})
        return Store(**sanitize(doc)) if doc else None

    def insert_store(self, store):
        self.db["store"].insert_one(to_doc(store))
        return store

    def list_ratings(self, store_id=None, user_id=None):
        q = {}
        if store_id is not None:
            q["store_id"] = store_id
        if user_id is not None:
            q["user_id"] = user_id
        return [Rating(**sanitize(d)) for d in self.db["rating"].find(q)]

    def find_rating(self, store_id, user_id):
        doc = self.db["rating"].find_one({"store_id": store_id, "user_id": user_id})
        return Rating(**sanitize(doc)) if doc else None

    def insert_rating(self, rating):
        self.db["rating"].insert_one(to_doc(rating))
        return rating

    def upsert_rating(self, store_id, user_id, value, timestamp=None):
        timestamp = timestamp or utcnow()
        key = {"store_id": store_id, "user_id": user_id}
        update = {
            "$set": {"value": value, "timestamp": timestamp},
            "$setOnInsert": {"_id": new_id()},
        }
        try:
            doc = self.db["rating"].find_one_and_update(
                key, update, upsert=True, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            # A concurrent writer inserted the pair first; the retry updates it.
            doc = self.db["rating"].find_one_and_update(
                key, {"$set": update["$set"]}, return_document=ReturnDocument.AFTER
            )
        return Rating(**sanitize(doc))

    def insert_session(self, session):
        self.db["session"].insert_one(to_doc(session))
        return session

    def get_session(self, session_id):
        doc = self.db["session"].find_one({"_id": session_id})
        return Session(**sanitize(doc)) if doc else None

    def delete_session(self, session_id):
        return self.db["session"].delete_one({"_id": session_id}).deleted_count == 1

    def count_users(self):
        return self.db["user"].count_documents({})

    def count_stores(self):
        return self.db["store"].count_documents({})

    def count_ratings(self):
        return self.db["rating"].count_documents({})


def create_database(settings: Settings) -> Database:
    if settings.mongodb_uri:
        client = MongoClient(settings.mongodb_uri, tz_aware=True)
        logger.info("Using MongoDB database '%s'", settings.mongodb_database)
        return MongoDatabase(client[settings.mongodb_database])
    logger.info("Using in-memory database")
    return MemoryDatabase()
