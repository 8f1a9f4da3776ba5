"""
Store listing, rating upsert and rating aggregation.
"""
import logging
from typing import Iterable, List, Optional

from storespark.database import Database, new_id
from storespark.errors import ErrorKind, ServiceError
from storespark.schemas import (
    NewStore,
    OwnerDashboard,
    RaterEntry,
    Rating,
    Role,
    Store,
    StoreWithDetails,
    User,
)
from storespark.validation import validate_rating

logger = logging.getLogger(__name__)


def overall_rating(ratings: Iterable[Rating]) -> float:
    """Arithmetic mean of the rating values; 0 when there are none."""
    values = [r.value for r in ratings]
    if not values:
        return 0
    return sum(values) / len(values)


def user_submitted_rating(ratings: Iterable[Rating], user_id: Optional[str]) -> Optional[int]:
    """The user's own rating value, or None if they never rated."""
    if user_id is None:
        return None
    for r in ratings:
        if r.user_id == user_id:
            return r.value
    return None


def with_details(store: Store, ratings: List[Rating], user_id: Optional[str] = None) -> StoreWithDetails:
    return StoreWithDetails(
        **store.model_dump(),
        overall_rating=overall_rating(ratings),
        user_submitted_rating=user_submitted_rating(ratings, user_id),
    )


class StoreService:
    def __init__(self, db: Database):
        self.db = db
        self.error: Optional[ServiceError] = None

    def _fail(self, kind: ErrorKind, message: str):
        self.error = ServiceError(kind=kind, message=message)

    def fetch_stores_with_details(self, current_user: Optional[User] = None) -> List[StoreWithDetails]:
        user_id = current_user.id if current_user else None
        by_store = {}
        for r in self.db.list_ratings():
            by_store.setdefault(r.store_id, []).append(r)
        return [with_details(s, by_store.get(s.id, []), user_id) for s in self.db.list_stores()]

    def fetch_store_by_id(self, store_id: str) -> Optional[Store]:
        self.error = None
        store = self.db.get_store(store_id)
        if store is None:
            self._fail(ErrorKind.NOT_FOUND, "Store not found.")
        return store

    def fetch_ratings_for_store(self, store_id: str) -> List[Rating]:
        return self.db.list_ratings(store_id=store_id)

    def add_store(self, data: NewStore) -> Optional[Store]:
        self.error = None
        owner = None
        if data.owner_id:
            owner = self.db.get_user(data.owner_id)
            if owner is None or owner.role != Role.STORE_OWNER:
                self._fail(ErrorKind.VALIDATION, "owner_id must be a valid Store Owner")
                return None
        store = Store(id=new_id(), name=data.name, email=data.email,
                      address=data.address, owner_id=data.owner_id)
        self.db.insert_store(store)
        if owner is not None and not owner.store_id:
            self.db.set_user_store(owner.id, store.id)
        logger.info("Store %s added (%s)", store.id, store.name)
        return store

    def submit_or_update_rating(self, store_id: str, user_id: str, value: int) -> Optional[Rating]:
        """
        Records ``user_id``'s rating of ``store_id``.

        An existing rating for the pair is overwritten together with its
        timestamp; otherwise a new one is created. There is never more than
        one rating per (store, user).
        """
        self.error = None
        message = validate_rating(value)
        if message:
            self._fail(ErrorKind.VALIDATION, message)
            return None
        if self.db.get_store(store_id) is None:
            self._fail(ErrorKind.NOT_FOUND, "Store not found.")
            return None
        if self.db.get_user(user_id) is None:
            self._fail(ErrorKind.NOT_FOUND, "User not found.")
            return None
        rating = self.db.upsert_rating(store_id, user_id, value)
        logger.info("Rating %s: store=%s user=%s value=%d", rating.id, store_id, user_id, value)
        return rating

    def owner_dashboard(self, user: Optional[User]) -> Optional[OwnerDashboard]:
        self.error = None
        if user is None or user.role != Role.STORE_OWNER:
            self._fail(ErrorKind.FORBIDDEN, "Access denied or store not assigned.")
            return None
        store_id = user.store_id
        if not store_id:
            owned = [s for s in self.db.list_stores() if s.owner_id == user.id]
            if not owned:
                self._fail(ErrorKind.FORBIDDEN, "Access denied or store not assigned.")
                return None
            store_id = owned[0].id
        store = self.db.get_store(store_id)
        if store is None:
            self._fail(ErrorKind.NOT_FOUND, "Your store could not be found.")
            return None

        ratings = self.fetch_ratings_for_store(store.id)
        entries = []
        for r in ratings:
            rater = self.db.get_user(r.user_id)
            entries.append(RaterEntry(
                rating_id=r.id,
                user_id=r.user_id,
                user_name=rater.name if rater else "Unknown User",
                user_email=rater.email if rater else None,
                value=r.value,
                timestamp=r.timestamp,
            ))
        return OwnerDashboard(store=store, average_rating=overall_rating(ratings), ratings=entries)
