"""Administrator views: totals and the user directory."""
from typing import List, Optional

from storespark.database import Database
from storespark.errors import ErrorKind, ServiceError
from storespark.schemas import AdminDashboard, Role, UserDetails, UserPublic
from storespark.stores import overall_rating


class AdminService:
    def __init__(self, db: Database):
        self.db = db
        self.error: Optional[ServiceError] = None

    def dashboard(self) -> AdminDashboard:
        return AdminDashboard(
            total_users=self.db.count_users(),
            total_stores=self.db.count_stores(),
            total_ratings=self.db.count_ratings(),
        )

    def fetch_all_users(self) -> List[UserPublic]:
        return [u.public() for u in self.db.list_users()]

    def fetch_user_details(self, user_id: str) -> Optional[UserDetails]:
        """A user's profile; Store Owners also get their store and its average rating."""
        self.error = None
        user = self.db.get_user(user_id)
        if user is None:
            self.error = ServiceError(kind=ErrorKind.NOT_FOUND, message="User not found.")
            return None
        details = UserDetails(**user.public().model_dump())
        if user.role == Role.STORE_OWNER and user.store_id:
            store = self.db.get_store(user.store_id)
            if store is not None:
                details.store = store
                details.store_rating = overall_rating(self.db.list_ratings(store_id=store.id))
        return details
