"""
Data model for the rating platform.

Records are kept as Pydantic models. The repository stores one collection per
record type:
- user: system users (administrators, normal users, store owners)
- store: registered stores
- rating: one rating per (store, user) pair
- session: server-side sessions referenced by the access token
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from storespark import validation


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    ADMIN = "System Administrator"
    USER = "Normal User"
    STORE_OWNER = "Store Owner"


class UserPublic(BaseModel):
    id: str
    name: str
    email: str
    address: str
    role: Role
    store_id: Optional[str] = Field(None, description="Owned store, Store Owners only")


class User(UserPublic):
    password_hash: str = Field(..., description="BCrypt hash of password")

    def public(self) -> UserPublic:
        return UserPublic(**self.model_dump(exclude={"password_hash"}))


class Store(BaseModel):
    id: str
    name: str
    email: str
    address: str
    owner_id: Optional[str] = Field(None, description="Reference to user id (owner)")


class Rating(BaseModel):
    id: str
    store_id: str
    user_id: str
    value: int = Field(..., ge=1, le=5)
    timestamp: datetime = Field(default_factory=utcnow)


class StoreWithDetails(Store):
    overall_rating: float = 0
    user_submitted_rating: Optional[int] = None


class Session(BaseModel):
    id: str
    user_id: str
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        expires_at = self.expires_at
        # MongoDB hands back naive UTC datetimes unless the client is tz_aware
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= (now or utcnow())


# Request/Response Models

def _check(rule, value):
    message = rule(value)
    if message:
        raise ValueError(message)
    return value


class NewUser(BaseModel):
    name: str
    email: str
    address: str
    password: str
    role: Optional[Role] = None

    @field_validator("name")
    @classmethod
    def _name(cls, v):
        return _check(validation.validate_name, v)

    @field_validator("email")
    @classmethod
    def _email(cls, v):
        return _check(validation.validate_email, v)

    @field_validator("address")
    @classmethod
    def _address(cls, v):
        return _check(validation.validate_address, v)

    @field_validator("password")
    @classmethod
    def _password(cls, v):
        return _check(validation.validate_password, v)


class CreateUserRequest(NewUser):
    role: Role


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v):
        return _check(validation.validate_email, v)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserPublic


class UpdatePasswordRequest(BaseModel):
    old_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def _new_password(cls, v):
        return _check(validation.validate_password, v)


class NewStore(BaseModel):
    name: str
    email: str
    address: str
    owner_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name(cls, v):
        return _check(validation.validate_store_name, v)

    @field_validator("email")
    @classmethod
    def _email(cls, v):
        return _check(validation.validate_store_email, v)

    @field_validator("address")
    @classmethod
    def _address(cls, v):
        return _check(validation.validate_store_address, v)


class RateStoreRequest(BaseModel):
    value: int


class AdminDashboard(BaseModel):
    total_users: int
    total_stores: int
    total_ratings: int


class RaterEntry(BaseModel):
    rating_id: str
    user_id: str
    user_name: str
    user_email: Optional[str] = None
    value: int
    timestamp: datetime


class OwnerDashboard(BaseModel):
    store: Store
    average_rating: float
    ratings: List[RaterEntry]


class UserDetails(UserPublic):
    store: Optional[Store] = None
    store_rating: Optional[float] = None
