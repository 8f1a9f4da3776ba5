import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer
from pymongo.errors import PyMongoError

from storespark.access import GuardDecision, Outcome, guard, resolve
from storespark.admin import AdminService
from storespark.auth import AuthService
from storespark.config import Settings, get_settings
from storespark.database import Database, create_database
from storespark.errors import ServiceError
from storespark.listing import Direction, filter_by, search, sort_rows
from storespark.logger import setup_logging
from storespark.schemas import (
    AdminDashboard,
    CreateUserRequest,
    LoginRequest,
    NewStore,
    NewUser,
    OwnerDashboard,
    RateStoreRequest,
    Rating,
    Role,
    Store,
    StoreWithDetails,
    TokenResponse,
    UpdatePasswordRequest,
    User,
    UserDetails,
    UserPublic,
)
from storespark.security import Security
from storespark.seed import seed_demo_data
from storespark.stores import StoreService

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/sessions", auto_error=False)

USER_SEARCH_FIELDS = ("name", "email", "address")
STORE_SEARCH_FIELDS = ("name", "email", "address")


def raise_for(error: Optional[ServiceError]):
    if error is None:
        raise HTTPException(status_code=500, detail="Something went wrong")
    raise HTTPException(status_code=error.status_code, detail=error.message)


# Dependencies

def get_db(request: Request) -> Database:
    return request.app.state.db


def get_security(request: Request) -> Security:
    return request.app.state.security


def get_auth(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Database = Depends(get_db),
    security: Security = Depends(get_security),
) -> AuthService:
    auth = AuthService(db, security)
    if token:
        auth.resume(token)
    return auth


def get_optional_user(auth: AuthService = Depends(get_auth)) -> Optional[User]:
    return auth.current_user


def get_current_user(auth: AuthService = Depends(get_auth)) -> User:
    if auth.current_user is None:
        raise HTTPException(status_code=401, detail="Could not validate credentials")
    return auth.current_user


def require_role(*roles: Role):
    def role_dep(current_user: Optional[User] = Depends(get_optional_user)) -> User:
        decision = guard(current_user, roles)
        if decision.outcome == Outcome.LOGIN:
            raise HTTPException(status_code=401, detail="Could not validate credentials")
        if decision.outcome == Outcome.HOME:
            raise HTTPException(
                status_code=403,
                detail={"message": "Insufficient permissions", "redirect_to": decision.redirect_to},
            )
        return current_user
    return role_dep


def get_store_service(db: Database = Depends(get_db)) -> StoreService:
    return StoreService(db)


def get_admin_service(db: Database = Depends(get_db)) -> AdminService:
    return AdminService(db)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(title=f"{settings.app_name} Ratings Platform API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.security = Security(settings)
    app.state.db = create_database(settings)
    if settings.seed_demo_data:
        seed_demo_data(app.state.db, app.state.security)

    @app.exception_handler(PyMongoError)
    async def database_error_handler(request: Request, exc: PyMongoError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Something went wrong"})

    register_routes(app)
    return app


def register_routes(app: FastAPI) -> None:
    # Session routes
    @app.post("/sessions", response_model=TokenResponse)
    def login(payload: LoginRequest, auth: AuthService = Depends(get_auth)):
        user = auth.login(payload.email, payload.password)
        if user is None:
            raise_for(auth.error)
        token = auth.open_session()
        return TokenResponse(access_token=token, user=user.public())

    @app.delete("/sessions", status_code=204)
    def logout(auth: AuthService = Depends(get_auth), current_user: User = Depends(get_current_user)):
        auth.logout()
        return Response(status_code=204)

    @app.get("/sessions/me", response_model=UserPublic)
    def me(current_user: User = Depends(get_current_user)):
        return current_user.public()

    @app.patch("/sessions/password")
    def update_password(
        payload: UpdatePasswordRequest,
        auth: AuthService = Depends(get_auth),
        current_user: User = Depends(get_current_user),
    ):
        if not auth.update_password(payload.old_password, payload.new_password):
            raise_for(auth.error)
        return {"message": "Password updated"}

    # Users
    @app.post("/users", response_model=TokenResponse, status_code=201)
    def signup(payload: NewUser, auth: AuthService = Depends(get_auth)):
        if payload.role not in (None, Role.USER):
            raise HTTPException(status_code=403, detail="Only administrators can assign roles")
        user = auth.signup(payload)
        if user is None:
            raise_for(auth.error)
        token = auth.open_session()
        return TokenResponse(access_token=token, user=user.public())

    @app.get("/users", response_model=List[UserPublic])
    def list_users(
        q: Optional[str] = None,
        role: Optional[Role] = None,
        sort_by: Optional[str] = Query(None),
        order: Direction = Query(Direction.ASC),
        admin: User = Depends(require_role(Role.ADMIN)),
        service: AdminService = Depends(get_admin_service),
    ):
        users = filter_by(service.fetch_all_users(), "role", role)
        users = search(users, q, USER_SEARCH_FIELDS)
        return sort_rows(users, sort_by, order)

    @app.get("/users/{user_id}", response_model=UserDetails)
    def user_details(
        user_id: str,
        admin: User = Depends(require_role(Role.ADMIN)),
        service: AdminService = Depends(get_admin_service),
    ):
        details = service.fetch_user_details(user_id)
        if details is None:
            raise_for(service.error)
        return details

    # Admin routes
    @app.post("/admin/users", response_model=UserPublic, status_code=201)
    def admin_create_user(
        payload: CreateUserRequest,
        auth: AuthService = Depends(get_auth),
        admin: User = Depends(require_role(Role.ADMIN)),
    ):
        user = auth.add_user_by_admin(payload)
        if user is None:
            raise_for(auth.error)
        return user.public()

    @app.get("/admin/dashboard", response_model=AdminDashboard)
    def admin_dashboard(
        admin: User = Depends(require_role(Role.ADMIN)),
        service: AdminService = Depends(get_admin_service),
    ):
        return service.dashboard()

    # Stores and ratings
    @app.get("/stores", response_model=List[StoreWithDetails])
    def list_stores(
        user_id: Optional[str] = Query(None, alias="userId"),
        q: Optional[str] = None,
        sort_by: Optional[str] = Query(None),
        order: Direction = Query(Direction.ASC),
        current_user: User = Depends(get_current_user),
        service: StoreService = Depends(get_store_service),
        db: Database = Depends(get_db),
    ):
        rating_user = None
        if user_id is not None:
            if user_id != current_user.id and current_user.role != Role.ADMIN:
                raise HTTPException(status_code=403, detail="Cannot view another user's ratings")
            rating_user = db.get_user(user_id)
            if rating_user is None:
                raise HTTPException(status_code=404, detail="User not found.")
        stores = service.fetch_stores_with_details(rating_user)
        stores = search(stores, q, STORE_SEARCH_FIELDS)
        return sort_rows(stores, sort_by, order)

    @app.post("/stores", response_model=Store, status_code=201)
    def admin_create_store(
        payload: NewStore,
        admin: User = Depends(require_role(Role.ADMIN)),
        service: StoreService = Depends(get_store_service),
    ):
        store = service.add_store(payload)
        if store is None:
            raise_for(service.error)
        return store

    @app.get("/stores/{store_id}", response_model=Store)
    def get_store(
        store_id: str,
        current_user: User = Depends(get_current_user),
        service: StoreService = Depends(get_store_service),
    ):
        store = service.fetch_store_by_id(store_id)
        if store is None:
            raise_for(service.error)
        return store

    @app.put("/stores/{store_id}/ratings/{user_id}", response_model=Rating)
    def rate_store(
        store_id: str,
        user_id: str,
        payload: RateStoreRequest,
        current_user: User = Depends(require_role(Role.USER)),
        service: StoreService = Depends(get_store_service),
    ):
        if user_id != current_user.id:
            raise HTTPException(status_code=403, detail="Ratings can only be submitted for yourself")
        rating = service.submit_or_update_rating(store_id, user_id, payload.value)
        if rating is None:
            raise_for(service.error)
        return rating

    # Owner routes
    @app.get("/owner/dashboard", response_model=OwnerDashboard)
    def owner_dashboard(
        current_owner: User = Depends(require_role(Role.STORE_OWNER)),
        service: StoreService = Depends(get_store_service),
    ):
        dashboard = service.owner_dashboard(current_owner)
        if dashboard is None:
            raise_for(service.error)
        return dashboard

    @app.get("/navigation", response_model=GuardDecision)
    def navigation(path: str, current_user: Optional[User] = Depends(get_optional_user)):
        return resolve(path, current_user)

    # Utility endpoints
    @app.get("/")
    def root(request: Request):
        return {"message": f"{request.app.state.settings.app_name} API running"}

    @app.get("/health")
    def health(db: Database = Depends(get_db)):
        return {
            "backend": "ok",
            "database": db.name,
            "users": db.count_users(),
            "stores": db.count_stores(),
            "ratings": db.count_ratings(),
        }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("storespark.main:create_app", factory=True, host="0.0.0.0", port=8000)
