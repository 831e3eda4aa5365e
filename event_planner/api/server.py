from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from event_planner.auth import get_current_identity
from event_planner.auth.crud import (
    change_password,
    create_user,
    get_public_user,
    verify_user_credentials,
)
from event_planner.auth.security import create_access_token
from event_planner.config import Config, load_config
from event_planner.db import connect, init_db
from event_planner.errors import PlannerError
from event_planner.models import Identity
from event_planner.planner.categories import (
    create_category,
    delete_category,
    list_categories,
    update_category,
)
from event_planner.planner.events import (
    create_event,
    delete_event,
    list_events,
    list_events_by_category,
    update_event,
)


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


router = APIRouter()


def _cfg(request: Request) -> Config:
    return request.app.state.cfg


def _issue_token(cfg: Config, user_id: int) -> Dict[str, Any]:
    token = create_access_token(
        secret=cfg.AUTH_JWT_SECRET,
        user_id=int(user_id),
        expires_minutes=int(cfg.AUTH_TOKEN_EXPIRE_MINUTES),
    )
    return {"token": token}


# -----------------------------
# Health
# -----------------------------


@router.get("/", response_class=PlainTextResponse)
def root() -> str:
    return "Event Planning API is running"


@router.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "ok"}


# -----------------------------
# Auth
# -----------------------------


class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(alias="currentPassword")
    new_password: str = Field(alias="newPassword")


@router.post("/api/auth/register")
def auth_register(payload: RegisterRequest, request: Request) -> Dict[str, Any]:
    cfg = _cfg(request)
    with connect(cfg.DB_DSN) as conn:
        u = create_user(
            conn,
            username=payload.username,
            email=payload.email,
            password=payload.password,
        )
    _debug(f"Registered user_id={u['user_id']}")
    return _issue_token(cfg, int(u["user_id"]))


@router.post("/api/auth/login")
def auth_login(payload: LoginRequest, request: Request) -> Dict[str, Any]:
    cfg = _cfg(request)
    with connect(cfg.DB_DSN) as conn:
        row = verify_user_credentials(conn, payload.email, payload.password)
    return _issue_token(cfg, int(row["user_id"]))


@router.get("/api/auth/me")
def auth_me(request: Request, identity: Identity = Depends(get_current_identity)) -> Dict[str, Any]:
    with connect(_cfg(request).DB_DSN) as conn:
        return get_public_user(conn, identity.user_id)


@router.put("/api/auth/password")
def auth_change_password(
    payload: ChangePasswordRequest,
    request: Request,
    identity: Identity = Depends(get_current_identity),
) -> Dict[str, Any]:
    with connect(_cfg(request).DB_DSN) as conn:
        change_password(
            conn,
            user_id=identity.user_id,
            current_password=payload.current_password,
            new_password=payload.new_password,
        )
    return {"msg": "Password updated"}


# -----------------------------
# Categories
# -----------------------------


class CategoryRequest(BaseModel):
    name: str


@router.post("/api/categories")
def categories_create(
    payload: CategoryRequest,
    request: Request,
    identity: Identity = Depends(get_current_identity),
) -> Dict[str, Any]:
    with connect(_cfg(request).DB_DSN) as conn:
        return create_category(conn, user_id=identity.user_id, name=payload.name)


@router.get("/api/categories")
def categories_list(
    request: Request,
    identity: Identity = Depends(get_current_identity),
) -> List[Dict[str, Any]]:
    with connect(_cfg(request).DB_DSN) as conn:
        return list_categories(conn, user_id=identity.user_id)


@router.put("/api/categories/{category_id}")
def categories_update(
    category_id: int,
    payload: CategoryRequest,
    request: Request,
    identity: Identity = Depends(get_current_identity),
) -> Dict[str, Any]:
    with connect(_cfg(request).DB_DSN) as conn:
        return update_category(
            conn,
            category_id=category_id,
            user_id=identity.user_id,
            name=payload.name,
        )


@router.delete("/api/categories/{category_id}")
def categories_delete(
    category_id: int,
    request: Request,
    identity: Identity = Depends(get_current_identity),
) -> Dict[str, Any]:
    with connect(_cfg(request).DB_DSN) as conn:
        delete_category(conn, category_id=category_id, user_id=identity.user_id)
    return {"msg": "Category removed"}


# -----------------------------
# Events
# -----------------------------


class EventCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: Optional[str] = None
    # Plain date or full ISO-8601 datetime; normalized to YYYY-MM-DD.
    date: str
    time: str
    category_id: int = Field(alias="categoryId")


class EventUpdateRequest(BaseModel):
    """Partial update: omitted fields keep their current value."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    category_id: Optional[int] = Field(default=None, alias="categoryId")


@router.post("/api/events")
def events_create(
    payload: EventCreateRequest,
    request: Request,
    identity: Identity = Depends(get_current_identity),
) -> Dict[str, Any]:
    with connect(_cfg(request).DB_DSN) as conn:
        return create_event(
            conn,
            user_id=identity.user_id,
            name=payload.name,
            description=payload.description,
            date=payload.date,
            time=payload.time,
            category_id=payload.category_id,
        )


@router.get("/api/events")
def events_list(
    request: Request,
    identity: Identity = Depends(get_current_identity),
) -> List[Dict[str, Any]]:
    with connect(_cfg(request).DB_DSN) as conn:
        return list_events(conn, user_id=identity.user_id)


@router.get("/api/events/category/{category_id}")
def events_list_by_category(
    category_id: int,
    request: Request,
    identity: Identity = Depends(get_current_identity),
) -> List[Dict[str, Any]]:
    with connect(_cfg(request).DB_DSN) as conn:
        return list_events_by_category(conn, user_id=identity.user_id, category_id=category_id)


@router.put("/api/events/{event_id}")
def events_update(
    event_id: int,
    payload: EventUpdateRequest,
    request: Request,
    identity: Identity = Depends(get_current_identity),
) -> Dict[str, Any]:
    fields = payload.model_dump(exclude={"category_id"}, exclude_unset=True)
    with connect(_cfg(request).DB_DSN) as conn:
        return update_event(
            conn,
            event_id=event_id,
            user_id=identity.user_id,
            fields=fields,
            category_id=payload.category_id,
        )


@router.delete("/api/events/{event_id}")
def events_delete(
    event_id: int,
    request: Request,
    identity: Identity = Depends(get_current_identity),
) -> Dict[str, Any]:
    with connect(_cfg(request).DB_DSN) as conn:
        delete_event(conn, event_id=event_id, user_id=identity.user_id)
    return {"msg": "Event removed"}


# -----------------------------
# App
# -----------------------------


async def _planner_error(request: Request, exc: PlannerError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"msg": exc.msg})


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Same {"msg"} shape as every other failure; report the first problem.
    errors = exc.errors()
    if not errors:
        return JSONResponse(status_code=422, content={"msg": "Invalid request"})
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = str(first.get("msg") or "Invalid value")
    return JSONResponse(status_code=422, content={"msg": f"{loc}: {msg}" if loc else msg})


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    _debug(f"Unhandled error on {request.method} {request.url.path}: {exc!r}")
    return JSONResponse(status_code=500, content={"msg": "Server error"})


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Ensure schema exists.
    init_db(app.state.cfg.DB_DSN)
    yield


def create_app(cfg: Config | None = None) -> FastAPI:
    cfg = cfg or load_config()

    app = FastAPI(title="Event Planner", version="0.1.0", lifespan=_lifespan)
    # Make config available to auth deps and handlers.
    app.state.cfg = cfg

    # CORS is only needed when the frontend is served from another origin.
    origins = [o.strip() for o in (cfg.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(PlannerError, _planner_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(Exception, _unhandled_error)
    app.include_router(router)
    return app


app = create_app()
