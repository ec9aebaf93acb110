import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from fastapi import Cookie, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import psycopg2
import psycopg2.extras
from pydantic import BaseModel, ConfigDict, Field
from dotenv import load_dotenv
from jose import JWTError, jwt
from passlib.hash import bcrypt
from starlette.exceptions import HTTPException as StarletteHTTPException

_project_root = Path(__file__).resolve().parents[1]
if str(_project_root) not in sys.path:
    sys.path.append(str(_project_root))

load_dotenv()

try:
    from backend.app.config import load_config, require_payment_credentials
    from backend.app.errors import ConfigurationError, MarketplaceError
    from backend.app.request_context import RequestContext, resolve_role
except ModuleNotFoundError as exc:
    if exc.name != "backend":
        raise
    from app.config import load_config, require_payment_credentials  # type: ignore[no-redef]
    from app.errors import ConfigurationError, MarketplaceError  # type: ignore[no-redef]
    from app.request_context import RequestContext, resolve_role  # type: ignore[no-redef]

CONFIG = load_config()
DB_CFG = CONFIG.database.as_connect_kwargs()

JWT_SECRET_KEY = CONFIG.auth.jwt_secret_key
JWT_ALGORITHM = CONFIG.auth.jwt_algorithm
JWT_EXP_MINUTES = CONFIG.auth.jwt_exp_minutes
SESSION_COOKIE_NAME = CONFIG.auth.session_cookie_name
SESSION_COOKIE_SECURE = CONFIG.auth.session_cookie_secure

logging.basicConfig(level=CONFIG.log_level)
logger = logging.getLogger("auth")


def get_conn():
    return psycopg2.connect(**DB_CFG)


class UserOut(BaseModel):
    id: str
    username: str
    email: Optional[str] = None
    role: str
    is_admin: bool = Field(alias="isAdmin")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_context(cls, context: RequestContext) -> "UserOut":
        return cls(
            id=context.user_id,
            username=context.username,
            email=context.email,
            role=context.role,
            is_admin=context.is_admin,
        )


class LoginRequest(BaseModel):
    username: str
    password: str


def create_access_token(*, context: RequestContext, expires_delta: Optional[timedelta] = None) -> str:
    payload = context.to_claims()
    if expires_delta is None:
        expires_delta = timedelta(minutes=JWT_EXP_MINUTES)
    payload["exp"] = datetime.utcnow() + expires_delta
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def get_user_with_password(identifier: str):
    lookup = identifier.strip()
    with get_conn() as conn, conn.cursor(cursor_factory=psycopg2.extras.DictCursor) as cur:
        row = None
        if "@" in lookup:
            cur.execute(
                "SELECT id, username, email, password_hash, role FROM users WHERE LOWER(email) = LOWER(%s)",
                (lookup,),
            )
            row = cur.fetchone()
        if not row:
            cur.execute(
                "SELECT id, username, email, password_hash, role FROM users WHERE LOWER(username) = LOWER(%s)",
                (lookup,),
            )
            row = cur.fetchone()
    return dict(row) if row else None


def resolve_context_from_session_token(session_token: str) -> Optional[RequestContext]:
    try:
        claims = jwt.decode(session_token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    return RequestContext.from_claims(claims)


def get_current_user(session_token: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME)) -> RequestContext:
    if not session_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    context = resolve_context_from_session_token(session_token)
    if context is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return context


def get_optional_current_user(
    session_token: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME),
) -> Optional[RequestContext]:
    if not session_token:
        return None
    return resolve_context_from_session_token(session_token)


try:
    from backend import app_context
except ModuleNotFoundError as exc:
    if exc.name != "backend":
        raise
    import app_context  # type: ignore[no-redef]

app_context.configure(
    get_conn=get_conn,
    get_current_user=get_current_user,
    get_optional_current_user=get_optional_current_user,
)

from backend.app.routes.admin import router as admin_router
from backend.app.routes.checkout import router as checkout_router
from backend.app.routes.listings import router as listings_router
from backend.app.routes.orders import router as orders_router
from backend.app.routes.purchases import router as purchases_router

app = FastAPI(title="Study Notes Marketplace API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(CONFIG.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(orders_router)
app.include_router(purchases_router)
app.include_router(listings_router)
app.include_router(checkout_router)
app.include_router(admin_router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        body = exc.detail
    else:
        body = {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message, "code": "validation_failed"},
    )


@app.exception_handler(MarketplaceError)
async def marketplace_exception_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=dict(exc.payload))


@app.on_event("startup")
def check_payment_credentials() -> None:
    try:
        require_payment_credentials(CONFIG.payments)
    except ConfigurationError:
        logger.critical("Payment provider credentials are not configured")
        raise


@app.post("/api/auth/login", response_model=UserOut)
def login(payload: LoginRequest, response: Response):
    user_row = get_user_with_password(payload.username)
    if not user_row or not bcrypt.verify(payload.password, user_row["password_hash"]):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")

    context = RequestContext(
        user_id=str(user_row["id"]),
        username=user_row["username"],
        email=user_row.get("email"),
        role=resolve_role(user_row.get("role"), user_row.get("email"), CONFIG.auth.admin_email),
    )
    token = create_access_token(context=context)
    max_age = int(timedelta(minutes=JWT_EXP_MINUTES).total_seconds())
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=SESSION_COOKIE_SECURE,
        max_age=max_age,
        path="/",
    )
    logger.info("User logged in", extra={"user_id": context.user_id, "role": context.role})
    return UserOut.from_context(context)


@app.post("/api/auth/logout")
def logout(response: Response):
    response.delete_cookie(
        SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="lax",
        secure=SESSION_COOKIE_SECURE,
    )
    return {"ok": True}


@app.get("/api/auth/me", response_model=UserOut)
def read_current_user(current_user: RequestContext = Depends(get_current_user)):
    return UserOut.from_context(current_user)


@app.get("/api/healthz")
def healthz():
    return {"ok": True}
