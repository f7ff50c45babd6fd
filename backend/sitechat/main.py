import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import HTTPException as FastAPIHTTPException
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import OperationalError

from sitechat.auth.csrf import csrf_cookie_middleware
from sitechat.auth.dependencies import redirect_to_login
from sitechat.core.config import LOG_LEVEL
from sitechat.core.exceptions import ChatError, StoreUnavailable
from sitechat.database.session import db_state, init_db
from sitechat.routers.api import admin_chat, chat
from sitechat.routers.web import auth, chats
from sitechat.utils.flash import flash_redirect
from sitechat.utils.rate_limit import RateLimitExceeded

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if init_db():
        logger.info("Database ready")
    yield


app = FastAPI(lifespan=lifespan)

app.middleware("http")(csrf_cookie_middleware)

app.include_router(chat.router)
app.include_router(admin_chat.router)
app.include_router(auth.router)
app.include_router(chats.router)


@app.get("/health")
def health():
    return {"ok": True, "database": db_state["available"]}


def is_api_request(request: Request) -> bool:
    return request.url.path.startswith("/api/")


def error_response(request: Request, status_code: int, detail: str, headers=None):
    if is_api_request(request):
        return JSONResponse({"error": detail}, status_code=status_code, headers=headers)
    return PlainTextResponse(detail, status_code=status_code, headers=headers)


def is_admin_form_post(request: Request) -> bool:
    return request.method == "POST" and request.url.path.startswith("/admin/")


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError):
    if is_admin_form_post(request) and exc.status_code < 500:
        chat_id = request.path_params.get("chat_id")
        if chat_id and exc.status_code != status.HTTP_404_NOT_FOUND:
            url = request.url_for("chat_detail", chat_id=chat_id)
        else:
            url = request.url_for("chat_list")
        return flash_redirect(url, exc.detail, category="error")

    return error_response(request, exc.status_code, exc.detail)


@app.exception_handler(OperationalError)
async def store_error_handler(request: Request, exc: OperationalError):
    logger.error("Database error on %s: %s", request.url.path, exc)
    return error_response(request, StoreUnavailable.status_code, StoreUnavailable.detail)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return error_response(
        request,
        status.HTTP_429_TOO_MANY_REQUESTS,
        exc.message,
        headers={"Retry-After": str(exc.retry_after_seconds)}
    )


@app.exception_handler(FastAPIHTTPException)
async def auth_exception_handler(request: Request, exc: FastAPIHTTPException):
    if is_api_request(request):
        return error_response(request, exc.status_code, str(exc.detail), headers=exc.headers)
    if exc.status_code == 401:
        return redirect_to_login(request, "Bitte melden Sie sich an.")

    # Let FastAPI handle other errors
    return await http_exception_handler(request, exc)
