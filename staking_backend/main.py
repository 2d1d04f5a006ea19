# staking_backend/main.py
import logging

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import settings
from .config import CORS_ORIGINS, LOG_LEVEL
from .db import get_db, init_db
from .errors import StakingError
from .routes import admin, auth, deposits, init, staking, users, withdrawals
from .schemas import TokenPriceOut

# ---------------------------------------------------------------------------
# Logging & app
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Token Staking API",
    version="1.1.0",
    docs_url="/docs",
    redoc_url=None,
    openapi_url="/openapi.json",
)

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    # "*" is only sent verbatim when credentials are off
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Errors -> {"error": "..."}
# ---------------------------------------------------------------------------

@app.exception_handler(StakingError)
async def staking_error_handler(request: Request, exc: StakingError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        err = errors[0]
        field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        message = f"{field}: {err.get('msg')}" if field else err.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})

# ---------------------------------------------------------------------------
# DB bootstrap
# ---------------------------------------------------------------------------

init_db()

# ---------------------------------------------------------------------------
# Root, health, public reads
# ---------------------------------------------------------------------------

@app.get("/", include_in_schema=False)
def index():
    return RedirectResponse(url="/docs")


@app.get("/healthz", include_in_schema=False)
def healthz():
    return {"ok": True}


@app.options("/{full_path:path}", include_in_schema=False)
def preflight(full_path: str):
    return Response(status_code=200)


@app.get("/token-price", response_model=TokenPriceOut)
def token_price(db: Session = Depends(get_db)):
    return settings.get_token_price(db)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(init.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(deposits.router)
app.include_router(withdrawals.router)
app.include_router(staking.router)
app.include_router(admin.router)


if __name__ == "__main__":
    import os
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
