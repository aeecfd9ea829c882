# Main application file



import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from pharmapos.database import engine, Base, SessionLocal
from pharmapos.core.rate_limiter import limiter
from pharmapos.core.config import settings
from pharmapos.core.exceptions import (
    InsufficientStockError,
    NotFoundError,
    PersistenceError,
    SaleError,
    SaleValidationError,
)
from pharmapos.models import registry  # noqa: F401
from pharmapos.seed.medicine_loader import load_medicines
from pharmapos.routers import (
    auth,
    pharmacies,
    medicines,
    inventory,
    sales,
    reports,
)


# LOGGING CONFIGURATION

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
)

logger = logging.getLogger("pharmapos")


# SCHEMA (development databases only; production runs alembic) AND CATALOGUE SEED

def seed_catalogue():
    path = settings.MEDICINE_CSV_PATH
    if not path:
        return

    if not os.path.exists(path):
        logger.warning(f"Medicine catalogue {path} not found, skipping seed")
        return

    db = SessionLocal()
    try:
        load_medicines(db, path)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.ENV == "development":
        Base.metadata.create_all(bind=engine)
    seed_catalogue()
    yield


# APP INIT

app = FastAPI(
    title="Pharmacy POS API",
    description="Point-of-sale backend for pharmacies: stock, sales and reports",
    version="1.0.0",
    lifespan=lifespan,
)



# CORS (Token-based auth)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# RATE LIMITING

app.state.limiter = limiter
app.add_exception_handler(
    RateLimitExceeded,
    _rate_limit_exceeded_handler
)


# SALE ENGINE ERRORS

SALE_ERROR_STATUS = {
    SaleValidationError: 400,
    NotFoundError: 404,
    InsufficientStockError: 409,
    PersistenceError: 503,
}


@app.exception_handler(SaleError)
async def sale_error_handler(request: Request, exc: SaleError):
    status_code = SALE_ERROR_STATUS.get(type(exc), 400)
    headers = {"Retry-After": "1"} if exc.retryable else None

    return JSONResponse(
        status_code=status_code,
        content=exc.to_dict(),
        headers=headers,
    )


# REQUEST LOGGING MIDDLEWARE

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    duration = round((time.time() - start_time) * 1000, 2)

    logger.info(
        f"{request.method} {request.url.path} "
        f"Status: {response.status_code} "
        f"Time: {duration}ms"
    )

    return response


# ROUTERS

app.include_router(auth.router)
app.include_router(pharmacies.router)
app.include_router(medicines.router)
app.include_router(inventory.router)
app.include_router(sales.router)
app.include_router(reports.router)



# ROOT

@app.get("/")
def root():
    logger.info("Health check endpoint called")
    return {"message": "Pharmacy POS API is running"}
