import logging

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from festreg.config import CORS_ORIGINS, FEST_NAME, IS_PRODUCTION
from festreg.logging_config import setup_logging

setup_logging()

from festreg.routes.order_route import router as OrderRouter
from festreg.routes.admin_order_route import router as AdminOrderRouter
from festreg.routes.event_route import router as EventRouter
from festreg.routes.admin_event_route import router as AdminEventRouter
from festreg.routes.user_route import router as UserRouter
from festreg.routes.admin_user_route import router as AdminUserRouter
from festreg.routes.stats_route import router as StatsRouter
from festreg.routes.webhook_route import router as WebhookRouter

from festreg.database import Base, engine, get_db
from festreg.exceptions import FestError
from festreg.response_model import ErrorResponseModel
from festreg.models.user_model import User
from festreg.models.event_model import Event
from festreg.models.order_model import Order, Registration, RegistrationMember, Counter

logger = logging.getLogger(__name__)

app = FastAPI(title=f"{FEST_NAME} Registration API")

app.include_router(EventRouter, tags=["Event"], prefix="/events")
app.include_router(OrderRouter, tags=["Order"], prefix="/api/orders")
app.include_router(UserRouter, tags=["User"], prefix="/api")
app.include_router(AdminOrderRouter, tags=["Admin"], prefix="/api/admin/orders")
app.include_router(AdminEventRouter, tags=["Admin"], prefix="/api/admin/events")
app.include_router(AdminUserRouter, tags=["Admin"], prefix="/api/admin/users")
app.include_router(StatsRouter, tags=["Admin"], prefix="/api/admin/stats")
app.include_router(WebhookRouter, tags=["Webhook"], prefix="/webhooks")

# Create all tables (must be after importing all models)
# Wrap in try-except to allow server to start even if database is not available
try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")
except Exception:
    logger.exception("Could not create database tables, database operations will fail until it is reachable")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["POST", "GET", "OPTIONS", "DELETE", "PUT"],
    allow_headers=["*"],
)


# ----------------------- ERROR HANDLERS -----------------------
@app.exception_handler(FestError)
async def fest_error_handler(request: Request, exc: FestError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=ErrorResponseModel(exc.message, exc.code))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    message = message.removeprefix("Value error, ")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponseModel(message, "VALIDATION_ERROR"),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponseModel(
            "Internal server error", "INTERNAL_ERROR", None if IS_PRODUCTION else str(exc)
        ),
    )


# ----------------------- HEALTH -----------------------
@app.get("/ping", tags=["Health"])
def ping():
    return {"success": True, "message": "pong"}


@app.get("/health", tags=["Health"])
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database health check failed")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"success": False, "status": "unhealthy", "database": "unreachable"},
        )
    return {"success": True, "status": "healthy", "database": "connected"}
