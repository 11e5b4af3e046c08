"""Main FastAPI application entry point."""
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from eventhub import config
from eventhub.database import engine, Base, SessionLocal, get_db
from eventhub.logging_config import setup_logging
from eventhub.api.errors import register_exception_handlers
from eventhub.api.routes import router
# Import models to register them with SQLAlchemy Base
from eventhub.models.domain import Event, Registration, User, UserSession
from eventhub.services.seed import seed_events

setup_logging()

# Create database tables
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.SEED_ON_STARTUP:
        db = SessionLocal()
        try:
            seed_events(db)
        finally:
            db.close()
    logger.info("EventHub API ready")
    yield


# Create FastAPI app
app = FastAPI(
    title="EventHub - Event Discovery & Registration",
    description="Browse events, sign in, and reserve a seat at events with limited capacity.",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=config.CORS_ORIGINS != ["*"],
    allow_methods=["GET", "POST", "DELETE", "PUT"],
    allow_headers=["Content-Type", "Authorization"],
)

register_exception_handlers(app)

# Include API routes
app.include_router(router, prefix="/api", tags=["EventHub"])


# Health check
@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    try:
        events = db.query(Event).count()
        users = db.query(User).count()
    except SQLAlchemyError as exc:
        logger.error(f"Health check failed: {exc}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "database": "unreachable"},
        )
    return {
        "status": "healthy",
        "service": "EventHub",
        "database": "connected",
        "stats": {"events": events, "users": users}
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
