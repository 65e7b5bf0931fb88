# app/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import settings
from app.db import init_db
from app.errors import SchedulingError
from app.jobs import ArqJobQueue
from app.logging_setup import setup_logging
from app.routers import appointments_routes, auth_routes, notifications_routes, users_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    init_db()
    app.state.job_queue = ArqJobQueue()
    logger.info("Appointment API started")
    yield
    await app.state.job_queue.close()


app = FastAPI(title="Appointment Booking API", lifespan=lifespan)

app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(appointments_routes.router)
app.include_router(notifications_routes.router)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    logger.info(f"{request.method} {request.url.path} rejected: {type(exc).__name__}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.get("/health")
def health_check():
    return {"status": "ok"}
