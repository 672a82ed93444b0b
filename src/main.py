import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request

from dashboard_api import router as dashboard_router
from exercises_api import router as exercises_router
from history_api import router as history_router
from profile_api import router as profile_router
from programs_api import router as programs_router
from workout_sessions_api import ActiveWorkouts
from workout_sessions_api import router as workout_sessions_router

# Load environment variables from .env file
load_dotenv()

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="JuniFit Server", version="1.0.0")

# Workouts in progress; they are lost on restart and dropped after going idle
app.state.active_workouts = ActiveWorkouts()


@app.middleware("http")
async def log_internal_errors(request: Request, call_next):
    try:
        response = await call_next(request)
    except HTTPException as e:
        if e.status_code == 500:
            logger.error(
                "Unhandled exception during request: %s %s. Error: %s",
                request.method,
                request.url,
                e.detail,
            )
        raise
    if response.status_code >= 500:
        logger.error(
            "Request failed: %s %s -> %s",
            request.method,
            request.url,
            response.status_code,
        )
    return response


# Include routers
app.include_router(exercises_router)
app.include_router(programs_router)
app.include_router(workout_sessions_router)
app.include_router(history_router)
app.include_router(dashboard_router)
app.include_router(profile_router)


@app.get("/")
async def root():
    return {"message": "Welcome to JuniFit Server"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
