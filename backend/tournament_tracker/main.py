import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tournament_tracker.database import init_db
from tournament_tracker.errors import TrackerError
from tournament_tracker.routes import matches, players, tournaments
from tournament_tracker.settings import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Tournament Tracker API")

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.kind, "detail": exc.message})


app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])
app.include_router(players.router, prefix="/api", tags=["players"])
# Check-in, start and finish (court allocation + queue)
app.include_router(matches.router, prefix="/api", tags=["matches"])


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("Tournament Tracker API started (database: %s)", "sqlite" if settings.is_sqlite else "external")


@app.get("/api/health")
def health_check():
    return {"app_name": "Tournament Tracker API", "status": "healthy"}
