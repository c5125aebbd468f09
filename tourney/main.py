import logging

from fastapi import FastAPI

from tourney.api.error_handlers import setup_error_handlers
from tourney.core.config import settings
from tourney.core.logging_config import configure_logging
from tourney.routes import match_routes, participant_routes, tournament_routes

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

setup_error_handlers(app)

# Include routers
app.include_router(tournament_routes.router, prefix="/tournaments", tags=["Tournaments"])
app.include_router(
    participant_routes.router, prefix="/tournaments/{tournament_id}/participants", tags=["Participants"]
)
app.include_router(match_routes.router, prefix="/tournaments/{tournament_id}/matches", tags=["Matches"])


@app.get("/")
async def root():
    return {"message": settings.APP_NAME}

logger.info("%s ready, data directory: %s", settings.APP_NAME, settings.DATA_DIR)
