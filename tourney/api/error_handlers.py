import logging
import uuid

from fastapi import Request, status
from fastapi.responses import JSONResponse

from tourney.core.exceptions import BracketCorruption, NotFound, TournamentError

logger = logging.getLogger(__name__)

def setup_error_handlers(app):
    """Map engine errors onto HTTP responses."""

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(TournamentError)
    async def tournament_error_handler(request: Request, exc: TournamentError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    @app.exception_handler(PermissionError)
    async def permission_error_handler(request: Request, exc: PermissionError):
        logger.warning("Forbidden request on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})

    @app.exception_handler(BracketCorruption)
    async def bracket_corruption_handler(request: Request, exc: BracketCorruption):
        log_id = str(uuid.uuid4())[:8]
        logger.error("[%s] Bracket corruption on %s: %s", log_id, request.url.path, exc, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal bracket error", "log_id": log_id},
        )
