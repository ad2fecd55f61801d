from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

try:
    from .errors import InvalidRelationshipError, MemberNotFoundError
    from .routes.members import router as members_router
    from .routes.relationship import router as relationship_router
except ImportError:  # pragma: no cover
    # Support running with CWD=familytree (e.g., `python -m uvicorn main:app`).
    from errors import InvalidRelationshipError, MemberNotFoundError
    from routes.members import router as members_router
    from routes.relationship import router as relationship_router

log = logging.getLogger(__name__)

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Family Tree API", version="0.1.0")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


@app.exception_handler(InvalidRelationshipError)
async def invalid_relationship_handler(request: Request, exc: InvalidRelationshipError) -> JSONResponse:
    return _error(400, str(exc))


@app.exception_handler(MemberNotFoundError)
async def member_not_found_handler(request: Request, exc: MemberNotFoundError) -> JSONResponse:
    return _error(404, str(exc))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(relationship_router)
app.include_router(members_router)
