import sys
from typing import Any

import fastapi
import uvicorn

from fastapi import Depends, FastAPI, HTTPException, Path, Query
from fastapi.responses import PlainTextResponse

from rubber.config import Settings
from rubber.dependencies import orchestrator_dependency, settings_dependency
from rubber.logger import get_logger
from rubber.services.review_orchestrator import FatalFetchError, ReviewOrchestrator

logger = get_logger()

app = FastAPI(title="Rubber PR Reviewer")


@app.get("/", response_class=PlainTextResponse)
def root() -> str:
    return "pong"


@app.get("/health")
def health() -> dict[str, Any]:
    return {
        "status": "The Rubber PR reviewer is operational.",
        "environment": {
            "python version": sys.version,
            "fastapi version": fastapi.__version__,
            "uvicorn version": uvicorn.__version__,
        },
    }


def _http_error(exc: FatalFetchError) -> HTTPException:
    status_code = 404 if exc.not_found else 502
    return HTTPException(status_code=status_code, detail=str(exc))


@app.get("/repos/{owner}/{repo}/pulls", response_class=PlainTextResponse)
async def recent_pull_requests(
    owner: str,
    repo: str,
    limit: int | None = Query(default=None, gt=0, le=100),
    settings: Settings = Depends(settings_dependency),
    orchestrator: ReviewOrchestrator = Depends(orchestrator_dependency),
) -> str:
    try:
        listing = await orchestrator.list_recent(owner, repo, limit=limit or settings.recent_limit)
    except FatalFetchError as exc:
        raise _http_error(exc) from exc
    return listing.text


@app.get("/repos/{owner}/{repo}/pulls/{number}/report", response_class=PlainTextResponse)
async def pull_request_report(
    owner: str,
    repo: str,
    number: int = Path(gt=0),
    orchestrator: ReviewOrchestrator = Depends(orchestrator_dependency),
) -> str:
    logger.info(f"Report requested for {owner}/{repo}#{number}")
    try:
        return await orchestrator.generate_report(owner, repo, number)
    except FatalFetchError as exc:
        raise _http_error(exc) from exc
