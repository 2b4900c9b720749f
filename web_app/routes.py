"""HTTP routes over the storage service."""

import os
from typing import Optional

from fastapi import APIRouter, Form, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from shorten.errors import (
    ExhaustionError,
    InvalidCodeError,
    InvalidURLError,
    StorageError,
    UnsupportedError,
)
from shorten.storage.models import LookupStatus

router = APIRouter()

template_dir = os.path.join(os.path.dirname(__file__), "templates")
templates = Jinja2Templates(directory=template_dir)

NOT_FOUND_MESSAGE = "The link you specified does not exist. You can create it below."


def _render_index(
    request: Request,
    short: str = "",
    fuzzy: Optional[str] = None,
    error: Optional[str] = None,
    status_code: int = status.HTTP_200_OK,
):
    return templates.TemplateResponse(
        request,
        "index.html",
        {"short": short, "fuzzy": fuzzy, "error": error},
        status_code=status_code,
    )


def _user_from_request(request: Request) -> Optional[str]:
    """Principal recorded in change histories, as set by an auth proxy."""
    return request.headers.get("x-forwarded-user")


async def healthcheck(request: Request):
    """Read back the health check code, seeded once per process."""
    service = request.app.state.service
    config = request.app.state.config

    if await service.health_check(config.healthcheck_path):
        return PlainTextResponse("ok")
    return PlainTextResponse("healthcheck fail", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/", include_in_schema=False)
async def index(request: Request):
    """Serve the index page."""
    return _render_index(request)


@router.post("/")
async def set_short(
    request: Request,
    code: Optional[str] = Form(None),
    url: Optional[str] = Form(None),
):
    """Bind a code to a URL, or mint a code when none is given."""
    service = request.app.state.service
    user = _user_from_request(request)

    if not url:
        return PlainTextResponse("failed to find url in request", status_code=status.HTTP_400_BAD_REQUEST)

    try:
        if code:
            await service.bind(code, url, user=user)
        elif service.supports_generation:
            code = await service.shorten(url, user=user)
        else:
            return PlainTextResponse("Missing short name", status_code=status.HTTP_400_BAD_REQUEST)
    except (InvalidCodeError, InvalidURLError) as e:
        return PlainTextResponse(str(e), status_code=status.HTTP_400_BAD_REQUEST)
    except UnsupportedError as e:
        return PlainTextResponse(str(e), status_code=status.HTTP_501_NOT_IMPLEMENTED)
    except (ExhaustionError, StorageError) as e:
        return PlainTextResponse(
            f"Failed to save '{url}' to '{code}' because: {e}",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if request.headers.get("accept") == "application/json":
        return JSONResponse({"short": code, "url": url})
    return PlainTextResponse(f"{code}\n")


@router.get("/{code:path}", include_in_schema=False)
async def get_short(request: Request, code: str):
    """Redirect to the long URL, or explain why we can't."""
    service = request.app.state.service

    outcome = await service.resolve(code)

    if outcome.status is LookupStatus.FOUND:
        return RedirectResponse(url=outcome.url, status_code=status.HTTP_302_FOUND)

    if outcome.status is LookupStatus.FUZZY:
        return _render_index(
            request,
            short=code,
            fuzzy=outcome.matched_code,
            status_code=status.HTTP_418_IM_A_TEAPOT,
        )

    if outcome.status is LookupStatus.NOT_FOUND:
        return _render_index(
            request,
            short=code,
            error=NOT_FOUND_MESSAGE,
            status_code=status.HTTP_404_NOT_FOUND,
        )

    if isinstance(outcome.error, InvalidCodeError):
        return _render_index(
            request,
            short=code,
            error=str(outcome.error),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    return _render_index(
        request,
        short=code,
        error=f"Failed to retrieve link from backend: {outcome.error}",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
