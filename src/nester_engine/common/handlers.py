"""Exception handler and top-level guard for route handlers."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from nester_engine.common.exceptions import NesterError, UpstreamError
from nester_engine.common.schemas import ErrorResponse

logger = logging.getLogger(__name__)


async def nester_error_handler(request: Request, exc: NesterError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message, code=exc.code).model_dump(),
    )


@asynccontextmanager
async def guarded(operation: str) -> AsyncIterator[None]:
    """Convert anything that is not already an API error into a generic 500.

    Body parse failures land here too; the detail is logged, never returned.
    """
    try:
        yield
    except (NesterError, HTTPException):
        raise
    except Exception as e:
        logger.exception("%s failed", operation)
        raise UpstreamError() from e
