"""Global exception handlers — map SDK exceptions to HTTP status codes.

The SDK raises typed errors (``NotFoundError`` → 404, ``ConfigurationError``
→ 400) and plain ``ValueError`` for request-level problems.  Rather than
catching these in every route, global handlers pick the status code and
return a client-safe message.  Raw messages, which may contain user ids or
rule details, stay in the server log.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from survey_branching.errors import ConfigurationError, NotFoundError

logger = logging.getLogger(__name__)

# --- Keyword patterns in ValueError messages and their HTTP status codes ---
# Checked in order; first match wins.
_VALUE_ERROR_PATTERNS: list[tuple[str, int]] = [
    # Answer submitted to a completed or disqualified participation
    ("already finished", 409),
    # Question outside the participation's survey, unknown section, ...
    ("not found", 404),
]

# --- Client-safe messages keyed by HTTP status code ---
_SAFE_MESSAGES: dict[int, str] = {
    404: "Resource not found",
    409: "Participation already finished",
    400: "Invalid request",
}


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Map ``ParticipationNotFound`` / ``SurveyNotFound`` to 404."""
    logger.warning("Not found at %s: %s", request.url, exc)
    return JSONResponse(status_code=404, content={"detail": _SAFE_MESSAGES[404]})


async def configuration_error_handler(
    request: Request, exc: ConfigurationError
) -> JSONResponse:
    """Map misconfigured branching logic to 400.

    The rule id is returned so authors can locate the broken rule; the
    message itself stays server-side.
    """
    logger.warning("Branching configuration error at %s: %s", request.url, exc)
    content: dict = {"detail": "Invalid branching logic"}
    if exc.rule_id is not None:
        content["rule_id"] = exc.rule_id
    return JSONResponse(status_code=400, content=content)


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Map other ``ValueError``s by message pattern; default 400."""
    msg = str(exc)
    status = 400
    for pattern, code in _VALUE_ERROR_PATTERNS:
        if pattern in msg.lower():
            status = code
            break

    logger.warning("ValueError [%d] at %s: %s", status, request.url, msg)
    return JSONResponse(
        status_code=status,
        content={"detail": _SAFE_MESSAGES.get(status, "Invalid request")},
    )


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    """Map ``KeyError`` (unknown lookup key) to 404."""
    logger.warning("KeyError at %s: %s", request.url, exc)
    return JSONResponse(status_code=404, content={"detail": _SAFE_MESSAGES[404]})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
