"""User account routes, mounted under /api."""

from __future__ import annotations

from typing import Any

from starlette.requests import Request

from wallpaper.api.envelope import HandlerResult, created
from wallpaper.api.errors import BadRequestError
from wallpaper.observability.logging import get_logger
from wallpaper.server import HandlerContext, RouteTable

logger = get_logger(__name__)


def _is_json(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


async def read_json(request: Request) -> Any:
    """
    Parse a JSON request body; any JSON value is accepted.

    A missing body, or one sent with a non-JSON content type, reads as
    `{}`. Only a body declared as JSON that fails to parse is rejected.
    """
    body = await request.body()
    if not body.strip() or not _is_json(request.headers.get("content-type", "")):
        if body:
            logger.debug(
                "request_body_ignored",
                content_type=request.headers.get("content-type"),
                size=len(body),
            )
        return {}
    try:
        return await request.json()
    except ValueError as exc:
        raise BadRequestError(f"Request body is not valid JSON: {exc}") from exc


async def sign_up(request: Request, context: HandlerContext) -> HandlerResult:
    """
    Accept a signup request.

    Account creation rules (record shape, password hashing, duplicate
    email checks) are not defined yet, so the body is parsed but neither
    validated nor stored.
    """
    payload = await read_json(request)
    # Field names only; the body may carry a password
    logger.info(
        "signup_received",
        fields=sorted(payload) if isinstance(payload, dict) else None,
    )
    return created("Test signup endpoint working")


def build_users_table() -> RouteTable:
    table = RouteTable(name="users")
    table.route("/signup", method="POST")(sign_up)
    return table
