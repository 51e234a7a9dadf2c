# api/gate.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse

from api.dependencies import get_gate_auth_service, get_whitelist_service
from core.auth.service import GateAuthService
from core.whitelist.service import WhitelistService
from utils.errors import ErrorCode
from utils.exceptions import APIError, ServiceUnavailableError

logger = logging.getLogger(f"ipgate.{__name__}")

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

LOGIN_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <meta http-equiv="X-UA-Compatible" content="ie=edge">
    <title>Login</title>
</head>
<body>
    <form method="POST">
        <label for="token">token: </label>
        <input name="token" id="token"/>
        <button type="submit">Submit</button>
    </form>
</body>
</html>
"""

GRANTED_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Access granted</title>
</head>
<body>
    <p>hello</p>
</body>
</html>
"""


async def show_login_form():
    return HTMLResponse(LOGIN_PAGE)


async def submit_token(
    request: Request,
    token: Optional[str] = Form(None),
    auth_service: GateAuthService = Depends(get_gate_auth_service),
    whitelist_service: WhitelistService = Depends(get_whitelist_service),
):
    """
    Whitelists the caller's address when the submitted token matches.
    The response does not wait for the proxy reload.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.split(";", 1)[0].strip().lower() != FORM_CONTENT_TYPE:
        raise APIError(error=ErrorCode.GATE_UNSUPPORTED_CONTENT_TYPE)

    client_ip = auth_service.get_client_ip(request)
    if client_ip is None:
        raise APIError(error=ErrorCode.GATE_INVALID_ADDRESS)

    auth_result = auth_service.authenticate(token, client_ip)
    if not auth_result.is_authenticated:
        raise APIError(error=ErrorCode.GATE_INVALID_TOKEN, override_message=auth_result.error_message)

    try:
        whitelist_service.push(client_ip)
    except ServiceUnavailableError as e:
        logger.error(f"Cannot whitelist {client_ip}: {e.message}")
        raise APIError(error=ErrorCode.WHITELIST_SERVICE_STOPPED, override_message=e.message)

    logger.info(f"Accepted token from {client_ip}.")
    return HTMLResponse(GRANTED_PAGE)


def build_gate_router(path: str) -> APIRouter:
    """Mounts the token form at the configured listen path."""
    router = APIRouter()
    router.add_api_route(path, show_login_form, methods=["GET"], response_class=HTMLResponse, summary="Token form")
    router.add_api_route(path, submit_token, methods=["POST"], response_class=HTMLResponse, summary="Submit token")
    return router
