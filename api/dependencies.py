# api/dependencies.py
from fastapi import Request

from core.auth.service import GateAuthService
from core.whitelist.service import WhitelistService
from utils.errors import ErrorCode
from utils.exceptions import APIError


def get_whitelist_service(request: Request) -> WhitelistService:
    if not hasattr(request.app.state, 'whitelist_service'):
        raise APIError(error=ErrorCode.COMMON_SERVICE_UNAVAILABLE, override_message="Whitelist service not available.")
    return request.app.state.whitelist_service

def get_gate_auth_service(request: Request) -> GateAuthService:
    if not hasattr(request.app.state, 'auth_service'):
        raise APIError(error=ErrorCode.COMMON_SERVICE_UNAVAILABLE, override_message="Auth service not available.")
    return request.app.state.auth_service
