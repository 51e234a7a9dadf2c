# ipgate/schemas/auth.py
from pydantic import BaseModel, Field
from typing import Optional


class AuthResult(BaseModel):
    """
    Represents the result of a token submission.
    """
    is_authenticated: bool = Field(False, description="True if the submitted token matched.")
    client_ip: Optional[str] = Field(None, description="Resolved client address that will be whitelisted.")
    error_message: Optional[str] = Field(None, description="Error message if authentication failed.")
    status_code: Optional[int] = Field(None, description="HTTP status code associated with the auth result (e.g., 403).")
