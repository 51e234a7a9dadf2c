# ipgate/schemas/common.py
from pydantic import BaseModel, Field
from typing import Optional, Any


class UnifiedAPIResponse(BaseModel):
    """
    JSON body of every error response. Successful form submissions answer
    with HTML, so only the failure fields are carried.
    """
    success: bool = Field(False, description="Always false for error responses")
    message: Optional[str] = Field(None, description="Human-readable reason")
    error_code: Optional[str] = Field(None, description="Application error code, e.g. GATE_INVALID_TOKEN")
    error_details: Optional[Any] = Field(None, description="Structured details such as validation errors")
