"""Error response schemas shared by every endpoint."""

from typing import List, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Individual field validation error."""

    field: str = Field(..., description="Field name that failed validation")
    message: str = Field(..., description="Error message describing the validation failure")


class ErrorResponse(BaseModel):
    """Response schema for every error status (400, 401, 404, 429, 500)."""

    status: str = Field(
        ...,
        pattern="^error$",
        description="Always 'error' for error responses",
        examples=["error"],
    )

    error: str = Field(
        ...,
        description="Error message",
        examples=["Validation failed", "Too many requests"],
    )

    details: Optional[List[ErrorDetail]] = Field(
        default=None,
        description="Specific validation errors (only present for 400 responses)",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "error",
                    "error": "Validation failed",
                    "details": [
                        {
                            "field": "parent_id",
                            "message": "parent_id not found on artifact",
                        }
                    ],
                },
                {
                    "status": "error",
                    "error": "Storage unavailable",
                    "details": None,
                },
            ]
        }
    }
