from pydantic import BaseModel


class ApiErrorResponse(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "code": "SHIFT_ALREADY_OPEN",
                "message": "A cash shift is already open for this workstation",
                "details": {"shift_id": "6f1c2b0e-3f5d-4a43-9c1e-0d2a7f6c9b10"},
                "trace_id": "3b7e0c1a-9f62-4d0e-8a55-1c2d3e4f5a6b",
            }
        }
    }

    code: str
    message: str
    details: dict | None = None
    trace_id: str = ""


class AmountFieldError(BaseModel):
    """One rejected request field, e.g. a negative ``starting_cash``."""

    field: str | None
    message: str
    type: str


class AmountValidationDetails(BaseModel):
    errors: list[AmountFieldError]


class ApiValidationErrorResponse(ApiErrorResponse):
    model_config = {
        "json_schema_extra": {
            "example": {
                "code": "VALIDATION_ERROR",
                "message": "Validation error",
                "details": {
                    "errors": [
                        {
                            "field": "actual_total",
                            "message": "Input should be greater than or equal to 0",
                            "type": "greater_than_equal",
                        }
                    ]
                },
                "trace_id": "3b7e0c1a-9f62-4d0e-8a55-1c2d3e4f5a6b",
            }
        }
    }

    details: AmountValidationDetails | dict | None = None
