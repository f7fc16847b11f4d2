from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "username": "amina",
                "pin": "4321",
            }
        }
    }

    username: str = Field(min_length=1, max_length=150)
    pin: str = Field(min_length=4, max_length=12)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    trace_id: str


class UserResponse(BaseModel):
    id: str
    tenant_id: str
    username: str
    display_name: str
    role: str
    is_active: bool
    trace_id: str
