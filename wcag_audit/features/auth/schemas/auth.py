from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr


class MagicLinkRequest(BaseModel):
    email: EmailStr

    class Config:
        json_schema_extra = {
            "example": {
                "email": "vous@exemple.com"
            }
        }


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    last_login_at: Optional[datetime] = None
