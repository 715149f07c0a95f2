# app/models/auth.py
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from app.models.schema import AuthMode


class TokenVerifyRequest(BaseModel):
    id_token: str
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    provider: str = "cognito"


class Principal(BaseModel):
    """권한 검사를 통과한 호출자"""
    mode: AuthMode
    subject: Optional[str] = None
    username: Optional[str] = None
    claims: Dict[str, Any] = {}
    api_key_id: Optional[str] = None


# API 키 관리 모델
class ApiKeyCreate(BaseModel):
    description: str = ""
    expires_in_days: Optional[int] = Field(default=None, ge=1, le=365)


class ApiKeyInfo(BaseModel):
    key_id: str
    description: str = ""
    created_at: datetime
    expires_at: datetime


class ApiKeyCreated(ApiKeyInfo):
    """생성 직후 한 번만 평문 키를 돌려줍니다."""
    api_key: str
