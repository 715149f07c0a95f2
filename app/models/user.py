# app/models/user.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CognitoUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None, alias="_id")  # MongoDB _id를 string으로 변환
    sub: str
    username: Optional[str] = None
    email: Optional[str] = None
    issuer: Optional[str] = None
    provider: str = "cognito"
    groups: List[str] = []
    claims: Dict[str, Any] = {}
