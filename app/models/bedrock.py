# app/models/bedrock.py
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict


class BedrockResponse(BaseModel):
    """Bedrock 응답 타입. 성공 시 body, 실패 시 error 만 채웁니다."""
    model_config = ConfigDict(extra="forbid")

    body: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: "BedrockResult") -> "BedrockResponse":
        if isinstance(result, Ok):
            return cls(body=result.body)
        return cls(error=result.message)


class Ok(BaseModel):
    model_config = ConfigDict(frozen=True)

    body: str


class Err(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


BedrockResult = Union[Ok, Err]
