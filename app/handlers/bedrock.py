# app/handlers/bedrock.py
# askBedrock 쿼리 핸들러: 재료 목록으로 프롬프트를 만들어 bedrockDS 에 전달합니다.
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from app.core.logging import get_logger
from app.models.bedrock import BedrockResponse, BedrockResult, Err, Ok
from app.services.bedrock_service import BedrockDataSource

logger = get_logger(__name__)


def build_prompt(ingredients: Optional[List[Optional[str]]]) -> str:
    names = [name for name in ingredients or [] if name is not None]
    return f"Suggest a recipe idea using these ingredients: {', '.join(names)}."


def extract_text(result_json: dict) -> str:
    """messages API 응답에서 첫 번째 text 블록을 꺼냅니다."""
    for block in result_json.get("content") or []:
        if block.get("type") == "text" and isinstance(block.get("text"), str):
            return block["text"]
    raise ValueError("Bedrock response did not contain any text content")


def invoke(ingredients: Optional[List[Optional[str]]], data_source: BedrockDataSource) -> BedrockResult:
    prompt = build_prompt(ingredients)
    try:
        result_json = data_source.invoke(prompt)
        return Ok(body=extract_text(result_json))
    except ClientError as e:
        error = e.response.get("Error", {})
        logger.error("Bedrock call failed: %s", error)
        return Err(message=f"{error.get('Code', 'ClientError')}: {error.get('Message', str(e))}")
    except BotoCoreError as e:
        logger.error("Bedrock call failed: %s", e)
        return Err(message=str(e))
    except (ValueError, AttributeError, TypeError) as e:
        logger.error("Unreadable Bedrock response: %s", e)
        return Err(message=str(e))


def ask_bedrock(arguments: dict, data_source: BedrockDataSource) -> BedrockResponse:
    return BedrockResponse.from_result(invoke(arguments.get("ingredients"), data_source))
