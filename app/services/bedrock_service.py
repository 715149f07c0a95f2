# app/services/bedrock_service.py
import json
import random
import time

import boto3
from botocore.exceptions import ClientError

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

ANTHROPIC_VERSION = "bedrock-2023-05-31"

_bedrock_client = None  # 프로세스 단위로 재사용


def get_bedrock_client():
    """모델 인퍼런스 호출용 bedrock-runtime 클라이언트를 생성(최초 1회)해서 반환합니다."""
    global _bedrock_client
    if _bedrock_client is None:
        _bedrock_client = boto3.client(
            "bedrock-runtime",
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        )
    return _bedrock_client


def build_messages_payload(prompt: str, max_tokens: int) -> dict:
    # Anthropic messages 포맷 (모델별 요구 포맷이 상이할 수 있음)
    return {
        "anthropic_version": ANTHROPIC_VERSION,
        "max_tokens": max_tokens,
        "messages": [
            {
                "role": "user",
                "content": [
                    {
                        "type": "text",
                        "text": prompt
                    }
                ]
            }
        ]
    }


class BedrockDataSource:
    """
    bedrockDS 데이터 소스.
    Throttling 에러 발생 시 지수 백오프 방식으로 재시도합니다.

    client: bedrock-runtime 클라이언트 (None이면 get_bedrock_client 사용)
    max_retries: 최대 재시도 횟수
    base_delay: 초기 대기 시간 (초)
    """

    def __init__(self, client=None, model_id: str = None, max_tokens: int = None,
                 max_retries: int = None, base_delay: float = None, sleep=time.sleep):
        self._client = client
        self.model_id = model_id or settings.BEDROCK_MODEL_ID
        self.max_tokens = max_tokens if max_tokens is not None else settings.BEDROCK_MAX_TOKENS
        self.max_retries = max_retries if max_retries is not None else settings.BEDROCK_MAX_RETRIES
        self.base_delay = base_delay if base_delay is not None else settings.BEDROCK_BASE_DELAY
        self._sleep = sleep

    @property
    def client(self):
        if self._client is None:
            self._client = get_bedrock_client()
        return self._client

    def invoke(self, prompt: str) -> dict:
        """
        프롬프트를 모델에 전달하고 응답 JSON(dict)을 반환합니다.
        Throttling 외의 예외는 바로 상위로 전달합니다.
        """
        payload = build_messages_payload(prompt, self.max_tokens)

        for attempt in range(self.max_retries + 1):
            try:
                response = self.client.invoke_model(
                    modelId=self.model_id,
                    contentType="application/json",
                    accept="application/json",
                    body=json.dumps(payload)
                )
                # response["body"]는 StreamingBody 형태이므로 read()가 필요
                raw_body = response["body"].read()
                return json.loads(raw_body)

            except ClientError as e:
                error_code = e.response.get("Error", {}).get("Code")
                if error_code != "ThrottlingException" or attempt == self.max_retries:
                    raise

                # 지수 백오프 (2^시도 횟수 * 기본 대기 시간) + 무작위 지터 (0~1초)
                delay = (2 ** attempt) * self.base_delay
                delay += random.uniform(0, 1.0)
                logger.warning(
                    "Throttling detected. Retrying in %.2f seconds... (Attempt %d/%d)",
                    delay, attempt + 1, self.max_retries,
                )
                self._sleep(delay)
