# app/tests/test_bedrock_service.py
import json

import pytest
from botocore.exceptions import ClientError

from app.services.bedrock_service import ANTHROPIC_VERSION, BedrockDataSource, build_messages_payload
from conftest import FakeBedrockClient, text_response


def client_error(code: str, message: str = "boom") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, "InvokeModel")


def test_messages_payload_format():
    payload = build_messages_payload("Suggest a recipe", 1000)

    assert payload["anthropic_version"] == ANTHROPIC_VERSION
    assert payload["max_tokens"] == 1000
    assert payload["messages"] == [
        {"role": "user", "content": [{"type": "text", "text": "Suggest a recipe"}]}
    ]


def test_invoke_sends_model_request():
    fake = FakeBedrockClient([text_response("Pancakes")])
    source = BedrockDataSource(client=fake, model_id="anthropic.test-model", max_tokens=256)

    result = source.invoke("hello")

    assert result["content"][0]["text"] == "Pancakes"
    call = fake.calls[0]
    assert call["modelId"] == "anthropic.test-model"
    assert call["contentType"] == "application/json"
    assert json.loads(call["body"])["max_tokens"] == 256


def test_throttling_is_retried_with_backoff():
    delays = []
    fake = FakeBedrockClient([
        client_error("ThrottlingException"),
        client_error("ThrottlingException"),
        text_response("Omelette"),
    ])
    source = BedrockDataSource(client=fake, max_retries=3, base_delay=1.0, sleep=delays.append)

    result = source.invoke("eggs")

    assert result["content"][0]["text"] == "Omelette"
    assert len(fake.calls) == 3
    # 2^attempt * base_delay + 0~1초 지터
    assert 1.0 <= delays[0] <= 2.0
    assert 2.0 <= delays[1] <= 3.0


def test_throttling_gives_up_after_max_retries():
    fake = FakeBedrockClient([client_error("ThrottlingException")] * 3)
    source = BedrockDataSource(client=fake, max_retries=2, sleep=lambda delay: None)

    with pytest.raises(ClientError):
        source.invoke("eggs")
    assert len(fake.calls) == 3


def test_other_client_errors_are_not_retried():
    fake = FakeBedrockClient([client_error("AccessDeniedException")])
    source = BedrockDataSource(client=fake, sleep=lambda delay: pytest.fail("should not sleep"))

    with pytest.raises(ClientError):
        source.invoke("eggs")
    assert len(fake.calls) == 1
