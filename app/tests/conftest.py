# app/tests/conftest.py
import io
import json
import time
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from jose.utils import base64url_encode

from app.api.deps import get_data_sources, get_db, get_token_verifier
from app.data.resource import BEDROCK_DATA_SOURCE
from app.handlers.registry import DataSourceRegistry
from app.main import app
from app.services.auth_service import CognitoTokenVerifier
from app.services.bedrock_service import BedrockDataSource

REGION = "us-east-1"
USER_POOL_ID = "us-east-1_TestPool"
CLIENT_ID = "test-client-id"
ISSUER = f"https://cognito-idp.{REGION}.amazonaws.com/{USER_POOL_ID}"
SIGNING_SECRET = "test-signing-secret-0123456789"
KID = "test-kid"
JWKS = [{
    "kty": "oct",
    "kid": KID,
    "alg": "HS256",
    "k": base64url_encode(SIGNING_SECRET.encode("utf-8")).decode("utf-8"),
}]


def make_token(secret: str = SIGNING_SECRET, kid: str = KID, **overrides) -> str:
    claims = {
        "sub": "user-123",
        "cognito:username": "chef",
        "email": "chef@example.com",
        "iss": ISSUER,
        "aud": CLIENT_ID,
        "token_use": "id",
        "exp": int(time.time()) + 3600,
    }
    claims.update(overrides)
    claims = {k: v for k, v in claims.items() if v is not None}
    return jwt.encode(claims, secret, algorithm="HS256", headers={"kid": kid})


def auth_headers(token: str = None) -> dict:
    return {"Authorization": f"Bearer {token or make_token()}"}


# ---------------------------------------------------------------------------
# MongoDB 대역
# ---------------------------------------------------------------------------

def _matches(doc: dict, query: dict) -> bool:
    return all(doc.get(key) == value for key, value in query.items())


class _AsyncCursor:
    def __init__(self, docs):
        self._docs = iter(docs)

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            return next(self._docs)
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    def __init__(self):
        self.docs = []

    async def insert_one(self, doc):
        doc = dict(doc)
        doc.setdefault("_id", f"oid-{len(self.docs) + 1}")
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query):
        for doc in self.docs:
            if _matches(doc, query):
                return dict(doc)
        return None

    def find(self, query):
        return _AsyncCursor([dict(doc) for doc in self.docs if _matches(doc, query)])

    async def update_one(self, query, update, upsert=False):
        for doc in self.docs:
            if _matches(doc, query):
                doc.update(update.get("$set", {}))
                return SimpleNamespace(matched_count=1, upserted_id=None)
        if upsert:
            result = await self.insert_one({**query, **update.get("$set", {})})
            return SimpleNamespace(matched_count=0, upserted_id=result.inserted_id)
        return SimpleNamespace(matched_count=0, upserted_id=None)

    async def delete_one(self, query):
        for doc in self.docs:
            if _matches(doc, query):
                self.docs.remove(doc)
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeDb:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())


# ---------------------------------------------------------------------------
# Bedrock 대역
# ---------------------------------------------------------------------------

class FakeBedrockClient:
    """invoke_model 호출을 기록하고, 준비된 응답(또는 예외)을 순서대로 돌려줍니다."""

    def __init__(self, responses=None):
        self.calls = []
        self.responses = list(responses or [])

    def invoke_model(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.responses.pop(0) if self.responses else text_response("A lovely sponge cake.")
        if isinstance(outcome, Exception):
            raise outcome
        return {"body": io.BytesIO(json.dumps(outcome).encode("utf-8"))}


def text_response(text: str) -> dict:
    return {
        "id": "msg_01",
        "type": "message",
        "role": "assistant",
        "content": [{"type": "text", "text": text}],
        "stop_reason": "end_turn",
    }


@pytest.fixture
def fake_db():
    return FakeDb()


@pytest.fixture
def verifier():
    return CognitoTokenVerifier(region=REGION, user_pool_id=USER_POOL_ID, client_id=CLIENT_ID,
                                keys=JWKS, fetch_keys=lambda url: JWKS)


@pytest.fixture
def bedrock_client():
    return FakeBedrockClient()


@pytest.fixture
def data_sources(bedrock_client):
    return DataSourceRegistry({
        BEDROCK_DATA_SOURCE: BedrockDataSource(client=bedrock_client, sleep=lambda delay: None),
    })


@pytest.fixture
def client(fake_db, verifier, data_sources):
    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_token_verifier] = lambda: verifier
    app.dependency_overrides[get_data_sources] = lambda: data_sources
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
