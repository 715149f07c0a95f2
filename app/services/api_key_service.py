# app/services/api_key_service.py
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from app.core.exceptions import ApiKeyError
from app.core.logging import get_logger
from app.models.auth import ApiKeyCreated, ApiKeyInfo, Principal
from app.models.schema import ApiKeyAuthorizationMode, AuthMode

logger = get_logger(__name__)

API_KEY_PREFIX = "da2-"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def hash_api_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def _as_utc(value: datetime) -> datetime:
    # MongoDB는 tz 정보 없이 UTC 로 돌려줌
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ApiKeyStore:
    """
    api_keys 컬렉션에 API 키를 저장/검증합니다.
    평문 키는 발급 시 한 번만 반환하고, DB에는 SHA-256 해시만 남깁니다.
    """

    def __init__(self, collection, policy: ApiKeyAuthorizationMode,
                 clock: Callable[[], datetime] = utcnow):
        self.collection = collection
        self.policy = policy
        self._clock = clock

    async def create(self, description: str = "", expires_in_days: Optional[int] = None,
                     owner_sub: Optional[str] = None) -> ApiKeyCreated:
        days = expires_in_days or self.policy.expires_in_days
        api_key = API_KEY_PREFIX + secrets.token_urlsafe(20)
        created_at = self._clock()
        doc = {
            "key_id": secrets.token_hex(8),
            "key_hash": hash_api_key(api_key),
            "description": description,
            "owner_sub": owner_sub,
            "created_at": created_at,
            "expires_at": created_at + timedelta(days=days),
        }
        await self.collection.insert_one(dict(doc))
        logger.info("Issued API key %s (expires in %d days)", doc["key_id"], days)
        return ApiKeyCreated(api_key=api_key, **doc)

    @staticmethod
    def _owned_by(owner_sub: Optional[str], query: Optional[dict] = None) -> dict:
        # owner_sub 가 None 이면 전체 키 대상 (내부용)
        query = dict(query or {})
        if owner_sub is not None:
            query["owner_sub"] = owner_sub
        return query

    async def list(self, owner_sub: Optional[str] = None) -> List[ApiKeyInfo]:
        keys = []
        async for doc in self.collection.find(self._owned_by(owner_sub)):
            keys.append(ApiKeyInfo(
                key_id=doc["key_id"],
                description=doc.get("description", ""),
                created_at=_as_utc(doc["created_at"]),
                expires_at=_as_utc(doc["expires_at"]),
            ))
        return keys

    async def revoke(self, key_id: str, owner_sub: Optional[str] = None) -> bool:
        result = await self.collection.delete_one(self._owned_by(owner_sub, {"key_id": key_id}))
        if result.deleted_count:
            logger.info("Revoked API key %s", key_id)
        return bool(result.deleted_count)

    async def validate(self, api_key: Optional[str]) -> Principal:
        """유효한 키이면 Principal 을, 아니면 ApiKeyError 를 돌려줍니다."""
        if not api_key:
            raise ApiKeyError("API key required")
        doc = await self.collection.find_one({"key_hash": hash_api_key(api_key)})
        if not doc:
            raise ApiKeyError("Invalid API key")
        if self._clock() >= _as_utc(doc["expires_at"]):
            raise ApiKeyError("API key has expired")
        return Principal(mode=AuthMode.API_KEY, api_key_id=doc["key_id"])
