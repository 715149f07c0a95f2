# app/api/deps.py
# 엔드포인트에서 공통으로 쓰는 의존성. 테스트에서는 app.dependency_overrides 로 교체합니다.
from typing import Optional, Sequence

from fastapi import Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from app.core import database
from app.core.exceptions import ApiKeyError, TokenVerificationError
from app.core.logging import get_logger
from app.data.resource import data
from app.handlers.registry import DataSourceRegistry, default_data_sources
from app.models.auth import Principal
from app.models.schema import AuthMode, AuthRule
from app.services.api_key_service import ApiKeyStore
from app.services.auth_service import CognitoTokenVerifier, get_cognito_verifier, principal_from_claims

logger = get_logger(__name__)

API_KEY_HEADER = "x-api-key"

_data_sources: Optional[DataSourceRegistry] = None


def get_db():
    return database.db


def get_token_verifier() -> CognitoTokenVerifier:
    return get_cognito_verifier()


def get_api_key_store(db=Depends(get_db)) -> ApiKeyStore:
    return ApiKeyStore(db[database.API_KEYS_COLLECTION], data.authorization_modes.api_key_authorization_mode)


def get_data_sources() -> DataSourceRegistry:
    global _data_sources
    if _data_sources is None:
        _data_sources = default_data_sources()
    return _data_sources


def _bearer_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    # 세션에 저장된 토큰 (/auth/verify-token 이후)
    return request.session.get("id_token") if "session" in request.scope else None


async def _check_rule(rule: AuthRule, request: Request, verifier: CognitoTokenVerifier,
                      api_keys: ApiKeyStore) -> Principal:
    if rule.strategy == AuthMode.AUTHENTICATED:
        token = _bearer_token(request)
        if not token:
            raise TokenVerificationError("User not logged in.")
        # jwks.json 조회가 블로킹이므로 스레드풀에서 검증
        claims = await run_in_threadpool(verifier.verify, token)
        return principal_from_claims(claims)
    return await api_keys.validate(request.headers.get(API_KEY_HEADER))


def authorization_guard(rules: Sequence[AuthRule]):
    """규칙 중 하나라도 통과하면 Principal 을, 모두 실패하면 401 을 돌려주는 의존성을 만듭니다."""

    async def guard(
        request: Request,
        verifier: CognitoTokenVerifier = Depends(get_token_verifier),
        api_keys: ApiKeyStore = Depends(get_api_key_store),
    ) -> Principal:
        failures = []
        for rule in rules:
            try:
                return await _check_rule(rule, request, verifier, api_keys)
            except (TokenVerificationError, ApiKeyError) as e:
                failures.append(str(e))
        logger.info("Unauthorized request to %s: %s", request.url.path, failures)
        raise HTTPException(status_code=401, detail="; ".join(failures) or "Unauthorized")

    return guard


require_authenticated = authorization_guard((AuthRule(strategy=AuthMode.AUTHENTICATED),))
