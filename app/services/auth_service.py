# app/services/auth_service.py
import json
import time
import urllib.request
from typing import Callable, List, Optional

from jose import jwk, jwt
from jose.utils import base64url_decode

from app.core.config import settings
from app.core.exceptions import TokenVerificationError
from app.core.logging import get_logger
from app.models.auth import Principal
from app.models.schema import AuthMode

logger = get_logger(__name__)

# 일반적으로 사용되는 Cognito 속성 매핑
ATTRIBUTE_MAPPING = {
    "sub": "sub",
    "email": "email",
    "email_verified": "email_verified",
    "username": "cognito:username",
    "name": "name",
    "given_name": "given_name",
    "family_name": "family_name",
    "preferred_username": "preferred_username",
    "groups": "cognito:groups",
    "roles": "cognito:roles"
}


def fetch_jwks(keys_url: str) -> List[dict]:
    with urllib.request.urlopen(keys_url) as f:
        response = f.read()
    return json.loads(response.decode("utf-8"))["keys"]


class CognitoTokenVerifier:
    """
    Cognito 사용자 풀에서 발급한 JWT(ID/Access 토큰)를 검증합니다.

    keys: 미리 알고 있는 JWKS 키 목록 (없으면 사용자 풀의 jwks.json 을 최초 1회 조회)
    fetch_keys: jwks.json URL 을 받아 키 목록을 돌려주는 함수
    clock: 현재 시각(epoch 초)을 돌려주는 함수
    """

    def __init__(self, region: str, user_pool_id: str, client_id: str,
                 keys: Optional[List[dict]] = None, clock: Callable[[], float] = time.time,
                 fetch_keys: Callable[[str], List[dict]] = fetch_jwks):
        self.region = region
        self.user_pool_id = user_pool_id
        self.client_id = client_id
        self._keys = keys
        self._clock = clock
        self._fetch_keys = fetch_keys

    @property
    def issuer(self) -> str:
        return f"https://cognito-idp.{self.region}.amazonaws.com/{self.user_pool_id}"

    @property
    def keys(self) -> List[dict]:
        if self._keys is None:
            self._refresh_keys()
        return self._keys

    def _refresh_keys(self) -> None:
        keys_url = f"{self.issuer}/.well-known/jwks.json"
        try:
            self._keys = self._fetch_keys(keys_url)
        except Exception as e:
            raise TokenVerificationError(f"Failed to fetch JWKS: {e}") from e

    def _lookup(self, kid: str) -> Optional[dict]:
        for key in self.keys:
            if key.get("kid") == kid:
                return key
        return None

    def _find_key(self, token: str) -> dict:
        try:
            kid = jwt.get_unverified_headers(token)["kid"]
        except Exception as e:
            raise TokenVerificationError(f"Invalid JWT headers: {e}") from e
        key = self._lookup(kid)
        if key is None:
            # 키 교체(rotation) 후 처음 보는 kid 이면 jwks.json 을 한 번 다시 조회
            logger.info("Unknown kid %s, refreshing JWKS", kid)
            self._refresh_keys()
            key = self._lookup(kid)
        if key is not None:
            return key
        raise TokenVerificationError("Public key not found in jwks.json")

    def verify(self, token: str) -> dict:
        """서명과 클레임을 검증하고 클레임을 반환합니다."""
        key_data = self._find_key(token)
        try:
            public_key = jwk.construct(key_data)
        except Exception as e:
            raise TokenVerificationError(f"Failed to construct public key: {e}") from e

        # 토큰 서명 검증
        message, _, encoded_signature = token.rpartition(".")
        try:
            decoded_signature = base64url_decode(encoded_signature.encode("utf-8"))
            is_verified = public_key.verify(message.encode("utf8"), decoded_signature)
        except Exception as e:
            raise TokenVerificationError(f"Signature verification error: {e}") from e
        if not is_verified:
            raise TokenVerificationError("Signature verification failed")

        # 클레임 검증
        try:
            claims = jwt.get_unverified_claims(token)
        except Exception as e:
            raise TokenVerificationError(f"Invalid JWT claims: {e}") from e
        for required in ("exp", "iss"):
            if required not in claims:
                raise TokenVerificationError(f"Missing required claim: '{required}'")
        if self._clock() > claims["exp"]:
            raise TokenVerificationError("Token is expired")
        if claims["iss"] != self.issuer:
            raise TokenVerificationError("Token was not issued by expected provider")

        # ID 토큰은 aud, Access 토큰은 client_id 클레임에 앱 클라이언트 ID가 들어있음
        if claims.get("aud") != self.client_id and claims.get("client_id") != self.client_id:
            raise TokenVerificationError("Token was not issued for this client")
        return claims


def extract_user_attributes(claims: dict) -> dict:
    return {
        attr_name: claims[claim_name]
        for attr_name, claim_name in ATTRIBUTE_MAPPING.items()
        if claim_name in claims
    }


def principal_from_claims(claims: dict) -> Principal:
    return Principal(
        mode=AuthMode.AUTHENTICATED,
        subject=claims.get("sub"),
        username=claims.get("cognito:username", claims.get("sub")),
        claims=claims,
    )


_verifier: Optional[CognitoTokenVerifier] = None


def get_cognito_verifier() -> CognitoTokenVerifier:
    global _verifier
    if _verifier is None:
        _verifier = CognitoTokenVerifier(
            region=settings.AWS_REGION,
            user_pool_id=settings.USER_POOL_ID,
            client_id=settings.COGNITO_CLIENT_ID,
        )
    return _verifier
