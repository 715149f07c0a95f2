# app/tests/test_auth_service.py
import time

import pytest

from app.core.exceptions import TokenVerificationError
from app.models.schema import AuthMode
from app.services.auth_service import CognitoTokenVerifier, extract_user_attributes, principal_from_claims
from conftest import CLIENT_ID, ISSUER, JWKS, REGION, USER_POOL_ID, make_token


class TestCognitoTokenVerifier:
    def test_valid_id_token(self, verifier):
        claims = verifier.verify(make_token())

        assert claims["sub"] == "user-123"
        assert claims["iss"] == ISSUER

    def test_access_token_with_client_id_claim(self, verifier):
        token = make_token(aud=None, client_id=CLIENT_ID, token_use="access")
        assert verifier.verify(token)["client_id"] == CLIENT_ID

    def test_expired_token(self, verifier):
        with pytest.raises(TokenVerificationError, match="expired"):
            verifier.verify(make_token(exp=int(time.time()) - 10))

    def test_wrong_issuer(self, verifier):
        token = make_token(iss="https://cognito-idp.us-east-1.amazonaws.com/other-pool")
        with pytest.raises(TokenVerificationError, match="expected provider"):
            verifier.verify(token)

    def test_wrong_audience(self, verifier):
        with pytest.raises(TokenVerificationError, match="this client"):
            verifier.verify(make_token(aud="someone-else"))

    def test_bad_signature(self, verifier):
        with pytest.raises(TokenVerificationError, match="Signature"):
            verifier.verify(make_token(secret="not-the-pool-secret"))

    def test_unknown_kid(self, verifier):
        with pytest.raises(TokenVerificationError, match="Public key not found"):
            verifier.verify(make_token(kid="rotated-away"))

    def test_garbage_token(self, verifier):
        with pytest.raises(TokenVerificationError):
            verifier.verify("not-a-jwt")

    def test_missing_exp(self, verifier):
        with pytest.raises(TokenVerificationError, match="Missing required claim"):
            verifier.verify(make_token(exp=None))


class TestJwksRefresh:
    @staticmethod
    def make_verifier(keys, fetched):
        def fetch_keys(url):
            fetched.append(url)
            return JWKS
        return CognitoTokenVerifier(region=REGION, user_pool_id=USER_POOL_ID, client_id=CLIENT_ID,
                                    keys=keys, fetch_keys=fetch_keys)

    def test_keys_fetched_lazily_once(self):
        fetched = []
        verifier = self.make_verifier(None, fetched)

        verifier.verify(make_token())
        verifier.verify(make_token())

        assert fetched == [f"{ISSUER}/.well-known/jwks.json"]

    def test_rotated_key_triggers_single_refetch(self):
        fetched = []
        stale = [dict(JWKS[0], kid="retired-kid")]
        verifier = self.make_verifier(stale, fetched)

        assert verifier.verify(make_token())["sub"] == "user-123"
        assert len(fetched) == 1

        verifier.verify(make_token())
        assert len(fetched) == 1

    def test_unknown_kid_after_refetch(self):
        fetched = []
        verifier = self.make_verifier(JWKS, fetched)

        with pytest.raises(TokenVerificationError, match="Public key not found"):
            verifier.verify(make_token(kid="never-issued"))
        assert len(fetched) == 1

    def test_fetch_failure(self):
        def broken(url):
            raise OSError("connection refused")
        verifier = CognitoTokenVerifier(region=REGION, user_pool_id=USER_POOL_ID, client_id=CLIENT_ID,
                                        fetch_keys=broken)

        with pytest.raises(TokenVerificationError, match="Failed to fetch JWKS"):
            verifier.verify(make_token())


def test_principal_from_claims():
    principal = principal_from_claims({"sub": "abc", "cognito:username": "chef", "cognito:groups": ["cooks"]})

    assert principal.mode == AuthMode.AUTHENTICATED
    assert principal.subject == "abc"
    assert principal.username == "chef"


def test_extract_user_attributes():
    attributes = extract_user_attributes({"sub": "abc", "email": "a@b.c", "cognito:groups": ["cooks"], "exp": 1})
    assert attributes == {"sub": "abc", "email": "a@b.c", "groups": ["cooks"]}
