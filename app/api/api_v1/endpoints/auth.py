# app/api/api_v1/endpoints/auth.py
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, RedirectResponse
from authlib.integrations.starlette_client import OAuth, OAuthError
from authlib.integrations.base_client import OAuthError as BaseOAuthError

from app.api.deps import get_db, get_token_verifier, require_authenticated
from app.core.config import settings
from app.core.exceptions import TokenVerificationError
from app.core.logging import get_logger
from app.models.auth import Principal, TokenVerifyRequest
from app.models.user import CognitoUser
from app.services.auth_service import CognitoTokenVerifier, extract_user_attributes
from app.services.user_service import get_user, store_cognito_user_info

logger = get_logger(__name__)

router = APIRouter()

SESSION_KEYS = ["user_info", "id_token", "access_token", "refresh_token", "oauth_provider", "oauth_state"]

# OAuth 클라이언트 등록 (AWS Cognito)
oauth = OAuth()
oauth.register(
    name="cognito",
    client_id=settings.COGNITO_CLIENT_ID,
    client_secret=settings.COGNITO_CLIENT_SECRET,
    server_metadata_url=(
        f"https://cognito-idp.{settings.AWS_REGION}.amazonaws.com/"
        f"{settings.USER_POOL_ID}/.well-known/openid-configuration"
    ),
    client_kwargs={"scope": "openid profile email"}
)


def _store_session(request: Request, id_token: str, claims: dict, access_token=None, refresh_token=None):
    request.session["id_token"] = id_token
    if access_token:
        request.session["access_token"] = access_token
    if refresh_token:
        request.session["refresh_token"] = refresh_token
    request.session["oauth_provider"] = "cognito"
    request.session["user_info"] = {
        "username": claims.get("cognito:username", claims.get("sub")),
        "attributes": extract_user_attributes(claims)
    }


@router.get("/login")
async def login(request: Request):
    """
    사용자를 Cognito 호스팅 로그인 페이지로 리다이렉트합니다.
    """
    client = oauth.create_client("cognito")
    return await client.authorize_redirect(request, settings.COGNITO_REDIRECT_URI, prompt="login")


@router.get("/authorize")
async def authorize(
    request: Request,
    verifier: CognitoTokenVerifier = Depends(get_token_verifier),
    db=Depends(get_db),
):
    """
    Cognito로부터 받은 인증 코드를 토큰으로 교환하고 세션에 저장합니다.
    """
    try:
        client = oauth.create_client("cognito")
        token = await client.authorize_access_token(request)
    except (OAuthError, BaseOAuthError) as error:
        raise HTTPException(status_code=400, detail=f"Authentication error: {str(error)}")

    id_token = token.get("id_token")
    if not id_token:
        raise HTTPException(status_code=400, detail="ID token not found in response")

    try:
        claims = await run_in_threadpool(verifier.verify, id_token)
    except TokenVerificationError as e:
        raise HTTPException(status_code=401, detail=f"Token verification failed: {str(e)}")

    _store_session(request, id_token, claims, token.get("access_token"), token.get("refresh_token"))
    await store_cognito_user_info(db, claims)
    return RedirectResponse(url="/auth/")


@router.get("/logout")
async def logout(request: Request):
    # 제거 대상 키 목록 (기존 키와 _state_로 시작하는 키 모두 포함)
    keys_to_remove = [
        key for key in request.session.keys()
        if key in SESSION_KEYS or key.startswith("_state_")
    ]
    for key in keys_to_remove:
        request.session.pop(key)

    return RedirectResponse(url="/auth/")


@router.get("/")
async def index(request: Request):
    """
    현재 로그인 상태에 따라 사용자 정보를 반환하거나 로그인 안내 메시지를 출력합니다.
    """
    user_info = request.session.get("user_info")
    if request.session.get("id_token") and user_info:
        return JSONResponse({
            "message": f"Logged in as {user_info['username']}",
            "user": user_info,
        })

    return JSONResponse({"message": "Hello, please login!"})


@router.post("/verify-token")
async def verify_token(
    request: Request,
    token_data: TokenVerifyRequest,
    verifier: CognitoTokenVerifier = Depends(get_token_verifier),
    db=Depends(get_db),
):
    """
    프론트엔드에서 받은 토큰을 검증하고 유효한 경우 세션에 저장합니다.
    """
    if token_data.provider != "cognito":
        raise HTTPException(status_code=400, detail="Unsupported provider")

    try:
        claims = await run_in_threadpool(verifier.verify, token_data.id_token)
    except TokenVerificationError as e:
        logger.info("Token verification failed: %s", e)
        raise HTTPException(status_code=401, detail=f"Token verification failed: {str(e)}")

    _store_session(request, token_data.id_token, claims, token_data.access_token, token_data.refresh_token)
    await store_cognito_user_info(db, claims)

    return JSONResponse({"status": "success", "message": "Token verified successfully"})


@router.get("/me", response_model=CognitoUser)
async def me(principal: Principal = Depends(require_authenticated), db=Depends(get_db)):
    """로그인한 사용자의 저장된 프로필을 반환합니다."""
    doc = await get_user(db, principal.subject)
    if not doc:
        raise HTTPException(status_code=404, detail="User not found")
    return CognitoUser(**doc)
