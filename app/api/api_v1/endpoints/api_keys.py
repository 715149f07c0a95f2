# app/api/api_v1/endpoints/api_keys.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_api_key_store, require_authenticated
from app.models.auth import ApiKeyCreate, ApiKeyCreated, ApiKeyInfo, Principal
from app.services.api_key_service import ApiKeyStore

router = APIRouter()


@router.post("/", response_model=ApiKeyCreated, status_code=201)
async def create_api_key(
    key_create: ApiKeyCreate,
    principal: Principal = Depends(require_authenticated),
    store: ApiKeyStore = Depends(get_api_key_store),
):
    """
    호출한 사용자 소유의 새 API 키를 발급합니다. 평문 키는 이 응답에서만 확인할 수 있습니다.
    만료일을 지정하지 않으면 기본 정책(30일)을 따릅니다.
    """
    return await store.create(key_create.description, key_create.expires_in_days, owner_sub=principal.subject)


@router.get("/", response_model=List[ApiKeyInfo])
async def list_api_keys(
    principal: Principal = Depends(require_authenticated),
    store: ApiKeyStore = Depends(get_api_key_store),
):
    return await store.list(owner_sub=principal.subject)


@router.delete("/{key_id}", status_code=204)
async def revoke_api_key(
    key_id: str,
    principal: Principal = Depends(require_authenticated),
    store: ApiKeyStore = Depends(get_api_key_store),
):
    # 다른 사용자의 키는 존재하지 않는 것처럼 404
    if not await store.revoke(key_id, owner_sub=principal.subject):
        raise HTTPException(status_code=404, detail="API key not found")
