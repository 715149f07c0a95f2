# app/api/api_v1/endpoints/data.py
from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ValidationError

from app.api.deps import authorization_guard, get_data_sources
from app.core.exceptions import HandlerContractError
from app.core.logging import get_logger
from app.handlers.registry import DataSourceRegistry, resolve_handler
from app.models.auth import Principal
from app.models.schema import DataResource, QueryDefinition
from app.services.schema_service import build_arguments_model, build_type_model, render_sdl

logger = get_logger(__name__)


def validate_handler_output(query: QueryDefinition, returns_model, output) -> BaseModel:
    """핸들러 응답을 선언된 반환 타입으로 검증합니다."""
    if isinstance(output, BaseModel):
        output = output.model_dump()
    if not isinstance(output, dict):
        raise HandlerContractError(query.name, f"expected an object, got {type(output).__name__}")
    try:
        return returns_model.model_validate(output)
    except ValidationError as e:
        raise HandlerContractError(query.name, str(e)) from e


def _add_query_route(router: APIRouter, resource: DataResource, query: QueryDefinition) -> None:
    arguments_model = build_arguments_model(query)
    returns_model = build_type_model(resource.data_schema.get_type(query.returns))
    handler = resolve_handler(query.handler)
    guard = authorization_guard(resource.rules_for(query))

    async def run_query(
        arguments: arguments_model,
        principal: Principal = Depends(guard),
        data_sources: DataSourceRegistry = Depends(get_data_sources),
    ):
        data_source = data_sources.get(query.handler.data_source)
        logger.info("Query %s called by %s", query.name, principal.username or principal.api_key_id)
        output = await run_in_threadpool(handler, arguments.model_dump(), data_source)
        try:
            return validate_handler_output(query, returns_model, output)
        except HandlerContractError as e:
            logger.error("Handler contract violation: %s", e)
            raise HTTPException(status_code=502, detail=f"Handler response does not match {query.returns}")

    router.add_api_route(
        f"/queries/{query.name}",
        run_query,
        methods=["POST"],
        response_model=returns_model,
        name=query.name,
        summary=f"{query.name} query",
    )


def build_router(resource: DataResource) -> APIRouter:
    """
    DataResource 에 선언된 쿼리마다 POST /queries/{name} 엔드포인트를 만들고,
    클라이언트 코드 생성을 위한 스키마 조회 엔드포인트를 추가합니다.
    """
    router = APIRouter()
    for query in resource.data_schema.queries:
        _add_query_route(router, resource, query)

    @router.get("/schema", response_class=PlainTextResponse)
    def get_schema_sdl():
        return render_sdl(resource)

    @router.get("/schema.json")
    def get_schema_json():
        return resource.model_dump(mode="json")

    return router
