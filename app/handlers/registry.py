# app/handlers/registry.py
import importlib
from typing import Any, Callable, Dict, Optional

from app.core.exceptions import SchemaError
from app.data.resource import BEDROCK_DATA_SOURCE
from app.models.schema import HandlerBinding
from app.services.bedrock_service import BedrockDataSource

QueryHandler = Callable[[dict, Any], Any]


def resolve_handler(binding: HandlerBinding) -> QueryHandler:
    """'패키지.모듈:함수' 형태의 entry 를 import 해서 핸들러 함수를 반환합니다."""
    module_name, _, attr = binding.entry.partition(":")
    if not module_name or not attr:
        raise SchemaError(f"Handler entry must look like 'module:function', got '{binding.entry}'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise SchemaError(f"Cannot import handler module '{module_name}': {e}") from e
    handler = getattr(module, attr, None)
    if not callable(handler):
        raise SchemaError(f"Handler '{binding.entry}' is not callable")
    return handler


class DataSourceRegistry:
    """이름 → 데이터 소스 객체. 라우팅 계층에 주입되며 테스트에서는 대역으로 교체합니다."""

    def __init__(self, sources: Optional[Dict[str, Any]] = None):
        self._sources = dict(sources or {})

    def register(self, name: str, source: Any) -> None:
        self._sources[name] = source

    def get(self, name: str) -> Any:
        try:
            return self._sources[name]
        except KeyError:
            raise SchemaError(f"Unknown data source: {name}") from None

    def __contains__(self, name: str) -> bool:
        return name in self._sources


def default_data_sources() -> DataSourceRegistry:
    return DataSourceRegistry({BEDROCK_DATA_SOURCE: BedrockDataSource()})
