# app/models/schema.py
"""
데이터 API의 스키마 & 권한 정의(descriptor) 모델.

모든 모델은 frozen 이며, 앱 기동 시 한 번 만들어진 뒤 라우팅 계층에 그대로 전달됩니다.
동작(라우터 생성, SDL 렌더링 등)은 app/services/schema_service.py 에 있습니다.
"""
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.exceptions import SchemaError

API_KEY_MIN_EXPIRY_DAYS = 1
API_KEY_MAX_EXPIRY_DAYS = 365


class ScalarType(str, Enum):
    STRING = "String"
    INT = "Int"
    FLOAT = "Float"
    BOOLEAN = "Boolean"
    ID = "ID"


class AuthMode(str, Enum):
    API_KEY = "apiKey"
    AUTHENTICATED = "authenticated"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class FieldType(_Frozen):
    """필드/인자 타입. a.string() 은 FieldType(), a.string().array() 는 FieldType(is_list=True)"""
    scalar: ScalarType = ScalarType.STRING
    is_list: bool = False
    item_required: bool = False  # [String!]
    required: bool = False


class FieldDefinition(_Frozen):
    name: str
    type: FieldType = FieldType()


class CustomType(_Frozen):
    """특정 쿼리의 응답용으로 정의하는 이름 있는 타입 (영속 레코드 아님)"""
    name: str
    fields: Tuple[FieldDefinition, ...]


class AuthRule(_Frozen):
    strategy: AuthMode


class HandlerBinding(_Frozen):
    """
    entry: "패키지.모듈:함수" 형태의 핸들러 진입점
    data_source: 핸들러에 주입할 데이터 소스 이름
    """
    entry: str
    data_source: str


class QueryDefinition(_Frozen):
    name: str
    arguments: Tuple[FieldDefinition, ...] = ()
    returns: str
    authorization: Tuple[AuthRule, ...] = ()
    handler: HandlerBinding


class DataSchema(_Frozen):
    types: Tuple[CustomType, ...] = ()
    queries: Tuple[QueryDefinition, ...] = ()

    @model_validator(mode="after")
    def check_references(self):
        type_names = [t.name for t in self.types]
        if len(type_names) != len(set(type_names)):
            raise SchemaError(f"Duplicate custom type names: {type_names}")
        query_names = [q.name for q in self.queries]
        if len(query_names) != len(set(query_names)):
            raise SchemaError(f"Duplicate query names: {query_names}")
        for query in self.queries:
            if query.returns not in type_names:
                raise SchemaError(f"Query '{query.name}' returns unknown type '{query.returns}'")
        return self

    def get_type(self, name: str) -> CustomType:
        for custom_type in self.types:
            if custom_type.name == name:
                return custom_type
        raise SchemaError(f"Unknown custom type: {name}")

    def get_query(self, name: str) -> QueryDefinition:
        for query in self.queries:
            if query.name == name:
                return query
        raise SchemaError(f"Unknown query: {name}")


class ApiKeyAuthorizationMode(_Frozen):
    expires_in_days: int = 7

    @field_validator("expires_in_days")
    @classmethod
    def check_range(cls, value: int) -> int:
        if not API_KEY_MIN_EXPIRY_DAYS <= value <= API_KEY_MAX_EXPIRY_DAYS:
            raise SchemaError(
                f"API key expiry must be between {API_KEY_MIN_EXPIRY_DAYS} "
                f"and {API_KEY_MAX_EXPIRY_DAYS} days, got {value}"
            )
        return value


class AuthorizationModes(_Frozen):
    default_authorization_mode: AuthMode = AuthMode.API_KEY
    api_key_authorization_mode: Optional[ApiKeyAuthorizationMode] = Field(default_factory=ApiKeyAuthorizationMode)


class DataResource(_Frozen):
    data_schema: DataSchema
    authorization_modes: AuthorizationModes = AuthorizationModes()

    def rules_for(self, query: QueryDefinition) -> Tuple[AuthRule, ...]:
        """쿼리 자체 권한 규칙이 없으면 기본 권한 모드를 적용합니다."""
        if query.authorization:
            return query.authorization
        return (AuthRule(strategy=self.authorization_modes.default_authorization_mode),)
