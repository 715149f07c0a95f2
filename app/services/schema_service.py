# app/services/schema_service.py
"""
스키마 정의(DataResource)로부터 필요한 것들을 만들어내는 함수 모음.

- 쿼리 인자 / 커스텀 타입에 대응하는 pydantic 모델 생성
- 클라이언트 코드 생성을 위한 GraphQL SDL 렌더링
"""
from typing import Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, create_model

from app.models.schema import (
    AuthMode,
    CustomType,
    DataResource,
    DataSchema,
    FieldDefinition,
    FieldType,
    QueryDefinition,
    ScalarType,
)

_PYTHON_TYPES = {
    ScalarType.STRING: str,
    ScalarType.INT: int,
    ScalarType.FLOAT: float,
    ScalarType.BOOLEAN: bool,
    ScalarType.ID: str,
}

# AppSync 권한 디렉티브
_AUTH_DIRECTIVES = {
    AuthMode.API_KEY: "@aws_api_key",
    AuthMode.AUTHENTICATED: "@aws_cognito_user_pools",
}


def _python_type(field_type: FieldType):
    python_type = _PYTHON_TYPES[field_type.scalar]
    if field_type.is_list:
        # [String] 은 null 원소를 허용
        item_type = python_type if field_type.item_required else Optional[python_type]
        python_type = List[item_type]
    return python_type


def _model_fields(fields) -> Dict[str, tuple]:
    model_fields = {}
    for field in fields:
        python_type = _python_type(field.type)
        if field.type.required:
            model_fields[field.name] = (python_type, ...)
        else:
            model_fields[field.name] = (Optional[python_type], None)
    return model_fields


def build_arguments_model(query: QueryDefinition) -> Type[BaseModel]:
    """쿼리 인자 모델. 리스트 인자는 길이에 제한이 없고, 선택 인자는 생략 가능합니다."""
    return create_model(
        f"{query.name[0].upper()}{query.name[1:]}Arguments",
        __config__=ConfigDict(extra="forbid"),
        **_model_fields(query.arguments),
    )


def build_type_model(custom_type: CustomType) -> Type[BaseModel]:
    """커스텀 타입 모델. 선언되지 않은 필드가 있으면 검증에 실패합니다."""
    return create_model(
        custom_type.name,
        __config__=ConfigDict(extra="forbid"),
        **_model_fields(custom_type.fields),
    )


def _render_type(field_type: FieldType) -> str:
    rendered = field_type.scalar.value
    if field_type.is_list:
        if field_type.item_required:
            rendered += "!"
        rendered = f"[{rendered}]"
    if field_type.required:
        rendered += "!"
    return rendered


def _render_field(field: FieldDefinition) -> str:
    return f"{field.name}: {_render_type(field.type)}"


def render_sdl(resource: DataResource) -> str:
    """DataResource 를 GraphQL SDL 문자열로 렌더링합니다."""
    schema: DataSchema = resource.data_schema
    blocks = ["schema {\n  query: Query\n}"]

    for custom_type in schema.types:
        lines = [f"type {custom_type.name} {{"]
        lines.extend(f"  {_render_field(field)}" for field in custom_type.fields)
        lines.append("}")
        blocks.append("\n".join(lines))

    query_lines = ["type Query {"]
    for query in schema.queries:
        signature = query.name
        if query.arguments:
            signature += "(" + ", ".join(_render_field(arg) for arg in query.arguments) + ")"
        directives = " ".join(_AUTH_DIRECTIVES[rule.strategy] for rule in resource.rules_for(query))
        query_lines.append(f"  {signature}: {query.returns} {directives}")
    query_lines.append("}")
    blocks.append("\n".join(query_lines))

    return "\n\n".join(blocks) + "\n"
