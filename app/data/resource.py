# app/data/resource.py
# Bedrock 연동용 데이터 스키마와 API 권한 설정.
# askBedrock 커스텀 쿼리를 Bedrock 핸들러에 연결하고, 기본 권한은 API 키로 설정합니다.
from app.models.schema import (
    ApiKeyAuthorizationMode,
    AuthMode,
    AuthorizationModes,
    AuthRule,
    CustomType,
    DataResource,
    DataSchema,
    FieldDefinition,
    FieldType,
    HandlerBinding,
    QueryDefinition,
)

BEDROCK_DATA_SOURCE = "bedrockDS"

schema = DataSchema(
    types=(
        # Bedrock 응답을 표현하는 커스텀 타입
        CustomType(
            name="BedrockResponse",
            fields=(
                FieldDefinition(name="body"),   # Bedrock 응답 본문
                FieldDefinition(name="error"),  # Bedrock 에러 메시지
            ),
        ),
    ),
    queries=(
        # 재료 목록으로 Bedrock에 레시피를 물어보는 커스텀 쿼리
        QueryDefinition(
            name="askBedrock",
            arguments=(FieldDefinition(name="ingredients", type=FieldType(is_list=True)),),
            returns="BedrockResponse",
            authorization=(AuthRule(strategy=AuthMode.AUTHENTICATED),),  # 로그인한 사용자만 호출 가능
            handler=HandlerBinding(entry="app.handlers.bedrock:ask_bedrock", data_source=BEDROCK_DATA_SOURCE),
        ),
    ),
)

data = DataResource(
    data_schema=schema,
    authorization_modes=AuthorizationModes(
        default_authorization_mode=AuthMode.API_KEY,
        api_key_authorization_mode=ApiKeyAuthorizationMode(expires_in_days=30),  # API 키 30일 후 만료
    ),
)
