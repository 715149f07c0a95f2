# app/core/exceptions.py


class SchemaError(Exception):
    """데이터 스키마/권한 정의가 잘못된 경우 (앱 기동 시점에 발생)"""


class TokenVerificationError(Exception):
    """Cognito JWT 검증 실패"""


class ApiKeyError(Exception):
    """API 키가 없거나, 만료되었거나, 폐기된 경우"""


class HandlerContractError(Exception):
    """핸들러 응답이 선언된 반환 타입과 맞지 않는 경우"""

    def __init__(self, query_name: str, detail: str):
        super().__init__(f"{query_name}: {detail}")
        self.query_name = query_name
        self.detail = detail
