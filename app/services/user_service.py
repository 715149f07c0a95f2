# app/services/user_service.py

from fastapi.encoders import jsonable_encoder
from app.core.database import USERS_COLLECTION

async def store_cognito_user_info(db, claims: dict, provider: str = "cognito"):
    """
    검증된 Cognito 토큰의 클레임(유저 정보)을 MongoDB에 저장합니다.

    매개변수:
        db: MongoDB 데이터베이스 핸들
        claims: 토큰의 디코딩된 클레임 정보 (예: sub, email, iss, exp 등)
        provider: OAuth 제공자 정보, 기본값은 'cognito'

    반환값:
        데이터베이스에 저장(업데이트 또는 삽입)한 결과
    """
    user_id = claims.get("sub")
    if not user_id:
        raise ValueError("Token claims에 'sub' 필드가 없습니다.")

    user_data = {
        "sub": user_id,
        "username": claims.get("cognito:username"),
        "email": claims.get("email"),
        "issuer": claims.get("iss"),
        "provider": provider,
        "groups": claims.get("cognito:groups", []),
        "claims": claims  # 추가적인 클레임 정보를 함께 저장합니다.
    }

    # JSON 직렬화를 수행합니다.
    data = jsonable_encoder(user_data)

    # 있으면 업데이트, 없으면 새로 삽입합니다.
    return await db[USERS_COLLECTION].update_one({"sub": user_id}, {"$set": data}, upsert=True)


async def get_user(db, sub: str):
    doc = await db[USERS_COLLECTION].find_one({"sub": sub})
    if doc and "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc
