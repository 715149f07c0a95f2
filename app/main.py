# app/main.py
import uvicorn
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware
from app.api.api_v1.endpoints import api_keys, auth, data
from app.core.config import settings
from app.data.resource import data as data_resource

app = FastAPI(title=settings.PROJECT_NAME)

app.add_middleware(SessionMiddleware, secret_key=settings.SESSION_SECRET_KEY)
app.add_middleware(CORSMiddleware, allow_origins=settings.CORS_ALLOW_ORIGINS, allow_methods=["*"], allow_headers=["*"])

# 엔드포인트 등록
app.include_router(data.build_router(data_resource), prefix="/data", tags=["Data"])
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(api_keys.router, prefix="/api-keys", tags=["API Keys"])

@app.get("/")
def root():
    return {"message": settings.PROJECT_NAME}

# 애플리케이션 실행
if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True     # 코드 변경 시 자동으로 서버 재시작
    )
