"""
애플리케이션 설정
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # 데이터베이스
    DATABASE_URL: str = "sqlite:///./data/declarations.db"

    # 환경
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # 파일 저장
    DATA_DIR: str = "./data"

    # 페이지네이션
    CUSTOMER_PAGE_SIZE: int = 15
    DECLARATION_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # "id in [...]" lookups are capped by the store
    CUSTOMER_LOOKUP_CHUNK: int = 30
    UNKNOWN_CUSTOMER_NAME: str = "Bilinmeyen Müşteri"

    # 클라이언트
    API_BASE_URL: str = "http://localhost:5000/api"
    DECLARATION_TYPES_FILE: str = "./data/declaration_types.json"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
