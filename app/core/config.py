from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """App settings loaded from environment variables (.env)."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "컨테이너 DAMAGE 확인 시스템"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # SECURITY
    SECRET_KEY: str = "CHANGE_ME"
    COOKIE_SECURE: bool = False   # set True behind HTTPS
    COOKIE_SAMESITE: str = "lax"
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 12  # 12h

    # CORS
    CORS_ALLOW_ORIGINS: str = "*"  # "*" or "https://a.com,https://b.com"
    CORS_ALLOW_CREDENTIALS: bool = False

    # DATABASE / CACHE
    DATABASE_DSN: str = "sqlite:///./damage_reports.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    REDIS_URL: str = "redis://127.0.0.1:6379/0"

    # UPLOADS
    UPLOAD_DIR: str = "./uploads"
    MAX_UPLOAD_MB: int = 5
    ALLOWED_PHOTO_TYPES: str = "image/jpeg,image/png,image/webp"

    # CERTIFICATE HEADER / FOOTER
    COMPANY_NAME: str = "(株)天 一 國 際 物 流"
    COMPANY_TAGLINE: str = "수입에서 통관하여 배송까지 천일국제물류에서 책임집니다"
    COMPANY_ADDRESS: str = "경기도 평택시 포승읍 평택항로 95"
    COMPANY_CONTACT: str = "TEL: 031-683-7040 | FAX: 031-683-7044"
    COMPANY_URL: str = "www.chunilkor.co.kr"
    CERTIFICATE_FOOTER: str = "본 확인서는 당사 천일국제물류에서 발행한 비 공식 문서이며, 단지 확인용으로 사용합니다."

    # SAMPLE DATA (for local testing)
    AUTO_SEED_SAMPLE: bool = False

    def cors_origins(self) -> list[str]:
        s = (self.CORS_ALLOW_ORIGINS or "").strip()
        if not s or s == "*":
            return ["*"]
        return [x.strip() for x in s.split(",") if x.strip()]

    def photo_types(self) -> set[str]:
        return {x.strip().lower() for x in (self.ALLOWED_PHOTO_TYPES or "").split(",") if x.strip()}


settings = Settings()
