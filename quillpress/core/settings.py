import logging
import os
from functools import lru_cache
from typing import Optional, List

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

try:
    '''
    설정 모듈 최상단에서 반드시 .env를 먼저 로드한 뒤에 os.getenv를 호출하세요.
    '''
    load_dotenv(".env", override=False, encoding="utf-8")
except OSError as e:
    # .env 가 없어도 pydantic-settings가 환경변수로 설정을 채운다.
    logger.warning("load_dotenv error: %s", e)


class Settings(BaseSettings):
    """프로세스 시작 시 한 번만 조립되는 설정 객체.

    get_settings()로 만든 인스턴스를 initialize_app(settings)에 넘기고,
    그 이후로는 app.state.settings 를 통해서만 읽는다. (모듈 곳곳에서 os.getenv 금지)
    """
    APP_ENV: str = "development"
    APP_NAME: str = "quillpress"
    APP_VERSION: str = "0.1.0"
    APP_DESCRIPTION: str = "Article engagement (reactions, ratings, comment likes) and search API"

    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: Optional[str] = None
    ALGORITHM: str = "HS256"

    DATABASE_URL: str = "sqlite+aiosqlite:///./quillpress.db"
    DB_CREATE_ALL: bool = False

    ORIGINS: List[str] = Field(default_factory=list)

    # 평점 허용 범위 (양 끝 포함)
    RATING_MIN: int = 1
    RATING_MAX: int = 5

    PAGE_LIMIT_DEFAULT: int = 10

    # super admin seed: 값이 비어 있으면 seed 하지 않는다.
    SUPER_ADMIN_EMAIL: Optional[str] = None
    SUPER_ADMIN_USERNAME: Optional[str] = None
    SUPER_ADMIN_PASSWORD: Optional[str] = None
    SUPER_ADMIN_NAME: Optional[str] = None
    SUPER_ADMIN_ROLE: str = "super_admin"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def check_rating_range(self):
        if self.RATING_MIN > self.RATING_MAX:
            raise ValueError("RATING_MIN must not be greater than RATING_MAX.")
        if self.PAGE_LIMIT_DEFAULT < 1:
            raise ValueError("PAGE_LIMIT_DEFAULT must be at least 1.")
        return self

    @property
    def super_admin_configured(self) -> bool:
        return all((self.SUPER_ADMIN_EMAIL, self.SUPER_ADMIN_USERNAME, self.SUPER_ADMIN_PASSWORD))


class DevSettings(Settings):
    SECRET_KEY: Optional[str] = "dev-secret-key-change-me"


class ProdSettings(Settings):
    DATABASE_URL: str = Field(..., validation_alias="PROD_DATABASE_URL")

    # 운영에서는 SECRET_KEY 필수
    @model_validator(mode="after")
    def ensure_secret_key(self):
        if not self.SECRET_KEY or len(self.SECRET_KEY) < 16:
            raise ValueError("In production, SECRET_KEY must be set and sufficiently long.")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    app_env = os.getenv("APP_ENV", "development").strip().lower()
    logger.info("loading settings... APP_ENV: %s", app_env)
    if app_env == "production":
        return ProdSettings()
    return DevSettings()


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
