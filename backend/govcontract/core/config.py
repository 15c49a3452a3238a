from pydantic_settings import BaseSettings
from pydantic import AnyUrl
from functools import lru_cache


class Settings(BaseSettings):
    # core
    ENV: str = "dev"
    API_PREFIX: str = "/api"
    SERVICE_NAME: str = "govcontract_api"

    # database & redis
    DATABASE_URL: AnyUrl
    # Keep this as a plain string so redis:// URLs are always accepted
    REDIS_URL: str

    # auth provider (Supabase GoTrue)
    SUPABASE_URL: str = "http://localhost:54321"
    SUPABASE_ANON_KEY: str | None = None
    SESSION_COOKIE_NAME: str = "sb-access-token"
    LOGIN_PATH: str = "/login"
    # Comma separated list of emails that get admin access regardless of role
    ADMIN_EMAILS: str = ""

    # llm
    OPENROUTER_API_KEY: str | None = None
    OPENAI_API_KEY: str | None = None
    LLM_MODEL: str = "gpt-4o"
    # Hard cap on concurrent LLM calls per process
    LLM_MAX_CONCURRENCY: int = 4

    # payments
    STRIPE_SECRET_KEY: str | None = None
    STRIPE_WEBHOOK_SECRET: str | None = None
    STRIPE_PRICE_STARTER_MONTHLY: str = "price_starter_monthly"
    STRIPE_PRICE_STARTER_ANNUAL: str = "price_starter_annual"
    STRIPE_PRICE_PROFESSIONAL_MONTHLY: str = "price_professional_monthly"
    STRIPE_PRICE_PROFESSIONAL_ANNUAL: str = "price_professional_annual"
    STRIPE_PRICE_ENTERPRISE_MONTHLY: str = "price_enterprise_monthly"
    STRIPE_PRICE_ENTERPRISE_ANNUAL: str = "price_enterprise_annual"

    # government data APIs
    USASPENDING_BASE_URL: str = "https://api.usaspending.gov/api/v2"
    USASPENDING_TIMEOUT_SECONDS: int = 30
    GRANTS_GOV_BASE_URL: str = "https://api.grants.gov/v1/api"
    GRANTS_GOV_TIMEOUT_SECONDS: int = 30
    SAM_API_KEY: str | None = None
    SAM_BASE_URL: str = "https://api.sam.gov/opportunities/v2"
    SAM_TIMEOUT_SECONDS: int = 30
    GOV_SEARCH_MAX_RESULTS: int = 25
    GOV_CACHE_TTL_SECONDS: int = 3600

    # web
    FRONTEND_ORIGIN: str | None = None
    # Explicit debug-only switch for wide-open CORS in non-prod envs
    CORS_ALLOW_ALL_ORIGINS: bool = False

    # data retention (in days)
    AI_CACHE_RETENTION_DAYS: int = 30

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def admin_emails(self) -> set[str]:
        return {
            e.strip().lower()
            for e in self.ADMIN_EMAILS.split(",")
            if e.strip()
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()
