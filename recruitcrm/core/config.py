from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database (hosted Postgres connection string in production)
    DATABASE_URL: str = "sqlite:///./recruitcrm.db"

    # Hosted backend (storage API + credentials)
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""

    # Object storage
    STORAGE_BACKEND: str = "local"  # 'local' | 'supabase'
    STORAGE_LOCAL_PATH: str = "./storage"
    CV_BUCKET: str = "cv"

    # Google Gemini API
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-1.5-flash"

    # Transactional email (Resend)
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "Recruit CRM <onboarding@resend.dev>"
    CONTACT_RECIPIENT: str = ""

    # Public base URL used in emailed links and local file URLs
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # JWT Authentication
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 720
    RESET_TOKEN_EXPIRE_MINUTES: int = 60

    # Notifications
    NOTIFICATION_POLL_SECONDS: int = 30

    # Application
    APP_NAME: str = "Recruit CRM"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    BACKEND_CORS_ORIGINS: str = (
        "http://localhost:3000,"
        "http://127.0.0.1:3000"
    )

    # Runtime identifiers (diagnostics only)
    CAPROVER_APP_NAME: str = ""
    CAPROVER_APP_VERSION: str = ""


settings = Settings()
