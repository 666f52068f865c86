import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    API_KEY: str = os.getenv("API_KEY", "")
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")

    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    RQ_QUEUE_NAME: str = os.getenv("RQ_QUEUE_NAME", "notifications")

    # Copy used in the greeting
    ASSISTANT_NAME: str = os.getenv("ASSISTANT_NAME", "Davi")
    BRAND_NAME: str = os.getenv("BRAND_NAME", "Unimed")

    # Company registry lookup (CNPJ). The normalized 14 digits are appended to the base URL.
    LOOKUP_BASE_URL: str = os.getenv("LOOKUP_BASE_URL", "https://brasilapi.com.br/api/cnpj/v1")
    LOOKUP_TIMEOUT_SEC: float = float(os.getenv("LOOKUP_TIMEOUT_SEC", "8.0"))

    # Lead records
    LEAD_KEY_PREFIX: str = os.getenv("LEAD_KEY_PREFIX", "lead:")
    # Contact key derived from the phone when no e-mail was collected: "<digits>@<domain>"
    PLACEHOLDER_CONTACT_DOMAIN: str = os.getenv("PLACEHOLDER_CONTACT_DOMAIN", "whatsapp.cliente")

    # Completion notice delivery
    # Modes:
    # - "http": POST the notice payload inline from the web process
    # - "rq": queue a job; an rq worker performs the POST
    NOTIFY_MODE: str = os.getenv("NOTIFY_MODE", "http").lower()
    NOTIFY_WEBHOOK_URL: str = os.getenv("NOTIFY_WEBHOOK_URL", "")
    NOTIFY_TIMEOUT_SEC: float = float(os.getenv("NOTIFY_TIMEOUT_SEC", "5.0"))
    NOTIFY_RETRY_DELAY_SEC: float = float(os.getenv("NOTIFY_RETRY_DELAY_SEC", "3.0"))
    # Pause between the final record update and the notice send
    FINALIZE_SETTLE_SEC: float = float(os.getenv("FINALIZE_SETTLE_SEC", "1.0"))

    # Presentational pause before each assistant prompt (0 disables)
    TYPING_DELAY_SEC: float = float(os.getenv("TYPING_DELAY_SEC", "0"))

    # In-process session registry
    SESSION_IDLE_TTL_SEC: int = int(os.getenv("SESSION_IDLE_TTL_SEC", "3600"))
    MAX_SESSIONS: int = int(os.getenv("MAX_SESSIONS", "5000"))

    # Security & Privacy
    ENABLE_PII_REDACTION: bool = os.getenv("ENABLE_PII_REDACTION", "true").lower() == "true"
    ADMIN_RBAC_ENABLED: bool = os.getenv("ADMIN_RBAC_ENABLED", "true").lower() == "true"
    ADMIN_API_KEY: str = os.getenv("ADMIN_API_KEY", "")

settings = Settings()
