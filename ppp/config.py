from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./invoices.db"

    # Auth
    JWT_SECRET: str = ""  # REQUIRED in production, auth fails loudly if missing at auth time
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_EXPIRE_MINUTES: int = 60
    JWT_REFRESH_EXPIRE_DAYS: int = 30

    # Invoice defaults, used when a user has no company settings yet
    DEFAULT_FUEL_SURCHARGE: float = 15.0
    DEFAULT_COMPANY_NAME: str = "Professional Towing"
    DEFAULT_COMPANY_SUBTITLE: str = "Heavy Duty Recovery Services"
    DEFAULT_COMPANY_LOGO: str = "🚛"
    DEFAULT_INVOICE_FOOTER: str = "Thank you for your business!\nPayment due within 30 days"

    # Local uploads (photos, logos)
    UPLOAD_DIR: str = "uploads"

    # Cloudflare R2 is optional, local uploads/ used when unset
    CLOUDFLARE_R2_ACCOUNT_ID: str = ""
    CLOUDFLARE_R2_ACCESS_KEY_ID: str = ""
    CLOUDFLARE_R2_SECRET_ACCESS_KEY: str = ""
    CLOUDFLARE_R2_BUCKET: str = "ppp-invoices"

    class Config:
        env_file = ".env"


settings = Settings()
