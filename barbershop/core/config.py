from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    STORE_PROVIDER: str = "memory"
    DATABASE_URL: str = "sqlite:///./data/barbershop.db"

    SUPABASE_URL: str | None = None
    SUPABASE_ANON_KEY: str | None = None

    SHOP_TIMEZONE: str = "Europe/Tirane"
    LOCAL_STORAGE_DIR: str = "./data/local"

    PROFILE_FETCH_ATTEMPTS: int = 4
    PROFILE_FETCH_DELAY_SECONDS: float = 0.5

    ADMIN_PRINCIPALS: str = ""

    def admin_principal_ids(self) -> list[str]:
        return [p.strip() for p in self.ADMIN_PRINCIPALS.split(",") if p.strip()]


settings = Settings()
