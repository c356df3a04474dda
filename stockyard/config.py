from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "stockyard"
    LOG_LEVEL: str = "INFO"

    # Seed catalog loaded at startup; empty string means the bundled data/catalog.json
    CATALOG_PATH: str = ""

    # Fully consumed source lots stay visible as zero lots instead of being removed
    ZERO_OUT_CONSUMED: bool = True
    WEIGHT_DECIMALS: int = 2

    class Config:
        env_file = ".env"


settings = Settings()
