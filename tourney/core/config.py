from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    APP_NAME: str = "Tourney Bracket API"
    DATA_DIR: str = "app_data"
    SECRET_KEY: str = "YOUR_SECRET_KEY_HERE"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "TOURNEY_"

settings = Settings()
