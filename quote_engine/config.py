from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DEFAULT_MARGIN_PERCENT: float = 30.0
    # JSON rate card merged over the built-in rules. Empty = built-in only.
    RULES_FILE: str = ""
    REFERENCE_VOLTAGE: float = 120.0

    class Config:
        env_file = ".env"


settings = Settings()
