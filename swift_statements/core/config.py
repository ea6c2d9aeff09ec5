from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "SWIFT Statements"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Statement files
    # Tried in order when decoding raw statement bytes
    STATEMENT_ENCODINGS: str = "utf-8,latin-1"

    @property
    def statement_encodings_list(self) -> list[str]:
        """Parse STATEMENT_ENCODINGS string into a list of codec names."""
        return [enc.strip() for enc in self.STATEMENT_ENCODINGS.split(",") if enc.strip()]

    # Two-digit years up to and including the pivot are 20xx, later ones 19xx
    CENTURY_PIVOT_YEAR: int = 69

    # Entry dates further than this from the value date belong to the adjacent year
    ENTRY_DATE_WRAP_DAYS: int = 330

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
