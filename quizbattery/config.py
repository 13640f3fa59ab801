"""Application settings and validation."""

import os


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    ENV: str
    JWT_SECRET: str
    JWT_ALGORITHM: str
    ALLOW_INSECURE_JWT: bool
    ALLOW_DEV_CORS: bool
    DATABASE_URL: str
    DEFAULT_BATTERY_COUNT: int
    VERSION_BUMP_ON_TEXT_EDIT: bool
    VERSION_BUMP_ON_REMOVAL: bool

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.JWT_SECRET = os.getenv("JWT_SECRET", "change_me_for_prod")
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.ALLOW_INSECURE_JWT = _env_flag("ALLOW_INSECURE_JWT", "false")
        self.ALLOW_DEV_CORS = _env_flag("ALLOW_DEV_CORS", "true")
        self.DATABASE_URL = os.getenv("DATABASE_URL", "")
        self.DEFAULT_BATTERY_COUNT = int(os.getenv("DEFAULT_BATTERY_COUNT", "10"))
        # Text-only edits keep in-flight batteries valid unless this is switched on.
        self.VERSION_BUMP_ON_TEXT_EDIT = _env_flag("VERSION_BUMP_ON_TEXT_EDIT", "false")
        self.VERSION_BUMP_ON_REMOVAL = _env_flag("VERSION_BUMP_ON_REMOVAL", "true")
        self._validate()

    def _validate(self):
        if self.ENV != "dev" and not self.ALLOW_INSECURE_JWT and self.JWT_SECRET == "change_me_for_prod":
            raise RuntimeError("JWT_SECRET must be set to a non-default value in non-dev environments")
        if self.DEFAULT_BATTERY_COUNT < 1:
            raise RuntimeError("DEFAULT_BATTERY_COUNT must be >= 1")


settings = Settings()
