import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values, set_key
from pydantic import BaseModel, field_validator
from sqlalchemy.dialects.mysql import dialect as MysqlDialect
from sqlalchemy.dialects.sqlite import dialect as SqliteDialect

logger = logging.getLogger(__name__)

LANGUAGES = ("es", "en")


class Config:
    DB = "sqlite"
    DIALECT = SqliteDialect
    SQLALCHEMY_DATABASE_URI = "sqlite:///biblioteca.sqlite"
    SQLALCHEMY_ECHO = True
    SETTINGS_FILE = "config.properties"
    DEFAULT_LANGUAGE = "es"
    STUDENT_HISTORY_POLICY = "anonymize"
    DEBUG = True


class DevConfig(Config):
    pass


class MariaDBConfig(Config):
    DB = "mysql"
    DIALECT = MysqlDialect
    SQLALCHEMY_DATABASE_URI = "mysql+pymysql://localhost:3306/biblioteca"


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ECHO = False
    SETTINGS_FILE = None
    DEBUG = False


config_dict: dict[str, Config] = {
    "dev": DevConfig,
    "mariadb": MariaDBConfig,
    "testing": TestConfig,
}


def get_config(name: Optional[str] = None) -> Config:
    return config_dict[name or os.getenv("FLASK_ENV", "dev")]


class Settings(BaseModel):
    """Connection and language settings persisted in a ``key=value`` file.

    Keys are ``db.url``, ``db.user``, ``db.password`` and ``language``, the
    layout of the desktop client's ``config.properties``.
    """

    db_url: Optional[str] = None
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    language: str = Config.DEFAULT_LANGUAGE

    @field_validator("language", mode="before")
    def check_language(cls, value):
        if not value:
            return Config.DEFAULT_LANGUAGE
        if value not in LANGUAGES:
            raise ValueError(f"Unsupported language: {value}")
        return value

    @classmethod
    def load(cls, path) -> "Settings":
        path = Path(path)
        if not path.exists():
            logger.info("Settings file %s not found, using defaults", path)
            return cls()
        values = dotenv_values(path)
        language = values.get("language")
        if language and language not in LANGUAGES:
            logger.warning(
                "Unsupported language %s in %s, using %s",
                language,
                path,
                Config.DEFAULT_LANGUAGE,
            )
            language = None
        return cls(
            db_url=values.get("db.url") or None,
            db_user=values.get("db.user") or None,
            db_password=values.get("db.password") or None,
            language=language,
        )

    def save(self, path) -> None:
        path = Path(path)
        path.touch(exist_ok=True)
        pairs = {
            "db.url": self.db_url,
            "db.user": self.db_user,
            "db.password": self.db_password,
            "language": self.language,
        }
        for key, value in pairs.items():
            set_key(path, key, value or "", quote_mode="auto")
        logger.info("Settings saved to %s", path)
