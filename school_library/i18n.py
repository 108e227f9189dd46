import logging
from typing import Optional

from school_library.config import LANGUAGES, Settings
from school_library.errors import ValidationError

logger = logging.getLogger(__name__)

MESSAGES: dict[str, dict[str, str]] = {
    "es": {
        "condition.new": "Nuevo",
        "condition.used-like-new": "Usado nuevo",
        "condition.used-fair": "Usado seminuevo",
        "condition.used-damaged": "Usado estropeado",
        "condition.restored": "Restaurado",
        "connection.ok": "Conexión de prueba exitosa.",
        "connection.error": "Error al probar la conexión.",
        "connection.saved": "Conexión exitosa.",
        "delete.error": "No se pudo eliminar el elemento.",
        "update.error": "No se encontró el elemento a modificar.",
        "language.changed": "Idioma cambiado.",
    },
    "en": {
        "condition.new": "New",
        "condition.used-like-new": "Used - like new",
        "condition.used-fair": "Used - fair",
        "condition.used-damaged": "Used - damaged",
        "condition.restored": "Restored",
        "connection.ok": "Test connection succeeded.",
        "connection.error": "Test connection failed.",
        "connection.saved": "Connected.",
        "delete.error": "The item could not be deleted.",
        "update.error": "The item to update was not found.",
        "language.changed": "Language changed.",
    },
}


class Translator:
    def __init__(self, language: str = "es", settings_path: Optional[str] = None):
        if language not in LANGUAGES:
            language = "es"
        self.language = language
        self.settings_path = settings_path

    @property
    def messages(self) -> dict[str, str]:
        return MESSAGES[self.language]

    def get(self, key: str) -> str:
        """Returns the message for `key`, or ``??? key ???`` when it is missing."""
        return self.messages.get(key, f"??? {key} ???")

    def condition_label(self, condition) -> str:
        return self.get(f"condition.{getattr(condition, 'value', condition)}")

    def set_language(self, language: str) -> None:
        if language not in LANGUAGES:
            raise ValidationError(f"Unsupported language: {language}")
        self.language = language
        if self.settings_path:
            settings = Settings.load(self.settings_path)
            settings.language = language
            settings.save(self.settings_path)
        logger.info("Language set to %s", language)
