from flask import current_app, g, request
from sqlalchemy.orm import Session

from school_library.i18n import Translator
from school_library.lifecycle import LibraryService
from school_library.utils import Database

EXTENSION = "school_library"


def get_database() -> Database:
    return current_app.extensions[EXTENSION]["database"]


def get_translator() -> Translator:
    return current_app.extensions[EXTENSION]["translator"]


def get_session() -> Session:
    """One session per request, closed on app context teardown."""
    if "db_session" not in g:
        g.db_session = get_database().session()
    return g.db_session


def close_session(exception=None):
    session = g.pop("db_session", None)
    if session is not None:
        session.close()


def get_service() -> LibraryService:
    return LibraryService(get_session(), current_app.config["STUDENT_HISTORY_POLICY"])


def parse_body(schema):
    return schema.model_validate(request.get_json(silent=True) or {})


def dump(schema, obj) -> dict:
    return schema.model_validate(obj).model_dump(mode="json")
