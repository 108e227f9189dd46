import logging
from http import HTTPStatus
from typing import Optional

from flask import Flask
from flask_cors import CORS
from flask_restx import Api
from pydantic import ValidationError as PayloadValidationError

from school_library.books import book_namespace
from school_library.config import Config, Settings, get_config
from school_library.connection import connection_namespace
from school_library.errors import ConnectionConfigError, LibraryError
from school_library.history import history_namespace
from school_library.i18n import Translator
from school_library.loans import loans_namespace
from school_library.reports import reports_namespace
from school_library.students import students_namespace
from school_library.utils import Database
from school_library.utils.web import EXTENSION, close_session

logger = logging.getLogger(__name__)


def create_app(config: Optional[Config] = None, database: Optional[Database] = None) -> Flask:
    config = config or get_config()
    app = Flask(__name__)
    CORS(app, origins="*")
    app.config.from_object(config)

    settings = Settings.load(config.SETTINGS_FILE) if config.SETTINGS_FILE else Settings()
    if database is None:
        database = Database.from_config(config, settings)
    try:
        database.create_schema()
    except ConnectionConfigError as e:
        # The connection can still be fixed through /connection
        logger.warning("Database not ready: %s", e.message)

    app.extensions[EXTENSION] = {
        "database": database,
        "translator": Translator(settings.language, config.SETTINGS_FILE),
    }
    app.teardown_appcontext(close_session)

    api = Api(
        app,
        title="School Library",
        description="Students, books, loans and returns of a school library",
    )

    @api.errorhandler(LibraryError)
    def handle_library_error(error):
        return {"error": error.message}, error.status

    @api.errorhandler(PayloadValidationError)
    def handle_invalid_payload(error):
        details = [
            {"field": ".".join(str(part) for part in e["loc"]), "message": e["msg"]}
            for e in error.errors()
        ]
        return {"error": "Invalid payload", "details": details}, HTTPStatus.BAD_REQUEST

    api.add_namespace(connection_namespace, path="")
    api.add_namespace(students_namespace, path="")
    api.add_namespace(book_namespace, path="")
    api.add_namespace(loans_namespace, path="")
    api.add_namespace(history_namespace, path="")
    api.add_namespace(reports_namespace, path="")

    return app
