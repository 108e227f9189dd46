import logging
from http import HTTPStatus

from flask import current_app, jsonify, make_response
from flask_restx import Namespace, Resource, fields

import school_library.p_models as pmd
from school_library.config import Settings
from school_library.errors import ConnectionConfigError
from school_library.utils import Database
from school_library.utils.web import close_session, get_database, get_translator, parse_body

logger = logging.getLogger(__name__)

connection_namespace = Namespace(
    "Connection", description="Database connection and language settings", path="/"
)

connection_input = connection_namespace.model(
    "ConnectionInput",
    {
        "url": fields.String(required=True, description="SQLAlchemy database URL"),
        "user": fields.String(description="Database user"),
        "password": fields.String(description="Database password"),
    },
)

language_input = connection_namespace.model(
    "LanguageInput",
    {"language": fields.String(required=True, enum=["es", "en"])},
)


def _test(data: pmd.ConnectionSchema) -> None:
    candidate = Database(data.url, data.user, data.password)
    try:
        candidate.test_connection()
    finally:
        candidate.close()


@connection_namespace.route("/connection/test")
class TestConnection(Resource):
    @connection_namespace.expect(connection_input)
    def post(self):
        data = parse_body(pmd.ConnectionSchema)
        try:
            _test(data)
        except ConnectionConfigError as e:
            return make_response(
                jsonify(error=get_translator().get("connection.error"), details=e.message),
                HTTPStatus.BAD_REQUEST,
            )
        return make_response(jsonify(message=get_translator().get("connection.ok")))


@connection_namespace.route("/connection")
class Connection(Resource):
    def get(self):
        database = get_database()
        return make_response(jsonify(url=database.url, user=database.user))

    @connection_namespace.expect(connection_input)
    def post(self):
        """Switches the application to another database and saves the connection data."""
        data = parse_body(pmd.ConnectionSchema)
        _test(data)

        close_session()
        database = get_database()
        database.connect(data.url, data.user, data.password)
        database.create_schema()
        logger.info("Application switched to %s", data.url)

        settings_path = current_app.config.get("SETTINGS_FILE")
        if settings_path:
            settings = Settings.load(settings_path)
            settings.db_url = data.url
            settings.db_user = data.user
            settings.db_password = data.password
            settings.save(settings_path)
        return make_response(jsonify(message=get_translator().get("connection.saved")))


@connection_namespace.route("/language")
class Language(Resource):
    def get(self):
        translator = get_translator()
        return make_response(jsonify(language=translator.language, messages=translator.messages))

    @connection_namespace.expect(language_input)
    def put(self):
        data = parse_body(pmd.LanguageSchema)
        translator = get_translator()
        translator.set_language(data.language)
        return make_response(
            jsonify(language=translator.language, message=translator.get("language.changed"))
        )
