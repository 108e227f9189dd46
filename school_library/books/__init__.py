from http import HTTPStatus

from flask import jsonify, make_response, request
from flask_restx import Namespace, Resource, fields

import school_library.models as md
import school_library.p_models as pmd
from school_library.utils.web import dump, get_service, get_translator, parse_body

book_namespace = Namespace("Books", description="Book operations", path="/")

conditions = [condition.value for condition in md.BookCondition]

new_book_input = book_namespace.model(
    "NewBookInput",
    {
        "titulo": fields.String(required=True, description="Title"),
        "autor": fields.String(description="Author"),
        "editorial": fields.String(description="Publisher"),
        "estado": fields.String(description="Condition", enum=conditions),
        "baja": fields.Boolean(description="Withdrawn"),
        "portada": fields.String(description="Cover image, Base64"),
    },
)

update_book_input = book_namespace.model(
    "UpdateBookInput",
    {
        "titulo": fields.String(description="Title"),
        "autor": fields.String(description="Author"),
        "editorial": fields.String(description="Publisher"),
        "estado": fields.String(description="Condition", enum=conditions),
        "baja": fields.Boolean(description="Withdrawn"),
        "portada": fields.String(description="Cover image, Base64"),
    },
)


@book_namespace.route("/conditions")
class Conditions(Resource):
    def get(self):
        translator = get_translator()
        return make_response(
            jsonify(
                conditions=[
                    {"code": condition.value, "label": translator.condition_label(condition)}
                    for condition in md.BookCondition
                ]
            )
        )


@book_namespace.route("/books")
class Books(Resource):
    @book_namespace.doc(params={"include_withdrawn": "true to list withdrawn books too"})
    def get(self):
        include_withdrawn = request.args.get("include_withdrawn", "false") == "true"
        books = get_service().list_books(include_withdrawn=include_withdrawn)
        return make_response(jsonify(books=[dump(pmd.BookSchema, book) for book in books]))

    @book_namespace.expect(new_book_input)
    def post(self):
        data = parse_body(pmd.NewBookSchema)
        book = get_service().create_book(md.Book(**data.model_dump()))
        return make_response(
            jsonify(message="Book created", book=dump(pmd.BookSchema, book)),
            HTTPStatus.CREATED,
        )


@book_namespace.route("/books/available")
class AvailableBooks(Resource):
    def get(self):
        books = get_service().available_books()
        return make_response(jsonify(books=[dump(pmd.BookSchema, book) for book in books]))


@book_namespace.route("/books/<int:codigo>")
@book_namespace.doc(params={"codigo": "Book code"})
class Book(Resource):
    def get(self, codigo):
        book = get_service().get_book(codigo)
        return make_response(jsonify(book=dump(pmd.BookSchema, book)))

    @book_namespace.expect(update_book_input)
    def put(self, codigo):
        data = parse_body(pmd.UpdateBookSchema)
        book = get_service().update_book(codigo, **data.model_dump(exclude_unset=True))
        return make_response(jsonify(message="Book updated", book=dump(pmd.BookSchema, book)))

    def delete(self, codigo):
        if not get_service().delete_book(codigo):
            return make_response(
                jsonify(error=get_translator().get("delete.error")), HTTPStatus.NOT_FOUND
            )
        return make_response(jsonify(message="Book deleted"))


@book_namespace.route("/books/<int:codigo>/withdraw")
@book_namespace.doc(params={"codigo": "Book code"})
class WithdrawBook(Resource):
    def post(self, codigo):
        if not get_service().withdraw_book(codigo):
            return make_response(
                jsonify(error=get_translator().get("update.error")), HTTPStatus.NOT_FOUND
            )
        return make_response(jsonify(message="Book withdrawn"))
