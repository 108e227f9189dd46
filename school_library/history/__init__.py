from http import HTTPStatus

from flask import jsonify, make_response
from flask_restx import Namespace, Resource, fields

import school_library.models as md
import school_library.p_models as pmd
from school_library.utils.web import dump, get_service, get_translator, parse_body

history_namespace = Namespace("History", description="Returned loans", path="/")

update_history_input = history_namespace.model(
    "UpdateHistoryInput",
    {
        "fecha_devolucion": fields.DateTime(required=True, description="Return date"),
        "estado": fields.String(
            description="Corrected condition of the book",
            enum=[condition.value for condition in md.BookCondition],
        ),
    },
)


@history_namespace.route("/history")
class History(Resource):
    def get(self):
        history = get_service().list_history()
        return make_response(
            jsonify(history=[dump(pmd.LoanHistorySchema, entry) for entry in history])
        )


@history_namespace.route("/history/<int:loan_id>")
@history_namespace.doc(params={"loan_id": "Loan ID"})
class HistoryEntry(Resource):
    def get(self, loan_id):
        entry = get_service().get_history(loan_id)
        return make_response(jsonify(history=dump(pmd.LoanHistorySchema, entry)))

    @history_namespace.expect(update_history_input)
    def put(self, loan_id):
        data = parse_body(pmd.UpdateHistorySchema)
        entry = get_service().update_history(loan_id, data.fecha_devolucion, data.estado)
        return make_response(
            jsonify(message="Loan history updated", history=dump(pmd.LoanHistorySchema, entry))
        )

    def delete(self, loan_id):
        if not get_service().delete_history(loan_id):
            return make_response(
                jsonify(error=get_translator().get("delete.error")), HTTPStatus.NOT_FOUND
            )
        return make_response(jsonify(message="Loan history deleted"))
