from http import HTTPStatus

from flask import jsonify, make_response
from flask_restx import Namespace, Resource, fields

import school_library.models as md
import school_library.p_models as pmd
from school_library.utils.web import dump, get_service, get_translator, parse_body

loans_namespace = Namespace("Loans", description="Loan operations", path="/")

loan_input = loans_namespace.model(
    "LoanInput",
    {
        "dni_alumno": fields.String(required=True, description="Student national ID"),
        "codigo_libro": fields.Integer(required=True, description="Book code"),
        "fecha_prestamo": fields.DateTime(required=True, description="Loan date"),
    },
)

return_input = loans_namespace.model(
    "ReturnInput",
    {
        "estado": fields.String(
            required=True,
            description="Condition of the returned book",
            enum=[condition.value for condition in md.BookCondition],
        ),
        "fecha_devolucion": fields.DateTime(required=True, description="Return date"),
    },
)


@loans_namespace.route("/loans")
class Loans(Resource):
    def get(self):
        loans = get_service().list_loans()
        return make_response(jsonify(loans=[dump(pmd.LoanSchema, loan) for loan in loans]))

    @loans_namespace.expect(loan_input)
    def post(self):
        data = parse_body(pmd.LoanInputSchema)
        loan = get_service().create_loan(data.dni_alumno, data.codigo_libro, data.fecha_prestamo)
        return make_response(
            jsonify(message="Loan created", loan=dump(pmd.LoanSchema, loan)),
            HTTPStatus.CREATED,
        )


@loans_namespace.route("/loans/<int:loan_id>")
@loans_namespace.doc(params={"loan_id": "Loan ID"})
class Loan(Resource):
    def get(self, loan_id):
        loan = get_service().get_loan(loan_id)
        return make_response(jsonify(loan=dump(pmd.LoanSchema, loan)))

    @loans_namespace.expect(loan_input)
    def put(self, loan_id):
        data = parse_body(pmd.LoanInputSchema)
        loan = get_service().update_loan(
            loan_id, data.dni_alumno, data.codigo_libro, data.fecha_prestamo
        )
        return make_response(jsonify(message="Loan updated", loan=dump(pmd.LoanSchema, loan)))

    def delete(self, loan_id):
        if not get_service().delete_loan(loan_id):
            return make_response(
                jsonify(error=get_translator().get("delete.error")), HTTPStatus.NOT_FOUND
            )
        return make_response(jsonify(message="Loan deleted"))


@loans_namespace.route("/loans/<int:loan_id>/return")
@loans_namespace.doc(params={"loan_id": "Loan ID"})
class ReturnLoan(Resource):
    @loans_namespace.expect(return_input)
    def post(self, loan_id):
        data = parse_body(pmd.ReturnLoanSchema)
        history = get_service().return_loan(loan_id, data.estado, data.fecha_devolucion)
        return make_response(
            jsonify(message="Loan returned", history=dump(pmd.LoanHistorySchema, history))
        )
