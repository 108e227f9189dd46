from http import HTTPStatus

from flask import jsonify, make_response, request
from flask_restx import Namespace, Resource, fields

import school_library.models as md
import school_library.p_models as pmd
from school_library.utils.web import dump, get_service, get_translator, parse_body

students_namespace = Namespace("Students", description="Student operations", path="/")

new_student_input = students_namespace.model(
    "NewStudentInput",
    {
        "dni": fields.String(required=True, description="National ID"),
        "nombre": fields.String(required=True, description="First name"),
        "apellido1": fields.String(required=True, description="First surname"),
        "apellido2": fields.String(description="Second surname"),
    },
)

update_student_input = students_namespace.model(
    "UpdateStudentInput",
    {
        "nombre": fields.String(description="First name"),
        "apellido1": fields.String(description="First surname"),
        "apellido2": fields.String(description="Second surname"),
    },
)


@students_namespace.route("/students")
class Students(Resource):
    def get(self):
        students = get_service().list_students()
        return make_response(
            jsonify(students=[dump(pmd.StudentSchema, student) for student in students])
        )

    @students_namespace.expect(new_student_input)
    def post(self):
        data = parse_body(pmd.NewStudentSchema)
        student = get_service().create_student(md.Student(**data.model_dump()))
        return make_response(
            jsonify(message="Student created", student=dump(pmd.StudentSchema, student)),
            HTTPStatus.CREATED,
        )


@students_namespace.route("/students/<string:dni>")
@students_namespace.doc(params={"dni": "Student national ID"})
class Student(Resource):
    def get(self, dni):
        student = get_service().get_student(dni)
        return make_response(jsonify(student=dump(pmd.StudentSchema, student)))

    @students_namespace.expect(update_student_input)
    def put(self, dni):
        data = parse_body(pmd.UpdateStudentSchema)
        student = get_service().update_student(dni, **data.model_dump(exclude_unset=True))
        return make_response(
            jsonify(message="Student updated", student=dump(pmd.StudentSchema, student))
        )

    @students_namespace.doc(params={"policy": "anonymize (default) or purge the loan history"})
    def delete(self, dni):
        if not get_service().delete_student(dni, request.args.get("policy")):
            return make_response(
                jsonify(error=get_translator().get("delete.error")), HTTPStatus.NOT_FOUND
            )
        return make_response(jsonify(message="Student deleted"))
