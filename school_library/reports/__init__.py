from flask import jsonify, make_response, request
from flask_restx import Namespace, Resource

from school_library.reports.generator import ReportGenerator
from school_library.utils.web import get_session

reports_namespace = Namespace("Reports", description="Report data", path="/")


@reports_namespace.route("/reports")
class Reports(Resource):
    def get(self):
        return make_response(jsonify(reports=sorted(ReportGenerator(get_session()).reports)))


@reports_namespace.route("/reports/<string:name>")
@reports_namespace.doc(params={"name": "Report name"})
class Report(Resource):
    def get(self, name):
        report = ReportGenerator(get_session()).generate(name, request.args.to_dict())
        return make_response(jsonify(report))
