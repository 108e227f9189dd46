import school_library.models as md
from school_library.errors import ReportNotFoundError
from school_library.populate_db import populate
from school_library.reports.generator import ReportGenerator
from school_library.tests import RETURN_DATE, LibraryTestCase


class ReportTestCase(LibraryTestCase):
    def setUp(self):
        super().setUp()
        self.generator = ReportGenerator(self.session)

    def test_unknown_report(self):
        with self.assertRaises(ReportNotFoundError):
            self.generator.generate("inventario")

    def test_students_report(self):
        self.new_student(nombre="Zoe", apellido1="Alba")
        self.new_student(nombre="Ana", apellido1="Zamora")
        report = self.generator.generate("reporte_alumnos")
        self.assertEqual(report["name"], "reporte_alumnos")
        self.assertEqual([row["apellido1"] for row in report["rows"]], ["Alba", "Zamora"])
        self.assertEqual(report["summary"], {"students": 2})

    def test_books_report(self):
        self.new_book(titulo="B", portada=b"cover")
        withdrawn = self.new_book(titulo="A")
        self.service.withdraw_book(withdrawn.codigo)

        report = self.generator.generate("listado_libros")
        self.assertEqual([row["titulo"] for row in report["rows"]], ["B"])
        self.assertNotIn("portada", report["rows"][0])

        report = self.generator.generate("listado_libros", {"include_withdrawn": "true"})
        self.assertEqual([row["titulo"] for row in report["rows"]], ["A", "B"])
        self.assertEqual(report["summary"], {"books": 2, "withdrawn": 1})
        self.assertEqual(report["parameters"], {"include_withdrawn": "true"})

    def test_loans_report(self):
        student = self.new_student(nombre="Ana", apellido1="Ruiz")
        loan = self.new_loan(student=student)
        report = self.generator.generate("prestamo_informe")
        self.assertEqual(len(report["rows"]), 1)
        row = report["rows"][0]
        self.assertEqual(row["id_prestamo"], loan.id_prestamo)
        self.assertEqual(row["alumno"], "Ana Ruiz")
        self.assertEqual(row["fecha_prestamo"], loan.fecha_prestamo.isoformat())

    def test_statistics_report(self):
        student = self.new_student()
        book = self.new_book()
        for _ in range(2):
            loan = self.new_loan(student=student, book=book)
            self.service.return_loan(loan.id_prestamo, md.BookCondition.USED_FAIR, RETURN_DATE)
        self.service.delete_student(student.dni)

        report = self.generator.generate("estadisticas_prestamos")
        self.assertEqual(
            report["rows"], [{"codigo_libro": book.codigo, "titulo": book.titulo, "loans": 2}]
        )
        self.assertEqual(report["summary"]["total_returns"], 2)
        self.assertEqual(report["summary"]["anonymized_returns"], 2)
        self.assertEqual(report["summary"]["average_loan_hours"], 337.5)

    def test_empty_statistics(self):
        report = self.generator.generate("estadisticas_prestamos")
        self.assertEqual(report["rows"], [])
        self.assertIsNone(report["summary"]["average_loan_hours"])


class PopulateTestCase(LibraryTestCase):
    def test_populate(self):
        service = populate(self.session, students=6, books=8, loans=3, returns=2, seed=7)
        self.assertEqual(len(service.list_students()), 6)
        self.assertEqual(len(service.list_books()), 8)
        self.assertEqual(len(service.list_loans()), 3)
        self.assertEqual(len(service.list_history()), 2)
        self.assertEqual(len(service.available_books()), 5)

    def test_populate_twice(self):
        populate(self.session, students=6, books=8, loans=3, returns=2, seed=1)
        service = populate(self.session, students=6, books=8, loans=3, returns=2, seed=2)
        self.assertEqual(len(service.list_students()), 12)
        self.assertEqual(len(service.list_books()), 16)
        self.assertEqual(len(service.list_loans()), 6)
        self.assertEqual(len(service.list_history()), 4)
