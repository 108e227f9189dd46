import base64
import unittest
from http import HTTPStatus

from school_library import create_app
from school_library.config import TestConfig
from school_library.i18n import MESSAGES
from school_library.populate_db import populate
from school_library.tests import LOAN_DATE, RETURN_DATE, fake
from school_library.utils.web import EXTENSION


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.app = create_app(TestConfig)
        self.client = self.app.test_client()
        self.database = self.app.extensions[EXTENSION]["database"]

    def tearDown(self):
        self.database.drop_schema()
        self.database.close()

    def post_student(self, **kwargs):
        data = {
            "dni": fake.unique.bothify("########?").upper(),
            "nombre": fake.first_name(),
            "apellido1": fake.last_name(),
        }
        data.update(kwargs)
        return self.client.post("/students", json=data)

    def post_book(self, **kwargs):
        data = {"titulo": fake.sentence(3).rstrip("."), "autor": fake.name()}
        data.update(kwargs)
        return self.client.post("/books", json=data)

    def post_loan(self, dni, codigo):
        data = {
            "dni_alumno": dni,
            "codigo_libro": codigo,
            "fecha_prestamo": LOAN_DATE.isoformat(),
        }
        return self.client.post("/loans", json=data)

    def test_students(self):
        response = self.client.get("/students")
        self.assertEqual(response.status_code, HTTPStatus.OK)
        self.assertEqual(response.json["students"], [])

        response = self.post_student(dni="12345678Z", nombre="Ana", apellido1="Ruiz")
        self.assertEqual(response.status_code, HTTPStatus.CREATED)
        self.assertEqual(response.json["student"]["full_name"], "Ana Ruiz")

        response = self.post_student(dni="12345678Z")
        self.assertEqual(response.status_code, HTTPStatus.CONFLICT)
        self.assertIn("already exists", response.json["error"])

        response = self.client.post("/students", json={"dni": "1"})
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)

        response = self.post_student(dni="ANONYMOUS")
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)

        response = self.client.put("/students/12345678Z", json={"apellido2": "Gil"})
        self.assertEqual(response.status_code, HTTPStatus.OK)
        self.assertEqual(response.json["student"]["full_name"], "Ana Ruiz Gil")

        response = self.client.get("/students/12345678Z")
        self.assertEqual(response.json["student"]["apellido2"], "Gil")

        response = self.client.get("/students/nobody")
        self.assertEqual(response.status_code, HTTPStatus.NOT_FOUND)

    def test_delete_student(self):
        dni = self.post_student().json["student"]["dni"]
        codigo = self.post_book().json["book"]["codigo"]
        loan_id = self.post_loan(dni, codigo).json["loan"]["id_prestamo"]
        self.client.post(
            f"/loans/{loan_id}/return",
            json={"estado": "new", "fecha_devolucion": RETURN_DATE.isoformat()},
        )

        response = self.client.delete(f"/students/{dni}?policy=shred")
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)

        response = self.client.delete(f"/students/{dni}?policy=purge")
        self.assertEqual(response.status_code, HTTPStatus.OK)
        self.assertEqual(self.client.get("/history").json["history"], [])

        response = self.client.delete(f"/students/{dni}")
        self.assertEqual(response.status_code, HTTPStatus.NOT_FOUND)
        self.assertEqual(response.json["error"], MESSAGES["es"]["delete.error"])

    def test_books(self):
        cover = base64.b64encode(b"\x89PNG").decode()
        response = self.post_book(titulo="Dune", estado="used-fair", portada=cover)
        self.assertEqual(response.status_code, HTTPStatus.CREATED)
        book = response.json["book"]
        self.assertTrue(book["codigo"] > 0)
        self.assertEqual(book["estado"], "used-fair")
        self.assertEqual(book["portada"], cover)

        response = self.post_book(estado="burnt")
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)

        response = self.client.put(f"/books/{book['codigo']}", json={"estado": "restored"})
        self.assertEqual(response.status_code, HTTPStatus.OK)
        self.assertEqual(response.json["book"]["estado"], "restored")
        self.assertEqual(response.json["book"]["titulo"], "Dune")

        response = self.client.post(f"/books/{book['codigo']}/withdraw")
        self.assertEqual(response.status_code, HTTPStatus.OK)
        self.assertEqual(self.client.get("/books").json["books"], [])
        books = self.client.get("/books?include_withdrawn=true").json["books"]
        self.assertTrue(books[0]["baja"])

        for field in ("baja", "estado", "titulo"):
            response = self.client.put(f"/books/{book['codigo']}", json={field: None})
            self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)
            self.assertEqual(response.json["details"][0]["field"], field)
        stored = self.client.get(f"/books/{book['codigo']}").json["book"]
        self.assertTrue(stored["baja"])
        self.assertEqual(stored["estado"], "restored")

        response = self.client.post("/books/9999/withdraw")
        self.assertEqual(response.status_code, HTTPStatus.NOT_FOUND)

        response = self.client.delete(f"/books/{book['codigo']}")
        self.assertEqual(response.status_code, HTTPStatus.OK)
        response = self.client.get(f"/books/{book['codigo']}")
        self.assertEqual(response.status_code, HTTPStatus.NOT_FOUND)

    def test_loans(self):
        dni = self.post_student().json["student"]["dni"]
        codigo = self.post_book(titulo="Dune").json["book"]["codigo"]
        other = self.post_book().json["book"]["codigo"]

        response = self.post_loan(dni, codigo)
        self.assertEqual(response.status_code, HTTPStatus.CREATED)
        loan = response.json["loan"]
        self.assertEqual(loan["dni_alumno"], dni)
        self.assertTrue(loan["book"].startswith("Dune"))

        response = self.post_loan(dni, codigo)
        self.assertEqual(response.status_code, HTTPStatus.CONFLICT)

        response = self.post_loan("nobody", other)
        self.assertEqual(response.status_code, HTTPStatus.NOT_FOUND)

        available = self.client.get("/books/available").json["books"]
        self.assertEqual([book["codigo"] for book in available], [other])

        response = self.client.get("/loans")
        loan_ids = [entry["id_prestamo"] for entry in response.json["loans"]]
        self.assertEqual(loan_ids, [loan["id_prestamo"]])

        response = self.client.post(
            f"/loans/{loan['id_prestamo']}/return",
            json={"estado": "used-like-new", "fecha_devolucion": RETURN_DATE.isoformat()},
        )
        self.assertEqual(response.status_code, HTTPStatus.OK)
        self.assertEqual(response.json["history"]["id_prestamo"], loan["id_prestamo"])

        self.assertEqual(self.client.get("/loans").json["loans"], [])
        book = self.client.get(f"/books/{codigo}").json["book"]
        self.assertEqual(book["estado"], "used-like-new")
        self.assertEqual(len(self.client.get("/history").json["history"]), 1)

        response = self.client.get(f"/loans/{loan['id_prestamo']}")
        self.assertEqual(response.status_code, HTTPStatus.NOT_FOUND)

    def test_return_validation(self):
        dni = self.post_student().json["student"]["dni"]
        codigo = self.post_book().json["book"]["codigo"]
        loan_id = self.post_loan(dni, codigo).json["loan"]["id_prestamo"]

        response = self.client.post(
            f"/loans/{loan_id}/return",
            json={"estado": "burnt", "fecha_devolucion": RETURN_DATE.isoformat()},
        )
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)
        self.assertEqual(response.json["details"][0]["field"], "estado")

        response = self.client.post(
            f"/loans/{loan_id}/return",
            json={"estado": "new", "fecha_devolucion": "2020-01-01T00:00:00"},
        )
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)
        self.assertEqual(len(self.client.get("/loans").json["loans"]), 1)

    def test_history(self):
        dni = self.post_student().json["student"]["dni"]
        codigo = self.post_book().json["book"]["codigo"]
        loan_id = self.post_loan(dni, codigo).json["loan"]["id_prestamo"]
        self.client.post(
            f"/loans/{loan_id}/return",
            json={"estado": "new", "fecha_devolucion": RETURN_DATE.isoformat()},
        )

        response = self.client.put(
            f"/history/{loan_id}",
            json={"fecha_devolucion": "2024-03-20T09:00:00", "estado": "used-damaged"},
        )
        self.assertEqual(response.status_code, HTTPStatus.OK)
        self.assertEqual(response.json["history"]["fecha_devolucion"], "2024-03-20T09:00:00")
        book = self.client.get(f"/books/{codigo}").json["book"]
        self.assertEqual(book["estado"], "used-damaged")

        response = self.client.delete(f"/history/{loan_id}")
        self.assertEqual(response.status_code, HTTPStatus.OK)
        response = self.client.delete(f"/history/{loan_id}")
        self.assertEqual(response.status_code, HTTPStatus.NOT_FOUND)

    def test_reports(self):
        with self.app.app_context():
            session = self.database.session()
            populate(session, students=4, books=6, loans=2, returns=2, seed=3)
            session.close()

        response = self.client.get("/reports")
        self.assertIn("estadisticas_prestamos", response.json["reports"])

        response = self.client.get("/reports/estadisticas_prestamos")
        self.assertEqual(response.status_code, HTTPStatus.OK)
        self.assertEqual(response.json["summary"]["total_returns"], 2)

        response = self.client.get("/reports/listado_libros?include_withdrawn=true")
        self.assertEqual(response.json["parameters"], {"include_withdrawn": "true"})
        self.assertEqual(len(response.json["rows"]), 6)

        response = self.client.get("/reports/inventario")
        self.assertEqual(response.status_code, HTTPStatus.NOT_FOUND)

    def test_language_and_conditions(self):
        response = self.client.get("/language")
        self.assertEqual(response.json["language"], "es")

        response = self.client.put("/language", json={"language": "en"})
        self.assertEqual(response.status_code, HTTPStatus.OK)
        self.assertEqual(response.json["message"], MESSAGES["en"]["language.changed"])

        conditions = self.client.get("/conditions").json["conditions"]
        self.assertEqual(len(conditions), 5)
        self.assertIn({"code": "restored", "label": "Restored"}, conditions)

        response = self.client.put("/language", json={"language": "fr"})
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)

    def test_connection(self):
        response = self.client.post("/connection/test", json={"url": "sqlite://"})
        self.assertEqual(response.status_code, HTTPStatus.OK)
        self.assertEqual(response.json["message"], MESSAGES["es"]["connection.ok"])

        response = self.client.post("/connection/test", json={"url": "not a url"})
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)
        self.assertEqual(response.json["error"], MESSAGES["es"]["connection.error"])

        response = self.client.post("/connection", json={"url": "nosuchdriver://localhost/db"})
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)
        url = self.client.get("/connection").json["url"]
        self.assertEqual(url, TestConfig.SQLALCHEMY_DATABASE_URI)

        self.post_student()
        response = self.client.post("/connection", json={"url": "sqlite://"})
        self.assertEqual(response.status_code, HTTPStatus.OK)
        self.assertEqual(self.client.get("/connection").json["url"], "sqlite://")
        self.assertEqual(self.client.get("/students").json["students"], [])
