import logging
import unittest
from datetime import datetime

from faker import Faker

import school_library.models as md
from school_library.config import TestConfig
from school_library.lifecycle import LibraryService
from school_library.utils import Database

fake = Faker()
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

LOAN_DATE = datetime(2024, 3, 1, 10, 30)
RETURN_DATE = datetime(2024, 3, 15, 12, 0)


class LibraryTestCase(unittest.TestCase):
    """Fresh in-memory database and service for every test."""

    def setUp(self):
        self.database = Database(TestConfig.SQLALCHEMY_DATABASE_URI)
        self.database.create_schema()
        self.session = self.database.session()
        self.service = LibraryService(self.session)

    def tearDown(self):
        self.session.close()
        self.database.drop_schema()
        self.database.close()

    def fresh_session(self):
        """Closes the working session so reads come from the database, not the identity map."""
        self.session.close()
        return self.database.session()

    def new_student(self, **kwargs) -> md.Student:
        data = {
            "dni": fake.unique.bothify("########?").upper(),
            "nombre": fake.first_name(),
            "apellido1": fake.last_name(),
            "apellido2": fake.last_name(),
        }
        data.update(kwargs)
        return self.service.create_student(md.Student(**data))

    def new_book(self, **kwargs) -> md.Book:
        data = {
            "titulo": fake.sentence(3).rstrip("."),
            "autor": fake.name(),
            "editorial": fake.company()[:100],
        }
        data.update(kwargs)
        return self.service.create_book(md.Book(**data))

    def new_loan(self, student=None, book=None, fecha_prestamo=LOAN_DATE) -> md.Loan:
        student = student or self.new_student()
        book = book or self.new_book()
        return self.service.create_loan(student.dni, book.codigo, fecha_prestamo)
