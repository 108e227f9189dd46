import logging
import random
from datetime import timedelta
from typing import Optional

from faker import Faker
from sqlalchemy.orm import Session

from school_library.lifecycle import LibraryService
from school_library.models import Book, BookCondition, Student

logger = logging.getLogger(__name__)


def populate(
    session: Session,
    students: int = 10,
    books: int = 20,
    loans: int = 5,
    returns: int = 5,
    seed: Optional[int] = None,
) -> LibraryService:
    """
    Fills the database with fake students, books, active loans and returned loans.

    Every row goes through `LibraryService`, so the seeded data obeys the same
    rules as data entered by a user.
    """
    fake = Faker("es_ES")
    rng = random.Random(seed)
    if seed is not None:
        fake.seed_instance(seed)
    service = LibraryService(session)

    for _ in range(students):
        service.create_student(
            Student(
                dni=fake.unique.nif(),
                nombre=fake.first_name(),
                apellido1=fake.last_name(),
                apellido2=rng.choice([None, fake.last_name()]),
            )
        )

    for _ in range(books):
        service.create_book(
            Book(
                titulo=fake.sentence(nb_words=4).rstrip("."),
                autor=fake.name(),
                editorial=fake.company(),
                estado=rng.choice(list(BookCondition)),
            )
        )

    dnis = [student.dni for student in service.list_students()]
    codes = [book.codigo for book in service.available_books()]
    if not dnis:
        return service

    picked = rng.sample(codes, min(loans + returns, len(codes)))
    for i, codigo in enumerate(picked):
        fecha_prestamo = fake.date_time_between(start_date="-60d", end_date="-10d")
        loan = service.create_loan(rng.choice(dnis), codigo, fecha_prestamo)
        if i >= loans:
            service.return_loan(
                loan.id_prestamo,
                rng.choice(list(BookCondition)),
                fecha_prestamo + timedelta(days=rng.randint(1, 9)),
            )

    logger.info(
        "Database populated with %s students, %s books and %s loans",
        students,
        books,
        len(picked),
    )
    return service
