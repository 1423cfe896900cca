from pydantic import BaseModel
from structlog import get_logger

from ._models import Book
from .stores import BookStore

log = get_logger()

SAMPLE_BOOKS = [
    Book(book_id="B001", title="Java Programming", author="John Smith", quantity=10),
    Book(book_id="B002", title="Data Structures", author="Jane Doe", quantity=5),
    Book(book_id="B003", title="Algorithm Design", author="Robert Johnson", quantity=3),
    Book(book_id="B004", title="Web Development", author="Emily Brown", quantity=8),
    Book(book_id="B005", title="Database Systems", author="Michael Wilson", quantity=6),
]


class SampleLoad(BaseModel):
    added: list[str] = []
    skipped: list[str] = []

    def __str__(self) -> str:
        return f"SampleLoad(added={len(self.added)}, skipped={len(self.skipped)})"


def add_sample_books(store: BookStore) -> SampleLoad:
    """
    Add each sample book whose id isn't already in the store.
    """
    report = SampleLoad()
    for book in SAMPLE_BOOKS:
        if store.exists(book.book_id):
            report.skipped.append(book.book_id)
        else:
            store.add(book)
            report.added.append(book.book_id)
    log.info("samples added", store=store.name, added=report.added, skipped=report.skipped)
    return report
