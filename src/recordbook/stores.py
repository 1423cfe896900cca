import abc
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Hashable, Iterator, Type
from pydantic import BaseModel
from structlog import get_logger

from ._models import Book, Student, validate_record
from ._utils import clean_key, int_key
from .codec import DEFAULT_DATA_FILE, load_students, save_students
from .exceptions import (
    DuplicateKeyError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

log = get_logger()

# stands in for the fields an update leaves alone
_FILLER = {"name": "-", "age": 1, "course": "-"}


class Store(abc.ABC):
    """
    An insertion-ordered collection of records keyed by identifier.

    A single dict holds the records, so listing order and id lookup can
    never disagree.
    """

    def __init__(self, name: str, model: Type[BaseModel]):
        self.name = name
        self.model = model
        self._items: dict[Hashable, BaseModel] = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name}, {self.model.__name__})"

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, id: Any) -> bool:
        return self.exists(id)

    @abc.abstractmethod
    def _key(self, id: Any) -> Hashable | None:
        """
        Normalize a caller supplied id, None if it can't name a record.
        """

    def _flush(self) -> None:
        """
        Called after every mutation, stores that persist override this.
        """

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        # restore the previous state if the change can't be flushed
        snapshot = dict(self._items)
        try:
            yield
            self._flush()
        except PersistenceError:
            self._items = snapshot
            raise

    def items(self) -> list[BaseModel]:
        """
        Return a snapshot of all records in insertion order.
        """
        return list(self._items.values())

    def count(self) -> int:
        return len(self._items)

    def exists(self, id: Any) -> bool:
        key = self._key(id)
        return key is not None and key in self._items

    def find_by_id(self, id: Any) -> BaseModel | None:
        key = self._key(id)
        if key is None:
            return None
        return self._items.get(key)

    def delete(self, id: Any) -> bool:
        """
        Remove a record, returning False if there was nothing to remove.
        """
        key = self._key(id)
        if key is None or key not in self._items:
            return False
        with self._mutation():
            del self._items[key]
        log.info("record deleted", store=self.name, id=key)
        return True


class BookStore(Store):
    """
    In-memory library catalogue, discarded when the process ends.
    """

    def __init__(self, name: str = "library"):
        super().__init__(name, Book)

    def _key(self, id: Any) -> str | None:
        return clean_key(id)

    def add(self, book: Book | dict[str, Any]) -> Book:
        """
        Add a book under its own id.

        Raises:
            ValidationError: if a field is invalid (checked first)
            DuplicateKeyError: if the id is already in the catalogue
        """
        book = validate_record(Book, book)
        if book.book_id in self._items:
            raise DuplicateKeyError(f"Book with ID {book.book_id} already exists")
        with self._mutation():
            self._items[book.book_id] = book
        log.info("book added", store=self.name, id=book.book_id)
        return book

    def update(self, book_id: str, book: Book | dict[str, Any]) -> Book:
        """
        Replace the book stored under `book_id`.

        The replacement may carry a new id, in which case it keeps the
        position of the book it replaces.

        Raises:
            NotFoundError: if `book_id` isn't stored
            ValidationError: if the replacement is invalid
            DuplicateKeyError: if the new id belongs to a different book
        """
        key = self._key(book_id)
        if key is None or key not in self._items:
            raise NotFoundError(f"Book with ID {book_id} not found")
        book = validate_record(Book, book)
        new_key = book.book_id
        if new_key != key and new_key in self._items:
            raise DuplicateKeyError(f"Book with ID {new_key} already exists")

        with self._mutation():
            if new_key == key:
                self._items[key] = book
            else:
                self._items = {
                    (new_key if k == key else k): (book if k == key else v)
                    for k, v in self._items.items()
                }
        log.info("book updated", store=self.name, id=key, new_id=new_key)
        return book

    def _search(self, field: str, text: str | None) -> list[Book]:
        if text is None:
            return []
        needle = text.strip().lower()
        if not needle:
            return []
        return [
            book
            for book in self._items.values()
            if needle in getattr(book, field).lower()
        ]

    def find_by_title(self, text: str | None) -> list[Book]:
        """
        Case-insensitive substring match on title, [] for a blank query.
        """
        return self._search("title", text)

    def find_by_author(self, text: str | None) -> list[Book]:
        """
        Case-insensitive substring match on author, [] for a blank query.
        """
        return self._search("author", text)

    def find_low_quantity(self, threshold: int) -> list[Book]:
        return [book for book in self._items.values() if book.quantity <= threshold]

    def total_quantity(self) -> int:
        return sum(book.quantity for book in self._items.values())


class StudentStore(Store):
    """
    Student roster backed by a flat file.

    The file is read when the store is built and rewritten in full after
    every add, update and delete.
    """

    def __init__(
        self,
        path: str | Path = DEFAULT_DATA_FILE,
        *,
        atomic_writes: bool = False,
        name: str = "students",
    ):
        super().__init__(name, Student)
        self.path = Path(path)
        self.atomic_writes = atomic_writes
        self.next_id = 1
        self.reload()

    def _key(self, id: Any) -> int | None:
        return int_key(id)

    def _flush(self) -> None:
        save_students(self.path, self._items.values(), atomic=self.atomic_writes)

    def reload(self) -> None:
        """
        Replace the in-memory roster with the file contents.

        Ids restart from one past the largest id found in the file.
        """
        self._items = {s.student_id: s for s in load_students(self.path)}
        self.next_id = max(self._items, default=0) + 1
        log.info(
            "roster loaded",
            store=self.name,
            path=str(self.path),
            num_items=len(self._items),
            next_id=self.next_id,
        )

    def add(self, name: str, age: int, course: str) -> Student:
        """
        Add a student under the next free id.

        Raises:
            ValidationError: if a field is invalid
            PersistenceError: if the roster can't be saved
        """
        student = validate_record(
            Student,
            {"student_id": self.next_id, "name": name, "age": age, "course": course},
        )
        # ids are consumed even if the write fails, they are never handed out twice
        self.next_id += 1
        with self._mutation():
            self._items[student.student_id] = student
        log.info("student added", store=self.name, id=student.student_id)
        return student

    def update(
        self,
        student_id: int | str,
        *,
        name: str | None = None,
        age: int | None = None,
        course: str | None = None,
    ) -> Student:
        """
        Overwrite the fields that were supplied.

        A blank name or course, or an age that is None or not positive,
        leaves that field unchanged.

        Raises:
            NotFoundError: if `student_id` isn't stored
            ValidationError: if a supplied value is invalid
            PersistenceError: if the roster can't be saved
        """
        key = self._key(student_id)
        if key is None or key not in self._items:
            raise NotFoundError(f"Student with ID {student_id} not found")
        current = self._items[key]

        changes: dict[str, Any] = {}
        if name is not None and not (isinstance(name, str) and not name.strip()):
            changes["name"] = name
        if age is not None:
            parsed = int_key(age)
            if parsed is None:
                raise ValidationError(f"age: Input should be a valid integer: {age!r}")
            if parsed > 0:
                changes["age"] = parsed
        if course is not None and not (isinstance(course, str) and not course.strip()):
            changes["course"] = course
        # only supplied fields are checked, stored values may predate the constraints
        checked = validate_record(Student, {**_FILLER, "student_id": key, **changes})
        student = current.model_copy(
            update={field: getattr(checked, field) for field in changes}
        )

        with self._mutation():
            self._items[key] = student
        log.info("student updated", store=self.name, id=key, fields=sorted(changes))
        return student
