from ._models import Book, Student  # noqa
from .stores import BookStore, StudentStore  # noqa
from .exceptions import (  # noqa
    RecordbookError,
    ValidationError,
    DuplicateKeyError,
    NotFoundError,
    PersistenceError,
)
