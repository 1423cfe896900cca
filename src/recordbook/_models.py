"""
Record models shared by the stores and the file codec.
"""
import pydantic
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Type, TypeVar

from .exceptions import ValidationError

M = TypeVar("M", bound=BaseModel)


class Book(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    book_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    author: str = Field(min_length=1)
    quantity: int = Field(ge=0)

    def __eq__(self, other: object) -> bool:
        # identity is the id, the other fields are payload
        if isinstance(other, Book):
            return self.book_id == other.book_id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.book_id)

    def __str__(self) -> str:
        return (
            f"Book ID: {self.book_id} | Title: {self.title} | "
            f"Author: {self.author} | Quantity: {self.quantity}"
        )


class Student(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    student_id: int
    name: str = Field(min_length=1)
    age: int = Field(ge=1, le=120)
    course: str = Field(min_length=1)

    def __str__(self) -> str:
        return (
            f"Student ID: {self.student_id}, Name: {self.name}, "
            f"Age: {self.age}, Course: {self.course}"
        )


def _describe(exc: pydantic.ValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(loc) for loc in err["loc"]) or "record"
        parts.append(f"{field}: {err['msg']}")
    return "; ".join(parts)


def validate_record(model: Type[M], data: BaseModel | dict[str, Any]) -> M:
    """
    Build a validated record of type `model`.

    Model instances are dumped and validated again so a record built with
    model_construct can't slip past the field constraints.

    Raises:
        ValidationError: if any field fails its constraint
    """
    if isinstance(data, BaseModel):
        data = data.model_dump()
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(_describe(e)) from e
