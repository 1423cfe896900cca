from types import SimpleNamespace
from typing import Callable, Iterable, NoReturn, Optional
import typer
from rich.console import Console
from rich.table import Table
from typing_extensions import Annotated

from ._models import Book, Student
from .config import Config, load_config
from .exceptions import RecordbookError
from .seeds import add_sample_books
from .stores import BookStore, StudentStore

app = typer.Typer()
students_app = typer.Typer(help="Manage the student roster.")
app.add_typer(students_app, name="students")

console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    data_file: Optional[str] = typer.Option(None, help="Student data file."),
    log_level: Optional[str] = typer.Option(None, help="Logging level."),
) -> None:
    overrides = {}
    if data_file:
        overrides["data_file"] = data_file
    if log_level:
        overrides["log_level"] = log_level
    ctx.obj = SimpleNamespace(config=load_config(**overrides))


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED)
    raise typer.Exit(1)


def _student_table(students: Iterable[Student]) -> Table:
    table = Table()
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Age", justify="right")
    table.add_column("Course")
    for s in students:
        table.add_row(str(s.student_id), s.name, str(s.age), s.course)
    return table


def _book_table(books: Iterable[Book]) -> Table:
    table = Table()
    table.add_column("#", justify="right")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("Qty", justify="right")
    for n, b in enumerate(books, 1):
        table.add_row(str(n), b.book_id, b.title, b.author, str(b.quantity))
    return table


# section: students ###########################################################


@students_app.callback()
def students_main(ctx: typer.Context) -> None:
    config = ctx.obj.config
    ctx.obj.students = StudentStore(
        config.data_file, atomic_writes=config.atomic_writes
    )


@students_app.command("add")
def add_student(ctx: typer.Context, name: str, age: int, course: str) -> None:
    try:
        student = ctx.obj.students.add(name, age, course)
    except RecordbookError as e:
        _fail(f"Error: {e}")
    typer.secho(f"Added {student}", fg=typer.colors.GREEN)


@students_app.command("list")
def list_students(ctx: typer.Context) -> None:
    students = ctx.obj.students.items()
    if not students:
        typer.echo("No students found.")
        return
    console.print(_student_table(students))
    typer.echo(f"Total Students: {len(students)}")


@students_app.command("show")
def show_student(ctx: typer.Context, student_id: str) -> None:
    student = ctx.obj.students.find_by_id(student_id)
    if student is None:
        _fail(f"Student with ID {student_id} not found.")
    console.print(_student_table([student]))


@students_app.command("update")
def update_student(
    ctx: typer.Context,
    student_id: str,
    name: Annotated[Optional[str], typer.Option(help="New name.")] = None,
    age: Annotated[Optional[int], typer.Option(help="New age.")] = None,
    course: Annotated[Optional[str], typer.Option(help="New course.")] = None,
) -> None:
    try:
        student = ctx.obj.students.update(
            student_id, name=name, age=age, course=course
        )
    except RecordbookError as e:
        _fail(f"Error: {e}")
    typer.secho(f"Updated {student}", fg=typer.colors.GREEN)


@students_app.command("delete")
def delete_student(
    ctx: typer.Context,
    student_id: str,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    store = ctx.obj.students
    if not store.exists(student_id):
        _fail(f"Student with ID {student_id} not found.")
    if not yes and not typer.confirm(f"Delete student {student_id}?"):
        typer.echo("Deletion cancelled.")
        return
    try:
        store.delete(student_id)
    except RecordbookError as e:
        _fail(f"Error: {e}")
    typer.secho(f"Deleted student {student_id}", fg=typer.colors.GREEN)


# section: library ############################################################

MENU = """
MAIN MENU
---------
1. Add New Book
2. View All Books
3. Search Book
4. Update Book Details
5. Delete Book
6. View Library Statistics
7. Add Sample Books
8. Exit"""


def _add_book(store: BookStore, config: Config) -> None:
    book_id = typer.prompt("Book ID")
    if store.exists(book_id):
        typer.secho(f"Book with ID '{book_id}' already exists!", fg=typer.colors.RED)
        return
    book = store.add(
        {
            "book_id": book_id,
            "title": typer.prompt("Title"),
            "author": typer.prompt("Author"),
            "quantity": typer.prompt("Quantity", type=int),
        }
    )
    typer.secho(f"Added {book}", fg=typer.colors.GREEN)


def _list_books(store: BookStore, config: Config) -> None:
    books = store.items()
    if not books:
        typer.echo("No books found in the library.")
        return
    console.print(_book_table(books))
    typer.echo(f"Total Books: {len(books)}")


def _search_books(store: BookStore, config: Config) -> None:
    by = typer.prompt("Search by (1=ID, 2=Title, 3=Author)", type=int)
    if by == 1:
        book_id = typer.prompt("Book ID")
        book = store.find_by_id(book_id)
        if book is None:
            typer.echo(f"Book with ID '{book_id}' not found.")
        else:
            typer.echo(f"Found: {book}")
        return
    if by not in (2, 3):
        typer.secho("Invalid search option!", fg=typer.colors.RED)
        return
    text = typer.prompt("Title contains" if by == 2 else "Author contains")
    books = store.find_by_title(text) if by == 2 else store.find_by_author(text)
    if not books:
        typer.echo(f"No books found matching '{text}'.")
        return
    typer.echo(f"Found {len(books)} book(s):")
    console.print(_book_table(books))


def _update_book(store: BookStore, config: Config) -> None:
    book_id = typer.prompt("Book ID to update")
    current = store.find_by_id(book_id)
    if current is None:
        typer.echo(f"Book with ID '{book_id}' not found.")
        return
    typer.echo(f"Current: {current}")
    book = store.update(
        book_id,
        {
            "book_id": typer.prompt("New Book ID", default=current.book_id),
            "title": typer.prompt("New Title", default=current.title),
            "author": typer.prompt("New Author", default=current.author),
            "quantity": typer.prompt(
                "New Quantity", default=current.quantity, type=int
            ),
        },
    )
    typer.secho(f"Updated {book}", fg=typer.colors.GREEN)


def _delete_book(store: BookStore, config: Config) -> None:
    book_id = typer.prompt("Book ID to delete")
    book = store.find_by_id(book_id)
    if book is None:
        typer.echo(f"Book with ID '{book_id}' not found.")
        return
    typer.echo(str(book))
    if typer.confirm("Are you sure you want to delete this book?"):
        store.delete(book_id)
        typer.secho("Book deleted.", fg=typer.colors.GREEN)
    else:
        typer.echo("Deletion cancelled.")


def _show_stats(store: BookStore, config: Config) -> None:
    typer.echo(f"Total Books: {store.count()}")
    if not store.count():
        return
    typer.echo(f"Total Quantity: {store.total_quantity()}")
    threshold = config.low_stock_threshold
    low = store.find_low_quantity(threshold)
    if low:
        typer.echo(f"Low quantity (<= {threshold}): {len(low)}")
        for book in low:
            typer.echo(f"  - {book.title} ({book.quantity} copies)")


def _add_samples(store: BookStore, config: Config) -> None:
    report = add_sample_books(store)
    typer.secho(
        f"Added {len(report.added)} sample books, skipped {len(report.skipped)}",
        fg=typer.colors.GREEN,
    )


_ACTIONS: dict[int, Callable[[BookStore, Config], None]] = {
    1: _add_book,
    2: _list_books,
    3: _search_books,
    4: _update_book,
    5: _delete_book,
    6: _show_stats,
    7: _add_samples,
}


@app.command()
def library(
    ctx: typer.Context,
    samples: bool = typer.Option(False, "--samples", help="Start with sample books."),
) -> None:
    """
    Run an interactive, in-memory library session.
    """
    config = ctx.obj.config
    store = BookStore()
    if samples:
        add_sample_books(store)

    while True:
        typer.echo(MENU)
        choice = typer.prompt("Enter your choice (1-8)", type=int)
        if choice == 8:
            typer.echo("Goodbye!")
            return
        action = _ACTIONS.get(choice)
        if action is None:
            typer.secho("Invalid choice!", fg=typer.colors.RED)
            continue
        try:
            action(store, config)
        except RecordbookError as e:
            typer.secho(f"Error: {e}", fg=typer.colors.RED)


if __name__ == "__main__":
    app()
