import pytest
from recordbook import Book, BookStore
from recordbook.exceptions import DuplicateKeyError, NotFoundError, ValidationError
from testdata import make_book, filled_store


def _fields(book: Book) -> tuple:
    return (book.book_id, book.title, book.author, book.quantity)


def test_store_repr():
    assert repr(BookStore()) == "BookStore(library, Book)"


def test_add_and_list_in_order():
    store = BookStore()
    store.add(make_book("B002"))
    store.add(make_book("B001"))
    assert [b.book_id for b in store.items()] == ["B002", "B001"]
    assert store.count() == 2
    assert len(store) == 2


def test_add_from_mapping():
    store = BookStore()
    book = store.add({"book_id": " B001 ", "title": "A", "author": "X", "quantity": 0})
    assert book.book_id == "B001"
    assert store.exists("B001")


def test_add_duplicate():
    store = BookStore()
    store.add(make_book("B001"))
    with pytest.raises(DuplicateKeyError):
        store.add(make_book("B001", title="Other"))
    assert store.count() == 1
    assert store.find_by_id("B001").title == "Title A"


def test_add_invalid():
    store = BookStore()
    with pytest.raises(ValidationError):
        store.add({"book_id": "B001", "title": "", "author": "X", "quantity": 1})
    assert store.count() == 0


def test_add_validation_before_duplicate():
    store = BookStore()
    store.add(make_book("B001"))
    with pytest.raises(ValidationError):
        store.add({"book_id": "B001", "title": "A", "author": "X", "quantity": -1})


def test_items_is_a_snapshot():
    store = filled_store()
    items = store.items()
    items.clear()
    assert store.count() == 3


@pytest.mark.parametrize("book_id", [None, "", "   ", "missing", 1])
def test_find_by_id_absent(book_id):
    store = filled_store()
    assert store.find_by_id(book_id) is None
    assert not store.exists(book_id)
    assert book_id not in store


def test_find_by_id_trims():
    store = filled_store()
    assert store.find_by_id("  B002 ").title == "Data Structures"
    assert "B002" in store


def test_find_by_title_case_insensitive():
    store = filled_store()
    assert [b.book_id for b in store.find_by_title("DATA")] == ["B002"]
    assert [b.book_id for b in store.find_by_title(" a ")] == ["B001", "B002", "B003"]


@pytest.mark.parametrize("text", [None, "", "  "])
def test_find_blank_query(text):
    store = filled_store()
    assert store.find_by_title(text) == []
    assert store.find_by_author(text) == []


def test_find_by_author():
    store = filled_store()
    assert [b.book_id for b in store.find_by_author("jane")] == ["B002"]
    assert store.find_by_author("nobody") == []


def test_scenario_update_changes_id():
    store = BookStore()
    store.add(Book(book_id="B001", title="Title A", author="Auth A", quantity=10))
    assert len(store.find_by_title("title")) == 1

    store.update(
        "B001", {"book_id": "B002", "title": "Title B", "author": "Auth B", "quantity": 4}
    )
    assert store.find_by_id("B001") is None
    assert _fields(store.find_by_id("B002")) == ("B002", "Title B", "Auth B", 4)
    assert store.count() == 1


def test_update_keeps_position():
    store = filled_store()
    store.update("B002", make_book("B009"))
    assert [b.book_id for b in store.items()] == ["B001", "B009", "B003"]


def test_update_same_id_replaces():
    store = filled_store()
    store.update("B001", make_book("B001", quantity=1))
    assert store.find_by_id("B001").quantity == 1
    assert store.count() == 3


@pytest.mark.parametrize("book_id", ["missing", "", None])
def test_update_missing(book_id):
    store = filled_store()
    before = [_fields(b) for b in store.items()]
    with pytest.raises(NotFoundError):
        store.update(book_id, make_book("B100"))
    assert [_fields(b) for b in store.items()] == before


def test_update_collision():
    store = filled_store()
    before = [_fields(b) for b in store.items()]
    with pytest.raises(DuplicateKeyError):
        store.update("B001", make_book("B002"))
    assert [_fields(b) for b in store.items()] == before


def test_update_invalid():
    store = filled_store()
    before = [_fields(b) for b in store.items()]
    with pytest.raises(ValidationError):
        store.update(
            "B001", {"book_id": "B001", "title": "A", "author": "", "quantity": 1}
        )
    assert [_fields(b) for b in store.items()] == before


def test_delete():
    store = filled_store()
    assert store.delete("B002") is True
    assert store.find_by_id("B002") is None
    assert store.count() == 2
    assert store.delete("B002") is False
    assert store.count() == 2


@pytest.mark.parametrize("book_id", [None, "", "missing"])
def test_delete_missing(book_id):
    store = filled_store()
    assert store.delete(book_id) is False
    assert store.count() == 3


def test_low_quantity_and_total():
    store = filled_store()
    assert [b.book_id for b in store.find_low_quantity(5)] == ["B002", "B003"]
    assert store.find_low_quantity(2) == []
    assert store.total_quantity() == 18
    assert BookStore().total_quantity() == 0
