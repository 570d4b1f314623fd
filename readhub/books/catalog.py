from chat.exceptions import BookNotFound
from .models import Book


def get_book(book_id: int) -> Book:
    """Existence check used before a book's room is created."""
    book = Book.objects.filter(id=book_id).first()
    if not book:
        raise BookNotFound(f"Book {book_id} does not exist")
    return book
