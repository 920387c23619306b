from sqlalchemy import Column, String, Integer, Text, Boolean, DateTime, ForeignKey, Enum as SQLEnum, JSON, CheckConstraint
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
import sqlalchemy as sa
from sylvia.database import Base


class ReadingStatus(str, enum.Enum):
    TO_READ = "to_read"
    READING = "reading"
    FINISHED = "finished"


class Profile(Base):
    """App-level user row, keyed by the Supabase auth user id (JWT "sub")."""
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=True)
    username = Column(String, unique=True, index=True, nullable=True)
    avatar_url = Column(String, nullable=True)
    is_public_library = Column(Boolean, nullable=False, default=False)
    is_public_wishlist = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user_books = relationship("UserBook", back_populates="user", cascade="all, delete-orphan")
    lists = relationship("UserList", back_populates="user", cascade="all, delete-orphan")


class Book(Base):
    """Catalog book cached from Google Books; id is the catalog volume id."""
    __tablename__ = "books"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    authors = Column(JSON, nullable=False, default=list)
    cover_url = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    categories = Column(JSON, nullable=False, default=list)
    language = Column(String, nullable=True)
    isbn10 = Column(String, nullable=True, index=True)
    isbn13 = Column(String, nullable=True, index=True)
    published_date = Column(String(10), nullable=True)
    published_year = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user_books = relationship("UserBook", back_populates="book")


class UserBook(Base):
    """A user's relationship to a catalog book (library, wishlist, reading progress, review)."""
    __tablename__ = "user_books"

    user_id = Column(String, ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True)
    book_id = Column(String, ForeignKey("books.id"), primary_key=True)
    in_library = Column(Boolean, nullable=False, default=False)
    in_wishlist = Column(Boolean, nullable=False, default=False)
    reading_status = Column(
        SQLEnum(
            ReadingStatus,
            name="readingstatus",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=True,
    )
    reading_started_at = Column(DateTime(timezone=True), nullable=True)
    reading_finished_at = Column(DateTime(timezone=True), nullable=True)
    pages_total = Column(Integer, nullable=True)
    pages_read = Column(Integer, nullable=True)
    rating = Column(Integer, nullable=True)
    is_public_review = Column(Boolean, nullable=False, default=False)
    public_review = Column(Text, nullable=True)
    personal_note = Column(Text, nullable=True)
    added_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_user_books_rating_range"),
        sa.Index("idx_user_books_user_library", "user_id", "in_library"),
    )

    # Relationships
    user = relationship("Profile", back_populates="user_books")
    book = relationship("Book", back_populates="user_books")


class UserGoal(Base):
    """Monthly reading target for a (user, year, month)."""
    __tablename__ = "user_goals"

    user_id = Column(String, ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True)
    year = Column(Integer, primary_key=True)
    month = Column(Integer, primary_key=True)
    target_books = Column(Integer, nullable=True)
    target_pages = Column(Integer, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("month >= 1 AND month <= 12", name="ck_user_goals_month"),
    )


class UserList(Base):
    __tablename__ = "user_lists"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("Profile", back_populates="lists")
    items = relationship("UserListBook", back_populates="list", cascade="all, delete-orphan")


class UserListBook(Base):
    __tablename__ = "user_list_books"

    list_id = Column(String, ForeignKey("user_lists.id", ondelete="CASCADE"), primary_key=True)
    book_id = Column(String, ForeignKey("books.id"), primary_key=True)
    added_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    list = relationship("UserList", back_populates="items")
    book = relationship("Book")
