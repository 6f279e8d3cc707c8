from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from blog.core.errors import ValidationError
from blog.db.base import Base


class User(Base):
    """A registered author. Only the password hash is ever stored."""

    __tablename__ = "users"
    # Ids of deleted users are never handed out again
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    display_name: Mapped[str] = mapped_column("name", String, nullable=False, default="")
    password_hash: Mapped[str] = mapped_column("password", String, nullable=False)

    def validate(self) -> None:
        if not self.username:
            raise ValidationError("Username", "empty")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
