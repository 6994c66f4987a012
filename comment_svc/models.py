from __future__ import annotations

from sqlalchemy import BigInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from comment_svc.database import Base


# ---------------------------------------------------------------------------
# Comment
# ---------------------------------------------------------------------------
class CommentRecord(Base):
    __tablename__ = "comments"

    # md5 hex digest assigned by the store, never by the database
    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    video_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    # Stored as text so reads return exactly what the write path rendered.
    date_created: Mapped[str] = mapped_column(String(64), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    likes: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    dislikes: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
