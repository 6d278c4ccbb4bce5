"""FileRecord model - file metadata, bytes live at a path derived from it."""
import uuid
from sqlalchemy import String, BigInteger, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from attachkit.config import UploadOptions
from attachkit.models.base import Base, TimestampMixin, UploaderMixin
from attachkit.services.lifecycle import AttachmentMixin, has_attachment


@has_attachment(UploadOptions.from_settings(
    subdirectory="folder",
    content_type_attr="content_type",
    size_attr="size_bytes",
))
class FileRecord(AttachmentMixin, Base, TimestampMixin, UploaderMixin):
    __tablename__ = "files"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    filename: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    folder: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    title: Mapped[str] = mapped_column(String(500), default="")
    content_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    size_bytes: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
