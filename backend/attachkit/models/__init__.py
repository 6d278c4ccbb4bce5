"""Import all models so SQLAlchemy metadata knows about them."""
from attachkit.models.base import Base
from attachkit.models.file_record import FileRecord

__all__ = ["Base", "FileRecord"]
