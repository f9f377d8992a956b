"""Import all models so SQLAlchemy metadata knows about them."""
from projecthub.models.base import Base
from projecthub.models.file_record import FileRecord

__all__ = ["Base", "FileRecord"]
