"""Shared pytest fixtures for attachkit tests."""

from dataclasses import replace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from attachkit.models import Base, FileRecord
from attachkit.services.payloads import UploadedPayload


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest.fixture
def upload_root(tmp_path, monkeypatch):
    """Point FileRecord uploads at a throwaway root with default limits."""
    options = replace(
        FileRecord.__upload_options__,
        root=tmp_path,
        directory="public/uploads/files",
        public_root=None,
        accepted_content=frozenset(),
        min_size=0,
        max_size=4 * 1024 * 1024,
        file_mode=0o644,
    )
    monkeypatch.setattr(FileRecord, "__upload_options__", options)
    return tmp_path


@pytest.fixture
def base_dir(upload_root):
    """Base upload directory for FileRecord (root/public/uploads/files)."""
    return upload_root / "public" / "uploads" / "files"


@pytest.fixture
def configure_uploads(upload_root, monkeypatch):
    """Override individual FileRecord upload options for one test."""
    def configure(**overrides):
        options = replace(FileRecord.__upload_options__, **overrides)
        monkeypatch.setattr(FileRecord, "__upload_options__", options)
        return options
    return configure


# ============================================================================
# Payload Fixtures
# ============================================================================

@pytest.fixture
def make_upload():
    """Build an in-memory upload."""
    def make(data=b"hello world", filename="Report.PDF", content_type="application/pdf"):
        return UploadedPayload.from_bytes(data, filename, content_type)
    return make


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def engine():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine, upload_root):
    """Sync session; mapper events fire the same way as under AsyncSession."""
    with Session(engine, expire_on_commit=False) as session:
        yield session
