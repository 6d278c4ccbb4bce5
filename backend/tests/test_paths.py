"""Tests for upload options and path resolution."""

from types import SimpleNamespace

import pytest

from attachkit.config import UploadOptions
from attachkit.services.paths import public_path, resolve_path, subdirectory_segment


@pytest.fixture
def options(tmp_path):
    return UploadOptions(root=tmp_path, directory="public/uploads/documents", subdirectory="folder")


def record(**attrs):
    attrs.setdefault("filename", "a.txt")
    attrs.setdefault("folder", "")
    return SimpleNamespace(**attrs)


class TestUploadOptions:

    def test_bind_fills_table_name(self, tmp_path):
        options = UploadOptions(root=tmp_path).bind("files")

        assert options.directory == "uploads/files"
        assert options.base_directory == tmp_path / "uploads" / "files"

    def test_leading_and_repeated_slashes_stay_under_root(self, tmp_path):
        options = UploadOptions(root=tmp_path, directory="/uploads//docs/")

        assert options.base_directory == tmp_path / "uploads" / "docs"

    def test_directory_already_under_root(self, tmp_path):
        options = UploadOptions(root=tmp_path, directory=str(tmp_path / "store"))

        assert options.base_directory == tmp_path / "store"

    def test_accepted_content_is_frozen(self, tmp_path):
        options = UploadOptions(root=tmp_path, accepted_content=["image/png", "image/jpeg"])

        assert options.accepted_content == frozenset({"image/png", "image/jpeg"})
        assert options.accepts(" image/png ")
        assert not options.accepts("image/gif")
        assert not options.accepts(None)

    def test_relative_root_is_fixed_at_construction(self, tmp_path, monkeypatch):
        (tmp_path / "elsewhere").mkdir()
        monkeypatch.chdir(tmp_path)
        options = UploadOptions(root="app", public_root="app/static").bind("files")

        monkeypatch.chdir(tmp_path / "elsewhere")

        assert options.root_path == tmp_path / "app"
        assert options.base_directory == tmp_path / "app" / "uploads" / "files"
        assert options.public_directory == tmp_path / "app" / "static"

    def test_empty_accepted_content_accepts_anything(self, tmp_path):
        options = UploadOptions(root=tmp_path)

        assert options.accepts("application/x-anything")
        assert options.accepts(None)

    def test_options_are_immutable(self, tmp_path):
        options = UploadOptions(root=tmp_path)

        with pytest.raises(AttributeError):
            options.max_size = 1


class TestResolvePath:

    def test_with_subdirectory(self, options, tmp_path):
        path = resolve_path(record(folder="2024/q1"), options)

        assert path == tmp_path / "public" / "uploads" / "documents" / "2024" / "q1" / "a.txt"

    def test_without_subdirectory_value(self, options, tmp_path):
        assert resolve_path(record(folder=None), options) == options.base_directory / "a.txt"

    def test_without_accessor(self, tmp_path):
        options = UploadOptions(root=tmp_path, directory="uploads")

        assert resolve_path(record(folder="ignored"), options) == tmp_path / "uploads" / "a.txt"

    def test_traversal_characters_are_stripped(self, options):
        path = resolve_path(record(folder="../../etc"), options)

        assert path == options.base_directory / "etc" / "a.txt"
        assert options.base_directory in path.parents

    def test_callable_accessor_is_stringified(self, tmp_path):
        options = UploadOptions(
            root=tmp_path, directory="uploads", subdirectory=lambda r: r.owner_id,
        )

        path = resolve_path(SimpleNamespace(filename="a.txt", owner_id=42), options)

        assert path == tmp_path / "uploads" / "42" / "a.txt"

    def test_segment_keeps_only_safe_characters(self, options):
        segment = subdirectory_segment(record(folder="Team A/über_2024-Q1;rm -rf"), options)

        assert segment == "TeamA/ber_2024-Q1rm-rf"

    def test_follows_attribute_changes(self, options):
        doc = record(folder="drafts")
        before = resolve_path(doc, options)

        doc.folder = "final"

        assert resolve_path(doc, options) != before
        assert resolve_path(doc, options).parent.name == "final"


class TestPublicPath:

    def test_under_public_root(self, options):
        path = resolve_path(record(folder="x"), options)

        assert public_path(path, options) == "/uploads/documents/x/a.txt"

    def test_outside_public_root(self, tmp_path):
        options = UploadOptions(root=tmp_path, directory="private")

        assert public_path(resolve_path(record(), options), options) is None

    def test_explicit_public_root(self, tmp_path):
        options = UploadOptions(
            root=tmp_path, directory="www/files", public_root=tmp_path / "www",
        )

        assert public_path(resolve_path(record(), options), options) == "/files/a.txt"

    def test_prefix_is_not_enough(self, tmp_path):
        options = UploadOptions(root=tmp_path, directory="public-archive")

        assert public_path(resolve_path(record(), options), options) is None

    def test_none_path(self, options):
        assert public_path(None, options) is None
