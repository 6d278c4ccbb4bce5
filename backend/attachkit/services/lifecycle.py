"""Wire record attachments into SQLAlchemy persistence events.

Usage:
    @has_attachment(UploadOptions(root=Path("/srv/app"), subdirectory="folder"))
    class Document(AttachmentMixin, Base):
        __tablename__ = "documents"
        ...

The mapper events below are the only place files get promoted, moved or
deleted. Raising from them aborts the flush, so the record is not persisted
when its file could not be. On the async path the upload bytes are staged
beforehand (`commit_attachment`), leaving only a rename for the flush.
"""
import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from attachkit.config import UploadOptions
from attachkit.errors import UploadValidationError
from attachkit.services.attachment import Attachment
from attachkit.services.filenames import sanitize_filename
from attachkit.services.payloads import extract_payload, is_payload

logger = logging.getLogger(__name__)


class AttachmentMixin:
    """Gives a model its `attachment`. Options come from `has_attachment`."""

    @property
    def attachment(self) -> Attachment:
        attachment = getattr(self, "_attachment", None)
        if attachment is None:
            attachment = Attachment(self)
            self._attachment = attachment
        return attachment


def _sanitize_on_set(target, value, oldvalue, initiator):
    # Every write to the filename column goes through here, constructor included
    return sanitize_filename(value)


def _on_load(target, context):
    target.attachment.pin_saved_path()


def _before_insert(mapper, connection, target):
    target.attachment.ensure_valid()


def _after_insert(mapper, connection, target):
    target.attachment.commit()


def _before_update(mapper, connection, target):
    attachment = target.attachment
    if attachment.pending_upload is not None:
        attachment.commit()
    else:
        attachment.rename()


def _after_delete(mapper, connection, target):
    target.attachment.delete()


def has_attachment(options: UploadOptions):
    """Class decorator binding upload options and lifecycle events to a model."""
    def decorator(cls):
        cls.__upload_options__ = options.bind(cls.__tablename__)
        event.listen(getattr(cls, options.filename_attr), "set", _sanitize_on_set, retval=True)
        event.listen(cls, "load", _on_load)
        event.listen(cls, "before_insert", _before_insert)
        event.listen(cls, "after_insert", _after_insert)
        event.listen(cls, "before_update", _before_update)
        event.listen(cls, "after_delete", _after_delete)
        return cls
    return decorator


def _prepare(record, upload, overwrite: bool) -> None:
    attachment = record.attachment
    if is_payload(extract_payload(upload)):
        attachment.assign(upload, overwrite=overwrite)
    if attachment.validate():
        raise UploadValidationError(attachment.errors)


def save_with_upload(session: Session, record, upload, overwrite: bool = False):
    """Attach `upload` to `record` and persist both.

    Violations are raised before the session is touched. Any failure while
    flushing rolls the session back and propagates.
    """
    _prepare(record, upload, overwrite)
    session.add(record)
    try:
        session.commit()
    except Exception:
        session.rollback()
        raise
    return record


async def commit_attachment(db: AsyncSession, record) -> None:
    """Commit `db`, staging the record's pending upload first.

    The upload is copied next to its target without blocking the event loop;
    the flush then only renames it into place. A staged copy left over by a
    failed or skipped flush is removed.
    """
    attachment = record.attachment
    try:
        if attachment.pending_upload is not None:
            attachment.ensure_valid()
            await attachment.stage()
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    finally:
        attachment.discard_staged()


async def create_with_upload(db: AsyncSession, record, upload, overwrite: bool = False):
    """Async counterpart of `save_with_upload` for request handlers."""
    _prepare(record, upload, overwrite)
    db.add(record)
    await commit_attachment(db, record)
    await db.refresh(record)
    return record
