"""
Object storage gateway for payment-proof files.

Wraps Django's ``default_storage`` so the backend is chosen by the
``STORAGES`` setting: the local filesystem in development, an in-memory
store under tests, Google Cloud Storage (django-storages) when
``GS_BUCKET_NAME`` is configured.

Uploads of several files are dispatched concurrently. Each file produces its
own ``UploadResult``; one failed upload does not fail the others.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, NamedTuple, Optional

from django.conf import settings
from django.core.files.storage import default_storage
from django.utils import timezone

from .exceptions import StorageError, ValidationError
from .identifiers import random_string

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.pdf')
DEFAULT_MAX_SIZE = 2 * 1024 * 1024


class UploadResult(NamedTuple):
    """Outcome of uploading one file."""

    file_name: str
    path: Optional[str] = None
    url: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self):
        return self.error is None


class DeleteResult(NamedTuple):
    """Outcome of deleting one stored file."""

    path: str
    error: Optional[str] = None

    @property
    def ok(self):
        return self.error is None


def allowed_extensions():
    return tuple(getattr(settings, 'PAYMENT_PROOF_EXTENSIONS', DEFAULT_ALLOWED_EXTENSIONS))


def max_upload_size():
    return getattr(settings, 'PAYMENT_PROOF_MAX_SIZE', DEFAULT_MAX_SIZE)


def validate_upload(file) -> None:
    """
    Reject a file before it is sent to storage.

    Raises:
        ValidationError: If the extension is not an image/pdf type or the
            file is larger than PAYMENT_PROOF_MAX_SIZE
    """
    extension = os.path.splitext(file.name or '')[1].lower()
    if extension not in allowed_extensions():
        raise ValidationError(
            f"Invalid file type for {file.name}. Allowed: {', '.join(allowed_extensions())}",
            field='payment_proofs',
        )

    if file.size is not None and file.size > max_upload_size():
        raise ValidationError(
            f"File {file.name} exceeds the maximum size of {max_upload_size()} bytes",
            field='payment_proofs',
        )


def validate_uploads(files) -> None:
    for file in files:
        validate_upload(file)


def _storage_name(folder: str, original_name: str) -> str:
    extension = os.path.splitext(original_name)[1].lower().lstrip('.')
    timestamp = int(timezone.now().timestamp() * 1000)
    return f"{folder}/{random_string(6)}-{timestamp}.{extension}"


def upload_file(folder: str, file) -> UploadResult:
    """
    Store one file under ``folder`` and return its path and public URL.

    Raises:
        StorageError: If the storage backend fails
    """
    logger.info("Uploading %s to %s", file.name, folder)

    try:
        path = default_storage.save(_storage_name(folder, file.name), file)
        url = default_storage.url(path)
    except Exception as exc:
        logger.error("Failed to upload %s: %s", file.name, exc)
        raise StorageError(f"Failed to upload {file.name}") from exc

    return UploadResult(file_name=file.name, path=path, url=url)


def _upload_one(folder, file) -> UploadResult:
    try:
        return upload_file(folder, file)
    except StorageError as exc:
        return UploadResult(file_name=file.name, error=str(exc))


def upload_files(folder: str, files) -> List[UploadResult]:
    """
    Upload several files concurrently.

    Returns one result per input file, in input order. Failed uploads carry
    an ``error`` and no path.
    """
    files = list(files)
    if not files:
        return []

    workers = min(len(files), getattr(settings, 'UPLOAD_MAX_WORKERS', 4))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(lambda f: _upload_one(folder, f), files))


def delete_file(path: str) -> None:
    """
    Remove a stored file.

    Raises:
        StorageError: If the storage backend fails
    """
    logger.info("Deleting stored file %s", path)

    try:
        default_storage.delete(path)
    except Exception as exc:
        logger.error("Failed to delete %s: %s", path, exc)
        raise StorageError(f"Failed to delete {path}") from exc


def delete_files(paths) -> List[DeleteResult]:
    """Delete each path, collecting per-file results instead of stopping at the first failure."""
    results = []
    for path in paths:
        try:
            delete_file(path)
        except StorageError as exc:
            results.append(DeleteResult(path=path, error=str(exc)))
        else:
            results.append(DeleteResult(path=path))
    return results
