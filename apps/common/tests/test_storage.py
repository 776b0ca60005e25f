"""
Tests for the object storage gateway.

Storage is Django's InMemoryStorage under tests (see config.settings).
"""

import pytest
from unittest.mock import patch
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile

from apps.common import storage
from apps.common.exceptions import StorageError, ValidationError
from apps.common.storage import (
    UploadResult,
    delete_file,
    delete_files,
    upload_file,
    upload_files,
    validate_upload,
    validate_uploads,
)


class TestValidateUpload:

    def test_accepts_images_and_pdf(self, png_file, pdf_file):
        validate_uploads([png_file, pdf_file])

    def test_rejects_other_extensions(self, text_file):
        with pytest.raises(ValidationError, match='Invalid file type for notes.txt') as exc_info:
            validate_upload(text_file)

        assert exc_info.value.field == 'payment_proofs'

    def test_rejects_oversized_file(self, settings):
        settings.PAYMENT_PROOF_MAX_SIZE = 4
        big = SimpleUploadedFile('big.jpg', b'0123456789', content_type='image/jpeg')

        with pytest.raises(ValidationError, match='exceeds the maximum size'):
            validate_upload(big)

    def test_one_bad_file_rejects_the_batch(self, png_file, text_file):
        with pytest.raises(ValidationError):
            validate_uploads([png_file, text_file])


class TestUpload:

    def test_upload_file_stores_under_folder(self, png_file):
        result = upload_file('expenses', png_file)

        assert result.ok
        assert result.file_name == 'receipt.png'
        assert result.path.startswith('expenses/')
        assert result.path.endswith('.png')
        assert result.url
        assert default_storage.exists(result.path)

    def test_upload_file_wraps_backend_errors(self, png_file):
        with patch.object(default_storage, 'save', side_effect=OSError('bucket gone')):
            with pytest.raises(StorageError, match='Failed to upload receipt.png'):
                upload_file('expenses', png_file)

    def test_upload_files_empty(self):
        assert upload_files('expenses', []) == []

    def test_upload_files_keeps_input_order(self, png_file, pdf_file):
        results = upload_files('expenses', [png_file, pdf_file])

        assert [r.file_name for r in results] == ['receipt.png', 'invoice.PDF']
        assert all(r.ok for r in results)
        assert results[1].path.endswith('.pdf')

    def test_upload_files_reports_failures_per_file(self, png_file):
        bad = SimpleUploadedFile('bad.png', b'data', content_type='image/png')

        def fake_upload(folder, file):
            if file.name == 'bad.png':
                raise StorageError('Failed to upload bad.png')
            return UploadResult(file_name=file.name, path=f'{folder}/x.png', url='/media/x.png')

        with patch.object(storage, 'upload_file', side_effect=fake_upload):
            results = upload_files('expenses', [png_file, bad])

        assert results[0].ok
        assert not results[1].ok
        assert results[1].error == 'Failed to upload bad.png'
        assert results[1].path is None


class TestDelete:

    def test_delete_file(self, png_file):
        result = upload_file('expenses', png_file)

        delete_file(result.path)

        assert not default_storage.exists(result.path)

    def test_delete_files_collects_failures(self, png_file):
        stored = upload_file('expenses', png_file)

        with patch.object(default_storage, 'delete', side_effect=[None, OSError('denied')]):
            results = delete_files([stored.path, 'expenses/missing.png'])

        assert results[0].ok
        assert not results[1].ok
        assert results[1].error == 'Failed to delete expenses/missing.png'
