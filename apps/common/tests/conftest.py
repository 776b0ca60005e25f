import pytest
from django.core.files.uploadedfile import SimpleUploadedFile


@pytest.fixture
def png_file():
    """Return a small PNG upload."""
    return SimpleUploadedFile('receipt.png', b'\x89PNG\r\n\x1a\nfake', content_type='image/png')


@pytest.fixture
def pdf_file():
    """Return a small PDF upload."""
    return SimpleUploadedFile('invoice.PDF', b'%PDF-1.4 fake', content_type='application/pdf')


@pytest.fixture
def text_file():
    """Return an upload with a rejected extension."""
    return SimpleUploadedFile('notes.txt', b'not a proof', content_type='text/plain')
