import pytest

from utils import media_validation
from utils.api_errors import PayloadTooLargeError, UnsupportedMediaError, ValidationError
from utils.media_validation import normalize_mime_type, validate_image_upload


def test_normalize_mime_type():
    assert normalize_mime_type("Image/PNG; charset=binary") == "image/png"
    assert normalize_mime_type("image/jpg") == "image/jpeg"
    assert normalize_mime_type(None) == ""


def test_detected_type_wins_over_declared(jpeg_bytes):
    assert validate_image_upload(jpeg_bytes, "image/png") == "image/jpeg"
    assert validate_image_upload(jpeg_bytes, None) == "image/jpeg"


def test_empty_upload_is_validation_error():
    with pytest.raises(ValidationError):
        validate_image_upload(b"", "image/png")


def test_oversized_upload_is_rejected(png_bytes, monkeypatch):
    monkeypatch.setattr(media_validation, "MAX_UPLOAD_BYTES", len(png_bytes) - 1)

    with pytest.raises(PayloadTooLargeError) as excinfo:
        validate_image_upload(png_bytes, "image/png")
    assert excinfo.value.status_code == 413


@pytest.mark.parametrize("data, mime", [(b"GIF89a-but-not-really", "image/gif"), (b"hello", "text/plain")])
def test_unsupported_content_is_rejected(data, mime):
    with pytest.raises(UnsupportedMediaError):
        validate_image_upload(data, mime)
