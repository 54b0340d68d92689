import pytest

from retail_api.errors import EmptyPayloadError, MissingBoundaryError, NoFilePartError
from retail_api.protocol.multipart import decode, decode_form, extract_boundary
from tests.consts import TEST_BOUNDARY, TEST_IMAGE_CONTENT
from tests.fixtures.multipart import build_multipart_body


def _part(disposition: str, payload: bytes, content_type: str = None) -> bytes:
    headers = f"Content-Disposition: {disposition}\r\n"
    if content_type:
        headers += f"Content-Type: {content_type}\r\n"
    return b"--" + TEST_BOUNDARY.encode() + b"\r\n" + headers.encode() + b"\r\n" + payload + b"\r\n"


def _close() -> bytes:
    return b"--" + TEST_BOUNDARY.encode() + b"--\r\n"


def test_extract_boundary():
    assert extract_boundary(f"multipart/form-data; boundary={TEST_BOUNDARY}") == TEST_BOUNDARY
    assert extract_boundary('multipart/form-data; charset=utf-8; BOUNDARY="abc123"') == "abc123"


@pytest.mark.parametrize("content_type", [None, "", "multipart/form-data", "multipart/form-data; boundary="])
def test_extract_boundary__missing(content_type):
    with pytest.raises(MissingBoundaryError):
        extract_boundary(content_type)


def test_decode__text_file():
    body = build_multipart_body(TEST_BOUNDARY, "contract.txt", b"line one\r\nline two", content_type="text/plain")

    upload = decode(body, TEST_BOUNDARY)

    assert upload.file_name == "contract.txt"
    assert upload.content == b"line one\r\nline two"
    assert upload.field_name == "file"
    assert upload.content_type == "text/plain"


def test_decode__binary_payload_is_kept_byte_for_byte():
    body = build_multipart_body(TEST_BOUNDARY, "photo.jpg", TEST_IMAGE_CONTENT, content_type="image/jpeg")

    upload = decode(body, TEST_BOUNDARY)

    assert upload.content == TEST_IMAGE_CONTENT


def test_decode__lf_line_endings():
    body = (
        f"--{TEST_BOUNDARY}\n"
        'Content-Disposition: form-data; name="file"; filename="notes.txt"\n'
        "\n"
        "hello\n"
        f"--{TEST_BOUNDARY}--\n"
    ).encode()

    upload = decode(body, TEST_BOUNDARY)

    assert upload.file_name == "notes.txt"
    assert upload.content == b"hello"


def test_decode__no_file_part():
    body = _part('form-data; name="productId"', b"p-1") + _close()

    with pytest.raises(NoFilePartError):
        decode(body, TEST_BOUNDARY)


def test_decode__empty_file_part():
    body = build_multipart_body(TEST_BOUNDARY, "empty.txt", b"")

    with pytest.raises(EmptyPayloadError):
        decode(body, TEST_BOUNDARY)


def test_decode__empty_boundary():
    with pytest.raises(MissingBoundaryError):
        decode(b"anything", "")


def test_decode__first_file_part_wins():
    body = (
        _part('form-data; name="first"; filename="a.txt"', b"AAA")
        + _part('form-data; name="second"; filename="b.txt"', b"BBB")
        + _close()
    )

    upload = decode(body, TEST_BOUNDARY)

    assert upload.file_name == "a.txt"
    assert upload.content == b"AAA"


def test_decode__ignores_preamble_and_non_form_data_parts():
    body = (
        b"this preamble is ignored\r\n"
        + _part('attachment; filename="skip.txt"', b"nope")
        + _part('form-data; name="file"; filename="keep.txt"', b"yes")
        + _close()
    )

    upload = decode(body, TEST_BOUNDARY)

    assert upload.file_name == "keep.txt"
    assert upload.content == b"yes"


def test_decode_form__string_fields_and_file():
    body = build_multipart_body(
        TEST_BOUNDARY,
        "lamp.png",
        TEST_IMAGE_CONTENT,
        content_type="image/png",
        fields={"productId": "p-42", "note": "front view"},
    )

    form = decode_form(body, TEST_BOUNDARY)

    assert form.fields == {"productId": "p-42", "note": "front view"}
    assert form.file is not None
    assert form.file.file_name == "lamp.png"
    assert form.file.content == TEST_IMAGE_CONTENT


def test_decode_form__without_file_part():
    body = _part('form-data; name="message"', b"hi") + _close()

    form = decode_form(body, TEST_BOUNDARY)

    assert form.fields == {"message": "hi"}
    assert form.file is None
