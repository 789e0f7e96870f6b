"""
Diary API — Error Model Tests
===============================

What:  ErrorKind → HTTP status mapping, the exception classes' context, and
       the flattening of pydantic errors into per-field messages.
"""

import pytest

from diary_api.exceptions import (
    DatabaseError,
    ErrorKind,
    FileStorageError,
    NotFoundError,
    PayloadTooLargeError,
    UnsupportedImageTypeError,
    ValidationError,
)
from diary_api.schemas.diary import field_errors


@pytest.mark.parametrize(
    "kind, status",
    [
        (ErrorKind.VALIDATION, 400),
        (ErrorKind.NOT_FOUND, 404),
        (ErrorKind.PAYLOAD_TOO_LARGE, 413),
        (ErrorKind.UNSUPPORTED_MEDIA_TYPE, 415),
        (ErrorKind.IO_FAILURE, 500),
        (ErrorKind.DATABASE, 500),
    ],
)
def test_status_codes(kind, status):
    assert kind.status_code == status
    assert kind.is_server_error == (status >= 500)


def test_each_error_class_carries_its_kind():
    assert ValidationError().kind is ErrorKind.VALIDATION
    assert NotFoundError("diary", 1).kind is ErrorKind.NOT_FOUND
    assert PayloadTooLargeError(max_size=10, actual_size=11).kind is ErrorKind.PAYLOAD_TOO_LARGE
    assert UnsupportedImageTypeError("txt", ("png",)).kind is ErrorKind.UNSUPPORTED_MEDIA_TYPE
    assert FileStorageError().kind is ErrorKind.IO_FAILURE
    assert DatabaseError().kind is ErrorKind.DATABASE


def test_not_found_context():
    exc = NotFoundError(resource="diary", resource_id=42)

    assert exc.context == {"resource": "diary", "resource_id": "42"}
    assert "42" in exc.message


def test_unsupported_type_without_extension():
    exc = UnsupportedImageTypeError("", ("png", "gif"))

    assert "(none)" in exc.message
    assert exc.context["allowed"] == ["png", "gif"]


class TestFieldErrors:

    def test_uses_last_string_of_loc(self):
        errors = [
            {"loc": ("body", "title"), "msg": "Field required"},
            {"loc": ("query", "title", 0), "msg": "ignored, title already set"},
            {"loc": ("content",), "msg": "Value error, must not be blank"},
        ]

        assert field_errors(errors) == {
            "title": "Field required",
            "content": "must not be blank",
        }

    def test_missing_loc_falls_back_to_request(self):
        assert field_errors([{"msg": "bad"}]) == {"request": "bad"}
