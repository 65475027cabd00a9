# tests/core/test_types.py

from unittest.mock import MagicMock

from pyvider.rpctesting import FakeStreamingResponse, FakeUnaryResponse, RequestIDProvider
from pyvider.rpctesting import types as types_module_logger_ref
from pyvider.rpctesting.types import is_fake_response, is_request_id_provider, normalize_metadata


def test_is_fake_response_true(mocker):
    mock_logger_debug = mocker.patch.object(
        types_module_logger_ref.logger, "debug", new_callable=MagicMock
    )

    assert is_fake_response(FakeUnaryResponse()) is True
    assert is_fake_response(FakeStreamingResponse()) is True
    mock_logger_debug.assert_called_with(
        "🧰🔍✅ Checking if object implements UntypedFakeResponseT protocol"
    )


def test_is_fake_response_false():
    assert is_fake_response(object()) is False
    assert is_fake_response("not a response") is False


def test_is_request_id_provider():
    assert is_request_id_provider(RequestIDProvider.autogenerated()) is True
    assert is_request_id_provider(object()) is False


def test_normalize_metadata_shapes():
    assert normalize_metadata(None) == ()
    assert normalize_metadata({"a": "1", "b": b"\x00"}) == (("a", "1"), ("b", b"\x00"))
    assert normalize_metadata([("a", "1"), ("a", "2")]) == (("a", "1"), ("a", "2"))
    assert normalize_metadata((("a", "1"),)) == (("a", "1"),)
