# tests/channel/test_unary_calls.py

import asyncio

import grpc
import pytest
from google.protobuf.empty_pb2 import Empty
from google.protobuf.wrappers_pb2 import StringValue

from pyvider.rpctesting import (
    FakeUnaryResponse,
    RPCStatus,
    RPCStatusError,
    UnaryCall,
    call_options,
    configure,
)
from tests.fixtures import GREETER_CHAT, GREETER_HELLO, register_greeter, text


def test_unary_call_served_by_registered_response(channel, recorder):
    fake = register_greeter(channel)

    call = channel.make_unary_call(
        GREETER_HELLO, text("World"), request_type=StringValue, response_type=StringValue
    )

    assert isinstance(call, UnaryCall)
    assert call.fake_response is fake
    assert call.response.result() == text("Hello, World")
    assert call.status.result().is_ok
    assert call.done()
    assert fake.request_messages == [text("World")]
    assert not channel.has_fake_response_enqueued(GREETER_HELLO)


def test_unary_call_without_registered_response_reports_failure(channel):
    call = channel.make_unary_call(
        GREETER_HELLO, text("World"), request_type=StringValue, response_type=StringValue
    )

    status = call.status.result()
    assert status.code is grpc.StatusCode.UNAVAILABLE
    assert GREETER_HELLO in status.message
    assert call.fake_response is None
    assert call.head is not None

    error = call.response.exception()
    assert isinstance(error, RPCStatusError)
    assert error.code() is grpc.StatusCode.UNAVAILABLE
    assert call.initial_metadata.result() == ()
    assert call.trailing_metadata.result() == ()


def test_request_parts_arrive_in_order(channel, recorder):
    channel.make_fake_unary_response(GREETER_HELLO, recorder)
    channel.make_unary_call(GREETER_HELLO, text("World"))

    assert recorder.kinds == ["head", "message", "end"]
    assert recorder.parts[1].value == text("World")


def test_response_sent_before_call_is_delivered(channel, recorder):
    fake = channel.make_fake_unary_response(GREETER_HELLO, recorder, StringValue, StringValue)
    fake.send_message(text("ready"), initial_metadata=[("i", "1")], trailing_metadata=[("t", "1")])

    call = channel.make_unary_call(
        GREETER_HELLO, text("World"), request_type=StringValue, response_type=StringValue
    )

    assert call.response.result() == text("ready")
    assert call.initial_metadata.result() == (("i", "1"),)
    assert call.trailing_metadata.result() == (("t", "1"),)
    assert recorder.kinds == ["head", "message", "end"]


def test_response_sent_after_call_completes_it(channel):
    fake = channel.make_fake_unary_response(GREETER_HELLO)
    call = channel.make_unary_call(GREETER_HELLO, text("World"))

    assert not call.done()
    assert not call.response.done()

    fake.send_message(text("later"))

    assert call.response.result() == text("later")


def test_type_mismatch_reports_failed_precondition(channel):
    channel.make_fake_unary_response(GREETER_HELLO, request_type=Empty, response_type=Empty)

    call = channel.make_unary_call(
        GREETER_HELLO, text("World"), request_type=StringValue, response_type=StringValue
    )

    assert call.status.result().code is grpc.StatusCode.FAILED_PRECONDITION
    assert "FakeUnaryResponse[Empty, Empty]" in call.status.result().message
    assert not channel.has_fake_response_enqueued(GREETER_HELLO)


def test_type_mismatch_restores_on_restoring_channel(restoring_channel):
    stored = restoring_channel.make_fake_unary_response(GREETER_HELLO, request_type=Empty, response_type=Empty)

    failed = restoring_channel.make_unary_call(
        GREETER_HELLO, text("World"), request_type=StringValue, response_type=StringValue
    )
    assert failed.status.result().code is grpc.StatusCode.FAILED_PRECONDITION
    assert restoring_channel.has_fake_response_enqueued(GREETER_HELLO)

    served = restoring_channel.make_unary_call(
        GREETER_HELLO, Empty(), request_type=Empty, response_type=Empty
    )
    assert served.fake_response is stored


def test_streaming_response_does_not_serve_unary_call(channel):
    channel.make_fake_streaming_response(GREETER_HELLO)
    call = channel.make_unary_call(GREETER_HELLO, text("World"))
    assert call.status.result().code is grpc.StatusCode.FAILED_PRECONDITION


def test_request_head_synthesis(channel, recorder, fixed_options):
    channel.make_fake_unary_response(GREETER_HELLO, recorder)
    call = channel.make_unary_call(GREETER_HELLO, text("World"), fixed_options)

    head = recorder.head
    assert head is call.head
    assert head.scheme == "http"
    assert head.host == "localhost"
    assert head.path == GREETER_HELLO
    assert head.request_id == "req-1"
    assert head.options is fixed_options
    assert head.metadata == (("x-trace", "abc"),)


def test_request_head_uses_configured_placeholders(channel, recorder, fixed_options):
    configure(request_scheme="https", request_host="greeter.test", request_id_header="x-request-id")
    channel.make_fake_unary_response(GREETER_HELLO, recorder)

    channel.make_unary_call(GREETER_HELLO, text("World"), fixed_options)

    head = recorder.head
    assert (head.scheme, head.host) == ("https", "greeter.test")
    assert head.metadata == (("x-trace", "abc"), ("x-request-id", "req-1"))


def test_request_id_header_on_options_wins_over_config(channel, recorder):
    configure(request_id_header="x-request-id")
    channel.make_fake_unary_response(GREETER_HELLO, recorder)

    channel.make_unary_call(GREETER_HELLO, text("World"), call_options(request_id="r", request_id_header="x-id"))

    assert recorder.head.metadata == (("x-id", "r"),)


def test_request_id_provider_called_per_call(channel, recorder):
    ids = iter(["first", "second"])
    options = call_options(request_id=lambda: next(ids))
    channel.make_fake_unary_response(GREETER_HELLO, recorder)
    channel.make_fake_unary_response(GREETER_HELLO, recorder)

    channel.make_unary_call(GREETER_HELLO, text("a"), options)
    channel.make_unary_call(GREETER_HELLO, text("b"), options)

    heads = [part.value for part in recorder.parts if part.is_head]
    assert [head.request_id for head in heads] == ["first", "second"]


def test_default_options_autogenerate_request_ids(channel, recorder):
    channel.make_fake_unary_response(GREETER_HELLO, recorder)
    channel.make_unary_call(GREETER_HELLO, text("World"))
    assert len(recorder.head.request_id) == 36


def test_send_error_fails_the_call(channel):
    fake = channel.make_fake_unary_response(GREETER_HELLO)
    call = channel.make_unary_call(GREETER_HELLO, text("World"))

    fake.send_error(
        RPCStatusError(RPCStatus(grpc.StatusCode.NOT_FOUND, "nobody home")),
        trailing_metadata=[("why", "empty")],
    )

    status = call.status.result()
    assert status.code is grpc.StatusCode.NOT_FOUND
    assert status.message == "nobody home"
    assert call.trailing_metadata.result() == (("why", "empty"),)
    with pytest.raises(RPCStatusError) as exc_info:
        call.response.result()
    assert exc_info.value.details() == "nobody home"


def test_send_error_with_plain_exception_is_unknown(channel):
    fake = channel.make_fake_unary_response(GREETER_HELLO)
    call = channel.make_unary_call(GREETER_HELLO, text("World"))
    fake.send_error(ValueError("bad name"))
    assert call.status.result().code is grpc.StatusCode.UNKNOWN


def test_non_ok_status_with_message_fails_response(channel):
    fake = channel.make_fake_unary_response(GREETER_HELLO)
    call = channel.make_unary_call(GREETER_HELLO, text("World"))
    fake.send_message(text("partial"), status=RPCStatus(grpc.StatusCode.DATA_LOSS, "truncated"))
    assert isinstance(call.response.exception(), RPCStatusError)


def test_cancel_completes_call_with_cancelled(channel):
    fake = channel.make_fake_unary_response(GREETER_HELLO)
    call = channel.make_unary_call(GREETER_HELLO, text("World"))

    assert call.cancel() is True
    assert call.cancel() is False
    assert call.status.result().code is grpc.StatusCode.CANCELLED
    assert call.response.exception().code() is grpc.StatusCode.CANCELLED

    fake.send_message(text("too late"))
    assert call.status.result().code is grpc.StatusCode.CANCELLED


def test_cancel_after_completion_is_noop(channel):
    register_greeter(channel)
    call = channel.make_unary_call(GREETER_HELLO, text("World"))
    assert call.cancel() is False
    assert call.status.result().is_ok


def test_done_callback_receives_call(channel):
    fake = channel.make_fake_unary_response(GREETER_HELLO)
    call = channel.make_unary_call(GREETER_HELLO, text("World"))
    seen = []
    call.add_done_callback(seen.append)

    assert seen == []
    fake.send_message(text("done"))
    assert seen == [call]
    assert "status=OK" in repr(call)


def test_unary_calls_served_in_registration_order(channel):
    first = channel.register(GREETER_HELLO, FakeUnaryResponse())
    second = channel.register(GREETER_HELLO, FakeUnaryResponse())

    calls = [channel.make_unary_call(GREETER_HELLO, text(name)) for name in ("a", "b")]

    assert [call.fake_response for call in calls] == [first, second]
    assert first.request_messages == [text("a")]
    assert second.request_messages == [text("b")]


@pytest.mark.asyncio
async def test_wait_for_response_in_async_test(channel):
    fake = channel.make_fake_unary_response(GREETER_HELLO)
    call = channel.make_unary_call(GREETER_HELLO, text("World"))

    asyncio.get_running_loop().call_soon(fake.send_message, text("async hello"))

    assert await call.wait_for_response() == text("async hello")
    assert (await call.wait_for_status()).is_ok


@pytest.mark.asyncio
async def test_wait_for_response_raises_status_error(channel):
    call = channel.make_unary_call(GREETER_HELLO, text("World"))
    with pytest.raises(RPCStatusError):
        await call.wait_for_response()


def test_ok_status_without_message_fails_with_internal(channel):
    fake = channel.make_fake_unary_response(GREETER_HELLO)
    call = channel.make_unary_call(GREETER_HELLO, text("World"))

    fake.send_error(RPCStatusError(RPCStatus.ok([("t", "1")])))

    assert call.done()
    status = call.status.result()
    assert status.code is grpc.StatusCode.INTERNAL
    assert status.message == "unary call completed without a response"
    assert call.initial_metadata.result() == ()
    assert call.trailing_metadata.result() == (("t", "1"),)
    error = call.response.exception()
    assert isinstance(error, RPCStatusError)
    assert error.code() is grpc.StatusCode.INTERNAL


def test_missing_response_leaves_other_paths_untouched(channel):
    chat = channel.make_fake_streaming_response(GREETER_CHAT)

    call = channel.make_unary_call(GREETER_HELLO, text("World"))

    assert call.status.result().code is grpc.StatusCode.UNAVAILABLE
    assert channel.registry.pending_count(GREETER_CHAT) == 1
    served = channel.make_bidirectional_streaming_call(GREETER_CHAT, handler=lambda message: None)
    assert served.fake_response is chat
