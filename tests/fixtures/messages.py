# tests/fixtures/messages.py

from google.protobuf.wrappers_pb2 import StringValue

GREETER_HELLO = "/helloworld.Greeter/SayHello"
GREETER_LIST = "/helloworld.Greeter/ListGreetings"
GREETER_UPLOAD = "/helloworld.Greeter/UploadNames"
GREETER_CHAT = "/helloworld.Greeter/Chat"


def text(value: str) -> StringValue:
    return StringValue(value=value)


def greeting(request: StringValue) -> StringValue:
    """The reply a well-behaved greeter gives to `request`."""
    return StringValue(value=f"Hello, {request.value}")
