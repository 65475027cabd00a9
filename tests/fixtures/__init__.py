# tests/fixtures/__init__.py

from tests.fixtures.messages import (
    GREETER_HELLO,
    GREETER_LIST,
    GREETER_UPLOAD,
    GREETER_CHAT,
    greeting,
    text,
)
from tests.fixtures.channel import (
    PartRecorder,
    channel,
    restoring_channel,
    recorder,
    fixed_options,
    register_greeter,
)

__all__ = [
    # messages
    "GREETER_HELLO",
    "GREETER_LIST",
    "GREETER_UPLOAD",
    "GREETER_CHAT",
    "greeting",
    "text",
    # channel
    "PartRecorder",
    "channel",
    "restoring_channel",
    "recorder",
    "fixed_options",
    "register_greeter",
]
