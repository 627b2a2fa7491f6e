"""Chat-ops notifier adapters."""

from creative_engine.adapters.notifier.base import (
    MessageRef,
    NotifierAdapter,
    encode_action_value,
)
from creative_engine.adapters.notifier.slack import SlackNotifier
from creative_engine.adapters.notifier.stub import StubNotifier

__all__ = [
    "MessageRef",
    "NotifierAdapter",
    "encode_action_value",
    "SlackNotifier",
    "StubNotifier",
]
