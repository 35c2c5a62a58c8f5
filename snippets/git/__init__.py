"""Git-backed release channel resolution."""

from .channel import (
    ChannelResolutionError,
    ChannelResolver,
    RetryPolicy,
    UNKNOWN_CHANNEL,
    resolve_channel,
    resolve_channel_with_retries,
)

__all__ = [
    "ChannelResolutionError",
    "ChannelResolver",
    "RetryPolicy",
    "UNKNOWN_CHANNEL",
    "resolve_channel",
    "resolve_channel_with_retries",
]
