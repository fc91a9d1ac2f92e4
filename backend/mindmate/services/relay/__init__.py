"""Real-time chat relay: channels, handshake auth and the send pipeline."""

from mindmate.services.relay.channels import ChannelRegistry, channels
from mindmate.services.relay.core import RelayCore, SendOutcome, SendState

relay_core = RelayCore(channels)

__all__ = ["ChannelRegistry", "RelayCore", "SendOutcome", "SendState", "channels", "relay_core"]
