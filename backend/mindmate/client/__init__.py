"""Python counterpart of the browser chat screen."""

from mindmate.client.adapter import RelayClient
from mindmate.client.state import ChatState, ContactSummary

__all__ = ["ChatState", "ContactSummary", "RelayClient"]
