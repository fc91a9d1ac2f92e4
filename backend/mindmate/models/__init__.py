from mindmate.models.account import Account, Activity, ParticipantKind
from mindmate.models.message import Message

__all__ = ["Account", "Activity", "Message", "ParticipantKind"]
