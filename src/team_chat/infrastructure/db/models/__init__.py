"""Import all models so Base.metadata sees every table."""
from team_chat.infrastructure.db.models.channel import ChannelModel
from team_chat.infrastructure.db.models.member import ChannelMemberModel
from team_chat.infrastructure.db.models.message import MessageModel
from team_chat.infrastructure.db.models.read_state import ReadStateModel
from team_chat.infrastructure.db.models.user import UserModel

__all__ = [
    "ChannelMemberModel",
    "ChannelModel",
    "MessageModel",
    "ReadStateModel",
    "UserModel",
]
