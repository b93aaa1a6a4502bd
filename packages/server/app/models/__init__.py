# Import every table so create_all sees the full metadata.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .user import User  # noqa: F401
from .event import Event, EventUser  # noqa: F401
from .event_code import EventCode, EventCodeEvent  # noqa: F401
from .poll import Poll, PollOption, PollVote  # noqa: F401
from .contribution import Contribution  # noqa: F401
from .task import Task  # noqa: F401
from .refresh_token import RefreshToken  # noqa: F401
