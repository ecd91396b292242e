"""ORM Models — SQLAlchemy declarative models for the relational backend.

Invariants:
    - All models inherit from Base (db/base.py)
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from taskhub.models.user import User  # noqa: F401
from taskhub.models.project import Project, ProjectMember  # noqa: F401
from taskhub.models.task import Task  # noqa: F401
from taskhub.models.activity import ActivityEntry  # noqa: F401
from taskhub.models.discord_link import DiscordLinkCode  # noqa: F401
from taskhub.models.invitation import Invitation  # noqa: F401
