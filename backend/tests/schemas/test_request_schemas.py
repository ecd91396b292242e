"""Request schemas — partial updates and accepted aliases.

Invariants:
    - TaskUpdate keeps "absent" apart from "explicitly null"
    - MemberAdd accepts user_id or userId
    - Schemas are type-only: business rules are enforced by services
"""

import pytest
from pydantic import ValidationError

from taskhub.schemas.discord import BotEnvelope
from taskhub.schemas.project import MemberAdd, ProjectCreate
from taskhub.schemas.task import TaskCreate, TaskUpdate


def test_task_update_exclude_unset_omits_absent_fields():
    update = TaskUpdate(status="completed")
    assert update.model_dump(exclude_unset=True) == {"status": "completed"}


def test_task_update_keeps_explicit_null():
    update = TaskUpdate(assigned_to_id=None)
    assert update.model_dump(exclude_unset=True) == {"assigned_to_id": None}


def test_member_add_accepts_camel_case():
    assert MemberAdd(userId="usr-1").user_id == "usr-1"
    assert MemberAdd(user_id="usr-2").user_id == "usr-2"


def test_member_add_missing_is_none():
    assert MemberAdd().user_id is None


def test_task_create_does_not_enforce_lengths():
    task = TaskCreate(name="x" * 500, date="not-a-date")
    assert len(task.name) == 500


def test_project_members_must_be_strings():
    with pytest.raises(ValidationError):
        ProjectCreate(name="p", members=[{"id": 1}])


def test_bot_envelope_wraps_anything():
    assert BotEnvelope(data=[1, 2]).model_dump() == {"data": [1, 2]}
