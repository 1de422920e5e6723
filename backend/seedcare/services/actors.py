# Overview: Who performed an operation: a staff member or the system itself.

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class HumanActor:
    user_id: int


@dataclass(frozen=True)
class SystemActor:
    """Automatic operations (auto-assignment). Persisted as NULL actor columns."""


SYSTEM = SystemActor()

Actor = Union[HumanActor, SystemActor]


def actor_user_id(actor: Actor | None) -> int | None:
    if isinstance(actor, HumanActor):
        return actor.user_id
    return None
