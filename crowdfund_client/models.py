"""
Data shapes shared by the gateway, the reconciler and the views.

Project mirrors the tuple returned by the contract's getProject(); the other
models are derived on every refresh and never stored.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class ProjectStatus(str, Enum):
    ACTIVE = "Active"
    EXPIRED = "Expired"
    COMPLETED = "Completed"


class Project(BaseModel):
    """One fundraising project as read from the contract."""
    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=1)
    owner: str
    title: str
    description: str
    goal: int = Field(ge=0)          # wei
    deadline: int = Field(ge=0)      # unix seconds
    funds_raised: int = Field(ge=0)  # wei
    is_completed: bool

    @classmethod
    def from_tuple(cls, project_id, raw):
        """Build from the (owner, title, description, goal, deadline, fundsRaised, isCompleted) tuple."""
        owner, title, description, goal, deadline, funds_raised, is_completed = raw
        return cls(
            id=project_id,
            owner=owner,
            title=title,
            description=description,
            goal=goal,
            deadline=deadline,
            funds_raised=funds_raised,
            is_completed=is_completed,
        )

    @property
    def deadline_at(self):
        return datetime.fromtimestamp(self.deadline)


class DisplayState(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: ProjectStatus
    raised_for_display: int
    is_owner: bool
    is_expired: bool
    user_contribution: int = 0
    can_contribute: bool
    can_refund: bool
    can_withdraw: bool


class ProjectCard(BaseModel):
    """A project together with its reconciled state, ready to render."""
    model_config = ConfigDict(frozen=True)

    project: Project
    state: DisplayState
    progress: float = 0.0


class BoardSnapshot(BaseModel):
    """Result of one complete refresh pass."""
    model_config = ConfigDict(frozen=True)

    account: Optional[str] = None
    observed_at: int = 0
    cards: Tuple[ProjectCard, ...] = ()
