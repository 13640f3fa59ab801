"""SQLModel data models.

This module defines the tables backing quizzes and batteries. Question
banks and battery questions are stored as JSON columns; the `to_*`
helpers convert rows into the plain schemas the battery engine uses.
"""

from typing import List, Optional
from datetime import datetime, timezone
import uuid

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import SQLModel, Field

from . import schemas


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuizRecord(SQLModel, table=True):
    """An authored quiz and its question bank.

    Fields:
    - `version`: bumped by structural edits, see `versioning.VersionPolicy`
    - `questions`: list of `{guid, body, choices}` with the correct choice first
    """
    __tablename__ = "quiz"

    id: str = Field(default_factory=_uuid, primary_key=True)
    author_id: str = Field(index=True)
    name: str
    description: str
    keywords: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    private: bool = False
    version: int = 1
    battery_count: int
    questions: List[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    date_created: datetime = Field(default_factory=_utcnow)
    date_updated: datetime = Field(default_factory=_utcnow)
    date_opens: datetime = Field(default_factory=_utcnow)
    date_closes: Optional[datetime] = None

    def to_quiz(self) -> schemas.Quiz:
        return schemas.Quiz(
            id=self.id,
            name=self.name,
            description=self.description,
            version=self.version,
            battery_count=self.battery_count,
            questions=[schemas.QuizQuestion(**q) for q in self.questions],
            date_opens=self.date_opens,
            date_closes=self.date_closes,
        )


class BatteryRecord(SQLModel, table=True):
    """A user's battery for one quiz. At most one exists per (user, quiz)."""
    __tablename__ = "battery"
    __table_args__ = (UniqueConstraint("user_id", "quiz_id", name="uq_battery_user_quiz"),)

    id: str = Field(default_factory=_uuid, primary_key=True)
    user_id: str = Field(index=True)
    quiz_id: str = Field(foreign_key="quiz.id", index=True)
    quiz_version: int
    questions: List[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    answers: List[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    complete: bool = False
    correct: int = -1

    def to_battery(self) -> schemas.Battery:
        return schemas.Battery(
            id=self.id,
            quiz_id=self.quiz_id,
            quiz_version=self.quiz_version,
            questions=[schemas.BatteryQuestion(**q) for q in self.questions],
            answers=list(self.answers),
            complete=self.complete,
            correct=self.correct,
        )

    @classmethod
    def from_battery(cls, battery: schemas.Battery, user_id: str) -> "BatteryRecord":
        return cls(
            user_id=user_id,
            quiz_id=battery.quiz_id,
            quiz_version=battery.quiz_version,
            questions=[q.model_dump() for q in battery.questions],
            answers=list(battery.answers),
            complete=battery.complete,
            correct=battery.correct,
        )
