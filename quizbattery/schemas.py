"""Pydantic value types and request/response schemas.

The engine in `battery.py` works only on these plain models; the
persistence layer converts its SQLModel rows into them and back.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class QuizQuestion(BaseModel):
    """A bank question. `choices[0]` is always the correct answer."""
    guid: str = ""
    body: str
    choices: List[str]


class Quiz(BaseModel):
    """The slice of a stored quiz the battery engine needs."""
    id: str
    name: str = ""
    description: str = ""
    version: int = 1
    battery_count: int
    questions: List[QuizQuestion]
    date_opens: datetime
    date_closes: Optional[datetime] = None


class BatteryQuestion(BaseModel):
    """A sampled question: its guid plus five shuffled indices into its choices."""
    question_guid: str
    choice_indices: List[int]


class Battery(BaseModel):
    id: Optional[str] = None
    quiz_id: str
    quiz_version: int
    questions: List[BatteryQuestion]
    answers: List[int]
    complete: bool = False
    correct: int = -1


class ResolvedQuestion(BaseModel):
    guid: str
    body: str
    choices: List[str]


class ResolvedBattery(BaseModel):
    """A battery rendered back to text for display."""
    name: str
    description: str
    questions: List[ResolvedQuestion] = Field(default_factory=list)
    answers: List[int]
    outdated: bool = False
    complete: bool
    correct: int
    open: bool


class GradeResult(BaseModel):
    correct: int
    possible: int
    percent: float
    complete: bool


class QuizIn(BaseModel):
    """Author payload for creating or editing a quiz.

    Questions without a guid are new; questions carrying a guid are edits
    of the existing bank entry with that guid.
    """
    name: str
    description: str
    private: bool = False
    keywords: List[str] = Field(default_factory=list)
    date_opens: Optional[datetime] = None
    date_closes: Optional[datetime] = None
    battery_count: Optional[int] = None
    questions: List[QuizQuestion]


class QuizOut(BaseModel):
    id: str
    is_author: bool
    name: str
    description: str
    version: int
    keywords: List[str]
    date_created: datetime
    date_updated: datetime
    date_opens: datetime
    date_closes: Optional[datetime] = None
    battery_count: int
    questions: List[QuizQuestion] = Field(default_factory=list)


class BatteryOut(BaseModel):
    """Unresolved battery returned when a battery is requested."""
    id: str
    quiz_id: str
    quiz_version: int
    questions: List[BatteryQuestion]
    complete: bool
    correct: int


class SubmitBatteryIn(BaseModel):
    """Raw submitted answer indices; entries are filtered by the grader, not here."""
    answers: List[Any]
