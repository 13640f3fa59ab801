import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Point the app at a throwaway SQLite file before anything imports it.
_DB_DIR = Path(tempfile.mkdtemp(prefix="quizbattery-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_DB_DIR / 'test.db'}")

from quizbattery.schemas import Battery, BatteryQuestion, Quiz, QuizQuestion  # noqa: E402


class ScriptedSource:
    """Stands in for RandomSource, replaying a fixed list of draws."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = []

    def in_range(self, minimum, maximum):
        self.calls.append((minimum, maximum))
        value = self.values.pop(0)
        assert minimum <= value <= maximum
        return value


def _question(n: int, choice_count: int) -> QuizQuestion:
    choices = ["This is the correct answer"] + [f"This is wrong answer {i}" for i in range(1, choice_count)]
    return QuizQuestion(guid=f"guid-{n}", body=f"This is question number {n}", choices=choices)


@pytest.fixture
def make_quiz():
    def _make(question_count=3, battery_count=3, choice_count=10, version=1, **kwargs):
        kwargs.setdefault("date_opens", datetime.now(timezone.utc) - timedelta(days=1))
        return Quiz(
            id="quiz-1",
            name="The Test Quiz",
            description="This is the test quiz. Does it work?",
            version=version,
            battery_count=battery_count,
            questions=[_question(n, choice_count) for n in range(question_count)],
            **kwargs,
        )
    return _make


@pytest.fixture
def fixed_battery():
    """A three-question battery whose correct answer is always in slot 0."""
    def _make(version=1, **kwargs):
        return Battery(
            id="battery-1",
            quiz_id="quiz-1",
            quiz_version=version,
            questions=[BatteryQuestion(question_guid=f"guid-{n}", choice_indices=[0, 1, 2, 3, 4]) for n in range(3)],
            answers=[-1, -1, -1],
            **kwargs,
        )
    return _make


@pytest.fixture
def scripted():
    return ScriptedSource
