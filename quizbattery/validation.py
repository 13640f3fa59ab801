"""Validation of author-submitted quiz content.

Each validator returns a message (or list of messages) describing what
is wrong; an empty result means the input is acceptable. The service
collects them so authors see every issue at once.
"""

import re
from datetime import datetime
from typing import List, Optional

from .battery import CHOICES_PER_BATTERY_QUESTION
from .schedule import as_utc
from .schemas import QuizIn, QuizQuestion

_DISALLOWED = re.compile(r"[^a-zA-Z\d\s.,!?:]")
_NON_KEYWORD = re.compile(r"[^a-zA-Z0-9]")

NAME_LENGTH = (10, 140)
DESCRIPTION_LENGTH = (20, 280)
TEXT_LENGTH = (10, 140)


def validate_quiz_name(name: str) -> str:
    low, high = NAME_LENGTH
    if not name:
        return "Please provide a name for your quiz."
    if not low <= len(name) <= high:
        return f"Quiz names must be between {low} and {high} characters in length."
    if _DISALLOWED.search(name):
        return "Quiz names may only contain letters and numbers."
    return ""


def validate_quiz_description(description: str) -> str:
    low, high = DESCRIPTION_LENGTH
    if not description:
        return "Please provide a description for your quiz."
    if not low <= len(description) <= high:
        return f"Quiz descriptions must be between {low} and {high} characters in length."
    if _DISALLOWED.search(description):
        return "Quiz descriptions may only contain letters and numbers."
    return ""


def validate_quiz_dates(date_opens: Optional[datetime], date_closes: Optional[datetime]) -> str:
    if not date_opens or not date_closes:
        return ""
    if as_utc(date_opens) >= as_utc(date_closes):
        return "The quiz's open time must be before its closing time."
    return ""


def validate_battery_count(battery_count: Optional[int]) -> str:
    if battery_count is not None and battery_count < 1:
        return "A battery must contain at least one question."
    return ""


def _text_issue(text: str) -> str:
    low, high = TEXT_LENGTH
    if not text:
        return "has no body."
    if not low <= len(text) <= high:
        return f"must be between {low} and {high} characters in length."
    if _DISALLOWED.search(text):
        return "contains non-alphanumeric characters."
    return ""


def validate_quiz_questions(questions: List[QuizQuestion]) -> List[str]:
    """Check every question body and choice.

    A question needs enough choices to fill a battery question: the
    correct answer plus four distractors. Guids must be unique so a
    battery never samples the same question twice.
    """
    if not questions:
        return ["Your quiz must have at least one question."]
    issues = []
    first_seen = {}
    for i, question in enumerate(questions, start=1):
        if question.guid:
            if question.guid in first_seen:
                issues.append(f"Question #{i} duplicates question #{first_seen[question.guid]}.")
            else:
                first_seen[question.guid] = i
        problem = _text_issue(question.body)
        if problem:
            issues.append(f"Question #{i} {problem}")
        if len(question.choices) < CHOICES_PER_BATTERY_QUESTION:
            issues.append(f"Question #{i} must have at least {CHOICES_PER_BATTERY_QUESTION} choices.")
        for j, choice in enumerate(question.choices, start=1):
            problem = _text_issue(choice)
            if problem:
                issues.append(f"Question #{i}, choice #{j} {problem}")
    return issues


def validate_quiz(payload: QuizIn) -> List[str]:
    """Run every validator over an author payload and return the issues found."""
    issues = [
        validate_quiz_name(payload.name),
        validate_quiz_description(payload.description),
        validate_quiz_dates(payload.date_opens, payload.date_closes),
        validate_battery_count(payload.battery_count),
        *validate_quiz_questions(payload.questions),
    ]
    return [issue for issue in issues if issue]


def keyword_set(name: str, description: str, keywords: List[str]) -> List[str]:
    """Lower-cased alphanumeric search keywords, first occurrence order."""
    words = name.split(" ") + description.split(" ") + list(keywords)
    seen = {}
    for word in words:
        cleaned = _NON_KEYWORD.sub("", word.lower())
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)
