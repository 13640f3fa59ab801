"""Quiz versioning and battery staleness rules.

A battery records the quiz version it was generated against. Bumping the
quiz version is what invalidates in-flight batteries, so the rules for
when a bump happens live here in one place.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import List

from .schemas import Battery, Quiz, QuizQuestion


@dataclass(frozen=True)
class VersionPolicy:
    """Decide whether an edit to a quiz bumps its version.

    Adding questions or changing `battery_count` always bumps. Editing the
    wording of existing questions does not, unless `bump_on_text_edit` is
    set; batteries generated before such an edit keep pointing at the same
    guids and will show the new wording. Removing a question bumps by
    default, because a battery referencing the removed guid could no
    longer be resolved.
    """
    bump_on_text_edit: bool = False
    bump_on_removal: bool = True

    def next_version(self, quiz: Quiz, questions: List[QuizQuestion], battery_count: int) -> int:
        if self.requires_bump(quiz, questions, battery_count):
            return quiz.version + 1
        return quiz.version

    def requires_bump(self, quiz: Quiz, questions: List[QuizQuestion], battery_count: int) -> bool:
        if has_new_questions(questions):
            return True
        if battery_count != quiz.battery_count:
            return True
        current = {q.guid: q for q in quiz.questions}
        incoming = {q.guid for q in questions}
        if self.bump_on_removal and any(guid not in incoming for guid in current):
            return True
        if self.bump_on_text_edit:
            for q in questions:
                before = current.get(q.guid)
                if before is None or before.body != q.body or before.choices != q.choices:
                    return True
        return False


def has_new_questions(questions: List[QuizQuestion]) -> bool:
    """New questions are the ones that have not been given a guid yet."""
    return any(not q.guid for q in questions)


def assign_guids(questions: List[QuizQuestion]) -> List[QuizQuestion]:
    """Return the questions with a fresh uuid4 guid on every new question."""
    return [q if q.guid else q.model_copy(update={"guid": str(uuid.uuid4())}) for q in questions]


def is_outdated(battery: Battery, quiz: Quiz) -> bool:
    """The battery was generated against an older version of the quiz."""
    return battery.quiz_version < quiz.version


def is_stale(battery: Battery, quiz: Quiz) -> bool:
    """The battery does not match the quiz's current version."""
    return battery.quiz_version != quiz.version


def needs_regeneration(battery: Battery, quiz: Quiz) -> bool:
    # completed batteries are kept as the record of the attempt
    return is_stale(battery, quiz) and not battery.complete
