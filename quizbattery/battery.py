"""Quiz battery engine: generate, resolve and grade batteries.

A battery is a per-user sample of a quiz's question bank. Each sampled
question carries five indices into the bank question's `choices`; the
value `0` marks the correct answer wherever the shuffle put it, so
grading is a plain value comparison.

All functions here are pure: they take quiz and battery values and return
new values without touching storage or shared state.
"""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime
from typing import Any, Iterable, List, Optional, Tuple

from .errors import BatteryIntegrityError, Rejection, SubmissionRejected
from .schedule import check_quiz_date_range, is_quiz_open
from .schemas import (
    Battery,
    BatteryQuestion,
    GradeResult,
    Quiz,
    QuizQuestion,
    ResolvedBattery,
    ResolvedQuestion,
)
from .utils.rng import RandomSource, default_source
from .versioning import is_outdated, is_stale

logger = logging.getLogger("quizbattery.battery")

CHOICES_PER_BATTERY_QUESTION = 5
CORRECT_CHOICE = 0
UNANSWERED = -1
UNGRADED = -1


def generate_battery(quiz: Quiz, rng: Optional[RandomSource] = None) -> Battery:
    """Sample a new, unanswered battery from `quiz`.

    The battery holds `min(quiz.battery_count, len(quiz.questions))`
    distinct questions, drawn without replacement.
    """
    rng = rng or default_source()
    bank = list(quiz.questions)
    question_count = min(quiz.battery_count, len(bank))
    questions: List[BatteryQuestion] = []
    answers: List[int] = []

    while len(questions) < question_count:
        if not bank:
            raise BatteryIntegrityError(f"question bank of quiz {quiz.id} exhausted unexpectedly")
        question = bank.pop(rng.in_range(0, len(bank) - 1))
        questions.append(BatteryQuestion(
            question_guid=question.guid,
            choice_indices=select_choices(question, rng),
        ))
        answers.append(UNANSWERED)

    logger.debug("generated battery for quiz %s v%s with %d questions", quiz.id, quiz.version, len(questions))
    return Battery(
        quiz_id=quiz.id,
        quiz_version=quiz.version,
        questions=questions,
        answers=answers,
        complete=False,
        correct=UNGRADED,
    )


def select_choices(question: QuizQuestion, rng: RandomSource) -> List[int]:
    """Pick four distractors and shuffle them around the correct answer.

    Each distractor is taken at random from the remaining pool and added
    to either the front or the back of the selection, decided by a second
    draw. The correct answer ends up wherever those insertions leave it.
    """
    pool = list(range(1, len(question.choices)))
    selected = deque([CORRECT_CHOICE])
    while len(selected) < CHOICES_PER_BATTERY_QUESTION:
        if not pool:
            raise BatteryIntegrityError(
                f"question {question.guid} has {len(question.choices)} choices; "
                f"{CHOICES_PER_BATTERY_QUESTION} are required"
            )
        choice = pool.pop(rng.in_range(0, len(pool) - 1))
        if rng.in_range(0, 1) == 1:
            selected.append(choice)
        else:
            selected.appendleft(choice)
    return list(selected)


def resolve_battery(battery: Battery, quiz: Quiz, now: Optional[datetime] = None) -> ResolvedBattery:
    """Turn a battery's guids and indices back into question and choice text.

    An outdated battery is returned with `outdated=True` and no questions,
    since its guids may no longer line up with the current bank.
    """
    resolved = ResolvedBattery(
        name=quiz.name,
        description=quiz.description,
        answers=list(battery.answers),
        complete=battery.complete,
        correct=battery.correct,
        open=is_quiz_open(quiz.date_opens, quiz.date_closes, now),
    )
    if is_outdated(battery, quiz):
        resolved.outdated = True
        return resolved

    by_guid = {q.guid: q for q in quiz.questions}
    for battery_question in battery.questions:
        quiz_question = by_guid.get(battery_question.question_guid)
        # Matching versions guarantee the guid is still in the bank.
        if quiz_question is None:
            raise BatteryIntegrityError(
                f"battery {battery.id} references question {battery_question.question_guid} "
                f"missing from quiz {quiz.id} v{quiz.version}"
            )
        try:
            choices = [quiz_question.choices[i] for i in battery_question.choice_indices]
        except IndexError as exc:
            raise BatteryIntegrityError(
                f"battery {battery.id} references a choice missing from question {quiz_question.guid}"
            ) from exc
        resolved.questions.append(ResolvedQuestion(
            guid=quiz_question.guid,
            body=quiz_question.body,
            choices=choices,
        ))
    return resolved


def filter_answers(submitted: Iterable[Any]) -> List[int]:
    """Keep only integer answers in 0..4; everything else is dropped."""
    return [
        a for a in submitted
        if isinstance(a, int) and not isinstance(a, bool) and 0 <= a < CHOICES_PER_BATTERY_QUESTION
    ]


def check_submission(battery: Battery, quiz: Quiz, now: Optional[datetime] = None) -> Optional[Rejection]:
    """Return why a submission must be refused, or None if it may be graded."""
    if battery.complete:
        return Rejection.ALREADY_COMPLETE
    if is_stale(battery, quiz):
        return Rejection.OUTDATED
    if not is_quiz_open(quiz.date_opens, quiz.date_closes, now):
        return Rejection.QUIZ_NOT_OPEN
    return None


def grade_answers(battery: Battery, answers: List[int]) -> int:
    """Count answers whose selected choice index is the correct-answer marker."""
    correct = 0
    for question, answer in zip(battery.questions, answers):
        if question.choice_indices[answer] == CORRECT_CHOICE:
            correct += 1
    return correct


def submit_battery(
    battery: Battery,
    quiz: Quiz,
    submitted: Iterable[Any],
    now: Optional[datetime] = None,
) -> Tuple[Battery, GradeResult]:
    """Record submitted answers and grade them if every question was answered.

    Returns the updated battery and the grade. A partial submission only
    replaces the stored answers; it neither completes the battery nor
    records a score. Raises SubmissionRejected if the battery is complete,
    stale, or the quiz is not open.
    """
    reason = check_submission(battery, quiz, now)
    if reason is Rejection.ALREADY_COMPLETE:
        raise SubmissionRejected(reason, "This battery has already been completed.")
    if reason is Rejection.OUTDATED:
        raise SubmissionRejected(
            reason,
            "This quiz battery is from an outdated version of the quiz. Request a new quiz battery.",
        )
    if reason is Rejection.QUIZ_NOT_OPEN:
        raise SubmissionRejected(reason, check_quiz_date_range(quiz.date_opens, quiz.date_closes, now))

    answers = filter_answers(submitted)
    possible = len(battery.questions)
    is_complete = len(answers) == possible
    update = {"answers": answers}
    correct = UNGRADED
    percent = -1.0
    if is_complete:
        correct = grade_answers(battery, answers)
        percent = (correct / possible) * 100 if possible > 0 else 0.0
        update.update(complete=True, correct=correct)

    graded = battery.model_copy(update=update)
    return graded, GradeResult(correct=correct, possible=possible, percent=percent, complete=is_complete)
