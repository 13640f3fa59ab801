"""Business logic services used by HTTP controllers.

Services coordinate repositories and the pure battery engine: they load
rows, convert them to engine values, apply the quiz and battery rules,
and persist the results. Expected failures are raised as `QuizAppError`
subclasses for the HTTP layer to translate.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlmodel import Session

from . import models, repositories
from .battery import generate_battery, resolve_battery, submit_battery
from .config import settings
from .errors import ConflictError, ForbiddenError, NotFoundError, ValidationFailedError
from .schedule import as_utc, check_quiz_date_range, is_edit_locked
from .schemas import Battery, GradeResult, QuizIn, QuizOut, ResolvedBattery
from .utils.rng import RandomSource
from .validation import keyword_set, validate_quiz
from .versioning import VersionPolicy, assign_guids, needs_regeneration

logger = logging.getLogger("quizbattery.services")


def default_version_policy() -> VersionPolicy:
    return VersionPolicy(
        bump_on_text_edit=settings.VERSION_BUMP_ON_TEXT_EDIT,
        bump_on_removal=settings.VERSION_BUMP_ON_REMOVAL,
    )


class QuizService:
    """Create, read, edit and delete quizzes."""
    def __init__(self, session: Session, policy: Optional[VersionPolicy] = None):
        self.session = session
        self.quiz_repo = repositories.QuizRepository(session)
        self.policy = policy or default_version_policy()

    def create(self, author_id: str, payload: QuizIn) -> models.QuizRecord:
        """Validate and store a new quiz at version 1.

        Every question gets a fresh guid, whatever the client sent.
        """
        self._validate(payload)
        questions = assign_guids([q.model_copy(update={"guid": ""}) for q in payload.questions])
        record = models.QuizRecord(
            author_id=author_id,
            name=payload.name,
            description=payload.description,
            keywords=keyword_set(payload.name, payload.description, payload.keywords),
            private=payload.private,
            version=1,
            battery_count=payload.battery_count or settings.DEFAULT_BATTERY_COUNT,
            questions=[q.model_dump() for q in questions],
            date_opens=as_utc(payload.date_opens) if payload.date_opens else datetime.now(timezone.utc),
            date_closes=as_utc(payload.date_closes) if payload.date_closes else None,
        )
        created = self.quiz_repo.create(record)
        logger.info("quiz %s created by %s with %d questions", created.id, author_id, len(questions))
        return created

    def get(self, quiz_id: str, user_id: str) -> QuizOut:
        """Return quiz metadata; the question bank is only shown to its author."""
        record = self._get_or_404(quiz_id)
        is_author = record.author_id == user_id
        return QuizOut(
            id=record.id,
            is_author=is_author,
            name=record.name,
            description=record.description,
            version=record.version,
            keywords=record.keywords,
            date_created=record.date_created,
            date_updated=record.date_updated,
            date_opens=record.date_opens,
            date_closes=record.date_closes,
            battery_count=record.battery_count,
            questions=record.to_quiz().questions if is_author else [],
        )

    def update(self, quiz_id: str, author_id: str, payload: QuizIn, now: Optional[datetime] = None) -> models.QuizRecord:
        """Apply an author's edit and bump the version when the policy says so."""
        self._validate(payload)
        record = self._get_for_author(quiz_id, author_id)
        if is_edit_locked(record.date_opens, record.date_closes, now):
            raise ForbiddenError(
                "This quiz is currently open and has a closure date. "
                "You must wait until after the quiz has closed before you can update it."
            )
        current = record.to_quiz()
        known = {q.guid for q in current.questions}
        # guids the bank never issued are treated as new questions
        incoming = [q if q.guid in known else q.model_copy(update={"guid": ""}) for q in payload.questions]
        battery_count = payload.battery_count if payload.battery_count is not None else record.battery_count
        version = self.policy.next_version(current, incoming, battery_count)
        questions = assign_guids(incoming)

        record.name = payload.name
        record.description = payload.description
        record.keywords = keyword_set(payload.name, payload.description, payload.keywords)
        record.private = payload.private
        record.battery_count = battery_count
        record.questions = [q.model_dump() for q in questions]
        if payload.date_opens is not None:
            record.date_opens = as_utc(payload.date_opens)
        record.date_closes = as_utc(payload.date_closes) if payload.date_closes else None
        record.date_updated = datetime.now(timezone.utc)
        if version != record.version:
            logger.info("quiz %s bumped from v%d to v%d", record.id, record.version, version)
        record.version = version
        return self.quiz_repo.save(record)

    def delete(self, quiz_id: str, author_id: str, now: Optional[datetime] = None) -> dict:
        """Delete a quiz that is not currently inside its open window.

        Returns a summary of the deleted quiz.
        """
        record = self._get_for_author(quiz_id, author_id)
        if is_edit_locked(record.date_opens, record.date_closes, now):
            raise ForbiddenError(
                "This quiz is currently open and has a closure date. "
                "You must wait until after the quiz has closed before you can delete it."
            )
        summary = {'id': record.id, 'name': record.name, 'description': record.description}
        self.quiz_repo.delete(record)
        logger.info("quiz %s deleted by %s", quiz_id, author_id)
        return summary

    def _validate(self, payload: QuizIn) -> None:
        issues = validate_quiz(payload)
        if issues:
            raise ValidationFailedError("There were issues validating your submission.", issues)

    def _get_or_404(self, quiz_id: str) -> models.QuizRecord:
        record = self.quiz_repo.get(quiz_id)
        if not record:
            raise NotFoundError("Quiz not found.")
        return record

    def _get_for_author(self, quiz_id: str, author_id: str) -> models.QuizRecord:
        record = self._get_or_404(quiz_id)
        if record.author_id != author_id:
            raise ForbiddenError("You are not the author of this quiz.")
        return record


class BatteryService:
    """Request, display and submit quiz batteries."""
    def __init__(self, session: Session, rng: Optional[RandomSource] = None):
        self.session = session
        self.quiz_repo = repositories.QuizRepository(session)
        self.battery_repo = repositories.BatteryRepository(session)
        self.rng = rng

    def request(self, user_id: str, quiz_id: str, now: Optional[datetime] = None) -> Tuple[Battery, bool]:
        """Return the user's battery for a quiz, generating one if needed.

        The second element is True when a new battery was created. A stale,
        unfinished battery is discarded and replaced; a completed one is
        returned as is.
        """
        record = self.quiz_repo.get(quiz_id)
        if not record:
            raise NotFoundError("Quiz not found.")
        reason = check_quiz_date_range(record.date_opens, record.date_closes, now)
        if reason:
            raise ForbiddenError(reason)
        quiz = record.to_quiz()

        existing = self.battery_repo.get_for_user_quiz(user_id, quiz_id)
        if existing:
            battery = existing.to_battery()
            if not needs_regeneration(battery, quiz):
                return battery, False
            logger.info(
                "discarding battery %s for quiz %s: v%d is behind v%d",
                battery.id, quiz.id, battery.quiz_version, quiz.version,
            )
            self.battery_repo.delete_for_user_quiz(user_id, quiz_id)

        generated = generate_battery(quiz, self.rng)
        created = self.battery_repo.create(models.BatteryRecord.from_battery(generated, user_id))
        if created is None:
            # a concurrent request created it first
            winner = self.battery_repo.get_for_user_quiz(user_id, quiz_id)
            if winner is None:
                raise ConflictError("The battery changed while it was being created. Try again.")
            return winner.to_battery(), False
        logger.info("battery %s generated for user %s on quiz %s v%d", created.id, user_id, quiz.id, quiz.version)
        return created.to_battery(), True

    def resolve(self, user_id: str, battery_id: str, now: Optional[datetime] = None) -> ResolvedBattery:
        """Render one of the user's batteries with question and choice text."""
        battery_record, quiz_record = self._load(user_id, battery_id)
        return resolve_battery(battery_record.to_battery(), quiz_record.to_quiz(), now)

    def submit(self, user_id: str, battery_id: str, answers: List, now: Optional[datetime] = None) -> GradeResult:
        """Grade a submission and store it.

        Raises SubmissionRejected when the battery is complete, stale, or
        the quiz is closed; ConflictError when a concurrent submission
        completed the battery first.
        """
        battery_record, quiz_record = self._load(user_id, battery_id)
        graded, result = submit_battery(battery_record.to_battery(), quiz_record.to_quiz(), answers, now)
        updated = self.battery_repo.update_if_incomplete(
            battery_id, graded.answers, graded.complete, graded.correct
        )
        if not updated:
            raise ConflictError("This battery has already been completed.")
        if result.complete:
            logger.info("battery %s completed: %d/%d", battery_id, result.correct, result.possible)
        return result

    def _load(self, user_id: str, battery_id: str):
        battery_record = self.battery_repo.get(battery_id)
        if not battery_record or battery_record.user_id != user_id:
            raise NotFoundError("Battery not found.")
        quiz_record = self.quiz_repo.get(battery_record.quiz_id)
        if not quiz_record:
            raise NotFoundError("Quiz not found.")
        return battery_record, quiz_record
