"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (quizzes,
batteries). Repositories return SQLModel objects and perform
commits/refreshes where appropriate.
"""

from typing import List, Optional
from sqlmodel import Session, select
from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from . import models


class QuizRepository:
    """CRUD operations for `QuizRecord` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, quiz: models.QuizRecord) -> models.QuizRecord:
        """Persist a new quiz and return the managed instance."""
        self.session.add(quiz)
        self.session.commit()
        self.session.refresh(quiz)
        return quiz

    def get(self, quiz_id: str) -> Optional[models.QuizRecord]:
        """Get a `QuizRecord` by primary key."""
        return self.session.get(models.QuizRecord, quiz_id)

    def save(self, quiz: models.QuizRecord) -> models.QuizRecord:
        """Commit changes made to a managed quiz."""
        self.session.add(quiz)
        self.session.commit()
        self.session.refresh(quiz)
        return quiz

    def delete(self, quiz: models.QuizRecord) -> None:
        """Delete a quiz together with every battery generated from it."""
        self.session.exec(delete(models.BatteryRecord).where(models.BatteryRecord.quiz_id == quiz.id))
        self.session.delete(quiz)
        self.session.commit()


class BatteryRepository:
    """Persistence for `BatteryRecord` objects.

    Writes that must not race (one battery per user/quiz, one completed
    submission per battery) are guarded in the database rather than by
    a read-then-write in Python.
    """
    def __init__(self, session: Session):
        self.session = session

    def get(self, battery_id: str) -> Optional[models.BatteryRecord]:
        """Fetch a battery by id."""
        return self.session.get(models.BatteryRecord, battery_id)

    def get_for_user_quiz(self, user_id: str, quiz_id: str) -> Optional[models.BatteryRecord]:
        """Return the user's battery for `quiz_id` or `None`."""
        stmt = select(models.BatteryRecord).where(
            models.BatteryRecord.user_id == user_id,
            models.BatteryRecord.quiz_id == quiz_id
        )
        return self.session.exec(stmt).first()

    def create(self, battery: models.BatteryRecord) -> Optional[models.BatteryRecord]:
        """Insert a battery.

        Returns `None` when another battery for the same user/quiz was
        inserted first; the caller should re-read that one.
        """
        self.session.add(battery)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            return None
        self.session.refresh(battery)
        return battery

    def delete_for_user_quiz(self, user_id: str, quiz_id: str) -> None:
        """Remove the user's battery for `quiz_id`, if any."""
        self.session.exec(delete(models.BatteryRecord).where(
            models.BatteryRecord.user_id == user_id,
            models.BatteryRecord.quiz_id == quiz_id
        ))
        self.session.commit()

    def update_if_incomplete(self, battery_id: str, answers: List[int], complete: bool, correct: int) -> bool:
        """Write a submission unless the battery was completed meanwhile.

        Returns True if the row was updated.
        """
        stmt = (
            update(models.BatteryRecord)
            .where(models.BatteryRecord.id == battery_id, models.BatteryRecord.complete == False)  # noqa: E712
            .values(answers=answers, complete=complete, correct=correct)
        )
        result = self.session.exec(stmt)
        self.session.commit()
        return result.rowcount == 1
