import uuid

from sqlmodel import Session

from quizbattery import models, repositories
from quizbattery.database import create_db_and_tables, engine


def _battery(user_id, quiz_id):
    return models.BatteryRecord(
        user_id=user_id,
        quiz_id=quiz_id,
        quiz_version=1,
        questions=[{'question_guid': 'g1', 'choice_indices': [0, 1, 2, 3, 4]}],
        answers=[-1],
    )


def test_second_battery_for_same_user_and_quiz_is_refused():
    create_db_and_tables()
    quiz_id = uuid.uuid4().hex
    with Session(engine) as session:
        repo = repositories.BatteryRepository(session)
        first = repo.create(_battery('racer', quiz_id))
        assert first is not None
        assert repo.create(_battery('racer', quiz_id)) is None
        assert repo.get_for_user_quiz('racer', quiz_id).id == first.id


def test_completed_battery_cannot_be_overwritten():
    create_db_and_tables()
    with Session(engine) as session:
        repo = repositories.BatteryRepository(session)
        battery = repo.create(_battery('submitter', uuid.uuid4().hex))
        assert repo.update_if_incomplete(battery.id, [0], True, 1) is True
        assert repo.update_if_incomplete(battery.id, [3], True, 0) is False
        session.expire_all()
        stored = repo.get(battery.id)
        assert stored.answers == [0]
        assert stored.correct == 1
