from datetime import datetime, timedelta, timezone

import pytest

from quizbattery.battery import (
    check_submission,
    filter_answers,
    generate_battery,
    submit_battery,
)
from quizbattery.errors import Rejection, SubmissionRejected
from quizbattery.utils.rng import RandomSource


def test_all_correct_submission(make_quiz, fixed_battery):
    quiz = make_quiz()
    battery = fixed_battery()
    graded, result = submit_battery(battery, quiz, [0, 0, 0])
    assert result.correct == 3
    assert result.possible == 3
    assert result.percent == 100
    assert result.complete is True
    assert graded.complete is True
    assert graded.correct == 3
    assert graded.answers == [0, 0, 0]
    # input is left alone
    assert battery.complete is False
    assert battery.answers == [-1, -1, -1]


def test_partial_submission_stores_answers_only(make_quiz, fixed_battery):
    graded, result = submit_battery(fixed_battery(), make_quiz(), [0, 0])
    assert result.complete is False
    assert result.correct == -1
    assert result.percent == -1
    assert result.possible == 3
    assert graded.answers == [0, 0]
    assert graded.complete is False
    assert graded.correct == -1


def test_filter_drops_non_integers_and_out_of_range():
    assert filter_answers([0, 5, "1", None, True, 2.0, -1, 4, [3]]) == [0, 4]


def test_garbled_entries_are_dropped_before_grading(make_quiz, fixed_battery):
    graded, result = submit_battery(fixed_battery(), make_quiz(), [0, 9, 1, "x", 2])
    assert graded.answers == [0, 1, 2]
    assert result.complete is True
    assert result.correct == 1
    assert result.percent == pytest.approx(100 / 3)


def test_valid_battery_passes_precondition(make_quiz, fixed_battery):
    assert check_submission(fixed_battery(), make_quiz()) is None


def test_completed_battery_is_rejected(make_quiz, fixed_battery):
    quiz = make_quiz()
    graded, _ = submit_battery(fixed_battery(), quiz, [0, 1, 2])
    assert check_submission(graded, quiz) is Rejection.ALREADY_COMPLETE
    with pytest.raises(SubmissionRejected) as excinfo:
        submit_battery(graded, quiz, [0, 0, 0])
    assert excinfo.value.reason is Rejection.ALREADY_COMPLETE
    assert excinfo.value.status_code == 409


def test_stale_battery_is_rejected(make_quiz, fixed_battery):
    with pytest.raises(SubmissionRejected) as excinfo:
        submit_battery(fixed_battery(version=1), make_quiz(version=2), [0, 0, 0])
    assert excinfo.value.reason is Rejection.OUTDATED


def test_closed_quiz_is_rejected(make_quiz, fixed_battery):
    now = datetime(2030, 1, 10, tzinfo=timezone.utc)
    quiz = make_quiz(date_opens=now - timedelta(days=5), date_closes=now - timedelta(days=1))
    with pytest.raises(SubmissionRejected) as excinfo:
        submit_battery(fixed_battery(), quiz, [0, 0, 0], now=now)
    assert excinfo.value.reason is Rejection.QUIZ_NOT_OPEN
    assert excinfo.value.status_code == 403
    assert "closed" in excinfo.value.detail


def test_answering_the_correct_slot_scores_full_marks(make_quiz):
    quiz = make_quiz(question_count=8, battery_count=5)
    battery = generate_battery(quiz, RandomSource(seed=5))
    answers = [q.choice_indices.index(0) for q in battery.questions]
    _, result = submit_battery(battery, quiz, answers)
    assert result.correct == 5
    assert result.percent == 100


def test_answering_a_distractor_scores_zero(make_quiz):
    quiz = make_quiz(question_count=4, battery_count=4)
    battery = generate_battery(quiz, RandomSource(seed=6))
    answers = [(q.choice_indices.index(0) + 1) % 5 for q in battery.questions]
    _, result = submit_battery(battery, quiz, answers)
    assert result.complete is True
    assert result.correct == 0
    assert result.percent == 0
