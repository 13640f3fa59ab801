from quizbattery.schemas import QuizQuestion
from quizbattery.versioning import (
    VersionPolicy,
    assign_guids,
    has_new_questions,
    is_outdated,
    is_stale,
    needs_regeneration,
)


def test_unchanged_bank_keeps_version(make_quiz):
    quiz = make_quiz(version=3)
    assert VersionPolicy().next_version(quiz, quiz.questions, quiz.battery_count) == 3


def test_new_question_bumps_version(make_quiz):
    quiz = make_quiz(version=3)
    questions = quiz.questions + [QuizQuestion(body="A brand new question", choices=["a"] * 5)]
    assert has_new_questions(questions)
    assert VersionPolicy().next_version(quiz, questions, quiz.battery_count) == 4


def test_battery_count_change_bumps_version(make_quiz):
    quiz = make_quiz(battery_count=3)
    assert VersionPolicy().next_version(quiz, quiz.questions, 2) == 2


def test_text_edit_keeps_version_by_default(make_quiz):
    quiz = make_quiz()
    edited = [quiz.questions[0].model_copy(update={"body": "Reworded question body"})] + quiz.questions[1:]
    assert VersionPolicy().next_version(quiz, edited, quiz.battery_count) == 1
    assert VersionPolicy(bump_on_text_edit=True).next_version(quiz, edited, quiz.battery_count) == 2


def test_removal_bumps_unless_disabled(make_quiz):
    quiz = make_quiz()
    remaining = quiz.questions[1:]
    assert VersionPolicy().next_version(quiz, remaining, quiz.battery_count) == 2
    assert VersionPolicy(bump_on_removal=False).next_version(quiz, remaining, quiz.battery_count) == 1


def test_assign_guids_only_fills_blanks():
    questions = [
        QuizQuestion(guid="keep-me", body="Existing question", choices=["a"]),
        QuizQuestion(body="New question one", choices=["a"]),
        QuizQuestion(body="New question two", choices=["a"]),
    ]
    assigned = assign_guids(questions)
    assert assigned[0].guid == "keep-me"
    assert assigned[1].guid and assigned[2].guid
    assert assigned[1].guid != assigned[2].guid
    assert not has_new_questions(assigned)


def test_staleness_checks(make_quiz, fixed_battery):
    quiz = make_quiz(version=2)
    old = fixed_battery(version=1)
    assert is_outdated(old, quiz)
    assert is_stale(old, quiz)
    assert needs_regeneration(old, quiz)
    assert not needs_regeneration(old.model_copy(update={"complete": True}), quiz)
    current = fixed_battery(version=2)
    assert not is_outdated(current, quiz)
    assert not needs_regeneration(current, quiz)
    ahead = fixed_battery(version=3)
    assert is_stale(ahead, quiz) and not is_outdated(ahead, quiz)
