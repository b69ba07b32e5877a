import pytest

from club_portal.errors import NotFoundError, TestUnavailable, ValidationError
from club_portal.services import gateway, scoring


def test_scores_are_order_sensitive_percentages(db, make_student, make_session, make_test):
    student = make_student()
    club_session = make_session()
    test = make_test(club_session.id, correct_answers=(1, 0))

    full = scoring.submit_answers(db, student.id, test.id, club_session.id, [1, 0])
    assert (full.score, full.correct, full.total) == (100, 2, 2)

    half = scoring.submit_answers(db, student.id, test.id, club_session.id, [0, 0])
    assert (half.score, half.correct, half.total) == (50, 1, 2)


def test_resubmission_overwrites_previous_attempt(db, make_student, make_session, make_test):
    student = make_student()
    club_session = make_session()
    test = make_test(club_session.id, correct_answers=(1, 0))

    scoring.submit_answers(db, student.id, test.id, club_session.id, [1, 0])
    scoring.submit_answers(db, student.id, test.id, club_session.id, [2, 2])

    rows = gateway.list_scores_for_student(db, student.id)
    assert len(rows) == 1
    assert rows[0].score == 0
    assert rows[0].answers == [2, 2]


@pytest.mark.parametrize("answers", [[1], [1, 0, 2], [1, -1], [1, 3], []])
def test_incomplete_or_invalid_answer_sheets_are_rejected(db, make_student, make_session, make_test, answers):
    student = make_student()
    club_session = make_session()
    test = make_test(club_session.id, correct_answers=(1, 0))

    with pytest.raises(ValidationError):
        scoring.submit_answers(db, student.id, test.id, club_session.id, answers)

    assert gateway.list_scores_for_student(db, student.id) == []


@pytest.mark.parametrize("status", ["upcoming", "completed"])
def test_test_is_unavailable_unless_session_active(db, make_session, make_test, status):
    club_session = make_session(status=status)
    test = make_test(club_session.id)

    with pytest.raises(TestUnavailable):
        scoring.load_test(db, test.id, club_session.id)


def test_load_test_requires_matching_session(db, make_session, make_test):
    first = make_session()
    second = make_session()
    test = make_test(first.id)
    make_test(second.id)

    assert scoring.load_test(db, test.id, first.id).id == test.id
    with pytest.raises(TestUnavailable):
        scoring.load_test(db, test.id, second.id)
    with pytest.raises(TestUnavailable):
        scoring.load_test(db, test.id, "DYS404")
    with pytest.raises(TestUnavailable):
        scoring.load_test(db, "no-such-test", first.id)


def test_submission_for_inactive_session_is_refused(db, make_student, make_session, make_test):
    student = make_student()
    club_session = make_session(status="completed")
    test = make_test(club_session.id)

    with pytest.raises(TestUnavailable):
        scoring.submit_answers(db, student.id, test.id, club_session.id, [1, 0])


def test_result_shows_per_question_correctness(db, make_student, make_session, make_test):
    student = make_student()
    club_session = make_session()
    test = make_test(club_session.id, correct_answers=(1, 0))
    scoring.submit_answers(db, student.id, test.id, club_session.id, [1, 2])

    result = scoring.get_result(db, student.id, test.id)

    assert result["score"] == 50
    assert result["grade"] == "D"
    assert [q["is_correct"] for q in result["questions"]] == [True, False]


def test_result_without_submission_is_not_found(db, make_student, make_session, make_test):
    student = make_student()
    club_session = make_session()
    test = make_test(club_session.id)

    with pytest.raises(NotFoundError):
        scoring.get_result(db, student.id, test.id)


def test_score_summary(db, make_student, make_session, make_test):
    student = make_student()
    first = make_session()
    second = make_session()
    make_session()
    t1 = make_test(first.id, correct_answers=(1, 0))
    t2 = make_test(second.id, correct_answers=(1, 0))
    scoring.submit_answers(db, student.id, t1.id, first.id, [1, 0])
    scoring.submit_answers(db, student.id, t2.id, second.id, [1, 1])

    summary = scoring.score_summary(db, student.id)

    assert summary["average_score"] == 75
    assert summary["highest_score"] == 100
    assert summary["lowest_score"] == 50
    assert summary["completed_tests"] == 2
    assert summary["total_tests"] == 3
    assert summary["grade"] == "B"


@pytest.mark.parametrize("score,grade", [(95, "A+"), (80, "A"), (70, "B"), (60, "C"), (1, "D"), (0, "-")])
def test_grade_bands(score, grade):
    assert scoring.grade_for(score) == grade


def test_percentage_rounds_and_handles_empty_tests():
    assert scoring.percentage(1, 3) == 33
    assert scoring.percentage(2, 3) == 67
    assert scoring.percentage(0, 0) == 0


def test_deleted_student_cannot_submit(db, make_student, make_session, make_test):
    student_id = make_student().id
    session_id = make_session().id
    test_id = make_test(session_id).id
    gateway.delete_student(db, student_id)

    with pytest.raises(NotFoundError):
        scoring.submit_answers(db, student_id, test_id, session_id, [1, 0])

    assert gateway.list_scores_for_session(db, session_id) == []
