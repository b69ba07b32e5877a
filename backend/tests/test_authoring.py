from datetime import date

import pytest

from club_portal.errors import NotFoundError, StorageError, ValidationError
from club_portal.services import attendance, authoring, gateway, scoring


def _session_data(**overrides):
    data = {"name": "Self Awareness", "date": "2026-10-20", "time": "10:00", "venue": "Hall A"}
    data.update(overrides)
    return data


def _questions(*correct):
    return [{"question": "Q{}".format(i), "options": ["yes", "no"], "correct_answer": c}
            for i, c in enumerate(correct, 1)]


def test_next_session_id_fills_first_gap():
    assert authoring.next_session_id([]) == "DYS1"
    assert authoring.next_session_id(["DYS1", "DYS2"]) == "DYS3"
    assert authoring.next_session_id(["DYS1", "DYS3"]) == "DYS2"


def test_create_session_applies_defaults(db):
    club_session = authoring.create_session(db, _session_data(session_code=" self2024 "))

    assert club_session.id == "DYS1"
    assert club_session.date == date(2026, 10, 20)
    assert club_session.status == "upcoming"
    assert club_session.type == "Assessment"
    assert club_session.session_code == "SELF2024"


def test_create_session_requires_core_fields(db):
    with pytest.raises(ValidationError):
        authoring.create_session(db, _session_data(venue="  "))
    with pytest.raises(ValidationError):
        authoring.create_session(db, _session_data(status="paused"))
    with pytest.raises(ValidationError):
        authoring.create_session(db, _session_data(date="20/10/2026"))


def test_update_session(db, make_session):
    club_session = make_session(status="upcoming")

    updated = authoring.update_session(db, club_session.id, {"status": "active", "venue": "Lab 2"})

    assert updated.status == "active"
    assert updated.venue == "Lab 2"
    with pytest.raises(ValidationError):
        authoring.update_session(db, club_session.id, {"name": ""})
    with pytest.raises(NotFoundError):
        authoring.update_session(db, "DYS99", {"venue": "x"})


def test_session_code_set_clear_and_generate(db, make_session):
    club_session = make_session(session_code=None)

    assert authoring.set_session_code(db, club_session.id, " emot2024 ").session_code == "EMOT2024"
    assert authoring.set_session_code(db, club_session.id, "").session_code is None

    generated = authoring.generate_session_code(db, club_session.id).session_code
    assert len(generated) == 8
    assert generated.isalnum() and generated == generated.upper()


def test_save_test_replaces_question_set(db, make_session):
    club_session = make_session()

    first = authoring.save_test(db, club_session.id, "Quiz", _questions(0, 1, 0))
    second = authoring.save_test(db, club_session.id, "Quiz v2", _questions(1))

    assert second.id == first.id
    assert second.title == "Quiz v2"
    assert [q.question for q in gateway.list_questions(db, second.id)] == ["Q1"]


@pytest.mark.parametrize("questions", [
    [],
    [{"question": "", "options": ["a", "b"], "correct_answer": 0}],
    [{"question": "Q", "options": ["a"], "correct_answer": 0}],
    [{"question": "Q", "options": ["a", ""], "correct_answer": 0}],
    [{"question": "Q", "options": ["a", "b"], "correct_answer": 2}],
])
def test_save_test_rejects_malformed_questions(db, make_session, questions):
    club_session = make_session()

    with pytest.raises(ValidationError):
        authoring.save_test(db, club_session.id, "Quiz", questions)

    assert gateway.get_test_by_session(db, club_session.id) is None


def test_save_test_for_unknown_session(db):
    with pytest.raises(NotFoundError):
        authoring.save_test(db, "DYS404", "Quiz", _questions(0))


def test_delete_session_removes_dependants(db, make_student, make_session):
    student_id = make_student().id
    session_id = make_session().id
    test_id = authoring.save_test(db, session_id, "Quiz", _questions(0)).id
    attendance.mark_attendance(db, student_id, session_id, "SELF2024")
    scoring.submit_answers(db, student_id, test_id, session_id, [0])

    authoring.delete_session(db, session_id)

    assert gateway.get_session(db, session_id) is None
    assert gateway.get_test(db, test_id) is None
    assert gateway.list_questions(db, test_id) == []
    assert gateway.list_attendance_for_student(db, student_id) == []
    assert gateway.list_scores_for_student(db, student_id) == []
    with pytest.raises(NotFoundError):
        authoring.delete_session(db, session_id)


def test_delete_test_keeps_session(db, make_student, make_session):
    student_id = make_student().id
    session_id = make_session().id
    test_id = authoring.save_test(db, session_id, "Quiz", _questions(0)).id
    scoring.submit_answers(db, student_id, test_id, session_id, [0])

    authoring.delete_test(db, session_id)

    assert gateway.get_session(db, session_id) is not None
    assert gateway.get_test(db, test_id) is None
    assert gateway.list_questions(db, test_id) == []
    assert gateway.list_scores_for_student(db, student_id) == []
    with pytest.raises(NotFoundError):
        authoring.delete_test(db, session_id)


def test_failed_first_save_leaves_no_empty_test(db, make_session):
    session_id = make_session().id
    bad_set = [{"question": "Q1", "options": ["a", "b"], "correct_answer": None}]

    with pytest.raises(StorageError):
        gateway.write_test(db, session_id, "Quiz", bad_set)

    assert gateway.get_test_by_session(db, session_id) is None


def test_failed_resave_keeps_title_and_questions(db, make_session):
    session_id = make_session().id
    authoring.save_test(db, session_id, "Quiz", _questions(0, 1))
    bad_set = [{"question": "new", "options": ["a", "b"], "correct_answer": None}]

    with pytest.raises(StorageError):
        gateway.write_test(db, session_id, "Renamed", bad_set)

    test = gateway.get_test_by_session(db, session_id)
    assert test.title == "Quiz"
    assert [q.question for q in gateway.list_questions(db, test.id)] == ["Q1", "Q2"]
