"""Convert ORM rows into JSON-ready dicts for API responses."""

from club_portal.models import ClubSession, Student, Test


def _iso(value):
    return value.isoformat() if value else None


def serialize_student(student: Student) -> dict:
    return {
        "id": student.id,
        "first_name": student.first_name,
        "middle_name": student.middle_name,
        "last_name": student.last_name,
        "email": student.email,
        "roll_number": student.roll_number,
        "prn_number": student.prn_number,
        "date_of_birth": _iso(student.date_of_birth),
        "branch": student.branch,
        "division": student.division,
        "gender": student.gender,
        "address": student.address,
        "sgpa_sem1": student.sgpa_sem1,
        "sgpa_sem2": student.sgpa_sem2,
        "profile_photo": student.profile_photo,
        "registration_date": _iso(student.registration_date),
        "is_paid": bool(student.is_paid),
        "mentor": student.mentor,
    }


def serialize_session(club_session: ClubSession, include_code: bool = False) -> dict:
    """Session codes are only shown to admins."""
    result = {
        "id": club_session.id,
        "name": club_session.name,
        "description": club_session.description,
        "date": _iso(club_session.date),
        "time": club_session.time,
        "venue": club_session.venue,
        "status": club_session.status,
        "type": club_session.type,
        "duration": club_session.duration,
        "test_link": club_session.test_link,
        "test_id": club_session.test.id if club_session.test else None,
        "has_code": club_session.has_code,
    }
    if include_code:
        result["session_code"] = club_session.session_code
    return result


def serialize_test(test: Test, include_answers: bool = False) -> dict:
    """Quiz view; correct answers are only included for admins."""
    questions = []
    for q in test.questions:
        item = {"id": q.id, "position": q.position, "question": q.question, "options": list(q.options)}
        if include_answers:
            item["correct_answer"] = q.correct_answer
        questions.append(item)
    return {
        "id": test.id,
        "session_id": test.session_id,
        "title": test.title,
        "questions": questions,
    }
