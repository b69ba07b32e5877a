"""End-to-end flows through the HTTP API."""

REGISTRATION = {
    "first_name": "Asha",
    "last_name": "Patil",
    "email": "asha@example.com",
    "roll_number": "21",
    "prn_number": "PRN2021",
    "date_of_birth": "2004-05-06",
    "branch": "IT",
    "division": "B",
    "gender": "Female",
    "address": "Nashik",
}


def _bearer(token):
    return {"Authorization": "Bearer {}".format(token)}


def _admin(client):
    response = client.post("/api/auth/admin/login",
                           json={"email": "ADMIN@club.test", "password": "s3cret"})
    assert response.status_code == 200
    return _bearer(response.json()["token"])


def _student(client):
    assert client.post("/api/students", json=REGISTRATION).status_code == 201
    response = client.post("/api/auth/student/login",
                           json={"email": " asha@EXAMPLE.com", "prn_number": "prn2021"})
    assert response.status_code == 200
    return _bearer(response.json()["token"])


def _create_session(client, admin, **overrides):
    payload = {"name": "Self Awareness", "date": "2026-10-20", "time": "10:00",
               "venue": "Hall A", "status": "active", "type": "Quiz"}
    payload.update(overrides)
    response = client.post("/api/sessions", json=payload, headers=admin)
    assert response.status_code == 201
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers


def test_registration_conflict_and_me(client):
    student = _student(client)

    duplicate = client.post("/api/students", json=dict(REGISTRATION, prn_number="OTHER"))
    assert duplicate.status_code == 409
    assert duplicate.json()["reason"] == "email_taken"

    me = client.get("/api/auth/me", headers=student)
    assert me.json()["student"]["email"] == "asha@example.com"
    assert me.json()["student"]["mentor"] in ["Kaushik", "Meghraj", "Shailesh", "Darshan"]


def test_wrong_credentials_and_principal_conflict(client):
    student = _student(client)

    bad = client.post("/api/auth/student/login", json={"email": "asha@example.com", "prn_number": "nope"})
    assert bad.status_code == 401
    assert bad.json()["reason"] == "invalid_credentials"

    conflict = client.post("/api/auth/admin/login", headers=student,
                           json={"email": "admin@club.test", "password": "s3cret"})
    assert conflict.status_code == 409
    assert conflict.json()["reason"] == "principal_conflict"


def test_admin_routes_are_guarded(client):
    student = _student(client)

    assert client.get("/api/students").status_code == 401
    assert client.get("/api/students", headers=student).status_code == 403
    assert client.get("/api/students", headers=_bearer("forged.token")).status_code == 401
    assert client.get("/api/students", headers=_admin(client)).status_code == 200


def test_check_in_flow(client):
    admin = _admin(client)
    student = _student(client)
    club_session = _create_session(client, admin)
    client.put("/api/sessions/{}/code".format(club_session["id"]),
               json={"session_code": "SELF2024"}, headers=admin)

    listed = client.get("/api/sessions", headers=student).json()["data"]
    assert "session_code" not in listed[0]
    assert listed[0]["has_code"] is True

    wrong = client.post("/api/attendance/mark", headers=student,
                        json={"session_id": club_session["id"], "session_code": "nope"})
    assert wrong.status_code == 400
    assert wrong.json()["reason"] == "code_mismatch"

    ok = client.post("/api/attendance/mark", headers=student,
                     json={"session_id": club_session["id"], "session_code": " self2024 "})
    assert ok.status_code == 200
    assert ok.json()["affected_views"] == ["attendance", "scoreboard"]

    again = client.post("/api/attendance/mark", headers=student,
                        json={"session_id": club_session["id"], "session_code": "SELF2024"})
    assert again.status_code == 409
    assert again.json()["reason"] == "already_marked"

    mine = client.get("/api/attendance/me", headers=student).json()["data"]
    assert mine == {club_session["id"]: "present"}

    stats = client.get("/api/analytics/sessions/{}".format(club_session["id"]), headers=admin).json()
    assert stats["present"] == 1


def test_quiz_flow(client):
    admin = _admin(client)
    student = _student(client)
    club_session = _create_session(client, admin)
    saved = client.put("/api/sessions/{}/test".format(club_session["id"]), headers=admin, json={
        "title": "Self Awareness Quiz",
        "questions": [
            {"question": "Q1", "options": ["a", "b"], "correct_answer": 1},
            {"question": "Q2", "options": ["a", "b"], "correct_answer": 0},
        ],
    })
    assert saved.status_code == 200
    test_id = saved.json()["id"]

    quiz = client.get("/api/tests/{}".format(test_id), headers=student,
                      params={"session_id": club_session["id"]})
    assert quiz.status_code == 200
    assert all("correct_answer" not in q for q in quiz.json()["questions"])

    submitted = client.post("/api/tests/{}/submit".format(test_id), headers=student,
                            json={"session_id": club_session["id"], "answers": [0, 0]})
    assert submitted.status_code == 200
    assert submitted.json()["score"] == 50
    assert submitted.json()["message"] == "Test submitted! Your score: 1 / 2"

    incomplete = client.post("/api/tests/{}/submit".format(test_id), headers=student,
                             json={"session_id": club_session["id"], "answers": [1, -1]})
    assert incomplete.status_code == 422

    result = client.get("/api/tests/{}/result".format(test_id), headers=student).json()
    assert [q["is_correct"] for q in result["questions"]] == [False, True]

    client.patch("/api/sessions/{}".format(club_session["id"]), headers=admin,
                 json={"status": "completed"})
    closed = client.get("/api/tests/{}".format(test_id), headers=student,
                        params={"session_id": club_session["id"]})
    assert closed.status_code == 404
    assert closed.json()["reason"] == "test_unavailable"


def test_logout_reports_views(client):
    student = _student(client)

    response = client.post("/api/auth/logout", headers=student)

    assert response.json()["token"] is None
    assert "attendance" in response.json()["affected_views"]


def _save_quiz(client, admin, session_id):
    response = client.put("/api/sessions/{}/test".format(session_id), headers=admin, json={
        "title": "Quiz",
        "questions": [{"question": "Q1", "options": ["a", "b"], "correct_answer": 1}],
    })
    assert response.status_code == 200
    return response.json()["id"]


def test_delete_session_test(client):
    admin = _admin(client)
    student = _student(client)
    club_session = _create_session(client, admin)
    test_id = _save_quiz(client, admin, club_session["id"])
    client.post("/api/tests/{}/submit".format(test_id), headers=student,
                json={"session_id": club_session["id"], "answers": [1]})

    deleted = client.delete("/api/sessions/{}/test".format(club_session["id"]), headers=admin)
    assert deleted.status_code == 204

    assert client.get("/api/sessions/{}/test".format(club_session["id"]), headers=admin).status_code == 404
    assert client.get("/api/sessions/{}".format(club_session["id"])).json()["test_id"] is None
    assert client.get("/api/scores/me", headers=student).json()["completed_tests"] == 0
    again = client.delete("/api/sessions/{}/test".format(club_session["id"]), headers=admin)
    assert again.status_code == 404


def test_delete_session(client):
    admin = _admin(client)
    student = _student(client)
    club_session = _create_session(client, admin)
    test_id = _save_quiz(client, admin, club_session["id"])
    client.put("/api/sessions/{}/code".format(club_session["id"]),
               json={"session_code": "SELF2024"}, headers=admin)
    client.post("/api/attendance/mark", headers=student,
                json={"session_id": club_session["id"], "session_code": "SELF2024"})

    deleted = client.delete("/api/sessions/{}".format(club_session["id"]), headers=admin)
    assert deleted.status_code == 204

    assert client.get("/api/sessions/{}".format(club_session["id"])).status_code == 404
    assert client.get("/api/attendance/me", headers=student).json()["data"] == {}
    gone = client.get("/api/tests/{}".format(test_id), headers=student,
                      params={"session_id": club_session["id"]})
    assert gone.status_code == 404
    assert client.delete("/api/sessions/{}".format(club_session["id"]), headers=admin).status_code == 404


def test_deleted_student_token_cannot_check_in_or_submit(client):
    admin = _admin(client)
    student = _student(client)
    student_id = client.get("/api/auth/me", headers=student).json()["student"]["id"]
    club_session = _create_session(client, admin)
    test_id = _save_quiz(client, admin, club_session["id"])
    client.put("/api/sessions/{}/code".format(club_session["id"]),
               json={"session_code": "SELF2024"}, headers=admin)

    assert client.delete("/api/students/{}".format(student_id), headers=admin).status_code == 204

    check_in = client.post("/api/attendance/mark", headers=student,
                           json={"session_id": club_session["id"], "session_code": "SELF2024"})
    assert check_in.status_code == 404
    assert check_in.json()["reason"] == "not_found"

    submitted = client.post("/api/tests/{}/submit".format(test_id), headers=student,
                            json={"session_id": club_session["id"], "answers": [1]})
    assert submitted.status_code == 404
    assert submitted.json()["reason"] == "not_found"


def test_blank_session_code_is_rejected(client):
    admin = _admin(client)
    student = _student(client)
    club_session = _create_session(client, admin, session_code="SELF2024")

    response = client.post("/api/attendance/mark", headers=student,
                           json={"session_id": club_session["id"], "session_code": "  "})

    assert response.status_code == 422
    assert response.json()["reason"] == "validation_error"
