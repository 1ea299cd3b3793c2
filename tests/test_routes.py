import json
from datetime import timedelta

from models import db
from models.quiz_attempts import QuizAttempt
from models.quizzes import Quiz


def _start(client, headers, quiz_id):
    response = client.post(f"/api/quizzes/{quiz_id}/start", headers=headers)
    assert response.status_code in (200, 201), response.get_json()
    return response.get_json()["data"]


def _rewind(attempt_id, minutes):
    attempt = db.session.get(QuizAttempt, attempt_id)
    attempt.started_at = attempt.started_at - timedelta(minutes=minutes)
    db.session.commit()


def test_full_attempt_flow(client, make_quiz, student, enrol, auth_headers):
    enrol(student)
    quiz = make_quiz()
    headers = auth_headers(student)
    q1, q2 = [q.id for q in quiz.questions]

    preview = client.get(f"/api/quizzes/{quiz.id}/preview", headers=headers).get_json()["data"]
    assert preview["can_attempt"] is True

    first = client.post(f"/api/quizzes/{quiz.id}/start", headers=headers)
    assert first.status_code == 201
    data = first.get_json()["data"]
    assert all("correct_answer" not in q for q in data["quiz"]["questions"])

    resumed = client.post(f"/api/quizzes/{quiz.id}/start", headers=headers)
    assert resumed.status_code == 200
    assert resumed.get_json()["data"]["attempt_id"] == data["attempt_id"]

    attempt_id = data["attempt_id"]
    for question_id, option in ((q1, "a"), (q2, "c"), (q2, "a")):
        response = client.put(
            f"/api/quizzes/attempts/{attempt_id}/answer",
            json={"question_id": question_id, "selected_answer": option},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.get_json()["success"] is True

    submitted = client.post(f"/api/quizzes/attempts/{attempt_id}/submit", json={}, headers=headers)
    assert submitted.status_code == 200
    result = submitted.get_json()["result"]
    assert result["marks_obtained"] == 1.5
    assert result["total_marks"] == 4
    assert result["percentage"] == 37.5
    assert result["is_passed"] is False
    assert result["rank"] == 1
    assert len(result["question_results"]) == 2

    again = client.post(f"/api/quizzes/attempts/{attempt_id}/submit", json={}, headers=headers)
    assert again.status_code == 200
    assert json.dumps(again.get_json()["result"], sort_keys=True) == json.dumps(result, sort_keys=True)

    fetched = client.get(f"/api/quizzes/attempts/{attempt_id}/result", headers=headers)
    assert fetched.status_code == 200
    assert fetched.get_json()["result"]["id"] == result["id"]


def test_answer_after_deadline_is_rejected_but_submit_succeeds(client, make_quiz, student, enrol, auth_headers):
    enrol(student)
    quiz = make_quiz()
    headers = auth_headers(student)
    attempt_id = _start(client, headers, quiz.id)["attempt_id"]
    _rewind(attempt_id, 11)

    response = client.put(
        f"/api/quizzes/attempts/{attempt_id}/answer",
        json={"question_id": quiz.questions[0].id, "selected_answer": "a"},
        headers=headers,
    )
    assert response.status_code == 409
    assert response.get_json()["code"] == "AttemptExpired"

    submitted = client.post(f"/api/quizzes/attempts/{attempt_id}/submit", json={"auto": True}, headers=headers)
    assert submitted.status_code == 200
    result = submitted.get_json()["result"]
    assert result["marks_obtained"] == 0
    assert result["unanswered_questions"] == 2


def test_invalid_answers(client, make_quiz, student, enrol, auth_headers):
    enrol(student)
    quiz = make_quiz()
    headers = auth_headers(student)
    attempt_id = _start(client, headers, quiz.id)["attempt_id"]
    url = f"/api/quizzes/attempts/{attempt_id}/answer"

    bad_option = client.put(url, json={"question_id": quiz.questions[0].id, "selected_answer": "q"}, headers=headers)
    assert bad_option.status_code == 400
    assert bad_option.get_json()["code"] == "InvalidAnswer"

    bad_question = client.put(url, json={"question_id": 987654, "selected_answer": "a"}, headers=headers)
    assert bad_question.status_code == 404

    missing = client.put(url, json={"selected_answer": "a"}, headers=headers)
    assert missing.status_code == 400


def test_result_is_private(client, make_quiz, student, other_student, admin, enrol, auth_headers):
    enrol(student)
    quiz = make_quiz()
    headers = auth_headers(student)
    attempt_id = _start(client, headers, quiz.id)["attempt_id"]
    client.post(f"/api/quizzes/attempts/{attempt_id}/submit", json={}, headers=headers)

    url = f"/api/quizzes/attempts/{attempt_id}/result"
    assert client.get(url, headers=auth_headers(other_student)).status_code == 403
    assert client.get(url, headers=auth_headers(admin)).status_code == 200
    assert client.get(url).status_code == 401


def test_unenrolled_student_is_forbidden(client, make_quiz, student, auth_headers):
    quiz = make_quiz()

    response = client.post(f"/api/quizzes/{quiz.id}/start", headers=auth_headers(student))

    assert response.status_code == 403
    assert response.get_json()["success"] is False


def test_attempt_limit(client, make_quiz, student, enrol, auth_headers):
    enrol(student)
    quiz = make_quiz()
    headers = auth_headers(student)
    attempt_id = _start(client, headers, quiz.id)["attempt_id"]
    client.post(f"/api/quizzes/attempts/{attempt_id}/submit", json={}, headers=headers)

    response = client.post(f"/api/quizzes/{quiz.id}/start", headers=headers)

    assert response.status_code == 403
    assert response.get_json()["code"] == "AttemptLimitExceeded"


def test_leaderboard_endpoint(client, make_quiz, make_user, enrol, auth_headers):
    quiz = make_quiz()
    q1, q2 = [q.id for q in quiz.questions]
    plans = {"fay": {q1: "a", q2: "b"}, "gus": {q1: "a"}, "hal": {}}

    for name, answers in plans.items():
        user = make_user(name)
        enrol(user)
        headers = auth_headers(user)
        attempt_id = _start(client, headers, quiz.id)["attempt_id"]
        for question_id, option in answers.items():
            client.put(
                f"/api/quizzes/attempts/{attempt_id}/answer",
                json={"question_id": question_id, "selected_answer": option},
                headers=headers,
            )
        client.post(f"/api/quizzes/attempts/{attempt_id}/submit", json={}, headers=headers)

    response = client.get(f"/api/quizzes/{quiz.id}/leaderboard", headers=headers)

    assert response.status_code == 200
    board = response.get_json()["data"]
    assert [row["student_name"] for row in board] == ["Fay", "Gus", "Hal"]
    assert [row["rank"] for row in board] == [1, 2, 3]
    assert client.get("/api/quizzes/999/leaderboard", headers=headers).status_code == 404


def test_available_quizzes(client, make_quiz, student, enrol, auth_headers):
    enrol(student)
    quiz = make_quiz()
    make_quiz(published=False)
    headers = auth_headers(student)

    listed = client.get("/api/quizzes/available", headers=headers).get_json()["data"]
    assert [q["id"] for q in listed] == [quiz.id]
    assert listed[0]["status"] == "not-attempted"

    attempt_id = _start(client, headers, quiz.id)["attempt_id"]
    listed = client.get("/api/quizzes/available", headers=headers).get_json()["data"]
    assert listed[0]["status"] == "in-progress"
    assert listed[0]["in_progress_attempt_id"] == attempt_id


def test_admin_quiz_lifecycle(client, admin, course, student, auth_headers):
    headers = auth_headers(admin)
    payload = {
        "title": "Optics",
        "course_id": course.id,
        "settings": {"time_limit": 5, "negative_marking": 1},
        "questions": [
            {
                "question_text": "Light travels fastest in?",
                "options": [{"id": "a", "text": "Vacuum"}, {"id": "b", "text": "Glass"}],
                "correct_answer": "a",
                "explanation": "No medium to slow it down.",
            }
        ],
    }

    created = client.post("/api/admin/quizzes", json=payload, headers=headers)
    assert created.status_code == 201
    quiz_id = created.get_json()["data"]["id"]
    assert created.get_json()["data"]["settings"]["time_limit"] == 5

    published = client.post(f"/api/admin/quizzes/{quiz_id}/publish", json={"is_published": True}, headers=headers)
    assert published.status_code == 200
    assert db.session.get(Quiz, quiz_id).is_published is True

    assert client.post("/api/admin/quizzes", json=payload, headers=auth_headers(student)).status_code == 403

    results = client.get(f"/api/admin/quizzes/{quiz_id}/results", headers=headers).get_json()
    assert results["count"] == 0
    assert results["stats"]["pass_rate"] == 0

    assert client.delete(f"/api/admin/quizzes/{quiz_id}", headers=headers).status_code == 200
    assert Quiz.query.filter_by(id=quiz_id).count() == 0


def test_admin_rejects_bad_questions(client, admin, course, auth_headers):
    payload = {
        "title": "Broken",
        "course_id": course.id,
        "questions": [
            {
                "question_text": "Pick one",
                "options": [{"id": "a", "text": "A"}, {"id": "b", "text": "B"}],
                "correct_answer": "c",
            }
        ],
    }

    response = client.post("/api/admin/quizzes", json=payload, headers=auth_headers(admin))

    assert response.status_code == 400
    assert "correct_answer" in response.get_json()["error"]


def test_login_issues_a_usable_token(client, student):
    response = client.post("/api/auth/login", json={"username_or_email": "alice", "password": "password123"})
    assert response.status_code == 200
    token = response.get_json()["token"]

    check = client.get("/api/auth/check-auth", headers={"Authorization": f"Bearer {token}"})
    assert check.status_code == 200
    assert check.get_json()["user"]["id"] == student.id

    bad = client.post("/api/auth/login", json={"username_or_email": "alice", "password": "nope"})
    assert bad.status_code == 401


def test_admin_rejects_unknown_question_type(client, admin, course, auth_headers):
    payload = {
        "title": "Audio",
        "course_id": course.id,
        "questions": [
            {
                "question_type": "audio",
                "question_text": "Name the note",
                "options": [{"id": "a", "text": "C"}, {"id": "b", "text": "D"}],
                "correct_answer": "a",
            }
        ],
    }

    response = client.post("/api/admin/quizzes", json=payload, headers=auth_headers(admin))

    assert response.status_code == 400
    assert "question_type" in response.get_json()["error"]


def test_leaderboard_limit_is_clamped(client, app, make_quiz, make_user, enrol, auth_headers):
    app.config["QUIZ_LEADERBOARD_LIMIT"] = 2
    quiz = make_quiz()
    for name in ("ivy", "jon", "kim"):
        user = make_user(name)
        enrol(user)
        headers = auth_headers(user)
        attempt_id = _start(client, headers, quiz.id)["attempt_id"]
        client.post(f"/api/quizzes/attempts/{attempt_id}/submit", json={}, headers=headers)

    url = f"/api/quizzes/{quiz.id}/leaderboard"
    assert client.get(f"{url}?limit=0", headers=headers).get_json()["count"] == 1
    assert client.get(f"{url}?limit=-1", headers=headers).get_json()["count"] == 1
    assert client.get(f"{url}?limit=50", headers=headers).get_json()["count"] == 2
    assert client.get(url, headers=headers).get_json()["count"] == 2
