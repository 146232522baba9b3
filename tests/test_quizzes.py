from fastapi.testclient import TestClient

from main import app

client = TestClient(app)


def test_root():
    assert client.get("/").json() == {"ok": True}


def test_list_quizzes():
    r = client.get("/quizzes")
    assert r.status_code == 200
    by_id = {q["id"]: q for q in r.json()}
    assert {"python-basics", "timed-arithmetic", "final-exam"} <= set(by_id)
    basics = by_id["python-basics"]
    assert basics["question_count"] == 3
    assert basics["total_points"] == 4
    assert basics["time_limit_seconds"] is None
    assert by_id["timed-arithmetic"]["time_limit_seconds"] == 60


def test_quiz_detail_round_trips_into_the_model():
    from quiz_engine.questions import Quiz, SingleIndex

    r = client.get("/quizzes/python-basics")
    assert r.status_code == 200
    quiz = Quiz.model_validate(r.json())
    q2 = quiz.question("q2")
    assert q2.options == ["True", "False"]
    assert q2.correct_answer == SingleIndex(index=1)


def test_missing_quiz():
    r = client.get("/quizzes/does-not-exist")
    assert r.status_code == 404
    assert r.json()["detail"]["error"] == "quiz_not_found"
