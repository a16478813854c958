"""HTTP tests for the FastAPI routers."""

import pytest
from fastapi.testclient import TestClient

from pydays import grader
from pydays.content_parser import parse_lesson
from pydays.db import Database
from pydays.loader import create_day_one
from pydays.main import create_app
from pydays.schemas import GradingAnalysis, GradingResult, SyntaxCheckResult
from pydays.seed import seed_database
from pydays.settings import settings


ADA = {"X-User": "ada"}


def _result(passed):
    correctness = 90 if passed else 20
    analysis = GradingAnalysis(correctness=correctness, code_quality=80, efficiency=70)
    return grader.normalize_result(GradingResult(passed=passed, score=0, feedback="graded", analysis=analysis))


@pytest.fixture
def graded(monkeypatch):
    """Replace the model calls: code containing 'pass' passes, 'syntax error' is invalid."""
    contexts = []

    async def fake_check_syntax(code, client=None):
        if "syntax error" in code:
            return SyntaxCheckResult(valid=False, error="unexpected EOF")
        return SyntaxCheckResult(valid=True)

    async def fake_grade(context, client=None):
        contexts.append(context)
        return _result("pass" in context.user_code)

    monkeypatch.setattr(grader, "check_syntax", fake_check_syntax)
    monkeypatch.setattr(grader, "grade_with_ai", fake_grade)
    return contexts


@pytest.fixture
def client(monkeypatch, sample_lesson_text):
    monkeypatch.setattr(settings, "seed_on_startup", False)
    app = create_app(Database("sqlite://"))
    with TestClient(app) as test_client:
        db = app.state.database.session()
        try:
            seed_database(db, [create_day_one(), parse_lesson(sample_lesson_text, 2)])
        finally:
            db.close()
        yield test_client


class TestLessons:
    def test_list(self, client):
        body = client.get("/lessons").json()
        assert [lesson["id"] for lesson in body] == [1, 2]
        assert body[1]["title"] == "📘 Day 2"

    def test_detail(self, client):
        body = client.get("/lessons/2").json()
        assert body["raw_markdown"].startswith("<div")
        assert body["learning_objectives"][0] == "Built in functions"
        assert any(block["type"] == "table" for block in body["blocks"])

    def test_unknown_and_invalid_ids(self, client):
        assert client.get("/lessons/7").status_code == 404
        assert client.get("/lessons/31").status_code == 422

    def test_challenges_by_level(self, client):
        body = client.get("/lessons/2/challenges", params={"level": 2}).json()
        assert [c["id"] for c in body] == ["day2_level2_1", "day2_level2_2"]
        assert all("hidden_tests" not in c and "solution_code" not in c for c in body)
        assert client.get("/lessons/2/challenges", params={"level": 4}).status_code == 422

    def test_challenges_follow_exercise_order(self, client):
        numbered = "\n".join(f"{i}. Write a program that prints the number {i}" for i in range(1, 12))
        db = client.app.state.database.session()
        try:
            seed_database(db, [parse_lesson(f"## Exercises: Level 1\n\n{numbered}\n", 5)])
        finally:
            db.close()
        body = client.get("/lessons/5/challenges", params={"level": 1}).json()
        assert [c["id"] for c in body] == [f"day5_level1_{i}" for i in range(1, 12)]
        assert [c["order"] for c in body] == list(range(1, 12))


class TestChallenges:
    def test_get(self, client):
        body = client.get("/challenges/challenge_2_3_1").json()
        assert body["level"] == 3
        assert body["source"] == "generated"
        assert client.get("/challenges/nope").status_code == 404

    def test_submit_requires_user(self, client, graded):
        response = client.post("/challenges/day2_level1_1/submit", json={"code": "print('pass')"})
        assert response.status_code == 401

    def test_syntax_error_short_circuits(self, client, graded):
        response = client.post("/challenges/day2_level1_1/submit", json={"code": "syntax error"}, headers=ADA)
        body = response.json()
        assert body["passed"] is False
        assert body["score"] == 0
        assert body["analysis"] is None
        assert graded == []

    def test_passing_submission_updates_progress(self, client, graded):
        response = client.post("/challenges/day2_level1_1/submit", json={"code": "print('pass')"}, headers=ADA)
        body = response.json()
        assert body["passed"] is True
        assert body["score"] == 85
        assert "codeQuality" in body["analysis"]
        assert graded[0].reference_answer.startswith("# Reference solution")

        # a second pass of the same challenge is not credited again
        client.post("/challenges/day2_level1_1/submit", json={"code": "print('pass again')"}, headers=ADA)

        progress = client.get("/progress", headers=ADA).json()
        assert progress["overall"]["total_score"] == 10
        lesson = progress["lessons"][0]
        assert (lesson["lesson_id"], lesson["level1_passed"], lesson["level1_total"]) == (2, 1, 4)

        history = client.get("/progress/submissions", params={"challenge_id": "day2_level1_1"}, headers=ADA).json()
        assert len(history) == 2
        assert history[0]["code"] == "print('pass again')"

    def test_failing_submission(self, client, graded):
        body = client.post("/challenges/day2_level1_1/submit", json={"code": "print('nope')"}, headers=ADA).json()
        assert body["passed"] is False
        assert client.get("/progress", headers=ADA).json()["overall"]["total_score"] == 0

    def test_solution_locked_until_passed(self, client, graded):
        assert client.get("/challenges/challenge_2_3_1/solution", headers=ADA).status_code == 403
        client.post("/challenges/challenge_2_3_1/submit", json={"code": "print('pass')"}, headers=ADA)
        body = client.get("/challenges/challenge_2_3_1/solution", headers=ADA).json()
        assert body["solution_code"].startswith("# Reference solution")


class TestProgress:
    def test_mark_learned(self, client):
        body = client.post("/progress/2/learned", headers=ADA).json()
        assert body["learned"] is True
        overall = client.get("/progress", headers=ADA).json()["overall"]
        assert overall["lessons_in_progress"] == 1
        assert client.post("/progress/9/learned", headers=ADA).status_code == 404
        assert client.get("/progress", headers=ADA).json()["overall"]["lessons_in_progress"] == 1

    def test_leaderboard_and_badges(self, client, graded):
        client.post("/challenges/challenge_2_3_1/submit", json={"code": "print('pass')"}, headers={"X-User": "grace"})
        client.post("/challenges/day2_level1_1/submit", json={"code": "print('pass')"}, headers=ADA)
        board = client.get("/leaderboard", params={"limit": 5}).json()
        assert [(entry["rank"], entry["username"], entry["score"]) for entry in board] == [(1, "grace", 20), (2, "ada", 10)]
        assert client.get("/leaderboard", params={"limit": 0}).status_code == 422

        badges = client.get("/badges").json()
        assert {b["code"] for b in badges} >= {"first_day", "graduate"}

    def test_info(self, client):
        body = client.get("/info").json()
        assert body["status"] == "ok"
