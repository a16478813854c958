"""Tests for progress counters, stats and badges."""

import pytest

from pydays.content_parser import parse_lesson
from pydays.loader import create_day_one
from pydays.models import Challenge, UserBadge, UserLessonProgress, UserStats
from pydays.progress import (
    LevelCounters,
    award_badges,
    counters_for,
    ensure_progress,
    ensure_user,
    leaderboard,
    mark_learned,
    record_pass,
)
from pydays.schemas import Level
from pydays.seed import seed_database


@pytest.fixture
def seeded(session, sample_lesson_text):
    seed_database(session, [create_day_one(), parse_lesson(sample_lesson_text, 2)])
    return session


def _challenges(db, lesson_id):
    return db.query(Challenge).filter(Challenge.lesson_id == lesson_id).order_by(Challenge.id).all()


class TestLevelCounters:
    def test_complete(self):
        assert LevelCounters(passed=2, total=2).complete
        assert not LevelCounters(passed=1, total=2).complete
        assert LevelCounters(passed=0, total=0).complete


class TestEnsureProgress:
    def test_totals_come_from_challenge_counts(self, seeded):
        ensure_user(seeded, "ada")
        row = ensure_progress(seeded, "ada", 2)
        assert counters_for(row, Level.ONE) == LevelCounters(0, 4)
        assert counters_for(row, Level.TWO) == LevelCounters(0, 2)
        assert counters_for(row, Level.THREE) == LevelCounters(0, 2)
        assert row.started_at is not None

    def test_ensure_user_is_idempotent(self, seeded):
        ensure_user(seeded, "ada")
        ensure_user(seeded, "ada")
        assert seeded.query(UserStats).filter(UserStats.username == "ada").count() == 1


class TestRecordPass:
    def test_increments_level_counter_and_score(self, seeded):
        challenge = seeded.get(Challenge, "day2_level2_1")
        record_pass(seeded, "ada", challenge)
        row = seeded.get(UserLessonProgress, ("ada", 2))
        assert row.level2_passed == 1
        assert row.level1_passed == 0
        assert row.score == challenge.points
        assert seeded.get(UserStats, "ada").total_score == challenge.points
        assert row.completed_at is None

    def test_completing_a_lesson(self, seeded):
        granted = []
        for challenge in _challenges(seeded, 2):
            granted.extend(record_pass(seeded, "ada", challenge))
        row = seeded.get(UserLessonProgress, ("ada", 2))
        assert row.completed_at is not None
        stats = seeded.get(UserStats, "ada")
        assert stats.lessons_completed == 1
        assert stats.lessons_in_progress == 0
        assert stats.total_score == sum(c.points for c in _challenges(seeded, 2))
        assert granted == ["perfect_score"]

    def test_first_day_badge(self, seeded):
        granted = []
        for challenge in _challenges(seeded, 1):
            granted.extend(record_pass(seeded, "ada", challenge))
        assert sorted(granted) == ["first_day", "perfect_score"]
        # badges are granted once
        assert award_badges(seeded, "ada") == []
        assert seeded.query(UserBadge).filter(UserBadge.username == "ada").count() == 2


class TestMarkLearned:
    def test_marks_and_counts_in_progress(self, seeded):
        row = mark_learned(seeded, "grace", 2)
        assert row.learned is True
        assert seeded.get(UserStats, "grace").lessons_in_progress == 1


class TestLeaderboard:
    def test_ordered_by_score(self, seeded):
        easy = seeded.get(Challenge, "day2_level1_1")
        hard = seeded.get(Challenge, "challenge_2_3_1")
        record_pass(seeded, "ada", easy)
        record_pass(seeded, "grace", hard)
        ensure_user(seeded, "linus")
        seeded.commit()
        board = leaderboard(seeded, limit=2)
        assert [s.username for s in board] == ["grace", "ada"]
