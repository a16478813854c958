"""Per-user progress bookkeeping.

Counters and score totals are only ever bumped with single-statement
``UPDATE ... SET col = col + n`` so two submissions from the same user
cannot lose each other's increments. Derived numbers (lessons completed,
lessons in progress) are recounted from the rows instead.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from .models import Badge, Challenge, Submission, UserAccount, UserBadge, UserLessonProgress, UserStats
from .schemas import Level


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LevelCounters:
	passed: int
	total: int

	@property
	def complete(self) -> bool:
		return self.passed >= self.total


def _passed_column(level: Level):
	if level == Level.ONE:
		return UserLessonProgress.level1_passed
	if level == Level.TWO:
		return UserLessonProgress.level2_passed
	if level == Level.THREE:
		return UserLessonProgress.level3_passed
	raise ValueError(f"unknown level: {level!r}")


def counters_for(row: UserLessonProgress, level: Level) -> LevelCounters:
	if level == Level.ONE:
		return LevelCounters(row.level1_passed, row.level1_total)
	if level == Level.TWO:
		return LevelCounters(row.level2_passed, row.level2_total)
	if level == Level.THREE:
		return LevelCounters(row.level3_passed, row.level3_total)
	raise ValueError(f"unknown level: {level!r}")


def lesson_complete(row: UserLessonProgress) -> bool:
	counters = [counters_for(row, level) for level in Level]
	return sum(c.total for c in counters) > 0 and all(c.complete for c in counters)


def ensure_user(db: Session, username: str) -> UserAccount:
	user = db.get(UserAccount, username)
	if user is None:
		user = UserAccount(username=username)
		db.add(user)
		db.add(UserStats(username=username))
		db.flush()
		logger.info("Created user %s", username)
	return user


def _level_totals(db: Session, lesson_id: int) -> Dict[int, int]:
	rows = (
		db.query(Challenge.level, func.count(Challenge.id))
		.filter(Challenge.lesson_id == lesson_id)
		.group_by(Challenge.level)
		.all()
	)
	return {int(level): int(count) for level, count in rows}


def ensure_progress(db: Session, username: str, lesson_id: int) -> UserLessonProgress:
	row = db.get(UserLessonProgress, (username, lesson_id))
	if row is None:
		totals = _level_totals(db, lesson_id)
		row = UserLessonProgress(
			username=username,
			lesson_id=lesson_id,
			learned=False,
			level1_passed=0,
			level2_passed=0,
			level3_passed=0,
			level1_total=totals.get(1, 0),
			level2_total=totals.get(2, 0),
			level3_total=totals.get(3, 0),
			score=0,
			started_at=datetime.utcnow(),
		)
		db.add(row)
		db.flush()
	return row


def has_passed(db: Session, username: str, challenge_id: str) -> bool:
	return db.query(Submission.id).filter(
		Submission.username == username,
		Submission.challenge_id == challenge_id,
		Submission.passed.is_(True),
	).first() is not None


def mark_learned(db: Session, username: str, lesson_id: int) -> UserLessonProgress:
	ensure_user(db, username)
	row = ensure_progress(db, username, lesson_id)
	row.learned = True
	if row.started_at is None:
		row.started_at = datetime.utcnow()
	db.flush()
	refresh_stats(db, username)
	db.commit()
	return row


def record_pass(db: Session, username: str, challenge: Challenge) -> List[str]:
	"""Credit a first pass of ``challenge``; returns codes of newly granted badges.

	Callers must check ``has_passed`` before storing the new submission so a
	challenge is only ever credited once.
	"""
	ensure_user(db, username)
	row = ensure_progress(db, username, challenge.lesson_id)
	column = _passed_column(Level(challenge.level))
	db.execute(
		update(UserLessonProgress)
		.where(UserLessonProgress.username == username, UserLessonProgress.lesson_id == challenge.lesson_id)
		.values({column: column + 1, UserLessonProgress.score: UserLessonProgress.score + challenge.points})
		.execution_options(synchronize_session=False)
	)
	db.execute(
		update(UserStats)
		.where(UserStats.username == username)
		.values(total_score=UserStats.total_score + challenge.points)
		.execution_options(synchronize_session=False)
	)
	db.refresh(row)
	if row.completed_at is None and lesson_complete(row):
		row.completed_at = datetime.utcnow()
		logger.info("User %s completed lesson %s", username, row.lesson_id)
	db.flush()
	refresh_stats(db, username)
	granted = award_badges(db, username)
	db.commit()
	return granted


def refresh_stats(db: Session, username: str) -> UserStats:
	completed = db.query(func.count()).select_from(UserLessonProgress).filter(
		UserLessonProgress.username == username,
		UserLessonProgress.completed_at.isnot(None),
	).scalar() or 0
	in_progress = db.query(func.count()).select_from(UserLessonProgress).filter(
		UserLessonProgress.username == username,
		UserLessonProgress.completed_at.is_(None),
	).scalar() or 0
	stats = db.get(UserStats, username)
	if stats is None:
		stats = UserStats(username=username, total_score=0)
		db.add(stats)
	else:
		db.refresh(stats)
	stats.lessons_completed = completed
	stats.lessons_in_progress = in_progress
	db.flush()
	return stats


def _completed_lessons(db: Session, username: str) -> List[int]:
	rows = db.query(UserLessonProgress.lesson_id).filter(
		UserLessonProgress.username == username,
		UserLessonProgress.completed_at.isnot(None),
	).all()
	return [lesson_id for (lesson_id,) in rows]


def _rule_met(rule: Dict, completed: List[int]) -> bool:
	kind = rule.get("type")
	if kind == "complete_day":
		return rule.get("lesson_id") in completed
	if kind == "complete_days":
		return len(completed) >= int(rule.get("count", 0))
	if kind == "perfect_day":
		return bool(completed)
	# streak and fast_solve rules need activity history that is not recorded
	return False


def award_badges(db: Session, username: str) -> List[str]:
	owned = {code for (code,) in db.query(UserBadge.badge_code).filter(UserBadge.username == username).all()}
	completed = _completed_lessons(db, username)
	granted: List[str] = []
	for badge in db.query(Badge).order_by(Badge.code).all():
		if badge.code in owned or not _rule_met(badge.rule or {}, completed):
			continue
		db.add(UserBadge(username=username, badge_code=badge.code))
		granted.append(badge.code)
	if granted:
		db.flush()
		logger.info("Granted badges %s to %s", ", ".join(granted), username)
	return granted


def leaderboard(db: Session, limit: int = 10) -> List[UserStats]:
	return (
		db.query(UserStats)
		.order_by(UserStats.total_score.desc(), UserStats.username.asc())
		.limit(limit)
		.all()
	)


def user_badges(db: Session, username: str) -> List[tuple]:
	return (
		db.query(Badge, UserBadge.granted_at)
		.join(UserBadge, UserBadge.badge_code == Badge.code)
		.filter(UserBadge.username == username)
		.order_by(UserBadge.granted_at)
		.all()
	)


def get_stats(db: Session, username: str) -> Optional[UserStats]:
	return db.get(UserStats, username)
