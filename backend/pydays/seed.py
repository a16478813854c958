"""Load the curriculum into the database.

Lessons, challenges and badges are upserted (``Session.merge``) keyed by
lesson id, challenge id and badge code, so re-running the seed never
duplicates rows. The whole run is one transaction: a storage failure rolls
everything back and is re-raised, because a half-seeded curriculum is worse
than a failed run.
"""
from __future__ import annotations
import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .challenge_generator import DEFAULT_CRITERIA, DEFAULT_EXPLANATION, generate_all_extra_challenges
from .db import Database
from .loader import load_all
from .models import Badge, Challenge, Lesson
from .schemas import Exercise, GeneratedChallenge, LessonDocument, Level
from .settings import settings


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LevelProfile:
	title: str
	difficulty: str
	estimated_time: str
	points: int


LEVEL_PROFILES: Dict[Level, LevelProfile] = {
	Level.ONE: LevelProfile("Exercise", "easy", "5-10 min", 10),
	Level.TWO: LevelProfile("Practice", "medium", "10-15 min", 15),
	Level.THREE: LevelProfile("Challenge", "hard", "15-30 min", 20),
}

BADGE_CATALOG: List[Dict[str, Any]] = [
	{
		"code": "first_day",
		"name": "Beginner",
		"icon": "🎓",
		"description": "Complete the first day of lessons",
		"rule": {"type": "complete_day", "lesson_id": 1},
		"points": 10,
	},
	{
		"code": "week_warrior",
		"name": "Week Warrior",
		"icon": "🔥",
		"description": "Study seven days in a row",
		"rule": {"type": "streak", "days": 7},
		"points": 50,
	},
	{
		"code": "perfect_score",
		"name": "Perfectionist",
		"icon": "💯",
		"description": "Pass every exercise of a single day",
		"rule": {"type": "perfect_day"},
		"points": 30,
	},
	{
		"code": "speed_demon",
		"name": "Speed Demon",
		"icon": "⚡",
		"description": "Solve an exercise within five minutes",
		"rule": {"type": "fast_solve", "minutes": 5},
		"points": 20,
	},
	{
		"code": "halfway",
		"name": "Half Marathon",
		"icon": "🏃",
		"description": "Complete fifteen days of lessons",
		"rule": {"type": "complete_days", "count": 15},
		"points": 100,
	},
	{
		"code": "graduate",
		"name": "Graduate",
		"icon": "🎉",
		"description": "Complete all thirty days",
		"rule": {"type": "complete_days", "count": 30},
		"points": 500,
	},
]


class SeedError(RuntimeError):
	"""Raised when the curriculum could not be persisted."""


@dataclass
class SeedReport:
	lessons: int = 0
	challenges: int = 0
	badges: int = 0
	per_level: Dict[int, int] = field(default_factory=lambda: {1: 0, 2: 0, 3: 0})


def lesson_row(lesson: LessonDocument) -> Lesson:
	return Lesson(
		id=lesson.id,
		order=lesson.order,
		title=lesson.title,
		summary=lesson.summary,
		estimated_time=lesson.estimated_time,
		content_markdown=lesson.raw_text,
		content_blocks=[block.model_dump(exclude_none=True) for block in lesson.blocks],
		learning_objectives=list(lesson.learning_objectives),
	)


def challenge_row(lesson_id: int, exercise: Exercise) -> Challenge:
	profile = LEVEL_PROFILES[Level(exercise.level)]
	if isinstance(exercise, GeneratedChallenge):
		title = exercise.title
		source = "generated"
		solution_code = exercise.reference_answer
		explanation = exercise.answer_explanation
		criteria = list(exercise.grading_criteria)
	else:
		title = f"{profile.title} {exercise.order}"
		source = "original"
		solution_code = "# Reference solution\n" + exercise.starter_code
		explanation = DEFAULT_EXPLANATION
		criteria = list(DEFAULT_CRITERIA)
	return Challenge(
		id=exercise.id,
		lesson_id=lesson_id,
		level=exercise.level,
		order=exercise.order,
		title=title,
		description=exercise.description,
		difficulty=profile.difficulty,
		source=source,
		starter_code=exercise.starter_code,
		solution_code=solution_code,
		answer_explanation=explanation,
		grading_criteria=criteria,
		hints=list(exercise.hints),
		tags=list(exercise.tags),
		estimated_time=profile.estimated_time,
		public_tests=[],
		hidden_tests=[],
		points=profile.points,
	)


def challenges_for(lesson: LessonDocument, generated: Sequence[GeneratedChallenge]) -> List[Exercise]:
	"""Authored exercises for every level; generated ones only when level 3 is empty."""
	exercises: List[Exercise] = list(lesson.exercises.level1) + list(lesson.exercises.level2)
	if lesson.exercises.level3:
		exercises.extend(lesson.exercises.level3)
	else:
		exercises.extend(generated)
	return exercises


def seed_database(db: Session, lessons: Optional[Sequence[LessonDocument]] = None) -> SeedReport:
	if lessons is None:
		lessons = load_all()
	report = SeedReport()
	generated = generate_all_extra_challenges(lessons)
	try:
		logger.info("Seeding %d lessons", len(lessons))
		for lesson in lessons:
			db.merge(lesson_row(lesson))
			report.lessons += 1
		# lessons first so challenge foreign keys resolve
		db.flush()
		for lesson in lessons:
			for exercise in challenges_for(lesson, generated[lesson.id]):
				db.merge(challenge_row(lesson.id, exercise))
				report.challenges += 1
				report.per_level[exercise.level] += 1
		logger.info("Seeding %d challenges (L1=%d L2=%d L3=%d)", report.challenges, report.per_level[1], report.per_level[2], report.per_level[3])
		for badge in BADGE_CATALOG:
			db.merge(Badge(**badge))
			report.badges += 1
		db.commit()
	except SQLAlchemyError as err:
		db.rollback()
		logger.error("Seeding failed, rolled back: %s", err)
		raise SeedError("Failed to seed the curriculum") from err
	logger.info("Seed complete: %d lessons, %d challenges, %d badges", report.lessons, report.challenges, report.badges)
	return report


def main() -> int:
	logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
	database = Database().open()
	db = database.session()
	try:
		seed_database(db)
	except SeedError:
		logger.exception("Seed run failed")
		return 1
	finally:
		db.close()
		database.close()
	return 0


if __name__ == "__main__":
	sys.exit(main())
