from __future__ import annotations
import logging
import sys
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List

from sqlalchemy.orm import Session

from .db import Database
from .loader import LAST_LESSON_ID
from .models import Challenge, Lesson
from .settings import settings


logger = logging.getLogger(__name__)

EXPECTED_LESSONS = LAST_LESSON_ID
MIN_CONTENT_LENGTH = 100
MIN_CHALLENGES = 150
MIN_DESCRIPTION_LENGTH = 10


@dataclass
class VerificationReport:
	lessons: int = 0
	challenges: int = 0
	per_level: Dict[int, int] = field(default_factory=dict)
	per_source: Dict[str, int] = field(default_factory=dict)
	per_lesson: Dict[int, int] = field(default_factory=dict)
	problems: List[str] = field(default_factory=list)

	@property
	def ok(self) -> bool:
		return not self.problems


def verify_content(db: Session) -> VerificationReport:
	"""Check that a seeded store holds the whole curriculum."""
	report = VerificationReport()
	lessons = db.query(Lesson).order_by(Lesson.order).all()
	challenges = db.query(Challenge).all()
	report.lessons = len(lessons)
	report.challenges = len(challenges)

	if report.lessons != EXPECTED_LESSONS:
		report.problems.append(f"expected {EXPECTED_LESSONS} lessons, found {report.lessons}")
	for lesson in lessons:
		length = len(lesson.content_markdown or "")
		if length < MIN_CONTENT_LENGTH:
			report.problems.append(f"lesson {lesson.id}: content too short ({length} characters)")

	if report.challenges < MIN_CHALLENGES:
		report.problems.append(f"expected at least {MIN_CHALLENGES} challenges, found {report.challenges}")
	report.per_level = dict(sorted(Counter(c.level for c in challenges).items()))
	report.per_source = dict(sorted(Counter(c.source for c in challenges).items()))
	report.per_lesson = dict(sorted(Counter(c.lesson_id for c in challenges).items()))

	for lesson_id in range(1, EXPECTED_LESSONS + 1):
		if not report.per_lesson.get(lesson_id):
			report.problems.append(f"lesson {lesson_id}: no challenges")
	for challenge in challenges:
		if len(challenge.description or "") < MIN_DESCRIPTION_LENGTH:
			report.problems.append(f"{challenge.id}: description missing or too short")
	return report


def main() -> int:
	logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
	database = Database().open()
	db = database.session()
	try:
		report = verify_content(db)
	finally:
		db.close()
		database.close()
	logger.info("Lessons: %d / %d", report.lessons, EXPECTED_LESSONS)
	logger.info("Challenges: %d (by level %s, by source %s)", report.challenges, report.per_level, report.per_source)
	for lesson_id, count in report.per_lesson.items():
		logger.debug("Lesson %d: %d challenges", lesson_id, count)
	if not report.ok:
		for problem in report.problems:
			logger.error(problem)
		return 1
	logger.info("Content verification passed")
	return 0


if __name__ == "__main__":
	sys.exit(main())
