from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Challenge, Lesson

router = APIRouter(prefix="/lessons", tags=["lessons"])


class LessonOverview(BaseModel):
	id: int
	order: int
	title: str
	summary: str
	estimated_time: Optional[str] = None


class LessonContent(BaseModel):
	id: int
	order: int
	title: str
	estimated_time: Optional[str] = None
	raw_markdown: str
	blocks: List[Dict[str, Any]]
	learning_objectives: List[str]


class ChallengeSummary(BaseModel):
	id: str
	lesson_id: int
	level: int
	order: int
	title: str
	description: str
	difficulty: str
	source: str
	starter_code: str
	hints: List[str]
	tags: List[str]
	estimated_time: Optional[str] = None
	public_tests: List[Any]
	points: int


def challenge_summary(challenge: Challenge) -> ChallengeSummary:
	# hidden tests, the solution and grading material stay server-side
	return ChallengeSummary(
		id=challenge.id,
		lesson_id=challenge.lesson_id,
		level=challenge.level,
		order=challenge.order,
		title=challenge.title,
		description=challenge.description,
		difficulty=challenge.difficulty,
		source=challenge.source,
		starter_code=challenge.starter_code,
		hints=challenge.hints or [],
		tags=challenge.tags or [],
		estimated_time=challenge.estimated_time,
		public_tests=challenge.public_tests or [],
		points=challenge.points,
	)


@router.get("", response_model=List[LessonOverview])
def list_lessons(db: Session = Depends(get_db)):
	rows = db.query(Lesson).order_by(Lesson.order).all()
	return [
		LessonOverview(id=r.id, order=r.order, title=r.title, summary=r.summary, estimated_time=r.estimated_time)
		for r in rows
	]


@router.get("/{lesson_id}", response_model=LessonContent)
def get_lesson(lesson_id: int = Path(ge=1, le=30), db: Session = Depends(get_db)):
	lesson = db.get(Lesson, lesson_id)
	if not lesson:
		raise HTTPException(status_code=404, detail="Lesson not found")
	return LessonContent(
		id=lesson.id,
		order=lesson.order,
		title=lesson.title,
		estimated_time=lesson.estimated_time,
		raw_markdown=lesson.content_markdown,
		blocks=lesson.content_blocks or [],
		learning_objectives=lesson.learning_objectives or [],
	)


@router.get("/{lesson_id}/challenges", response_model=List[ChallengeSummary])
def list_lesson_challenges(
	lesson_id: int = Path(ge=1, le=30),
	level: Optional[int] = Query(default=None, ge=1, le=3),
	db: Session = Depends(get_db),
):
	query = db.query(Challenge).filter(Challenge.lesson_id == lesson_id)
	if level is not None:
		query = query.filter(Challenge.level == level)
	return [challenge_summary(c) for c in query.order_by(Challenge.level, Challenge.order, Challenge.id).all()]
