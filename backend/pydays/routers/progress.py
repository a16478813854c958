from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Badge, Lesson, Submission, UserLessonProgress
from ..progress import get_stats, leaderboard, mark_learned, user_badges
from .auth import User, get_current_user

router = APIRouter(tags=["progress"])


class OverallStats(BaseModel):
	total_score: int = 0
	lessons_completed: int = 0
	lessons_in_progress: int = 0


class LessonProgressOut(BaseModel):
	lesson_id: int
	learned: bool
	level1_passed: int
	level1_total: int
	level2_passed: int
	level2_total: int
	level3_passed: int
	level3_total: int
	score: int
	completed_at: Optional[datetime] = None


class BadgeOut(BaseModel):
	code: str
	name: str
	icon: str
	description: str
	points: int
	granted_at: Optional[datetime] = None


class ProgressResponse(BaseModel):
	username: str
	overall: OverallStats
	lessons: List[LessonProgressOut]
	badges: List[BadgeOut]


class SubmissionOut(BaseModel):
	id: int
	challenge_id: str
	code: str
	passed: bool
	score: int
	runtime_ms: int
	feedback: Optional[str] = None
	created_at: datetime


class LeaderboardEntry(BaseModel):
	rank: int
	username: str
	score: int
	lessons_completed: int


def _badge_out(badge: Badge, granted_at: Optional[datetime] = None) -> BadgeOut:
	return BadgeOut(
		code=badge.code,
		name=badge.name,
		icon=badge.icon,
		description=badge.description,
		points=badge.points,
		granted_at=granted_at,
	)


def _progress_out(row: UserLessonProgress) -> LessonProgressOut:
	return LessonProgressOut(
		lesson_id=row.lesson_id,
		learned=row.learned,
		level1_passed=row.level1_passed,
		level1_total=row.level1_total,
		level2_passed=row.level2_passed,
		level2_total=row.level2_total,
		level3_passed=row.level3_passed,
		level3_total=row.level3_total,
		score=row.score,
		completed_at=row.completed_at,
	)


@router.get("/progress", response_model=ProgressResponse)
def get_progress(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	stats = get_stats(db, user.username)
	rows = (
		db.query(UserLessonProgress)
		.filter(UserLessonProgress.username == user.username)
		.order_by(UserLessonProgress.lesson_id)
		.all()
	)
	overall = OverallStats()
	if stats:
		overall = OverallStats(
			total_score=stats.total_score,
			lessons_completed=stats.lessons_completed,
			lessons_in_progress=stats.lessons_in_progress,
		)
	return ProgressResponse(
		username=user.username,
		overall=overall,
		lessons=[_progress_out(r) for r in rows],
		badges=[_badge_out(badge, granted_at) for badge, granted_at in user_badges(db, user.username)],
	)


@router.post("/progress/{lesson_id}/learned", response_model=LessonProgressOut)
def post_learned(lesson_id: int = Path(ge=1, le=30), user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	if not db.get(Lesson, lesson_id):
		raise HTTPException(status_code=404, detail="Lesson not found")
	return _progress_out(mark_learned(db, user.username, lesson_id))


@router.get("/progress/submissions", response_model=List[SubmissionOut])
def list_submissions(
	challenge_id: Optional[str] = None,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	query = db.query(Submission).filter(Submission.username == user.username)
	if challenge_id:
		query = query.filter(Submission.challenge_id == challenge_id)
	rows = query.order_by(Submission.created_at.desc(), Submission.id.desc()).all()
	return [
		SubmissionOut(
			id=s.id,
			challenge_id=s.challenge_id,
			code=s.code,
			passed=s.passed,
			score=s.score,
			runtime_ms=s.runtime_ms,
			feedback=s.feedback,
			created_at=s.created_at,
		)
		for s in rows
	]


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
def get_leaderboard(limit: int = Query(default=10, ge=1, le=100), db: Session = Depends(get_db)):
	return [
		LeaderboardEntry(rank=i, username=s.username, score=s.total_score, lessons_completed=s.lessons_completed)
		for i, s in enumerate(leaderboard(db, limit), start=1)
	]


@router.get("/badges", response_model=List[BadgeOut])
def list_badges(db: Session = Depends(get_db)):
	return [_badge_out(b) for b in db.query(Badge).order_by(Badge.points, Badge.code).all()]
