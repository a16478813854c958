from __future__ import annotations
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from .. import grader
from ..db import get_db
from ..models import Challenge, Submission
from ..progress import has_passed, record_pass
from ..schemas import GradingAnalysis, GradingContext
from .auth import User, get_current_user
from .lessons import ChallengeSummary, challenge_summary

router = APIRouter(prefix="/challenges", tags=["challenges"])

logger = logging.getLogger(__name__)

MAX_CODE_LENGTH = 20000


class SubmitRequest(BaseModel):
	code: str = Field(max_length=MAX_CODE_LENGTH)


class SubmitResponse(BaseModel):
	passed: bool
	score: int
	feedback: str
	analysis: Optional[GradingAnalysis] = None
	submission_id: Optional[int] = None
	badges_granted: list[str] = Field(default_factory=list)


class SolutionResponse(BaseModel):
	solution_code: str
	explanation: str


def _get_challenge(db: Session, challenge_id: str) -> Challenge:
	challenge = db.get(Challenge, challenge_id)
	if not challenge:
		raise HTTPException(status_code=404, detail="Challenge not found")
	return challenge


@router.get("/{challenge_id}", response_model=ChallengeSummary)
def get_challenge(challenge_id: str, db: Session = Depends(get_db)):
	return challenge_summary(_get_challenge(db, challenge_id))


@router.post("/{challenge_id}/submit", response_model=SubmitResponse)
async def submit(challenge_id: str, req: SubmitRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	challenge = _get_challenge(db, challenge_id)

	syntax = await grader.check_syntax(req.code)
	if not syntax.valid:
		return SubmitResponse(passed=False, score=0, feedback=f"Syntax error: {syntax.error or 'invalid Python code'}")

	started = time.monotonic()
	result = await grader.grade_with_ai(GradingContext(
		challenge_description=challenge.description,
		reference_answer=challenge.solution_code,
		answer_explanation=challenge.answer_explanation or "",
		grading_criteria=challenge.grading_criteria or [],
		user_code=req.code,
	))
	runtime_ms = int((time.monotonic() - started) * 1000)

	# must be read before the new row is stored
	first_pass = result.passed and not has_passed(db, user.username, challenge.id)
	submission = Submission(
		username=user.username,
		challenge_id=challenge.id,
		code=req.code,
		passed=result.passed,
		score=result.score,
		runtime_ms=runtime_ms,
		feedback=result.feedback,
		analysis=result.analysis.model_dump(by_alias=True),
	)
	db.add(submission)
	db.commit()

	granted: list[str] = []
	if first_pass:
		granted = record_pass(db, user.username, challenge)
	logger.info("Submission %s by %s on %s: score=%s passed=%s", submission.id, user.username, challenge.id, result.score, result.passed)
	return SubmitResponse(
		passed=result.passed,
		score=result.score,
		feedback=result.feedback,
		analysis=result.analysis,
		submission_id=submission.id,
		badges_granted=granted,
	)


@router.get("/{challenge_id}/solution", response_model=SolutionResponse)
def get_solution(challenge_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	challenge = _get_challenge(db, challenge_id)
	if not has_passed(db, user.username, challenge.id):
		raise HTTPException(status_code=403, detail="You must pass the challenge first")
	return SolutionResponse(
		solution_code=challenge.solution_code,
		explanation=challenge.answer_explanation or "This is one reference answer; your implementation may differ.",
	)
