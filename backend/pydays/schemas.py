from __future__ import annotations
from enum import IntEnum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool
from pydantic.alias_generators import to_camel


PASS_THRESHOLD = 60
# weights in percent; the composite is computed in integers so .5 rounds up exactly
CORRECTNESS_PERCENT = 60
CODE_QUALITY_PERCENT = 25
EFFICIENCY_PERCENT = 15
CORRECTNESS_WEIGHT = CORRECTNESS_PERCENT / 100
CODE_QUALITY_WEIGHT = CODE_QUALITY_PERCENT / 100
EFFICIENCY_WEIGHT = EFFICIENCY_PERCENT / 100


class Level(IntEnum):
	ONE = 1
	TWO = 2
	THREE = 3


BlockType = Literal["heading", "paragraph", "code", "list", "table", "image", "quote"]


class ContentBlock(BaseModel):
	type: BlockType
	content: str = ""
	level: Optional[int] = None
	language: Optional[str] = None
	runnable: Optional[bool] = None
	items: Optional[List[str]] = None
	ordered: Optional[bool] = None
	headers: Optional[List[str]] = None
	rows: Optional[List[List[str]]] = None
	alt: Optional[str] = None
	src: Optional[str] = None


class Exercise(BaseModel):
	id: str
	level: int = Field(ge=1, le=3)
	order: int = Field(ge=1)
	description: str
	starter_code: str
	hints: List[str] = Field(default_factory=list)
	tags: List[str] = Field(default_factory=list)


class GeneratedChallenge(Exercise):
	level: Literal[3] = 3
	title: str
	reference_answer: str
	answer_explanation: str
	grading_criteria: List[str] = Field(default_factory=list)


class ExerciseBuckets(BaseModel):
	level1: List[Exercise] = Field(default_factory=list)
	level2: List[Exercise] = Field(default_factory=list)
	level3: List[Exercise] = Field(default_factory=list)

	def for_level(self, level: Level) -> List[Exercise]:
		if level == Level.ONE:
			return self.level1
		if level == Level.TWO:
			return self.level2
		return self.level3

	def total(self) -> int:
		return len(self.level1) + len(self.level2) + len(self.level3)


class LessonDocument(BaseModel):
	model_config = ConfigDict(frozen=True)

	id: int = Field(ge=1, le=30)
	order: int
	title: str
	summary: str = Field(max_length=150)
	estimated_time: str
	raw_text: str
	blocks: List[ContentBlock] = Field(default_factory=list)
	exercises: ExerciseBuckets = Field(default_factory=ExerciseBuckets)
	learning_objectives: List[str] = Field(default_factory=list, max_length=5)


class GradingContext(BaseModel):
	challenge_description: str
	reference_answer: str = ""
	answer_explanation: str = ""
	grading_criteria: List[str] = Field(default_factory=list)
	user_code: str


class _CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GradingAnalysis(_CamelModel):
	correctness: int = Field(ge=0, le=100)
	code_quality: int = Field(ge=0, le=100)
	efficiency: int = Field(ge=0, le=100)
	suggestions: List[str] = Field(default_factory=list)
	strengths: List[str] = Field(default_factory=list)
	weaknesses: List[str] = Field(default_factory=list)


class GradingResult(_CamelModel):
	passed: StrictBool
	score: int = Field(ge=0, le=100)
	feedback: str
	analysis: GradingAnalysis


class SyntaxCheckResult(BaseModel):
	valid: StrictBool
	error: Optional[str] = None


def composite_score(correctness: int, code_quality: int, efficiency: int) -> int:
	"""Weighted overall score, rounded half up."""
	weighted = (
		CORRECTNESS_PERCENT * int(correctness)
		+ CODE_QUALITY_PERCENT * int(code_quality)
		+ EFFICIENCY_PERCENT * int(efficiency)
	)
	return (weighted + 50) // 100


def is_passing(score: int) -> bool:
	return score >= PASS_THRESHOLD
