"""AI grading for code submissions.

``grade_with_ai`` and ``check_syntax`` never raise: any failure of the model
call (missing credentials, transport errors, malformed or out-of-range
output) degrades to a deterministic result. Every ``GradingResult`` leaving
this module obeys the same contract, whichever path produced it:
``score`` is the 0.6/0.25/0.15 composite of the analysis sub-scores and
``passed`` is ``score >= 60``.
"""
from __future__ import annotations
import logging
import re
from typing import Any, Dict, Optional

from .gemini_client import GeminiClient
from .schemas import (
	CODE_QUALITY_WEIGHT,
	CORRECTNESS_WEIGHT,
	EFFICIENCY_WEIGHT,
	PASS_THRESHOLD,
	GradingAnalysis,
	GradingContext,
	GradingResult,
	SyntaxCheckResult,
	composite_score,
	is_passing,
)
from .settings import settings


logger = logging.getLogger(__name__)

GRADER_SYSTEM_PROMPT = (
	"You are an expert Python programming instructor. "
	"Evaluate student code submissions and give concise, constructive feedback."
)
SYNTAX_SYSTEM_PROMPT = (
	"You are a Python syntax checker. Only decide whether the code has syntax errors; do not execute it."
)

_SCORE_PROPERTY = {"type": "integer", "minimum": 0, "maximum": 100}
_STRING_LIST = {"type": "array", "items": {"type": "string"}}

GRADING_RESULT_SCHEMA: Dict[str, Any] = {
	"title": "grading_result",
	"type": "object",
	"properties": {
		"passed": {"type": "boolean", "description": "Whether the submission passes"},
		"score": {**_SCORE_PROPERTY, "description": "Overall score 0-100"},
		"feedback": {"type": "string", "description": "Short feedback, one or two sentences"},
		"analysis": {
			"type": "object",
			"properties": {
				"correctness": {**_SCORE_PROPERTY, "description": "Correctness score 0-100"},
				"codeQuality": {**_SCORE_PROPERTY, "description": "Code quality score 0-100"},
				"efficiency": {**_SCORE_PROPERTY, "description": "Efficiency score 0-100"},
				"suggestions": {**_STRING_LIST, "description": "Concrete improvement suggestions"},
				"strengths": {**_STRING_LIST, "description": "Strengths of the code"},
				"weaknesses": {**_STRING_LIST, "description": "Weaknesses of the code"},
			},
			"required": ["correctness", "codeQuality", "efficiency", "suggestions", "strengths", "weaknesses"],
			"additionalProperties": False,
		},
	},
	"required": ["passed", "score", "feedback", "analysis"],
	"additionalProperties": False,
}

SYNTAX_CHECK_SCHEMA: Dict[str, Any] = {
	"title": "syntax_check",
	"type": "object",
	"properties": {
		"valid": {"type": "boolean"},
		"error": {"type": ["string", "null"]},
	},
	# strict structured output needs every property listed
	"required": ["valid", "error"],
	"additionalProperties": False,
}

# Fallback heuristic thresholds and scores
MIN_CODE_LENGTH = 20
MIN_NON_COMMENT_LENGTH = 10
FALLBACK_PASS_SCORE = 70
FALLBACK_FAIL_SCORE = 30
FALLBACK_COMMENTED_QUALITY = 70
FALLBACK_PLAIN_QUALITY = 50
FALLBACK_EFFICIENCY = 60
FALLBACK_SUGGESTIONS = [
	"Add comments that explain the logic of your code",
	"Consider handling errors and unexpected input",
	"Try to simplify the structure of your code",
]

_LINE_COMMENT_RE = re.compile(r"#.*")


def build_grading_prompt(context: GradingContext) -> str:
	criteria = "\n".join(f"{i}. {criterion}" for i, criterion in enumerate(context.grading_criteria, start=1))
	return (
		"Evaluate the following Python code submission.\n\n"
		f"**Challenge description:**\n{context.challenge_description}\n\n"
		f"**Reference answer:**\n```python\n{context.reference_answer}\n```\n\n"
		f"**Answer explanation:**\n{context.answer_explanation}\n\n"
		f"**Grading criteria:**\n{criteria or '1. The code implements what the challenge asks for'}\n\n"
		f"**Student submission:**\n```python\n{context.user_code}\n```\n\n"
		"Score each dimension from 0 to 100:\n"
		"1. **correctness**: does the code do what the challenge asks\n"
		"2. **codeQuality**: style, readability and naming\n"
		"3. **efficiency**: algorithmic efficiency and resource use\n\n"
		"Scoring rules:\n"
		f"- score = correctness * {CORRECTNESS_WEIGHT} + codeQuality * {CODE_QUALITY_WEIGHT} + efficiency * {EFFICIENCY_WEIGHT}\n"
		f"- score >= {PASS_THRESHOLD} means passed = true\n"
		"- give 3-5 concrete suggestions\n"
		"- name 2-3 strengths\n"
		"- name 1-3 weaknesses\n\n"
		"Return the result as JSON matching the provided schema."
	)


def build_syntax_prompt(code: str) -> str:
	return f"Check whether this Python code has syntax errors:\n\n```python\n{code}\n```"


def normalize_result(result: GradingResult) -> GradingResult:
	"""Recompute score and passed from the analysis sub-scores."""
	analysis = result.analysis
	score = composite_score(analysis.correctness, analysis.code_quality, analysis.efficiency)
	return result.model_copy(update={"score": score, "passed": is_passing(score)})


def parse_grading_payload(data: Any) -> GradingResult:
	"""Validate a decoded model response.

	Raises ``ValueError`` (``ValidationError`` included) when ``passed`` is not a
	boolean, ``score`` is not a number in [0, 100], or the shape is wrong.
	"""
	if not isinstance(data, dict):
		raise ValueError("grading payload is not an object")
	if not isinstance(data.get("passed"), bool):
		raise ValueError("'passed' must be a boolean")
	score = data.get("score")
	if isinstance(score, bool) or not isinstance(score, (int, float)) or not 0 <= score <= 100:
		raise ValueError(f"'score' out of range: {score!r}")
	return normalize_result(GradingResult.model_validate(data))


def _correctness_for(target: int, code_quality: int, efficiency: int) -> int:
	"""Correctness sub-score whose weighted composite lands on ``target``."""
	remainder = target - CODE_QUALITY_WEIGHT * code_quality - EFFICIENCY_WEIGHT * efficiency
	return max(0, min(100, int(round(remainder / CORRECTNESS_WEIGHT))))


def fallback_grade(context: GradingContext) -> GradingResult:
	code = context.user_code.strip()
	has_code = len(code) > MIN_CODE_LENGTH
	has_comments = "#" in code
	not_just_comments = len(_LINE_COMMENT_RE.sub("", code).strip()) > MIN_NON_COMMENT_LENGTH
	passed = has_code and not_just_comments

	target = FALLBACK_PASS_SCORE if passed else FALLBACK_FAIL_SCORE
	code_quality = FALLBACK_COMMENTED_QUALITY if has_comments else FALLBACK_PLAIN_QUALITY
	correctness = _correctness_for(target, code_quality, FALLBACK_EFFICIENCY)
	score = composite_score(correctness, code_quality, FALLBACK_EFFICIENCY)
	return GradingResult(
		passed=is_passing(score),
		score=score,
		feedback=(
			"Code submitted. Run it against a few inputs to confirm it works."
			if passed
			else "The submission is too short. Please complete the implementation."
		),
		analysis=GradingAnalysis(
			correctness=correctness,
			code_quality=code_quality,
			efficiency=FALLBACK_EFFICIENCY,
			suggestions=list(FALLBACK_SUGGESTIONS),
			strengths=["The code is clearly structured"] if passed else [],
			weaknesses=[] if passed else ["The implementation is incomplete"],
		),
	)


async def grade_with_ai(context: GradingContext, client: Optional[GeminiClient] = None) -> GradingResult:
	owns_client = client is None
	try:
		if client is None:
			client = GeminiClient(model=settings.grading_model)
		data = await client.generate_json(
			build_grading_prompt(context),
			GRADING_RESULT_SCHEMA,
			system=GRADER_SYSTEM_PROMPT,
		)
		return parse_grading_payload(data)
	except ValueError as err:
		logger.warning("AI grading returned an invalid result, using fallback: %s", err)
	except Exception as err:
		logger.warning("AI grading failed, using fallback: %s", err)
	finally:
		if owns_client and client is not None:
			await client.aclose()
	return fallback_grade(context)


async def check_syntax(code: str, client: Optional[GeminiClient] = None) -> SyntaxCheckResult:
	"""Ask the model whether ``code`` parses. Fails open: any error means valid."""
	owns_client = client is None
	try:
		if client is None:
			client = GeminiClient(model=settings.grading_model)
		data = await client.generate_json(
			build_syntax_prompt(code),
			SYNTAX_CHECK_SCHEMA,
			system=SYNTAX_SYSTEM_PROMPT,
		)
		return SyntaxCheckResult.model_validate(data)
	except Exception as err:
		logger.warning("Syntax check failed, assuming valid: %s", err)
		return SyntaxCheckResult(valid=True)
	finally:
		if owns_client and client is not None:
			await client.aclose()
