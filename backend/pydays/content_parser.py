"""Parse raw lesson markdown into structured lesson records.

Lesson sources are semi-structured free text rather than a formal grammar,
so nothing in this module raises on unexpected input: every extractor falls
back to a documented default instead.
"""
from __future__ import annotations
import html
import math
import re
from typing import Dict, List, Optional

from .schemas import ContentBlock, Exercise, ExerciseBuckets, LessonDocument


MAX_TITLE_LENGTH = 50
MAX_SUMMARY_LENGTH = 150
MIN_SUMMARY_LENGTH = 20
MAX_OBJECTIVES = 5
MIN_EXERCISE_LENGTH = 6
STARTER_PREVIEW_LENGTH = 60
WORDS_PER_MINUTE = 200

DEFAULT_SUMMARY = "Learn the key Python concepts of this lesson and practise them with hands-on exercises."
DEFAULT_OBJECTIVES = [
	"Understand the core concepts of this lesson",
	"Master the related Python syntax",
	"Reinforce what you learned through practice",
]
GENERIC_HINTS = [
	"Re-read the part of the lesson this exercise is based on",
	"Break the problem into small steps and check each one",
]
# keyword -> hint, in display order
KEYWORD_HINTS = (
	("print", "Use print() to display values on the screen"),
	("variable", "Pick descriptive variable names and assign values with ="),
	("function", "Define a function with def and return its result"),
	("list", "Create lists with square brackets and grow them with append()"),
)
TAG_VOCABULARY = (
	"print",
	"input",
	"variable",
	"string",
	"number",
	"operator",
	"list",
	"tuple",
	"set",
	"dictionary",
	"condition",
	"loop",
	"function",
	"module",
	"class",
	"file",
	"exception",
)

_TAG_RE = re.compile(r"<[^>]+>")
_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)(?:\s+#+)?\s*$")
_DAY_MARKER_RE = re.compile(r"\bday\s*\d+|第\s*\S+?\s*天", re.I)
_DAY_WORD_RE = re.compile(r"\bday\b|第.+?天", re.I)
_DAY_SUBTITLE_RE = re.compile(r"(?:第[^\n]+?天|\bday\s*\d+)\s*[-–—]\s*([^\n]+)", re.I)
_READING_TIME_RE = re.compile(
	r"(?:estimated\s+reading\s+time|reading\s+time|read(?:ing)?\s+(?:this\s+)?takes\s+about|阅读大约需要)"
	r"\s*[:：]?\s*(\d+)\s*(minutes?|mins?|hours?|hrs?|m|h|分钟|小时)",
	re.I,
)
_WORD_RE = re.compile(r"[A-Za-z0-9_']+")
_CJK_RE = re.compile(r"[一-鿿]")
_TOC_ITEM_RE = re.compile(r"^\s*[-*+]\s+\[(.+?)\]\((.+?)\)\s*$")
_FENCE_RE = re.compile(r"^(?:```|~~~)\s*([\w+#.-]*)")
_IMAGE_RE = re.compile(r"^!\[([^\]]*)\]\(\s*([^)\s]+)(?:\s+\"[^\"]*\")?\s*\)$")
_LIST_ITEM_RE = re.compile(r"^\s*(?:[-*+]|(\d+)[.)])\s+(.*)$")
_TABLE_SEPARATOR_RE = re.compile(r"^\|?\s*:?-+:?\s*(?:\|\s*:?-+:?\s*)*\|?$")
_RULE_RE = re.compile(r"^(?:-{3,}|\*{3,}|_{3,})$")
_NUMBERED_RE = re.compile(r"^\d+[.)]\s+(.+)$")
_LEVEL_RE = re.compile(r"level\s*([123])\b|([123])\s*级", re.I)
_EXERCISES_RE = re.compile(r"exercises?|练习", re.I)
_RUNNABLE_LANGUAGES = {"python", "py", "python3"}


def strip_html(text: str) -> str:
	return html.unescape(_TAG_RE.sub("", text)).strip()


# ---------------------------------------------------------------------------
# Title, summary, reading time, objectives
# ---------------------------------------------------------------------------


def extract_title(raw_text: str, blocks: List[ContentBlock], lesson_id: int) -> str:
	title: Optional[str] = None
	for block in blocks:
		if block.type == "heading" and _DAY_MARKER_RE.search(block.content):
			title = strip_html(block.content)
			break
	if not title:
		return f"Day {lesson_id}"
	if len(title) > MAX_TITLE_LENGTH:
		subtitle = _DAY_SUBTITLE_RE.search(raw_text)
		if subtitle:
			shorter = strip_html(subtitle.group(1))[:MAX_TITLE_LENGTH].strip()
			if shorter:
				title = shorter
	return title


def extract_summary(blocks: List[ContentBlock]) -> str:
	for block in blocks:
		if block.type != "paragraph":
			continue
		content = block.content.strip()
		# raw HTML wrappers and navigation links are page chrome, not prose
		if content.startswith(("<", "[")):
			continue
		text = strip_html(content)
		if len(text) < MIN_SUMMARY_LENGTH:
			continue
		if len(text) > MAX_SUMMARY_LENGTH:
			return text[: MAX_SUMMARY_LENGTH - 3] + "..."
		return text
	return DEFAULT_SUMMARY


def count_words(text: str) -> int:
	"""Latin words plus one word per CJK character."""
	return len(_WORD_RE.findall(text)) + len(_CJK_RE.findall(text))


def format_duration(minutes: int) -> str:
	if minutes < 30:
		return f"{minutes} min"
	if minutes <= 90:
		band = int(minutes / 30 + 0.5) * 30
		return f"{band} min"
	hours = minutes // 60
	return f"{hours}-{hours + 1} hours"


def extract_estimated_time(raw_text: str) -> str:
	match = _READING_TIME_RE.search(raw_text)
	if match:
		amount = int(match.group(1))
		unit = match.group(2).lower()
		if unit.startswith("h") or unit == "小时":
			return f"{amount} h"
		return f"{amount} min"
	minutes = max(1, math.ceil(count_words(raw_text) / WORDS_PER_MINUTE))
	return format_duration(minutes)


def extract_learning_objectives(raw_text: str, blocks: List[ContentBlock]) -> List[str]:
	objectives: List[str] = []
	for line in raw_text.splitlines():
		match = _TOC_ITEM_RE.match(line)
		if not match:
			continue
		objective = strip_html(match.group(1))
		if _DAY_WORD_RE.search(objective):
			continue
		if 2 < len(objective) < 50 and objective not in objectives:
			objectives.append(objective)
	if objectives:
		return objectives[:MAX_OBJECTIVES]

	for block in blocks:
		if block.type != "heading" or block.level != 2:
			continue
		heading = strip_html(block.content)
		if not heading or _EXERCISES_RE.search(heading):
			continue
		objectives.append(f"Understand {heading}")
		if len(objectives) == MAX_OBJECTIVES:
			break
	if objectives:
		return objectives
	return list(DEFAULT_OBJECTIVES)


# ---------------------------------------------------------------------------
# Block scanner
# ---------------------------------------------------------------------------


def _starts_block(stripped: str) -> bool:
	return bool(
		_FENCE_RE.match(stripped)
		or _HEADING_RE.match(stripped)
		or _IMAGE_RE.match(stripped)
		or _LIST_ITEM_RE.match(stripped)
		or _RULE_RE.match(stripped)
		or stripped.startswith(("|", ">"))
	)


def _split_row(line: str) -> List[str]:
	return [cell.strip() for cell in line.strip().strip("|").split("|")]


def parse_blocks(raw_text: str) -> List[ContentBlock]:
	"""Scan lines once, left to right, producing typed content blocks."""
	lines = raw_text.splitlines()
	blocks: List[ContentBlock] = []
	i = 0
	n = len(lines)
	while i < n:
		stripped = lines[i].strip()
		if not stripped or _RULE_RE.match(stripped):
			i += 1
			continue

		fence = _FENCE_RE.match(stripped)
		if fence:
			language = fence.group(1).lower() or None
			i += 1
			body: List[str] = []
			while i < n and not _FENCE_RE.match(lines[i].strip()):
				body.append(lines[i])
				i += 1
			i += 1  # closing fence, or past the end when unterminated
			blocks.append(ContentBlock(
				type="code",
				content="\n".join(body),
				language=language,
				runnable=language in _RUNNABLE_LANGUAGES,
			))
			continue

		heading = _HEADING_RE.match(stripped)
		if heading:
			blocks.append(ContentBlock(type="heading", level=len(heading.group(1)), content=heading.group(2)))
			i += 1
			continue

		image = _IMAGE_RE.match(stripped)
		if image:
			blocks.append(ContentBlock(type="image", alt=image.group(1), src=image.group(2)))
			i += 1
			continue

		if stripped.startswith("|"):
			rows: List[List[str]] = []
			while i < n and lines[i].strip().startswith("|"):
				row_line = lines[i].strip()
				if not _TABLE_SEPARATOR_RE.match(row_line):
					rows.append(_split_row(row_line))
				i += 1
			headers = rows[0] if rows else []
			blocks.append(ContentBlock(type="table", headers=headers, rows=rows[1:]))
			continue

		if stripped.startswith(">"):
			quoted: List[str] = []
			while i < n and lines[i].strip().startswith(">"):
				quoted.append(lines[i].strip()[1:].strip())
				i += 1
			blocks.append(ContentBlock(type="quote", content=" ".join(part for part in quoted if part)))
			continue

		item = _LIST_ITEM_RE.match(lines[i])
		if item:
			ordered = item.group(1) is not None
			items: List[str] = []
			while i < n:
				item = _LIST_ITEM_RE.match(lines[i])
				if not item:
					break
				items.append(item.group(2).strip())
				i += 1
			blocks.append(ContentBlock(type="list", ordered=ordered, items=items))
			continue

		paragraph: List[str] = [stripped]
		i += 1
		while i < n:
			peek = lines[i].strip()
			if not peek or _starts_block(peek):
				break
			paragraph.append(peek)
			i += 1
		blocks.append(ContentBlock(type="paragraph", content=" ".join(paragraph)))
	return blocks


# ---------------------------------------------------------------------------
# Exercises
# ---------------------------------------------------------------------------


def _hints_for(description: str) -> List[str]:
	lowered = description.lower()
	hints = [hint for keyword, hint in KEYWORD_HINTS if keyword in lowered]
	return hints or list(GENERIC_HINTS)


def _tags_for(description: str, lesson_id: int) -> List[str]:
	lowered = description.lower()
	return [f"Day {lesson_id}"] + [keyword for keyword in TAG_VOCABULARY if keyword in lowered]


def _starter_code_for(description: str) -> str:
	preview = description
	if len(preview) > STARTER_PREVIEW_LENGTH:
		preview = preview[: STARTER_PREVIEW_LENGTH - 3] + "..."
	return f"# {preview}\n# Write your code here\n"


def build_exercise(lesson_id: int, level: int, order: int, description: str) -> Exercise:
	return Exercise(
		id=f"day{lesson_id}_level{level}_{order}",
		level=level,
		order=order,
		description=description,
		starter_code=_starter_code_for(description),
		hints=_hints_for(description),
		tags=_tags_for(description, lesson_id),
	)


def parse_exercises(raw_text: str, lesson_id: int) -> ExerciseBuckets:
	"""Collect numbered exercises under the "Level 1/2/3" headings of the exercises section.

	A numbered line opens a new exercise; the non-blank lines directly below it
	wrap into its description and a blank line closes it. Too-short descriptions are dropped without consuming an
	order number.
	"""
	buckets: Dict[int, List[Exercise]] = {1: [], 2: [], 3: []}
	section_depth: Optional[int] = None
	level_depth: Optional[int] = None
	level = 0
	current: Optional[List[str]] = None
	in_fence = False

	def flush() -> None:
		nonlocal current
		if current is not None and level:
			description = strip_html(" ".join(current))
			if len(description) >= MIN_EXERCISE_LENGTH:
				order = len(buckets[level]) + 1
				buckets[level].append(build_exercise(lesson_id, level, order, description))
		current = None

	for line in raw_text.splitlines():
		stripped = line.strip()
		if _FENCE_RE.match(stripped):
			in_fence = not in_fence
			continue
		if in_fence:
			continue

		heading = _HEADING_RE.match(stripped)
		if heading:
			depth = len(heading.group(1))
			text = strip_html(heading.group(2))
			level_match = _LEVEL_RE.search(text)
			is_exercise_heading = bool(_EXERCISES_RE.search(text))
			flush()
			if level_match and (section_depth is not None or is_exercise_heading):
				level = int(level_match.group(1) or level_match.group(2))
				level_depth = depth
				if section_depth is None:
					section_depth = depth
			elif is_exercise_heading:
				section_depth = depth
				level, level_depth = 0, None
			elif section_depth is not None and depth <= section_depth:
				section_depth = None
				level, level_depth = 0, None
			elif level_depth is not None and depth <= level_depth:
				level, level_depth = 0, None
			continue

		if not level:
			continue
		numbered = _NUMBERED_RE.match(stripped)
		if numbered:
			flush()
			current = [numbered.group(1).strip()]
			continue
		if not stripped:
			flush()
			continue
		if current is None:
			continue
		if stripped.startswith(("<", "!", "[")):
			continue
		current.append(stripped)
	flush()

	return ExerciseBuckets(level1=buckets[1], level2=buckets[2], level3=buckets[3])


def parse_lesson(raw_text: str, lesson_id: int) -> LessonDocument:
	blocks = parse_blocks(raw_text)
	return LessonDocument(
		id=lesson_id,
		order=lesson_id,
		title=extract_title(raw_text, blocks, lesson_id),
		summary=extract_summary(blocks),
		estimated_time=extract_estimated_time(raw_text),
		raw_text=raw_text,
		blocks=blocks,
		exercises=parse_exercises(raw_text, lesson_id),
		learning_objectives=extract_learning_objectives(raw_text, blocks),
	)
