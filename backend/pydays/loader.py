from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Union

from .content_parser import parse_lesson
from .schemas import LessonDocument
from .settings import settings


logger = logging.getLogger(__name__)

FIRST_LESSON_ID = 1
LAST_LESSON_ID = 30
LESSONS_SUBDIR = "lessons"

_FILE_ID_RE = re.compile(r"^(\d+)_")
_LEGACY_DIR_RE = re.compile(r"^(\d+)_Day_")

# The source corpus has no day-one document, so lesson 1 is built from this text.
DAY_ONE_MARKDOWN = """# 📘 Day 1: Introduction to Python

Welcome to the 30 days of Python challenge! Today you will meet Python, set up your environment and write your first program.

## What is Python

Python is a high-level, interpreted, general-purpose programming language. Its design philosophy emphasises readable and concise code. Guido van Rossum released it in 1991 and it has become one of the most popular programming languages in the world.

## Why learn Python

- **Easy to learn**: the syntax is clean and friendly to beginners
- **Powerful**: used for web development, data analysis, machine learning and automation
- **Widely used**: companies such as Google, Instagram and Spotify rely on it
- **Active community**: a huge ecosystem of developers and third-party libraries

## Where Python is used

1. **Web development**: Django, Flask
2. **Data science**: NumPy, pandas, Matplotlib
3. **Machine learning**: TensorFlow, PyTorch
4. **Automation**: system administration and test automation
5. **Games**: Pygame

## Your first program

```python
print("Hello, World!")
print("Welcome to the world of Python!")
```

## Basic syntax

### Comments

```python
# This is a single-line comment

\"\"\"
This is a multi-line string,
often used as a comment
\"\"\"
```

### Variables

```python
name = "Python"
version = 3.12
is_awesome = True
```

## 💻 Exercises - Day 1

### Exercises: Level 1

1. Check the version of Python you are using
2. Open the Python interactive shell and do the following operations: addition, subtraction, multiplication and division
3. Write a Python script that prints "Hello, World!"
4. Check the data types of the following values: 10, 9.8, 3.14, 'Hello', True

### Exercises: Level 2

1. Create a folder named day_1 inside your 30DaysOfPython folder
2. Write a Python comment explaining what Python is
3. Write examples of different Python data types
4. Find the Euclidean distance formula and implement it in Python
"""

DAY_ONE_SUMMARY = (
	"Welcome to the 30 days of Python challenge! Today you will meet Python, "
	"set up your environment and write your first program."
)
DAY_ONE_OBJECTIVES = [
	"Understand what Python is and where it is used",
	"Learn the basic Python syntax",
	"Write your first Python program",
	"Recognise Python's basic data types",
]


def create_day_one() -> LessonDocument:
	lesson = parse_lesson(DAY_ONE_MARKDOWN, FIRST_LESSON_ID)
	return lesson.model_copy(update={
		"title": "Day 1: Introduction to Python",
		"summary": DAY_ONE_SUMMARY,
		"estimated_time": "1-2 hours",
		"learning_objectives": list(DAY_ONE_OBJECTIVES),
	})


def _lesson_id_from(name: str, pattern: "re.Pattern[str]") -> Optional[int]:
	match = pattern.match(name)
	if not match:
		return None
	lesson_id = int(match.group(1))
	# lesson 1 is always synthesized
	if FIRST_LESSON_ID < lesson_id <= LAST_LESSON_ID:
		return lesson_id
	return None


def _discover_primary(lessons_dir: Path) -> Dict[int, Path]:
	found: Dict[int, Path] = {}
	for path in sorted(lessons_dir.glob("*.md")):
		if path.name.lower() == "readme.md":
			continue
		lesson_id = _lesson_id_from(path.name, _FILE_ID_RE)
		if lesson_id is not None and lesson_id not in found:
			found[lesson_id] = path
	return found


def _discover_legacy(content_dir: Path) -> Dict[int, Path]:
	found: Dict[int, Path] = {}
	for folder in sorted(p for p in content_dir.iterdir() if p.is_dir()):
		lesson_id = _lesson_id_from(folder.name, _LEGACY_DIR_RE)
		if lesson_id is None or lesson_id in found:
			continue
		markdown_files = sorted(folder.glob("*.md"))
		if markdown_files:
			found[lesson_id] = markdown_files[0]
	return found


def discover_lesson_files(content_dir: Union[str, Path]) -> Dict[int, Path]:
	"""Map lesson ids to source files.

	The primary layout is ``<content_dir>/lessons/NN_*.md``; when that folder is
	absent the legacy ``<content_dir>/NN_Day_*/`` folders are searched instead.
	"""
	root = Path(content_dir)
	lessons_dir = root / LESSONS_SUBDIR
	if lessons_dir.is_dir():
		return _discover_primary(lessons_dir)
	if root.is_dir():
		logger.warning("Lesson folder %s not found, falling back to legacy layout", lessons_dir)
		return _discover_legacy(root)
	logger.warning("Content directory %s does not exist", root)
	return {}


def load_all(content_dir: Union[str, Path, None] = None) -> List[LessonDocument]:
	"""Load every available lesson ordered 1..30. Missing ids are skipped."""
	root = Path(content_dir) if content_dir is not None else Path(settings.content_dir)
	lessons: List[LessonDocument] = [create_day_one()]
	for lesson_id, path in sorted(discover_lesson_files(root).items()):
		try:
			raw_text = path.read_text(encoding="utf-8-sig")
		except (OSError, UnicodeDecodeError) as err:
			logger.error("Skipping lesson %s: cannot read %s (%s)", lesson_id, path, err)
			continue
		lessons.append(parse_lesson(raw_text, lesson_id))
	lessons.sort(key=lambda lesson: lesson.order)
	logger.info("Loaded %d lessons from %s", len(lessons), root)
	return lessons
