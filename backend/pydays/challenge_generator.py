"""Level-3 challenge templates.

Lessons rarely author their own level-3 exercises, so every lesson gets a
deterministic set of supplementary challenges: a curated table for the early
lessons and a generic "review + mini project" pair for the rest.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List

from .schemas import GeneratedChallenge, LessonDocument


DEFAULT_REFERENCE_ANSWER = "# Reference solution\n# Write code that meets the challenge requirements\n"
DEFAULT_EXPLANATION = "Combine the concepts from this lesson to complete the challenge."
DEFAULT_CRITERIA = [
	"The code runs without errors",
	"The code implements what the challenge asks for",
	"The code is readable and well structured",
	"The code applies the concepts from this lesson",
]


CHALLENGE_TEMPLATES: Dict[int, List[Dict[str, Any]]] = {
	1: [
		{
			"title": "Personal info card",
			"description": "Write a program that asks the user for their name, age and city, then prints a nicely formatted personal information card.",
			"starter_code": "# Personal info card\n# Hint: read values with input() and format them with f-strings\n\n",
			"reference_answer": (
				"name = input(\"Your name: \")\n"
				"age = input(\"Your age: \")\n"
				"city = input(\"Your city: \")\n"
				"\n"
				"print(\"=\" * 30)\n"
				"print(f\"Name: {name}\")\n"
				"print(f\"Age:  {age}\")\n"
				"print(f\"City: {city}\")\n"
				"print(\"=\" * 30)\n"
			),
			"answer_explanation": "input() collects the three values and f-strings lay them out between two separator lines.",
			"hints": [
				"Use input() to read what the user types",
				"Format text with f-strings: f\"Hello {name}\"",
				"Several print() calls can draw the card borders",
			],
			"grading_criteria": [
				"Reads the user's input with input()",
				"Formats the output with f-strings",
				"The printed card is clear and easy to read",
			],
			"tags": ["input", "output", "string"],
		},
		{
			"title": "Python version checker",
			"description": "Write a script that prints the version of the running Python interpreter and the path of its executable.",
			"starter_code": "# Python version checker\nimport sys\n\n# Write your code here\n\n",
			"reference_answer": "import sys\n\nprint(f\"Python version: {sys.version}\")\nprint(f\"Executable: {sys.executable}\")\n",
			"answer_explanation": "The sys module exposes the interpreter version as sys.version and its location as sys.executable.",
			"hints": [
				"sys.version holds the version string",
				"sys.executable holds the interpreter path",
			],
			"tags": ["sys", "version"],
		},
	],
	2: [
		{
			"title": "Type converter",
			"description": "Write a program that demonstrates conversions between int, float and str, and handles conversions that fail.",
			"starter_code": "# Type converter\n# Hint: int(), float() and str() convert between types\n\n",
			"hints": [
				"Use type() to inspect a value's type",
				"Convert with int(), float() and str()",
				"Some conversions fail, such as int(\"abc\")",
			],
			"tags": ["type", "casting", "variable"],
		},
		{
			"title": "Simple calculator",
			"description": "Write a calculator that asks for two numbers and an operator (+, -, *, /), then computes and prints the result.",
			"starter_code": "# Simple calculator\n# Hint: read input() and pick the operation with if/elif\n\n",
			"hints": [
				"Read the numbers with input()",
				"Convert the input to numbers with float()",
				"Choose the operation with if/elif/else",
			],
			"tags": ["input", "operator", "calculation"],
		},
	],
	3: [
		{
			"title": "Expression evaluator",
			"description": "Write a program that evaluates compound arithmetic expressions using parentheses, exponentiation and modulo, and prints each result.",
			"starter_code": "# Expression evaluator\n\n",
			"hints": [
				"Remember operator precedence",
				"Parentheses change the order of evaluation",
			],
			"tags": ["operator", "expression"],
		},
		{
			"title": "BMI calculator",
			"description": "Write a body mass index calculator that reads height and weight, computes the BMI and prints a health category.",
			"starter_code": "# BMI calculator\n# BMI = weight (kg) / height (m) ** 2\n\n",
			"hints": [
				"BMI is weight divided by height squared",
				"Use comparison operators to pick the category",
			],
			"tags": ["operator", "calculation"],
		},
	],
	4: [
		{
			"title": "Text statistics",
			"description": "Write a program that reads a sentence and prints its length, its word count, and the sentence in upper case and title case.",
			"starter_code": "# Text statistics\n\n",
			"hints": [
				"len() returns the number of characters",
				"split() breaks a string into words",
				"Try upper() and title()",
			],
			"tags": ["string", "method"],
		},
	],
	5: [
		{
			"title": "Shopping list manager",
			"description": "Write a program that keeps a shopping list: add items, remove an item, sort the list and print it with numbered lines.",
			"starter_code": "# Shopping list manager\nshopping = []\n\n",
			"hints": [
				"append() adds an item and remove() deletes one",
				"sort() orders the list in place",
				"enumerate() numbers the items while looping",
			],
			"tags": ["list", "loop"],
		},
	],
}


def _generic_templates(lesson_id: int, lesson_title: str) -> List[Dict[str, Any]]:
	return [
		{
			"title": f"Day {lesson_id} comprehensive review",
			"description": "Write a program that combines every concept covered in this lesson.",
			"starter_code": f"# Day {lesson_id} comprehensive review\n# Write your code here\n\n",
			"hints": [
				"Review every concept introduced today",
				"Try to combine several of them in one program",
			],
			"tags": ["comprehensive"],
		},
		{
			"title": f"Mini project: {lesson_title}",
			"description": "Use what you learned today to build a small, practical project.",
			"starter_code": f"# {lesson_title} mini project\n# Write your code here\n\n",
			"hints": [
				"Think of a real situation where this would be useful",
				"Keep the code readable",
			],
			"tags": ["project"],
		},
	]


def generate_extra_challenges(lesson_id: int, lesson_title: str) -> List[GeneratedChallenge]:
	"""Return the level-3 challenges for a lesson.

	Pure and deterministic: the same ``(lesson_id, lesson_title)`` always yields
	the same, non-empty list, so re-seeding upserts the same ids.
	"""
	templates = CHALLENGE_TEMPLATES.get(lesson_id) or _generic_templates(lesson_id, lesson_title)
	challenges: List[GeneratedChallenge] = []
	for index, template in enumerate(templates, start=1):
		challenges.append(GeneratedChallenge(
			id=f"challenge_{lesson_id}_3_{index}",
			order=index,
			title=template["title"],
			description=template["description"],
			starter_code=template["starter_code"],
			reference_answer=template.get("reference_answer", DEFAULT_REFERENCE_ANSWER),
			answer_explanation=template.get("answer_explanation", DEFAULT_EXPLANATION),
			grading_criteria=list(template.get("grading_criteria", DEFAULT_CRITERIA)),
			hints=list(template["hints"]),
			tags=[f"Day {lesson_id}"] + list(template["tags"]),
		))
	return challenges


def generate_all_extra_challenges(lessons: Iterable[LessonDocument]) -> Dict[int, List[GeneratedChallenge]]:
	return {lesson.id: generate_extra_challenges(lesson.id, lesson.title) for lesson in lessons}
