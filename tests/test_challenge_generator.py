"""Tests for the level-3 challenge templates."""

from pydays.challenge_generator import (
    CHALLENGE_TEMPLATES,
    DEFAULT_CRITERIA,
    DEFAULT_REFERENCE_ANSWER,
    generate_all_extra_challenges,
    generate_extra_challenges,
)
from pydays.loader import create_day_one


class TestGenerateExtraChallenges:
    def test_deterministic(self):
        assert generate_extra_challenges(12, "Modules") == generate_extra_challenges(12, "Modules")

    def test_never_empty(self):
        for lesson_id in range(1, 31):
            assert generate_extra_challenges(lesson_id, f"Lesson {lesson_id}")

    def test_curated_lesson(self):
        challenges = generate_extra_challenges(1, "Introduction")
        assert len(challenges) == len(CHALLENGE_TEMPLATES[1])
        first = challenges[0]
        assert first.id == "challenge_1_3_1"
        assert first.level == 3
        assert first.title == "Personal info card"
        assert "input(" in first.reference_answer
        assert first.grading_criteria != DEFAULT_CRITERIA
        assert first.tags[0] == "Day 1"

    def test_generic_template(self):
        challenges = generate_extra_challenges(12, "Modules")
        assert [c.id for c in challenges] == ["challenge_12_3_1", "challenge_12_3_2"]
        assert challenges[0].title == "Day 12 comprehensive review"
        assert challenges[1].title == "Mini project: Modules"
        assert challenges[1].starter_code.startswith("# Modules mini project")
        assert challenges[0].reference_answer == DEFAULT_REFERENCE_ANSWER
        assert challenges[0].grading_criteria == DEFAULT_CRITERIA
        assert [c.order for c in challenges] == [1, 2]

    def test_all_lessons(self):
        day_one = create_day_one()
        mapping = generate_all_extra_challenges([day_one])
        assert list(mapping) == [1]
        assert mapping[1] == generate_extra_challenges(1, day_one.title)
