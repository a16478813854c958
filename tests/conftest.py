"""Shared pytest fixtures for the pydays test suite."""

import sys
from pathlib import Path

import pytest

# Add the backend folder to the path so ``pydays`` imports without installing
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "backend"))

from pydays.db import Database  # noqa: E402
from pydays.schemas import GradingContext  # noqa: E402
from pydays.settings import settings  # noqa: E402


SAMPLE_LESSON = """<div align="center">
  <h1> 30 Days Of Python: Day 2 - Variables, Builtin Functions</h1>
</div>

[<< Day 1](../readme.md) | [Day 3 >>](../03_Day_Operators/03_operators.md)

![30DaysOfPython](../images/30DaysOfPython_banner3@2x.png)

# 📘 Day 2

- [📘 Day 2](#-day-2)
  - [Built in functions](#built-in-functions)
  - [Variables](#variables)
  - [Declaring Multiple Variable in a Line](#declaring-multiple-variable-in-a-line)

## Built in functions

In Python we have lots of built-in functions. Built-in functions are globally available for your use that mean you can make use of the built-in functions without importing or configuring.

```py
print('Hello, World!')
len('Hello, World!')
```

## Variables

Variables store data in a computer memory.

| Name | Value |
| ---- | ----- |
| first_name | Asabeneh |
| country | Finland |

## 💻 Exercises - Day 2

### Exercises: Level 1

1. Inside 30DaysOfPython create a folder called day_2. Inside this folder create a file named variables.py
2. Write a python comment saying 'Day 2: 30 Days of python programming'
3. Declare a first name variable and assign a value to it
4. ok
5. Declare a list of your favourite fruits
   and print it with the print function

### Exercises: Level 2

1. Check the data type of all your variables using type() built-in function
2. Using the len() built-in function, find the length of your first name

🎉 CONGRATULATIONS ! 🎉

[<< Day 1](../readme.md) | [Day 3 >>](../03_Day_Operators/03_operators.md)
"""


@pytest.fixture
def sample_lesson_text() -> str:
    return SAMPLE_LESSON


@pytest.fixture
def database():
    """In-memory database, opened for the test and closed afterwards."""
    db_handle = Database("sqlite://").open()
    try:
        yield db_handle
    finally:
        db_handle.close()


@pytest.fixture
def session(database):
    db = database.session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def no_ai(monkeypatch):
    """Make sure no test reaches a real language-model service."""
    monkeypatch.setattr(settings, "gemini_api_key", None)
    monkeypatch.setattr(settings, "openrouter_api_key", None)


@pytest.fixture
def grading_context() -> GradingContext:
    return GradingContext(
        challenge_description="Write a function that returns the sum of a list of numbers.",
        reference_answer="def total(numbers):\n    return sum(numbers)\n",
        answer_explanation="sum() adds every element of an iterable.",
        grading_criteria=["Defines a function", "Returns the sum"],
        user_code="def total(numbers):\n    return sum(numbers)\n",
    )
