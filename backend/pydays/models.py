from __future__ import annotations
from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text
from .db import Base


class UserAccount(Base):
	__tablename__ = "user_accounts"
	# Primary key is the upstream-authenticated username
	username = Column(String(128), primary_key=True, index=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Lesson(Base):
	__tablename__ = "lessons"
	id = Column(Integer, primary_key=True, autoincrement=False)  # 1-30
	order = Column(Integer, nullable=False)
	title = Column(String(200), nullable=False)
	summary = Column(Text, nullable=False)
	estimated_time = Column(String(50), nullable=True)
	content_markdown = Column(Text, nullable=False)
	content_blocks = Column(JSON, nullable=False, default=list)
	learning_objectives = Column(JSON, nullable=False, default=list)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Challenge(Base):
	__tablename__ = "challenges"
	id = Column(String(100), primary_key=True)  # "day3_level1_2", "challenge_3_3_1"
	lesson_id = Column(Integer, ForeignKey("lessons.id"), nullable=False, index=True)
	level = Column(Integer, nullable=False)
	order = Column(Integer, nullable=False, default=1)  # display position within the level
	title = Column(String(200), nullable=False)
	description = Column(Text, nullable=False)
	difficulty = Column(String(16), nullable=False, default="easy")
	source = Column(String(16), nullable=False, default="original")
	starter_code = Column(Text, nullable=False)
	# Doubles as the reference answer handed to the grader
	solution_code = Column(Text, nullable=False)
	answer_explanation = Column(Text, nullable=False, default="")
	grading_criteria = Column(JSON, nullable=False, default=list)
	hints = Column(JSON, nullable=False, default=list)
	tags = Column(JSON, nullable=False, default=list)
	estimated_time = Column(String(50), nullable=True)
	public_tests = Column(JSON, nullable=False, default=list)
	hidden_tests = Column(JSON, nullable=False, default=list)  # never exposed through the API
	points = Column(Integer, nullable=False, default=10)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Submission(Base):
	__tablename__ = "submissions"
	id = Column(Integer, primary_key=True, autoincrement=True)
	username = Column(String(128), nullable=False, index=True)
	challenge_id = Column(String(100), ForeignKey("challenges.id"), nullable=False, index=True)
	code = Column(Text, nullable=False)
	passed = Column(Boolean, nullable=False)
	score = Column(Integer, nullable=False, default=0)
	runtime_ms = Column(Integer, nullable=False, default=0)
	feedback = Column(Text, nullable=True)
	analysis = Column(JSON, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class UserLessonProgress(Base):
	__tablename__ = "user_lesson_progress"
	username = Column(String(128), primary_key=True)
	lesson_id = Column(Integer, primary_key=True)
	learned = Column(Boolean, nullable=False, default=False)
	level1_passed = Column(Integer, nullable=False, default=0)
	level1_total = Column(Integer, nullable=False, default=0)
	level2_passed = Column(Integer, nullable=False, default=0)
	level2_total = Column(Integer, nullable=False, default=0)
	level3_passed = Column(Integer, nullable=False, default=0)
	level3_total = Column(Integer, nullable=False, default=0)
	score = Column(Integer, nullable=False, default=0)
	started_at = Column(DateTime, nullable=True)
	completed_at = Column(DateTime, nullable=True)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class UserStats(Base):
	__tablename__ = "user_stats"
	username = Column(String(128), primary_key=True)
	total_score = Column(Integer, nullable=False, default=0)
	lessons_completed = Column(Integer, nullable=False, default=0)
	lessons_in_progress = Column(Integer, nullable=False, default=0)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Badge(Base):
	__tablename__ = "badges"
	code = Column(String(100), primary_key=True)  # "first_day", "graduate"
	name = Column(String(100), nullable=False)
	icon = Column(String(50), nullable=False)
	description = Column(Text, nullable=False)
	rule = Column(JSON, nullable=False)
	points = Column(Integer, nullable=False, default=0)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class UserBadge(Base):
	__tablename__ = "user_badges"
	username = Column(String(128), primary_key=True)
	badge_code = Column(String(100), ForeignKey("badges.code"), primary_key=True)
	granted_at = Column(DateTime, default=datetime.utcnow, nullable=False)
