"""
Exam Session Core - examcore Package

This package contains the core components for administering and grading timed exams:
- models: Questions, exams and configuration
- timer / answer_sheet / session: the per-attempt state machine
- registry: keyed store of active and recoverable sessions
- grader / results: grading, result storage and report cards
- store: JSON persistence and the session event log
"""

__version__ = "1.0.0"
