"""
Models package initialization
Import all models and setup relationships
"""

from .attempt import Attempt
from .quiz import Question, Quiz
from .quiz_session import QuestionView, QuizSession

# Import and setup relationships
from .relations import setup_relationships
from .student import Student, WhitelistEntry

# Setup all relationships after models are imported
setup_relationships()

# Make models available at package level
__all__ = [
    "Attempt",
    "Question",
    "QuestionView",
    "Quiz",
    "QuizSession",
    "Student",
    "WhitelistEntry",
]
