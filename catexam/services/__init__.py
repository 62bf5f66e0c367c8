"""
Persistence adapters used by the CAT engine.
"""
from .question_repository import SqlQuestionRepository
from .response_store import SqlResponseStore
from .session_store import SqlSessionStore

__all__ = ["SqlQuestionRepository", "SqlResponseStore", "SqlSessionStore"]
