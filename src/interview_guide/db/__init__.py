"""
Database module for persistence.

Provides SQLAlchemy models, repositories, and the persistence gateway
used to mirror interview sessions to durable storage.
"""

from interview_guide.db.gateway import PersistenceGateway, SqlAlchemyPersistenceGateway
from interview_guide.db.models import Base, InterviewAnswerModel, InterviewSessionModel
from interview_guide.db.repository import InterviewAnswerRepository, InterviewSessionRepository

__all__ = [
    "Base",
    "InterviewSessionModel",
    "InterviewAnswerModel",
    "InterviewSessionRepository",
    "InterviewAnswerRepository",
    "PersistenceGateway",
    "SqlAlchemyPersistenceGateway",
]
