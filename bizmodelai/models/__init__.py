"""
Database models package
"""
from bizmodelai.models.user import User
from bizmodelai.models.quiz_attempt import QuizAttempt
from bizmodelai.models.payment import Payment

__all__ = ["User", "QuizAttempt", "Payment"]
