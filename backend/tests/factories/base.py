# backend/tests/factories/base.py

from factory.alchemy import SQLAlchemyModelFactory

_session = None


def current_session():
    if _session is None:
        raise RuntimeError("No database session bound to the test factories")
    return _session


class BaseFactory(SQLAlchemyModelFactory):
    """Base factory with session management for all test factories."""

    class Meta:
        abstract = True
        sqlalchemy_session_factory = current_session
        sqlalchemy_session_persistence = "commit"

    @classmethod
    def bind_session(cls, session):
        global _session
        _session = session

    @classmethod
    def reset_session(cls):
        """Reset the session (useful between tests)."""
        global _session
        _session = None
