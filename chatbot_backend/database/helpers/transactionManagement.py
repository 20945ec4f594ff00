"""
Database Transaction Management
===============================

This module provides utilities for managing SQLAlchemy database sessions
using Python context variables and a decorator-based transaction wrapper.

It allows seamless propagation of a database session across method calls
without explicitly threading it through arguments. Service methods can be
decorated with ``@transactional`` to ensure they run inside a managed
transactional context.

Key features
~~~~~~~~~~~~
- Context variable to store the active session
- Implicit reuse of existing sessions (nested service calls share one transaction)
- Sessions opened from the owning service's ``connection_engine``
- Automatic commit and rollback handling
- Clean session closure after execution

"""

from functools import wraps
import contextvars

# --------------------------------------------------------------------
# Context variable to store the current database session.
# This ensures a session can be passed implicitly across method calls
# without explicitly threading it through arguments.
# --------------------------------------------------------------------
db_session_context = contextvars.ContextVar("db_session_context", default=None)
"""Context variable storing the active SQLAlchemy session."""


def transactional(method):
    """
    Decorator to wrap service methods in a managed SQLAlchemy transaction.

    Ensures that:
    - If a session already exists in context, it is reused.
    - Otherwise, a new session is opened from ``self.connection_engine``,
      committed, and closed.
    - On errors, the session is rolled back and closed.

    Parameters
    ----------
    method : callable
        The method to wrap. It must accept a `session` keyword argument and
        belong to an object exposing a `connection_engine` attribute.

    Returns
    -------
    callable
        The wrapped method, executed within a database transaction.

    Example
    -------
    >>> class Store:
    ...     def __init__(self, connection_engine):
    ...         self.connection_engine = connection_engine
    ...
    ...     @transactional
    ...     def add(self, row, session=None):
    ...         session.add(row)
    ...         return row
    """
    @wraps(method)
    def wrap_method(self, *args, **kwargs):
        session = db_session_context.get()
        if session is not None:
            return method(self, *args, session=session, **kwargs)

        session = self.connection_engine.new_session()
        token = db_session_context.set(session)

        try:
            result = method(self, *args, session=session, **kwargs)
            session.flush()
            session.commit()
        except Exception as e:
            session.rollback()
            raise e
        finally:
            session.close()
            db_session_context.reset(token)

        return result

    return wrap_method
