"""
The `helpers` package provides utility decorators that support database
operations and cross-cutting concerns.

These helpers simplify transaction handling, ensure consistent
session management, and reduce boilerplate across services.

Contents
--------
- transactionManagement
    Provides tools for database transaction management:
        - Context variable (`db_session_context`) for propagating the active session across method calls without explicit passing
        - `@transactional` decorator for wrapping service methods in a managed transaction:
            - Reuses an existing session if one is active in context
            - Opens, commits, and closes a new session from the service's `connection_engine` otherwise
            - Rolls back the session on errors
"""
