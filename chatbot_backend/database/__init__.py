"""
The `database` package is responsible for all interactions with the application's database.
It provides configuration, entity definitions, data access and the conversation
store used by the chat pipeline.

Contents:
    - config:
        Application settings and the explicitly owned `ConnectionEngine`.

    - entities:
        SQLAlchemy entity models representing the database tables.

    - daos:
        Data Access Objects (DAOs) providing CRUD operations for the entities.

    - core:
        `ConversationStore`, the transactional service that routes and the
        pipeline use, returning detached pydantic records.

    - helpers:
        The `@transactional` decorator and session context propagation.
"""
