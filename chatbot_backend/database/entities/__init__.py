"""
Entities Package — SQLAlchemy 2.0 ORM Models (UUID + UTC + JSON)
================================================================

The `entities` package defines the ORM models of the application, mapping
database tables to Python classes using SQLAlchemy 2.0-typed mappings.
These classes are consumed by DAOs (`daos` package) to perform CRUD and
transactional operations.

Tech Stack & Conventions
------------------------
- PostgreSQL in production, SQLite in tests (portable `Uuid` / `JSON` types)
- Timezone-aware timestamps (UTC)
- SQLAlchemy 2.0 style `Mapped[...]` + `mapped_column(...)`

Contents
--------
- Conversation
    A chat thread owned by one user.
    * Fields: `id` (UUID PK), `user_id`, `title`, `model`
    * `turns`: the append-only turn sequence as one JSON document
      (role, content, attachments, created_at per turn)
    * `created_at` / `updated_at` (UTC, tz-aware)

Users are not stored here: identities come from the verified session token.
"""
