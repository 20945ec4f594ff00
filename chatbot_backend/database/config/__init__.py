"""
The `config` package provides two core building blocks for establishing and managing database connections.

Contents:
    - config: Configuration layer - strongly typed app settings loaded from environment variables (with .env support), exposed through a singleton Settings object
    - connection_engine: Database layer - SQLAlchemy bootstrap that builds a connection URL from those settings and wraps the Engine in an explicitly opened/closed `ConnectionEngine`, plus the shared MetaData and declarative base for ORM models

Together they provide secure, environment-driven configuration and a clean ORM foundation.
"""
