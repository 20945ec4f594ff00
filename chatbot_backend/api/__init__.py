"""
API Package — FastAPI Router • Models • JWT Utils • Chat Pipeline • Providers
=============================================================================

Mission
-------
This package defines the backend's HTTP interface and the pipeline that answers
chat messages: FastAPI routing, session verification, prompt augmentation,
web search and news lookups, and model calls with fallback and retries.

Contents
--------
- fast_api
    FastAPI router with endpoints for:
      • Model catalogue and default model
      • Session: current user
      • Conversations: list, create, read, update, delete one / all
      • Messages: post a message and receive the model reply

- models
    Pydantic data contracts (Attachment, Turn, FeatureOptions, NewMessage,
    ConversationRecord, ConversationSummary, SessionUser, SearchResult, NewsItem, ...).

- utils
    JWT helpers:
      • create_access_token(payload): issues signed JWTs with exp
      • verify_token(token): validates JWTs and returns claims
      • get_session_user: FastAPI dependency reading the session cookie

- exceptions
    InvalidMessageError, ConversationNotFoundError.

- query_classifier
    Date/time, news or plain classification and the "needs current info" heuristic.

- web_search / news_search
    Best-effort DuckDuckGo instant answers and Google News RSS headlines.

- prompt_utilities
    Augmented prompt, local date/time answer, news digest, image loading and
    LangChain message building.

- reply_generator
    Candidate models, transient-error retry policy, text and vision calls.

- llm_pipeline
    ChatPipeline: one message in, one persisted exchange out.

Operational Notes
-----------------
- Security: Auth via HttpOnly session cookie (JWT). Tokens are issued elsewhere.
- Outbound HTTP goes through one shared `httpx.AsyncClient` owned by the app lifespan.
"""
