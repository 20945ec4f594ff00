"""Unit tests for settings helpers, session tokens and the connection engine."""

import pytest
from fastapi import HTTPException
from jose import jwt
from starlette.requests import Request

from chatbot_backend.api.utils import create_access_token, get_session_user, verify_token
from chatbot_backend.database.config.config import DEFAULT_MODEL, Settings, parse_model_name
from chatbot_backend.database.config.connection_engine import ConnectionEngine, build_connection_url


def request_with_cookie(cookie_header=None):
    headers = [(b"cookie", cookie_header.encode())] if cookie_header else []
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


class TestModelName:
    """Test configured model parsing."""

    @pytest.mark.parametrize("raw, expected", [
        ("gemini-2.5-pro", "gemini-2.5-pro"),
        ("gemini-2.5-pro # better answers", "gemini-2.5-pro"),
        ("  # only a comment", DEFAULT_MODEL),
        ("", DEFAULT_MODEL),
        (None, DEFAULT_MODEL),
    ])
    def test_parse_model_name(self, raw, expected):
        assert parse_model_name(raw) == expected

    def test_default_model_property(self):
        assert Settings(SECRET_KEY="s", GEMINI_MODEL_NAME="gemini-2.0-flash#x").default_model == "gemini-2.0-flash"


class TestConnectionUrl:
    """Test URL construction and engine lifecycle."""

    def test_postgres_url(self):
        settings = Settings(SECRET_KEY="s", DB_USERNAME="app", DB_PASSWORD="pw", DB_HOST="db", DB_DATABASE_NAME="chat")
        url = build_connection_url(settings)
        assert url.drivername == "postgresql+psycopg2"
        assert (url.username, url.host, url.database) == ("app", "db", "chat")

    def test_sqlite_url_uses_path_only(self):
        settings = Settings(SECRET_KEY="s", DB_DRIVER_NAME="sqlite", DB_DATABASE_NAME="/tmp/x.db", DB_HOST="ignored")
        url = build_connection_url(settings)
        assert url.host is None
        assert url.database == "/tmp/x.db"

    def test_session_requires_open_engine(self, tmp_path):
        engine = ConnectionEngine(f"sqlite:///{tmp_path / 'x.db'}")
        with pytest.raises(RuntimeError):
            engine.new_session()
        engine.open()
        engine.new_session().close()
        engine.close()
        assert engine.engine is None


class TestSessionTokens:
    """Test token verification and the session dependency."""

    def test_round_trip_claims(self):
        token = create_access_token({"sub": "user-1", "name": "Asha", "email": "a@example.com"})
        claims = verify_token(token)
        assert claims["sub"] == "user-1"
        assert "exp" in claims

    def test_token_signed_with_other_key(self):
        token = jwt.encode({"sub": "user-1"}, "another-key", algorithm="HS256")
        assert verify_token(token) is None

    def test_get_session_user(self):
        token = create_access_token({"sub": "user-1", "name": "Asha", "email": "a@example.com"})
        user = get_session_user(request_with_cookie(f"chatbot_auth={token}"))
        assert (user.id, user.name, user.email) == ("user-1", "Asha", "a@example.com")

    def test_missing_cookie(self):
        with pytest.raises(HTTPException) as exc_info:
            get_session_user(request_with_cookie())
        assert exc_info.value.status_code == 401

    def test_token_without_subject(self):
        token = create_access_token({"name": "nobody"})
        with pytest.raises(HTTPException):
            get_session_user(request_with_cookie(f"chatbot_auth={token}"))
