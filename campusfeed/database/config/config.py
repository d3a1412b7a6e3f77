from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables
    or a `.env` file. Provides strongly typed access to environment values.
    """

    DATABASE_URL: str = "sqlite:///./campusfeed.db"
    """SQLAlchemy database URL (e.g., `postgresql+psycopg://...`, `sqlite:///...`)."""

    FRONTEND_URL: str = "http://localhost:3000"
    """Base URL of the frontend client application (allowed CORS origin)."""

    INSTITUTIONAL_EMAIL_DOMAIN: str = "alumno.etec.um.edu.ar"
    """Only emails under this domain may register."""

    BCRYPT_ROUNDS: int = 10
    """bcrypt cost factor used when hashing passwords."""

    SESSION_COOKIE_NAME: str = "session"
    """Name of the cookie carrying the opaque session token."""

    SESSION_TTL_MINUTES: int = 24 * 60
    """Absolute lifetime of a session (in minutes) before it expires."""

    SESSION_PURGE_INTERVAL_SECONDS: int = 15 * 60
    """How often expired sessions are swept from the store."""

    COOKIE_SECURE: bool = False
    """Send the session cookie only over HTTPS (True in production)."""

    POST_MAX_LENGTH: int = 500
    """Maximum number of characters in a post."""

    FEED_PAGE_SIZE: int = 100
    """Upper bound of posts returned by a single feed listing."""

    CHAT_HISTORY_SIZE: int = 50
    """Number of recent chat messages kept in memory."""

    CHAT_CLIENT_QUEUE_SIZE: int = 100
    """Pending messages a chat client may lag behind before being dropped."""

    MEDIA_ROOT: str = "./media"
    """Directory where uploaded images are stored."""

    MEDIA_URL: str = "/media"
    """Public URL prefix under which `MEDIA_ROOT` is served."""

    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    """Maximum size of an uploaded image (5MB)."""

    LOG_LEVEL: str = "INFO"
    """Minimum log level (`DEBUG`, `INFO`, `WARNING`, `ERROR`)."""

    LOG_JSON: bool = False
    """Emit logs as JSON lines instead of human-readable text."""

    class Config:
        """
        Configuration for Pydantic settings. Loads values from `.env` file by default.
        """
        env_file = ".env"
        extra = "ignore"


# Singleton instance of Settings, ready to be imported across the app
settings = Settings()
"""Defines a Settings object that contains the contents of the .env file"""
