import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./credential_reset.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    # Session tokens
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    SESSION_TTL_MINUTES = int(data.get("SESSION_TTL_MINUTES", 60))

    # Password reset
    RESET_TOKEN_TTL_HOURS = int(data.get("RESET_TOKEN_TTL_HOURS", 24))
    RESET_TOKEN_SECRET = data.get("RESET_TOKEN_SECRET", "")
    RESET_SECRET_BYTES = int(data.get("RESET_SECRET_BYTES", 16))
    RESET_LINK_URL = data.get("RESET_LINK_URL", "http://localhost:3000/reset-password")
    PASSWORD_MIN_LENGTH = int(data.get("PASSWORD_MIN_LENGTH", 8))
    PASSWORD_REQUIRE_DIGIT = bool(data.get("PASSWORD_REQUIRE_DIGIT", False))
    PASSWORD_REQUIRE_UPPERCASE = bool(data.get("PASSWORD_REQUIRE_UPPERCASE", False))
    PASSWORD_REQUIRE_SYMBOL = bool(data.get("PASSWORD_REQUIRE_SYMBOL", False))
    BCRYPT_ROUNDS = int(data.get("BCRYPT_ROUNDS", 12))

    # Mattermost chat accounts
    MATTERMOST_URL = data.get("MATTERMOST_URL", "http://localhost:8065")
    MATTERMOST_ACCESS_TOKEN = data.get("MATTERMOST_ACCESS_TOKEN", "")
    MATTERMOST_TIMEOUT = float(data.get("MATTERMOST_TIMEOUT", 10.0))

    # Mailgun (reset link delivery is disabled without an API key)
    MAILGUN_API_KEY = data.get("MAILGUN_API_KEY", "")
    MAILGUN_DOMAIN = data.get("MAILGUN_DOMAIN", "")
    MAILGUN_SENDER = data.get("MAILGUN_SENDER", "no-reply@localhost")
