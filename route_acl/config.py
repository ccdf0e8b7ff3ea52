"""
Configuration loaded from environment variables.

Uses pydantic-settings so every option can be set from the environment
(prefix ROUTE_ACL_) or from a local .env file:

    ROUTE_ACL_PORT=9000 ROUTE_ACL_LOG_LEVEL=debug python -m route_acl.server

The resolver itself is never configured here: it is code, passed to
register() by the application.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Gate and demo server configuration.

    Each field maps to an environment variable with the ROUTE_ACL_ prefix,
    e.g. `log_decisions` reads from ROUTE_ACL_LOG_DECISIONS.
    """

    # --- Demo server ---

    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "info"

    # --- Gate ---

    # Log allowed requests at INFO. Denials and faults are always logged.
    log_decisions: bool = True

    model_config = {
        "env_prefix": "ROUTE_ACL_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


settings = Settings()
