"""
Configuration for Board Server.

Uses pydantic-settings for environment variable loading. Every setting has
a default suitable for local development; override with BOARD_* variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Board Server configuration loaded from environment."""

    # HTTP
    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=4000, description="Bind port")

    # CORS
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173", "http://localhost:8080"],
        description="Allowed CORS origins",
    )

    # Schema
    schema_output_path: str = Field(
        default="schema.gql",
        description="File the assembled schema is written to on change (empty = disabled)",
    )

    # Ordering
    renormalize_threshold: float = Field(
        default=1e-6,
        description="Rewrite a container to 1..N when adjacent positions get closer than this",
    )
    move_max_retries: int = Field(default=3, description="CAS retries per move before a 409")

    # Logging
    log_level: str = Field(default="INFO", description="DEBUG, INFO, WARNING, ERROR")
    log_format: str = Field(default="text", description="text or json")

    model_config = {"env_prefix": "BOARD_"}
