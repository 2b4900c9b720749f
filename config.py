"""Configuration management for shorten."""

from typing import Dict, Literal, Optional
from pydantic_settings import BaseSettings
from pydantic import Field

from shorten.fuzzy import MAX_EDIT_DISTANCE, SIMILARITY_THRESHOLD


class Config(BaseSettings):
    """Application configuration."""

    storage_type: Literal["filesystem", "postgres", "s3", "regex"] = Field(
        default="filesystem",
        description="Storage backend to use"
    )

    # Filesystem storage
    filesystem_root: str = Field(
        default="./data",
        description="Directory holding one file per short code"
    )

    # PostgreSQL storage
    postgres_url: str = Field(
        default="postgresql://postgres@localhost:5432/shorten",
        description="PostgreSQL connection URL"
    )

    postgres_create_tables: bool = Field(
        default=False,
        description="Create the urls/links tables on startup"
    )

    postgres_pool_max_size: int = Field(
        default=10,
        ge=1,
        description="Maximum size of the connection pool"
    )

    postgres_connect_attempts: int = Field(
        default=10,
        ge=1,
        description="Pings tried before giving up on the database"
    )

    postgres_connect_retry_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Pause between connection pings"
    )

    # S3 storage
    s3_bucket: str = Field(
        default="shorten-links",
        description="Bucket holding the short links"
    )

    s3_region: str = Field(
        default="us-west-2",
        description="AWS region of the bucket"
    )

    # Regex storage
    regex_rules: Dict[str, str] = Field(
        default_factory=dict,
        description="Pattern -> replacement rules, as a JSON object; first match wins"
    )

    # Fuzzy matching
    fuzzy_similarity_threshold: int = Field(
        default=SIMILARITY_THRESHOLD,
        description="Soundex similarity a fuzzy candidate must exceed"
    )

    fuzzy_max_distance: int = Field(
        default=MAX_EDIT_DISTANCE,
        ge=1,
        description="Fuzzy candidates need fewer edits than this"
    )

    # Code generation
    short_code_length: int = Field(
        default=8,
        ge=1,
        description="Length of generated short codes"
    )

    max_generation_attempts: int = Field(
        default=10,
        ge=1,
        description="Collisions tolerated when generating short codes"
    )

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind to"
    )

    port: int = Field(
        default=8080,
        description="Port to listen on"
    )

    healthcheck_path: str = Field(
        default="/healthcheck",
        description="Short code written and read back by the health check"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Log file path (logs to stdout if not specified)"
    )

    log_json: bool = Field(
        default=False,
        description="Use JSON format for logs"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


def load_config() -> Config:
    """Load configuration from environment."""
    return Config()
