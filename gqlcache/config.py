"""
Configuration for gqlcache.

Settings are read from environment variables with the ``GQLCACHE_`` prefix.
The engine itself takes an explicit KeyPolicy; these settings only feed the
command-line tool and callers that want environment-driven defaults.

Example:
    >>> settings = Settings()
    >>> policy = KeyPolicy.from_settings(settings)
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """gqlcache configuration."""

    # Identity policy
    type_name_field: str = Field(default="__typename")
    id_field: str = Field(default="id")
    key_separator: str = Field(default=";", min_length=1)
    possible_types: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Interface/union name -> concrete member types (JSON)",
    )

    # CLI output
    log_level: str = Field(default="WARNING")
    indent: int = Field(default=2, description="JSON indent for CLI output (0=compact)")

    model_config = {"env_prefix": "GQLCACHE_"}
