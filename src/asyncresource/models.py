"""Canonical Pydantic models shared across asyncresource modules.

These are the configuration models, serialised as JSON in the user's
config directory and loaded by :mod:`asyncresource.config`:
:class:`CacheStrategy`, :class:`CacheConfig`, :class:`RequestConfig`,
:class:`OutputConfig`, and :class:`GlobalConfig`.

The resource classes themselves live in :mod:`asyncresource.resource`
and take plain Python values (``timedelta``, :class:`CacheStrategy`); the
models here only describe the defaults a caller or the CLI feeds into them.
"""

from __future__ import annotations

import enum
from datetime import timedelta
from typing import Literal, Optional

from pydantic import BaseModel, Field


class CacheStrategy(str, enum.Enum):
    """Which source a :class:`~asyncresource.resource.NetworkResource` prefers.

    ``NETWORK_FIRST`` always attempts a fetch when nothing is held in
    memory. ``CACHE_FIRST`` only fetches when the cached copy is missing or
    expired, or when the caller forces a reload. Both fall back on the
    cache when the network yields no content.
    """

    NETWORK_FIRST = "network-first"
    CACHE_FIRST = "cache-first"


class CacheConfig(BaseModel):
    """Freshness defaults stored in :class:`GlobalConfig`."""

    max_age_seconds: Optional[int] = Field(
        default=None,
        ge=0,
        description="Maximum age of a cached copy; unset means it never expires",
    )
    strategy: CacheStrategy = Field(
        default=CacheStrategy.NETWORK_FIRST,
        description="Default strategy: network-first or cache-first",
    )

    @property
    def max_age(self) -> Optional[timedelta]:
        """:attr:`max_age_seconds` as a :class:`~datetime.timedelta`, or ``None``."""
        if self.max_age_seconds is None:
            return None
        return timedelta(seconds=self.max_age_seconds)


class RequestConfig(BaseModel):
    """HTTP settings applied by :class:`~asyncresource.client.HttpFetcher`."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=3, ge=0, description="Max retry attempts")
    catch_errors: bool = Field(
        default=True,
        description="Map HTTP and network failures to 'no content' instead of raising",
    )


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto", description="Output format used when no --json / --plain flag is given"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/asyncresource/config.json``.

    Loaded and saved by :func:`~asyncresource.config.load_global_config` and
    :func:`~asyncresource.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by environment variables or CLI
    flags. See :func:`~asyncresource.config.resolve_config` for the full
    precedence chain.
    """

    cache: CacheConfig = Field(default_factory=CacheConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
