"""
Service configuration.

Both configs are pydantic models: defaults match the ledger's conventions
and partial overrides are plain keyword arguments. Constructing a model
directly raises pydantic's ``ValidationError``; ``build`` (used by the
services) and ``from_env`` raise ``ConfigurationError`` instead. ``from_env``
reads ``SYMBOL_*`` environment variables on top of the defaults.
"""

from __future__ import annotations
import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from .runtime.errors import ConfigurationError, ErrorCode
from .transport.ws import ws_url_from_http


def _validated(model, values: Dict[str, Any]):
    try:
        return model(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid {model.__name__}: {e}", ErrorCode.INVALID_CONFIG, cause=e)


def _from_env(model, prefix: str, environ: Optional[Mapping[str, str]], overrides: Dict[str, Any]):
    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = {}
    for name in model.model_fields:
        key = f"{prefix}{name.upper()}"
        if environ.get(key):
            values[name] = environ[key]
    values.update(overrides)
    return _validated(model, values)


class SymbolServiceConfig(BaseModel):
    """Connection and batching settings for ``SymbolService``."""

    node_url: str = Field(default="", description="REST gateway URL, e.g. http://localhost:3000")
    ws_url: Optional[str] = Field(default=None, description="Event stream URL; derived from node_url when unset")
    fee_ratio: float = Field(default=0.0, ge=0, description="Position between min and average fee multiplier")
    deadline_hours: float = Field(default=2, gt=0, description="Deadline of composed aggregates")
    batch_size: int = Field(default=100, ge=1, description="Operations per aggregate")
    max_parallels: int = Field(default=10, ge=1, description="Concurrent dispatch workers")
    request_timeout: float = Field(default=30.0, gt=0, description="REST timeout in seconds")

    model_config = {"populate_by_name": True, "frozen": True}

    @model_validator(mode="before")
    @classmethod
    def derive_ws_url(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("ws_url") and data.get("node_url"):
            data = {**data, "ws_url": ws_url_from_http(data["node_url"])}
        return data

    @classmethod
    def build(cls, config: Optional[SymbolServiceConfig] = None, **overrides) -> SymbolServiceConfig:
        """
        ``config`` (or the defaults) with ``overrides`` applied.

        A new ``node_url`` without a ``ws_url`` derives the stream URL again.

        Raises:
            ConfigurationError: If a value does not validate
        """
        if config is not None and not overrides:
            return config
        values = config.model_dump() if config is not None else {}
        if "node_url" in overrides and "ws_url" not in overrides:
            values["ws_url"] = None
        return _validated(cls, {**values, **overrides})

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> SymbolServiceConfig:
        """
        Build from ``SYMBOL_NODE_URL``, ``SYMBOL_FEE_RATIO``, ``SYMBOL_BATCH_SIZE`` and friends.

        Raises:
            ConfigurationError: If a value does not validate
        """
        return _from_env(cls, "SYMBOL_", environ, overrides)


class NecromancyServiceConfig(BaseModel):
    """Life slicing settings for undead transactions."""

    deadline_unit_hours: float = Field(default=5, gt=0, description="Validity window of one life")
    deadline_margin_hours: float = Field(default=1, ge=0, description="Safety margin when picking a life")

    model_config = {"populate_by_name": True, "frozen": True}

    @classmethod
    def build(cls, config: Optional[NecromancyServiceConfig] = None, **overrides) -> NecromancyServiceConfig:
        if config is not None and not overrides:
            return config
        values = config.model_dump() if config is not None else {}
        return _validated(cls, {**values, **overrides})

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> NecromancyServiceConfig:
        """Build from ``SYMBOL_DEADLINE_UNIT_HOURS`` and ``SYMBOL_DEADLINE_MARGIN_HOURS``."""
        return _from_env(cls, "SYMBOL_", environ, overrides)
