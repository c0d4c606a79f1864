"""Ideator configuration — process-scoped, supplied at construction.

Defaults come from `ideator.constants`; `IdeatorConfig.from_env()` layers
environment overrides on top. `merged()` shallow-merges each sub-object and
returns a new config, so a snapshot taken at invocation start never changes.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..constants import (
    DEFAULT_LLM_CONFIG,
    DEFAULT_LOCALE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MIN_QUALITY_SCORE,
    IDEA_GENERATION,
)

logger = logging.getLogger(__name__)


class _ConfigModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class LLMConfig(_ConfigModel):
    model: str = Field(DEFAULT_LLM_CONFIG["model"], min_length=1)
    temperature: float = Field(DEFAULT_LLM_CONFIG["temperature"], ge=0, le=2)
    max_tokens: int = Field(DEFAULT_LLM_CONFIG["max_tokens"], ge=100, le=32000)
    top_p: float = Field(DEFAULT_LLM_CONFIG["top_p"], ge=0, le=1)
    presence_penalty: float = Field(DEFAULT_LLM_CONFIG["presence_penalty"], ge=-2, le=2)
    frequency_penalty: float = Field(DEFAULT_LLM_CONFIG["frequency_penalty"], ge=-2, le=2)
    timeout_ms: int = Field(DEFAULT_LLM_CONFIG["timeout_ms"], ge=1000, le=300_000)


class IdeationConfig(_ConfigModel):
    required_count: int = Field(IDEA_GENERATION["required_count"], ge=1, le=20)
    min_title_length: int = IDEA_GENERATION["min_title_length"]
    max_title_length: int = IDEA_GENERATION["max_title_length"]
    min_description_length: int = IDEA_GENERATION["min_description_length"]
    max_description_length: int = IDEA_GENERATION["max_description_length"]
    target_revenue: float = Field(IDEA_GENERATION["target_revenue"], ge=0)
    locale: Literal["en", "ja"] = DEFAULT_LOCALE


class ValidationConfig(_ConfigModel):
    enable_validation: bool = True
    min_quality_score: float = Field(DEFAULT_MIN_QUALITY_SCORE, ge=0, le=100)
    max_retries: int = Field(DEFAULT_MAX_RETRIES, ge=0, le=10)


ConfigUpdate = Union["IdeatorConfig", Mapping[str, Any]]


class IdeatorConfig(_ConfigModel):
    llm_config: LLMConfig = Field(default_factory=LLMConfig)
    ideation_config: IdeationConfig = Field(default_factory=IdeationConfig)
    validation_config: ValidationConfig = Field(default_factory=ValidationConfig)

    def merged(self, update: Optional[ConfigUpdate]) -> "IdeatorConfig":
        """Return a new config with each sub-object shallow-merged from *update*.

        *update* may be another IdeatorConfig or a partial mapping such as
        ``{"validation_config": {"min_quality_score": 70}}`` (camelCase keys
        are accepted too).
        """
        if update is None:
            return self
        if isinstance(update, IdeatorConfig):
            update = update.model_dump(exclude_unset=True)

        merged: Dict[str, Any] = {}
        for name, field_info in type(self).model_fields.items():
            current: BaseModel = getattr(self, name)
            partial = update.get(name, update.get(field_info.alias or name))
            if partial is None:
                merged[name] = current
                continue
            if isinstance(partial, BaseModel):
                partial = partial.model_dump(exclude_unset=True)
            data = current.model_dump()
            sub_model = type(current)
            for key, value in partial.items():
                data[_field_name(sub_model, key)] = value
            merged[name] = sub_model.model_validate(data)
        return IdeatorConfig(**merged)

    @classmethod
    def from_env(cls) -> "IdeatorConfig":
        """Build a config from defaults plus environment overrides."""
        llm: Dict[str, Any] = {}
        ideation: Dict[str, Any] = {}
        validation: Dict[str, Any] = {}

        _set_from_env(llm, "model", "OPENAI_MODEL", str)
        _set_from_env(llm, "temperature", "OPENAI_TEMPERATURE", float)
        _set_from_env(llm, "max_tokens", "OPENAI_MAX_COMPLETION_TOKENS", int)
        timeout_s = _env_value("OPENAI_REQUEST_TIMEOUT", float)
        if timeout_s is not None:
            llm["timeout_ms"] = int(timeout_s * 1000)

        _set_from_env(ideation, "required_count", "IDEATOR_REQUIRED_COUNT", int)
        _set_from_env(ideation, "locale", "IDEATOR_LOCALE", str)
        _set_from_env(validation, "min_quality_score", "IDEATOR_MIN_QUALITY_SCORE", float)
        _set_from_env(validation, "max_retries", "IDEATOR_MAX_RETRIES", int)

        base = cls()
        try:
            return base.merged({
                "llm_config": llm,
                "ideation_config": ideation,
                "validation_config": validation,
            })
        except ValidationError as exc:
            logger.warning("Ignoring invalid ideator environment overrides: %s", exc)
            return base


def _field_name(model: type[BaseModel], key: str) -> str:
    if key in model.model_fields:
        return key
    for name, info in model.model_fields.items():
        if info.alias == key:
            return name
    return key


def _env_value(key: str, cast: type) -> Any:
    raw = os.getenv(key, "").strip()
    if not raw:
        return None
    try:
        return cast(raw)
    except ValueError:
        return None


def _set_from_env(target: Dict[str, Any], field: str, key: str, cast: type) -> None:
    value = _env_value(key, cast)
    if value is not None:
        target[field] = value
