"""
Tag learning policy

Thresholds for the suggestion improver and the contextual tag rules, loaded
from config/newsroom_policy.yaml. The YAML is the source of truth; the
constants in newsroom.config are fallbacks when the file is missing.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from newsroom.config import (
    LEARNING_MIN_OBSERVATIONS,
    LEARNING_MOST_CORRECTED_LIMIT,
    LEARNING_RELIABILITY_THRESHOLD,
)
from newsroom.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ContextualTagRule:
    """Suggest `tag` when the channel or message text mentions a keyword."""

    tag: str
    channel_keywords: tuple[str, ...] = ()
    text_keywords: tuple[str, ...] = ()

    def matches(self, message_text: str, channel_name: str) -> bool:
        text = message_text.lower()
        channel = channel_name.lower()
        return any(k in channel for k in self.channel_keywords) or any(
            k in text for k in self.text_keywords
        )


# Used when the policy file is missing or has no contextual_tags.rules
DEFAULT_CONTEXTUAL_RULES: tuple[ContextualTagRule, ...] = (
    ContextualTagRule("deployment", channel_keywords=("deployment",), text_keywords=("deploy",)),
    ContextualTagRule("bug-fix", channel_keywords=("bug",), text_keywords=("bug", "issue")),
    ContextualTagRule("release", text_keywords=("release", "launch")),
    ContextualTagRule("urgent", text_keywords=("urgent", "critical")),
)


@dataclass(frozen=True)
class LearningPolicy:
    reliability_threshold: float = LEARNING_RELIABILITY_THRESHOLD
    min_observations: int = LEARNING_MIN_OBSERVATIONS
    most_corrected_limit: int = LEARNING_MOST_CORRECTED_LIMIT
    contextual_tags_enabled: bool = True
    contextual_rules: tuple[ContextualTagRule, ...] = DEFAULT_CONTEXTUAL_RULES

    def __post_init__(self) -> None:
        if not 0.0 <= self.reliability_threshold <= 1.0:
            raise ValueError(
                f"reliability_threshold must be within [0, 1], got {self.reliability_threshold}"
            )
        if self.min_observations < 0:
            raise ValueError(f"min_observations must be >= 0, got {self.min_observations}")


def _candidate_paths() -> list[Path]:
    paths = []
    if env_path := os.getenv("NEWSROOM_POLICY_PATH"):
        paths.append(Path(env_path))
    paths.extend(
        [
            Path(__file__).parent.parent.parent / "config" / "newsroom_policy.yaml",
            Path("config/newsroom_policy.yaml"),
        ]
    )
    return paths


def _load_policy_config() -> dict[str, Any]:
    """
    Load the raw policy mapping.

    Side Effects:
        - Reads config/newsroom_policy.yaml from the filesystem
    """
    for config_path in _candidate_paths():
        if config_path.exists():
            with open(config_path) as f:
                config = yaml.safe_load(f) or {}
                logger.debug("Loaded learning policy from %s", config_path)
                return config

    logger.warning("newsroom_policy.yaml not found, using hardcoded defaults")
    return {}


def _parse_rules(raw_rules: list[dict[str, Any]]) -> tuple[ContextualTagRule, ...]:
    rules = []
    for raw in raw_rules:
        if not raw.get("tag"):
            logger.warning("Skipping contextual rule without a tag: %s", raw)
            continue
        rules.append(
            ContextualTagRule(
                tag=str(raw["tag"]),
                channel_keywords=tuple(k.lower() for k in raw.get("channel_keywords", [])),
                text_keywords=tuple(k.lower() for k in raw.get("text_keywords", [])),
            )
        )
    return tuple(rules)


def policy_from_mapping(config: dict[str, Any]) -> LearningPolicy:
    suggestions = config.get("suggestions", {})
    metrics = config.get("metrics", {})
    contextual = config.get("contextual_tags", {})

    threshold = os.getenv("NEWSROOM_RELIABILITY_THRESHOLD")
    min_obs = os.getenv("NEWSROOM_MIN_OBSERVATIONS")

    return LearningPolicy(
        reliability_threshold=float(
            threshold
            if threshold is not None
            else suggestions.get("reliability_threshold", LEARNING_RELIABILITY_THRESHOLD)
        ),
        min_observations=int(
            min_obs
            if min_obs is not None
            else suggestions.get("min_observations", LEARNING_MIN_OBSERVATIONS)
        ),
        most_corrected_limit=int(
            metrics.get("most_corrected_limit", LEARNING_MOST_CORRECTED_LIMIT)
        ),
        contextual_tags_enabled=bool(contextual.get("enabled", True)),
        contextual_rules=(
            _parse_rules(contextual["rules"])
            if contextual.get("rules") is not None
            else DEFAULT_CONTEXTUAL_RULES
        ),
    )


def load_policy() -> LearningPolicy:
    return policy_from_mapping(_load_policy_config())
