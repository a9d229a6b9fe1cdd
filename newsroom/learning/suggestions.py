"""
Re-ranks tag suggestions using accumulated correction statistics.

Heuristic, not a trained model: the only learned state is the tag counter
table. Tags editors keep rejecting are dropped once there is enough evidence;
the rest are ordered by reliability. Tags with no confirm/reject history keep
their place.
"""

from __future__ import annotations

from collections.abc import Sequence

from newsroom.learning.models import TagAccuracyCounter, normalize_tags
from newsroom.learning.policy import LearningPolicy
from newsroom.learning.repository import TagCounterStore, storage_errors
from newsroom.observability.logging import get_logger
from newsroom.observability.telemetry import counter, time_block

logger = get_logger(__name__)


class SuggestionImprover:
    def __init__(self, counters: TagCounterStore, policy: LearningPolicy) -> None:
        self.counters = counters
        self.policy = policy

    def _is_observed(self, stats: TagAccuracyCounter | None) -> bool:
        return stats is not None and stats.samples > 0

    def _should_drop(self, stats: TagAccuracyCounter | None) -> bool:
        if stats is None or stats.samples == 0:
            return False
        return (
            stats.reliability < self.policy.reliability_threshold
            and stats.samples > self.policy.min_observations
        )

    def contextual_tags(self, message_text: str, channel_name: str) -> list[str]:
        """Tags implied by keywords in the channel name or message text."""
        if not self.policy.contextual_tags_enabled:
            return []
        return [
            rule.tag
            for rule in self.policy.contextual_rules
            if rule.matches(message_text, channel_name)
        ]

    def rank(
        self,
        suggestions: Sequence[str],
        stats: dict[str, TagAccuracyCounter],
    ) -> list[str]:
        """
        Filter and re-order `suggestions` against `stats`.

        Observed survivors are sorted by reliability (stable, so ties keep
        input order) and placed back into the slots observed tags held.
        Unobserved tags never move relative to each other or get dropped.
        """
        kept = [tag for tag in suggestions if not self._should_drop(stats.get(tag))]

        observed_slots = [i for i, tag in enumerate(kept) if self._is_observed(stats.get(tag))]
        ranked = sorted(
            (kept[i] for i in observed_slots),
            key=lambda tag: stats[tag].reliability,
            reverse=True,
        )

        result = list(kept)
        for slot, tag in zip(observed_slots, ranked):
            result[slot] = tag
        return result

    def improve(
        self,
        message_text: str,
        channel_name: str,
        original_suggestions: Sequence[str],
    ) -> list[str]:
        """
        Return the improved suggestion list.

        Side Effects:
            - Reads tag_accuracy
        """
        candidates = normalize_tags(original_suggestions)
        extras = [
            tag
            for tag in self.contextual_tags(message_text, channel_name)
            if tag not in candidates
        ]

        with time_block("learning.suggestions.latency"), storage_errors(
            "load tag statistics"
        ):
            stats = self.counters.get_many(candidates + extras)

        improved = self.rank(candidates, stats)
        improved.extend(tag for tag in extras if not self._should_drop(stats.get(tag)))

        dropped = len(candidates) - len([t for t in improved if t in candidates])
        if dropped:
            counter("learning.suggestions.dropped", dropped)
            logger.debug("Dropped %d unreliable suggestions for #%s", dropped, channel_name)

        return improved
