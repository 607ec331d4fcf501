"""
Closed-form confidence heuristic echoed back with search results.
"""

from collections.abc import Sequence

from chatwise_recall.config.constants import STOP_CANDIDATE_COUNT
from chatwise_recall.config.search_config import SearchConfig, SearchConfigManager
from chatwise_recall.database_management.query_planner import RankedConversation


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


class ConfidenceEstimator:
    """Advisory relevance score for a ranked result set."""

    def __init__(self, config: SearchConfig | None = None) -> None:
        self.config = config or SearchConfigManager.get_default()
        weights = self.config.get_dict("confidence")
        self.base = weights["base"]
        self.hits_weight = weights["hits_weight"]
        self.hits_saturation = weights["hits_saturation"]
        self.breadth_weight = weights["breadth_weight"]
        self.breadth_saturation = weights["breadth_saturation"]
        self.recency_base = weights["recency_base"]
        self.recency_breadth_weight = weights["recency_breadth_weight"]
        self.stop_threshold = weights["stop_threshold"]

    def search_confidence(self, results: Sequence[RankedConversation]) -> float:
        """Score from the top conversation's hit volume and the result breadth."""
        if not results:
            return 0.0
        top_hits = results[0].hits or 0
        return clamp(
            self.base
            + self.hits_weight * clamp(top_hits / self.hits_saturation)
            + self.breadth_weight * clamp(len(results) / self.breadth_saturation)
        )

    def recency_confidence(self, results: Sequence[RankedConversation]) -> float:
        """Breadth-only score for the recency listing."""
        if not results:
            return 0.0
        return clamp(
            self.recency_base
            + self.recency_breadth_weight
            * clamp(len(results) / self.breadth_saturation)
        )

    def stop_condition(self) -> str:
        """Suggested stop condition, rendered for the caller."""
        return (
            f"confidence >= {self.stop_threshold:g} || "
            f"topChatIds.length <= {STOP_CANDIDATE_COUNT}"
        )
