"""Intent classifier -- map one free-text message to one DetectedIntent.

- Regex pass: first matching pattern of an entry scores a fixed 0.9
- Keyword pass (only while the best score is below 0.7):
  min(0.5 + 0.15 * matched_keywords, 0.75)
- A candidate replaces the current best only on strictly higher
  confidence, so catalog order breaks ties
- The winning entry's slots run over the whole message

Classification never executes anything; acting on a DetectedIntent is
the executor's job and is gated separately by the caller.
"""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any

from bizos.brain.intent.catalog import INTENT_CATALOG, IntentDefinition
from bizos.brain.intent.params import IntentParams, IntentType, NoParams

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from bizos.brain.metrics.sli import IntentSLI

logger = logging.getLogger(__name__)

# Minimum confidence at which a detected intent may be executed.
EXECUTION_THRESHOLD = 0.7


@dataclass(frozen=True)
class ClassifierConfig:
    """Confidence tuning constants.

    These have no derivation; they are kept as-is for behaviour parity
    with the catalog they were tuned against.
    """

    regex_confidence: float = 0.9
    keyword_base: float = 0.5
    keyword_step: float = 0.15
    keyword_cap: float = 0.75
    execution_threshold: float = EXECUTION_THRESHOLD

    def keyword_confidence(self, matches: int) -> float:
        return min(self.keyword_base + self.keyword_step * matches, self.keyword_cap)


@dataclass(frozen=True)
class DetectedIntent:
    """Result of intent classification. Ephemeral, never persisted."""

    type: IntentType
    confidence: float  # 0.0 - 1.0
    parameters: IntentParams = field(default_factory=NoParams)
    original_text: str = ""

    def as_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "confidence": self.confidence,
            "parameters": self.parameters.as_dict(),
            "original_text": self.original_text,
        }


class IntentClassifier:
    """Rule-based intent classifier over a declarative catalog.

    Stateless apart from its configuration: the same message (and the
    same anchor date) always yields the same DetectedIntent.
    """

    def __init__(
        self,
        *,
        catalog: Sequence[IntentDefinition] = INTENT_CATALOG,
        config: ClassifierConfig | None = None,
        clock: Callable[[], date] = date.today,
        sli: IntentSLI | None = None,
    ) -> None:
        self._catalog = tuple(catalog)
        self._config = config or ClassifierConfig()
        self._clock = clock
        self._sli = sli

    @property
    def config(self) -> ClassifierConfig:
        return self._config

    def detect(self, message: str, *, today: date | None = None) -> DetectedIntent:
        """Classify a message.

        Args:
            message: Raw user message.
            today: Anchor for relative dates; defaults to the clock.

        Returns:
            DetectedIntent; UNKNOWN with confidence 0 when nothing matched.
        """
        timer = (
            self._sli.timer(self._sli.classification_duration)
            if self._sli is not None
            else contextlib.nullcontext()
        )
        with timer:
            result = self._classify(message, today or self._clock())

        logger.debug(
            "Classified message as %s (confidence=%.2f)",
            result.type.value,
            result.confidence,
        )
        if self._sli is not None:
            self._sli.record_detection(result.type.value)
        return result

    def _classify(self, message: str, anchor: date) -> DetectedIntent:
        cfg = self._config
        best = DetectedIntent(
            type=IntentType.UNKNOWN,
            confidence=0.0,
            parameters=NoParams(),
            original_text=message,
        )

        # Regex pass: explicit phrasing
        for definition in self._catalog:
            for pattern in definition.patterns:
                if pattern.search(message):
                    if cfg.regex_confidence > best.confidence:
                        best = self._build(definition, cfg.regex_confidence, message, anchor)
                    break

        if best.confidence >= cfg.execution_threshold:
            return best

        # Keyword pass: looser phrasing, bounded below the regex score
        lowered = message.lower()
        for definition in self._catalog:
            matches = sum(1 for kw in definition.keywords if kw in lowered)
            if matches == 0:
                continue
            confidence = cfg.keyword_confidence(matches)
            if confidence > best.confidence:
                best = self._build(definition, confidence, message, anchor)

        return best

    @staticmethod
    def _build(
        definition: IntentDefinition,
        confidence: float,
        message: str,
        anchor: date,
    ) -> DetectedIntent:
        values: dict[str, Any] = {}
        for name, slot in definition.slots.items():
            value = slot.run(message, anchor)
            if value is None or value == "":
                continue
            values[name] = value

        return DetectedIntent(
            type=definition.intent_type,
            confidence=confidence,
            parameters=definition.params_type(**values),
            original_text=message,
        )


_default_classifier = IntentClassifier()


def detect_intent(message: str, *, today: date | None = None) -> DetectedIntent:
    """Classify with the built-in catalog and default configuration."""
    return _default_classifier.detect(message, today=today)
