"""
Message classifier for the fitness coach router.

This module implements the MessageClassifier class that derives an intent,
topic tags, urgency and a confidence estimate from raw message text using
ordered keyword-family checks. Classification is deterministic pattern
matching: the first family with a substring hit wins, in the priority order
safety > exercise > nutrition > motivation > planning > general.

It also provides input validation used by the orchestrator to keep empty,
oversized or markup-laden input away from external providers.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .models import Category, MessageAnalysis, Urgency


logger = logging.getLogger(__name__)


class InputError(ValueError):
    """Raised when input text is empty or malformed."""
    pass


# Keyword families in priority order: (intent, keywords, confidence)
KEYWORD_FAMILIES: List[Tuple[Category, List[str], float]] = [
    (
        Category.SAFETY,
        [
            "pain", "chest pain", "dizzy", "faint", "injury", "hurt",
            "emergency", "numbness", "shortness of breath", "can't breathe"
        ],
        0.9,
    ),
    (
        Category.EXERCISE,
        [
            "exercise", "workout", "training", "lift", "squat", "deadlift",
            "bench press", "form", "technique", "push-up", "pushup",
            "plank", "pull-up"
        ],
        0.8,
    ),
    (
        Category.NUTRITION,
        [
            "nutrition", "diet", "protein", "carbs", "calories", "meal",
            "supplement", "eating", "hydration"
        ],
        0.8,
    ),
    (
        Category.MOTIVATION,
        [
            "motivation", "struggling", "discouraged", "plateau", "give up",
            "hard", "difficult"
        ],
        0.8,
    ),
    (
        Category.PLANNING,
        ["plan", "routine", "schedule", "program", "beginner", "start"],
        0.7,
    ),
]

GENERAL_CONFIDENCE = 0.6
EMPTY_INPUT_CONFIDENCE = 0.0

COMPLEX_TRIGGERS = ["explain how", "why does", "the mechanism", "research shows"]
EXTERNAL_LENGTH_THRESHOLD = 200
EXTERNAL_CONFIDENCE_THRESHOLD = 0.6

MAX_INPUT_LENGTH = 5000
UNSAFE_CONTENT_PATTERNS = [
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"data:text/html", re.IGNORECASE),
]


@dataclass
class InputValidation:
    """Result of validating raw input text."""
    is_valid: bool
    reason: Optional[str] = None


def validate_input(text: Optional[str]) -> InputValidation:
    """
    Check raw input for emptiness, excessive length and embedded markup.

    Args:
        text: Raw user input (may be None).

    Returns:
        InputValidation with a machine-readable reason when invalid.
    """
    if not text or not text.strip():
        return InputValidation(False, "empty_input")

    if len(text) > MAX_INPUT_LENGTH:
        return InputValidation(False, "input_too_long")

    if any(pattern.search(text) for pattern in UNSAFE_CONTENT_PATTERNS):
        return InputValidation(False, "unsafe_content")

    return InputValidation(True)


def require_valid_input(text: Optional[str]) -> str:
    """
    Return the input unchanged if valid.

    Raises:
        InputError: If the input fails validation.
    """
    validation = validate_input(text)
    if not validation.is_valid:
        raise InputError(validation.reason)
    return text


def contains_safety_keyword(text: Optional[str]) -> bool:
    """True if the lower-cased text contains any safety keyword."""
    if not text:
        return False
    text_lower = text.lower()
    _, safety_keywords, _ = KEYWORD_FAMILIES[0]
    return any(keyword in text_lower for keyword in safety_keywords)


class MessageClassifier:
    """
    Rule-based intent classifier.

    Pure and deterministic: the same text always yields the same analysis.
    """

    def __init__(self, families: Optional[List[Tuple[Category, List[str], float]]] = None):
        """
        Initialize the classifier.

        Args:
            families: Ordered keyword families; defaults to KEYWORD_FAMILIES.
        """
        self.families = families if families is not None else KEYWORD_FAMILIES

    def classify(self, text: Optional[str]) -> MessageAnalysis:
        """
        Classify a raw message.

        Args:
            text: Raw user message.

        Returns:
            MessageAnalysis: Intent, topics, urgency, confidence and
            whether an external provider is warranted.
        """
        text = text or ""
        text_lower = text.lower()

        if not text_lower.strip():
            return MessageAnalysis(
                original_message=text,
                intent=Category.GENERAL,
                confidence=EMPTY_INPUT_CONFIDENCE,
                needs_external=True
            )

        analysis = MessageAnalysis(
            original_message=text,
            intent=Category.GENERAL,
            confidence=GENERAL_CONFIDENCE
        )

        for intent, keywords, confidence in self.families:
            if any(keyword in text_lower for keyword in keywords):
                analysis.intent = intent
                analysis.topics = [intent.value]
                analysis.confidence = confidence
                break

        # Safety is always handled locally and immediately
        if analysis.intent == Category.SAFETY:
            analysis.urgency = Urgency.HIGH
            analysis.needs_external = False
            logger.debug(f"Safety intent detected: {text[:50]}...")
            return analysis

        analysis.needs_external = (
            len(text) > EXTERNAL_LENGTH_THRESHOLD
            or any(trigger in text_lower for trigger in COMPLEX_TRIGGERS)
            or analysis.confidence < EXTERNAL_CONFIDENCE_THRESHOLD
        )

        logger.debug(
            f"Classified intent={analysis.intent.value}, "
            f"confidence={analysis.confidence:.2f}, "
            f"needs_external={analysis.needs_external}"
        )
        return analysis
