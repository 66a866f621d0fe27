"""
Fixed fallback and safety response templates.

These templates live outside the scored knowledge base: the local fallback
when no provider can answer, the error fallback when the pipeline fails
unexpectedly, and the built-in safety protocol used when a safety message
has no accepted safety entry.
"""

import random
from typing import Optional

from .knowledge_base import MOTIVATIONAL_QUOTES
from .models import CoachResponse, ResponseMetadata, ResponseSource


LOCAL_FALLBACK_CONFIDENCE = 0.6
ERROR_FALLBACK_CONFIDENCE = 0.5
SAFETY_PROTOCOL_CONFIDENCE = 0.95

LOCAL_FALLBACK_TEMPLATE = """I understand you're asking about fitness, and I want to help! 💪

While I can't reach my AI services right now, I have built-in knowledge about:
• Exercise techniques and form
• Workout planning and routines
• Nutrition fundamentals
• Safety guidelines
• Motivational support

Try asking me something specific like:
"How do I do a proper squat?"
"What should I eat before a workout?"
"I need motivation to keep going"
"Create a beginner workout plan"

I'm here to support your fitness journey! 🚀"""

ERROR_FALLBACK_TEMPLATE = """I'm having a technical hiccup, but don't worry! 🤖

I can still help you with:
✅ Exercise form and techniques
✅ Workout planning
✅ Nutrition basics
✅ Safety guidelines
✅ Motivation and support

Try rephrasing your question or ask me something specific about fitness. I'm still here to help! 💪

{quote}"""

SAFETY_PROTOCOL_TEMPLATE = """⚠️ **SAFETY FIRST** ⚠️

You mentioned something that may need attention.

**Please:**
🚨 Stop exercising right away
🏥 If you have chest pain, severe shortness of breath or feel faint, seek emergency medical help
📞 Contact your healthcare provider about persistent or worrying symptoms

**Your safety is the top priority.** No fitness goal is worth risking your health.

Once you're cleared by a medical professional, I'm here to help you exercise safely! 💙"""


def random_quote(rng: Optional[random.Random] = None) -> str:
    """Draw one motivational quote uniformly at random."""
    return (rng or random).choice(MOTIVATIONAL_QUOTES)


def local_fallback_response(error_code: Optional[str] = None, confidence: float = LOCAL_FALLBACK_CONFIDENCE) -> CoachResponse:
    """Capabilities overview shown when no provider can answer."""
    return CoachResponse(
        content=LOCAL_FALLBACK_TEMPLATE,
        source=ResponseSource.LOCAL_FALLBACK,
        confidence=confidence,
        metadata=ResponseMetadata(error_code=error_code)
    )


def error_fallback_response(
    error_code: str = "internal_error",
    rng: Optional[random.Random] = None
) -> CoachResponse:
    """Apology with one rotating motivational line."""
    return CoachResponse(
        content=ERROR_FALLBACK_TEMPLATE.format(quote=random_quote(rng)),
        source=ResponseSource.ERROR,
        confidence=ERROR_FALLBACK_CONFIDENCE,
        metadata=ResponseMetadata(error_code=error_code)
    )


def safety_protocol_response() -> CoachResponse:
    """Dedicated safety template, never degraded."""
    return CoachResponse(
        content=SAFETY_PROTOCOL_TEMPLATE,
        source=ResponseSource.SAFETY_PROTOCOL,
        confidence=SAFETY_PROTOCOL_CONFIDENCE
    )
