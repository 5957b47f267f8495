"""Support ticket priority classification."""
from __future__ import annotations

import structlog

from counsel_ai.ai.config import ModelTier
from counsel_ai.ai.gateway import ModelGateway

logger = structlog.get_logger()

VALID_PRIORITIES = ("urgent", "high", "medium", "low", "feature")
DEFAULT_PRIORITY = "medium"

PRIORITY_PROMPT = """Analyze this support ticket and classify its priority level.

Ticket Title: {title}
Ticket Description: {description}

Priority Levels:
- urgent: System is completely down or unusable
- high: Major functionality is broken affecting multiple users
- medium: Minor issues, glitches, or questions
- low: Cosmetic issues or non-urgent questions
- feature: Feature request or enhancement

Return ONLY the priority level (urgent/high/medium/low/feature) with no explanation."""


async def detect_priority(gateway: ModelGateway, title: str, description: str) -> str:
    """Classify a ticket as urgent/high/medium/low/feature.

    Never raises: an unrecognised answer or any failure yields ``"medium"``.
    """
    log = logger.bind(title=title)
    try:
        response = await gateway.chat_completion(
            ModelTier.FAST,
            [{"role": "user", "content": PRIORITY_PROMPT.format(title=title, description=description)}],
            max_tokens=10,
            operation="priority_detection",
        )
    except Exception as e:
        log.error("priority_detection_failed", error=str(e))
        return DEFAULT_PRIORITY

    priority = response.strip().lower()
    if priority not in VALID_PRIORITIES:
        log.warning("priority_detection_invalid", priority=priority)
        return DEFAULT_PRIORITY

    log.info("priority_detected", priority=priority)
    return priority
