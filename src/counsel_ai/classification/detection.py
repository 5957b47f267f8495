"""Crisis and grief detection for counseling messages.

Both detectors call the gateway once, without retry, and answer ``True``
only when the model replies exactly ``true``. Any failure answers
``False`` so an outage never raises spurious alerts.
"""
from __future__ import annotations

import structlog

from counsel_ai.ai.config import ModelTier
from counsel_ai.ai.gateway import ModelGateway

logger = structlog.get_logger()

CRISIS_PROMPT = """As a Christian counselor with theological training, analyze this message for genuine crisis indicators requiring immediate professional intervention.

This is a Christian counseling platform: questions directed to God or about God are normal spiritual inquiries, not crises.

Message: "{message}"

Flag as crisis ONLY for:
- Active suicidal ideation with intent or plan
- Immediate self-harm intent with imminent danger
- Abuse or violence happening right now
- Life-threatening addiction requiring emergency intervention
- Severe mental health emergency with immediate danger

Do NOT flag spiritual seeking, doubt, resolved past struggles, theological questions or metaphors ("dying inside").

Respond with ONLY "true" or "false" and nothing else."""

GRIEF_PROMPT = """As a Christian counselor, determine if this message indicates ACTIVE GRIEF from a RECENT ACTUAL LOSS that requires specialized grief resources.

Message: "{message}"

ONLY answer true if the message explicitly mentions:
- Death of a loved one within the past year AND current distress about it
- A terminal diagnosis AND active emotional processing of it
- Current acute bereavement naming who died

Answer false for spiritual distance, general hardship, theological questions about death, processed past losses or metaphorical language. When in doubt, answer false.

Respond with ONLY "true" or "false" and nothing else."""


async def _detect_flag(gateway: ModelGateway, prompt: str, operation: str) -> bool:
    try:
        response = await gateway.chat_completion(
            ModelTier.FAST,
            [{"role": "user", "content": prompt}],
            max_tokens=10,
            temperature=0.1,
            operation=operation,
        )
    except Exception as e:
        logger.error("detection_failed", operation=operation, error=str(e))
        return False

    answer = response.strip().lower()
    logger.debug("detection_result", operation=operation, answer=answer)
    return answer == "true"


async def detect_crisis(gateway: ModelGateway, message: str) -> bool:
    return await _detect_flag(gateway, CRISIS_PROMPT.format(message=message), "crisis_detection")


async def detect_grief(gateway: ModelGateway, message: str) -> bool:
    return await _detect_flag(gateway, GRIEF_PROMPT.format(message=message), "grief_detection")
