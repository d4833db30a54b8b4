"""
Client-side interpretation of detection responses.

The presence of the `total_detections` key is what separates a canonical
envelope from a bare native payload that still needs wrapping.
"""

import logging
import re

import orjson
from pydantic import ValidationError

from tflite_bridge.schemas.envelope import DetectionEnvelope


logger = logging.getLogger(__name__)

ENVELOPE_KEY = 'total_detections'

# Last resort for payloads that are not valid JSON as a whole
_TOTAL_PATTERN = re.compile(r'"total_detections"\s*:\s*(-?\d+)')


def has_envelope_key(text: str | None) -> bool:
    """True if the payload already carries the total_detections key."""
    return bool(text) and ENVELOPE_KEY in text


def parse_envelope(text: str | None) -> DetectionEnvelope | None:
    """
    Parse and validate a full envelope.

    Returns:
        DetectionEnvelope, or None when the payload is empty, not JSON, or
        does not match the envelope schema
    """
    if not text:
        logger.error('Detection response is empty')
        return None
    try:
        return DetectionEnvelope.model_validate(orjson.loads(text))
    except (orjson.JSONDecodeError, ValidationError) as e:
        logger.error(f'Invalid detection envelope: {e}')
        logger.debug(f'Payload that failed to parse: {text}')
        return None


def parse_total_detections(text: str | None) -> int:
    """
    Extract total_detections from a detection response.

    Returns:
        The count, or -1 when the response is empty, lacks the key, or the
        value is not an integer
    """
    if not text:
        logger.error('Detection response is empty')
        return -1
    if not has_envelope_key(text):
        logger.error(f'Detection response is missing {ENVELOPE_KEY}: {text[:200]}')
        return -1

    try:
        payload = orjson.loads(text)
    except orjson.JSONDecodeError:
        match = _TOTAL_PATTERN.search(text)
        if match is None:
            logger.error(f'Could not locate {ENVELOPE_KEY} value in response')
            return -1
        logger.warning('Detection response is not valid JSON, extracted count by pattern')
        return int(match.group(1))

    value = payload.get(ENVELOPE_KEY) if isinstance(payload, dict) else None
    if isinstance(value, bool) or not isinstance(value, int):
        logger.error(f'{ENVELOPE_KEY} is not an integer: {value!r}')
        return -1
    return value
