"""
Detection envelope builder.

Serializes the canonical response with orjson so the message is always fully
escaped and the key order is fixed. Detection records coming from the native
library are embedded as-is via orjson.Fragment; they are never re-encoded
unless they are not valid single-line JSON.
"""

import logging

import orjson

from tflite_bridge.schemas.envelope import DetectionStatus


logger = logging.getLogger(__name__)

EMPTY_DETECTIONS = '[]'

# Outcome messages
MSG_NOT_INITIALIZED = 'Detector not initialized'
MSG_LIBRARY_UNAVAILABLE = 'Native detection library not available'
MSG_NO_OBJECTS = 'No objects detected'
MSG_DETECTION_COMPLETED = 'Detection completed'
MSG_FROM_FALLBACK = 'Detections retrieved from fallback'
MSG_COUNT_ONLY = 'Detection completed but detailed results not available'


def _is_json(text: str) -> bool:
    try:
        orjson.loads(text)
    except orjson.JSONDecodeError:
        return False
    return True


def _detections_fragment(detections: str) -> orjson.Fragment:
    """
    Embed detections text in the envelope.

    A valid single-line JSON array goes through byte-for-byte. A multi-line
    array is compacted. Any other JSON value (a lone object, string or
    number) becomes a one-element array, and text that does not parse is
    carried as a one-element array holding the raw text. The detections field
    is therefore always an array.
    """
    text = detections.strip() or EMPTY_DETECTIONS
    try:
        parsed = orjson.loads(text)
    except orjson.JSONDecodeError:
        logger.warning(f'Detections are not valid JSON, carrying raw text: {text[:200]}')
        return orjson.Fragment(orjson.dumps([text]))

    if not isinstance(parsed, list):
        logger.warning(f'Detections are not a JSON array, wrapping: {text[:200]}')
        return orjson.Fragment(orjson.dumps([parsed]))

    if '\n' in text or '\r' in text:
        return orjson.Fragment(orjson.dumps(parsed))
    return orjson.Fragment(text)


def join_detection_entries(entries: list[str]) -> str:
    """
    Join native detection strings into one JSON array.

    Entries that are JSON values already (objects, quoted strings) keep their
    text; plain native strings such as "person,0.85,12,40,88,120" become JSON
    strings.
    """
    parts = [
        entry.strip() if _is_json(entry) else orjson.dumps(entry).decode('utf-8')
        for entry in entries
    ]
    return '[' + ','.join(parts) + ']'


def build_response(
    total_detections: int,
    detections: str = EMPTY_DETECTIONS,
    status: DetectionStatus = DetectionStatus.SUCCESS,
    message: str = '',
    log_envelope: bool = True,
) -> str:
    """
    Build a canonical detection envelope.

    Args:
        total_detections: Number of detections to report
        detections: JSON array text with the detection records
        status: Envelope status
        message: Free text, escaped as a JSON string
        log_envelope: Debug-log the generated envelope

    Returns:
        Single-line JSON with keys total_detections, detections, status, message
    """
    envelope = {
        'total_detections': int(total_detections),
        'detections': _detections_fragment(detections),
        'status': DetectionStatus(status).value,
        'message': message,
    }
    response = orjson.dumps(envelope).decode('utf-8')

    if log_envelope:
        logger.debug(f'Generated detection envelope: {response}')
    return response
