"""
Unit tests for tflite_bridge.services.interpreter
"""

from tflite_bridge.schemas.envelope import DetectionStatus
from tflite_bridge.services.interpreter import (
    has_envelope_key,
    parse_envelope,
    parse_total_detections,
)
from tflite_bridge.services.response import build_response


class TestHasEnvelopeKey:
    """Tests for has_envelope_key"""

    def test_envelope(self):
        assert has_envelope_key('{"total_detections": 1}')

    def test_bare_array(self):
        assert not has_envelope_key('[{"class":"person"}]')

    def test_empty(self):
        assert not has_envelope_key('')
        assert not has_envelope_key(None)


class TestParseTotalDetections:
    """Tests for parse_total_detections"""

    def test_built_envelope(self):
        assert parse_total_detections(build_response(4, '[]')) == 4

    def test_spaced_format(self):
        text = '{"total_detections": 7, "detections": [], "status": "success", "message": ""}'
        assert parse_total_detections(text) == 7

    def test_empty_is_sentinel(self):
        assert parse_total_detections('') == -1
        assert parse_total_detections(None) == -1

    def test_missing_key_is_sentinel(self):
        assert parse_total_detections('{"count": 3}') == -1

    def test_non_integer_is_sentinel(self):
        assert parse_total_detections('{"total_detections": "three"}') == -1
        assert parse_total_detections('{"total_detections": true}') == -1

    def test_invalid_json_falls_back_to_pattern(self):
        assert parse_total_detections('{"total_detections": 5, "detections": [oops]}') == 5

    def test_invalid_json_without_value(self):
        assert parse_total_detections('{"total_detections": , }') == -1


class TestParseEnvelope:
    """Tests for parse_envelope"""

    def test_round_trip(self):
        envelope = parse_envelope(build_response(2, '["a","b"]', message='ok'))
        assert envelope is not None
        assert envelope.total_detections == 2
        assert envelope.detections == ['a', 'b']
        assert envelope.status is DetectionStatus.SUCCESS
        assert envelope.ok

    def test_error_status(self):
        envelope = parse_envelope(build_response(0, status=DetectionStatus.ERROR, message='x'))
        assert envelope is not None
        assert not envelope.ok

    def test_invalid_json(self):
        assert parse_envelope('not json') is None

    def test_schema_mismatch(self):
        assert parse_envelope('{"total_detections": -1, "status": "success"}') is None
        assert parse_envelope('{"total_detections": 1, "status": "pending"}') is None

    def test_empty(self):
        assert parse_envelope('') is None
