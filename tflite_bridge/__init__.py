"""
Detection response normalization for an external TensorFlow Lite detection library.

Wraps a native detector behind a fixed function table and guarantees that every
detection call yields a canonical JSON envelope:

    {"total_detections": <int>, "detections": [...], "status": "...", "message": "..."}
"""

__version__ = '1.0.0'
