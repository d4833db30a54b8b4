"""
Configuration module for the detection bridge.

Provides centralized configuration using Pydantic Settings with environment variable support.
"""

from tflite_bridge.config.settings import Settings, get_settings


__all__ = ['Settings', 'get_settings']
