"""
Backend adapters for the supported Google generative AI endpoints.
"""

from .keyed_rest_adapter import KeyedRESTAdapter
from .legacy_predict_adapter import LegacyPredictAdapter
from .chat_sdk_adapter import ChatSDKAdapter

__all__ = [
    "KeyedRESTAdapter",
    "LegacyPredictAdapter",
    "ChatSDKAdapter",
]
