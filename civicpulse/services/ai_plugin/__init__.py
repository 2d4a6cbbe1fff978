"""
AI client plug-in layer.

Provides the external language and vision capabilities to the analyzers.
Failures surface as UpstreamDegradation and never block issue intake.
"""

from civicpulse.services.ai_plugin.base import AIClient
from civicpulse.services.ai_plugin.groq_provider import GroqAIClient
from civicpulse.services.ai_plugin.registry import build_ai_client

__all__ = [
    "AIClient",
    "GroqAIClient",
    "build_ai_client",
]
