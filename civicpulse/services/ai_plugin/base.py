"""
AI Client Base Interface.

Defines the contract for the external AI capabilities used by the analyzers:
a language model (text in, text out) and a vision model (image + prompt in,
text out). Implementations raise UpstreamDegradation on any failure; the
analyzers catch it and fall back.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional


class AIClient(ABC):
    """
    Abstract base class for AI clients.

    A client is constructed once at application start-up and passed to the
    analyzers explicitly.
    """

    @abstractmethod
    def is_enabled(self) -> bool:
        """
        Check if this client is configured and ready.

        Returns:
            True if calls can be made, False otherwise
        """
        pass

    @abstractmethod
    def get_model_info(self) -> Dict[str, str]:
        """
        Get model information.

        Returns:
            Dict with 'text_model' and 'vision_model' keys
        """
        pass

    @abstractmethod
    def get_timeout_seconds(self) -> float:
        pass

    @abstractmethod
    def infer_text(self, prompt: str, system_prompt: Optional[str] = None, max_tokens: int = 200) -> str:
        """
        Run the language model on a prompt.

        Returns:
            Raw reply text

        Raises:
            UpstreamDegradation: timeout, transport error, quota or empty reply
        """
        pass

    @abstractmethod
    def infer_vision(self, image_url: str, prompt: str, max_tokens: int = 300) -> str:
        """
        Run the vision model on an image (http(s) URL or base64 data URL).

        Returns:
            Raw reply text

        Raises:
            UpstreamDegradation: timeout, transport error, quota or empty reply
        """
        pass
