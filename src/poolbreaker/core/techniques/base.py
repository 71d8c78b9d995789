"""
Base Technique Interface
Defines the detect/process contract every deobfuscation technique implements
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class RewriteResult:
    """Outcome of one technique (or one round) applied to a code string"""
    code: str
    changed: bool


class BaseTechnique(ABC):
    """Abstract base class for all deobfuscation techniques"""

    def __init__(self, config=None):
        """
        Initialize technique with optional configuration

        Args:
            config: PipelineConfig object (defaults apply when None)
        """
        self.config = config
        self.last_error: Optional[str] = None

    @abstractmethod
    def get_name(self) -> str:
        """
        Get the name of this technique

        Returns:
            Short identifier used in logs and traces (e.g., "string_array")
        """
        pass

    @abstractmethod
    def detect(self, code: str) -> bool:
        """
        Side-effect-free check whether this technique applies

        Args:
            code: JavaScript source

        Returns:
            True if the technique recognizes its pattern in the code
        """
        pass

    @abstractmethod
    def transform(self, code: str) -> str:
        """
        Technique-specific rewrite, only called when detect() is True

        Returns:
            Rewritten source, or the input unchanged when nothing applies
        """
        pass

    def process(self, code: str) -> str:
        """
        Apply the technique; never raises

        Any internal failure is logged, kept in last_error for the caller,
        and the input is returned unchanged.
        """
        self.last_error = None
        try:
            if not self.detect(code):
                return code
            result = self.transform(code)
        except Exception as e:
            logger.warning("[plugin:%s] error: %s", self.get_name(), e)
            self.last_error = str(e) or type(e).__name__
            return code
        return result if isinstance(result, str) else code

    def apply(self, code: str) -> RewriteResult:
        result = self.process(code)
        return RewriteResult(code=result, changed=result != code)

    def _setting(self, name: str, default):
        """Read a config attribute, falling back to the default when unset"""
        if self.config is None:
            return default
        return getattr(self.config, name, default)
