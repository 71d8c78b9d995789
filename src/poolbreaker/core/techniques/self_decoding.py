"""
Self-Decoding Encodings
Shared machinery for encodings that rebuild their payload at runtime and hand
it to the Function constructor (AAEncode, JSFuck)

The encoded program runs in a sandbox whose Function constructor and eval are
capturing stubs; whatever source they receive is the decoded payload. The
payload itself is never executed.
"""

import logging

from ..errors import SandboxFailure
from ..sandbox import Sandbox
from .base import BaseTechnique

logger = logging.getLogger(__name__)


class SelfDecodingTechnique(BaseTechnique):
    """Base class for techniques unwrapped by Function/eval capture"""

    def accepts_shape(self, code: str) -> bool:
        """Stricter structural guard applied before anything runs"""
        return True

    def transform(self, code: str) -> str:
        if not self.accepts_shape(code):
            return code

        try:
            with Sandbox(self._setting('sandbox_timeout_secs', 1.0), capture_dynamic_code=True) as sandbox:
                sandbox.execute(code)
                payloads = sandbox.captured_code()
        except SandboxFailure as e:
            logger.info("[plugin:%s] sandbox failure (%s), leaving input untouched",
                        self.get_name(), 'timeout' if e.timed_out else e)
            return code

        payloads = [p for p in payloads if p.strip()]
        if not payloads:
            return code

        logger.info("[plugin:%s] unwrapped %d payload(s)", self.get_name(), len(payloads))
        return '\n'.join(payloads)
