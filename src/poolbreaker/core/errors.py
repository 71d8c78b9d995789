"""
Error Taxonomy
Exceptions raised inside the deobfuscation core

Pattern-not-found and unresolved arguments are not exceptions: the first is
an empty DetectionReport, the second is the evaluator's UNKNOWN sentinel.
"""


class DeobfuscationError(Exception):
    """Base class for all core errors"""


class ParseFailure(DeobfuscationError):
    """Input is not syntactically valid JavaScript"""


class SandboxFailure(DeobfuscationError):
    """Sandboxed code raised, or exceeded its wall-clock budget"""

    def __init__(self, message: str, timed_out: bool = False):
        super().__init__(message)
        self.timed_out = timed_out
