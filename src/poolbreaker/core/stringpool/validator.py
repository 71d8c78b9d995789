"""
Decoder Validator
Probes live decoder candidates and keeps the ones that answer with strings

Any working decoder probed across a broad enough index range returns a
string for some index, so the validator never needs to understand the
decoder's offset or key scheme.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Sequence

from ..errors import SandboxFailure
from ..sandbox import Sandbox
from .detector import DecoderCandidate

logger = logging.getLogger(__name__)

DEFAULT_PROBE_INDICES = (0, 1, 2, 3, 4, 5, 10, 16, 32, 64, 128, 255)
DEFAULT_PROBE_KEY = "probe"


@dataclass
class ValidatedDecoder:
    """Decoder confirmed to return strings, bound to a live sandbox function"""
    name: str
    arity: int
    live_callable: Callable

    def __call__(self, *args):
        return self.live_callable(*args)


class DecoderValidator:
    """Runs the probe battery against live candidates"""

    def __init__(self, probe_indices: Sequence[int] = DEFAULT_PROBE_INDICES,
                 probe_key: str = DEFAULT_PROBE_KEY):
        self.probe_indices = tuple(probe_indices)
        self.probe_key = probe_key

    def live_candidates(self, sandbox: Sandbox, candidates: List[DecoderCandidate]) -> List[ValidatedDecoder]:
        """Bind candidates that exist in the sandbox as callables (not yet probed)"""
        bound = []
        for candidate in candidates:
            if sandbox.type_of(candidate.name) != 'function':
                logger.debug("Candidate %s is not a live function", candidate.name)
                continue
            bound.append(ValidatedDecoder(candidate.name, candidate.arity, sandbox.function(candidate.name)))
        return bound

    def validate(self, sandbox: Sandbox, candidates: List[DecoderCandidate]) -> List[ValidatedDecoder]:
        """
        Keep candidates that return a string for at least one probe

        Raises:
            SandboxFailure: a probe exceeded the sandbox timeout
        """
        validated = []
        for decoder in self.live_candidates(sandbox, candidates):
            if self._answers_with_string(decoder):
                validated.append(decoder)
            else:
                logger.debug("Candidate %s never returned a string", decoder.name)
        return validated

    def _answers_with_string(self, decoder: ValidatedDecoder) -> bool:
        for index in self.probe_indices:
            args = (index, self.probe_key) if decoder.arity >= 2 else (index,)
            try:
                result = decoder(*args)
            except SandboxFailure as e:
                if e.timed_out:
                    raise
                continue
            if isinstance(result, str):
                return True
        return False
