"""
String-Array Technique
Adaptive detection-and-rewrite engine for "string pool + index decoder"
obfuscation (jsjiami v7 and obfuscator.io-style output)

Steps:
1. parse and detect pools / accessors / decoder candidates structurally
2. build the prelude (every top-level statement touching a pool)
3. run the prelude in a sandbox and probe the live candidates
4. run the prelude again in a fresh sandbox and rewrite call-sites through
   the live decoders

Probing happens in a throwaway sandbox because decoders cache results keyed
by index only; a probe with the sentinel key would otherwise poison the
cache for the real call-sites.
"""

import logging

from ..errors import ParseFailure, SandboxFailure
from ..sandbox import Sandbox
from ..stringpool import (
    DEFAULT_PROBE_INDICES, DEFAULT_PROBE_KEY, CallSiteRewriter, DecoderValidator,
    PoolDetector, build_prelude, normalize_booleans, strip_version_marker
)
from ..stringpool.detector import DEFAULT_MIN_POOL_SIZE
from ..syntax import parse_program
from .base import BaseTechnique

logger = logging.getLogger(__name__)


class StringArrayTechnique(BaseTechnique):
    """String pool + decoder call-site restoration"""

    def __init__(self, config=None):
        super().__init__(config)
        self.detector = PoolDetector(self._setting('min_pool_size', DEFAULT_MIN_POOL_SIZE))
        self.validator = DecoderValidator(
            self._setting('probe_indices', DEFAULT_PROBE_INDICES),
            self._setting('probe_key', DEFAULT_PROBE_KEY),
        )

    def get_name(self) -> str:
        return "string_array"

    def detect(self, code: str) -> bool:
        """True iff at least one pool and one reader are found"""
        try:
            program = parse_program(code)
        except ParseFailure:
            return False
        return self.detector.scan(program).found

    def process(self, code: str) -> str:
        # detect() would parse a second time; transform() re-checks itself
        self.last_error = None
        try:
            return self.transform(code)
        except Exception as e:
            logger.warning("[plugin:%s] error: %s", self.get_name(), e)
            self.last_error = str(e) or type(e).__name__
            return code

    def transform(self, code: str) -> str:
        try:
            program = parse_program(code)
        except ParseFailure as e:
            logger.debug("Parse failed, leaving input untouched: %s", e)
            return code

        report = self.detector.scan(program)
        if not report.found:
            return code

        prelude = build_prelude(program, report.tracked_names)
        if not prelude:
            return code

        timeout = self._setting('sandbox_timeout_secs', 1.0)
        try:
            if self._setting('isolate_probes', True):
                with Sandbox(timeout) as probe_box:
                    probe_box.execute(prelude.source)
                    validated = {d.name for d in self.validator.validate(probe_box, report.candidates)}
                if not validated:
                    logger.debug("No candidate survived probing")
                    return code

                with Sandbox(timeout) as live_box:
                    live_box.execute(prelude.source)
                    decoders = [
                        d for d in self.validator.live_candidates(live_box, report.candidates)
                        if d.name in validated
                    ]
                    rewritten = CallSiteRewriter(program, decoders, protected=prelude).rewrite()
            else:
                with Sandbox(timeout) as live_box:
                    live_box.execute(prelude.source)
                    decoders = self.validator.validate(live_box, report.candidates)
                    rewritten = CallSiteRewriter(program, decoders, protected=prelude).rewrite()
        except SandboxFailure as e:
            logger.info("[plugin:%s] sandbox failure (%s), leaving input untouched",
                        self.get_name(), 'timeout' if e.timed_out else e)
            return code

        if not rewritten:
            return code

        logger.info("[plugin:%s] rewrote %d call-sites via %s",
                    self.get_name(), rewritten, ', '.join(sorted(d.name for d in decoders)))

        if self._setting('normalize_booleans', True):
            normalize_booleans(program)
        if self._setting('strip_version_marker', False):
            strip_version_marker(program)

        return program.render()
