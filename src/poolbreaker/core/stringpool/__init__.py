"""
String-Array Engine
Building blocks of the adaptive string-pool deobfuscator

- detector.py: pools, accessors and decoder candidates
- prelude.py: minimal ordered closure to run in the sandbox
- validator.py: probe battery over live candidates
- rewriter.py: call-site replacement and post-rewrite cleanups
"""

from .detector import DecoderCandidate, DetectionReport, PoolDetector, StringPool
from .prelude import Prelude, build_prelude
from .validator import DEFAULT_PROBE_INDICES, DEFAULT_PROBE_KEY, DecoderValidator, ValidatedDecoder
from .rewriter import CallSiteRewriter, normalize_booleans, strip_version_marker

__all__ = [
    'DecoderCandidate',
    'DetectionReport',
    'PoolDetector',
    'StringPool',
    'Prelude',
    'build_prelude',
    'DEFAULT_PROBE_INDICES',
    'DEFAULT_PROBE_KEY',
    'DecoderValidator',
    'ValidatedDecoder',
    'CallSiteRewriter',
    'normalize_booleans',
    'strip_version_marker',
]
