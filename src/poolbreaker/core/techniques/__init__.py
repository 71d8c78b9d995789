"""
Techniques Package
Pluggable deobfuscation techniques sharing the detect/process contract

- base.py: BaseTechnique interface and RewriteResult
- string_array.py: adaptive string pool + decoder engine
- self_decoding.py: Function/eval capture shared by the encodings below
- aaencode.py: AAEncode (emoticon) encoding
- jsfuck.py: JSFuck (six-symbol) encoding
"""

from .base import BaseTechnique, RewriteResult
from .string_array import StringArrayTechnique
from .self_decoding import SelfDecodingTechnique
from .aaencode import AAEncodeTechnique
from .jsfuck import JSFuckTechnique


__all__ = [
    'BaseTechnique',
    'RewriteResult',
    'StringArrayTechnique',
    'SelfDecodingTechnique',
    'AAEncodeTechnique',
    'JSFuckTechnique',
    'get_all_techniques',
]


def get_all_techniques(config=None):
    """
    Get all techniques in the fixed priority order

    The string-array engine runs first: it is the most likely to unlock
    nested layers.

    Args:
        config: PipelineConfig object

    Returns:
        List of initialized technique instances in execution order
    """
    return [
        StringArrayTechnique(config),
        AAEncodeTechnique(config),
        JSFuckTechnique(config),
    ]
