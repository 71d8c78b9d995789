"""
AAEncode Technique
Japanese-emoticon encoding: (ﾟДﾟ)['_']((ﾟДﾟ)['_'](...)(ﾟΘﾟ))('_');
"""

import re

from .self_decoding import SelfDecodingTechnique


class AAEncodeTechnique(SelfDecodingTechnique):
    """Unwraps AAEncode via Function-constructor capture"""

    GLYPHS = re.compile(r'ﾟωﾟ|（｀・ω・´）|ω｀')
    TRAILING_CALL = re.compile(r"\(\s*'_'\s*\)\s*;?\s*$")

    def get_name(self) -> str:
        return "aaencode"

    def detect(self, code: str) -> bool:
        return bool(self.GLYPHS.search(code))

    def accepts_shape(self, code: str) -> bool:
        # encoded programs end by invoking the rebuilt function with '_'
        return bool(self.TRAILING_CALL.search(code))
