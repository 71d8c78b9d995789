"""
JSFuck Technique
Six-symbol encoding built only from []()!+
"""

import re

from .self_decoding import SelfDecodingTechnique

DEFAULT_DENSITY_THRESHOLD = 0.12


class JSFuckTechnique(SelfDecodingTechnique):
    """Unwraps JSFuck via Function-constructor capture"""

    SYMBOLS = re.compile(r'[\[\]()+!]')
    STRING_LITERAL = re.compile(r'"(?:[^"\\\n]|\\.)*"|\'(?:[^\'\\\n]|\\.)*\'')
    ALPHABET_ONLY = re.compile(r'[\[\]()+!;\s]*')

    def get_name(self) -> str:
        return "jsfuck"

    def density(self, code: str) -> float:
        return len(self.SYMBOLS.findall(code)) / max(len(code), 1)

    def detect(self, code: str) -> bool:
        threshold = self._setting('jsfuck_density_threshold', DEFAULT_DENSITY_THRESHOLD)
        return self.density(code) > threshold

    def accepts_shape(self, code: str) -> bool:
        # outside string literals nothing but the six symbols may appear
        return bool(self.ALPHABET_ONLY.fullmatch(self.STRING_LITERAL.sub('', code)))
