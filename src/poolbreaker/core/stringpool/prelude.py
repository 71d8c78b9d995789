"""
Prelude Builder
Extracts, in original order, every top-level statement that mentions a
tracked pool identifier

Order matters: obfuscators rotate the pool from an immediately-invoked
function that has to run before any decoder is called.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from ..sandbox import DENY_HEADER
from ..syntax import Program


@dataclass
class Prelude:
    """Minimal ordered closure needed to reproduce live decoder behavior"""
    statements: List[int] = field(default_factory=list)
    spans: List[Tuple[int, int]] = field(default_factory=list)
    source: str = ""

    def __bool__(self):
        return bool(self.statements)

    def covers(self, span: Tuple[int, int]) -> bool:
        """True if a source range lies inside one of the prelude statements"""
        start, end = span
        return any(s <= start and end <= e for s, e in self.spans)


def _mention_pattern(names: Iterable[str]):
    alternatives = '|'.join(re.escape(name) for name in sorted(names, key=len, reverse=True))
    return re.compile(r'(?<![\w$])(?:' + alternatives + r')(?![\w$])')


def build_prelude(program: Program, names: Iterable[str]) -> Prelude:
    """
    Collect top-level statements whose source text mentions any of the names

    Args:
        program: Parsed program
        names: Pool identifiers and accessor names to track

    Returns:
        Prelude whose source starts with the host-denial header
    """
    names = list(names)
    prelude = Prelude()
    if not names:
        return prelude

    mentions = _mention_pattern(names)
    chunks = [DENY_HEADER]
    for statement_id in program.body:
        text = program.text(statement_id)
        if mentions.search(text):
            prelude.statements.append(statement_id)
            prelude.spans.append(program.node(statement_id).span)
            chunks.append(text)

    # separate chunks explicitly; neighbours in the original may rely on ASI
    prelude.source = ';\n'.join(chunks)
    return prelude
