"""
File Collaborator
Enumerates JavaScript sources under an input root and mirrors the tree under
an output root
"""

from pathlib import Path
from typing import List


def list_js_files(root) -> List[Path]:
    """
    Recursively list .js files (case-insensitive extension), sorted

    Args:
        root: Input directory

    Returns:
        Sorted list of file paths; empty if root does not exist
    """
    root = Path(root)
    if not root.is_dir():
        return []
    return sorted(
        p for p in root.rglob('*')
        if p.is_file() and p.suffix.lower() == '.js'
    )


def mirror_path(input_root, output_root, path) -> Path:
    """Output location of `path`, preserving its path relative to input_root"""
    return Path(output_root) / Path(path).relative_to(Path(input_root))


def read_source(path) -> str:
    with open(path, 'r', encoding='utf-8', errors='replace') as f:
        return f.read()


def write_output(input_root, output_root, path, code: str) -> Path:
    """
    Write decoded code to the mirrored location, creating directories

    Returns:
        Path written
    """
    out_path = mirror_path(input_root, output_root, path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, 'w', encoding='utf-8') as f:
        f.write(code)
    return out_path
