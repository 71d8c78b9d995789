"""
Core Package
Parser arena, evaluator, sandbox, techniques and the pipeline driving them
"""

from .errors import DeobfuscationError, ParseFailure, SandboxFailure
from .pipeline import Pipeline, PipelineConfig, PipelineResult, deobfuscate

__all__ = [
    'DeobfuscationError',
    'ParseFailure',
    'SandboxFailure',
    'Pipeline',
    'PipelineConfig',
    'PipelineResult',
    'deobfuscate',
]
