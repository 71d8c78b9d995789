"""
Pipeline Presets
Predefined configuration sets for different kinds of input

Instead of tuning sandbox budgets and detector thresholds for every sample
set, pick the preset that matches how hostile / how varied the input is.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .stringpool import DEFAULT_PROBE_INDICES, DEFAULT_PROBE_KEY


@dataclass
class PipelinePreset:
    """Complete pipeline configuration preset"""
    name: str
    description: str

    # Orchestrator
    max_rounds: int = 5
    max_input_bytes: int = 5 * 1024 * 1024  # 5 MiB

    # Sandbox
    sandbox_timeout_secs: float = 1.0

    # String-array engine
    min_pool_size: int = 6
    probe_indices: Tuple[int, ...] = field(default_factory=lambda: tuple(DEFAULT_PROBE_INDICES))
    probe_key: str = DEFAULT_PROBE_KEY
    isolate_probes: bool = True

    # Post-rewrite cleanups
    normalize_booleans: bool = True
    strip_version_marker: bool = False

    # Encodings
    jsfuck_density_threshold: float = 0.12


class PresetLibrary:
    """Library of predefined pipeline presets"""

    @staticmethod
    def get_preset(name: str) -> Optional[PipelinePreset]:
        """Get preset by name"""
        presets = {
            "conservative": PresetLibrary.conservative(),
            "balanced": PresetLibrary.balanced(),
            "aggressive": PresetLibrary.aggressive(),
        }
        return presets.get(name.lower())

    @staticmethod
    def list_presets() -> List[str]:
        """List all available preset names"""
        return ["conservative", "balanced", "aggressive"]

    @staticmethod
    def conservative() -> PipelinePreset:
        """
        Conservative preset: smallest sandbox exposure, no cosmetic rewrites

        Use when:
        - Output is diffed against the input and must stay minimal
        - Inputs are large and many
        """
        return PipelinePreset(
            name="conservative",
            description="Short sandbox budget, larger pools only, no cleanups",
            max_rounds=3,
            sandbox_timeout_secs=0.5,
            min_pool_size=8,
            normalize_booleans=False,
            strip_version_marker=False,
            jsfuck_density_threshold=0.2,
        )

    @staticmethod
    def balanced() -> PipelinePreset:
        """
        Balanced preset: production defaults
        """
        return PipelinePreset(
            name="balanced",
            description="Production defaults",
        )

    @staticmethod
    def aggressive() -> PipelinePreset:
        """
        Aggressive preset: more rounds, longer budget, smaller pools

        Use when:
        - Heavily nested samples
        - Slow rotation loops that exceed the default budget
        """
        return PipelinePreset(
            name="aggressive",
            description="More rounds, longer sandbox budget, strips version markers",
            max_rounds=8,
            sandbox_timeout_secs=2.0,
            min_pool_size=4,
            probe_indices=tuple(DEFAULT_PROBE_INDICES) + (6, 7, 8, 9, 100, 200, 256, 512, 1024),
            strip_version_marker=True,
            jsfuck_density_threshold=0.1,
        )
