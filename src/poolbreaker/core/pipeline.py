"""
Deobfuscation Pipeline
Runs the technique roster over a code string, round after round, until a
fixed point or the round cap

Handles:
- String pool + index decoder obfuscation (jsjiami v7 / obfuscator.io style)
- AAEncode
- JSFuck

Features:
- Multi-round unwrapping of nested encodings (5 rounds by default)
- Early stop as soon as a full round changes nothing
- Per-technique failure isolation: an error is logged and counts as no-op
- Input size limit
- Trace of which technique changed the code in which round
- Preset- or YAML-based configuration
"""

import logging
import time
from dataclasses import dataclass, field, fields
from typing import Callable, Dict, List, Optional, Tuple

import yaml

from .presets import PresetLibrary
from .stringpool import DEFAULT_PROBE_INDICES, DEFAULT_PROBE_KEY
from .techniques import BaseTechnique, RewriteResult, get_all_techniques

logger = logging.getLogger(__name__)

# Fields a preset may set on PipelineConfig
_PRESET_FIELDS = (
    'max_rounds', 'max_input_bytes', 'sandbox_timeout_secs', 'min_pool_size', 'probe_indices',
    'probe_key', 'isolate_probes', 'normalize_booleans', 'strip_version_marker',
    'jsfuck_density_threshold',
)


@dataclass
class PipelineConfig:
    """
    Configuration for the deobfuscation pipeline

    Can be initialized from:
    1. Preset name: PipelineConfig(preset="aggressive")
    2. Custom parameters: PipelineConfig(max_rounds=8, sandbox_timeout_secs=2.0)
    3. Preset + overrides: PipelineConfig.from_preset("balanced", max_rounds=8)
    4. YAML file: PipelineConfig.from_yaml("poolbreaker.yml")
    """
    max_rounds: int = 5
    max_input_bytes: int = 5 * 1024 * 1024  # 5 MiB
    sandbox_timeout_secs: float = 1.0
    min_pool_size: int = 6
    probe_indices: Tuple[int, ...] = field(default_factory=lambda: tuple(DEFAULT_PROBE_INDICES))
    probe_key: str = DEFAULT_PROBE_KEY
    isolate_probes: bool = True
    normalize_booleans: bool = True
    strip_version_marker: bool = False
    jsfuck_density_threshold: float = 0.12
    progress_callback: Optional[Callable[[str, int, int, str], None]] = None  # callback(technique, round, max_rounds, message)

    # Preset-based initialization
    preset: Optional[str] = None

    def __post_init__(self):
        """Apply preset if specified"""
        if self.preset:
            preset_obj = PresetLibrary.get_preset(self.preset)
            if not preset_obj:
                raise ValueError(f"Unknown preset: {self.preset}. Available: {PresetLibrary.list_presets()}")
            for name in _PRESET_FIELDS:
                setattr(self, name, getattr(preset_obj, name))
        self.probe_indices = tuple(self.probe_indices)
        if self.max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")

    @staticmethod
    def from_preset(preset_name: str, **overrides) -> 'PipelineConfig':
        """
        Create config from preset with optional overrides

        Example:
            config = PipelineConfig.from_preset("aggressive", max_rounds=10)
        """
        config = PipelineConfig(preset=preset_name)
        for key, value in overrides.items():
            if not hasattr(config, key):
                raise ValueError(f"Unknown config option: {key}")
            setattr(config, key, value)
        config.probe_indices = tuple(config.probe_indices)
        return config

    @staticmethod
    def from_yaml(path) -> 'PipelineConfig':
        """
        Load config from a YAML mapping of field names

        An optional `preset:` key is applied first, the other keys override it.
        """
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at top level")

        known = {f.name for f in fields(PipelineConfig)} - {'progress_callback'}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"{path}: unknown config option(s): {', '.join(unknown)}")

        preset = data.pop('preset', None) or 'balanced'
        return PipelineConfig.from_preset(preset, **data)


@dataclass
class PipelineResult:
    """Container for one pipeline run"""
    original: str
    code: str
    rounds: int = 0
    converged: bool = False
    skipped: bool = False
    skip_reason: str = ""
    trace: List[Tuple[int, str, bool]] = field(default_factory=list)  # (round, technique, changed)
    errors: List[Tuple[str, str]] = field(default_factory=list)  # (technique, message)
    elapsed_secs: float = 0.0

    @property
    def changed(self) -> bool:
        return self.code != self.original

    @property
    def techniques_applied(self) -> List[str]:
        """Techniques that changed the code, in first-use order"""
        applied = []
        for _, name, changed in self.trace:
            if changed and name not in applied:
                applied.append(name)
        return applied

    def to_dict(self) -> Dict:
        return {
            'changed': self.changed,
            'rounds': self.rounds,
            'converged': self.converged,
            'skipped': self.skipped,
            'skip_reason': self.skip_reason,
            'techniques_applied': self.techniques_applied,
            'trace': [
                {'round': r, 'technique': name, 'changed': changed}
                for r, name, changed in self.trace
            ],
            'errors': [{'technique': name, 'message': msg} for name, msg in self.errors],
            'elapsed_secs': round(self.elapsed_secs, 3),
        }


class Pipeline:
    """
    Fixed-point driver over an ordered technique roster

    The roster is only used through detect()/process() and a name; each
    round folds the previous round's code into a new RewriteResult.
    """

    def __init__(self, config: PipelineConfig = None, techniques: List[BaseTechnique] = None):
        """Initialize pipeline with configuration and (optionally) a custom roster"""
        self.config = config if config else PipelineConfig()
        self.techniques = techniques if techniques is not None else get_all_techniques(self.config)

    def run(self, code: str) -> PipelineResult:
        """
        Deobfuscate one source text

        Args:
            code: JavaScript source

        Returns:
            PipelineResult; result.code is the input itself when nothing applied
        """
        start_time = time.time()
        result = PipelineResult(original=code, code=code)

        if len(code.encode('utf-8', errors='ignore')) > self.config.max_input_bytes:
            result.skipped = True
            result.skip_reason = "Input exceeds size limit"
            logger.warning("Skipping input larger than %d bytes", self.config.max_input_bytes)
            return result

        for round_no in range(1, self.config.max_rounds + 1):
            outcome = self._run_round(result.code, round_no, result)
            result.rounds = round_no
            result.code = outcome.code
            if not outcome.changed:
                result.converged = True
                break

        result.elapsed_secs = time.time() - start_time
        return result

    def _run_round(self, code: str, round_no: int, result: PipelineResult) -> RewriteResult:
        round_changed = False
        for technique in self.techniques:
            step = self._apply(technique, code, round_no, result)
            code = step.code
            round_changed = round_changed or step.changed
        return RewriteResult(code=code, changed=round_changed)

    def _apply(self, technique, code: str, round_no: int, result: PipelineResult) -> RewriteResult:
        name = _technique_name(technique)
        try:
            output = technique.process(code)
            if not isinstance(output, str):
                raise TypeError(f"process() returned {type(output).__name__}, expected str")
        except Exception as e:
            logger.warning("[plugin:%s] error: %s", name, e)
            result.errors.append((name, str(e)))
            output = code
        else:
            # contained failures are already logged by the technique
            contained = getattr(technique, 'last_error', None)
            if contained:
                result.errors.append((name, contained))

        changed = output != code
        result.trace.append((round_no, name, changed))
        if self.config.progress_callback:
            self.config.progress_callback(
                name, round_no, self.config.max_rounds,
                "changed" if changed else "no change"
            )
        return RewriteResult(code=output, changed=changed)


def _technique_name(technique) -> str:
    get_name = getattr(technique, 'get_name', None)
    if callable(get_name):
        return get_name()
    return getattr(technique, 'name', type(technique).__name__)


def deobfuscate(code: str, config: PipelineConfig = None) -> str:
    """Convenience wrapper: run the default pipeline and return the code"""
    return Pipeline(config).run(code).code

