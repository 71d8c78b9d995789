import pytest

from poolbreaker.core.pipeline import PipelineConfig
from poolbreaker.core.presets import PresetLibrary


def test_defaults():
    config = PipelineConfig()
    assert config.max_rounds == 5
    assert config.sandbox_timeout_secs == 1.0
    assert config.min_pool_size == 6
    assert config.probe_indices == (0, 1, 2, 3, 4, 5, 10, 16, 32, 64, 128, 255)
    assert config.probe_key == "probe"
    assert config.isolate_probes
    assert not config.strip_version_marker


@pytest.mark.parametrize("name", PresetLibrary.list_presets())
def test_every_listed_preset_resolves(name):
    preset = PresetLibrary.get_preset(name)
    assert preset.name == name
    assert PipelineConfig(preset=name).max_rounds == preset.max_rounds


def test_preset_values():
    conservative = PipelineConfig.from_preset("conservative")
    aggressive = PipelineConfig.from_preset("aggressive")
    assert conservative.max_rounds == 3
    assert not conservative.normalize_booleans
    assert aggressive.max_rounds == 8
    assert aggressive.strip_version_marker
    assert aggressive.min_pool_size == 4


def test_overrides_apply_after_preset():
    config = PipelineConfig.from_preset("aggressive", max_rounds=10, probe_indices=[1, 2])
    assert config.max_rounds == 10
    assert config.sandbox_timeout_secs == 2.0
    assert config.probe_indices == (1, 2)


def test_unknown_preset_and_option():
    with pytest.raises(ValueError):
        PipelineConfig(preset="reckless")
    with pytest.raises(ValueError):
        PipelineConfig.from_preset("balanced", colour="red")


def test_yaml_config(tmp_path):
    path = tmp_path / "poolbreaker.yml"
    path.write_text("preset: conservative\nmax_rounds: 4\nprobe_indices: [7, 8]\n", encoding="utf-8")
    config = PipelineConfig.from_yaml(path)
    assert config.preset == "conservative"
    assert config.max_rounds == 4
    assert config.sandbox_timeout_secs == 0.5
    assert config.probe_indices == (7, 8)


def test_empty_yaml_is_balanced(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    assert PipelineConfig.from_yaml(path).max_rounds == 5


def test_yaml_rejects_unknown_keys(tmp_path):
    path = tmp_path / "bad.yml"
    path.write_text("max_rounds: 2\nturbo: true\n", encoding="utf-8")
    with pytest.raises(ValueError, match="turbo"):
        PipelineConfig.from_yaml(path)


def test_yaml_rejects_non_mapping(tmp_path):
    path = tmp_path / "list.yml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        PipelineConfig.from_yaml(path)
