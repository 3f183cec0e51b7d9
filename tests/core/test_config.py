"""Tests for POWER config schema and YAML serialization."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from power_search.core.config import PowerConfig, load_power_config, save_power_config
from power_search.core.errors import InvalidConfigurationError

FIXTURES = Path(__file__).resolve().parents[1] / "fixtures"


def test_config_roundtrip_yaml(tmp_path: Path) -> None:
    config = PowerConfig(
        updates=4,
        episodes_per_batch=16,
        max_steps_per_episode=200,
        sigma=0.25,
        n_workers=2,
        skip_failed_updates=True,
        metadata={"source": "unit-test"},
    )
    output_path = tmp_path / "power.yaml"
    save_power_config(config=config, output_path=output_path)

    loaded = load_power_config(output_path)
    assert loaded == config


def test_matrix_sigma_roundtrip_yaml(tmp_path: Path) -> None:
    config = PowerConfig(
        updates=1,
        episodes_per_batch=2,
        max_steps_per_episode=3,
        sigma=((0.5, 0.0), (0.0, 2.0)),
    )
    output_path = tmp_path / "power.yaml"
    save_power_config(config=config, output_path=output_path)

    loaded = load_power_config(output_path)
    assert loaded.sigma == ((0.5, 0.0), (0.0, 2.0))
    np.testing.assert_array_equal(loaded.sigma_value(), np.diag([0.5, 2.0]))


def test_fixture_config_loads_with_defaults() -> None:
    config = load_power_config(FIXTURES / "power_config_small.yaml")
    config.validate()

    assert config.episodes_per_batch == 8
    assert config.sigma == 0.5
    assert config.metadata == {"source": "unit-test"}


def test_non_mapping_yaml_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("- 1\n- 2\n")

    with pytest.raises(ValueError, match="Expected a mapping"):
        load_power_config(path)


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"updates": -1}, "updates"),
        ({"episodes_per_batch": 0}, "episodes_per_batch"),
        ({"max_steps_per_episode": 0}, "max_steps_per_episode"),
        ({"sigma": 0.0}, "sigma"),
        ({"sigma": ((1.0, 0.0),)}, "square"),
        ({"n_workers": 0}, "n_workers"),
        ({"degenerate_tol": -1.0}, "degenerate_tol"),
        ({"max_condition": 1.0}, "max_condition"),
    ],
)
def test_validate_rejects_out_of_range_settings(overrides, message) -> None:
    settings = {"updates": 1, "episodes_per_batch": 1, "max_steps_per_episode": 1}
    settings.update(overrides)
    config = PowerConfig(**settings)

    with pytest.raises(InvalidConfigurationError, match=message):
        config.validate()


def test_zero_updates_is_valid() -> None:
    PowerConfig(updates=0, episodes_per_batch=1, max_steps_per_episode=1).validate()
