"""Tests for GridConfig and GridSettings."""

import dataclasses

import pytest

from grid_simulator.core.calculator import GridSpacing
from grid_simulator.core.config import (
    GridConfig,
    GridSettings,
    VOLATILITY_PRESETS,
    VolatilityMode,
)
from grid_simulator.errors import ConfigError


class TestGridConfig:

    def test_defaults(self):
        config = GridConfig()
        assert config.initial_capital == 1_000_000
        assert config.grid_count == 25
        assert config.spacing == GridSpacing.ARITHMETIC
        assert config.leverage == 2.0
        assert config.fee_rate == 0.0002

    def test_capital_per_grid_excludes_top_level(self):
        config = GridConfig(initial_capital=1_000_000, grid_count=25)
        assert config.tradable_grids == 24
        assert config.capital_per_grid == pytest.approx(1_000_000 / 24)

    def test_string_spacing_coerced(self):
        config = GridConfig(spacing="geometric")
        assert config.spacing == GridSpacing.GEOMETRIC

    def test_frozen(self):
        config = GridConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.leverage = 3.0

    @pytest.mark.parametrize("overrides", [
        {"initial_capital": 0},
        {"initial_capital": -5},
        {"initial_capital": float("nan")},
        {"lower_bound_pct": 10, "upper_bound_pct": -10},
        {"lower_bound_pct": 5, "upper_bound_pct": 5},
        {"lower_bound_pct": -100},
        {"lower_bound_pct": 0.0, "upper_bound_pct": 0.05},
        {"grid_count": 1},
        {"grid_count": 2.5},
        {"leverage": 0.5},
        {"fee_rate": -0.001},
        {"fee_rate": 1.0},
        {"buy_tolerance_pct": 0.02},
        {"sell_tolerance_pct": -0.001},
        {"take_profit_steps": 0},
        {"spacing": "fibonacci"},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ConfigError):
            GridConfig(**overrides)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            GridConfig(grid_count=0)

    def test_summary(self):
        summary = GridConfig(grid_count=5, initial_capital=4000).summary(2000.0)
        assert summary["grid_count"] == 5
        assert summary["capital_per_grid"] == 1000.0
        assert summary["leverage"] == "2x"
        assert summary["price_range"] == "-10% to 10%"
        assert summary["base_price"] == "$2000.00"

    def test_summary_without_base_price(self):
        assert GridConfig().summary()["base_price"] == "Not set"

    def test_to_dict(self):
        d = GridConfig(spacing=GridSpacing.GEOMETRIC).to_dict()
        assert d["spacing"] == "geometric"
        assert d["grid_count"] == 25


class TestVolatilityPresets:

    def test_all_presets_exist(self):
        for mode in ["low", "medium", "high"]:
            assert mode in VOLATILITY_PRESETS
            preset = VOLATILITY_PRESETS[mode]
            assert "grid_spacing" in preset
            assert "grid_count" in preset
            assert "leverage" in preset

    def test_presets_build_valid_configs(self):
        for mode in [VolatilityMode.LOW, VolatilityMode.MEDIUM, VolatilityMode.HIGH]:
            config = GridSettings.from_preset("ETHUSDT", mode).to_config()
            assert isinstance(config, GridConfig)


class TestGridSettings:

    def test_defaults_match_engine_defaults(self):
        assert GridSettings().to_config() == GridConfig()

    def test_from_preset_high(self):
        settings = GridSettings.from_preset("BTCUSDT", VolatilityMode.HIGH)
        assert settings.symbol == "BTCUSDT"
        assert settings.volatility_mode == VolatilityMode.HIGH
        config = settings.to_config()
        assert config.spacing == GridSpacing.GEOMETRIC
        assert config.grid_count == 15

    def test_from_preset_with_overrides(self):
        settings = GridSettings.from_preset("ETHUSDT", VolatilityMode.MEDIUM, leverage=3.0)
        assert settings.leverage == 3.0
        assert settings.grid_count == 25

    def test_custom_preset(self):
        settings = GridSettings.from_preset("ETHUSDT", VolatilityMode.CUSTOM, grid_count=12)
        assert settings.grid_count == 12

    def test_invalid_override(self):
        with pytest.raises(ConfigError):
            GridSettings.from_preset("ETHUSDT", VolatilityMode.LOW, grid_count=1)

    def test_band_validator(self):
        with pytest.raises(ConfigError):
            GridSettings.from_yaml("lower_bound_pct: 5\nupper_bound_pct: 5\n")

    def test_yaml_roundtrip(self):
        settings = GridSettings(
            symbol="SOLUSDT",
            grid_count=30,
            grid_spacing="geometric",
            leverage=3.0,
            strict_reconciliation=True,
        )
        loaded = GridSettings.from_yaml(settings.to_yaml())
        assert loaded == settings
        assert loaded.to_config() == settings.to_config()

    def test_from_yaml_partial(self):
        settings = GridSettings.from_yaml("grid_count: 10\nleverage: 1.5\n")
        assert settings.grid_count == 10
        assert settings.leverage == 1.5
        assert settings.fee_rate == 0.0002

    def test_from_empty_yaml(self):
        assert GridSettings.from_yaml("") == GridSettings()

    def test_from_yaml_not_a_mapping(self):
        with pytest.raises(ConfigError):
            GridSettings.from_yaml("- 1\n- 2\n")

    def test_from_yaml_invalid_spacing(self):
        with pytest.raises(ConfigError):
            GridSettings.from_yaml("grid_spacing: fibonacci\n")

    def test_from_yaml_file(self, tmp_path):
        path = tmp_path / "grid.yaml"
        path.write_text("symbol: BTCUSDT\ngrid_count: 8\n", encoding="utf-8")
        settings = GridSettings.from_yaml_file(str(path))
        assert settings.symbol == "BTCUSDT"
        assert settings.grid_count == 8
