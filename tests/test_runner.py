import json
import logging

import numpy as np
import pytest

from coastal_refraction.config import RefractionConfig
from coastal_refraction.run_refraction import main
from coastal_refraction.runner.refraction_runner import (
    RefractionModelCache,
    RefractionRunner,
)

SMALL = dict(grid_x=20, grid_y=15, ray_count=4, wavefront_count=2, coastline_samples=60)


def test_default_run_grid_invariants(default_result):
    grid = default_result.grid
    assert grid.frozen

    land = grid.depth == 0.0
    assert np.all(grid.k[land] == 0.0)
    assert np.all(grid.c[land] == 0.0)
    assert np.all(grid.alpha[land] == 0.0)
    assert np.all(grid.k[grid.depth > grid.dry_threshold] > 0.0)
    assert np.all(grid.alpha[-1] == 0.0)


def test_default_run_dispersion(default_result):
    dispersion = default_result.dispersion
    assert dispersion.depth == 20.0
    assert dispersion.T == 8.0
    assert dispersion.k == pytest.approx(2 * np.pi / dispersion.L)
    assert dispersion.C == pytest.approx(dispersion.L / dispersion.T)


def test_default_run_wave_heights(default_result):
    grid = default_result.grid
    wet = grid.wet_mask

    assert np.all(grid.wave_height[~wet] == 0.0)
    assert np.all(grid.wave_height[wet] > 0.0)
    # Normal incidence: no refraction gain
    np.testing.assert_allclose(grid.kr[wet], 1.0)
    # Shoaling grows toward the coast, so the shallowest cells break
    assert grid.is_breaking.any()
    assert not grid.is_breaking[-1].any()


def test_summary_mentions_each_stage(default_result):
    summary = default_result.summary()
    assert "Refraction Model Result" in summary
    assert "Dispersion at h=20.00m" in summary
    assert "WaveStateGrid: 60x80" in summary
    assert "Ray tracing: 18 rays" in summary


def test_inspect_point(default_result):
    assert default_result.inspect_point(-1.0, 100.0) is None

    on_land = default_result.inspect_point(500.0, 0.0)
    assert on_land.point.h == 0.0
    assert on_land.distance_to_coast == 0.0

    offshore = default_result.inspect_point(500.0, 800.0)
    assert offshore.point.h > 0.0
    assert offshore.alpha_deg == 0.0
    assert offshore.distance_to_coast > 500.0


def test_finite_difference_run_is_finite():
    result = RefractionRunner(
        RefractionConfig(direction_method="finite_difference", alpha0_deg=10.0, **SMALL)
    ).run()
    grid = result.grid
    assert np.all(np.isfinite(grid.alpha))
    np.testing.assert_allclose(grid.alpha[-1], np.radians(10.0))
    assert np.all(np.isfinite(grid.wave_height))


def test_wavelength_run():
    result = RefractionRunner(RefractionConfig(wavelength_m=90.0, **SMALL)).run()
    assert result.dispersion.L == pytest.approx(90.0)
    assert result.grid.k.max() > 0.0


def test_zero_rays_skips_tracing():
    result = RefractionRunner(RefractionConfig(**dict(SMALL, ray_count=0))).run()
    assert result.rays.n_rays == 0
    assert result.rays.wavefronts == []


def test_runner_logs_through_injected_logger(caplog):
    log = logging.getLogger("refraction-test")
    with caplog.at_level(logging.INFO, logger="refraction-test"):
        RefractionRunner(RefractionConfig(**SMALL), log=log).run()
    assert any("Refraction run complete" in r.message for r in caplog.records)


@pytest.mark.parametrize("overrides", [
    {"period_s": 8.0, "wavelength_m": 100.0},
    {"period_s": -1.0},
    {"wavelength_m": 0.0},
    {"reference_depth_m": 0.0},
    {"slope": 0.0},
    {"grid_x": 1},
    {"direction_method": "ray_marching"},
    {"alpha0_deg": 90.0},
])
def test_invalid_config_rejected(overrides):
    with pytest.raises(ValueError):
        RefractionRunner(RefractionConfig(**overrides))


def test_config_dict_round_trip():
    config = RefractionConfig(alpha0_deg=12.5, contour_depths=[5, 10])
    restored = RefractionConfig.from_dict(config.to_dict())
    assert restored == config
    assert restored.contour_depths == (5.0, 10.0)


def test_config_from_dict_ignores_unknown_keys():
    config = RefractionConfig.from_dict({"slope": 0.02, "colour": "blue"})
    assert config.slope == 0.02


def test_config_from_dict_wavelength_replaces_default_period():
    config = RefractionConfig.from_dict({"wavelength_m": 80.0})
    assert config.period_s is None
    config.validate()


def test_config_wavelength_alone_is_valid():
    config = RefractionConfig(wavelength_m=100.0).validate()
    assert config.period_s is None
    assert config.wavelength_m == 100.0


def test_config_defaults_to_period_without_wavelength():
    assert RefractionConfig().period_s == 8.0
    assert RefractionConfig(period_s=None, wavelength_m=None).period_s == 8.0
    assert RefractionConfig(period_s=12.0).period_s == 12.0


def test_cache_key_is_value_based():
    assert RefractionConfig(slope=0.02).cache_key() == RefractionConfig(slope=0.02).cache_key()
    assert RefractionConfig(slope=0.02).cache_key() != RefractionConfig(slope=0.03).cache_key()


def test_model_cache_hits_and_evicts():
    cache = RefractionModelCache(max_entries=1)
    first = RefractionConfig(**SMALL)
    second = RefractionConfig(alpha0_deg=5.0, **SMALL)

    result = cache.get(first)
    assert cache.get(RefractionConfig(**SMALL)) is result
    assert (cache.hits, cache.misses) == (1, 1)

    cache.get(second)
    assert len(cache) == 1
    assert second in cache
    assert first not in cache

    cache.clear()
    assert len(cache) == 0


def test_model_cache_rejects_zero_capacity():
    with pytest.raises(ValueError):
        RefractionModelCache(max_entries=0)


def test_cli_prints_summary(capsys):
    assert main(["--grid-x", "20", "--grid-y", "15", "--rays", "4"]) == 0
    assert "Refraction Model Result" in capsys.readouterr().out


def test_cli_json_and_inspect(capsys):
    code = main(["--grid-x", "20", "--grid-y", "15", "--rays", "4",
                 "--wavelength", "90", "--json", "--inspect", "500", "700"])
    assert code == 0

    out = capsys.readouterr().out
    payload = json.loads(out[:out.rindex("}") + 1])
    assert payload["config"]["wavelength_m"] == 90.0
    assert payload["config"]["period_s"] is None
    assert "Point (" in out


def test_cli_rejects_invalid_config():
    assert main(["--depth", "-1"]) == 1


def test_cli_rejects_period_with_wavelength():
    with pytest.raises(SystemExit):
        main(["--period", "8", "--wavelength", "100"])
