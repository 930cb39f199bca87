import numpy as np
import pytest

from coastal_refraction.runner.coastal_features import CoastalFeature
from coastal_refraction.runner.ray_tracer import (
    RayTracer,
    RayTracerConfig,
    compute_wavefronts,
    coastline_height_uniform,
    distance_to_coast_along,
    lateral_feature_adjustment,
)
from coastal_refraction.terrain import Coastline


def _tracer(result, **config):
    return RayTracer(
        result.grid,
        result.coastline,
        result.features,
        alpha0=result.config.alpha0_rad,
        deep_depth=result.dispersion.depth,
        config=RayTracerConfig(**config),
    )


def _flat_coastline(y=100.0):
    x = np.linspace(0.0, 1000.0, 101)
    return Coastline(x=x, y=np.full_like(x, y))


def test_normal_incidence_rays_reach_shore(default_result):
    rays = default_result.rays.rays
    coastline = default_result.coastline

    assert len(rays) == default_result.config.ray_count
    for ray in rays:
        assert ray.reached_shore
        end_x, end_y = ray.path[-1]
        assert end_y == pytest.approx(coastline.height_at(end_x), abs=1e-9)
        # Rays only ever move toward the coast
        assert np.all(np.diff(ray.path[:-1, 1]) < 0)


def test_ray_termination_within_step_cap(oblique_result):
    grid = oblique_result.grid
    max_points = 3 * grid.n_rows + 1

    for ray in oblique_result.rays.rays:
        assert ray.n_points <= max_points
        x, y = ray.path[-1]
        assert 0.0 <= x <= grid.width
        assert 0.0 <= y <= grid.height
        if ray.termination_reason == "reached_shore":
            assert y == pytest.approx(oblique_result.coastline.height_at(x), abs=1e-9)
        elif ray.termination_reason == "left_domain":
            assert x in (0.0, grid.width) or y == 0.0
        else:
            assert ray.termination_reason == "max_steps"
            assert ray.n_points == 3 * grid.n_rows


def test_oblique_rays_drift_alongshore(oblique_result):
    for ray in oblique_result.rays.rays:
        assert ray.path[-1, 0] > ray.path[0, 0]


def test_dry_start_returns_empty_path(default_result):
    tracer = _tracer(default_result)

    on_land = tracer.trace_ray(500.0, 1.0)
    assert on_land.termination_reason == "dry_start"
    assert on_land.n_points == 0
    assert on_land.length == 0.0

    outside = tracer.trace_ray(-10.0, 700.0)
    assert outside.termination_reason == "dry_start"


def test_start_above_grid_uses_deep_water_sample(default_result):
    tracer = _tracer(default_result)
    ray = tracer.trace_ray(500.0, default_result.grid.height + 30.0)

    assert ray.reached_shore
    np.testing.assert_allclose(ray.path[0], [500.0, default_result.grid.height + 30.0])
    # Normal incidence keeps the ray on its column until the near-shore zone
    assert ray.path[1, 0] == pytest.approx(500.0)


def test_tracer_requires_frozen_grid(terrain, coastline):
    grid = terrain.generate_depth_grid()
    with pytest.raises(ValueError, match="frozen"):
        RayTracer(grid, coastline, [], alpha0=0.0, deep_depth=20.0)


def test_start_columns_are_evenly_spread(default_result):
    tracer = _tracer(default_result)
    columns = tracer.start_columns(18)
    assert columns[0] == 2
    assert columns == sorted(columns)
    assert all(0 <= c < default_result.grid.n_cols for c in columns)


def test_bay_pulls_and_cape_pushes():
    center = np.array([500.0])
    strength = np.array([1.0])
    bandwidth = np.array([40.0])

    bay = lateral_feature_adjustment(520.0, center, np.array([1.0]), strength, bandwidth)
    cape = lateral_feature_adjustment(520.0, center, np.array([-1.0]), strength, bandwidth)
    assert bay < 0.0
    assert cape > 0.0
    assert bay == pytest.approx(-cape)

    # Beyond the Gaussian reach there is no influence
    far = lateral_feature_adjustment(5000.0, center, np.array([1.0]), strength, bandwidth)
    assert far == 0.0


def test_lateral_shift_is_clamped(default_result):
    config = RayTracerConfig(lateral_tuning=1000.0)
    tracer = RayTracer(
        default_result.grid,
        default_result.coastline,
        [CoastalFeature(kind="cape", center_x=500.0, strength=1.0, bandwidth=30.0)],
        alpha0=0.0,
        deep_depth=20.0,
        config=config,
    )
    ray = tracer.trace_ray(510.0, default_result.grid.height)
    shifts = np.abs(np.diff(ray.path[:-1, 0]))
    assert np.all(shifts <= tracer.max_shift + 1e-9)


def test_coastline_height_uniform_matches_interp():
    x = np.linspace(0.0, 100.0, 11)
    y = np.sin(x / 20.0)
    for q in [-5.0, 0.0, 3.3, 47.0, 99.9, 100.0, 150.0]:
        assert coastline_height_uniform(q, 0.0, 10.0, y) == pytest.approx(np.interp(q, x, y))


def test_distance_to_coast_along():
    path = np.array([[0.0, 0.0], [3.0, 4.0], [3.0, 10.0]])
    np.testing.assert_allclose(distance_to_coast_along(path), [11.0, 6.0, 0.0])


def test_wavefronts_from_parallel_rays():
    coastline = _flat_coastline(100.0)
    ys = np.arange(800.0, 99.0, -10.0)
    paths = [np.column_stack([np.full_like(ys, x), ys]) for x in (100.0, 200.0, 300.0, 400.0)]

    wavefronts = compute_wavefronts(paths, 3, coastline)

    assert len(wavefronts) == 3
    for w, front in enumerate(wavefronts, start=1):
        target = w / 4 * 700.0
        assert front.distance_to_coast == pytest.approx(target)
        np.testing.assert_allclose(front.points[:, 0], [100.0, 200.0, 300.0, 400.0])
        np.testing.assert_allclose(front.points[:, 1], 100.0 + target)


def test_wavefronts_skip_short_rays():
    coastline = _flat_coastline(100.0)
    long_ys = np.arange(800.0, 99.0, -10.0)
    short_ys = np.arange(300.0, 99.0, -10.0)
    paths = [np.column_stack([np.full_like(long_ys, x), long_ys]) for x in (100.0, 200.0, 300.0)]
    paths.append(np.column_stack([np.full_like(short_ys, 400.0), short_ys]))

    wavefronts = compute_wavefronts(paths, 3, coastline)

    # The 200 m ray only reaches the wavefront nearest the coast
    assert [len(front.points) for front in wavefronts] == [4, 3, 3]


def test_wavefronts_through_repeated_path_points():
    coastline = _flat_coastline(100.0)
    ys = np.array([800.0, 500.0, 500.0, 500.0, 300.0, 100.0])
    paths = [np.column_stack([np.full_like(ys, x), ys]) for x in (100.0, 200.0, 300.0)]

    wavefronts = compute_wavefronts(paths, 3, coastline)

    assert len(wavefronts) == 3
    for front, y in zip(wavefronts, [275.0, 450.0, 625.0]):
        assert np.all(np.isfinite(front.points))
        np.testing.assert_allclose(front.points[:, 0], [100.0, 200.0, 300.0])
        np.testing.assert_allclose(front.points[:, 1], y)


def test_wavefronts_need_more_than_two_points():
    coastline = _flat_coastline(100.0)
    ys = np.arange(800.0, 99.0, -10.0)
    paths = [np.column_stack([np.full_like(ys, x), ys]) for x in (100.0, 200.0)]
    assert compute_wavefronts(paths, 4, coastline) == []


def test_wavefronts_follow_coastline_shape():
    x = np.linspace(0.0, 1000.0, 101)
    coastline = Coastline(x=x, y=100.0 + 0.05 * x)
    ys = np.arange(800.0, 149.0, -10.0)
    paths = [np.column_stack([np.full_like(ys, px), ys]) for px in (100.0, 500.0, 900.0)]

    front = compute_wavefronts(paths, 1, coastline)[0]
    # Higher coastline pulls the crest up, scaled by 0.22 x (1 - 1/2)
    slope = np.polyfit(front.points[:, 0], front.points[:, 1], 1)[0]
    assert slope == pytest.approx(0.05 * 0.22 * 0.5, rel=1e-4)


def test_default_run_has_wavefronts(default_result):
    wavefronts = default_result.rays.wavefronts
    assert len(wavefronts) == default_result.config.wavefront_count
    distances = [w.distance_to_coast for w in wavefronts]
    assert distances == sorted(distances)
    for front in wavefronts:
        assert np.all(np.isfinite(front.points))
