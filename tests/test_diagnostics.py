import numpy as np
import pytest

from diagnostics import divergence_rms, flow_stats, vorticity, vorticity_stats
from fluid_solver import Solver, allocate_field


def test_uniform_flow_is_divergence_free():
    u = allocate_field(10, 8)
    u[:, :, 0] = 1.5
    u[:, :, 1] = -0.5
    assert divergence_rms(u, 0.125) == pytest.approx(0.0)


def test_linear_stretch_has_unit_divergence():
    nx, ny = 10, 8
    dx = 0.1
    u = allocate_field(nx, ny)
    u[:, :, 0] = (np.arange(nx) * dx)[None, :]
    assert divergence_rms(u, dx) == pytest.approx(1.0, rel=1e-5)


def test_solid_rotation_vorticity():
    # y = -row * dx, so vx = -y = row * dx and vy = x = col * dx
    nx, ny = 9, 9
    dx = 0.1
    u = allocate_field(nx, ny)
    u[:, :, 0] = (np.arange(ny) * dx)[:, None]
    u[:, :, 1] = (np.arange(nx) * dx)[None, :]

    w = vorticity(u, dx)
    assert np.allclose(w[1:-1, 1:-1], 2.0, rtol=1e-5)
    assert not w[0].any() and not w[:, -1].any()

    st = vorticity_stats(u, dx)
    assert st["w_rms"] == pytest.approx(2.0, rel=1e-5)
    assert st["w_max"] == pytest.approx(2.0, rel=1e-5)
    assert st["enstrophy"] == pytest.approx(2.0, rel=1e-5)


def test_flow_stats_ignores_border():
    u = allocate_field(6, 5)
    u[1:-1, 1:-1, 0] = 3.0
    u[1:-1, 1:-1, 1] = 4.0
    u[0, :, 0] = 100.0
    st = flow_stats(u)
    assert st["speed_mean"] == pytest.approx(5.0)
    assert st["speed_max"] == pytest.approx(5.0)
    assert st["ke_mean"] == pytest.approx(12.5)


def test_stats_after_forced_update():
    s = Solver(100, 50, 40)
    s.reset()
    s.update(1.0 / 60.0, (20.0, 10.0), (3.0, 0.0))
    st = flow_stats(s.velocity)
    assert st["speed_max"] > 0.0
    assert np.isfinite(divergence_rms(s.velocity, s.dx))


def test_vorticity_and_divergence_share_y_orientation():
    # vy = y with y growing up the rows: pure stretch, no rotation
    nx, ny = 9, 9
    dx = 0.1
    u = allocate_field(nx, ny)
    u[:, :, 1] = -(np.arange(ny) * dx)[:, None]

    assert divergence_rms(u, dx) == pytest.approx(1.0, rel=1e-5)
    assert np.allclose(vorticity(u, dx), 0.0, atol=1e-6)

    # vx = y: shear with dvx/dy = 1, so w = -1
    u = allocate_field(nx, ny)
    u[:, :, 0] = -(np.arange(ny) * dx)[:, None]
    assert divergence_rms(u, dx) == pytest.approx(0.0, abs=1e-6)
    assert np.allclose(vorticity(u, dx)[1:-1, 1:-1], -1.0, rtol=1e-5)
