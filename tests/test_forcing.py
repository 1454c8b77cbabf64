import pytest

from forcing import drag_force, orbit_stroke, screen_to_grid


def test_screen_to_grid_scales_both_axes():
    assert screen_to_grid(400, 300, 800, 600, 160, 120) == pytest.approx((80.0, 60.0))
    assert screen_to_grid(0, 0, 800, 600, 160, 120) == (0.0, 0.0)


def test_drag_without_previous_point_is_still():
    origin, force = drag_force(None, (400, 300), 800, 600, 160, 120)
    assert origin == pytest.approx((80.0, 60.0))
    assert force == (0.0, 0.0)


def test_drag_vector_in_grid_cells():
    origin, force = drag_force((0, 0), (10, 5), 800, 600, 160, 120, strength=3.0)
    assert origin == pytest.approx((2.0, 1.0))
    assert force == pytest.approx((6.0, 3.0))


def test_orbit_stroke_starts_on_the_right_pushing_down_the_rows():
    origin, force = orbit_stroke(0, 160, 120, radius_frac=0.25, period=120, strength=2.0)
    assert origin == pytest.approx((110.0, 60.0))
    assert force == pytest.approx((0.0, 2.0), abs=1e-12)


def test_orbit_stroke_is_periodic():
    a = orbit_stroke(7, 64, 48, period=30)
    b = orbit_stroke(37, 64, 48, period=30)
    assert a[0] == pytest.approx(b[0])
    assert a[1] == pytest.approx(b[1])
