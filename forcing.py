import math

import numpy as np


# ============================================================
# Screen -> grid mapping
# ============================================================

def screen_to_grid(px, py, screen_width, screen_height, nx, ny):
    """Screen pixel (origin top-left) to continuous grid coordinates (x = column, y = row)."""
    gx = float(px) * nx / float(screen_width)
    gy = float(py) * ny / float(screen_height)
    return gx, gy


def drag_force(prev, cur, screen_width, screen_height, nx, ny, strength=1.0):
    """
    Force for one frame of a mouse drag from `prev` to `cur` (screen pixels).

    The impulse is centred on the current point and points along the drag,
    measured in grid cells and scaled by `strength`. No drag -> zero force.
    """
    ox, oy = screen_to_grid(cur[0], cur[1], screen_width, screen_height, nx, ny)
    if prev is None:
        return (ox, oy), (0.0, 0.0)
    px, py = screen_to_grid(prev[0], prev[1], screen_width, screen_height, nx, ny)
    return (ox, oy), ((ox - px) * strength, (oy - py) * strength)


# ============================================================
# Scripted strokes
# ============================================================

def orbit_stroke(frame, nx, ny, radius_frac=0.25, period=120, strength=2.0):
    # point circling the grid centre, pushing along the tangent
    theta = 2.0 * np.pi * (frame % period) / period
    r = radius_frac * min(nx, ny)
    cx = 0.5 * nx
    cy = 0.5 * ny
    ox = cx + r * math.cos(theta)
    oy = cy + r * math.sin(theta)
    fx = -strength * math.sin(theta)
    fy = strength * math.cos(theta)
    return (ox, oy), (fx, fy)
