# diagnostics.py
# Post-step metrics on a (ny, nx, 4) velocity field. Everything is computed
# in float64 over the interior cells; the border ring is ignored.
# Orientation matches fluid_solver.divergence: x grows with the column
# index, y grows as the row index decreases (d/dy ~ row i-1 minus row i+1).

import numpy as np


def divergence_rms(u, dx):
    # same central stencil as fluid_solver.divergence
    vx = u[:, :, 0].astype(np.float64)
    vy = u[:, :, 1].astype(np.float64)
    div = (0.5 / dx) * ((vx[1:-1, 2:] - vx[1:-1, :-2]) + (vy[:-2, 1:-1] - vy[2:, 1:-1]))
    return float(np.sqrt(np.mean(div ** 2)))


def vorticity(u, dx):
    # w = dvy/dx - dvx/dy
    vx = u[:, :, 0].astype(np.float64)
    vy = u[:, :, 1].astype(np.float64)
    w = np.zeros(vx.shape, dtype=np.float64)
    inv2dx = 1.0 / (2.0 * dx)
    dvdx = (vy[1:-1, 2:] - vy[1:-1, :-2]) * inv2dx
    dudy = (vx[:-2, 1:-1] - vx[2:, 1:-1]) * inv2dx
    w[1:-1, 1:-1] = dvdx - dudy
    return w


def vorticity_stats(u, dx):
    w = vorticity(u, dx)[1:-1, 1:-1]
    w2 = w * w
    return {
        "w_rms": float(np.sqrt(np.mean(w2))),
        "w_max": float(np.max(np.abs(w))),
        "enstrophy": float(0.5 * np.mean(w2)),
    }


def flow_stats(u):
    vx = u[1:-1, 1:-1, 0].astype(np.float64)
    vy = u[1:-1, 1:-1, 1].astype(np.float64)
    sp = np.sqrt(vx ** 2 + vy ** 2)
    return {
        "speed_mean": float(np.mean(sp)),
        "speed_max": float(np.max(sp)),
        "ke_mean": float(0.5 * np.mean(sp * sp)),
    }
