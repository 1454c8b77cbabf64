# fluid_solver.py
# Stable-fluids 2D solver on a collocated float4 grid (real-time, fixed resolution)
# - Force injection with exp(-distance) falloff
# - Semi-Lagrangian advection (clamped backtrace, 4-neighbour average)
# - Viscous diffusion via Jacobi relaxation (fixed sweep count)
# - Pressure projection:
#     * divergence (+ pressure reset)
#     * pressure Jacobi solve (Neumann BC)
#     * gradient subtraction
# - Mirrored boundary ring (scale -1 velocity, +1 pressure)
# - Alpha visualization buffer (RGBA, row-major)
#
# Cell layout: field[i, j, :] = (vx, vy, aux, aux), i = row (y), j = column (x).
# Component 3 holds divergence / pressure; component 2 is never meaningful.

import logging
import math
from dataclasses import dataclass

import numpy as np
from numba import njit

logger = logging.getLogger(__name__)


# ============================================================
# Fields
# ============================================================

def allocate_field(nx, ny):
    return np.zeros((ny, nx, 4), dtype=np.float32)


# ============================================================
# Boundary (mirror interior into the border ring)
# ============================================================

@njit
def set_boundary(field, sc, nx, ny):
    # horizontal: first and last row
    for j in range(1, nx - 1):
        for c in range(4):
            field[0, j, c] = sc * field[1, j, c]
            field[ny - 1, j, c] = sc * field[ny - 2, j, c]
    # vertical runs last, so it owns the corners
    for i in range(ny):
        for c in range(4):
            field[i, 0, c] = sc * field[i, 1, c]
            field[i, nx - 1, c] = sc * field[i, nx - 2, c]


# ============================================================
# External force
# ============================================================

@njit
def add_force(w_in, w_out, origin_x, origin_y, force_x, force_y, nx, ny):
    for i in range(1, ny - 1):
        y = i + 0.5
        for j in range(1, nx - 1):
            x = j + 0.5
            dist = math.sqrt((x - origin_x) * (x - origin_x) + (y - origin_y) * (y - origin_y))
            amp = math.exp(-dist)

            w_out[i, j, 0] = w_in[i, j, 0] + force_x * amp
            w_out[i, j, 1] = w_in[i, j, 1] + force_y * amp
            w_out[i, j, 2] = w_in[i, j, 2]
            w_out[i, j, 3] = w_in[i, j, 3]


# ============================================================
# Advection (semi-Lagrangian, clamped)
# ============================================================

@njit
def advect(u, out, dt, rdx, nx, ny):
    w = 1.0 / rdx
    hi_x = min(w - 2.0, float(nx - 2))
    hi_y = min(w - 2.0, float(ny - 2))

    for i in range(1, ny - 1):
        y = i + 0.5
        for j in range(1, nx - 1):
            x = j + 0.5

            oldx = x - dt * u[i, j, 0] * rdx
            oldy = y - dt * u[i, j, 1] * rdx

            if oldx > hi_x:
                oldx = hi_x
            if oldx < 1.0:
                oldx = 1.0
            if oldy > hi_y:
                oldy = hi_y
            if oldy < 1.0:
                oldy = 1.0

            oj = int(oldx)
            oi = int(oldy)

            # plain average of the axis neighbours, not bilinear
            for c in range(2):
                out[i, j, c] = (u[oi, oj + 1, c] + u[oi, oj - 1, c] +
                                u[oi + 1, oj, c] + u[oi - 1, oj, c]) / 4.0
            out[i, j, 2] = u[i, j, 2]
            out[i, j, 3] = u[i, j, 3]


# ============================================================
# Jacobi relaxation (diffusion and pressure)
# ============================================================

@njit
def jacobi(x, b, out, alpha, rbeta, nx, ny):
    for i in range(1, ny - 1):
        for j in range(1, nx - 1):
            for c in range(4):
                out[i, j, c] = (x[i, j - 1, c] + x[i, j + 1, c] +
                                x[i - 1, j, c] + x[i + 1, j, c] +
                                alpha * b[i, j, c]) * rbeta


# ============================================================
# Divergence + Projection
# ============================================================

@njit
def divergence(u, div, p, halfrdx, nx, ny):
    # pressure is re-solved from zero every frame
    for i in range(ny):
        for j in range(nx):
            for c in range(4):
                p[i, j, c] = 0.0

    for i in range(1, ny - 1):
        for j in range(1, nx - 1):
            wl = u[i, j - 1, 0]
            wr = u[i, j + 1, 0]
            wt = u[i - 1, j, 1]
            wb = u[i + 1, j, 1]
            div[i, j, 3] = halfrdx * ((wr - wl) + (wt - wb))


@njit
def subtract_gradient(p, u, out, halfrdx, nx, ny):
    for i in range(1, ny - 1):
        for j in range(1, nx - 1):
            for c in range(4):
                out[i, j, c] = u[i, j, c]
            out[i, j, 0] -= halfrdx * (p[i, j + 1, 3] - p[i, j - 1, 3])
            out[i, j, 1] -= halfrdx * (p[i + 1, j, 3] - p[i - 1, j, 3])


# ============================================================
# Outputs: RGBA alpha mapping, text dump
# ============================================================

@njit
def fill_pixels(u, pixels, nx, ny, red, green, blue, gain):
    for i in range(ny):
        for j in range(nx):
            k = (i * nx + j) * 4
            pixels[k] = red
            pixels[k + 1] = green
            pixels[k + 2] = blue
            amp = math.sqrt(u[i, j, 0] * u[i, j, 0] + u[i, j, 1] * u[i, j, 1]) * gain
            a = int(math.floor(amp + 0.5))
            if a > 255:
                a = 255
            pixels[k + 3] = a


def format_speed(field):
    sp = np.sqrt(field[:, :, 0].astype(np.float64) ** 2 + field[:, :, 1].astype(np.float64) ** 2)
    return "\n".join("".join(f"{a:.0f}" for a in row) for row in sp) + "\n"


# ============================================================
# Public API
# ============================================================

@dataclass
class SolverConfig:
    viscosity: float = 1e-6
    diffusion_iterations: int = 20
    pressure_iterations: int = 20
    base_color: tuple = (138, 43, 226)
    alpha_gain: float = 150.0

    def validate(self):
        if not self.viscosity > 0.0:
            raise ValueError(f"viscosity must be positive, got {self.viscosity}")
        for name, n in (("diffusion_iterations", self.diffusion_iterations),
                        ("pressure_iterations", self.pressure_iterations)):
            if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {n!r}")
        if len(self.base_color) != 3 or any(not 0 <= int(c) <= 255 for c in self.base_color):
            raise ValueError(f"base_color must be three 0..255 channels, got {self.base_color}")


class Solver:
    """
    Fixed-resolution stable-fluids solver.

    Construction only derives the grid; reset() allocates the four fields
    (velocity, scratch, divergence, pressure). update() advances one frame
    and writes an RGBA buffer of nx * ny * 4 bytes.
    """

    def __init__(self, screen_width, screen_height, resolution, config=None):
        for name, val in (("screen_width", screen_width),
                          ("screen_height", screen_height),
                          ("resolution", resolution)):
            if int(val) != val or val <= 0:
                raise ValueError(f"{name} must be a positive integer, got {val!r}")
        if (resolution * screen_height) % screen_width != 0:
            raise ValueError(
                f"resolution * screen_height ({resolution} * {screen_height}) "
                f"must be divisible by screen_width ({screen_width})"
            )

        self.config = config if config is not None else SolverConfig()
        self.config.validate()

        self.screen_width = int(screen_width)
        self.screen_height = int(screen_height)
        self.nx = int(resolution)
        self.ny = int(resolution * screen_height // screen_width)
        if self.nx < 3 or self.ny < 3:
            raise ValueError(f"grid {self.nx}x{self.ny} has no interior cells")

        self.min_x = 1.0
        self.min_y = 1.0
        self.max_x = self.nx - 1.0
        self.max_y = self.ny - 1.0
        self.dx = 1.0 / self.ny
        self.viscosity = float(self.config.viscosity)

        self.u = None
        self.tmp = None
        self.div = None
        self.p = None
        self.frame = 0

    @property
    def grid_size(self):
        return self.nx, self.ny

    @property
    def is_ready(self):
        return self.u is not None

    @property
    def velocity(self):
        self._require_ready()
        return self.u

    def _require_ready(self):
        if not self.is_ready:
            raise RuntimeError("Solver.reset() must be called before using the fields")

    def reset(self):
        self.u = allocate_field(self.nx, self.ny)
        self.tmp = allocate_field(self.nx, self.ny)
        self.div = allocate_field(self.nx, self.ny)
        self.p = allocate_field(self.nx, self.ny)
        self.frame = 0
        logger.info("allocated 4 fields of %dx%d (dx=%.5f)", self.nx, self.ny, self.dx)

    def set_velocity(self, vel):
        self._require_ready()
        vel = np.asarray(vel, dtype=np.float32)
        if vel.ndim != 3 or vel.shape[:2] != (self.ny, self.nx) or vel.shape[2] not in (2, 4):
            raise ValueError(f"expected shape ({self.ny}, {self.nx}, 2|4), got {vel.shape}")
        self.u[:, :, :] = 0.0
        self.u[:, :, :vel.shape[2]] = vel

    def _swap_velocity(self):
        self.u, self.tmp = self.tmp, self.u

    def _pixel_view(self, pixels):
        n = self.nx * self.ny * 4
        if pixels is None:
            return np.zeros(n, dtype=np.uint8), None
        if isinstance(pixels, np.ndarray):
            if pixels.dtype != np.uint8 or not pixels.flags.c_contiguous:
                raise ValueError("pixel array must be a contiguous uint8 buffer")
            view = pixels.reshape(-1)
        else:
            view = np.frombuffer(pixels, dtype=np.uint8)
        if not view.flags.writeable:
            raise ValueError("pixel buffer is read-only")
        if view.size != n:
            raise ValueError(f"pixel buffer must hold {n} bytes, got {view.size}")
        return view, pixels

    def update(self, dt, force_origin, force_vector, pixels=None):
        self._require_ready()
        if not dt > 0.0:
            raise ValueError(f"dt must be positive, got {dt}")
        view, out = self._pixel_view(pixels)

        nx, ny, dx = self.nx, self.ny, self.dx
        cfg = self.config
        ox, oy = float(force_origin[0]), float(force_origin[1])
        fx, fy = float(force_vector[0]), float(force_vector[1])

        # external force
        add_force(self.u, self.tmp, ox, oy, fx, fy, nx, ny)
        self._swap_velocity()
        set_boundary(self.u, -1.0, nx, ny)
        logger.debug("force: origin=(%.2f, %.2f) vector=(%.3f, %.3f)", ox, oy, fx, fy)

        # advect
        advect(self.u, self.tmp, float(dt), dx, nx, ny)
        self._swap_velocity()
        set_boundary(self.u, -1.0, nx, ny)
        logger.debug("advect: dt=%.4f", dt)

        # diffusion
        alpha = dx * dx / (self.viscosity * dt)
        rbeta = 1.0 / (4.0 + alpha)
        for _ in range(cfg.diffusion_iterations):
            jacobi(self.u, self.u, self.tmp, alpha, rbeta, nx, ny)
            self._swap_velocity()
            set_boundary(self.u, -1.0, nx, ny)
        logger.debug("diffuse: %d sweeps, alpha=%.4g", cfg.diffusion_iterations, alpha)

        # projection: divergence + pressure
        halfrdx = 0.5 / dx
        divergence(self.u, self.div, self.p, halfrdx, nx, ny)
        logger.debug("divergence: pressure reset")

        alpha = -dx * dx
        rbeta = 0.25
        for _ in range(cfg.pressure_iterations):
            jacobi(self.p, self.div, self.tmp, alpha, rbeta, nx, ny)
            self.p, self.tmp = self.tmp, self.p
            set_boundary(self.p, 1.0, nx, ny)
        logger.debug("pressure: %d sweeps", cfg.pressure_iterations)

        # gradient subtraction
        subtract_gradient(self.p, self.u, self.tmp, halfrdx, nx, ny)
        self._swap_velocity()
        set_boundary(self.u, -1.0, nx, ny)
        logger.debug("subtract_gradient")

        r, g, b = cfg.base_color
        fill_pixels(self.u, view, nx, ny, int(r), int(g), int(b), float(cfg.alpha_gain))

        self.frame += 1
        logger.debug("frame %d done", self.frame)
        return view if out is None else out

    def print_field(self, field=None):
        if field is None:
            field = self.velocity
        print(format_speed(field), end="")
