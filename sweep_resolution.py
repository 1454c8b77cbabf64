import os
import time
import traceback

import numpy as np
import matplotlib.pyplot as plt

from fluid_solver import Solver
from forcing import orbit_stroke


def time_updates(resolution, screen_width, screen_height, frames, warmup, dt):
    solver = Solver(screen_width, screen_height, resolution)
    solver.reset()
    nx, ny = solver.grid_size
    pixels = np.zeros(nx * ny * 4, dtype=np.uint8)

    # first calls pay the JIT compile
    for n in range(warmup):
        origin, force = orbit_stroke(n, nx, ny)
        solver.update(dt, origin, force, pixels)

    t0 = time.perf_counter()
    for n in range(warmup, warmup + frames):
        origin, force = orbit_stroke(n, nx, ny)
        solver.update(dt, origin, force, pixels)
    t1 = time.perf_counter()

    return nx, ny, (t1 - t0) / frames


def main():
    # =========================
    # Config do sweep
    # =========================
    screen_width, screen_height = 800, 600
    resolutions = [40, 80, 120, 160, 200, 240]   # todos divisíveis na razão 4:3
    frames = 30
    warmup = 3
    dt = 1.0 / 60.0

    rows = []
    t0 = time.time()

    for res in resolutions:
        print(f"[sweep] resolution={res} ...")
        try:
            nx, ny, s_per_update = time_updates(res, screen_width, screen_height, frames, warmup, dt)
        except Exception as e:
            with open("errors.log", "a", encoding="utf-8") as f:
                f.write("\n" + "=" * 80 + "\n")
                f.write(f"resolution={res}: {e}\n")
                f.write(traceback.format_exc() + "\n")
            print(f"[FAIL] resolution={res}  (ver errors.log)")
            continue

        cells = (nx - 2) * (ny - 2)
        rows.append((res, nx, ny, cells, s_per_update))
        print(f"    -> {nx}x{ny} | {1e3 * s_per_update:.2f} ms/update | "
              f"{1e9 * s_per_update / (42 * cells):.1f} ns/stencil")

    t1 = time.time()
    print(f"[sweep] Tempo total: {t1 - t0:.2f}s")

    if not rows:
        return

    data = np.asarray(rows, dtype=float)
    np.savetxt(
        "update_cost_vs_resolution.csv",
        data,
        delimiter=",",
        header="resolution,nx,ny,interior_cells,s_per_update",
        comments=""
    )

    plt.figure()
    plt.loglog(data[:, 3], data[:, 4], marker="o")
    plt.xlabel("células interiores")
    plt.ylabel("s / update")
    plt.title(f"Custo do update ({screen_width}x{screen_height})")
    plt.grid(True, which="both")
    plt.tight_layout()
    if os.environ.get("SWEEP_NO_SHOW"):
        plt.savefig("update_cost_vs_resolution.png", dpi=120)
    else:
        plt.show()


if __name__ == "__main__":
    main()
