# run.py
import os
import json
import time
from dataclasses import dataclass, asdict

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.animation as animation

from diagnostics import divergence_rms, flow_stats, vorticity_stats
from fluid_solver import Solver, SolverConfig
from forcing import orbit_stroke


STATE_PATH = "state_last.npz"


@dataclass
class RunConfig:
    # Janela (só define a razão de aspecto)
    screen_width: int = 800
    screen_height: int = 600
    resolution: int = 160

    # Tempo
    steps: int = 600
    dt: float = 1.0 / 60.0
    out_every: int = 60

    # Forçamento (mexida circular)
    stroke_radius: float = 0.25
    stroke_period: int = 120
    stroke_strength: float = 2.0

    # Gravação
    record_every: int = 4
    record_max: int = 150

    # Solver
    viscosity: float = 1e-6
    diffusion_iterations: int = 20
    pressure_iterations: int = 20


def load_state(path=STATE_PATH):
    if not os.path.exists(path):
        return None
    try:
        data = np.load(path)
        return data["u"]
    except (OSError, KeyError, ValueError):
        return None


def save_state(u, path=STATE_PATH):
    np.savez_compressed(path, u=u)


def main():
    cfg = RunConfig()

    solver = Solver(
        cfg.screen_width, cfg.screen_height, cfg.resolution,
        config=SolverConfig(
            viscosity=cfg.viscosity,
            diffusion_iterations=cfg.diffusion_iterations,
            pressure_iterations=cfg.pressure_iterations,
        ),
    )
    solver.reset()
    nx, ny = solver.grid_size

    # Warm start
    init = load_state()
    if init is not None and init.shape[:2] == (ny, nx):
        solver.set_velocity(init)
        print(f"[fluid] warm start from {STATE_PATH}")

    print("=== Config ===")
    print(f"grid={nx}x{ny}  dx={solver.dx:.5f}  dt={cfg.dt:.5f}")
    print(f"viscosity={cfg.viscosity}  jacobi={cfg.diffusion_iterations}/{cfg.pressure_iterations}")
    print("================\n")

    with open("run_config.json", "w", encoding="utf-8") as f:
        json.dump(asdict(cfg), f, indent=2)

    pixels = np.zeros(nx * ny * 4, dtype=np.uint8)
    frames_a = []

    t0 = time.time()
    for n in range(1, cfg.steps + 1):
        origin, force = orbit_stroke(
            n, nx, ny,
            radius_frac=cfg.stroke_radius,
            period=cfg.stroke_period,
            strength=cfg.stroke_strength,
        )
        solver.update(cfg.dt, origin, force, pixels)

        if cfg.record_every and (n % cfg.record_every == 0) and (len(frames_a) < cfg.record_max):
            frames_a.append(pixels.reshape(ny, nx, 4)[:, :, 3].copy())

        if cfg.out_every and (n % cfg.out_every == 0):
            u = solver.velocity
            fst = flow_stats(u)
            vst = vorticity_stats(u, solver.dx)
            print(
                f"[fluid] frame {n}/{cfg.steps} | div_rms {divergence_rms(u, solver.dx):.3e} | "
                f"|u| mean {fst['speed_mean']:.3f} max {fst['speed_max']:.3f} | w_rms {vst['w_rms']:.3e}"
            )
    t1 = time.time()

    print(f"\nTempo total: {t1 - t0:.2f}s | {1e3 * (t1 - t0) / max(cfg.steps, 1):.2f} ms/frame")

    u = solver.velocity
    if not np.all(np.isfinite(u[:, :, :2])):
        print("\n[ERRO] velocidade não finita.")
        return

    save_state(u)
    np.savez_compressed(
        "fluid_frames.npz",
        alpha=np.asarray(frames_a, dtype=np.uint8),
        u=u[:, :, :2],
        dx=solver.dx,
        record_every=cfg.record_every,
    )

    # =========================
    # Plot final
    # =========================
    speed = np.sqrt(u[:, :, 0] ** 2 + u[:, :, 1] ** 2)

    plt.figure(figsize=(8, 6))
    plt.title("Velocidade |u|")
    plt.imshow(speed, origin="upper", aspect="equal", interpolation="bilinear")
    plt.colorbar()
    plt.tight_layout()
    plt.show()

    # =========================
    # Animação: canal alpha
    # =========================
    if not frames_a:
        print("Sem frames gravados (record_every/record_max).")
        return

    color = np.asarray(solver.config.base_color, dtype=np.float32) / 255.0
    rgba = np.zeros((ny, nx, 4), dtype=np.float32)
    rgba[:, :, :3] = color

    fig, ax = plt.subplots(figsize=(8, 6))
    ax.set_title("Saída RGBA (alpha = 150·|u|)")
    ax.set_facecolor("black")
    rgba[:, :, 3] = frames_a[0] / 255.0
    im = ax.imshow(rgba, origin="upper", aspect="equal", interpolation="nearest")

    def update(k):
        rgba[:, :, 3] = frames_a[k] / 255.0
        im.set_data(rgba)
        return (im,)

    ani = animation.FuncAnimation(fig, update, frames=len(frames_a), interval=40, blit=True)
    plt.tight_layout()
    plt.show()


if __name__ == "__main__":
    main()
