import argparse
import logging

from utils import ensure_dir, setup_logging, value_at
from scenarios import EXPERIMENTS, run_experiment
from model import SolverOptions
from analytics import series_dict, quick_metrics
from plotting import plot_panels, plot_overlays, phase_plane

logger = logging.getLogger("run_bertuzzi")

def simulate(name, options, outdir=None, t_end=None):
    exp = EXPERIMENTS[name]() if t_end is None else EXPERIMENTS[name](t_end=t_end)
    traj = run_experiment(exp, options)
    T = traj.t
    y = series_dict(traj, exp.P)
    summary = quick_metrics(T, y, t_on=exp.meta.get("t_on", 0.0))
    summary["ISR_30"] = value_at(30, T, y["ISR"])
    if outdir is not None:
        d = ensure_dir(f"{outdir}/{name}")
        plot_panels(T, y, d, name)
        phase_plane(T, y["gamma"], y["rho"], "gamma [1/min]", "rho [1/min]",
                    f"{d}/{name}_phase_gamma_rho.png")
    return T, y, summary

def main(argv=None):
    ap = argparse.ArgumentParser(description="Beta-cell granule trafficking experiments")
    ap.add_argument("experiments", nargs="*", default=list(EXPERIMENTS),
                    choices=list(EXPERIMENTS), metavar="EXPERIMENT")
    ap.add_argument("--method", default="RK45", help="RK4 or a solve_ivp method")
    ap.add_argument("--dt", type=float, default=0.05, help="RK4 step [min]")
    ap.add_argument("--sample-dt", type=float, default=0.1, help="output spacing [min]")
    ap.add_argument("--t-end", type=float, default=None, help="end time [min], default per experiment")
    ap.add_argument("--outdir", default="results_bertuzzi")
    ap.add_argument("--no-plots", action="store_true")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)
    setup_logging(args.verbose)

    options = SolverOptions(method=args.method, dt=args.dt, sample_dt=args.sample_dt)
    outdir = None if args.no_plots else ensure_dir(args.outdir)
    runs = {}
    for name in args.experiments:
        T, y, summary = simulate(name, options, outdir, args.t_end)
        runs[name] = (T, y)
        logger.info("%s: %s", name, ", ".join(f"{k}={v:.4g}" for k, v in summary.items()))
    if outdir is not None and runs:
        plot_overlays(runs, ensure_dir(f"{outdir}/overlays"))
        logger.info("figures saved to ./%s", outdir)
    return runs

if __name__ == "__main__":
    main()
