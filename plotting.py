import os
import matplotlib
# headless
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from utils import ensure_dir

def plot_panels(T, y_dict, outdir, tag):
    ensure_dir(outdir)

    # 1) ISR
    plt.figure(); plt.plot(T, y_dict["ISR"])
    plt.xlabel("Time [min]"); plt.ylabel("ISR [I0·sigma·F]")
    plt.title(f"Insulin secretion rate — {tag}"); plt.grid(True,alpha=0.3); plt.tight_layout()
    plt.savefig(os.path.join(outdir, f"{tag}_01_isr.png"), dpi=200); plt.close()

    # 2) Precursor pools
    fig,ax = plt.subplots(2,1,figsize=(7,6),sharex=True)
    ax[0].plot(T, y_dict["I"]); ax[0].set_ylabel("I (proinsulin)")
    ax[1].plot(T, y_dict["V"]); ax[1].set_ylabel("V (membrane)"); ax[1].set_xlabel("Time [min]")
    for a in ax: a.grid(True,alpha=0.3)
    fig.suptitle(f"Precursors — {tag}")
    fig.tight_layout(rect=[0,0,1,0.96])
    fig.savefig(os.path.join(outdir, f"{tag}_02_precursors.png"), dpi=200); plt.close(fig)

    # 3) Granule pools
    fig,ax = plt.subplots(4,1,figsize=(7,9),sharex=True)
    for a,name,label in zip(ax, ("R","D","DIR","F"),
                            ("reserve R","docked D","immediately releasable DIR","fused F")):
        a.plot(T, y_dict[name]); a.set_ylabel(label); a.grid(True,alpha=0.3)
    ax[-1].set_xlabel("Time [min]")
    fig.suptitle(f"Granule pools — {tag}")
    fig.tight_layout(rect=[0,0,1,0.96])
    fig.savefig(os.path.join(outdir, f"{tag}_03_granules.png"), dpi=200); plt.close(fig)

    # 4) Rate coefficients
    fig,ax = plt.subplots(2,1,figsize=(7,6),sharex=True)
    ax[0].plot(T, y_dict["gamma"]); ax[0].set_ylabel("gamma [1/min]")
    ax[1].plot(T, y_dict["rho"]);   ax[1].set_ylabel("rho [1/min]"); ax[1].set_xlabel("Time [min]")
    for a in ax: a.grid(True,alpha=0.3)
    fig.suptitle(f"Rate coefficients — {tag}")
    fig.tight_layout(rect=[0,0,1,0.96])
    fig.savefig(os.path.join(outdir, f"{tag}_04_rates.png"), dpi=200); plt.close(fig)

def plot_overlays(runs, outdir, key="ISR", ylabel="ISR [I0·sigma·F]"):
    """runs: dict tag -> (T, y_dict)"""
    ensure_dir(outdir)
    plt.figure()
    for tag,(T,y) in runs.items():
        plt.plot(T, y[key], label=tag)
    plt.xlabel("Time [min]"); plt.ylabel(ylabel)
    plt.title(f"{key} — all experiments"); plt.legend(); plt.grid(True,alpha=0.3); plt.tight_layout()
    outpath = os.path.join(outdir, f"overlay_{key}.png")
    plt.savefig(outpath, dpi=200); plt.close()
    return outpath

def phase_plane(T, x, y, xlabel, ylabel, outpath, color_by_time=True):
    c = T if color_by_time else None
    plt.figure()
    sc = plt.scatter(x, y, c=c, s=10, cmap="viridis")
    if color_by_time: plt.colorbar(sc, label="time [min]")
    plt.xlabel(xlabel); plt.ylabel(ylabel)
    plt.title(f"Phase-plane: {ylabel} vs {xlabel}")
    plt.tight_layout(); plt.savefig(outpath, dpi=200); plt.close()
