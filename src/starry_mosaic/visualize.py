import matplotlib.pyplot as plt
import numpy as np


def plot_partition(partition, ax=None, show_sites: bool = True):
    """Cell outlines (and representative points) of a partition, image y-axis down."""
    if ax is None:
        fig, ax = plt.subplots()

    for cell in partition.cells:
        p = cell.polygon
        if len(p) == 0:
            continue
        closed = np.vstack([p, p[:1]])
        ax.plot(*closed.T, "-k", linewidth=0.8)

    if show_sites and len(partition.sites):
        ax.plot(*partition.sites.T, ".r", markersize=3)

    ax.set_aspect("equal")
    if not ax.yaxis_inverted():
        ax.invert_yaxis()
    ax.set_title(f"Mosaic partition ({partition.kind.value}, {partition.cell_count()} cells)")
    return ax


def plot_mosaic(buffer, ax=None):
    """Show a drawn (H,W,3) buffer."""
    if ax is None:
        fig, ax = plt.subplots()
    ax.imshow(np.asarray(buffer), interpolation="nearest")
    ax.set_axis_off()
    return ax
