"""
Visualization of optimization runs.

Provides:
- Convergence plot (generation best and best-ever fitness per generation)
- Population scatter over two decoded features
"""

import numpy as np
import matplotlib.pyplot as plt


def plot_progress(progress, ax=None, **kwargs):
    """
    Plot generation best and best-ever fitness against the generation number.

    Args:
        progress: DataFrame as returned by BRKGA.progress_frame() (index: generation,
            columns: generation_best, best).
        ax: Matplotlib axes. If None, current axes or new figure is used.
        **kwargs: Passed to plot (e.g. linewidth).

    Returns:
        matplotlib axes used.
    """
    if ax is None:
        ax = plt.gca()
    ax.plot(progress.index, progress["generation_best"], label="generation best", alpha=0.6, **kwargs)
    ax.plot(progress.index, progress["best"], label="best", **kwargs)
    ax.set_xlabel("generation")
    ax.set_ylabel("fitness")
    ax.set_title("Convergence")
    ax.legend()
    return ax


def plot_population(optimizer, features=(0, 1), ax=None, **kwargs):
    """
    Scatter the decoded population of an optimizer over two features, best chromosome highlighted.

    Args:
        optimizer: BRKGA instance with a population.
        features: Indices of the two features to plot.
        ax: Matplotlib axes. If None, current axes or new figure is used.
        **kwargs: Passed to scatter (e.g. cmap).

    Returns:
        matplotlib axes used.
    """
    if ax is None:
        ax = plt.gca()
    i, j = features
    decoded = np.array([optimizer.decode(c.genes) for c in optimizer.population])
    fitness = np.array([c.fitness for c in optimizer.population])
    sc = ax.scatter(decoded[:, i], decoded[:, j], c=fitness, **kwargs)
    plt.colorbar(sc, ax=ax, label="fitness")
    if optimizer.best is not None:
        best = optimizer.best_feature()
        ax.scatter([best[i]], [best[j]], marker="*", s=200, color="red", label="best")
        ax.legend()
    ax.set_xlim(optimizer.parameters.lower_bound[i], optimizer.parameters.upper_bound[i])
    ax.set_ylim(optimizer.parameters.lower_bound[j], optimizer.parameters.upper_bound[j])
    ax.set_xlabel(f"feature {i}")
    ax.set_ylabel(f"feature {j}")
    ax.set_title("Population")
    return ax
