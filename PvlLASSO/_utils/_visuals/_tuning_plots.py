"""Lambda tuning visualization utilities.

This module provides plotting functions for the tuning sweep and the
inflection-point decision.
"""

import numpy as np
import matplotlib.pyplot as plt


def _mark_optimum(ax, optimal_log_lambda):
    if optimal_log_lambda is not None:
        ax.axvline(optimal_log_lambda, ls='--', color='red', label='optimal lambda')


def _plot_loss_curve(
    table,
    fitted=None,
    optimal_log_lambda=None,
    breakpoints=None,
    metric='loss',
    ax=None,
    **plot_kwargs
):
    """
    Plot the loss against log-lambda with the fitted segments.

    Parameters
    ----------
    table : pandas.DataFrame
        Tuning table with a ``log_lambda`` column and the ``metric`` column.
    fitted : array-like, optional
        Segmented fit evaluated at each row of ``table``.
    optimal_log_lambda : float, optional
        Chosen log-lambda, drawn as a vertical line.
    breakpoints : array-like, optional
        Every breakpoint found by the change-point tree.
    metric : str, default='loss'
        Column plotted on the y axis.
    ax : matplotlib.axes.Axes, optional
        Matplotlib axes object. If None, creates new figure.
    **plot_kwargs
        Additional keyword arguments passed to the scatter plot.

    Returns
    -------
    matplotlib.axes.Axes
        Matplotlib axes object containing the plot.
    """
    if ax is None:
        fig, ax = plt.subplots()

    ax.scatter(table['log_lambda'], table[metric], **plot_kwargs)
    if fitted is not None:
        ax.plot(table['log_lambda'], fitted, color='black', linewidth=1.5, label='segmented fit')
    if breakpoints is not None:
        for x in breakpoints:
            ax.axvline(x, ls=':', color='grey', alpha=0.7)
    _mark_optimum(ax, optimal_log_lambda)

    ax.set_title("Loss vs log(lambda)")
    ax.set_xlabel("log(lambda)")
    ax.set_ylabel(metric.replace('_', ' ').capitalize())
    if fitted is not None or optimal_log_lambda is not None:
        ax.legend()
    return ax


def _plot_selection_curve(table, optimal_log_lambda=None, ax=None, **plot_kwargs):
    """
    Plot the number of selected features against log-lambda.

    Non-converged fits are drawn with hollow markers.

    Parameters
    ----------
    table : pandas.DataFrame
        Tuning table with ``log_lambda``, ``n_selected`` and ``converged``.
    optimal_log_lambda : float, optional
        Chosen log-lambda, drawn as a vertical line.
    ax : matplotlib.axes.Axes, optional
        Matplotlib axes object. If None, creates new figure.
    **plot_kwargs
        Additional keyword arguments passed to the line plot.

    Returns
    -------
    matplotlib.axes.Axes
        Matplotlib axes object containing the plot.
    """
    if ax is None:
        fig, ax = plt.subplots()

    ax.step(table['log_lambda'], table['n_selected'], where='mid', **plot_kwargs)

    converged = table['converged'].to_numpy(dtype=bool)
    ax.scatter(table['log_lambda'][converged], table['n_selected'][converged], s=15)
    if (~converged).any():
        ax.scatter(
            table['log_lambda'][~converged], table['n_selected'][~converged],
            s=15, facecolors='none', edgecolors='grey', label='not converged'
        )
        ax.legend()
    _mark_optimum(ax, optimal_log_lambda)

    ax.set_title("Selected features vs log(lambda)")
    ax.set_xlabel("log(lambda)")
    ax.set_ylabel("Number of selected features")
    return ax


def _plot_prevalence_distribution(pvl_summary, optimal_log_lambda=None, ax=None):
    """
    Plot the prevalence-bucket composition of the selected features.

    Parameters
    ----------
    pvl_summary : pandas.DataFrame
        Prevalence summary with ``log_lambda``, ``bucket`` and ``n_features``.
    optimal_log_lambda : float, optional
        Chosen log-lambda, drawn as a vertical line.
    ax : matplotlib.axes.Axes, optional
        Matplotlib axes object. If None, creates new figure.

    Returns
    -------
    matplotlib.axes.Axes
        Matplotlib axes object containing the plot.
    """
    if ax is None:
        fig, ax = plt.subplots()

    counts = pvl_summary.pivot_table(
        index='log_lambda', columns='bucket', values='n_features',
        aggfunc='sum', sort=False
    ).sort_index()
    x = counts.index.to_numpy()
    width = np.min(np.diff(x)) * 0.9 if len(x) > 1 else 0.5

    bottom = np.zeros(len(x))
    for bucket in counts.columns:
        values = counts[bucket].fillna(0).to_numpy()
        ax.bar(x, values, width=width, bottom=bottom, label=str(bucket))
        bottom += values
    _mark_optimum(ax, optimal_log_lambda)

    ax.set_title("Prevalence of selected features")
    ax.set_xlabel("log(lambda)")
    ax.set_ylabel("Number of selected features")
    ax.legend(title="Prevalence", fontsize='small')
    return ax
