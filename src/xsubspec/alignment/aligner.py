import warnings

import numpy as np
import scipy.optimize
import xarray as xr
from numpy.typing import ArrayLike

from xsubspec.alignment.bands import FrequencyBand
from xsubspec.alignment.objective import (
    AlignmentObjective,
    AlignmentParameters,
    apply_alignment,
)
from xsubspec.core.config import DIMS
from xsubspec.core.exceptions import AlignmentWarning


def align_pair(
    reference: xr.DataArray,
    moving: xr.DataArray,
    band: FrequencyBand,
    x0: AlignmentParameters | ArrayLike = (0.0, 0.0),
    dim: str = DIMS.time,
    **solver_kwargs,
) -> tuple[AlignmentParameters, xr.DataArray]:
    """
    Align one FID to another by least-squares fitting inside a spectral band.

    Runs an unbounded Levenberg-Marquardt search over the frequency and
    zero-order phase correction of `moving`, minimizing the sum of squares of
    :class:`~xsubspec.alignment.objective.AlignmentObjective`. The fitted
    result is accepted as returned by the solver; there is no quality gate or
    retry.

    Parameters
    ----------
    reference : xr.DataArray
        The 1D time-domain signal that stays fixed.
    moving : xr.DataArray
        The 1D time-domain signal to correct.
    band : FrequencyBand
        The spectral band over which the residual is minimized. Usually the
        band returned by :func:`~xsubspec.alignment.bands.locate_peaks`.
    x0 : AlignmentParameters or array_like, optional
        Starting point ``(frequency_shift [Hz], phase_shift [deg])``,
        by default ``(0.0, 0.0)``.
    dim : str, optional
        The time dimension, by default `DIMS.time`.
    **solver_kwargs
        Additional keyword arguments passed to `scipy.optimize.least_squares`.
        ``method`` defaults to ``"lm"``.

    Returns
    -------
    params : AlignmentParameters
        The fitted correction.
    corrected : xr.DataArray
        A copy of `moving` with the correction applied.

    Warns
    -----
    AlignmentWarning
        If the solver stops without reporting convergence. The best estimate
        is still applied.
    """
    objective = AlignmentObjective(reference, moving, band, dim=dim)
    if band.n_points < 2:
        raise ValueError(
            f"The alignment band selects {band.n_points} point(s); at least 2 are "
            f"needed to fit a frequency and a phase. Widen the band."
        )

    if isinstance(x0, AlignmentParameters):
        x0 = x0.as_array()
    x0 = np.asarray(x0, dtype=float)

    solver_kwargs.setdefault("method", "lm")
    fit = scipy.optimize.least_squares(objective, x0, **solver_kwargs)

    if not fit.success:
        warnings.warn(
            f"Sub-spectrum alignment did not converge ({fit.message}). "
            f"Applying the last estimate f={fit.x[0]:.3f} Hz, "
            f"phi={fit.x[1]:.3f} deg.",
            AlignmentWarning,
            stacklevel=2,
        )

    params = AlignmentParameters.from_array(fit.x)
    return params, apply_alignment(moving, params, dim=dim)
