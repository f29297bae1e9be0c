"""Spectral bands and the peak-guided starting estimate for alignment."""

from dataclasses import dataclass

import numpy as np
import xarray as xr
from numpy.typing import ArrayLike

from xsubspec.core.config import ATTRS, COORDS, DIMS
from xsubspec.core.utils import _check_attrs, _check_coords, _check_dims
from xsubspec.processing.fid import to_ppm, to_spectrum


@dataclass(frozen=True, eq=False)
class FrequencyBand:
    """A boolean selection over a chemical-shift axis.

    Attributes
    ----------
    mask : numpy.ndarray
        Boolean array, True where the residual is evaluated.
    centers : tuple of float
        The ppm center(s) the band was built from. A union of two sub-bands
        keeps both centers.
    half_width : float
        Half-width of each sub-band in ppm.
    """

    mask: np.ndarray
    centers: tuple[float, ...]
    half_width: float

    @classmethod
    def from_center(
        cls, axis: ArrayLike, center: float, half_width: float
    ) -> "FrequencyBand":
        """Select every axis point within ``center ± half_width`` (inclusive)."""
        axis = np.asarray(axis)
        mask = (axis <= center + half_width) & (axis >= center - half_width)
        return cls(mask=mask, centers=(float(center),), half_width=float(half_width))

    def __or__(self, other: "FrequencyBand") -> "FrequencyBand":
        if self.mask.shape != other.mask.shape:
            raise ValueError(
                f"Cannot combine bands defined on axes of different lengths "
                f"({self.mask.size} vs {other.mask.size})."
            )
        return FrequencyBand(
            mask=self.mask | other.mask,
            centers=self.centers + other.centers,
            half_width=max(self.half_width, other.half_width),
        )

    @property
    def n_points(self) -> int:
        return int(np.count_nonzero(self.mask))

    def contains(self, axis: ArrayLike, value: float) -> bool:
        """Whether the axis point nearest to `value` lies inside the band."""
        idx = int(np.argmin(np.abs(np.asarray(axis) - value)))
        return bool(self.mask[idx])


def _real_peak_position(spectrum: np.ndarray, axis: np.ndarray, mask: np.ndarray):
    idx = np.flatnonzero(mask)
    return float(axis[idx[np.argmax(np.abs(spectrum.real[idx]))]])


def locate_peaks(
    reference: xr.DataArray,
    moving: xr.DataArray,
    center: float,
    half_width: float,
    fit_half_width: float | None = None,
    dim: str = DIMS.time,
) -> tuple[FrequencyBand, float]:
    """
    Find the dominant peak of two FIDs near `center` and derive the fitting band.

    The maximum of the absolute real spectrum inside ``center ± half_width``
    is located independently in both signals. The returned band is the union
    of two sub-bands of half-width `fit_half_width`, one around each maximum,
    so it covers both peak positions even when the acquisitions have already
    drifted apart.

    Parameters
    ----------
    reference : xr.DataArray
        The 1D time-domain signal that stays fixed.
    moving : xr.DataArray
        The 1D time-domain signal that will be corrected.
    center : float
        Center of the search window in ppm.
    half_width : float
        Half-width of the search window in ppm.
    fit_half_width : float, optional
        Half-width of each fitting sub-band in ppm. Defaults to `half_width`.
    dim : str, optional
        The time dimension, by default `DIMS.time`.

    Returns
    -------
    band : FrequencyBand
        The fitting band on the reference's chemical-shift axis.
    frequency_shift : float
        Starting estimate of the frequency correction in Hz,
        ``(peak_ref - peak_moving) * reference_frequency``. The phase estimate
        is always zero.
    """
    for name, da in (("reference", reference), ("moving", moving)):
        _check_dims(da, dim, "locate_peaks")
        _check_coords(da, dim, "locate_peaks")
        if da.ndim != 1:
            raise ValueError(
                f"locate_peaks expects 1D signals, but `{name}` has dims {da.dims}. "
                f"Select a single sub-experiment first, e.g. `obj.isel(edit=0)`."
            )
    _check_attrs(
        reference, [ATTRS.reference_frequency, ATTRS.carrier_ppm], "locate_peaks"
    )

    if reference.sizes[dim] != moving.sizes[dim]:
        raise ValueError(
            f"`reference` and `moving` must have the same number of points, "
            f"got {reference.sizes[dim]} and {moving.sizes[dim]}."
        )

    # Both spectra share the reference's ppm axis
    spec_ref = to_ppm(to_spectrum(reference, dim=dim))
    spec_mov = to_spectrum(moving, dim=dim)
    axis = spec_ref.coords[COORDS.chemical_shift].values

    search = FrequencyBand.from_center(axis, center, half_width)
    if search.n_points == 0:
        raise ValueError(
            f"The search window {center} ± {half_width} ppm contains no points of "
            f"the spectral axis [{axis.min():.2f}, {axis.max():.2f}] ppm."
        )

    peak_ref = _real_peak_position(spec_ref.values, axis, search.mask)
    peak_mov = _real_peak_position(spec_mov.values, axis, search.mask)

    if fit_half_width is None:
        fit_half_width = half_width
    band = FrequencyBand.from_center(axis, peak_ref, fit_half_width)
    band = band | FrequencyBand.from_center(axis, peak_mov, fit_half_width)

    mhz = reference.attrs[ATTRS.reference_frequency]
    frequency_shift = (peak_ref - peak_mov) * mhz
    return band, float(frequency_shift)
