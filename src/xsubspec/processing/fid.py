import numpy as np
import xarray as xr

from xsubspec.core.config import ATTRS, COORDS, DIMS
from xsubspec.core.utils import _check_attrs, _check_dims, as_variable
from xsubspec.processing.fourier import fft, fftshift, ifft, ifftshift


def to_spectrum(
    da: xr.DataArray, dim: str = DIMS.time, out_dim: str = DIMS.frequency
) -> xr.DataArray:
    """
    Convert a time-domain Free Induction Decay (FID) to a frequency-domain spectrum.

    Applies the FFT along the time dimension and shifts the zero-frequency
    component to the center of the spectrum, so that the frequency axis is
    ascending in Hz.

    Parameters
    ----------
    da : xr.DataArray
        The input time-domain FID data.
    dim : str, optional
        The time dimension to transform, by default `DIMS.time`.
    out_dim : str, optional
        The name of the resulting frequency dimension, by default `DIMS.frequency`.

    Returns
    -------
    xr.DataArray
        The frequency-domain spectrum with centered zero-frequency coordinates.
    """
    _check_dims(da, dim, "to_spectrum")
    return fftshift(fft(da, dim=dim, out_dim=out_dim), dim=out_dim)


def to_fid(
    da: xr.DataArray, dim: str = DIMS.frequency, out_dim: str = DIMS.time
) -> xr.DataArray:
    """Convert a centered frequency-domain spectrum back to a time-domain FID."""
    _check_dims(da, dim, "to_fid")

    # Put the DC component back at index 0 before the inverse transform
    da_fid = ifft(ifftshift(da, dim=dim), dim=dim, out_dim=out_dim)

    # Rebuild strictly positive time coordinates [0, T_acq) from SW = N * df
    n_points = da.sizes[dim]
    if dim in da.coords and n_points > 1:
        freqs = da.coords[dim].values
        dt = 1.0 / (n_points * abs(freqs[1] - freqs[0]))
        time_var = as_variable(COORDS.time, out_dim, np.arange(n_points) * dt)
        da_fid = da_fid.assign_coords({out_dim: time_var})

    return da_fid


def to_ppm(da: xr.DataArray, dim: str = DIMS.frequency) -> xr.DataArray:
    """
    Convert a relative frequency axis [Hz] to an absolute chemical shift axis [ppm].

    The original frequency coordinate is kept as a non-dimension coordinate.

    Parameters
    ----------
    da : xr.DataArray
        A spectrum with a frequency dimension in Hz.
    dim : str, optional
        The frequency dimension, by default `DIMS.frequency`.

    Returns
    -------
    xr.DataArray
        The spectrum indexed by `DIMS.chemical_shift`.
    """
    _check_dims(da, dim, "to_ppm")
    _check_attrs(da, [ATTRS.reference_frequency, ATTRS.carrier_ppm], "to_ppm")

    mhz = da.attrs[ATTRS.reference_frequency]
    carrier_ppm = da.attrs[ATTRS.carrier_ppm]
    ppm_coords = carrier_ppm + da.coords[dim].values / mhz

    shift_var = as_variable(COORDS.chemical_shift, dim, ppm_coords)
    obj = da.assign_coords({COORDS.chemical_shift: shift_var})
    return obj.swap_dims({dim: DIMS.chemical_shift})


def to_hz(da: xr.DataArray, dim: str = DIMS.chemical_shift) -> xr.DataArray:
    """Convert an absolute chemical shift axis [ppm] back to a frequency axis [Hz]."""
    _check_dims(da, dim, "to_hz")
    _check_attrs(da, [ATTRS.reference_frequency, ATTRS.carrier_ppm], "to_hz")

    mhz = da.attrs[ATTRS.reference_frequency]
    carrier_ppm = da.attrs[ATTRS.carrier_ppm]
    hz_coords = (da.coords[dim].values - carrier_ppm) * mhz

    freq_var = as_variable(COORDS.frequency, dim, hz_coords)
    obj = da.assign_coords({COORDS.frequency: freq_var})
    return obj.swap_dims({dim: DIMS.frequency})
