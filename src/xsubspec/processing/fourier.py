import numpy as np
import xarray as xr

from xsubspec.core.config import COORDS, DIMS, XsubTerm
from xsubspec.core.utils import _check_dims, as_variable

# --- 1. Shifting Utilities ---


def fftshift(da: xr.DataArray, dim: str = DIMS.frequency) -> xr.DataArray:
    """
    Roll data and coordinates so the zero-frequency bin sits in the center.

    Parameters
    ----------
    da : xr.DataArray
        The input xarray DataArray.
    dim : str, optional
        The dimension along which to apply the shift, by default `DIMS.frequency`.

    Returns
    -------
    xr.DataArray
        A new DataArray with the data and coordinates rolled.
    """
    _check_dims(da, dim, "fftshift")
    return da.roll({dim: da.sizes[dim] // 2}, roll_coords=True)


def ifftshift(da: xr.DataArray, dim: str = DIMS.frequency) -> xr.DataArray:
    """
    Exact inverse of :func:`fftshift`, moving the zero-frequency bin back to index 0.

    Parameters
    ----------
    da : xr.DataArray
        The input xarray DataArray.
    dim : str, optional
        The dimension along which to apply the shift, by default `DIMS.frequency`.

    Returns
    -------
    xr.DataArray
        A new DataArray with the data and coordinates rolled.
    """
    _check_dims(da, dim, "ifftshift")
    return da.roll({dim: (da.sizes[dim] + 1) // 2}, roll_coords=True)


# --- 2. Coordinate Math ---


def _reciprocal_coords(
    da: xr.DataArray, dim: str, out_dim: str, term: XsubTerm | None = None
) -> xr.DataArray:
    """
    Replace `dim` with its unshifted reciprocal axis named `out_dim`.

    The new coordinate holds the standard DFT sample frequencies (or time
    periods) of the old one. If an `XsubTerm` is provided, its unit and
    long_name are attached to the new coordinate.
    """
    n_points = da.sizes[dim]
    old_coords = da.coords[dim].values if dim in da.coords else np.arange(n_points)
    delta = (old_coords[1] - old_coords[0]) if n_points > 1 else 1.0

    new_coords = np.fft.fftfreq(n_points, d=delta)

    if term is not None:
        new_var = as_variable(term, out_dim, new_coords)
    else:
        new_var = xr.Variable(out_dim, new_coords)

    if out_dim != dim:
        da = da.rename({dim: out_dim})

    return da.assign_coords({out_dim: new_var})


# --- 3. Pure Transforms ---


def fft(
    da: xr.DataArray,
    dim: str = DIMS.time,
    out_dim: str = DIMS.frequency,
) -> xr.DataArray:
    """
    Perform an ortho-normalized, unshifted FFT along a single dimension.

    Metadata and all other dimensions are preserved.

    Parameters
    ----------
    da : xr.DataArray
        The input time-domain DataArray.
    dim : str, optional
        The dimension to transform. Defaults to `DIMS.time`.
    out_dim : str, optional
        The resulting dimension name. Defaults to `DIMS.frequency`.

    Returns
    -------
    xr.DataArray
        The frequency-domain DataArray with reciprocal coordinates in Hz.
    """
    _check_dims(da, dim, "fft")

    axis = da.get_axis_num(dim)
    da_transformed = da.copy(data=np.fft.fft(da.values, axis=axis, norm="ortho"))

    term = COORDS.frequency if out_dim == DIMS.frequency else None
    return _reciprocal_coords(da_transformed, dim=dim, out_dim=out_dim, term=term)


def ifft(
    da: xr.DataArray,
    dim: str = DIMS.frequency,
    out_dim: str = DIMS.time,
) -> xr.DataArray:
    """
    Perform an ortho-normalized, unshifted inverse FFT along a single dimension.

    Parameters
    ----------
    da : xr.DataArray
        The input frequency-domain DataArray.
    dim : str, optional
        The dimension to transform. Defaults to `DIMS.frequency`.
    out_dim : str, optional
        The resulting dimension name. Defaults to `DIMS.time`.

    Returns
    -------
    xr.DataArray
        The time-domain DataArray with reciprocal coordinates.
    """
    _check_dims(da, dim, "ifft")

    axis = da.get_axis_num(dim)
    da_transformed = da.copy(data=np.fft.ifft(da.values, axis=axis, norm="ortho"))

    term = COORDS.time if out_dim == DIMS.time else None
    return _reciprocal_coords(da_transformed, dim=dim, out_dim=out_dim, term=term)
