# src/xsubspec/core/utils.py
import xarray as xr

from xsubspec.core.config import XsubTerm


def _check_dims(da: xr.DataArray, dims: str | list[str], method_name: str) -> None:
    """Validate that required dimensions exist in the DataArray."""
    dims_to_check = [dims] if isinstance(dims, str) else dims
    missing = [d for d in dims_to_check if d not in da.dims]

    if missing:
        raise ValueError(
            f"Method '{method_name}' attempted to operate on missing "
            f"dimension(s): {missing}.\n"
            f"Available dimensions are: {list(da.dims)}.\n\n"
            f"To fix this, either pass the correct `dim` string argument to the function,"
            f" or rename your data's axes using xarray:\n"
            f"    >>> obj = obj.rename({{{repr(missing[0])}: 'correct_name'}})"
        )


def _check_coords(da: xr.DataArray, coords: str | list[str], method_name: str) -> None:
    """Validate that dimensions carry a coordinate (e.g. sample times)."""
    coords_to_check = [coords] if isinstance(coords, str) else coords
    missing = [c for c in coords_to_check if c not in da.coords]

    if missing:
        raise ValueError(
            f"Method '{method_name}' requires the coordinate(s) {missing}, but the "
            f"data only has: {list(da.coords)}.\n"
            f"Without them xarray falls back to integer positions, which are not "
            f"physical sample times.\n\n"
            f"To fix this, assign the axis using xarray, e.g. for a dwell time `dt`:\n"
            f"    >>> obj = obj.assign_coords({{{repr(missing[0])}: "
            f"np.arange(obj.sizes[{repr(missing[0])}]) * dt}})"
        )


def _check_attrs(da: xr.DataArray, keys: str | list[str], method_name: str) -> None:
    """Validate that required attributes exist in `da.attrs`."""
    keys_to_check = [keys] if isinstance(keys, str) else keys
    missing = [k for k in keys_to_check if k not in da.attrs]

    if missing:
        raise ValueError(
            f"Method '{method_name}' requires the following missing attributes "
            f"in `obj.attrs`: {missing}.\n\n"
            f"To fix this, assign them using standard xarray methods:\n"
            f"    >>> obj = obj.assign_attrs({{{repr(missing[0])}: value}})"
        )


def as_variable(term: XsubTerm, dims: str | tuple, data) -> xr.Variable:
    """Wrap an array into an xarray Variable.

    Automatically apply the correct units and long_name from the provided XsubTerm.
    """
    attrs = {"long_name": term.long_name}
    if term.unit:
        attrs["units"] = term.unit

    return xr.Variable(dims, data, attrs=attrs)
