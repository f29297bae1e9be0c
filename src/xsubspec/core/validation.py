"""Decorator engine for runtime validation and dynamic docstring generation."""

import functools
from collections.abc import Callable
from typing import Any

import numpy as np
import xarray as xr

from .config import ATTRS, DIMS
from .exceptions import PreconditionError
from .utils import _check_attrs


def _append_to_docstring(
    doc: str | None, title: str, keys: tuple[str, ...], vocab: Any
) -> str:
    """Helper to cleanly append a new NumPy-style section to an existing docstring."""  # noqa: D401
    base_doc = doc or ""
    if base_doc and not base_doc.endswith("\n\n"):
        base_doc += "\n\n" if base_doc.endswith("\n") else "\n\n"

    lines = [f"    {title}", f"    {'-' * len(title)}"]
    for k in keys:
        desc = vocab.get_description(k)
        lines.append(f"    * ``{k}``: {desc}")

    return base_doc + "\n".join(lines) + "\n"


def requires_attrs(*keys: str) -> Callable:
    """Decorator to enforce that specific attributes exist in `self._obj.attrs`.

    If attributes are missing at runtime, it raises a clear ValueError with
    instructions on how to fix it using standard xarray methods. At import time,
    it dynamically appends the required attributes to the method's docstring.

    Parameters
    ----------
    *keys : str
        The attribute string keys required by the method
        (e.g., ATTRS.reference_frequency).
    """  # noqa: D401

    def decorator(func: Callable) -> Callable:
        func.__doc__ = _append_to_docstring(
            doc=func.__doc__, title="Required Attributes", keys=keys, vocab=ATTRS
        )

        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            _check_attrs(self._obj, list(keys), func.__name__)
            return func(self, *args, **kwargs)

        return wrapper

    return decorator


def _check_reduced(
    da: xr.DataArray,
    method_name: str,
    reduced_dims: tuple[str, ...] = (DIMS.coil, DIMS.average),
) -> xr.DataArray:
    """Ensure the data holds one complex signal per condition.

    Singleton ``coil``/``average`` dimensions are squeezed away. Anything
    larger means the data still needs coil combination or averaging.

    Returns
    -------
    xr.DataArray
        The input with singleton reduced dimensions removed.

    Raises
    ------
    PreconditionError
        If a reduced dimension has more than one entry, or the samples
        are not complex-valued.
    """
    pending = {
        d: da.sizes[d] for d in reduced_dims if d in da.dims and da.sizes[d] > 1
    }
    if pending:
        first = next(iter(pending))
        raise PreconditionError(
            f"Method '{method_name}' requires single-channel, single-average data, "
            f"but found unreduced dimension(s): {pending}.\n\n"
            f"Combine coils and average the transients first, for example:\n"
            f"    >>> obj = obj.mean({first!r})"
        )

    squeezable = [d for d in reduced_dims if d in da.dims]
    if squeezable:
        da = da.squeeze(squeezable, drop=True)

    if not np.issubdtype(da.dtype, np.complexfloating):
        raise PreconditionError(
            f"Method '{method_name}' requires complex-valued time-domain data, "
            f"got dtype {da.dtype}.\n\n"
            f"If your data stores real and imaginary parts separately, rebuild it:\n"
            f"    >>> obj = obj.sel(component='real') + 1j * obj.sel(component='imag')"
        )

    return da
