"""
Sequential alignment of the sub-experiments of an edited acquisition.

The orchestrator resolves the editing scheme into an
:class:`~xsubspec.alignment.schemes.AlignmentPlan` once, then runs its steps in
order on every dataset of the batch. Each step locates the anchor peak in the
current reference and the raw moving signal, fits the correction and replaces
the moving signal with its corrected copy, so later steps see earlier results.
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import xarray as xr
from joblib import Parallel, delayed

from xsubspec.alignment.aligner import align_pair
from xsubspec.alignment.bands import locate_peaks
from xsubspec.alignment.schemes import AlignmentPlan, EditingScheme, build_plan
from xsubspec.core.config import ATTRS, COORDS, DIMS, VARS
from xsubspec.core.exceptions import ConfigurationError
from xsubspec.core.utils import _check_attrs, _check_coords, _check_dims, as_variable
from xsubspec.core.validation import _check_reduced

ALIGN_METHOD = "Alignment of subtraction sub-spectra"

_SCHEME_DETAILS = {
    EditingScheme.TWO_WAY: "L2 optimization of ON/OFF spectra",
    EditingScheme.FOUR_WAY: "L2 optimization of HADAMARD spectra",
}


@dataclass(frozen=True)
class AlignmentProvenance:
    """Record of how a set of sub-spectra was aligned.

    Attributes
    ----------
    method : str
        Name of the processing step.
    details : str
        Free-text summary: optimization type, edit dimension and bands.
    references : tuple of str
        One ``"<center> ppm (<ref>/<moving>)"`` entry per alignment step,
        in execution order.
    """

    method: str
    details: str
    references: tuple[str, ...]

    @classmethod
    def from_plan(cls, plan: AlignmentPlan, edit_dim: str) -> "AlignmentProvenance":
        references = plan.references
        details = (
            f"{_SCHEME_DETAILS[plan.scheme]} (Mikkelsen et al. 2018), "
            f"dim = {edit_dim}, reference = {', '.join(references)}"
        )
        return cls(method=ALIGN_METHOD, details=details, references=references)

    def to_attrs(self) -> dict:
        return {
            ATTRS.align_method: self.method,
            ATTRS.align_details: self.details,
            ATTRS.align_references: list(self.references),
        }

    @classmethod
    def from_attrs(cls, attrs: dict) -> "AlignmentProvenance":
        """Rebuild the record from the attributes written by `align_subspectra`."""
        missing = [
            k
            for k in (ATTRS.align_method, ATTRS.align_details, ATTRS.align_references)
            if k not in attrs
        ]
        if missing:
            raise ValueError(
                f"No alignment provenance found, missing attributes: {missing}. "
                f"Run `align_subspectra` first."
            )
        return cls(
            method=attrs[ATTRS.align_method],
            details=attrs[ATTRS.align_details],
            references=tuple(attrs[ATTRS.align_references]),
        )


def _run_plan(
    subspectra: xr.DataArray,
    plan: AlignmentPlan,
    dim: str,
    edit_dim: str,
    solver_kwargs: dict,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Execute every step of `plan` on one set of sub-experiments.

    Parameters
    ----------
    subspectra : xr.DataArray
        Complex FIDs with exactly the dims ``(edit_dim, dim)``.

    Returns
    -------
    data : numpy.ndarray
        The corrected FIDs, shape ``(n_subspectra, n_time)``.
    params : numpy.ndarray
        Fitted ``(frequency_shift, phase_shift)`` per step, shape ``(n_steps, 2)``.
    """
    current = {
        k: subspectra.isel({edit_dim: k}) for k in range(subspectra.sizes[edit_dim])
    }
    params = np.zeros((len(plan.steps), 2))

    for i, step in enumerate(plan.steps):
        reference = current[step.reference]
        moving = current[step.moving]

        band, f0 = locate_peaks(
            reference,
            moving,
            center=step.band.center,
            half_width=step.band.half_width,
            fit_half_width=step.band.fit_half_width,
            dim=dim,
        )
        fitted, current[step.moving] = align_pair(
            reference, moving, band, x0=(f0, 0.0), dim=dim, **solver_kwargs
        )
        params[i] = fitted.as_array()

    data = np.stack([current[k].values for k in sorted(current)])
    return data, params


def align_subspectra(
    da: xr.DataArray,
    sequence: EditingScheme | str,
    targets: str | Sequence[str] | None = None,
    unstable_water: bool = False,
    dim: str = DIMS.time,
    edit_dim: str = DIMS.edit,
    num_workers: int = 1,
    **solver_kwargs,
) -> xr.Dataset:
    """
    Align the sub-experiments of an edited MRS acquisition to each other.

    The frequency and zero-order phase drift between sub-experiments is
    removed by least-squares fitting of the real spectra over a reporter
    resonance that is unaffected by the editing pulses. Two-way data (e.g.
    MEGA) is aligned in a single step B against A. Four-way data (e.g. HERMES,
    HERCULES) is aligned in three steps: B against A, C against A, then D
    against the *corrected* C.

    Every dimension other than `dim` and `edit_dim` is treated as a batch of
    independent datasets (e.g. voxels), which may be aligned in parallel.

    Parameters
    ----------
    da : xr.DataArray
        Complex, coil-combined and averaged FIDs with dims `edit_dim` (size 2
        or 4, in acquisition order A, B, C, D) and `dim`.
    sequence : EditingScheme or str
        The editing scheme or sequence name (``"MEGA"``, ``"HERMES"``,
        ``"HERCULES"``).
    targets : str or sequence of str, optional
        Editing target(s), see :func:`~xsubspec.alignment.schemes.build_plan`.
    unstable_water : bool, optional
        Use the choline resonance instead of residual water as the first
        reporter peak. By default False.
    dim : str, optional
        The time dimension, by default `DIMS.time`.
    edit_dim : str, optional
        The sub-experiment dimension, by default `DIMS.edit`.
    num_workers : int, optional
        Number of `joblib` worker processes for batch dimensions. With the
        default of 1 everything runs in the calling process.
    **solver_kwargs
        Forwarded to `scipy.optimize.least_squares`.

    Returns
    -------
    xr.Dataset
        ``data``: the corrected FIDs, same dims and coords as the input.
        ``frequency_shift`` [Hz] and ``phase_shift`` [deg]: the fitted
        corrections with dims ``(*batch, step)``. Coordinates ``step``
        (``"A/B"``, ...) and ``band`` label the steps; the attrs carry the
        input attrs plus the alignment provenance.

    Raises
    ------
    ConfigurationError
        If the scheme, targets or number of sub-experiments are invalid.
    PreconditionError
        If the data is not reduced to one complex signal per sub-experiment.
    ValueError
        If required dimensions or attributes are missing.
    """
    plan = build_plan(sequence, targets=targets, unstable_water=unstable_water)

    _check_dims(da, [dim, edit_dim], "align_subspectra")
    _check_coords(da, dim, "align_subspectra")
    _check_attrs(
        da, [ATTRS.reference_frequency, ATTRS.carrier_ppm], "align_subspectra"
    )
    da = _check_reduced(da, "align_subspectra")

    n_expected = plan.scheme.n_subspectra
    if da.sizes[edit_dim] != n_expected:
        raise ConfigurationError(
            f"{plan.scheme.name} editing needs {n_expected} sub-experiments along "
            f"'{edit_dim}', but the data has {da.sizes[edit_dim]}. Check `sequence`, "
            f"or select the sub-experiments with `obj.isel({edit_dim}=...)`."
        )

    # 1. Flatten to (batch..., edit, time)
    batch_dims = [d for d in da.dims if d not in (dim, edit_dim)]
    da_t = da.transpose(*batch_dims, edit_dim, dim)
    batch_shape = tuple(da_t.sizes[d] for d in batch_dims)
    indices = list(np.ndindex(*batch_shape))

    blocks = [da_t.isel(dict(zip(batch_dims, idx))) for idx in indices]

    # 2. Run the plan on every dataset
    if num_workers == 1 or len(blocks) == 1:
        results = [
            _run_plan(block, plan, dim, edit_dim, solver_kwargs) for block in blocks
        ]
    else:
        results = Parallel(n_jobs=num_workers, backend="loky")(
            delayed(_run_plan)(block, plan, dim, edit_dim, solver_kwargs)
            for block in blocks
        )

    # 3. Reassemble
    n_steps = len(plan.steps)
    data = np.empty(da_t.shape, dtype=da_t.dtype)
    params = np.empty(batch_shape + (n_steps, 2))
    for idx, (block_data, block_params) in zip(indices, results):
        data[idx] = block_data
        params[idx] = block_params

    corrected = da_t.copy(data=data).transpose(*da.dims)

    param_dims = tuple(batch_dims) + (DIMS.step,)
    param_coords = {d: da.coords[d] for d in batch_dims if d in da.coords}
    param_coords[COORDS.step] = as_variable(
        COORDS.step, DIMS.step, [s.label for s in plan.steps]
    )
    param_coords[COORDS.band] = as_variable(
        COORDS.band, DIMS.step, [s.band.label for s in plan.steps]
    )

    provenance = AlignmentProvenance.from_plan(plan, edit_dim)

    return xr.Dataset(
        data_vars={
            VARS.data: corrected,
            VARS.frequency_shift: as_variable(
                VARS.frequency_shift, param_dims, params[..., 0]
            ),
            VARS.phase_shift: as_variable(
                VARS.phase_shift, param_dims, params[..., 1]
            ),
        },
        coords=param_coords,
        attrs={**da.attrs, **provenance.to_attrs()},
    )
