"""
The primary xarray accessor namespace for the xsubspec package.

This module exposes the `.xsub` namespace to xarray DataArrays and Datasets.
The user-facing API stays flat for method chaining
(e.g., `da.xsub.shift(2.0).xsub.to_spectrum().xsub.to_ppm()`), while the
implementation is split into Mixin classes by concern.
"""

from collections.abc import Sequence

import xarray as xr

from xsubspec.alignment.aligner import align_pair
from xsubspec.alignment.bands import locate_peaks
from xsubspec.alignment.objective import AlignmentParameters, apply_alignment
from xsubspec.alignment.orchestrator import AlignmentProvenance, align_subspectra
from xsubspec.alignment.schemes import EditingScheme
from xsubspec.core.config import ATTRS, DIMS
from xsubspec.core.validation import requires_attrs
from xsubspec.processing.fid import to_fid, to_hz, to_ppm, to_spectrum
from xsubspec.processing.fourier import fft, fftshift, ifft, ifftshift

# =============================================================================
# Mixins (Developer API Modularity)
# =============================================================================


class XsubSpectrumCoordsMixin:
    """Mixin providing operations to translate physical coordinate systems."""

    @requires_attrs(ATTRS.reference_frequency, ATTRS.carrier_ppm)
    def to_ppm(self, dim: str = DIMS.frequency) -> xr.DataArray:
        """Convert relative frequency axis [Hz] to absolute chemical shift axis [ppm]."""
        return to_ppm(self._obj, dim=dim)

    @requires_attrs(ATTRS.reference_frequency, ATTRS.carrier_ppm)
    def to_hz(self, dim: str = DIMS.chemical_shift) -> xr.DataArray:
        """Convert absolute chemical shift axis [ppm] to relative frequency axis [Hz]."""
        return to_hz(self._obj, dim=dim)


class XsubFourierMixin:
    """Mixin providing single-dimension Fourier transforms and shifts."""

    def fftshift(self, dim: str = DIMS.frequency) -> xr.DataArray:
        """Roll data and coordinates so the zero-frequency bin sits in the center."""
        return fftshift(self._obj, dim=dim)

    def ifftshift(self, dim: str = DIMS.frequency) -> xr.DataArray:
        """The exact inverse of :meth:`fftshift`."""  # noqa: D401
        return ifftshift(self._obj, dim=dim)

    def fft(
        self, dim: str = DIMS.time, out_dim: str = DIMS.frequency
    ) -> xr.DataArray:
        """
        Perform an orthonormal Fast Fourier Transform (no shifts).

        Parameters
        ----------
        dim : str, optional
            Dimension to transform, by default `DIMS.time`.
        out_dim : str, optional
            Name of the resulting dimension, by default `DIMS.frequency`.

        Returns
        -------
        xr.DataArray
            The transformed DataArray.
        """
        return fft(self._obj, dim=dim, out_dim=out_dim)

    def ifft(
        self, dim: str = DIMS.frequency, out_dim: str = DIMS.time
    ) -> xr.DataArray:
        """Perform an orthonormal inverse FFT (no shifts)."""
        return ifft(self._obj, dim=dim, out_dim=out_dim)


class XsubProcessingMixin:
    """Mixin providing FID/spectrum domain conversions."""

    def to_spectrum(
        self, dim: str = DIMS.time, out_dim: str = DIMS.frequency
    ) -> xr.DataArray:
        """
        Convert a time-domain FID to a centered frequency-domain spectrum.

        Parameters
        ----------
        dim : str, optional
            The time dimension to transform, by default `DIMS.time`.
        out_dim : str, optional
            The name of the resulting frequency dimension, by default `DIMS.frequency`.

        Returns
        -------
        xr.DataArray
            The centered frequency-domain spectrum.
        """
        return to_spectrum(self._obj, dim=dim, out_dim=out_dim)

    def to_fid(self, dim: str = DIMS.frequency, out_dim: str = DIMS.time) -> xr.DataArray:
        """Convert a centered frequency-domain spectrum back to a time-domain FID."""
        return to_fid(self._obj, dim=dim, out_dim=out_dim)


class XsubAlignmentMixin:
    """Mixin providing frequency/phase correction and sub-spectrum alignment."""

    def shift(
        self,
        frequency_shift: float = 0.0,
        phase_shift: float = 0.0,
        dim: str = DIMS.time,
    ) -> xr.DataArray:
        """
        Apply a frequency [Hz] and zero-order phase [deg] correction to the FID.

        The shifts add to any correction already recorded in the attributes.
        """
        params = AlignmentParameters(frequency_shift, phase_shift)
        return apply_alignment(self._obj, params, dim=dim)

    @requires_attrs(ATTRS.reference_frequency, ATTRS.carrier_ppm)
    def align_to(
        self,
        reference: xr.DataArray,
        center: float,
        half_width: float,
        fit_half_width: float | None = None,
        dim: str = DIMS.time,
        **solver_kwargs,
    ) -> xr.DataArray:
        """
        Align this 1D FID to `reference` over the peak near `center` [ppm].

        Convenience wrapper around
        :func:`~xsubspec.alignment.bands.locate_peaks` followed by
        :func:`~xsubspec.alignment.aligner.align_pair`, seeded with the
        peak-offset estimate.

        Parameters
        ----------
        reference : xr.DataArray
            The 1D FID to align to. Must carry the same attributes.
        center : float
            Center of the peak search window in ppm.
        half_width : float
            Half-width of the search window in ppm.
        fit_half_width : float, optional
            Half-width of the fitting sub-bands, by default `half_width`.
        dim : str, optional
            The time dimension, by default `DIMS.time`.
        **solver_kwargs
            Forwarded to `scipy.optimize.least_squares`.

        Returns
        -------
        xr.DataArray
            The corrected FID; the applied shifts are recorded in its attrs.
        """
        band, f0 = locate_peaks(
            reference,
            self._obj,
            center=center,
            half_width=half_width,
            fit_half_width=fit_half_width,
            dim=dim,
        )
        _, corrected = align_pair(
            reference, self._obj, band, x0=(f0, 0.0), dim=dim, **solver_kwargs
        )
        return corrected

    @requires_attrs(ATTRS.reference_frequency, ATTRS.carrier_ppm)
    def align_subspectra(
        self,
        sequence: EditingScheme | str,
        targets: str | Sequence[str] | None = None,
        unstable_water: bool = False,
        dim: str = DIMS.time,
        edit_dim: str = DIMS.edit,
        num_workers: int = 1,
        **solver_kwargs,
    ) -> xr.Dataset:
        """
        Align the sub-experiments along `edit_dim` to each other.

        Parameters
        ----------
        sequence : EditingScheme or str
            The editing scheme or sequence name (``"MEGA"``, ``"HERMES"``,
            ``"HERCULES"``).
        targets : str or sequence of str, optional
            The editing target(s), e.g. ``"GABA"`` or ``("GABA", "GSH")``.
        unstable_water : bool, optional
            Anchor on choline instead of residual water. By default False.
        dim : str, optional
            The time dimension, by default `DIMS.time`.
        edit_dim : str, optional
            The sub-experiment dimension, by default `DIMS.edit`.
        num_workers : int, optional
            Number of parallel processes for batch dimensions. Defaults to 1.

        Returns
        -------
        xr.Dataset
            The corrected FIDs under ``data`` plus the fitted shifts per step.
            See :func:`~xsubspec.alignment.orchestrator.align_subspectra`.
        """
        return align_subspectra(
            self._obj,
            sequence,
            targets=targets,
            unstable_water=unstable_water,
            dim=dim,
            edit_dim=edit_dim,
            num_workers=num_workers,
            **solver_kwargs,
        )


# =============================================================================
# Main User API Registration
# =============================================================================


@xr.register_dataset_accessor("xsub")
class XsubDatasetAccessor:
    """Accessor for xsubspec xr.Datasets (e.g., alignment results)."""

    def __init__(self, xarray_obj: xr.Dataset):
        self._obj = xarray_obj

    @property
    def provenance(self) -> AlignmentProvenance:
        """The alignment record stored in the Dataset attributes."""
        return AlignmentProvenance.from_attrs(self._obj.attrs)


@xr.register_dataarray_accessor("xsub")
class XsubAccessor(
    XsubSpectrumCoordsMixin, XsubFourierMixin, XsubProcessingMixin, XsubAlignmentMixin
):
    """
    Main Accessor for xarray DataArrays to perform MRS sub-spectrum operations.

    This class is registered under the `.xsub` namespace and inherits its
    methods from the domain-specific Mixins above.

    Attributes
    ----------
    _obj : xr.DataArray
        The underlying xarray DataArray object being operated on.
    """

    def __init__(self, xarray_obj: xr.DataArray):
        """Initialize the accessor with the xarray object."""
        self._obj = xarray_obj
