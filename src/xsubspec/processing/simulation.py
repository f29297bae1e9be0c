import numpy as np
import xarray as xr
from numpy.typing import ArrayLike

from xsubspec.core.config import ATTRS, COORDS, DIMS, SUBSPECTRUM_LABELS
from xsubspec.core.utils import as_variable


def _time_axis(spectral_width: float, n_points: int, dead_time: float) -> np.ndarray:
    return np.arange(n_points) / spectral_width + dead_time


def _lorentzian_fid(
    t: np.ndarray,
    amplitudes: np.ndarray,
    freqs_hz: np.ndarray,
    dampings: np.ndarray,
    phases: np.ndarray,
) -> np.ndarray:
    """Sum of exponentially damped complex sinusoids, one column per peak."""
    t_col = t[:, np.newaxis]
    fid_matrix = (
        amplitudes
        * np.exp(1j * phases)
        * np.exp(-dampings * t_col)
        * np.exp(2j * np.pi * freqs_hz * t_col)
    )
    return fid_matrix.sum(axis=1)


def _complex_noise(shape, level: float, rng: np.random.Generator) -> np.ndarray:
    # Split the variance equally between the quadrature channels
    std = level / np.sqrt(2)
    return rng.normal(0, std, shape) + 1j * rng.normal(0, std, shape)


def simulate_fid(
    amplitudes: ArrayLike,
    chemical_shifts: ArrayLike,
    *,
    reference_frequency: float = 127.7,
    carrier_ppm: float = 4.68,
    spectral_width: float = 2000.0,
    n_points: int = 2048,
    dampings: float | ArrayLike = 10.0,
    phases: float | ArrayLike = 0.0,
    dead_time: float = 0.0,
    target_snr: float | None = None,
    seed: int | None = None,
) -> xr.DataArray:
    """Simulate a single complex FID made of damped Lorentzian resonances.

    Parameters
    ----------
    amplitudes : ArrayLike
        The amplitude of each resonance.
    chemical_shifts : ArrayLike
        The position of each resonance in ppm.
    reference_frequency : float, optional
        The spectrometer frequency in MHz. Default is 127.7 (3 T proton).
    carrier_ppm : float, optional
        The chemical shift at 0 Hz. Default is 4.68 (water).
    spectral_width : float, optional
        The spectral width in Hz. Default is 2000.0.
    n_points : int, optional
        Number of complex time-domain points. Default is 2048.
    dampings : float | ArrayLike, optional
        Exponential damping rate(s) in 1/s. Default is 10.0.
    phases : float | ArrayLike, optional
        Phase(s) of the resonances in radians. Default is 0.0.
    dead_time : float, optional
        Time of the first sample in seconds. Default is 0.0.
    target_snr : float | None, optional
        If given, complex Gaussian noise is added so that the mean magnitude
        of the first 10 samples over the noise level equals this value.
    seed : int | None, optional
        Seed for the noise generator.

    Returns
    -------
    xr.DataArray
        A 1D complex FID along `DIMS.time` carrying the reference frequency
        and carrier attributes required by the alignment engine.
    """
    amplitudes = np.atleast_1d(np.asarray(amplitudes, dtype=float))
    chemical_shifts = np.atleast_1d(np.asarray(chemical_shifts, dtype=float))
    if amplitudes.shape != chemical_shifts.shape:
        raise ValueError("`amplitudes` and `chemical_shifts` must have the same length.")

    n_peaks = len(amplitudes)
    t = _time_axis(spectral_width, n_points, dead_time)
    freqs_hz = (chemical_shifts - carrier_ppm) * reference_frequency

    fid = _lorentzian_fid(
        t,
        amplitudes,
        freqs_hz,
        np.broadcast_to(dampings, n_peaks),
        np.broadcast_to(phases, n_peaks),
    )

    if target_snr is not None:
        level = np.mean(np.abs(fid[: min(10, n_points)])) / target_snr
        fid = fid + _complex_noise(fid.shape, level, np.random.default_rng(seed))

    return xr.DataArray(
        data=fid,
        dims=[DIMS.time],
        coords={COORDS.time: as_variable(COORDS.time, DIMS.time, t)},
        attrs={
            ATTRS.reference_frequency: reference_frequency,
            ATTRS.carrier_ppm: carrier_ppm,
            ATTRS.spectral_width: spectral_width,
        },
        name="FID Signal",
    )


def simulate_subspectra(
    amplitudes: ArrayLike,
    chemical_shifts: ArrayLike,
    *,
    frequency_offsets: ArrayLike = (0.0, 0.0),
    phase_offsets: ArrayLike | None = None,
    target_snr: float | None = None,
    seed: int | None = None,
    **kwargs,
) -> xr.DataArray:
    """Simulate the sub-experiments of an edited acquisition with drift between them.

    Every sub-experiment shares the same resonances, then receives its own
    frequency offset (Hz) and zero-order phase offset (degrees), which is
    what the alignment engine is meant to undo.

    Parameters
    ----------
    amplitudes : ArrayLike
        Resonance amplitudes, either shared ``(n_peaks,)`` or per
        sub-experiment ``(n_subspectra, n_peaks)`` to mimic editing.
    chemical_shifts : ArrayLike
        Resonance positions in ppm, shape ``(n_peaks,)``.
    frequency_offsets : ArrayLike, optional
        Frequency drift of each sub-experiment in Hz. Its length sets the
        number of sub-experiments (2 or 4). Default is ``(0.0, 0.0)``.
    phase_offsets : ArrayLike | None, optional
        Phase drift of each sub-experiment in degrees. Default is no drift.
    target_snr : float | None, optional
        Per sub-experiment SNR; see :func:`simulate_fid`.
    seed : int | None, optional
        Seed for the noise generator.
    **kwargs
        Acquisition parameters forwarded to :func:`simulate_fid`
        (``reference_frequency``, ``carrier_ppm``, ``spectral_width``,
        ``n_points``, ``dampings``, ``dead_time``).

    Returns
    -------
    xr.DataArray
        Complex FIDs with dims ``(DIMS.edit, DIMS.time)``; the edit coordinate
        is labelled ``"A"``, ``"B"``, ...
    """
    offsets = np.atleast_1d(np.asarray(frequency_offsets, dtype=float))
    n_sub = len(offsets)
    if n_sub > len(SUBSPECTRUM_LABELS):
        raise ValueError(f"At most {len(SUBSPECTRUM_LABELS)} sub-experiments supported.")

    phases_deg = (
        np.zeros(n_sub)
        if phase_offsets is None
        else np.atleast_1d(np.asarray(phase_offsets, dtype=float))
    )
    if phases_deg.shape != offsets.shape:
        raise ValueError("`phase_offsets` must match the length of `frequency_offsets`.")

    chemical_shifts = np.atleast_1d(np.asarray(chemical_shifts, dtype=float))
    amps = np.broadcast_to(
        np.asarray(amplitudes, dtype=float), (n_sub, len(chemical_shifts))
    )
    rng = np.random.default_rng(seed)

    subspectra = []
    for k in range(n_sub):
        fid = simulate_fid(amps[k], chemical_shifts, **kwargs)
        t = fid.coords[DIMS.time].values
        drift = np.exp(1j * (2 * np.pi * offsets[k] * t + np.radians(phases_deg[k])))
        values = fid.values * drift
        if target_snr is not None:
            level = np.mean(np.abs(values[: min(10, len(values))])) / target_snr
            values = values + _complex_noise(values.shape, level, rng)
        subspectra.append(fid.copy(data=values))

    da = xr.concat(subspectra, dim=DIMS.edit)
    da = da.assign_coords({DIMS.edit: list(SUBSPECTRUM_LABELS[:n_sub])})
    return da.transpose(DIMS.edit, DIMS.time).assign_attrs(subspectra[0].attrs)
