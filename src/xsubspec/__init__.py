# 0. Expose the submodules for quartodoc (Griffe) traversal
from . import alignment, processing  # noqa: I001

# 1. Configuration
from .core import ATTRS, COORDS, DIMS, VARS
from .core.exceptions import AlignmentWarning, ConfigurationError, PreconditionError

# 2. Accessor (Importing this automatically registers the .xsub namespace)
from .core import accessor
from .core.accessor import XsubAccessor, XsubDatasetAccessor

# 3. Processing
from .processing.fid import to_fid, to_hz, to_ppm, to_spectrum
from .processing.fourier import fft, fftshift, ifft, ifftshift
from .processing.simulation import simulate_fid, simulate_subspectra

# 4. Alignment
from .alignment.aligner import align_pair
from .alignment.bands import FrequencyBand, locate_peaks
from .alignment.objective import (
    AlignmentObjective,
    AlignmentParameters,
    alignment_residual,
    apply_alignment,
)
from .alignment.orchestrator import AlignmentProvenance, align_subspectra
from .alignment.schemes import EditingScheme, build_plan

# Explicitly define the public API.
__all__ = [
    # --- Submodules (Required for quartodoc to build the pages) ---
    "accessor",
    "alignment",
    "processing",
    # --- Flat API (For the users) ---
    # Config
    "ATTRS",
    "COORDS",
    "DIMS",
    "VARS",
    # Errors
    "AlignmentWarning",
    "ConfigurationError",
    "PreconditionError",
    # Accessor
    "XsubAccessor",
    "XsubDatasetAccessor",
    # FID Operations
    "to_fid",
    "to_hz",
    "to_ppm",
    "to_spectrum",
    # Fourier Transforms
    "fft",
    "fftshift",
    "ifft",
    "ifftshift",
    # Simulation
    "simulate_fid",
    "simulate_subspectra",
    # Alignment
    "AlignmentObjective",
    "AlignmentParameters",
    "AlignmentProvenance",
    "EditingScheme",
    "FrequencyBand",
    "align_pair",
    "align_subspectra",
    "alignment_residual",
    "apply_alignment",
    "build_plan",
    "locate_peaks",
]
