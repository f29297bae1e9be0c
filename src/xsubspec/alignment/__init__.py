from .aligner import align_pair
from .bands import FrequencyBand, locate_peaks
from .objective import (
    AlignmentObjective,
    AlignmentParameters,
    alignment_residual,
    apply_alignment,
)
from .orchestrator import AlignmentProvenance, align_subspectra
from .schemes import AlignmentPlan, AlignmentStep, BandSpec, EditingScheme, build_plan

__all__ = [
    "AlignmentObjective",
    "AlignmentParameters",
    "AlignmentPlan",
    "AlignmentProvenance",
    "AlignmentStep",
    "BandSpec",
    "EditingScheme",
    "FrequencyBand",
    "align_pair",
    "align_subspectra",
    "alignment_residual",
    "apply_alignment",
    "build_plan",
    "locate_peaks",
]
