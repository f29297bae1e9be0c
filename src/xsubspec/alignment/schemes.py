"""
Editing schemes and their band-selection tables.

Each scheme is a closed variant that owns a table of alignment steps. A step
names the reference and moving sub-experiment (by position A, B, C, D) and the
spectral band used to align them. The table is resolved once, up front, into
an :class:`AlignmentPlan`; the orchestrator then runs the steps in order.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from xsubspec.core.config import SUBSPECTRUM_LABELS
from xsubspec.core.exceptions import ConfigurationError


class EditingScheme(Enum):
    """Multiplexing pattern of an edited acquisition (value = sub-experiments)."""

    TWO_WAY = 2
    FOUR_WAY = 4

    @property
    def n_subspectra(self) -> int:
        return self.value


SEQUENCE_SCHEMES = {
    "MEGA": EditingScheme.TWO_WAY,
    "HERMES": EditingScheme.FOUR_WAY,
    "HERCULES": EditingScheme.FOUR_WAY,
}


@dataclass(frozen=True)
class BandSpec:
    """A resonance used as alignment anchor.

    `half_width` bounds the peak search; `fit_half_width` (if set) is the
    half-width of the sub-bands the residual is evaluated on.
    """

    name: str
    center: float
    half_width: float
    fit_half_width: float | None = None

    @property
    def label(self) -> str:
        return f"{self.center:.2f} ppm"


WATER = BandSpec("H2O", center=4.68, half_width=0.22)
NAA = BandSpec("NAA", center=2.01, half_width=0.13)
CHOLINE = BandSpec("Cho", center=3.20, half_width=0.09, fit_half_width=0.08)
# Replaces the residual water band when water is flagged as unstable
CHOLINE_FOR_WATER = BandSpec("Cho", center=3.22, half_width=0.09, fit_half_width=0.08)


@dataclass(frozen=True)
class AlignmentStep:
    """Align sub-experiment `moving` against the current state of `reference`."""

    reference: int
    moving: int
    band: BandSpec

    @property
    def label(self) -> str:
        labels = SUBSPECTRUM_LABELS
        return f"{labels[self.reference]}/{labels[self.moving]}"

    @property
    def description(self) -> str:
        return f"{self.band.label} ({self.label})"


@dataclass(frozen=True)
class AlignmentPlan:
    scheme: EditingScheme
    targets: tuple[str, ...]
    steps: tuple[AlignmentStep, ...]
    unstable_water: bool = False

    @property
    def references(self) -> tuple[str, ...]:
        return tuple(step.description for step in self.steps)


# --- Band-selection tables ---

# Canonical spelling of every known editing target
_TARGET_NAMES = {
    name.casefold(): name
    for name in ("GABA", "GSH", "Lac", "PE322", "PE398", "EtOH", "NAA", "NAAG")
}

# Two-way: the reporter peak must be identical in both acquisitions, so
# GABA-edited data uses residual water and the other targets use NAA.
TWO_WAY_BANDS = {
    "GABA": WATER,
    "GSH": NAA,
    "Lac": NAA,
    "PE322": NAA,
    "PE398": NAA,
}

# Four-way: (A/B, A/C, corrected C/D)
FOUR_WAY_PAIRS = ((0, 1), (0, 2), (2, 3))
FOUR_WAY_BANDS = {
    ("GABA", "GSH"): (WATER, NAA, CHOLINE),
    ("GABA", "Lac"): (WATER, NAA, CHOLINE),
    ("GABA", "EtOH"): (WATER, NAA, CHOLINE),
    ("NAA", "NAAG"): (NAA, NAA, NAA),
}
DEFAULT_FOUR_WAY_TARGETS = ("GABA", "GSH")


def resolve_scheme(scheme: "EditingScheme | str") -> EditingScheme:
    """Map a sequence name (``"MEGA"``, ``"HERMES"``, ...) or scheme to a scheme."""
    if isinstance(scheme, EditingScheme):
        return scheme

    key = str(scheme).upper()
    if key in SEQUENCE_SCHEMES:
        return SEQUENCE_SCHEMES[key]
    if key in EditingScheme.__members__:
        return EditingScheme[key]

    raise ConfigurationError(
        f"Unrecognized editing scheme {scheme!r}. Use one of "
        f"{sorted(SEQUENCE_SCHEMES)} or an `EditingScheme` member."
    )


def _canonical_targets(targets: "str | Sequence[str] | None") -> tuple[str, ...]:
    if targets is None:
        return ()
    if isinstance(targets, str):
        targets = (targets,)

    canonical = []
    for target in targets:
        name = _TARGET_NAMES.get(str(target).casefold())
        if name is None:
            raise ConfigurationError(
                f"Editing target {target!r} not recognized. "
                f"Known targets: {sorted(_TARGET_NAMES.values())}."
            )
        canonical.append(name)
    return tuple(canonical)


def _substitute_water(band: BandSpec, unstable_water: bool) -> BandSpec:
    return CHOLINE_FOR_WATER if (unstable_water and band == WATER) else band


def build_plan(
    scheme: "EditingScheme | str",
    targets: "str | Sequence[str] | None" = None,
    unstable_water: bool = False,
) -> AlignmentPlan:
    """
    Resolve a scheme and its editing targets into an ordered alignment plan.

    Parameters
    ----------
    scheme : EditingScheme or str
        The editing scheme, or a sequence name (``"MEGA"``, ``"HERMES"``,
        ``"HERCULES"``).
    targets : str or sequence of str, optional
        A single target for two-way editing (e.g. ``"GABA"``), or an ordered
        pair for four-way editing (e.g. ``("GABA", "GSH")``). Four-way editing
        defaults to ``("GABA", "GSH")``. Matched case-insensitively.
    unstable_water : bool, optional
        Replace the residual water band (two-way band, four-way first band)
        with the choline resonance at 3.22 ppm. By default False.

    Returns
    -------
    AlignmentPlan
        The scheme, the canonical targets and the ordered steps.

    Raises
    ------
    ConfigurationError
        For unknown schemes, unknown targets or target combinations, or a
        wrong number of targets.
    """
    scheme = resolve_scheme(scheme)
    names = _canonical_targets(targets)

    if scheme is EditingScheme.TWO_WAY:
        if len(names) != 1:
            raise ConfigurationError(
                f"Two-way editing needs exactly one editing target, got {names}. "
                f"Pass e.g. `targets='GABA'`."
            )
        if names[0] not in TWO_WAY_BANDS:
            raise ConfigurationError(
                f"Target {names[0]!r} is not supported for two-way editing. "
                f"Supported: {sorted(TWO_WAY_BANDS)}."
            )
        band = _substitute_water(TWO_WAY_BANDS[names[0]], unstable_water)
        steps = (AlignmentStep(reference=0, moving=1, band=band),)

    else:
        if not names:
            names = DEFAULT_FOUR_WAY_TARGETS
        if len(names) != 2:
            raise ConfigurationError(
                f"Four-way editing needs an ordered pair of editing targets, "
                f"got {names}. Pass e.g. `targets=('GABA', 'GSH')`."
            )
        if names not in FOUR_WAY_BANDS:
            raise ConfigurationError(
                f"Target pair {names} is not supported for four-way editing. "
                f"Supported: {sorted(FOUR_WAY_BANDS)}."
            )
        bands = list(FOUR_WAY_BANDS[names])
        bands[0] = _substitute_water(bands[0], unstable_water)
        steps = tuple(
            AlignmentStep(reference=ref, moving=mov, band=band)
            for (ref, mov), band in zip(FOUR_WAY_PAIRS, bands)
        )

    return AlignmentPlan(
        scheme=scheme, targets=names, steps=steps, unstable_water=unstable_water
    )
