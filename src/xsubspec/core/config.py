"""
Core configuration and vocabulary definitions for xsubspec xarray objects.

This module defines the single source of truth for all metadata attributes,
dimensions, coordinates, and data variables that the alignment engine reads
from or writes to xarray objects.
"""


class XsubTerm(str):
    """A string subclass that holds metadata attributes.

    This allows xarray to treat it as a standard dimension/coordinate name,
    while allowing developers to access `.unit` and `.description` directly.
    """

    def __new__(cls, value: str, description: str = "", unit: str = ""):
        """Create a new :class:`XsubTerm` instance with metadata.

        Parameters
        ----------
        value : str
            The string value to use for the term.
        description : str, optional
            A human-readable description of the term (default is empty).
        unit : str, optional
            The unit associated with the term, if any (default is empty).

        Returns
        -------
        XsubTerm
            A new string instance with ``description`` and ``unit`` attributes.
        """
        obj = str.__new__(cls, value)
        obj.description = description
        obj.unit = unit
        return obj

    @property
    def long_name(self) -> str:
        """Automatically generates a display-friendly long name.

        Example: 'frequency_shift' -> 'Frequency Shift'
        """
        return self.replace("_", " ").title()


class BaseVocabulary:
    """
    Base class for xsubspec xarray vocabularies.

    Provides rich HTML display for Jupyter Notebooks and utility
    methods to fetch metadata for validation decorators.
    """

    def _get_terms(self) -> dict:
        """Collect all XsubTerm attributes declared on the class."""
        return {
            key: val
            for key, val in vars(self.__class__).items()
            if isinstance(val, XsubTerm)
        }

    def get_description(self, target_value: str) -> str:
        """
        Fetch the description for a given xarray key value.

        Used by the validation decorators to build dynamic docstrings.

        Parameters
        ----------
        target_value : str
            The actual string value of the attribute/dimension/coordinate
            (e.g., "reference_frequency", "edit").

        Returns
        -------
        str
            The description string, or a fallback message if not found.
        """
        for term in self._get_terms().values():
            if term == target_value:
                return term.description or "No description provided."
        return "Unknown xarray key."

    def _repr_html_(self) -> str:
        """
        Render a clean HTML table of the vocabulary for Jupyter Notebooks.

        Returns
        -------
        str
            HTML string representing the class fields and metadata.
        """
        cls_name = self.__class__.__name__
        doc = self.__class__.__doc__ or ""
        desc_text = doc.strip().split("\n")[0] if doc else f"Vocabulary for {cls_name}:"

        rows = []
        for prop_name, term in self._get_terms().items():
            unit_str = (
                f"<strong>{term.unit}</strong>"
                if term.unit
                else "<span style='color: #999;'>-</span>"
            )
            rows.append(
                "<tr style='border-bottom: 1px solid #eee;'>"
                f"<td style='padding: 6px;'><code>{prop_name}</code></td>"
                f"<td style='padding: 6px;'><strong><code>\"{term}\"</code></strong></td>"
                f"<td style='padding: 6px;'>{unit_str}</td>"
                f"<td style='padding: 6px;'>{term.description}</td>"
                "</tr>"
            )

        return (
            "<div style='font-family: sans-serif; max-width: 900px;'>"
            f"<h3 style='margin-bottom: 4px;'>{cls_name}</h3>"
            f"<p style='margin-top: 0; color: #555;'><em>{desc_text}</em></p>"
            "<table style='width: 100%; border-collapse: collapse; text-align: left;'>"
            "<tr style='border-bottom: 2px solid #ccc;'>"
            "<th style='padding: 6px;'>Property</th>"
            "<th style='padding: 6px;'>xarray String Key</th>"
            "<th style='padding: 6px;'>Unit</th>"
            "<th style='padding: 6px;'>Description</th>"
            "</tr>" + "".join(rows) + "</table></div>"
        )


class XsubAttributes(BaseVocabulary):
    """Official metadata attribute keys for xsubspec xarray objects (`.attrs`)."""

    reference_frequency = XsubTerm(
        "reference_frequency",
        description=(
            "The measured Larmor frequency of the target nucleus (the transmitter "
            "frequency of the acquisition). Converts chemical-shift differences in "
            "ppm into frequency differences in Hz."
        ),
        unit="MHz",
    )

    carrier_ppm = XsubTerm(
        "carrier_ppm",
        description=(
            "The absolute chemical shift at the center of the RF excitation "
            "bandwidth, i.e. the chemical shift located at 0 Hz in the digitized "
            "baseband signal. Typically water (4.68 ppm) for 1H MRS."
        ),
        unit="ppm",
    )

    spectral_width = XsubTerm(
        "spectral_width",
        description=(
            "Sampling bandwidth of the acquisition, the inverse of the dwell time."
        ),
        unit="Hz",
    )

    # --- Per-signal correction lineage ---
    frequency_shift = XsubTerm(
        "frequency_shift",
        description="Frequency correction applied to the time-domain signal.",
        unit="Hz",
    )
    phase_shift = XsubTerm(
        "phase_shift",
        description="Zero-order phase correction applied to the time-domain signal.",
        unit="degrees",
    )

    # --- Provenance of the sub-spectrum alignment ---
    align_method = XsubTerm(
        "align_method", description="Name of the method that aligned the sub-spectra."
    )
    align_details = XsubTerm(
        "align_details",
        description="Free-text summary of the bands and dimension used for alignment.",
    )
    align_references = XsubTerm(
        "align_references",
        description="Ordered list of reference bands, one per alignment step.",
    )


class XsubDimensions(BaseVocabulary):
    """Official dimension names for xsubspec xarray objects (`.dims`)."""

    time = XsubTerm(
        "time", description="Time-domain dimension for Free Induction Decay (FID) data."
    )
    frequency = XsubTerm(
        "frequency", description="Frequency-domain dimension for spectral data."
    )
    chemical_shift = XsubTerm(
        "chemical_shift", description="Frequency-domain dimension expressed in ppm."
    )
    edit = XsubTerm(
        "edit",
        description=(
            "Dimension enumerating the sub-experiments (editing conditions) of a "
            "multiplexed acquisition, in acquisition order A, B, C, D."
        ),
    )
    step = XsubTerm(
        "step", description="Dimension enumerating the sequential alignment steps."
    )

    # --- Dimensions that must be reduced before alignment ---
    average = XsubTerm(
        "average", description="Dimension for multiple signal acquisitions/averages."
    )
    coil = XsubTerm("coil", description="Dimension for multi-coil phased array data.")


class XsubCoordinates(BaseVocabulary):
    """Official coordinate names for xsubspec xarray objects (`.coords`)."""

    time = XsubTerm("time", description="Time coordinates.", unit="s")
    frequency = XsubTerm("frequency", description="Frequency coordinates.", unit="Hz")
    chemical_shift = XsubTerm(
        "chemical_shift", description="Chemical shift coordinates.", unit="ppm"
    )
    step = XsubTerm(
        "step", description="Sub-experiment pair of an alignment step, e.g. 'A/B'."
    )
    band = XsubTerm(
        "band", description="Center of the spectral band used for an alignment step."
    )


class XsubDataVars(BaseVocabulary):
    """Official data variable names for xsubspec xarray Datasets (`.data_vars`)."""

    data = XsubTerm("data", description="The aligned time-domain sub-spectra.")

    frequency_shift = XsubTerm(
        "frequency_shift",
        description="Fitted frequency correction of each alignment step.",
        unit="Hz",
    )

    phase_shift = XsubTerm(
        "phase_shift",
        description="Fitted zero-order phase correction of each alignment step.",
        unit="degrees",
    )


# =============================================================================
# Global Singletons
# =============================================================================
ATTRS = XsubAttributes()
DIMS = XsubDimensions()
COORDS = XsubCoordinates()
VARS = XsubDataVars()

# Positional labels of the sub-experiments along `DIMS.edit`
SUBSPECTRUM_LABELS = ("A", "B", "C", "D")
