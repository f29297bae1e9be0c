"""
Tests for plan selection and sequential sub-spectrum alignment.

### What This Module Tests
1. Plan selection: scheme resolution, band tables, target validation.
2. Input validation: configuration and precondition errors fire before fitting.
3. Two-way end-to-end: a drifted ON/OFF pair is brought back into register.
4. Four-way end-to-end: step order, use of the corrected C, provenance.
5. Batch dimensions: independent datasets, serial and parallel.
"""

import numpy as np
import pytest
import xarray as xr

import xsubspec.alignment.orchestrator as orchestrator
from xsubspec import (
    AlignmentProvenance,
    ConfigurationError,
    EditingScheme,
    PreconditionError,
    align_subspectra,
    build_plan,
    simulate_subspectra,
    to_ppm,
    to_spectrum,
)
from xsubspec.alignment.schemes import CHOLINE, CHOLINE_FOR_WATER, NAA, WATER
from xsubspec.core.config import ATTRS, COORDS, DIMS, VARS

PEAKS_PPM = [4.68, 3.20, 2.01]
AMPLITUDES = [1.0, 0.6, 0.8]


def _subspectra(frequency_offsets, phase_offsets=None):
    return simulate_subspectra(
        AMPLITUDES,
        PEAKS_PPM,
        frequency_offsets=frequency_offsets,
        phase_offsets=phase_offsets,
    )


@pytest.fixture
def two_way_da():
    """ON/OFF pair, B drifted by +3 Hz and +10 degrees."""
    return _subspectra((0.0, 3.0), (0.0, 10.0))


@pytest.fixture
def four_way_da():
    """B = A + 2 Hz, C = A - 1 Hz, D = C + 4 Hz."""
    return _subspectra((0.0, 2.0, -1.0, 3.0))


@pytest.fixture
def edited_four_way_da():
    """Noisy HERMES-like data: phase drift in every condition, 3.75 ppm edited.

    B = A + 2 Hz / 10 deg, C = A - 1 Hz / -15 deg, D = A + 3 Hz / 20 deg. The
    edited resonance only appears in B and C, away from every anchor band.
    """
    amplitudes = [
        [1.0, 0.0, 0.6, 0.8],
        [1.0, 0.4, 0.6, 0.8],
        [1.0, 0.4, 0.6, 0.8],
        [1.0, 0.0, 0.6, 0.8],
    ]
    return simulate_subspectra(
        amplitudes,
        [4.68, 3.75, 3.20, 2.01],
        frequency_offsets=(0.0, 2.0, -1.0, 3.0),
        phase_offsets=(0.0, 10.0, -15.0, 20.0),
        target_snr=50,
        seed=7,
    )


# =============================================================================
# 1. Plan selection
# =============================================================================


class TestBuildPlan:
    @pytest.mark.parametrize(
        "sequence, scheme",
        [
            ("MEGA", EditingScheme.TWO_WAY),
            ("mega", EditingScheme.TWO_WAY),
            ("HERMES", EditingScheme.FOUR_WAY),
            ("HERCULES", EditingScheme.FOUR_WAY),
            (EditingScheme.TWO_WAY, EditingScheme.TWO_WAY),
        ],
    )
    def test_scheme_resolution(self, sequence, scheme):
        targets = "GABA" if scheme is EditingScheme.TWO_WAY else None
        assert build_plan(sequence, targets).scheme is scheme

    @pytest.mark.parametrize(
        "target, band",
        [("GABA", WATER), ("GSH", NAA), ("Lac", NAA), ("PE322", NAA), ("PE398", NAA)],
    )
    def test_two_way_bands(self, target, band):
        plan = build_plan("MEGA", target)
        assert len(plan.steps) == 1
        assert plan.steps[0].band == band
        assert (plan.steps[0].reference, plan.steps[0].moving) == (0, 1)

    def test_two_way_unstable_water_uses_choline(self):
        plan = build_plan("MEGA", "GABA", unstable_water=True)
        assert plan.steps[0].band == CHOLINE_FOR_WATER
        assert plan.references == ("3.22 ppm (A/B)",)

    def test_unstable_water_leaves_naa_alone(self):
        assert build_plan("MEGA", "GSH", unstable_water=True).steps[0].band == NAA

    def test_targets_are_case_insensitive(self):
        assert build_plan("MEGA", "gsh").targets == ("GSH",)

    def test_four_way_default_targets(self):
        plan = build_plan("HERMES")
        assert plan.targets == ("GABA", "GSH")
        assert [s.band for s in plan.steps] == [WATER, NAA, CHOLINE]
        assert [s.label for s in plan.steps] == ["A/B", "A/C", "C/D"]

    @pytest.mark.parametrize("pair", [("GABA", "Lac"), ("GABA", "EtOH")])
    def test_four_way_gaba_pairs(self, pair):
        plan = build_plan("HERMES", pair)
        assert [s.band for s in plan.steps] == [WATER, NAA, CHOLINE]

    def test_four_way_naa_naag(self):
        plan = build_plan("HERMES", ("NAA", "NAAG"), unstable_water=True)
        assert [s.band for s in plan.steps] == [NAA, NAA, NAA]

    def test_four_way_unstable_water_only_first_band(self):
        plan = build_plan("HERMES", ("GABA", "GSH"), unstable_water=True)
        assert [s.band for s in plan.steps] == [CHOLINE_FOR_WATER, NAA, CHOLINE]

    def test_four_way_references(self):
        assert build_plan("HERCULES").references == (
            "4.68 ppm (A/B)",
            "2.01 ppm (A/C)",
            "3.20 ppm (C/D)",
        )

    @pytest.mark.parametrize(
        "sequence, targets, match",
        [
            ("PRESS", "GABA", "Unrecognized editing scheme"),
            ("MEGA", None, "exactly one"),
            ("MEGA", ("GABA", "GSH"), "exactly one"),
            ("MEGA", "EtOH", "not supported for two-way"),
            ("MEGA", "Glx", "not recognized"),
            ("HERMES", ("GABA",), "ordered pair"),
            ("HERMES", ("GSH", "GABA"), "not supported for four-way"),
        ],
    )
    def test_invalid_configurations(self, sequence, targets, match):
        with pytest.raises(ConfigurationError, match=match):
            build_plan(sequence, targets)


# =============================================================================
# 2. Input validation
# =============================================================================


class TestAlignSubspectraValidation:
    def test_configuration_checked_before_data(self):
        """A bad scheme is reported even when the data is unusable."""
        with pytest.raises(ConfigurationError):
            align_subspectra(xr.DataArray(np.zeros(4), dims=["x"]), "PRESS")

    def test_wrong_number_of_subspectra(self, two_way_da):
        with pytest.raises(ConfigurationError, match="4 sub-experiments"):
            align_subspectra(two_way_da, "HERMES")

    def test_missing_edit_dim(self, two_way_da):
        with pytest.raises(ValueError, match="missing dimension"):
            align_subspectra(two_way_da.isel({DIMS.edit: 0}), "MEGA", "GABA")

    def test_missing_attrs(self, two_way_da):
        bare = two_way_da.copy()
        bare.attrs = {}
        with pytest.raises(ValueError, match="missing attributes"):
            align_subspectra(bare, "MEGA", "GABA")

    @pytest.mark.parametrize("target", ["GABA", "GSH"])
    def test_missing_time_coordinate(self, two_way_da, target):
        """Without sample times the fit would run on integer positions."""
        with pytest.raises(ValueError, match="assign_coords"):
            align_subspectra(two_way_da.drop_vars(DIMS.time), "MEGA", target)

    def test_unaveraged_data(self, two_way_da):
        stacked = xr.concat([two_way_da, two_way_da], dim=DIMS.average)
        with pytest.raises(PreconditionError, match="average"):
            align_subspectra(stacked, "MEGA", "GABA")

    def test_real_data(self, two_way_da):
        real = two_way_da.real.assign_attrs(two_way_da.attrs)
        with pytest.raises(PreconditionError, match="complex"):
            align_subspectra(real, "MEGA", "GABA")

    def test_singleton_coil_is_squeezed(self, two_way_da):
        ds = align_subspectra(two_way_da.expand_dims({DIMS.coil: 1}), "MEGA", "GSH")
        assert DIMS.coil not in ds[VARS.data].dims


# =============================================================================
# 3. Two-way end-to-end
# =============================================================================


class TestTwoWay:
    @pytest.mark.parametrize("target", ["GABA", "GSH"])
    def test_recovers_drift(self, two_way_da, target):
        ds = align_subspectra(two_way_da, "MEGA", targets=target)

        f = ds[VARS.frequency_shift].sel({COORDS.step: "A/B"}).item()
        phi = ds[VARS.phase_shift].sel({COORDS.step: "A/B"}).item()
        assert f == pytest.approx(-3.0, abs=0.5)
        assert phi == pytest.approx(-10.0, abs=2.0)

        data = ds[VARS.data]
        np.testing.assert_allclose(
            data.isel({DIMS.edit: 1}).values,
            data.isel({DIMS.edit: 0}).values,
            atol=1e-3,
        )

    def test_unstable_water_anchors_on_choline(self, two_way_da):
        ds = align_subspectra(two_way_da, "MEGA", "GABA", unstable_water=True)
        assert ds.coords[COORDS.band].values.tolist() == ["3.22 ppm"]
        assert ds[VARS.frequency_shift].item() == pytest.approx(-3.0, abs=0.5)

    def test_output_layout(self, two_way_da):
        ds = align_subspectra(two_way_da, "MEGA", "GABA")

        assert ds[VARS.data].dims == two_way_da.dims
        assert ds[VARS.data].coords[DIMS.edit].values.tolist() == ["A", "B"]
        assert ds[VARS.frequency_shift].dims == (DIMS.step,)
        assert ds[VARS.frequency_shift].attrs["units"] == "Hz"
        assert ds[VARS.phase_shift].attrs["units"] == "degrees"
        assert ds.coords[COORDS.step].values.tolist() == ["A/B"]
        assert ds.coords[COORDS.band].values.tolist() == ["4.68 ppm"]
        assert ds.attrs[ATTRS.reference_frequency] == 127.7

    def test_reference_is_untouched(self, two_way_da):
        before = two_way_da.values.copy()
        ds = align_subspectra(two_way_da, "MEGA", "GABA")
        np.testing.assert_array_equal(two_way_da.values, before)
        np.testing.assert_array_equal(
            ds[VARS.data].isel({DIMS.edit: 0}).values, before[0]
        )

    def test_provenance(self, two_way_da):
        ds = align_subspectra(two_way_da, "MEGA", "GABA")
        prov = ds.xsub.provenance

        assert isinstance(prov, AlignmentProvenance)
        assert prov.method == "Alignment of subtraction sub-spectra"
        assert prov.details.startswith("L2 optimization of ON/OFF spectra")
        assert "dim = edit" in prov.details
        assert prov.references == ("4.68 ppm (A/B)",)
        assert ds.attrs[ATTRS.align_references] == ["4.68 ppm (A/B)"]

    def test_accessor(self, two_way_da):
        ds = two_way_da.xsub.align_subspectra("MEGA", targets="GSH")
        assert ds[VARS.frequency_shift].item() == pytest.approx(-3.0, abs=0.5)

    def test_custom_dim_names(self, two_way_da):
        renamed = two_way_da.rename({DIMS.edit: "condition", DIMS.time: "t"})
        ds = align_subspectra(renamed, "MEGA", "GABA", dim="t", edit_dim="condition")
        assert ds[VARS.data].dims == ("condition", "t")
        assert "dim = condition" in ds.xsub.provenance.details


# =============================================================================
# 4. Four-way end-to-end
# =============================================================================


class TestFourWay:
    def test_recovers_each_step(self, four_way_da):
        ds = align_subspectra(four_way_da, "HERMES", ("GABA", "GSH"))

        np.testing.assert_allclose(
            ds[VARS.frequency_shift].values, [-2.0, 1.0, -3.0], atol=0.5
        )
        np.testing.assert_allclose(ds[VARS.phase_shift].values, 0.0, atol=2.0)

        data = ds[VARS.data].values
        for k in (1, 2, 3):
            np.testing.assert_allclose(data[k], data[0], atol=1e-3)

    def test_noisy_edited_data_with_phase_drift(self, edited_four_way_da):
        ds = align_subspectra(edited_four_way_da, "HERMES", ("GABA", "GSH"))
        f = ds[VARS.frequency_shift].values
        phi = ds[VARS.phase_shift].values

        np.testing.assert_allclose(f, [-2.0, 1.0, -3.0], atol=0.5)
        np.testing.assert_allclose(phi, [-10.0, 15.0, -20.0], atol=3.0)
        # D is fitted against the corrected C, not the raw one (-35 deg)
        assert abs(phi[2] + 35.0) > 10.0

    def test_edited_resonance_survives_subtraction(self, edited_four_way_da):
        ds = align_subspectra(edited_four_way_da, "HERMES", ("GABA", "GSH"))
        spec = to_ppm(to_spectrum(ds[VARS.data]))
        ppm = spec.coords[COORDS.chemical_shift]
        diff = (spec.sel({DIMS.edit: "B"}) - spec.sel({DIMS.edit: "A"})).real

        edited = diff.where(abs(ppm - 3.75) < 0.05).max().item()
        anchor = abs(diff.where(abs(ppm - 2.01) < 0.05)).max().item()
        assert edited > 3 * anchor

    def test_steps_run_in_order_on_corrected_c(self, four_way_da, monkeypatch):
        calls = []
        real_align_pair = orchestrator.align_pair

        def recording_align_pair(reference, moving, band, **kwargs):
            calls.append(
                (
                    reference[DIMS.edit].item(),
                    moving[DIMS.edit].item(),
                    ATTRS.frequency_shift in reference.attrs,
                )
            )
            return real_align_pair(reference, moving, band, **kwargs)

        monkeypatch.setattr(orchestrator, "align_pair", recording_align_pair)
        align_subspectra(four_way_da, "HERMES")

        assert calls == [
            ("A", "B", False),
            ("A", "C", False),
            ("C", "D", True),
        ]

    def test_provenance(self, four_way_da):
        ds = align_subspectra(four_way_da, "HERCULES")
        prov = ds.xsub.provenance

        assert prov.details.startswith("L2 optimization of HADAMARD spectra")
        assert prov.references == (
            "4.68 ppm (A/B)",
            "2.01 ppm (A/C)",
            "3.20 ppm (C/D)",
        )
        assert ds.coords[COORDS.step].values.tolist() == ["A/B", "A/C", "C/D"]
        assert ds.coords[COORDS.band].values.tolist() == [
            "4.68 ppm",
            "2.01 ppm",
            "3.20 ppm",
        ]

    def test_naa_naag_scheme(self, four_way_da):
        ds = align_subspectra(four_way_da, "HERMES", ("NAA", "NAAG"))
        np.testing.assert_allclose(
            ds[VARS.frequency_shift].values, [-2.0, 1.0, -3.0], atol=0.5
        )


# =============================================================================
# 5. Batch dimensions
# =============================================================================


@pytest.fixture
def voxel_da():
    """Three independent ON/OFF pairs with different B drifts, stacked on 'voxel'."""
    drifts = [1.5, -2.0, 4.0]
    pairs = [_subspectra((0.0, d), (0.0, 5.0)) for d in drifts]
    da = xr.concat(pairs, dim="voxel").assign_coords(voxel=[10, 20, 30])
    return da.assign_attrs(pairs[0].attrs), np.array(drifts)


class TestBatch:
    def test_each_voxel_is_aligned_independently(self, voxel_da):
        da, drifts = voxel_da
        ds = align_subspectra(da, "MEGA", "GSH")

        assert ds[VARS.frequency_shift].dims == ("voxel", DIMS.step)
        assert ds[VARS.frequency_shift].coords["voxel"].values.tolist() == [10, 20, 30]
        np.testing.assert_allclose(
            ds[VARS.frequency_shift].isel({DIMS.step: 0}).values, -drifts, atol=0.5
        )
        assert ds[VARS.data].dims == da.dims

    def test_dimension_order_is_preserved(self, voxel_da):
        da, _ = voxel_da
        reordered = da.transpose(DIMS.edit, "voxel", DIMS.time)
        ds = align_subspectra(reordered, "MEGA", "GSH")
        assert ds[VARS.data].dims == (DIMS.edit, "voxel", DIMS.time)

    def test_parallel_matches_serial(self, voxel_da):
        da, _ = voxel_da
        serial = align_subspectra(da, "MEGA", "GSH", num_workers=1)
        parallel = align_subspectra(da, "MEGA", "GSH", num_workers=2)
        xr.testing.assert_allclose(serial, parallel)
