# Copyright (C) 2025  Technische Universitaet Berlin
#
# This library is free software; you can redistribute it and/or
# modify it under the terms of the GNU Lesser General Public
# License as published by the Free Software Foundation; either
# version 3 of the License, or (at your option) any later version.
#
# This library is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this library; if not, write to the Free Software
# Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA  02110-1301
# USA

from xideisotope.feature_assignment import FeatureAssigner, PeakStates
from xideisotope.filters.denoise_filter import select_seed_peaks
from xideisotope.config import DeisotoperConfig
from xideisotope.synthetic_spectra import create_isotope_pattern_spectrum
from xideisotope.spectra_reader import Spectrum
from xideisotope import const
from numpy.testing import assert_array_equal, assert_allclose
import numpy as np


def run_assigner(spectrum, **settings):
    config = DeisotoperConfig(fragment_tolerance=0.01, fragment_unit_is_ppm=False, **settings)
    assigner = FeatureAssigner(spectrum, config, config.fragment_tolerance,
                               config.fragment_unit_is_ppm)
    return assigner.run(select_seed_peaks(spectrum))


def overlapping_spectrum():
    # weak peak one isotope spacing below a charge 1 series
    return create_isotope_pattern_spectrum(
        [(500.0, 1, 1000, 3)],
        extra_peaks=[(500.0 - const.C12C13_MASS_DIFF, 100)])


def test_peak_states_init():
    states = PeakStates(np.array([1.0, 2.0, 3.0]))
    assert_array_equal(states.feature_ids, [-1, -1, -1])
    assert_array_equal(states.charges, [0, 0, 0])
    assert_array_equal(states.iso_peak_counts, [1, 1, 1])
    assert_array_equal(states.intensities, [1, 2, 3])
    assert_array_equal(states.monoisotopic_mask, [False, False, False])
    assert_array_equal(states.unassigned_mask, [True, True, True])
    assert states.feature_count == 0


def test_single_series():
    spectrum = create_isotope_pattern_spectrum([(600.0, 2, 1000, 4)], extra_peaks=[(700, 50)])
    states = run_assigner(spectrum)
    assert_array_equal(states.feature_ids, [0, 0, 0, 0, -1])
    assert_array_equal(states.charges, [2, 0, 0, 0, 0])
    assert_array_equal(states.iso_peak_counts, [4, 1, 1, 1, 1])
    assert states.feature_count == 1


def test_charges_tested_from_high_to_low():
    # a charge 2 series also contains a charge 1 spaced series (every second peak)
    spectrum = create_isotope_pattern_spectrum([(600.0, 2, 1000, 6)], decay=0.9)
    states = run_assigner(spectrum, min_charge=1, max_charge=2)
    assert states.charges[0] == 2
    assert states.iso_peak_counts[0] == 6

    states = run_assigner(spectrum, min_charge=1, max_charge=1)
    assert states.charges[0] == 1
    assert_array_equal(states.feature_ids[[0, 2, 4]], [0, 0, 0])


def test_seed_claims_first():
    spectrum = overlapping_spectrum()
    states = run_assigner(spectrum, min_charge=1, max_charge=1)
    # the seed (500.0) takes its series, the weaker peak below gets its own feature
    # that reuses the already claimed peaks
    assert_array_equal(states.feature_ids, [1, 0, 0, 0])
    assert_array_equal(states.charges, [1, 1, 0, 0])
    assert_array_equal(states.iso_peak_counts, [4, 3, 1, 1])
    assert states.feature_count == 2


def test_features_are_disjoint():
    spectrum = overlapping_spectrum()
    states = run_assigner(spectrum, min_charge=1, max_charge=1)
    for feature in range(states.feature_count):
        members = np.flatnonzero(states.feature_ids == feature)
        assert len(members) > 0
        # every feature has exactly one monoisotopic peak
        assert np.sum(states.charges[members] != 0) == 1


def test_add_up_intensity():
    spectrum = overlapping_spectrum()
    states = run_assigner(spectrum, min_charge=1, max_charge=1, add_up_intensity=True)
    # only peaks claimed by a feature are added to its monoisotopic peak
    assert_allclose(states.intensities, [100, 1000 + 600 + 360, 600, 360])
    # the spectrum itself is unchanged
    assert_allclose(spectrum.int_values, [100, 1000, 600, 360])


def test_noise_ratio_only_in_seed_pass():
    # weak peak in front of a strong series - weak in relation to the strong peak, so only
    # found when starting from the strong peak without noise ratio check
    spectrum = Spectrum(None, [500.0, 500.0 + const.C12C13_MASS_DIFF,
                               500.0 + 2 * const.C12C13_MASS_DIFF],
                        [1000, 5, 3], 'noise')
    states = run_assigner(spectrum, min_charge=1, max_charge=1)
    assert_array_equal(states.feature_ids, [0, 0, 0])

    states = run_assigner(spectrum, min_charge=1, max_charge=1,
                          noise_ratio_check_all_passes=True)
    assert_array_equal(states.feature_ids, [-1, -1, -1])
    assert states.feature_count == 0


def test_no_features_for_single_peaks():
    spectrum = Spectrum(None, [300.0, 700.0], [10, 20], 'single')
    states = run_assigner(spectrum)
    assert_array_equal(states.feature_ids, [-1, -1])
    assert_array_equal(states.charges, [0, 0])
    assert states.feature_count == 0


def test_precursor_limits_charges():
    spectrum = create_isotope_pattern_spectrum(
        [(600.0, 2, 1000, 4)], precursor={'mz': 400.0, 'charge': 2})
    states = run_assigner(spectrum, min_charge=1, max_charge=2)
    # a doubly charged 600 m/z ion is heavier than the precursor
    assert states.charges[0] != 2

    spectrum = create_isotope_pattern_spectrum(
        [(600.0, 2, 1000, 4)], precursor={'mz': 1000.0, 'charge': np.nan})
    states = run_assigner(spectrum, min_charge=1, max_charge=2)
    # no precursor charge - no limit
    assert states.charges[0] == 2
