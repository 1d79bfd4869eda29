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

import numpy as np
from xideisotope.filters.base_filter import BaseFilter
from xideisotope.filters.charge_reducer import charge_reduce_mz
from xideisotope.filters.denoise_filter import select_seed_peaks
from xideisotope.feature_assignment import FeatureAssigner
from xideisotope.config import Config, DeisotoperConfig
from xideisotope.context_base import ContextBase
from xideisotope import const


class Deisotoper(BaseFilter):
    """
    Detect isotope series, assign charge states and reduce them to their monoisotopic peaks.

    Which peaks survive:
        - monoisotopic peaks of detected isotope series
        - peaks not assigned to any series (unless `keep_only_deisotoped`)
        - the most intense peak of every 4 m/z window (seed peaks), even if they are isotope peaks
        - peaks below 154 m/z (low mass marker ions are often only ~1 Da apart)
    """

    def __init__(self, context):
        """
        Initialise the Deisotoper.

        :param context: (ContextBase) context including the config
        """
        BaseFilter.__init__(self, context)
        self.deisotoping_config = self.config.deisotoping

    def process(self, spectrum):
        """
        Process a spectrum, returning a deisotoped version.

        :param spectrum: (Spectrum) m/z sorted spectrum
        :return: (Spectrum) deisotoped, m/z sorted copy of the spectrum
        :raises ValueError: on inconsistent settings or if the spectrum is not sorted by m/z
        """
        config = self.deisotoping_config
        config.validate()
        if not spectrum.is_sorted():
            raise ValueError(f"Spectrum must be sorted by m/z ({spectrum.scan_id})")

        if len(spectrum) == 0:
            new_spec = spectrum.copy()
            self._annotate(new_spec, np.zeros(0, dtype=np.int32), np.ones(0, dtype=np.int32))
            return new_spec

        tolerance, is_ppm = self.context.get_fragment_tolerance(spectrum.source_path)
        seeds = select_seed_peaks(spectrum)
        states = FeatureAssigner(spectrum, config, tolerance, is_ppm).run(seeds)

        keep = select_peaks(spectrum.mz_values, states, seeds, config.keep_only_deisotoped)

        new_spec = spectrum.copy()
        if config.add_up_intensity:
            new_spec.int_values = states.intensities.copy()
        if config.make_single_charged:
            new_spec.mz_values = charge_reduce_mz(spectrum.mz_values, states.charges)
        self._annotate(new_spec, states.charges, states.iso_peak_counts)

        # the single charge conversion can break the m/z order
        return new_spec.select(np.flatnonzero(keep)).sort_by_mz()

    def _annotate(self, spectrum, charges, iso_peak_counts):
        """Attach the requested integer arrays."""
        if self.deisotoping_config.annotate_charge:
            spectrum.set_integer_array(const.CHARGE_ARRAY, charges)
        if self.deisotoping_config.annotate_iso_peak_count:
            spectrum.set_integer_array(const.ISO_PEAK_COUNT_ARRAY, iso_peak_counts)


def select_peaks(mz_values, states, seeds, keep_only_deisotoped):
    """
    Decide which peaks are kept.

    :param mz_values: (ndarray) original (m/z sorted) m/z values
    :param states: (PeakStates) feature assignments
    :param seeds: (ndarray, int) indices of the seed peaks
    :param keep_only_deisotoped: (bool) drop peaks not assigned to any isotope series
    :return: (ndarray, bool) mask of the peaks to keep
    """
    keep = states.monoisotopic_mask
    if not keep_only_deisotoped:
        keep |= states.unassigned_mask
    keep[seeds] = True
    # peaks are sorted - so everything before the first peak above the threshold is low m/z
    keep[:np.searchsorted(mz_values, const.LOW_MZ_MARKER_THRESHOLD, side='left')] = True
    return keep


def deisotope_and_single_charge(spectrum, **settings):
    """
    Deisotope a single spectrum.

    Convenience wrapper around `Deisotoper` taking the deisotoping settings directly.

    :param spectrum: (Spectrum) m/z sorted spectrum
    :param settings: settings of `DeisotoperConfig` (e.g. fragment_tolerance=10,
        fragment_unit_is_ppm=True, min_charge=1, max_charge=3, ...)
    :return: (Spectrum) deisotoped copy of the spectrum
    :raises ValueError: on inconsistent settings or if the spectrum is not sorted by m/z
    """
    config = Config(deisotoping=DeisotoperConfig(**settings))
    return Deisotoper(ContextBase(config)).process(spectrum)
