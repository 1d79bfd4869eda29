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

"""Assignment of peaks to isotope series (features)."""
import numpy as np
from xideisotope.isotope_chain import extend_isotope_chain
from xideisotope.xi_logging import log


class PeakStates:
    """
    Per peak state collected while assigning features.

    All arrays are indexed like the peaks of the spectrum the states were created for.

    :ivar feature_ids: (ndarray, int) feature a peak belongs to (-1: unassigned)
    :ivar charges: (ndarray, int) charge of monoisotopic peaks (0 for all other peaks)
    :ivar iso_peak_counts: (ndarray, int) number of isotope peaks of the series a monoisotopic
        peak starts (1 for all other peaks)
    :ivar intensities: (ndarray, float) peak intensities - for monoisotopic peaks summed up over
        the series if intensities are added up
    """

    def __init__(self, int_values):
        n_peaks = len(int_values)
        self.feature_ids = np.full(n_peaks, -1, dtype=np.intp)
        self.charges = np.zeros(n_peaks, dtype=np.int32)
        self.iso_peak_counts = np.ones(n_peaks, dtype=np.int32)
        self.intensities = np.array(int_values, dtype=np.float64)
        self.feature_count = 0

    @property
    def monoisotopic_mask(self):
        """Boolean mask of the monoisotopic peaks."""
        return self.charges != 0

    @property
    def unassigned_mask(self):
        """Boolean mask of the peaks not belonging to any feature."""
        return self.feature_ids < 0


class FeatureAssigner:
    """
    Group the peaks of a spectrum into isotope series.

    Features are found in two passes. The first pass only starts at the seed peaks (the locally
    most intense peaks) so that these claim their isotope series before a weaker neighbouring
    peak could take one of them as its own isotope peak. The second pass starts at every peak
    still unassigned. A peak is assigned to at most one feature - the first one to claim it.
    """

    def __init__(self, spectrum, config, tolerance, is_ppm):
        """
        Initialise the FeatureAssigner.

        :param spectrum: (Spectrum) m/z sorted spectrum - only read
        :param config: (DeisotoperConfig) deisotoping settings
        :param tolerance: (float) fragment tolerance
        :param is_ppm: (bool) whether tolerance is given in ppm
        """
        self.spectrum = spectrum
        self.config = config
        self.tolerance = tolerance
        self.is_ppm = is_ppm
        self.states = PeakStates(spectrum.int_values)
        self.precursor_mass = spectrum.precursor_mass if spectrum.has_precursor_data else None

    def run(self, seeds):
        """
        Run the seed pass and then the pass over all peaks.

        :param seeds: (ndarray, int) ascending indices of the seed peaks
        :return: (PeakStates) the resulting assignments
        """
        self.assign(seeds, check_noise_ratio=True)
        self.assign(np.arange(len(self.spectrum)),
                    check_noise_ratio=self.config.noise_ratio_check_all_passes)
        log(f"{self.spectrum.scan_id}: {self.states.feature_count} isotope series found")
        return self.states

    def assign(self, peak_indices, check_noise_ratio):
        """
        Try to start an isotope series at each of the given peaks.

        Charges are tested from high to low, the first charge yielding a valid isotope chain
        wins.

        :param peak_indices: (iterable of int) peaks to start from, in processing order
        :param check_noise_ratio: (bool) reject too weak first isotope peaks
        """
        config = self.config
        states = self.states
        mz_values = self.spectrum.mz_values
        charges = range(config.max_charge, config.min_charge - 1, -1)
        for peak in peak_indices:
            if states.feature_ids[peak] != -1:
                continue
            tolerance = self.spectrum.tolerance_at(mz_values[peak], self.tolerance, self.is_ppm)
            for charge in charges:
                chain = extend_isotope_chain(self.spectrum, peak, charge, config, tolerance,
                                             check_noise_ratio=check_noise_ratio,
                                             precursor_mass=self.precursor_mass)
                if chain.valid:
                    self._claim(chain, charge)
                    break

    def _claim(self, chain, charge):
        """Register a valid chain as new feature."""
        states = self.states
        peaks = np.asarray(chain.peaks, dtype=np.intp)
        # peaks claimed by an earlier feature stay with it
        new_peaks = peaks[states.feature_ids[peaks] == -1]
        monoisotopic = peaks[0]

        states.feature_ids[new_peaks] = states.feature_count
        states.charges[monoisotopic] = charge
        states.iso_peak_counts[monoisotopic] = len(chain)
        if self.config.add_up_intensity:
            isotope_peaks = new_peaks[new_peaks != monoisotopic]
            states.intensities[monoisotopic] += self.spectrum.int_values[isotope_peaks].sum()
        states.feature_count += 1
