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

"""Extension of a putative monoisotopic peak into a series of isotope peaks."""
from collections import namedtuple
from xideisotope import const


class IsotopeChain(namedtuple('IsotopeChain', ['peaks', 'valid'])):
    """
    Isotope peaks found for one start peak and charge.

    :ivar peaks: (tuple of int) peak indices, starting with the monoisotopic peak
    :ivar valid: (bool) whether the chain is long enough to count as isotope series
    """

    __slots__ = ()

    def __len__(self):
        """Number of peaks in the chain (incl. the monoisotopic peak)."""
        return len(self.peaks)


def extend_isotope_chain(spectrum, start, charge, config, tolerance, check_noise_ratio=False,
                         precursor_mass=None):
    """
    Try to extend a peak into an isotope series of the given charge.

    Starting from `start` the peak closest to each expected isotope m/z is looked up. The
    extension stops at the first missing peak or at the first peak that fails one of the
    intensity checks (that peak is not part of the chain):
        1. decreasing model - intensity must not increase from one isotope peak to the next
           (only if `config.use_decreasing_model`, starting at
           `config.start_intensity_check_index`)
        2. the first isotope peak may not be more than 10 times as intense as the start peak
        3. the first isotope peak may not be less than 1% as intense as the start peak
           (only if `check_noise_ratio`)
    The spectrum is only read.

    :param spectrum: (Spectrum) m/z sorted spectrum
    :param start: (int) index of the putative monoisotopic peak
    :param charge: (int) charge state to test
    :param config: (DeisotoperConfig) deisotoping settings
    :param tolerance: (float) absolute matching tolerance in Dalton
    :param check_noise_ratio: (bool) reject too weak first isotope peaks
    :param precursor_mass: (float or None) neutral precursor mass - start peaks whose mass at
        this charge exceeds it are not extended
    :return: (IsotopeChain) the chain found
    """
    mz_values = spectrum.mz_values
    int_values = spectrum.int_values
    start_mz = mz_values[start]

    # masses above the precursor mass can not be a fragment of it
    if precursor_mass is not None:
        theoretical_mass = start_mz * charge - const.PROTON_MASS * charge
        if theoretical_mass > precursor_mass + tolerance:
            return IsotopeChain((start,), False)

    start_intensity = int_values[start]
    min_isotopic_peaks = config.min_isotopic_peaks
    peaks = [start]
    for i in range(1, config.max_isotopic_peaks):
        expected_mz = start_mz + i * const.C12C13_MASS_DIFF / charge
        peak = spectrum.find_nearest(expected_mz, tolerance)
        if peak is None:
            return IsotopeChain(tuple(peaks), i >= min_isotopic_peaks)

        intensity = int_values[peak]
        if config.use_decreasing_model and i >= config.start_intensity_check_index \
                and intensity > int_values[peaks[-1]]:
            return IsotopeChain(tuple(peaks), i >= min_isotopic_peaks)

        # ratios are compared as products so that zero intensities need no special handling
        if i == 1:
            if intensity > const.MAX_FIRST_ISOTOPE_RATIO * start_intensity:
                return IsotopeChain(tuple(peaks), i >= min_isotopic_peaks)
            if check_noise_ratio and intensity < const.MIN_FIRST_ISOTOPE_RATIO * start_intensity:
                return IsotopeChain(tuple(peaks), i >= min_isotopic_peaks)

        peaks.append(peak)

    return IsotopeChain(tuple(peaks), True)
