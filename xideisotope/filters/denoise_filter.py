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
from xideisotope import const


def jumping_window_top_n(mz_values, int_values, window_size, top_n):
    """
    Select the most intense peaks per m/z window (jumping window).

    The first window starts at the first peak. Each following window starts at the first peak
    not covered by the previous window, so gaps without peaks do not produce empty windows.
    Within a window peaks of equal intensity are ranked by their index.

    :param mz_values: (ndarray) m/z sorted peak m/z values
    :param int_values: (ndarray) peak intensities
    :param window_size: (float) width of the windows in m/z
    :param top_n: (int) number of peaks to select per window
    :return: (ndarray, int) ascending indices of the selected peaks
    """
    n_peaks = len(mz_values)
    selected = []
    window_start = 0
    while window_start < n_peaks:
        window_end = int(np.searchsorted(mz_values, mz_values[window_start] + window_size,
                                         side='left'))
        # a window always covers at least its first peak
        window_end = max(window_end, window_start + 1)
        intensities = int_values[window_start:window_end]
        # stable sort on negated intensities: highest first, ties by index
        ranking = np.argsort(-intensities, kind='stable')[:top_n]
        selected.append(ranking + window_start)
        window_start = window_end

    if len(selected) == 0:
        return np.array([], dtype=np.intp)
    return np.sort(np.concatenate(selected)).astype(np.intp)


def select_seed_peaks(spectrum, window_size=const.SEED_WINDOW_SIZE):
    """
    Find the locally dominant peaks of a spectrum.

    :param spectrum: (Spectrum) m/z sorted spectrum
    :param window_size: (float) width of the jumping window
    :return: (ndarray, int) ascending indices of the most intense peak of every window
    """
    return jumping_window_top_n(spectrum.mz_values, spectrum.int_values, window_size, 1)


class DenoiseFilter(BaseFilter):
    """
    Filter to denoise a spectrum.

    Picking the n highest intensity peaks per m/z window (jumping window).
    """

    def __init__(self, context, denoise_setting='denoise'):
        """
        Initialise the DenoiseFilter.

        :param context: (ContextBase) context including the config
        :param denoise_setting: (str) key of the denoise setting to use from the config.
        """
        BaseFilter.__init__(self, context)
        self.denoise_config = getattr(self.config, denoise_setting)

    def process(self, spectrum):
        """
        Process a spectrum, returning a denoised version.

        Integer arrays of the spectrum are subset together with the peaks.

        :param spectrum: (Spectrum) Spectrum to denoise
        :return: (Spectrum) Denoised copy of the spectrum
        """
        if not spectrum.is_sorted():
            spectrum = spectrum.sort_by_mz()
        selected = jumping_window_top_n(spectrum.mz_values, spectrum.int_values,
                                        self.denoise_config.window_size,
                                        self.denoise_config.top_n)
        return spectrum.select(selected)
