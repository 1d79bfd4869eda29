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


def charge_reduce_mz(mz_values, charge_values):
    """
    Convert m/z values to the m/z of the singly charged ions.

    Values with unknown charge (0) are returned unchanged.

    :param mz_values: (ndarray) m/z values
    :param charge_values: (ndarray) charge states
    :return: (ndarray) singly charged m/z values
    """
    mz_values = np.asarray(mz_values, dtype=np.float64)
    charge_values = np.asarray(charge_values)
    charge_reduced_mz = mz_values * charge_values - (charge_values - 1) * const.PROTON_MASS
    return np.where(charge_values == 0, mz_values, charge_reduced_mz)


class ChargeReducer(BaseFilter):
    """
    Reduce peaks in a charge annotated spectrum to singly charged peaks.

    Peaks with charges >1 get the m/z of the singly charged ion. Peaks with unknown charge
    state (0) are unaffected. The charge annotation of reduced peaks becomes 1.
    """

    config_needed = False

    def process(self, spectrum):
        """
        Process a spectrum, returning a charged reduced version.

        :param spectrum: (Spectrum) Spectrum with a 'charge' integer array
        :return: (Spectrum) charged reduced and m/z sorted copy of the spectrum
        """
        if const.CHARGE_ARRAY not in spectrum.integer_arrays:
            raise ValueError("Spectrum has no charge annotation")

        charge_values = spectrum.integer_arrays[const.CHARGE_ARRAY]
        new_spec = spectrum.copy()
        new_spec.mz_values = charge_reduce_mz(spectrum.mz_values, charge_values)
        new_spec.integer_arrays[const.CHARGE_ARRAY] = \
            (charge_values != 0).astype(charge_values.dtype)

        return new_spec.sort_by_mz()
