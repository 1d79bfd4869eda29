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

"""Module providing physical constants and fixed deisotoping parameters."""
import sys


class _const:
    VERSION = "1.0.0"

    PROTON_MASS = 1.007276466879
    # mass difference between 13C and 12C - spacing of isotope peaks at charge 1
    C12C13_MASS_DIFF = 1.0033548378

    # width of the jumping window used to find locally dominant (seed) peaks
    SEED_WINDOW_SIZE = 4.0
    # low m/z marker ions are often only ~1 Da apart and would otherwise be deisotoped away
    LOW_MZ_MARKER_THRESHOLD = 154.0

    # the first isotope peak may not be more than this times as intense as the monoisotopic
    # peak - otherwise it is more likely a satellite peak (e.g. amidation)
    MAX_FIRST_ISOTOPE_RATIO = 10.0
    # ... nor less than this fraction - otherwise it is more likely a noise peak
    MIN_FIRST_ISOTOPE_RATIO = 0.01

    # names of the integer data arrays written by the deisotoper
    CHARGE_ARRAY = "charge"
    ISO_PEAK_COUNT_ARRAY = "iso_peak_count"

    # as const is overwriten by _const the module __file__ variable would disapear.
    # so it is also saved into the class _const
    __file__ = __file__

    class ConstError(TypeError):
        pass

    # overwrite the __setattr__ method to raise an error if a variable is overwritten
    def __setattr__(self, name, value):
        if name in self.__dict__ or name in self.__class__.__dict__:
            raise self.ConstError("Can't rebind const(%s)" % name)
        self.__dict__[name] = value


# overwrite the module const with the class _const so that we can actually protect attributes
# from being changed
sys.modules[__name__] = _const()
