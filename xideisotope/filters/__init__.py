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

"""Module containing different filters for mass spectra."""
from xideisotope.filters.charge_reducer import ChargeReducer, charge_reduce_mz
from xideisotope.filters.denoise_filter import DenoiseFilter, jumping_window_top_n, \
    select_seed_peaks
from xideisotope.filters.deisotoper import Deisotoper, deisotope_and_single_charge, select_peaks
