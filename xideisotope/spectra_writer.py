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

"""Module for writing (processed) spectra to peak list files."""
from pyteomics import mgf
import numpy as np
from xideisotope import const


def spectrum_to_mgf_dict(spectrum, write_charges=True):
    """
    Convert a Spectrum into the spectrum dict used by pyteomics.

    :param spectrum: (Spectrum) spectrum to convert
    :param write_charges: (bool) add the 'charge' integer array (if any) as charge column
    :return: (dict) pyteomics MGF spectrum
    """
    params = dict(spectrum.meta)
    params['title'] = spectrum.title or spectrum.scan_id
    precursor = spectrum.precursor
    if precursor is not None:
        intensity = precursor.get('intensity', np.nan)
        if intensity is not None and np.isfinite(intensity):
            params['pepmass'] = (precursor['mz'], intensity)
        else:
            params['pepmass'] = precursor['mz']
        if spectrum.has_precursor_data:
            params['charge'] = '{}+'.format(int(precursor['charge']))
    if isinstance(spectrum.rt, (int, float)) and np.isfinite(spectrum.rt):
        params['rtinseconds'] = spectrum.rt

    spectrum_dict = {
        'm/z array': spectrum.mz_values,
        'intensity array': spectrum.int_values,
        'params': params,
    }
    if write_charges and const.CHARGE_ARRAY in spectrum.integer_arrays:
        charges = spectrum.integer_arrays[const.CHARGE_ARRAY]
        # unknown charges are left empty
        spectrum_dict['charge array'] = np.ma.masked_equal(charges, 0)
    return spectrum_dict


def write_mgf(spectra, output, write_charges=True):
    """
    Write spectra into an MGF file.

    Wrapper around the pyteomics MGF writer.
    :param spectra: (iterable of Spectrum) spectra to write
    :param output: (str or file) output path or open file
    :param write_charges: (bool) write peak charges as third column where known
    :return: (int) number of spectra written
    """
    written = [0]

    def spectrum_dicts():
        for spectrum in spectra:
            written[0] += 1
            yield spectrum_to_mgf_dict(spectrum, write_charges)

    out = mgf.write(spectrum_dicts(), output, file_mode='w')
    if isinstance(output, str):
        out.close()
    return written[0]
