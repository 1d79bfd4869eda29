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

"""Module for creating synthetic spectra made of isotope patterns."""
from xideisotope.spectra_reader import Spectrum
from xideisotope.spectra_writer import write_mgf
from xideisotope import const
import numpy as np


def isotope_pattern(mz, charge, intensity, n_peaks, decay=0.6):
    """
    Generate the peaks of an isotope series.

    :param mz: (float) m/z of the monoisotopic peak
    :param charge: (int) charge state of the series
    :param intensity: (float) intensity of the monoisotopic peak
    :param n_peaks: (int) number of peaks (incl. the monoisotopic one)
    :param decay: (float) intensity ratio between consecutive peaks
    :return: (ndarray, ndarray) m/z and intensity values
    """
    isotopes = np.arange(n_peaks)
    mz_values = mz + isotopes * const.C12C13_MASS_DIFF / charge
    int_values = intensity * decay ** isotopes
    return mz_values, int_values


def create_isotope_pattern_spectrum(clusters, extra_peaks=(), precursor=None,
                                    scan_id='synthetic', decay=0.6):
    """
    Generate a spectrum from isotope series and single peaks.

    :param clusters: (list of tuple) (mz, charge, intensity, n_peaks) of each isotope series
    :param extra_peaks: (list of tuple) (mz, intensity) of additional single peaks
    :param precursor: (dict or None) precursor information e.g. {'mz': 500.3, 'charge': 2}
    :param scan_id: (str) scan identifier - also used as title
    :param decay: (float) intensity ratio between consecutive isotope peaks
    :return: (Spectrum) m/z sorted spectrum
    """
    mz_parts = [np.zeros(0)]
    int_parts = [np.zeros(0)]
    for mz, charge, intensity, n_peaks in clusters:
        mz_values, int_values = isotope_pattern(mz, charge, intensity, n_peaks, decay)
        mz_parts.append(mz_values)
        int_parts.append(int_values)
    if len(extra_peaks) > 0:
        extra = np.asarray(extra_peaks, dtype=np.float64).reshape(-1, 2)
        mz_parts.append(extra[:, 0])
        int_parts.append(extra[:, 1])

    spectrum = Spectrum(precursor, np.concatenate(mz_parts), np.concatenate(int_parts),
                        scan_id, title=scan_id)
    return spectrum.sort_by_mz()


def create_synthetic_spectra_mgf(spectra, out_path):
    """
    Create an MGF from synthetic spectra.

    :param spectra: (list of Spectrum) synthetic spectra
    :param out_path: (str) path of the MGF file to write
    :return: (int) number of spectra written
    """
    return write_mgf(spectra, out_path)


def create_synthetic_load_test_mgf(filename, n_spectra=1000, n_clusters=30, max_charge=4,
                                   n_noise_peaks=50, seed=None):
    """
    Create an MGF of random isotope pattern spectra.

    :param filename: (str) filename for output file
    :param n_spectra: (int) number of spectra to generate
    :param n_clusters: (int) isotope series per spectrum
    :param max_charge: (int) highest charge state of the series
    :param n_noise_peaks: (int) random single peaks per spectrum
    :param seed: (int or None) seed of the random number generator
    :return: (int) number of spectra written
    """
    rng = np.random.default_rng(seed)
    spectra = []
    for i in range(n_spectra):
        clusters = list(zip(rng.uniform(200, 1800, n_clusters),
                            rng.integers(1, max_charge + 1, n_clusters),
                            rng.uniform(1e3, 1e6, n_clusters),
                            rng.integers(2, 6, n_clusters)))
        noise = np.column_stack((rng.uniform(100, 2000, n_noise_peaks),
                                 rng.uniform(10, 1e3, n_noise_peaks)))
        charge = int(rng.integers(2, max_charge + 1))
        precursor = {'mz': 2000.0 * max_charge / charge + const.PROTON_MASS, 'charge': charge,
                     'intensity': np.nan}
        spectra.append(create_isotope_pattern_spectrum(clusters, noise, precursor,
                                                       scan_id=f'synthetic.{i + 1}.{i + 1}'))
    return create_synthetic_spectra_mgf(spectra, filename)
