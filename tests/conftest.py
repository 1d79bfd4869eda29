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

"""
The conftest.py file serves as a means of providing fixtures for an entire directory.
Fixtures defined in a conftest.py can be used by any test in that package without needing to
import them (pytest will automatically discover them).
"""

import base64
import numpy as np
import pytest
from xideisotope.config import Config, DeisotoperConfig
from xideisotope.context_base import ContextBase
from xideisotope.spectra_reader import Spectrum


@pytest.fixture()
def deisotoping_context():
    # builds a context with the given deisotoping settings
    def make_context(**settings):
        return ContextBase(Config(deisotoping=DeisotoperConfig(**settings)))
    return make_context


@pytest.fixture()
def pair_settings():
    # absolute tolerance, charges 1-2 and 2-3 peak isotope series
    return dict(fragment_tolerance=0.01, fragment_unit_is_ppm=False, min_charge=1, max_charge=2,
                min_isotopic_peaks=2, max_isotopic_peaks=3)


@pytest.fixture()
def doubly_charged_pair():
    # monoisotopic peak and first isotope peak of a doubly charged ion
    return Spectrum(None, [500.0, 500.5017], [100, 80], 'doubly_charged_pair')


@pytest.fixture()
def mgf_text():
    return (
        "BEGIN IONS\n"
        "TITLE=run1.5.5\n"
        "PEPMASS=500.25 1000\n"
        "CHARGE=2+\n"
        "RTINSECONDS=60\n"
        "SCANS=5\n"
        "200.1 10\n"
        "100.1 20\n"
        "END IONS\n"
        "\n"
        "BEGIN IONS\n"
        "TITLE=run1.7.7\n"
        "PEPMASS=700.5\n"
        "CHARGE=3+\n"
        "150.2 5\n"
        "250.3 15\n"
        "350.4 25\n"
        "END IONS\n"
    )


def encode_mzml_array(values):
    # 64-bit little endian floats without compression
    return base64.b64encode(np.asarray(values, dtype='<f8').tobytes()).decode('ascii')


def mzml_binary_array_list(mz_values, int_values):
    arrays = []
    for values, accession, name in [(mz_values, 'MS:1000514', 'm/z array'),
                                    (int_values, 'MS:1000515', 'intensity array')]:
        encoded = encode_mzml_array(values)
        arrays.append(
            f'<binaryDataArray encodedLength="{len(encoded)}">'
            '<cvParam cvRef="MS" accession="MS:1000523" name="64-bit float" value=""/>'
            '<cvParam cvRef="MS" accession="MS:1000576" name="no compression" value=""/>'
            f'<cvParam cvRef="MS" accession="{accession}" name="{name}" value=""/>'
            f'<binary>{encoded}</binary></binaryDataArray>')
    return f'<binaryDataArrayList count="2">{"".join(arrays)}</binaryDataArrayList>'


def mzml_spectrum(index, scan, ms_level, mz_values, int_values, rt_minutes, precursors=()):
    precursor_list = ''
    if len(precursors) > 0:
        selected_ions = ''.join(
            '<selectedIon>'
            '<cvParam cvRef="MS" accession="MS:1000744" name="selected ion m/z" '
            f'value="{mz}"/>'
            '<cvParam cvRef="MS" accession="MS:1000041" name="charge state" '
            f'value="{charge}"/>'
            '</selectedIon>' for mz, charge in precursors)
        precursor_list = (
            '<precursorList count="1"><precursor>'
            f'<selectedIonList count="{len(precursors)}">{selected_ions}</selectedIonList>'
            '</precursor></precursorList>')
    return (
        f'<spectrum index="{index}" id="controllerType=0 controllerNumber=1 scan={scan}" '
        f'defaultArrayLength="{len(mz_values)}">'
        f'<cvParam cvRef="MS" accession="MS:1000511" name="ms level" value="{ms_level}"/>'
        '<scanList count="1">'
        '<cvParam cvRef="MS" accession="MS:1000795" name="no combination" value=""/>'
        '<scan><cvParam cvRef="MS" accession="MS:1000016" name="scan start time" '
        f'value="{rt_minutes}" unitCvRef="UO" unitAccession="UO:0000031" unitName="minute"/>'
        '</scan></scanList>'
        f'{precursor_list}{mzml_binary_array_list(mz_values, int_values)}</spectrum>')


def mzml_document(spectra):
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        '<mzML xmlns="http://psi.hupo.org/ms/mzml" id="run1" version="1.1.0">'
        '<cvList count="2">'
        '<cv id="MS" fullName="Proteomics Standards Initiative Mass Spectrometry Ontology" '
        'version="4.1.0" URI="https://raw.githubusercontent.com/HUPO-PSI/psi-ms-CV/master/'
        'psi-ms.obo"/>'
        '<cv id="UO" fullName="Unit Ontology" version="09:04:2014" '
        'URI="https://raw.githubusercontent.com/bio-ontology-research-group/unit-ontology/'
        'master/unit.obo"/>'
        '</cvList>'
        '<run id="run1">'
        f'<spectrumList count="{len(spectra)}">{"".join(spectra)}</spectrumList>'
        '</run></mzML>\n')


@pytest.fixture()
def mzml_text():
    # one MS1 spectrum followed by one MS2 spectrum with unsorted peaks
    return mzml_document([
        mzml_spectrum(0, 19, 1, [400.0, 500.0, 600.0], [10.0, 20.0, 30.0], 1.5),
        mzml_spectrum(1, 20, 2, [300.2, 100.1, 200.1], [30.0, 10.0, 20.0], 2.0,
                      precursors=[(500.25, 2)]),
    ])


@pytest.fixture()
def mzml_text_two_precursors():
    return mzml_document([
        mzml_spectrum(0, 20, 2, [100.1, 200.1], [10.0, 20.0], 2.0,
                      precursors=[(500.25, 2), (600.3, 3)]),
    ])
