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

import copy
from xideisotope import const
from pyteomics import mgf, mzml
import numpy as np
import re
import ntpath
from abc import ABC, abstractmethod
import zipfile
import zipfile_deflate64 as zipfile64
import tarfile
import io
import os
from .xi_logging import log


class Spectrum:
    def __init__(self, precursor, mz_array, int_array, scan_id, rt=np.nan, file_name='',
                 source_path='', run_name='', scan_number=-1, scan_index=-1, title='',
                 integer_arrays=None, meta=None):
        """
        Initialise a Spectrum object.

        The peaks are taken as given - they are expected to be sorted by m/z. Readers sort the
        peaks of the spectra they create, spectra created otherwise can be checked with
        `is_sorted` and sorted with `sort_by_mz`.

        :param precursor: (dict or None) Spectrum precursor information as dict.  e.g. {'mz':
            102.234, 'charge': 2, 'intensity': 12654.35}
        :param mz_array: (ndarray, dtype: float64) m/z values of the spectrum peaks
        :param int_array: (ndarray, dtype: float64) intensity values of the spectrum peaks
        :param scan_id: (str) Unique scan identifier
        :param rt: (str) Retention time in seconds (can be a range, e.g 60-62)
        :param file_name: (str) Name of the peaklist file
        :param source_path: (str) Path to the peaklist source
        :param run_name: (str) Name of the MS run
        :param scan_number: (int) Scan number of the spectrum
        :param scan_index: (int) Index of the spectrum in the file
        :param title: (str) Title of the spectrum
        :param integer_arrays: (dict) named integer arrays aligned with the peaks
        :param meta: (dict) additional key-value information
        """
        self.precursor = precursor
        self.scan_id = scan_id
        self.scan_number = scan_number
        self.scan_index = scan_index
        self.rt = rt
        self.file_name = file_name
        self.source_path = source_path
        self.run_name = run_name
        self.title = title
        self.mz_values = np.asarray(mz_array, dtype=np.float64)
        self.int_values = np.asarray(int_array, dtype=np.float64)
        if self.mz_values.shape != self.int_values.shape:
            raise ValueError("m/z and intensity arrays need to have the same length "
                             f"({self.mz_values.size} != {self.int_values.size})")
        self.integer_arrays = {}
        if integer_arrays is not None:
            for name, values in integer_arrays.items():
                self.set_integer_array(name, values)
        self.meta = {} if meta is None else dict(meta)
        self._precursor_mass = None

    def __len__(self):
        """Return the number of peaks."""
        return self.mz_values.size

    @property
    def precursor_charge(self):
        """Get the precursor charge state."""
        return self.precursor['charge']

    @precursor_charge.setter
    def precursor_charge(self, charge):
        self._precursor_mass = None
        self.precursor['charge'] = charge

    @property
    def precursor_mz(self):
        """Get the precursor m/z."""
        return self.precursor['mz']

    @precursor_mz.setter
    def precursor_mz(self, mz):
        self._precursor_mass = None
        self.precursor['mz'] = mz

    @property
    def has_precursor_data(self):
        """Return True if there is a precursor with a known m/z and a positive charge."""
        if not self.precursor:
            return False
        mz = self.precursor.get('mz', np.nan)
        charge = self.precursor.get('charge', np.nan)
        if mz is None or charge is None:
            return False
        return bool(np.isfinite(mz) and np.isfinite(charge) and charge > 0)

    @property
    def precursor_mass(self):
        """Return the neutral mass of the precursor."""
        if self._precursor_mass is None:
            self._precursor_mass = (self.precursor['mz'] - const.PROTON_MASS) *\
                self.precursor['charge']
        return self._precursor_mass

    def set_integer_array(self, name, values):
        """
        Attach a named integer array to the peaks (replacing one with the same name).

        :param name: (str) name of the array
        :param values: (array-like) one integer per peak
        """
        values = np.asarray(values, dtype=np.int32)
        if values.shape != self.mz_values.shape:
            raise ValueError(f"Integer array '{name}' has {values.size} entries but the spectrum "
                             f"has {self.mz_values.size} peaks")
        self.integer_arrays[name] = values

    def is_sorted(self):
        """Return True if the m/z values are non-decreasing."""
        return bool(np.all(self.mz_values[1:] >= self.mz_values[:-1]))

    @staticmethod
    def tolerance_at(mz, tolerance, is_ppm):
        """
        Translate a tolerance into Dalton.

        :param mz: (float) m/z the tolerance is applied at
        :param tolerance: (float) tolerance value
        :param is_ppm: (bool) whether the tolerance is given in ppm
        :return: (float) absolute tolerance in Dalton
        """
        if is_ppm:
            return tolerance * mz * 1e-6
        return tolerance

    def find_nearest(self, mz, tolerance):
        """
        Find the peak closest to the given m/z within an absolute tolerance.

        Requires the peaks to be sorted by m/z. If two peaks are equally close the lower one is
        returned.

        :param mz: (float) m/z to look for
        :param tolerance: (float) absolute tolerance in Dalton
        :return: (int or None) index of the closest peak or None if no peak is within tolerance
        """
        mz_values = self.mz_values
        n_peaks = mz_values.size
        if n_peaks == 0:
            return None
        idx = int(np.searchsorted(mz_values, mz, side='left'))
        if idx == n_peaks:
            idx -= 1
        elif idx > 0 and abs(mz_values[idx] - mz) >= abs(mz - mz_values[idx - 1]):
            idx -= 1
        if abs(mz_values[idx] - mz) <= tolerance:
            return idx
        return None

    def copy(self):
        """Return a copy of the spectrum that does not share any peak data."""
        new_spec = copy.copy(self)
        new_spec.mz_values = self.mz_values.copy()
        new_spec.int_values = self.int_values.copy()
        new_spec.integer_arrays = {k: v.copy() for k, v in self.integer_arrays.items()}
        new_spec.meta = dict(self.meta)
        if self.precursor is not None:
            new_spec.precursor = dict(self.precursor)
        return new_spec

    def select(self, indices):
        """
        Create a new spectrum containing only the given peaks.

        The peaks (and all integer arrays) are taken in the order of `indices`.

        :param indices: (array-like, int) indices of the peaks to keep
        :return: (Spectrum) new spectrum
        """
        indices = np.asarray(indices, dtype=np.intp)
        new_spec = self.copy()
        new_spec.mz_values = self.mz_values[indices]
        new_spec.int_values = self.int_values[indices]
        new_spec.integer_arrays = {k: v[indices] for k, v in self.integer_arrays.items()}
        return new_spec

    def sort_by_mz(self):
        """
        Create a new spectrum with peaks sorted by m/z.

        The sort is stable, peaks with the same m/z keep their relative order.
        :return: (Spectrum) new spectrum
        """
        return self.select(np.argsort(self.mz_values, kind='stable'))


class PeakListWrapper:
    """Wrapper holding SpectraReaders."""

    def __init__(self, context):
        """
        Initialise the PeakListWrapper.

        :param context: (ContextBase) context with the config
        """
        self.readers = []
        self.context = context

    def load(self, peaklist_files, reset=True):
        """
        Create SpectraReaders from peaklist files.

        Supported file types: MGF and mzML (and tar or zip archives)
        :param peaklist_files: (str | list of str) path(s) to the peak list file(s) or archive(s)
        """
        if not isinstance(peaklist_files, list):
            peaklist_files = [peaklist_files]

        if reset:
            self.readers = []
        for peaklist_file in peaklist_files:
            count_readers = len(self.readers)
            if not os.path.exists(peaklist_file):
                raise ValueError(f"{peaklist_file} does not exist")
            if os.path.isdir(peaklist_file):
                # try to load any file in that directory
                for filename in sorted(os.listdir(peaklist_file)):
                    self.load(os.path.join(peaklist_file, filename), reset=False)
            elif zipfile.is_zipfile(peaklist_file):
                try:
                    zip_f = zipfile.ZipFile(peaklist_file)
                except zipfile.BadZipFile:
                    # assume it is a deflate64 compressed zip file
                    zip_f = zipfile64.ZipFile(peaklist_file)

                for member in zip_f.infolist():
                    self._load(zip_f.open(member), member.filename,
                               peaklist_file + os.sep + member.filename)
            elif tarfile.is_tarfile(peaklist_file):
                tar_f = tarfile.open(peaklist_file)
                for member in tar_f.getmembers():
                    if member.isfile():
                        self._load(tar_f.extractfile(member), member.name,
                                   peaklist_file + os.sep + member.path)
            else:
                self._load(peaklist_file, os.path.basename(peaklist_file), peaklist_file)

            log(f"{peaklist_file}: {len(self.readers) - count_readers} peak list(s) loaded")

    def _load(self, stream, filename, source_path):
        """Create the reader matching the file extension (unknown files are skipped)."""
        if filename.lower().endswith('.mgf'):
            if not isinstance(stream, str):
                stream = io.TextIOWrapper(stream)
            self.readers.append(MGFReader(self.context))
        elif filename.lower().endswith('.mzml'):
            self.readers.append(MZMLReader(self.context))
        else:
            return
        self.readers[-1].load(stream, source_path=source_path, file_name=filename)

    def count_spectra(self):
        """
        Count the number of spectra.

        :return (int) Total number of spectra in all files.
        """
        return sum([r.count_spectra() for r in self.readers])

    @property
    def spectra(self):
        """Generator over the spectra of all loaded peak lists."""
        for reader in self.readers:
            for spectrum in reader.spectra:
                yield spectrum


class SpectraReader(ABC):
    """Abstract Base Class for all SpectraReader."""

    def __init__(self, context):
        """
        Initialize the SpectraReader.

        :param context: (ContextBase) context with the config
        """
        self.config = context.config
        self._reader = None
        self._re_scan_number = re.compile(self.config.re_scan_number)
        self._re_run_name = re.compile(self.config.re_run_name)
        self._source = None
        self.file_name = None
        self.source_path = None
        self.default_run_name = None

    @abstractmethod
    def load(self, source, file_name=None, source_path=None):
        """
        Load the spectrum file.

        :param source: Spectra file source
        :param file_name: (str) filename
        :param source_path: (str) path to the source file (peak list file or archive)
        """
        self._source = source
        if source_path is None:
            if isinstance(source, str):
                self.source_path = source
            else:
                self.source_path = getattr(source, 'name', '')
        else:
            self.source_path = source_path

        if file_name is None:
            self.file_name = ntpath.basename(self.source_path)
        else:
            self.file_name = file_name
        self.default_run_name = os.path.splitext(self.file_name)[0]

    @abstractmethod
    def count_spectra(self):
        """
        Count the number of spectra.

        :return (int) Number of spectra in the file
        """
        ...

    @property
    @abstractmethod
    def spectra(self):
        """Create a Spectra generator."""
        while False:
            yield None

    def _parse_title(self, title):
        """Parse run name and scan number out of a spectrum title or id."""
        run_name_match = re.search(self._re_run_name, title)
        try:
            run_name = run_name_match.group(1)
        except AttributeError:
            run_name = self.default_run_name

        scan_number_match = re.search(self._re_scan_number, title)
        try:
            scan_number = int(scan_number_match.group(1))
        except (AttributeError, ValueError):
            scan_number = -1
        return run_name, scan_number


class MGFReader(SpectraReader):
    """SpectraReader for MGF files."""

    # params that are translated into Spectrum attributes - all others end up in Spectrum.meta
    _known_params = ('pepmass', 'charge', 'title', 'rtinseconds')

    def load(self, source, file_name=None, source_path=None):
        """
        Load MGF file.

        :param source: file source, path or stream
        :param file_name: (str) MGF filename
        :param source_path: (str) path to the source file (MGF or archive)
        """
        self._reader = mgf.read(source, use_index=False)
        super().load(source, file_name, source_path)

    def count_spectra(self):
        """
        Count the number of spectra.

        :return (int) Number of spectra in the file.
        """
        if isinstance(self._source, str):
            with open(self._source, 'r') as f:
                return len(re.findall('BEGIN IONS', f.read()))
        text = self._source.read()
        self._source.seek(0)
        return len(re.findall('BEGIN IONS', text))

    def _convert_spectrum(self, scan_index, mgf_spec):
        params = mgf_spec['params']
        pepmass = params.get('pepmass', (np.nan, None))
        charge = params.get('charge')
        precursor = {
            'mz': pepmass[0],
            'charge': int(charge[0]) if charge else np.nan,
            'intensity': pepmass[1] if pepmass[1] is not None else np.nan,
        }

        # use title as scan_id, default to filename_scan_index (very unlikely to not have a
        # title but it's not required)
        scan_id = params.get('title', '{}_{}'.format(self.file_name, scan_index))
        rt = params.get('rtinseconds', np.nan)
        title = params.get('title', '')
        run_name, scan_number = self._parse_title(title)

        # three column MGFs carry a charge per peak
        integer_arrays = None
        if 'charge array' in mgf_spec:
            integer_arrays = {
                const.CHARGE_ARRAY: np.ma.filled(mgf_spec['charge array'], 0)
            }

        meta = {k: v for k, v in params.items() if k not in self._known_params}

        spectrum = Spectrum(precursor, mgf_spec['m/z array'], mgf_spec['intensity array'],
                            scan_id, rt, self.file_name, self.source_path, run_name,
                            scan_number, scan_index, title=title,
                            integer_arrays=integer_arrays, meta=meta)
        # peak lists in files are not guaranteed to be sorted
        return spectrum.sort_by_mz()

    @property
    def spectra(self):
        """Generator wrapped around pyteomics generator. Reformatting the spectrum information."""
        for scan_index, mgf_spec in enumerate(self._reader):
            yield self._convert_spectrum(scan_index, mgf_spec)


class MZMLReader(SpectraReader):
    """SpectraReader for mzML files (MS2 spectra only)."""

    def load(self, source, file_name=None, source_path=None):
        """
        Read in spectra from an mzML file.

        :param source: file source, path or stream
        :param file_name: (str) mzML filename
        :param source_path: (str) path to the source file (mzML or archive)
        """
        self._reader = mzml.read(source, use_index=True)
        super().load(source, file_name, source_path)

    def count_spectra(self):
        """
        Count the number of spectra.

        :return (int) Number of spectra in the file (all MS levels).
        """
        return len(self._reader)

    def _convert_spectrum(self, spec):
        precursor = None
        if 'precursorList' in spec:
            # check for single precursor per spectrum
            if spec['precursorList']['count'] != 1 or \
                    spec['precursorList']['precursor'][0]['selectedIonList']['count'] != 1:
                raise ValueError("Only a single precursor per spectrum is supported.")
            p = spec['precursorList']['precursor'][0]['selectedIonList']['selectedIon'][0]
            precursor = {
                'mz': p['selected ion m/z'],
                'charge': p.get('charge state', np.nan),
                'intensity': p.get('peak intensity', np.nan)
            }

        # id is required in mzML so set this as scan_id
        scan_id = spec['id']
        # index is also required in mzML so just use this
        scan_index = spec['index']

        # parse retention time, default to NaN
        rt = np.nan
        scans = spec.get('scanList', {}).get('scan', [])
        if len(scans) > 0:
            rt = scans[0].get('scan start time', np.nan) * 60

        _, scan_number = self._parse_title(scan_id)

        spectrum = Spectrum(precursor, spec['m/z array'], spec['intensity array'], scan_id,
                            rt, self.file_name, self.source_path, self.default_run_name,
                            scan_number, scan_index)
        return spectrum.sort_by_mz()

    @property
    def spectra(self):
        """Spectra generator wrapped around pyteomics generator."""
        for spec in self._reader:
            # skip non-MS2
            if spec.get('ms level') != 2:
                continue
            yield self._convert_spectrum(spec)
