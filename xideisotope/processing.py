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
Deisotoping of whole peak lists.

Every spectrum is processed independently, so peak lists can be spread over several processes
without any coordination between them.
"""
from multiprocessing import Pool, cpu_count
from xideisotope.config import Config
from xideisotope.context_base import ContextBase
from xideisotope.filters.deisotoper import Deisotoper
from xideisotope.spectra_reader import PeakListWrapper
from xideisotope.spectra_writer import write_mgf
from xideisotope.xi_logging import log, ProgressBar

# deisotoper of a worker process (set up by _init_worker)
_worker_deisotoper = None


def _init_worker(config_json):
    global _worker_deisotoper
    _worker_deisotoper = Deisotoper(ContextBase(Config.from_json(config_json)))


def _deisotope_in_worker(spectrum):
    return _worker_deisotoper.process(spectrum)


def get_process_count(threads):
    """
    Translate the threads setting into a number of processes.

    :param threads: (int) 0 - one per cpu, N > 0 - N processes, N < 0 - all but N cpus
    :return: (int) number of processes (at least 1)
    """
    if threads > 0:
        return threads
    return max(1, cpu_count() + threads)


def deisotope_spectra(spectra, context):
    """
    Deisotope spectra one after the other.

    :param spectra: (iterable of Spectrum) m/z sorted spectra
    :param context: (ContextBase) context including the config
    :return: generator of deisotoped spectra
    """
    deisotoper = Deisotoper(context)
    for spectrum in spectra:
        yield deisotoper.process(spectrum)


def deisotope_peaklists(peaklist_files, config, output, chunksize=20):
    """
    Deisotope all MS2 spectra of the given peak lists and write them into an MGF file.

    :param peaklist_files: (str or list of str) peak list files, archives or directories
    :param config: (Config) configuration
    :param output: (str or file) MGF file to write
    :param chunksize: (int) number of spectra handed to a worker process at once
    :return: (int) number of spectra written
    """
    context = ContextBase(config)
    # fail on inconsistent settings before reading any file
    config.deisotoping.validate()

    peak_lists = PeakListWrapper(context)
    peak_lists.load(peaklist_files)
    total = peak_lists.count_spectra()
    processes = get_process_count(config.threads)
    log(f"Deisotoping up to {total} spectra using {processes} process(es)")

    bar = ProgressBar("Deisotoping spectra", total)

    def progress(spectra):
        for spectrum in spectra:
            bar.next()
            yield spectrum

    if processes == 1:
        written = write_mgf(progress(deisotope_spectra(peak_lists.spectra, context)), output)
    else:
        with Pool(processes, initializer=_init_worker,
                  initargs=(config.to_json(excl_defaults=False),)) as pool:
            results = pool.imap(_deisotope_in_worker, peak_lists.spectra, chunksize=chunksize)
            written = write_mgf(progress(results), output)
    bar.finish()
    log(f"{written} deisotoped spectra written")
    return written
