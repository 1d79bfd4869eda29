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
Base context class providing tolerance management.

Filters get a context instead of a bare config so that settings which depend on the source of
a spectrum (e.g. the peak list file it was read from) can be resolved in one place.
"""
from xideisotope.config import Config


class ContextBase:
    """
    Context holding the configuration and the file-specific fragment tolerances.

    Tolerances configured in `config.file_tolerances` take precedence over the default
    tolerance of the deisotoping settings.
    """

    def __init__(self, config=None):
        """
        Initialize ContextBase with configuration.

        :param config: (Config) Configuration object (defaults to Config())
        """
        self.config = Config() if config is None else config
        self.set_tolerances()

    def set_tolerances(self):
        """Create dictionary with file-specific tolerances from the config."""
        self._file_tolerances = {}
        for file_tolerance in self.config.file_tolerances:
            self._file_tolerances[file_tolerance.file] = (file_tolerance.tolerance,
                                                          file_tolerance.is_ppm)

    def get_fragment_tolerance(self, file):
        """
        Get the fragment tolerance for the given file.

        :param file: (str) source path of the peak list file
        :return: (float, bool) tolerance value and whether it is given in ppm
        """
        deisotoping = self.config.deisotoping
        return self._file_tolerances.get(
            file, (deisotoping.fragment_tolerance, deisotoping.fragment_unit_is_ppm))

    def has_file_tolerance(self, file):
        """Return True if a specific tolerance is configured for a file."""
        return file in self._file_tolerances
