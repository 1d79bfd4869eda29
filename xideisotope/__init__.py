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
xideisotope: Isotope pattern deconvolution (deisotoping) of MS2 peak lists.

This package contains:
- Configuration system (config, const)
- Peak list I/O (spectra_reader, spectra_writer)
- Isotope series detection (isotope_chain, feature_assignment)
- Filters (filters/) including the Deisotoper
- Batch processing of peak lists (processing)
- Utilities (xi_logging, context_base, synthetic_spectra)
"""

__version__ = "1.0.0"

# Core modules
from . import config
from . import const
from . import spectra_reader
from . import spectra_writer
from . import isotope_chain
from . import feature_assignment
from . import xi_logging
from . import context_base
from . import synthetic_spectra

# Subpackages
from . import filters

from . import processing

__all__ = [
    "config",
    "const",
    "spectra_reader",
    "spectra_writer",
    "isotope_chain",
    "feature_assignment",
    "xi_logging",
    "context_base",
    "synthetic_spectra",
    "filters",
    "processing",
]
