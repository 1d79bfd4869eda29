# Copyright (C) 2025  Lutz Fischer
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

from setuptools import setup, find_packages


setup(
    name="xideisotope",
    version="1.0.0",
    description="Isotope pattern deconvolution (deisotoping) of MS2 peak lists",
    license="LGPL-3.0-or-later",
    packages=find_packages(include=["xideisotope", "xideisotope.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "pyteomics[XML]",
        "lxml",
        "pyyaml",
        "progress",
        "zipfile-deflate64",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
