# Copyright 2024 inuex35
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Ephemeris models, validity windows and storage.

Modules
-------
ephemeris : module
    Tagged ephemeris variants and construction from decoded records
validity : module
    Fit interval table and validity window derivation
conversion : module
    Relabeling between variants and cssrlib Eph/Geph interop
store : module
    Ordered ephemeris store with time-based selection, and file helpers

Usage Examples
--------------
Load a navigation file and select an ephemeris:

    >>> from pynav.satellite import load_nav_file
    >>> header, store = load_nav_file('brdc0010.20n')
    >>> eph = store.find(SatID.parse('G05'), GNSSTime(2086, 7200.0))
    >>> eph.clock_bias(GNSSTime(2086, 7200.0))

Notes
-----
Validity windows are half open: a model is valid for
begin_valid <= t < end_valid.
"""

from .conversion import convert, from_cssrlib, to_cssrlib
from .ephemeris import (BeiDouEphemeris, EphemerisModel, EphKind,
                        GalileoEphemeris, GLONASSEphemeris, GPSEphemeris,
                        LegacyGPSEphemeris, QZSSEphemeris, model_from_record,
                        to_record)
from .store import EphemerisStore, load_nav_file, write_nav_file
from .validity import ValidityConfig, compute_validity_window, fit_interval_hours

__all__ = [
    'EphKind', 'EphemerisModel', 'GPSEphemeris', 'LegacyGPSEphemeris',
    'QZSSEphemeris', 'GalileoEphemeris', 'BeiDouEphemeris', 'GLONASSEphemeris',
    'model_from_record', 'to_record', 'convert', 'from_cssrlib', 'to_cssrlib',
    'ValidityConfig', 'fit_interval_hours', 'compute_validity_window',
    'EphemerisStore', 'load_nav_file', 'write_nav_file',
]
