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

"""Conversions between ephemeris variants and cssrlib value objects"""

from dataclasses import fields
from typing import Union

from cssrlib.gnss import Eph, Geph, sat2prn, uGNSS

from ..core.errors import TypeMismatch
from .ephemeris import (EPHEMERIS_TYPES, BeiDouEphemeris, EphemerisModel,
                        EphKind, GalileoEphemeris, GLONASSEphemeris,
                        GPSEphemeris, LegacyGPSEphemeris, QZSSEphemeris)

# Pairs that hold the same content under different tags
_RELABEL = frozenset({EphKind.GPS, EphKind.LEGACY_GPS})

_CSSRLIB_EPH_TYPES = {
    uGNSS.GPS: GPSEphemeris,
    uGNSS.QZS: QZSSEphemeris,
    uGNSS.GAL: GalileoEphemeris,
    uGNSS.BDS: BeiDouEphemeris,
}


def convert(model: EphemerisModel, kind: EphKind) -> EphemerisModel:
    """
    Relabel ``model`` as variant ``kind``

    Parameters
    ----------
    model : EphemerisModel
        Source model
    kind : EphKind
        Target variant

    Returns
    -------
    EphemerisModel
        ``model`` itself when it already is ``kind``, otherwise a new model
        with every attribute and the validity window carried over

    Raises
    ------
    TypeMismatch
        For any pair other than legacy GPS and GPS
    """
    if model.kind == kind:
        return model
    if {model.kind, kind} != _RELABEL:
        raise TypeMismatch(model.kind.value, kind.value)

    target = EPHEMERIS_TYPES[kind]
    values = {f.name: getattr(model, f.name) for f in fields(model) if f.init}
    converted = target(**values)
    converted._begin_valid = model._begin_valid
    converted._end_valid = model._end_valid
    return converted


def from_cssrlib(obj: Union[Eph, Geph], legacy: bool = False) -> EphemerisModel:
    """
    Build the matching variant from a cssrlib ``Eph`` or ``Geph``

    GPS ``Eph`` objects become ``GPSEphemeris`` (``LegacyGPSEphemeris`` when
    ``legacy`` is set). The validity window is not computed here.
    """
    if isinstance(obj, Geph):
        return GLONASSEphemeris.from_cssrlib(obj)
    cssr_sys, _ = sat2prn(obj.sat)
    if cssr_sys == uGNSS.GPS and legacy:
        return LegacyGPSEphemeris.from_cssrlib(obj)
    cls = _CSSRLIB_EPH_TYPES.get(cssr_sys)
    if cls is None:
        raise TypeMismatch(f"cssrlib system {cssr_sys}", 'ephemeris model')
    return cls.from_cssrlib(obj)


def to_cssrlib(model: EphemerisModel) -> Union[Eph, Geph]:
    """cssrlib value object for ``model`` (``Geph`` for GLONASS, else ``Eph``)"""
    return model.to_cssrlib()
