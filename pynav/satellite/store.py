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

"""Ephemeris storage, selection and bulk file I/O"""

import bisect
import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

import pandas as pd

from ..core.data_structures import SatID
from ..core.errors import NotFound
from ..core.time import GNSSTime
from ..io.rinex_nav import CodecConfig, NavHeader, NavRecordCodec
from ..io.stream import FormattedRecordStream, StreamConfig
from .ephemeris import EphemerisModel, model_from_record
from .validity import ValidityConfig

logger = logging.getLogger(__name__)


class SatelliteEphemerides:
    """Restartable, epoch-ordered view of one satellite's models"""

    def __init__(self, models: List[EphemerisModel]):
        self._models = models

    def __iter__(self) -> Iterator[EphemerisModel]:
        return iter(list(self._models))

    def __len__(self) -> int:
        return len(self._models)

    def __bool__(self) -> bool:
        return bool(self._models)


class EphemerisStore:
    """
    Ordered collection of ephemeris models for many satellites.

    Models are kept ordered by clock epoch (any time scale) and then by
    satellite. Successive uploads for the same satellite all stay in the
    store; nothing is deduplicated.

    Parameters
    ----------
    config : ValidityConfig, optional
        Used for models inserted without a computed validity window

    Examples
    --------
    >>> store = EphemerisStore()
    >>> store.insert(model)
    >>> eph = store.find(SatID.parse('G05'), t)
    """

    def __init__(self, config: Optional[ValidityConfig] = None):
        self.config = config or ValidityConfig()
        self._models: List[EphemerisModel] = []
        self._by_sat: Dict[SatID, List[EphemerisModel]] = {}

    def insert(self, model: EphemerisModel) -> None:
        """Add a model, computing its validity window if needed"""
        if not model.has_validity:
            model.compute_validity(self.config)
        bisect.insort_right(self._models, model)
        bisect.insort_right(self._by_sat.setdefault(model.sat, []), model)

    def find(self, sat: SatID, t: GNSSTime) -> EphemerisModel:
        """
        Get the model to use for a satellite at a given time.

        Parameters
        ----------
        sat : SatID
            Satellite
        t : GNSSTime
            Time of interest, in the satellite's time scale (or ``'ANY'``)

        Returns
        -------
        EphemerisModel
            Among the models whose window contains ``t``, the one whose Toe
            is closest to ``t``. Equal distances go to the earlier model.

        Raises
        ------
        NotFound
            No model of ``sat`` is valid at ``t``
        """
        best = None
        min_dt = None
        for model in self._by_sat.get(sat, ()):
            if not model.is_valid(t):
                continue
            dt = abs(t - model.toe)
            if best is None or dt < min_dt:
                best = model
                min_dt = dt
        if best is None:
            raise NotFound(sat, t)
        return best

    def all(self, sat: SatID) -> SatelliteEphemerides:
        """Every model of ``sat`` in epoch order (restartable iterable)"""
        return SatelliteEphemerides(self._by_sat.get(sat, []))

    def satellites(self) -> List[SatID]:
        return sorted(self._by_sat)

    def time_span(self) -> Optional[Tuple[GNSSTime, GNSSTime]]:
        """Earliest and latest clock epoch, or None when empty"""
        if not self._models:
            return None
        return self._models[0].toc, self._models[-1].toc

    def __len__(self) -> int:
        return len(self._models)

    def __iter__(self) -> Iterator[EphemerisModel]:
        return iter(list(self._models))

    def __contains__(self, sat: SatID) -> bool:
        return sat in self._by_sat

    def load(self, source: Union[NavRecordCodec, FormattedRecordStream],
             system_hint: Optional[int] = None, legacy: bool = False) -> int:
        """
        Decode every record from ``source`` and insert the models.

        Malformed records are skipped by the codec (or raised when the stream
        is set to raise on failure).

        Returns
        -------
        int
            Number of models inserted
        """
        codec = source if isinstance(source, NavRecordCodec) else NavRecordCodec(source)
        count = 0
        for record in codec.records(system_hint):
            self.insert(model_from_record(record, self.config, legacy))
            count += 1
        logger.info("Loaded %d ephemerides from %s", count, codec.stream.filename)
        return count

    def to_dataframe(self) -> pd.DataFrame:
        """One row per model, times as GPS-epoch seconds"""
        return pd.DataFrame([model.to_dict() for model in self._models])

    def __repr__(self):
        return f"EphemerisStore({len(self)} models, {len(self._by_sat)} satellites)"


def load_nav_file(path: Union[str, Path],
                  stream_config: Optional[StreamConfig] = None,
                  codec_config: Optional[CodecConfig] = None,
                  validity_config: Optional[ValidityConfig] = None,
                  system_hint: Optional[int] = None) -> Tuple[NavHeader, EphemerisStore]:
    """
    Read a RINEX navigation file into a store

    Parameters
    ----------
    path : str or Path
        Navigation file
    stream_config, codec_config, validity_config : optional
        Per-layer configuration
    system_hint : int, optional
        System of a single-system RINEX 2 file, when the header does not say

    Returns
    -------
    tuple
        ``(header, store)``
    """
    with FormattedRecordStream(path, 'r', stream_config) as stream:
        codec = NavRecordCodec(stream, codec_config)
        header = codec.read_header()
        store = EphemerisStore(validity_config)
        store.load(codec, system_hint)
    return header, store


def write_nav_file(path: Union[str, Path], header: NavHeader,
                   models: Iterable[EphemerisModel],
                   stream_config: Optional[StreamConfig] = None) -> int:
    """Write ``header`` and ``models`` (in epoch order) as RINEX navigation text"""
    count = 0
    with FormattedRecordStream(path, 'w', stream_config) as stream:
        codec = NavRecordCodec(stream, CodecConfig(version=header.version))
        codec.write_header(header)
        for model in sorted(models):
            codec.write(model.to_record(header.version))
            count += 1
    logger.info("Wrote %d ephemerides to %s", count, path)
    return count
