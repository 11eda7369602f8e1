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

"""RINEX navigation record codec.

Decodes the satellite/epoch line plus the fixed number of "broadcast orbit"
continuation lines of a RINEX 2 or 3 navigation record into a ``NavRecord``
and encodes a ``NavRecord`` back into lines. Also reads and writes the file
header.

Numeric fields are D19.12 (``D`` or ``E`` exponent marker accepted, ``D``
written for RINEX 2 and ``E`` for RINEX 3). A ``$`` truncates the rest of a
line. Lines are parsed as fixed-width 19-character slots when they follow the
layout, and tokenized by number pattern otherwise.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterator, List, Optional, Sequence

from ..core.constants import (COMMENT_MARKER, FIELD_DECIMALS, FIELD_WIDTH,
                              FIELDS_PER_LINE, ORBIT_LINES, SYS_BDS, SYS_GAL,
                              SYS_GLO, SYS_GPS, SYS_NONE, SYS_QZS, char2sys,
                              sys2char, sys2name)
from ..core.data_structures import SatID
from ..core.errors import EndOfInput, FormatError
from ..logger import TRACE
from .stream import FormattedRecordStream

logger = logging.getLogger(__name__)

# Clock terms on the satellite/epoch line
GPS_CLOCK_FIELDS = ('af0', 'af1', 'af2')
GLO_CLOCK_FIELDS = ('MinusTauN', 'GammaN', 'MessageFrameTime')

# Broadcast orbit lines, 4 values per line
GPS_ORBIT_FIELDS = (
    'IODE', 'Crs', 'DeltaN', 'M0',
    'Cuc', 'Eccentricity', 'Cus', 'sqrtA',
    'Toe', 'Cic', 'Omega0', 'Cis',
    'Io', 'Crc', 'omega', 'OmegaDot',
    'IDOT', 'CodesL2', 'GPSWeek', 'L2Pflag',
    'SVacc', 'health', 'TGD', 'IODC',
    'TransTime', 'FitIntvl', 'spare0', 'spare1',
)

QZS_ORBIT_FIELDS = GPS_ORBIT_FIELDS[:18] + ('QZSWeek',) + GPS_ORBIT_FIELDS[19:25] + (
    'FitFlag', 'spare0', 'spare1')

GAL_ORBIT_FIELDS = (
    'IODnav', 'Crs', 'DeltaN', 'M0',
    'Cuc', 'Eccentricity', 'Cus', 'sqrtA',
    'Toe', 'Cic', 'Omega0', 'Cis',
    'Io', 'Crc', 'omega', 'OmegaDot',
    'IDOT', 'DataSources', 'GALWeek', 'spare0',
    'SISA', 'health', 'BGDe5a', 'BGDe5b',
    'TransTime', 'spare1', 'spare2', 'spare3',
)

BDS_ORBIT_FIELDS = (
    'AODE', 'Crs', 'DeltaN', 'M0',
    'Cuc', 'Eccentricity', 'Cus', 'sqrtA',
    'Toe', 'Cic', 'Omega0', 'Cis',
    'Io', 'Crc', 'omega', 'OmegaDot',
    'IDOT', 'spare0', 'BDTWeek', 'spare1',
    'SVacc', 'SatH1', 'TGD1', 'TGD2',
    'TransTime', 'AODC', 'spare2', 'spare3',
)

GLO_ORBIT_FIELDS = (
    'X', 'dX', 'dX2', 'health',
    'Y', 'dY', 'dY2', 'FreqNum',
    'Z', 'dZ', 'dZ2', 'AgeOpInfo',
)

# RINEX 3.05 adds a fourth GLONASS line
GLO_EXTRA_FIELDS = ('StatusFlags', 'DelayL1L2', 'URAI', 'HealthFlags')

ORBIT_FIELDS = {
    SYS_GPS: GPS_ORBIT_FIELDS,
    SYS_QZS: QZS_ORBIT_FIELDS,
    SYS_GAL: GAL_ORBIT_FIELDS,
    SYS_BDS: BDS_ORBIT_FIELDS,
    SYS_GLO: GLO_ORBIT_FIELDS,
}

_NUMBER = r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[DdEe][+-]?\d+)?'
_NUMBER_RE = re.compile(_NUMBER)
_SEQUENCE_RE = re.compile(rf'(?:{_NUMBER}\s*)+')
_V3_HEADER_RE = re.compile(r'^[A-Z][ \d]\d ')
_V2_HEADER_RE = re.compile(r'^(?:[A-Z]\d\d|[ \d]\d) [ \d]\d ')

HEADER_LABEL_COL = 60
END_OF_HEADER = 'END OF HEADER'


def clock_field_names(system: int) -> Sequence[str]:
    return GLO_CLOCK_FIELDS if system == SYS_GLO else GPS_CLOCK_FIELDS


def orbit_line_count(system: int, version: float) -> int:
    """Number of broadcast orbit lines following the epoch line"""
    if system not in ORBIT_LINES:
        raise ValueError(f"Unsupported satellite system: {system}")
    if system == SYS_GLO and version >= 3.05:
        return ORBIT_LINES[SYS_GLO] + 1
    return ORBIT_LINES[system]


def orbit_field_names(system: int, version: float) -> Sequence[str]:
    names = ORBIT_FIELDS[system]
    if system == SYS_GLO and version >= 3.05:
        names = names + GLO_EXTRA_FIELDS
    return names


def strip_comment(line: str) -> str:
    """Drop everything from the comment marker on"""
    pos = line.find(COMMENT_MARKER)
    return line if pos < 0 else line[:pos]


def parse_nav_float(text: str, line_number: int = 0, name: Optional[str] = None) -> float:
    """Parse a FORTRAN-style float (D or E exponent). Blank is zero."""
    text = text.strip()
    if not text:
        return 0.0
    try:
        return float(text.replace('D', 'E').replace('d', 'e'))
    except ValueError:
        raise FormatError(f"unparsable number {text!r}", line_number, field=name) from None


def format_nav_float(value: float, exponent: str = 'E') -> str:
    """Render a value as a right-justified D19.12 field"""
    text = f"{value:{FIELD_WIDTH}.{FIELD_DECIMALS}E}"
    if len(text.rsplit('E', 1)[-1]) > 3:
        # three-digit exponent: underflow renders as zero, overflow is an error
        if abs(value) < 1.0:
            text = f"{0.0:{FIELD_WIDTH}.{FIELD_DECIMALS}E}"
        else:
            raise FormatError(f"value {value!r} does not fit a {FIELD_WIDTH}-character field")
    return text.replace('E', exponent)


def parse_fields(text: str, line_number: int = 0,
                 max_fields: int = FIELDS_PER_LINE,
                 names: Optional[Sequence[str]] = None) -> List[float]:
    """Parse the numeric part of a line into at most ``max_fields`` values.

    ``text`` is the line with any fixed prefix (indent, satellite/epoch)
    already removed. Fixed-width slots are tried first; interior blank slots
    become zero and trailing blank slots are dropped. When a slot holds
    anything but one number, the whole stripped text is tokenized instead.
    """
    text = strip_comment(text).rstrip()
    if not text.strip():
        return []

    slots = [text[i:i + FIELD_WIDTH].strip() for i in range(0, len(text), FIELD_WIDTH)]
    if all(not s or _NUMBER_RE.fullmatch(s) for s in slots):
        tokens = slots
        while tokens and not tokens[-1]:
            tokens.pop()
    else:
        stripped = text.strip()
        if not _SEQUENCE_RE.fullmatch(stripped):
            raise FormatError(f"unparsable numeric fields {stripped!r}", line_number)
        tokens = [m.group(0) for m in _NUMBER_RE.finditer(stripped)]

    if len(tokens) > max_fields:
        raise FormatError(f"expected at most {max_fields} fields, found {len(tokens)}", line_number)

    values = []
    for i, token in enumerate(tokens):
        name = names[i] if names is not None and i < len(names) else None
        values.append(parse_nav_float(token, line_number, name))
    return values


def _two_digit_year(yy: int) -> int:
    return yy + 2000 if yy < 80 else yy + 1900


@dataclass
class CodecConfig:
    """Navigation codec configuration

    Attributes
    ----------
    version : float
        RINEX version used when no file header has been read (default: 3.04)
    debug : bool
        Emit TRACE-level records for every decoded/encoded record
    default_system : int
        System assumed for RINEX 2 files without a type hint (default: GPS)
    """
    version: float = 3.04
    debug: bool = False
    default_system: int = SYS_GPS


@dataclass
class NavHeader:
    """RINEX navigation file header

    Only the labels needed to select the record layout are interpreted;
    every other header line is kept verbatim in ``extra_lines`` and written
    back unchanged.
    """
    version: float = 3.04
    file_type: str = 'N'
    system_code: str = 'M'
    program: str = 'pynav'
    run_by: str = ''
    date: str = ''
    comments: List[str] = field(default_factory=list)
    leap_seconds: Optional[int] = None
    extra_lines: List[str] = field(default_factory=list)

    @property
    def system(self) -> int:
        """Single system implied by the header, SYS_NONE for mixed files"""
        if self.version < 3.0:
            if self.file_type == 'G':
                return SYS_GLO
            if self.file_type == 'N':
                return char2sys(self.system_code) if self.system_code.strip() else SYS_GPS
            return char2sys(self.file_type)
        return char2sys(self.system_code) if self.system_code not in ('', 'M') else SYS_NONE

    @staticmethod
    def _label(content: str, label: str) -> str:
        return f"{content:<{HEADER_LABEL_COL}.{HEADER_LABEL_COL}}{label:<20}".rstrip()

    def to_lines(self) -> List[str]:
        if self.version >= 3.0:
            ftype = 'N: GNSS NAV DATA'
            name = 'MIXED' if self.system_code == 'M' else sys2name(char2sys(self.system_code))
            sys_text = f"{self.system_code}: {name}"
        elif self.file_type == 'G':
            ftype, sys_text = 'G: GLONASS NAV DATA', ''
        else:
            ftype, sys_text = f"{self.file_type}: GPS NAV DATA", ''
        lines = [self._label(f"{self.version:9.2f}{'':11}{ftype:<20}{sys_text:<20}",
                             'RINEX VERSION / TYPE'),
                 self._label(f"{self.program:<20.20}{self.run_by:<20.20}{self.date:<20.20}",
                             'PGM / RUN BY / DATE')]
        lines.extend(self._label(c, 'COMMENT') for c in self.comments)
        lines.extend(self.extra_lines)
        if self.leap_seconds is not None:
            lines.append(self._label(f"{self.leap_seconds:6d}", 'LEAP SECONDS'))
        lines.append(self._label('', END_OF_HEADER))
        return lines


@dataclass
class NavRecord:
    """One decoded navigation record.

    ``clock`` holds the three values of the satellite/epoch line and
    ``orbit`` the broadcast orbit values, 4 per line, in file order.
    """
    system: int
    sat: SatID
    epoch: datetime
    clock: List[float]
    orbit: List[float]
    version: float = 3.04
    line_number: int = 0

    def __post_init__(self):
        expected = 4 * orbit_line_count(self.system, self.version)
        if len(self.clock) != 3:
            raise FormatError(f"{sys2name(self.system)} record needs 3 clock fields, got {len(self.clock)}",
                              self.line_number)
        if len(self.orbit) != expected:
            raise FormatError(f"{sys2name(self.system)} record needs {expected} orbit fields, got {len(self.orbit)}",
                              self.line_number)

    def as_dict(self) -> Dict[str, float]:
        names = list(clock_field_names(self.system)) + list(orbit_field_names(self.system, self.version))
        return dict(zip(names, list(self.clock) + list(self.orbit)))

    def __getitem__(self, name: str) -> float:
        values = self.as_dict()
        if name not in values:
            raise KeyError(f"{sys2name(self.system)} record has no field {name!r}")
        return values[name]


class NavRecordCodec:
    """Decode/encode navigation records on a ``FormattedRecordStream``.

    Parameters
    ----------
    stream : FormattedRecordStream
        Open stream to read from or write to
    config : CodecConfig, optional
        Layout defaults and debug tracing

    Notes
    -----
    ``decode`` always raises on failure. Position after a failure:

    - bad satellite/epoch line or bad orbit line: just after that line
    - record cut short by the next satellite/epoch line: at that line
    - end of input inside a record: at end of input

    In every case ``stream.restore()`` returns to the start of the failed
    record, and ``resync()`` skips forward to the next satellite/epoch line.
    """

    def __init__(self, stream: FormattedRecordStream, config: Optional[CodecConfig] = None):
        self.stream = stream
        self.config = config or CodecConfig()
        self.header: Optional[NavHeader] = None

    @property
    def version(self) -> float:
        return self.header.version if self.header is not None else self.config.version

    @property
    def indent(self) -> int:
        return 4 if self.version >= 3.0 else 3

    def _trace(self, msg, *args):
        if self.config.debug:
            logger.log(TRACE, msg, *args)

    # Header

    def read_header(self) -> NavHeader:
        """Read header lines through END OF HEADER"""
        header = NavHeader(comments=[], extra_lines=[])
        first = True
        while True:
            try:
                line = self.stream.read_record()
            except EndOfInput:
                raise FormatError("missing END OF HEADER", self.stream.line_number,
                                  source=self.stream.filename) from None
            label = line[HEADER_LABEL_COL:].strip()
            content = line[:HEADER_LABEL_COL]
            if first:
                if label != 'RINEX VERSION / TYPE':
                    raise FormatError("header must start with RINEX VERSION / TYPE",
                                      self.stream.line_number, source=self.stream.filename)
                try:
                    header.version = float(content[:9])
                except ValueError:
                    raise FormatError(f"bad RINEX version {content[:9]!r}", self.stream.line_number,
                                      field='version', source=self.stream.filename) from None
                header.file_type = content[20:21].strip() or 'N'
                header.system_code = content[40:41].strip()
                first = False
            elif label == 'PGM / RUN BY / DATE':
                header.program = content[:20].strip()
                header.run_by = content[20:40].strip()
                header.date = content[40:60].strip()
            elif label == 'COMMENT':
                header.comments.append(content.rstrip())
            elif label == 'LEAP SECONDS':
                try:
                    header.leap_seconds = int(content[:6])
                except ValueError:
                    raise FormatError("bad LEAP SECONDS value", self.stream.line_number,
                                      field='leap_seconds', source=self.stream.filename) from None
            elif label == END_OF_HEADER:
                break
            else:
                header.extra_lines.append(line)
        self.header = header
        logger.debug("Read RINEX %.2f navigation header from %s (system %r)",
                     header.version, self.stream.filename, header.system_code or header.file_type)
        return header

    def write_header(self, header: NavHeader) -> None:
        for line in header.to_lines():
            self.stream.write_record(line)
        self.header = header

    # Decoding

    def _is_record_start(self, line: str) -> bool:
        if self.version >= 3.0:
            return bool(_V3_HEADER_RE.match(line))
        return bool(_V2_HEADER_RE.match(line))

    def _system_from_hint(self, system_hint: Optional[int]) -> int:
        if system_hint:
            return system_hint
        if self.header is not None and self.header.system != SYS_NONE:
            return self.header.system
        return self.config.default_system

    def _parse_epoch_line(self, line: str, system_hint: Optional[int]):
        ln = self.stream.line_number
        try:
            if self.version >= 3.0:
                system = char2sys(line[0])
                if system == SYS_NONE:
                    raise FormatError(f"unknown satellite system code {line[0]!r}", ln, field='sat')
                sat = SatID(system, int(line[1:3]))
                parts = line[3:23].split()
                if len(parts) != 6:
                    raise FormatError("epoch needs 6 fields", ln, field='epoch')
                year = int(parts[0])
                clock_text = line[23:]
                offset = 0
            else:
                offset = 1 if line[:1].isalpha() else 0
                if offset:
                    system = char2sys(line[0])
                    if system == SYS_NONE:
                        raise FormatError(f"unknown satellite system code {line[0]!r}", ln, field='sat')
                else:
                    system = self._system_from_hint(system_hint)
                sat = SatID(system, int(line[offset:offset + 2]))
                parts = line[offset + 2:offset + 22].split()
                if len(parts) != 6:
                    raise FormatError("epoch needs 6 fields", ln, field='epoch')
                year = _two_digit_year(int(parts[0]))
                clock_text = line[offset + 22:]
            month, day, hour, minute = (int(p) for p in parts[1:5])
            seconds = float(parts[5])
            epoch = datetime(year, month, day, hour, minute) + timedelta(seconds=seconds)
        except ValueError as e:
            raise FormatError(f"bad satellite/epoch line: {e}", ln, field='epoch') from None

        if system not in ORBIT_LINES:
            raise FormatError(f"unsupported satellite system {sys2char(system)!r}", ln, field='sat')
        clock = parse_fields(clock_text, ln, 3, clock_field_names(system))
        clock += [0.0] * (3 - len(clock))
        return system, sat, epoch, clock, offset

    def decode(self, system_hint: Optional[int] = None) -> NavRecord:
        """Read one record.

        Parameters
        ----------
        system_hint : int, optional
            Satellite system for single-system RINEX 2 files whose records
            carry no system letter. Ignored for RINEX 3.

        Raises
        ------
        EndOfInput
            No record starts before the end of input
        FormatError
            Malformed record; see the class notes for the stream position
        """
        stream = self.stream
        stream.checkpoint()
        line = stream.read_record()
        if self.header is None and line[HEADER_LABEL_COL:].strip() == 'RINEX VERSION / TYPE':
            stream.restore()
            self.read_header()
            stream.checkpoint()
            line = stream.read_record()
        if not strip_comment(line).strip():
            # comment or blank where a record should start: retry once
            line = stream.read_record()
            if not strip_comment(line).strip():
                err = FormatError("no satellite/epoch line", stream.line_number,
                                  source=stream.filename)
                stream.record_failure(err)
                raise err

        start_line = stream.line_number
        try:
            system, sat, epoch, clock, offset = self._parse_epoch_line(strip_comment(line),
                                                                       system_hint)
            indent = self.indent + offset
            nlines = orbit_line_count(system, self.version)
            names = orbit_field_names(system, self.version)
            orbit: List[float] = []
            read = 0
            while read < nlines:
                here = stream.tell()
                try:
                    line = stream.read_record()
                except EndOfInput:
                    raise FormatError(f"end of input after {read} of {nlines} orbit lines",
                                      stream.line_number) from None
                text = strip_comment(line)
                if not text.strip():
                    continue
                if self._is_record_start(text):
                    stream.restore(here)
                    raise FormatError(f"record cut short: {read} of {nlines} orbit lines",
                                      stream.line_number + 1)
                body = text[indent:] if not text[:indent].strip() else text
                values = parse_fields(body, stream.line_number, FIELDS_PER_LINE,
                                      names[4 * read:4 * read + 4])
                orbit.extend(values + [0.0] * (FIELDS_PER_LINE - len(values)))
                read += 1
            record = NavRecord(system, sat, epoch, clock, orbit, self.version, start_line)
        except FormatError as e:
            e.source = e.source or stream.filename
            stream.record_failure(e)
            raise

        self._trace("Decoded %s %s at line %d", sat, epoch.isoformat(), start_line)
        return record

    def resync(self) -> None:
        """Skip forward to the next satellite/epoch line (not consumed)"""
        while True:
            here = self.stream.tell()
            try:
                line = self.stream.read_record()
            except EndOfInput:
                return
            except FormatError:
                continue
            if self._is_record_start(strip_comment(line)):
                self.stream.restore(here)
                return

    def records(self, system_hint: Optional[int] = None) -> Iterator[NavRecord]:
        """Decode records to the end of input.

        Malformed records are logged and skipped unless the stream is set to
        raise on failure.
        """
        while True:
            try:
                yield self.decode(system_hint)
            except EndOfInput:
                logger.debug("End of %s after %d lines", self.stream.filename, self.stream.line_number)
                return
            except FormatError as e:
                logger.warning("Skipping malformed record: %s", e)
                self.stream.conditional_raise()
                self.resync()

    # Encoding

    def encode(self, record: NavRecord) -> List[str]:
        """Render a record as lines in the codec's RINEX version"""
        version = self.version
        exponent = 'E' if version >= 3.0 else 'D'
        nlines = orbit_line_count(record.system, version)
        orbit = list(record.orbit[:4 * nlines])
        orbit += [0.0] * (4 * nlines - len(orbit))

        t = record.epoch
        if version >= 3.0:
            prefix = (f"{record.sat.char}{record.sat.prn:02d} {t.year:04d} {t.month:02d} {t.day:02d} "
                      f"{t.hour:02d} {t.minute:02d} {t.second:02d}")
        else:
            seconds = t.second + t.microsecond * 1e-6
            sat = f"{record.sat.prn:2d}" if record.system in (SYS_GPS, SYS_GLO) else \
                f"{record.sat.char}{record.sat.prn:02d}"
            prefix = (f"{sat} {t.year % 100:02d} {t.month:2d} {t.day:2d} "
                      f"{t.hour:2d} {t.minute:2d}{seconds:5.1f}")

        lines = [prefix + ''.join(format_nav_float(v, exponent) for v in record.clock)]
        pad = ' ' * (self.indent + (1 if version < 3.0 and record.system not in (SYS_GPS, SYS_GLO) else 0))
        for i in range(nlines):
            lines.append(pad + ''.join(format_nav_float(v, exponent) for v in orbit[4 * i:4 * i + 4]))
        self._trace("Encoded %s %s", record.sat, t.isoformat())
        return lines

    def write(self, record: NavRecord) -> None:
        for line in self.encode(record):
            self.stream.write_record(line)
