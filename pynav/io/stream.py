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

"""Line-oriented formatted record stream.

A ``FormattedRecordStream`` reads or writes one physical line ("record") at a
time, counts records, and keeps a sticky fail indicator together with the most
recent error. Callers that decode multi-line records take a checkpoint before
the first line and may restore it after a failure.

Whether failures escalate is a per-stream policy: ``read_record`` always
raises, but bulk loaders consult ``conditional_raise`` which only re-raises
the last error when the stream was built with ``raise_on_failure=True``.
"""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, NamedTuple, Optional, Union

from ..core.constants import MAX_LINE_LENGTH
from ..core.errors import EndOfInput, FormatError

logger = logging.getLogger(__name__)


@dataclass
class StreamConfig:
    """Stream behaviour configuration

    Attributes
    ----------
    raise_on_failure : bool
        If True, ``conditional_raise`` re-raises the most recent error.
        Otherwise callers poll ``failed`` (default: False)
    max_line_length : int
        Longest physical line accepted, newline excluded (default: 255)
    encoding : str
        Text encoding of the source (default: 'ascii')
    """
    raise_on_failure: bool = False
    max_line_length: int = MAX_LINE_LENGTH
    encoding: str = 'ascii'


class Checkpoint(NamedTuple):
    """Saved stream position"""
    offset: int
    record_number: int
    line_number: int


class FormattedRecordStream:
    """Read/write text records one line at a time with recoverable failures.

    Attributes
    ----------
    filename : str
        Name of the open source ('' when closed)
    record_number : int
        Records successfully read or written since ``open``
    line_number : int
        Physical lines consumed since ``open``, including rejected ones
    failed : bool
        Sticky fail indicator; cleared only by ``open`` or ``clear``
    most_recent_error : FormatError, EndOfInput, OSError or None
        Last error captured by the stream
    """

    def __init__(self, name: Union[str, Path, None] = None, mode: str = 'r',
                 config: Optional[StreamConfig] = None):
        self.config = config or StreamConfig()
        self._fh = None
        self._owns_handle = False
        self._mark: Optional[Checkpoint] = None
        self.mode = mode
        self._reset('')
        if name is not None:
            self.open(name, mode)

    @classmethod
    def from_string(cls, text: str, name: str = '<string>',
                    config: Optional[StreamConfig] = None) -> 'FormattedRecordStream':
        """Build a read stream over in-memory text"""
        stream = cls(config=config)
        stream.attach(io.StringIO(text), name)
        return stream

    def _reset(self, name: str):
        self.filename = name
        self.record_number = 0
        self.line_number = 0
        self.failed = False
        self.most_recent_error: Optional[Exception] = None
        self._mark = None

    def open(self, name: Union[str, Path], mode: str = 'r') -> None:
        """Open ``name`` for reading ('r') or writing ('w'/'a').

        Resets counters and failure state. An ``OSError`` propagates and
        leaves the stream closed and failed.
        """
        self.close()
        self._reset(str(name))
        self.mode = mode
        try:
            self._fh = open(name, mode, encoding=self.config.encoding,
                            errors='replace', newline='')
            self._owns_handle = True
        except OSError as e:
            self.record_failure(e)
            logger.error("Cannot open %s: %s", name, e)
            raise
        logger.debug("Opened %s (mode=%s)", name, mode)

    def attach(self, handle, name: str = '<handle>') -> None:
        """Use an already open text handle (not closed by ``close``)"""
        self.close()
        self._reset(name)
        self._fh = handle
        self._owns_handle = False

    def close(self) -> None:
        if self._fh is not None and self._owns_handle:
            self._fh.close()
            logger.debug("Closed %s after %d records", self.filename, self.record_number)
        self._fh = None
        self._owns_handle = False

    @property
    def is_open(self) -> bool:
        return self._fh is not None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def _require_open(self):
        if self._fh is None:
            err = FormatError("stream is not open", self.line_number, source=self.filename)
            self.record_failure(err)
            raise err

    def record_failure(self, err: Exception) -> None:
        """Set the fail indicator and remember ``err``"""
        self.failed = True
        self.most_recent_error = err

    def clear(self) -> None:
        """Reset the fail indicator without reopening"""
        self.failed = False
        self.most_recent_error = None

    def conditional_raise(self) -> None:
        """Re-raise the most recent error if the stream is set to raise"""
        if self.config.raise_on_failure and self.most_recent_error is not None:
            raise self.most_recent_error

    # Position management

    def tell(self) -> Checkpoint:
        """Current position, without replacing the saved checkpoint"""
        self._require_open()
        return Checkpoint(self._fh.tell(), self.record_number, self.line_number)

    def checkpoint(self) -> Checkpoint:
        """Save the current position; ``restore()`` returns to it"""
        self._mark = self.tell()
        return self._mark

    def restore(self, mark: Optional[Checkpoint] = None) -> None:
        """Rewind to ``mark`` (default: the last checkpoint).

        The fail indicator is left untouched.
        """
        self._require_open()
        mark = mark or self._mark
        if mark is None:
            raise ValueError("No checkpoint to restore")
        self._fh.seek(mark.offset)
        self.record_number = mark.record_number
        self.line_number = mark.line_number

    # Records

    def read_record(self) -> str:
        """Read one line, without its line terminator.

        Raises
        ------
        EndOfInput
            Clean end of the source
        FormatError
            Line longer than the configured maximum; the line is consumed
        """
        self._require_open()
        raw = self._fh.readline()
        if raw == '':
            err = EndOfInput(self.filename, self.record_number)
            self.record_failure(err)
            raise err
        self.line_number += 1
        line = raw.rstrip('\r\n')
        if len(line) > self.config.max_line_length:
            err = FormatError(f"line exceeds {self.config.max_line_length} characters ({len(line)})",
                              self.line_number, source=self.filename)
            self.record_failure(err)
            raise err
        self.record_number += 1
        return line

    def write_record(self, line: str) -> None:
        """Append one line; the terminator is added here"""
        self._require_open()
        if len(line) > self.config.max_line_length:
            err = FormatError(f"refusing to write {len(line)}-character line",
                              self.record_number + 1, source=self.filename)
            self.record_failure(err)
            raise err
        self._fh.write(line + '\n')
        self.record_number += 1
        self.line_number += 1

    def __iter__(self) -> Iterator[str]:
        while True:
            try:
                yield self.read_record()
            except EndOfInput:
                return

    def dump_state(self) -> str:
        """One-line description of the stream state"""
        err = type(self.most_recent_error).__name__ if self.most_recent_error else 'none'
        return (f"{self.filename or '<closed>'}: records={self.record_number} "
                f"lines={self.line_number} failed={self.failed} last_error={err}")
