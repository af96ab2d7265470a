#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Copyright (C) 2024 cibo
This file is part of SUPdec.

SUPdec is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

SUPdec is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU General Public License for more details.

You should have received a copy of the GNU General Public License
along with SUPdec.  If not, see <http://www.gnu.org/licenses/>.
"""

import logging

from struct import unpack, unpack_from
from typing import Optional, Union

from .errors import UnexpectedEndOfStream

#%%
class LogFacility:
    _logger = dict()

    @classmethod
    def set_file_log(cls, logger: logging.Logger, fp: str, level: Optional[int] = None, simple_format: bool = False) -> None:
        if level is None:
            level = logger.level
        lfh = logging.FileHandler(fp, mode='w')
        formatter = logging.Formatter('%(message)s' if simple_format else '%(levelname).8s: %(message)s')
        lfh.setFormatter(formatter)
        if logger.getEffectiveLevel() > level:
            cls.set_logger_level(logger.name, level)
        lfh.setLevel(level)
        logger.addHandler(lfh)

    @classmethod
    def _init_logger(cls, name: str, with_handler: bool = True) -> None:
        cls._extend_logger()
        logger = cls._logger[name] = logging.getLogger(name)

        if not logger.hasHandlers() and with_handler:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(' %(name)s %(levelname).4s : %(message)s')
            handler.setFormatter(formatter)
            logger.addHandler(handler)

    @classmethod
    def set_logger_level(cls, name: str, level: int) -> None:
        assert cls._logger.get(name, None) is not None
        cls._logger[name].setLevel(level)
        if len(cls._logger[name].handlers):
            cls._logger[name].handlers[0].setLevel(level)

    @classmethod
    def get_logger(cls, name: str, level: int = logging.INFO, with_handler: bool = True) -> logging.Logger:
        """
        Get (or create on first call) the named logger, logging to console.

        Args:
          name: Name for the logger.
          level: Minimum level for messages to be logged, only used at creation.
          with_handler: attach a console handler if the logger has none.
        """
        if cls._logger.get(name, None) is None:
            cls._init_logger(name, with_handler)
            cls.set_logger_level(name, level)
        return cls._logger[name]

    @staticmethod
    def _extend_logger() -> None:
        if getattr(logging.Logger, 'ldebug', None) is not None:
            return
        # Per-segment tracing, too verbose for DEBUG.
        LOW_DEBUG = logging.DEBUG - 5
        logging.addLevelName(LOW_DEBUG, "LDEBUG")
        def low_debug(self, message, *args, **kws):
            if self.isEnabledFor(LOW_DEBUG):
                self._log(LOW_DEBUG, message, args, **kws)
        logging.Logger.ldebug = low_debug
####

#%%
class ByteCursor:
    """
    Read-only view over an in-memory buffer with a read position.
    Integers are big-endian. A failed read never moves the position.

    :param data: buffer to read from.
    :param base: absolute offset of data[0], used in error reports when the
                 cursor walks a slice of a larger stream.
    """
    def __init__(self, data: Union[bytes, bytearray, memoryview], base: int = 0) -> None:
        self._data = data if isinstance(data, bytes) else bytes(data)
        self._base = base
        self._pos = 0

    @property
    def pos(self) -> int:
        return self._pos

    @property
    def offset(self) -> int:
        """Absolute offset of the next byte to read."""
        return self._base + self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def __len__(self) -> int:
        return len(self._data)

    def eof(self) -> bool:
        return self._pos >= len(self._data)

    def _require(self, n: int) -> None:
        if self.remaining < n:
            raise UnexpectedEndOfStream(f"Need {n} byte(s), {self.remaining} left.", self.offset)

    def peek(self, n: int) -> bytes:
        return self._data[self._pos:self._pos+n]

    def read(self, n: int) -> bytes:
        self._require(n)
        chunk = self._data[self._pos:self._pos+n]
        self._pos += n
        return chunk

    def read_rest(self) -> bytes:
        return self.read(self.remaining)

    def read_u8(self) -> int:
        self._require(1)
        self._pos += 1
        return self._data[self._pos-1]

    def read_u16(self) -> int:
        self._require(2)
        val = unpack_from(">H", self._data, self._pos)[0]
        self._pos += 2
        return val

    def read_u24(self) -> int:
        self._require(3)
        val = unpack(">I", b'\x00' + self._data[self._pos:self._pos+3])[0]
        self._pos += 3
        return val

    def read_u32(self) -> int:
        self._require(4)
        val = unpack_from(">I", self._data, self._pos)[0]
        self._pos += 4
        return val
####
