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

from numpy import typing as npt
import numpy as np
from typing import Union, Optional

from .errors import (RowLengthMismatch, BitmapSizeMismatch, BitmapError,
                     DuplicateObjectStart, UnknownObjectFragment, ObjectOverflow, IncompleteObject)
from .segments import ODS
from .utils import LogFacility

from dataclasses import dataclass, field

logger = LogFacility.get_logger('SUPdec')

#%%
class PGraphics:
    class RunCode:
        COLORED = 0x40
        LONG    = 0x80
        LENGTH  = 0x3F

    @staticmethod
    def decode_rle(data: Union[bytes, bytearray],
                   width: int,
                   height: int,
                   pad_short_rows: bool = False,
        ) -> npt.NDArray[np.uint8]:
        """
        Decode a RLE object bitmap.

        After a non-zero byte (a single pixel), every code starts with 0x00:
         - 00 00: end of line.
         - 00 00LLLLLL: L pixels of color 0.
         - 00 01LLLLLL CC: L pixels of color CC.
         - 00 10LLLLLL LLLLLLLL: L (14 bits) pixels of color 0.
         - 00 11LLLLLL LLLLLLLL CC: L (14 bits) pixels of color CC.

        A row ends once it holds width pixels, the end of line that follows
        is then optional. An end of line on a shorter row is an error unless
        pad_short_rows is set, then the row is completed with color 0.

        :param data:  complete RLE data of the object.
        :param width: object width.
        :param height: object height.
        :param pad_short_rows: pad rows terminated early instead of failing.
        :return: flat array of width*height palette indices, row-major.
        """
        RC = PGraphics.RunCode
        n_data = len(data)
        bitmap = bytearray()
        k = 0
        row, col = 0, 0
        # row filled up, its end of line may or may not follow
        eol_optional = False

        def emit(length: int, color: int, k_start: int) -> None:
            nonlocal row, col, eol_optional
            if length == 0:
                return
            if row >= height:
                raise BitmapSizeMismatch(f"Pixels past the last row ({height}).", k_start)
            if col + length > width:
                raise RowLengthMismatch(f"Row {row} overflows to {col+length} pixels, width is {width}.", k_start)
            bitmap.extend(bytes((color,)) * length)
            col += length
            eol_optional = False
            if col == width:
                row, col = row + 1, 0
                eol_optional = True

        while k < n_data:
            k_start = k
            byte = data[k]
            if byte != 0:
                emit(1, byte, k_start)
                k += 1
                continue

            if k + 1 >= n_data:
                raise BitmapSizeMismatch("RLE data ends inside a run code.", k_start)
            code = data[k+1]
            if code == 0:
                k += 2
                if eol_optional:
                    eol_optional = False
                    continue
                if row >= height:
                    raise BitmapSizeMismatch(f"End of line past the last row ({height}).", k_start)
                if col < width:
                    if not pad_short_rows:
                        raise RowLengthMismatch(f"Row {row} ends at {col} pixels, width is {width}.", k_start)
                    bitmap.extend(bytes(width - col))
                row, col = row + 1, 0
                continue

            length = code & RC.LENGTH
            n_code = 2 + bool(code & RC.LONG) + bool(code & RC.COLORED)
            if k + n_code > n_data:
                raise BitmapSizeMismatch("RLE data ends inside a run code.", k_start)
            if code & RC.LONG:
                length = (length << 8) | data[k+2]
            color = data[k+n_code-1] if code & RC.COLORED else 0
            emit(length, color, k_start)
            k += n_code

        if len(bitmap) != width*height:
            raise BitmapSizeMismatch(f"Decoded {len(bitmap)} pixels, expected {width}x{height}.", n_data)
        return np.frombuffer(bytes(bitmap), dtype=np.uint8).copy()
####

#%%
@dataclass(eq=False)
class ObjectDefinition:
    """
    A complete, decoded object. Pixels are palette indices, row-major.
    """
    object_id: int
    version: int
    width: int
    height: int
    indexed_pixels: npt.NDArray[np.uint8]

    def __post_init__(self) -> None:
        assert self.indexed_pixels.shape == (self.width*self.height,)

    @property
    def bitmap(self) -> npt.NDArray[np.uint8]:
        return self.indexed_pixels.reshape((self.height, self.width))

    def copy(self) -> 'ObjectDefinition':
        return self.__class__(self.object_id, self.version, self.width, self.height, self.indexed_pixels.copy())

    def __eq__(self, other) -> bool:
        if isinstance(other, self.__class__):
            return (self.object_id, self.version, self.width, self.height) == \
                   (other.object_id, other.version, other.width, other.height) and \
                   np.array_equal(self.indexed_pixels, other.indexed_pixels)
        return NotImplemented
####

@dataclass
class _PendingObject:
    object_id: int
    version: int
    width: int
    height: int
    total_expected: int
    data: bytearray = field(default_factory=bytearray)
    #(absolute stream offset, length) of every fragment
    spans: list[tuple[int, int]] = field(default_factory=list)

    def locate(self, pos: int) -> int:
        """
        Map a position in the reassembled data to an offset in the stream.
        """
        for start, length in self.spans:
            if pos < length:
                return start + pos
            pos -= length
        start, length = self.spans[-1]
        return start + length + pos

class ObjectReassembler:
    """
    Collect the fragments (ODS) of objects until their declared RLE length is
    reached, then decode them. The fragments of an object are contiguous.
    """
    def __init__(self, pad_short_rows: bool = False) -> None:
        self.pad_short_rows = pad_short_rows
        self._pending: dict[int, _PendingObject] = {}

    @property
    def in_flight(self) -> list[int]:
        return list(self._pending)

    def push(self, ods: ODS) -> Optional[ObjectDefinition]:
        """
        Add a fragment to its object.

        :param ods: decoded object definition segment.
        :return: the decoded object if this fragment completed it, else None.
        """
        o_id = ods.o_id
        if ods.is_first:
            if o_id in self._pending:
                raise DuplicateObjectStart(f"Object {o_id} restarted before completion.", ods.offset)
            pending = self._pending[o_id] = _PendingObject(o_id, ods.o_vn, ods.width, ods.height, ods.rle_len)
        else:
            if (pending := self._pending.get(o_id, None)) is None:
                raise UnknownObjectFragment(f"Continuation of object {o_id} without a first fragment.", ods.offset)

        data = ods.data
        pending.spans.append((ods.data_offset, len(data)))
        pending.data += data
        if len(pending.data) > pending.total_expected:
            raise ObjectOverflow(f"Object {o_id} has {len(pending.data)} bytes, "
                                 f"{pending.total_expected} were declared.", ods.offset)
        if len(pending.data) < pending.total_expected:
            logger.ldebug(f"Object {o_id}: {len(pending.data)}/{pending.total_expected} bytes.")
            return None

        del self._pending[o_id]
        try:
            pixels = PGraphics.decode_rle(pending.data, pending.width, pending.height, self.pad_short_rows)
        except BitmapError as e:
            e.offset = pending.locate(e.offset)
            raise
        logger.ldebug(f"Object {o_id} complete: {pending.width}x{pending.height}.")
        return ObjectDefinition(o_id, pending.version, pending.width, pending.height, pixels)

    def close(self, offset: int) -> None:
        """
        Assert no object is left incomplete at a display set boundary.

        :param offset: stream offset of the boundary, for error reports.
        """
        if self._pending:
            o_id, pending = next(iter(self._pending.items()))
            raise IncompleteObject(f"Object {o_id} has {len(pending.data)}/{pending.total_expected} bytes "
                                   "at display set boundary.", offset)
