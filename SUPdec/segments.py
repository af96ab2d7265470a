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

from enum import Enum, IntEnum
from flags import Flags
from struct import unpack
from typing import Optional
from dataclasses import dataclass

from .errors import (InvalidMagic, InvalidSegmentType, UnexpectedEndOfStream,
                     TruncatedPalette, WindowCountMismatch, InvalidCompositionState,
                     TruncatedComposition, TruncatedObjectDefinition)
from .palette import PaletteEntry, Palette
from .utils import ByteCursor, LogFacility

#%%
logger = LogFacility.get_logger('SUPdec')

class SegmentType(IntEnum):
    PDS = 0x14
    ODS = 0x15
    PCS = 0x16
    WDS = 0x17
    END = 0x80

    def __str__(self) -> str:
        return self.name

class PGSegment:
    """
    A framed PG segment: header and payload bytes, plus the absolute offset of
    its first byte in the stream. Subclasses decode the payload on creation.
    """
    class PGSOff(Enum):
        MAGIC_HEADER = slice(0, 2)
        SEG_TYPE     = 2
        PRES_TS      = slice(3, 7)
        DECODE_TS    = slice(7, 11)
        SEG_LENGTH   = slice(11,13)

    FREQ_PGS                = 90e3
    MAGIC: bytes            = b"PG"
    HEADER_LEN: int         = 13

    def __init__(self, data: bytes, offset: int = 0) -> None:
        assert len(data) >= __class__.HEADER_LEN, "Not enough data for a segment header."
        self._bytes = bytes(data)
        self.offset = offset

    @classmethod
    def read(cls, cursor: ByteCursor) -> 'PGSegment':
        """
        Read the next segment at the cursor and decode its payload.
        The cursor only moves past what was successfully read: the header is
        checked as a whole before being consumed.

        :param cursor: cursor over the stream, positioned on a segment.
        :return: the specialised segment (PCS, WDS, PDS, ODS or ENDS).
        """
        start = cursor.offset
        if cursor.remaining >= 2 and cursor.peek(2) != cls.MAGIC:
            raise InvalidMagic(f"Expected a PG segment, got {cursor.peek(2)!r}.", start)
        if cursor.remaining < cls.HEADER_LEN:
            raise UnexpectedEndOfStream(f"Segment header cut after {cursor.remaining} byte(s).", start)

        header = cursor.peek(cls.HEADER_LEN)
        try:
            SegmentType(header[cls.PGSOff.SEG_TYPE.value])
        except ValueError:
            raise InvalidSegmentType(f"Unknown segment type 0x{header[cls.PGSOff.SEG_TYPE.value]:02X}.",
                                     start + cls.PGSOff.SEG_TYPE.value) from None

        cursor.read(cls.HEADER_LEN)
        length = unpack(">H", header[cls.PGSOff.SEG_LENGTH.value])[0]
        if cursor.remaining < length:
            raise UnexpectedEndOfStream(f"Payload is missing {length-cursor.remaining} bytes.", cursor.offset)
        return cls(header + cursor.read(length), start).specialise()

    def __bytes__(self) -> bytes:
        return self._bytes

    @property
    def pts(self) -> int:
        """Presentation timestamp, 90 kHz ticks."""
        return unpack(">I", self._bytes[__class__.PGSOff.PRES_TS.value])[0]

    @property
    def dts(self) -> int:
        """Decoding timestamp, 90 kHz ticks."""
        return unpack(">I", self._bytes[__class__.PGSOff.DECODE_TS.value])[0]

    @property
    def type(self) -> SegmentType:
        return SegmentType(self._bytes[__class__.PGSOff.SEG_TYPE.value])

    @property
    def size(self) -> int:
        return unpack(">H", self._bytes[__class__.PGSOff.SEG_LENGTH.value])[0]

    @property
    def payload(self) -> bytes:
        return self._bytes[__class__.HEADER_LEN:]

    @property
    def payload_offset(self) -> int:
        return self.offset + __class__.HEADER_LEN

    def _payload_cursor(self) -> ByteCursor:
        return ByteCursor(self.payload, base=self.payload_offset)

    def __str__(self):
        return f"{self.type} at {self.pts/__class__.FREQ_PGS:.3f}[s], {self.size} bytes."

    def __len__(self):
        return len(self._bytes)

    def __eq__(self, other):
        if isinstance(other, PGSegment):
            return self._bytes == other._bytes
        return NotImplemented

    def __hash__(self):
        return hash(self._bytes)

    def specialise(self) -> 'PGSegment':
        """
        Build the typed segment from a raw one, decoding its payload.
        """
        seg = { SegmentType.PDS: PDS, SegmentType.ODS: ODS, SegmentType.PCS: PCS,
                SegmentType.WDS: WDS, SegmentType.END: ENDS }
        return seg[self.type](self._bytes, self.offset)

#%%
@dataclass(frozen=True)
class CropRect:
    x: int
    y: int
    width: int
    height: int

@dataclass(frozen=True)
class CObject:
    """
    Composition object: places an object, by id, in a window, by id.
    Neither id is resolved here.
    """
    class COFlags(IntEnum):
        CROPPED = 0x80
        FORCED = 0x40

    FIXED_LEN = 8
    CROP_LEN = 8

    object_id: int
    window_id: int
    x: int
    y: int
    cropped: bool = False
    forced: bool = False
    crop: Optional[CropRect] = None

    @classmethod
    def from_cursor(cls, cursor: ByteCursor) -> 'CObject':
        if cursor.remaining < cls.FIXED_LEN:
            raise TruncatedComposition("Composition object is cut.", cursor.offset)
        object_id, window_id = cursor.read_u16(), cursor.read_u8()
        flags = cursor.read_u8()
        x, y = cursor.read_u16(), cursor.read_u16()

        cropped = bool(flags & cls.COFlags.CROPPED)
        crop = None
        if cropped:
            if cursor.remaining < cls.CROP_LEN:
                raise TruncatedComposition("Cropping rectangle is cut.", cursor.offset)
            crop = CropRect(cursor.read_u16(), cursor.read_u16(), cursor.read_u16(), cursor.read_u16())
        return cls(object_id, window_id, x, y, cropped, bool(flags & cls.COFlags.FORCED), crop)

class PCS(PGSegment):
    class PCSOff(Enum):
        WIDTH      = slice(0, 2)
        HEIGHT     = slice(2, 4)
        STREAM_FPS = 4
        COMP_NB    = slice(5, 7)
        COMP_STATE = 7
        PAL_FLAG   = 8
        PAL_ID     = 9
        N_OBJ_DEFS = 10
        LENGTH_SEG = 11 # must be last

    class CompositionState(IntEnum):
        NORMAL          = 0x00 #Update of the current composition
        ACQUISITION     = 0x40 #Refresh, all objects re-sent
        EPOCH_START     = 0x80 #New display, all decoder memory is reset
        EPOCH_CONTINUE  = 0xC0 #Carry over the previous display set's tables

    def __init__(self, data: bytes, offset: int = 0) -> None:
        super().__init__(data, offset)
        payload = self.payload
        if len(payload) < __class__.PCSOff.LENGTH_SEG.value:
            raise TruncatedComposition(f"PCS header needs {__class__.PCSOff.LENGTH_SEG.value} bytes, "
                                       f"got {len(payload)}.", self.payload_offset)

        state = payload[__class__.PCSOff.COMP_STATE.value]
        try:
            self.composition_state = __class__.CompositionState(state)
        except ValueError:
            raise InvalidCompositionState(f"Unknown composition state 0x{state:02X}.",
                                          self.payload_offset + __class__.PCSOff.COMP_STATE.value) from None

        self.width = unpack(">H", payload[__class__.PCSOff.WIDTH.value])[0]
        self.height = unpack(">H", payload[__class__.PCSOff.HEIGHT.value])[0]
        self.frame_rate = payload[__class__.PCSOff.STREAM_FPS.value]
        self.composition_n = unpack(">H", payload[__class__.PCSOff.COMP_NB.value])[0]
        self.pal_flag = bool(payload[__class__.PCSOff.PAL_FLAG.value] & 0x80)
        self.pal_id = payload[__class__.PCSOff.PAL_ID.value]

        cursor = self._payload_cursor()
        cursor.read(__class__.PCSOff.LENGTH_SEG.value)
        self.cobjects: list[CObject] = [CObject.from_cursor(cursor) for _ in range(self.n_objects)]
        if cursor.remaining:
            logger.warning(f"PCS at byte {self.offset} has {cursor.remaining} trailing byte(s), ignored.")

    @property
    def n_objects(self) -> int:
        return self.payload[__class__.PCSOff.N_OBJ_DEFS.value]

    def __str__(self):
        return f"{super().__str__()[:-1]}, {self.composition_state.name}, {self.n_objects} object(s)."

#%%
@dataclass(frozen=True)
class WindowDefinition:
    class WDOff(Enum):
        WINDOW_ID = 0
        H_POS     = slice(1, 3)
        V_POS     = slice(3, 5)
        WIDTH     = slice(5, 7)
        HEIGHT    = slice(7, 9)
        LENGTH    = 9

    window_id: int
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_bytes(cls, data: bytes) -> 'WindowDefinition':
        off = cls.WDOff
        assert len(data) == off.LENGTH.value
        return cls(data[off.WINDOW_ID.value], *(unpack(">H", data[sl.value])[0]
                                               for sl in (off.H_POS, off.V_POS, off.WIDTH, off.HEIGHT)))

class WDS(PGSegment):
    _LENGTH_WINDOW_DEF = WindowDefinition.WDOff.LENGTH.value

    def __init__(self, data: bytes, offset: int = 0) -> None:
        super().__init__(data, offset)
        payload = self.payload
        if len(payload) == 0:
            raise WindowCountMismatch("WDS has no window count.", self.payload_offset)

        lwd = __class__._LENGTH_WINDOW_DEF
        # -1 because payload[0] is consumed
        if self.n_windows * lwd != len(payload) - 1:
            raise WindowCountMismatch(f"{self.n_windows} window(s) declared for {len(payload)-1} bytes.",
                                      self.payload_offset)
        self.windows = [WindowDefinition.from_bytes(payload[1+i*lwd:1+(i+1)*lwd]) for i in range(self.n_windows)]

    @property
    def n_windows(self) -> int:
        return self.payload[0]

    def __getitem__(self, idx: int) -> WindowDefinition:
        return self.windows[idx]

#%%
class PDS(PGSegment):
    """
    A PaletteDefinitionSegment updates or defines the entries of a given palette.
    """
    __STEP = 5
    class PDSOff(Enum):
        PAL_ID      = 0
        PAL_VERS_N  = 1
        PAL_ENTRIES = slice(2, None)

    def __init__(self, data: bytes, offset: int = 0) -> None:
        super().__init__(data, offset)
        if len(self.payload) < __class__.PDSOff.PAL_ENTRIES.value.start:
            raise TruncatedPalette("PDS is missing its palette id or version.", self.payload_offset)

        if (rem := len(self.payload[__class__.PDSOff.PAL_ENTRIES.value]) % __class__.__STEP) != 0:
            raise TruncatedPalette(f"Trailing partial palette entry of {rem} byte(s).",
                                   self.payload_offset + len(self.payload) - rem)

    @property
    def p_id(self) -> int:
        return self.payload[__class__.PDSOff.PAL_ID.value]

    @property
    def p_vn(self) -> int:
        return self.payload[__class__.PDSOff.PAL_VERS_N.value]

    @property
    def n_entries(self) -> int:
        return len(self.payload[__class__.PDSOff.PAL_ENTRIES.value]) // __class__.__STEP

    def to_palette(self) -> Palette:
        p_data = self.payload[__class__.PDSOff.PAL_ENTRIES.value]

        palette = Palette(version=self.p_vn)
        for i in range(0, len(p_data), __class__.__STEP):
            entry = PaletteEntry.from_bytes(p_data[i:i+__class__.__STEP])
            palette[entry.id] = entry
        return palette

#%%
class ODS(PGSegment):
    """
    Object definition segment: one fragment of a RLE encoded bitmap.
    Only the first fragment of an object carries its size and dimensions.
    """
    class ODSOff(Enum):
        OBJ_ID   = slice(0, 2)
        OBJ_VN   = 2
        SEQ_FLAG = 3
        DATA_LEN = slice(4, 7)
        WIDTH    = slice(7, 9)
        HEIGHT   = slice(9, 11)
        OBJ_DATA_FIRST = slice(11,None)
        OBJ_DATA_OTHERS= slice(4, None)

    class ODSFlags(Flags):
        SEQUENCE_FIRST = 0x80
        SEQUENCE_LAST  = 0x40

    def __init__(self, data: bytes, offset: int = 0) -> None:
        super().__init__(data, offset)
        off = __class__.ODSOff
        if len(self.payload) < off.OBJ_DATA_OTHERS.value.start:
            raise TruncatedObjectDefinition("ODS header is cut.", self.payload_offset)
        if self.is_first and len(self.payload) < off.OBJ_DATA_FIRST.value.start:
            raise TruncatedObjectDefinition("First ODS of object is missing its size fields.", self.payload_offset)

    @property
    def o_id(self) -> int:
        return unpack(">H", self.payload[__class__.ODSOff.OBJ_ID.value])[0]

    @property
    def o_vn(self) -> int:
        return self.payload[__class__.ODSOff.OBJ_VN.value]

    @property
    def flags(self) -> Flags:
        # reserved bits are not ours to interpret
        return __class__.ODSFlags(self.payload[__class__.ODSOff.SEQ_FLAG.value] & 0xC0)

    @property
    def is_first(self) -> bool:
        return __class__.ODSFlags.SEQUENCE_FIRST in self.flags

    @property
    def is_last(self) -> bool:
        return __class__.ODSFlags.SEQUENCE_LAST in self.flags

    @property
    def rle_len(self) -> int:
        """
        Declared length of the complete RLE data of the object. It counts RLE
        bytes only, the width and height fields are not included.
        """
        if self.is_first:
            return unpack(">I", b'\x00' + self.payload[__class__.ODSOff.DATA_LEN.value])[0]
        raise AttributeError("ODS is not first in sequence.")

    @property
    def width(self) -> int:
        if self.is_first:
            return unpack(">H", self.payload[__class__.ODSOff.WIDTH.value])[0]
        raise AttributeError("ODS is not first in sequence.")

    @property
    def height(self) -> int:
        if self.is_first:
            return unpack(">H", self.payload[__class__.ODSOff.HEIGHT.value])[0]
        raise AttributeError("ODS is not first in sequence.")

    @property
    def data_offset(self) -> int:
        """Absolute offset of the RLE fragment in the stream."""
        if self.is_first:
            return self.payload_offset + __class__.ODSOff.OBJ_DATA_FIRST.value.start
        return self.payload_offset + __class__.ODSOff.OBJ_DATA_OTHERS.value.start

    @property
    def data(self) -> bytes:
        if self.is_first:
            return self.payload[__class__.ODSOff.OBJ_DATA_FIRST.value]
        return self.payload[__class__.ODSOff.OBJ_DATA_OTHERS.value]

#%%
class ENDS(PGSegment):
    def __init__(self, data: bytes, offset: int = 0) -> None:
        super().__init__(data, offset)
        # Some encoders pad END, it carries no information: accept it.
        if len(self.payload) > 0:
            logger.debug(f"END segment at byte {self.offset} has a {len(self.payload)} bytes payload, ignored.")
