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


from collections.abc import Generator
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from .errors import UnexpectedCompositionSegment, SegmentOutsideDisplaySet, UnterminatedDisplaySet
from .segments import PGSegment, PCS, WDS, PDS, ODS, ENDS, WindowDefinition, CObject
from .pgraphics import ObjectReassembler, ObjectDefinition
from .palette import Palette
from .utils import ByteCursor, LogFacility

logger = LogFacility.get_logger('SUPdec')

#%%
class DisplaySet:
    """
    A closed display set: its composition and the tables visible to it.
    Built by DisplaySetAssembler, never exposed while incomplete.
    """
    def __init__(self, pcs: PCS,
                 windows: Optional[dict[int, WindowDefinition]] = None,
                 palettes: Optional[dict[int, Palette]] = None,
                 bitmap_objects: Optional[dict[int, ObjectDefinition]] = None) -> None:
        self.composition = pcs
        self.windows = {} if windows is None else windows
        self.palettes = {} if palettes is None else palettes
        self.bitmap_objects = {} if bitmap_objects is None else bitmap_objects
        self.segments: list[PGSegment] = [pcs]

    @property
    def objects(self) -> list[CObject]:
        return self.composition.cobjects

    @property
    def palette(self) -> Palette:
        """Palette table selected by the composition."""
        return self.palettes.get(self.composition.pal_id, Palette())

    @property
    def pts(self) -> int:
        return self.composition.pts

    @property
    def dts(self) -> int:
        return self.composition.dts

    @property
    def composition_state(self) -> PCS.CompositionState:
        return self.composition.composition_state

    @property
    def offset(self) -> int:
        """Stream offset of the first byte of the display set."""
        return self.composition.offset

    @property
    def size(self) -> int:
        """Number of stream bytes spanned, from the PCS to the END inclusive."""
        last = self.segments[-1]
        return last.offset + len(last) - self.offset

    @property
    def has_image(self) -> bool:
        return any(isinstance(seg, ODS) for seg in self.segments)

    @property
    def is_empty_frame(self) -> bool:
        return self.composition.n_objects == 0

    def copy_tables(self) -> tuple[dict[int, WindowDefinition], dict[int, Palette], dict[int, ObjectDefinition]]:
        """
        Deep copy of the windows, palettes and objects, for the next display set.
        """
        return (dict(self.windows),
                {p_id: palette.copy() for p_id, palette in self.palettes.items()},
                {o_id: obj.copy() for o_id, obj in self.bitmap_objects.items()})

    def __iter__(self):
        return iter(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def __bytes__(self) -> bytes:
        return b''.join(map(bytes, self.segments))

    def __str__(self) -> str:
        return (f"DS at {self.pts/PGSegment.FREQ_PGS:.3f}[s] {self.composition_state.name}: "
                f"{len(self.windows)} window(s), {len(self.bitmap_objects)} object(s), "
                f"{len(self.palette)} palette entries.")
####

#%%
@dataclass
class Epoch:
    """
    Consecutive display sets, from an epoch start to the next one (excluded).
    """
    ds: list[DisplaySet] = field(default_factory=lambda: list())

    @property
    def t_in(self) -> int:
        if not self.ds:
            raise IndexError("Empty Epoch.")
        return self.ds[0].pts

    @property
    def t_out(self) -> int:
        if not self.ds:
            raise IndexError("Empty Epoch.")
        return self.ds[-1].pts

    def __iter__(self):
        return iter(self.ds)

    def __len__(self) -> int:
        return len(self.ds)
####

#%%
class DisplaySetAssembler:
    """
    Group decoded segments into display sets.

    Idle until a PCS opens a display set, Open until the END that closes it.
    Palette, window and object segments met in between insert or replace
    their entry in the tables of the open display set.
    """
    class State(Enum):
        IDLE = 0
        OPEN = 1

    def __init__(self, pad_short_rows: bool = False) -> None:
        self.reassembler = ObjectReassembler(pad_short_rows)
        self.state = __class__.State.IDLE
        self._current: Optional[DisplaySet] = None
        self._previous: Optional[DisplaySet] = None

    @property
    def is_open(self) -> bool:
        return self.state == __class__.State.OPEN

    def feed(self, segment: PGSegment) -> Optional[DisplaySet]:
        """
        Apply a segment to the assembler state.

        :param segment: next decoded segment of the stream.
        :return: the display set closed by this segment, if any.
        """
        logger.ldebug(f"Byte {segment.offset}: {segment}")
        if isinstance(segment, PCS):
            self._open(segment)
            return None

        if not self.is_open:
            raise SegmentOutsideDisplaySet(f"{segment.type} found outside of a display set.", segment.offset)

        ds = self._current
        ds.segments.append(segment)
        if isinstance(segment, PDS):
            if segment.p_id in ds.palettes:
                ds.palettes[segment.p_id].update(segment.to_palette())
            else:
                ds.palettes[segment.p_id] = segment.to_palette()
        elif isinstance(segment, WDS):
            for window in segment.windows:
                ds.windows[window.window_id] = window
        elif isinstance(segment, ODS):
            if (obj := self.reassembler.push(segment)) is not None:
                ds.bitmap_objects[obj.object_id] = obj
        elif isinstance(segment, ENDS):
            return self._close(segment)
        return None

    def _open(self, pcs: PCS) -> None:
        if self.is_open:
            self.reassembler.close(pcs.offset)
            raise UnexpectedCompositionSegment("PCS found before the END of the previous display set.", pcs.offset)

        if pcs.composition_state == PCS.CompositionState.EPOCH_CONTINUE:
            if self._previous is None:
                logger.warning(f"Epoch continuation at byte {pcs.offset} without a previous display set.")
                self._current = DisplaySet(pcs)
            else:
                self._current = DisplaySet(pcs, *self._previous.copy_tables())
        else:
            self._current = DisplaySet(pcs)
        self.state = __class__.State.OPEN
        logger.debug(f"Opened display set at byte {pcs.offset}: {pcs}")

    def _close(self, end: ENDS) -> DisplaySet:
        self.reassembler.close(end.offset)
        ds, self._current = self._current, None
        self._previous = ds
        self.state = __class__.State.IDLE
        logger.debug(f"Closed {ds} {len(ds)} segments, {ds.size} bytes.")
        return ds

    def finish(self, offset: int) -> None:
        """
        Signal the end of the stream.

        :param offset: stream offset of the end, for error reports.
        """
        if self.is_open:
            raise UnterminatedDisplaySet(f"Stream ends inside the display set opened at byte "
                                         f"{self._current.offset}.", offset)
####

#%%
class PGStreamParser:
    """
    Decode an in-memory PG stream into display sets.

    Iterating the parser decodes lazily from the start of the buffer, every
    new iteration restarts a fresh decode.
    `consumed` counts the bytes decoded by the iteration that advanced last.

    :param data: complete PG stream.
    :param pad_short_rows: complete early terminated bitmap rows with color 0.
    """
    def __init__(self, data: Union[bytes, bytearray, memoryview], **kwargs) -> None:
        self.data = bytes(data)
        self.pad_short_rows = bool(kwargs.pop('pad_short_rows', False))
        if kwargs:
            raise TypeError(f"Unknown option(s): {', '.join(kwargs)}.")
        self.consumed = 0

    def gen_segments(self) -> Generator[PGSegment, None, None]:
        """
        Decode the segments, in stream order, without grouping them.
        """
        cursor = ByteCursor(self.data)
        self.consumed = 0
        while not cursor.eof():
            segment = PGSegment.read(cursor)
            self.consumed = cursor.pos
            yield segment

    def gen_displaysets(self) -> Generator[DisplaySet, None, None]:
        """
        Decode the display sets, in stream order.

        :yield: every display set once its END segment is decoded.
        """
        assembler = DisplaySetAssembler(self.pad_short_rows)
        for segment in self.gen_segments():
            if (ds := assembler.feed(segment)) is not None:
                yield ds
        assembler.finish(len(self.data))

    def __iter__(self):
        return self.gen_displaysets()

    def displaysets(self) -> list[DisplaySet]:
        return list(self.gen_displaysets())
####
