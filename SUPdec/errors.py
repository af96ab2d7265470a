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

#%%
class PGSDecodeError(ValueError):
    """
    Base class of every decoding failure. All of them are terminal: once an
    offset is known to be wrong, nothing after it can be trusted.

    :param message: human readable description.
    :param offset: absolute byte offset in the stream where it was detected.
    """
    def __init__(self, message: str, offset: int) -> None:
        super().__init__(message, offset)
        self.message = message
        self.offset = offset

    @property
    def kind(self) -> str:
        return self.__class__.__name__

    def __str__(self) -> str:
        return f"{self.kind}: {self.message} (at byte {self.offset})"

#%% Categories
class StructuralError(PGSDecodeError):
    pass

class SegmentPayloadError(PGSDecodeError):
    pass

class FragmentationError(PGSDecodeError):
    pass

class BitmapError(PGSDecodeError):
    pass

#%% Structural
class InvalidMagic(StructuralError):
    pass

class UnexpectedEndOfStream(StructuralError):
    pass

class InvalidSegmentType(StructuralError):
    pass

class UnterminatedDisplaySet(StructuralError):
    pass

class UnexpectedCompositionSegment(StructuralError):
    pass

class SegmentOutsideDisplaySet(StructuralError):
    pass

#%% Segment payloads
class TruncatedPalette(SegmentPayloadError):
    pass

class WindowCountMismatch(SegmentPayloadError):
    pass

class InvalidCompositionState(SegmentPayloadError):
    pass

class TruncatedComposition(SegmentPayloadError):
    pass

class TruncatedObjectDefinition(SegmentPayloadError):
    pass

#%% Object fragmentation
class DuplicateObjectStart(FragmentationError):
    pass

class UnknownObjectFragment(FragmentationError):
    pass

class ObjectOverflow(FragmentationError):
    pass

class IncompleteObject(FragmentationError):
    pass

#%% Bitmaps
class RowLengthMismatch(BitmapError):
    pass

class BitmapSizeMismatch(BitmapError):
    pass
