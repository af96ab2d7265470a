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

from dataclasses import dataclass, field
from typing import Union

import numpy as np
from numpy import (typing as npt)

#%%
@dataclass(frozen=True)
class PaletteEntry:
    id: int
    y : int
    cr: int
    cb: int
    alpha: int

    def __iter__(self):
        return iter((self.y, self.cr, self.cb, self.alpha))

    @classmethod
    def from_bytes(cls, data: Union[bytes, bytearray]) -> 'PaletteEntry':
        assert len(data) == 5, "A palette entry is 5 bytes long."
        return cls(*data)
####

#%%
@dataclass
class Palette:
    """
    Palette table of a given palette id: entry id -> PaletteEntry.
    Successive definitions of the same palette update it, last write wins.
    """
    palette : dict[int, PaletteEntry] = field(default_factory=dict)
    version: int = 0

    def __post_init__(self) -> None:
        self.sort()

    def __len__(self):
        return len(self.palette)

    def __contains__(self, id: int) -> bool:
        return id in self.palette

    def __getitem__(self, id: int) -> PaletteEntry:
        if id not in self.palette:
            raise KeyError(f"Palette entry {id} is incorrect or does not exist.")
        return self.palette[id]

    def __setitem__(self, id: int, entry: PaletteEntry) -> None:
        if not 0 <= id <= 255:
            raise KeyError(f"Tried to set {id} entry, outside of [0;255].")
        assert entry.id == id, "Entry id does not match its key."
        self.palette[id] = entry

    def update(self, other: 'Palette') -> None:
        """
        Apply the entries of another definition of this palette in place.
        """
        self.palette |= other.palette
        self.version = other.version
        self.sort()

    def sort(self) -> None:
        self.palette = dict(sorted(self.palette.items(), key=lambda x: x[0]))

    def copy(self) -> 'Palette':
        # entries are frozen, a shallow copy of the mapping is a deep copy.
        return self.__class__(dict(self.palette), self.version)

    def to_array(self) -> npt.NDArray[np.uint8]:
        """
        Get the palette as a lookup table, indexable by a decoded bitmap.
        Undefined entries are fully transparent black (Y=16, Cr=Cb=128, A=0).

        :return: (256, 4) array of Y, Cr, Cb, Alpha values.
        """
        lut = np.zeros((256, 4), np.uint8)
        lut[:] = (16, 128, 128, 0)
        for idx, entry in self.palette.items():
            lut[idx, :] = tuple(entry)
        return lut
####
