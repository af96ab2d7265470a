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


from pathlib import Path

from collections.abc import Generator, Iterator
from typing import Union, Type, Callable

from .errors import PGSDecodeError
from .segments import PGSegment, PCS
from .pgstream import PGStreamParser, DisplaySet, Epoch
from .utils import LogFacility

logger = LogFacility.get_logger('SUPdec')

#%%
class SUPFile:
    """
    Represents a .SUP file that contains a PGS stream.

    :param fp: path to the file.
    :param pad_short_rows: complete early terminated bitmap rows with color 0.
    """
    def __init__(self, fp: Union[Path, str], **kwargs) -> None:
        self.file = fp
        self.pad_short_rows = bool(kwargs.pop('pad_short_rows', False))
        if kwargs:
            raise TypeError(f"Unknown option(s): {', '.join(kwargs)}.")

    @property
    def file(self) -> str:
        return str(self._file)

    @file.setter
    def file(self, file: Union[Path, str]) -> None:
        if (file := Path(file)).exists():
            self._file = file
        else:
            raise OSError(f"File '{file}' does not exist.")

    def _parser(self) -> PGStreamParser:
        with open(self.file, 'rb') as f:
            data = f.read()
        logger.debug(f"Read {len(data)} bytes from '{self.file}'.")
        return PGStreamParser(data, pad_short_rows=self.pad_short_rows)

    def _logged(self, gen: Iterator) -> Generator:
        try:
            yield from gen
        except PGSDecodeError as e:
            logger.error(f"'{self.file}': {e}")
            raise

    def gen_segments(self) -> Generator[PGSegment, None, None]:
        """
        Returns a generator of PG segments, in order, as they appear in the file.
        """
        yield from self._logged(self._parser().gen_segments())

    def gen_displaysets(self) -> Generator[DisplaySet, None, None]:
        """
        Returns a generator of DisplaySets. Stops when all DisplaySets in the
        file have been consumed.

        :yield: DisplaySet, in order, as they appear in the SUP file.
        """
        yield from self._logged(self._parser().gen_displaysets())

    def gen_epochs(self) -> Generator[Epoch, None, None]:
        condition = lambda ds: ds.composition_state == PCS.CompositionState.EPOCH_START
        yield from __class__._gen_group(self.gen_displaysets(), condition, Epoch)

    def segments(self) -> list[PGSegment]:
        """
        Get all PG segments contained in the file.
        """
        return list(self.gen_segments())

    def displaysets(self) -> list[DisplaySet]:
        """
        Get all displaysets in the given file.
        """
        return list(self.gen_displaysets())

    def epochs(self) -> list[Epoch]:
        """
        Get all epochs in the given file.
        """
        return list(self.gen_epochs())

    @staticmethod
    def _gen_group(elements: Iterator,
                   condition: Callable[..., bool],
                   group_class: Type[object]) -> Generator:
        """
        Generate groups (of type group_class) from elements w.r.t. condition.

        :param elements:  Iterable containing elements that must be grouped.
        :param condition: Callable that returns true when a new group should be
                          started with the analyzed element as its first entry.
        :param group_class: A Callable that instanciate the group (from a list)
                            passed as the sole argument.
        :yield:           Group of type group_class
        """
        group = []
        for elem in elements:
            if group and condition(elem):
                yield group_class(group)
                group = []
            group.append(elem)
        if group:
            yield group_class(group)
####
