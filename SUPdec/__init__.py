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

from .__metadata__ import __version__, __author__

from .errors import *
from .palette import Palette, PaletteEntry
from .segments import SegmentType, PGSegment, PCS, WDS, ODS, PDS, ENDS, WindowDefinition, CObject, CropRect
from .pgraphics import PGraphics, ObjectDefinition, ObjectReassembler
from .pgstream import DisplaySet, DisplaySetAssembler, Epoch, PGStreamParser
from .filestreams import SUPFile
from .utils import LogFacility, ByteCursor
