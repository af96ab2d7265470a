from struct import pack
from typing import Optional

import numpy as np

from SUPdec.segments import PGSegment, SegmentType
from SUPdec.utils import ByteCursor

def make_segment(seg_type: int, payload: bytes, pts: int = 0, dts: int = 0) -> bytes:
    return b'PG' + bytes([seg_type]) + pack(">IIH", pts, dts, len(payload)) + payload

def parse_segment(data: bytes, offset: int = 0) -> PGSegment:
    return PGSegment.read(ByteCursor(data, base=offset))

def pcs_payload(state: int = 0x80, cobjects: list[bytes] = [], width: int = 1920, height: int = 1080,
                fps: int = 0x10, comp_n: int = 0, pal_flag: int = 0, pal_id: int = 0) -> bytes:
    return pack(">HHBHBBBB", width, height, fps, comp_n, state, pal_flag, pal_id, len(cobjects)) + b''.join(cobjects)

def cobject(object_id: int, window_id: int, x: int, y: int, flags: int = 0, crop: Optional[tuple] = None) -> bytes:
    data = pack(">HBBHH", object_id, window_id, flags, x, y)
    if crop is not None:
        data += pack(">HHHH", *crop)
    return data

def wds_payload(windows: list[tuple[int, int, int, int, int]]) -> bytes:
    return bytes([len(windows)]) + b''.join(pack(">BHHHH", *wd) for wd in windows)

def pds_payload(p_id: int, p_vn: int, entries: list[tuple[int, int, int, int, int]]) -> bytes:
    return bytes([p_id, p_vn]) + b''.join(bytes(entry) for entry in entries)

def ods_first_payload(o_id: int, o_vn: int, total_len: int, width: int, height: int, data: bytes, last: bool = True) -> bytes:
    flags = 0x80 | (0x40 if last else 0)
    return pack(">HBB", o_id, o_vn, flags) + pack(">I", total_len)[1:] + pack(">HH", width, height) + data

def ods_next_payload(o_id: int, o_vn: int, data: bytes, last: bool = True) -> bytes:
    return pack(">HBB", o_id, o_vn, 0x40 if last else 0) + data

def ods_segments(o_id: int, rle: bytes, width: int, height: int, splits: list[int] = [], o_vn: int = 0) -> list[bytes]:
    """
    Build the ODS segments of an object, the RLE data cut at the given positions.
    """
    bounds = [0] + sorted(splits) + [len(rle)]
    chunks = [rle[a:b] for a, b in zip(bounds[:-1], bounds[1:])]
    segs = [make_segment(SegmentType.ODS, ods_first_payload(o_id, o_vn, len(rle), width, height,
                                                            chunks[0], len(chunks) == 1))]
    for k, chunk in enumerate(chunks[1:], 2):
        segs.append(make_segment(SegmentType.ODS, ods_next_payload(o_id, o_vn, chunk, k == len(chunks))))
    return segs

def end_segment(pts: int = 0) -> bytes:
    return make_segment(SegmentType.END, b'', pts, pts)

def rle_encode(bitmap: np.ndarray, eol: bool = True) -> bytes:
    """
    Encode a (height, width) index bitmap. Single pixels of non-zero colors
    are written as is, other runs use the shortest run code.
    """
    out = bytearray()
    for row in bitmap:
        k = 0
        while k < len(row):
            color = int(row[k])
            length = 1
            while k + length < len(row) and row[k+length] == color and length < 0x3FFF:
                length += 1
            k += length
            if color != 0 and length <= 2:
                out += bytes([color]) * length
                continue
            code = (0x40 if color else 0) | (0x80 if length > 0x3F else 0)
            if length > 0x3F:
                out += bytes([0, code | (length >> 8), length & 0xFF])
            else:
                out += bytes([0, code | length])
            if color:
                out.append(color)
        if eol:
            out += b'\x00\x00'
    return bytes(out)
