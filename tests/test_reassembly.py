import pytest
import numpy as np

from SUPdec.pgraphics import ObjectReassembler, ObjectDefinition
from SUPdec.segments import PGSegment, SegmentType
from SUPdec.utils import ByteCursor
from SUPdec.errors import (DuplicateObjectStart, UnknownObjectFragment, ObjectOverflow, IncompleteObject,
                           BitmapSizeMismatch, FragmentationError)

from conftest import make_segment, ods_segments, ods_first_payload, ods_next_payload, rle_encode

def read_all(segments: list[bytes]) -> list[PGSegment]:
    cursor = ByteCursor(b''.join(segments))
    segs = []
    while not cursor.eof():
        segs.append(PGSegment.read(cursor))
    return segs

def push_all(reassembler: ObjectReassembler, segments: list[bytes]) -> list:
    return [reassembler.push(ods) for ods in read_all(segments)]

@pytest.fixture
def bitmap() -> np.ndarray:
    rng = np.random.default_rng(7)
    bitmap = rng.integers(0, 6, size=(20, 70), dtype=np.uint8)
    bitmap[5:9, :] = 2
    return bitmap

def test_single_fragment(bitmap: np.ndarray):
    rle = rle_encode(bitmap)
    reassembler = ObjectReassembler()
    obj, = push_all(reassembler, ods_segments(3, rle, 70, 20, o_vn=4))
    assert isinstance(obj, ObjectDefinition)
    assert (obj.object_id, obj.version, obj.width, obj.height) == (3, 4, 70, 20)
    assert np.array_equal(obj.bitmap, bitmap)
    assert reassembler.in_flight == []

@pytest.mark.parametrize("splits", [[1], [100], [1, 2, 3], [17, 250, 251, 600]])
def test_split_points_do_not_matter(bitmap: np.ndarray, splits: list[int]):
    rle = rle_encode(bitmap)
    reference, = push_all(ObjectReassembler(), ods_segments(3, rle, 70, 20))

    reassembler = ObjectReassembler()
    results = push_all(reassembler, ods_segments(3, rle, 70, 20, splits))
    assert results[:-1] == [None]*len(splits)
    assert results[-1] == reference
    assert reassembler.in_flight == []

def test_in_flight_and_close(bitmap: np.ndarray):
    rle = rle_encode(bitmap)
    reassembler = ObjectReassembler()
    first, _ = read_all(ods_segments(9, rle, 70, 20, [10]))
    assert reassembler.push(first) is None
    assert reassembler.in_flight == [9]
    with pytest.raises(IncompleteObject) as e:
        reassembler.close(1234)
    assert e.value.offset == 1234
    assert isinstance(e.value, FragmentationError)

def test_close_when_empty():
    ObjectReassembler().close(0)

def test_duplicate_start(bitmap: np.ndarray):
    rle = rle_encode(bitmap)
    first, _ = ods_segments(1, rle, 70, 20, [10])
    reassembler = ObjectReassembler()
    with pytest.raises(DuplicateObjectStart) as e:
        push_all(reassembler, [first, first])
    assert e.value.offset == len(first)

def test_unknown_fragment():
    with pytest.raises(UnknownObjectFragment) as e:
        push_all(ObjectReassembler(), [make_segment(SegmentType.ODS, ods_next_payload(4, 0, b'\x01'))])
    assert e.value.offset == 0

def test_overflow():
    first = make_segment(SegmentType.ODS, ods_first_payload(1, 0, 3, 3, 1, b'\x00\x43', last=False))
    second = make_segment(SegmentType.ODS, ods_next_payload(1, 0, b'\x05\x00\x00'))
    with pytest.raises(ObjectOverflow) as e:
        push_all(ObjectReassembler(), [first, second])
    assert e.value.offset == len(first)

def test_overflow_single_fragment():
    seg = make_segment(SegmentType.ODS, ods_first_payload(1, 0, 2, 3, 1, b'\x00\x43\x05'))
    with pytest.raises(ObjectOverflow):
        push_all(ObjectReassembler(), [seg])

def test_objects_are_independent():
    a = ods_segments(1, b'\x00\x43\x05', 3, 1)
    b = ods_segments(2, b'\x01\x02', 1, 2)
    out = push_all(ObjectReassembler(), a + b)
    assert [o.object_id for o in out] == [1, 2]
    assert out[1].bitmap.tolist() == [[1], [2]]

def test_bitmap_error_offset_in_stream():
    #third pixel does not fit a 2x1 object, it sits in the second fragment
    segs = ods_segments(1, b'\x01\x01\x01', 2, 1, [2])
    with pytest.raises(BitmapSizeMismatch) as e:
        push_all(ObjectReassembler(), segs)
    assert e.value.offset == len(segs[0]) + PGSegment.HEADER_LEN + 4

def test_pad_short_rows_option():
    obj, = push_all(ObjectReassembler(pad_short_rows=True), ods_segments(1, b'\x01\x00\x00', 2, 1))
    assert obj.indexed_pixels.tolist() == [1, 0]

def test_object_copy_is_deep():
    obj, = push_all(ObjectReassembler(), ods_segments(1, b'\x00\x43\x05', 3, 1))
    cpy = obj.copy()
    assert cpy == obj
    cpy.indexed_pixels[0] = 0
    assert cpy != obj
