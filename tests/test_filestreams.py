import logging
import pytest

from SUPdec.filestreams import SUPFile
from SUPdec.pgstream import Epoch
from SUPdec.segments import SegmentType
from SUPdec.errors import RowLengthMismatch, UnterminatedDisplaySet

from conftest import make_segment, pcs_payload, ods_segments, end_segment

def pcs(state: int, pts: int = 0) -> bytes:
    return make_segment(SegmentType.PCS, pcs_payload(state), pts, pts)

@pytest.fixture
def sup_path(tmp_path):
    data = pcs(0x80, 0) + end_segment(0) + \
           pcs(0x00, 100) + end_segment(100) + \
           pcs(0xC0, 200) + end_segment(200) + \
           pcs(0x80, 300) + end_segment(300) + \
           pcs(0x40, 400) + end_segment(400)
    path = tmp_path / "stream.sup"
    path.write_bytes(data)
    return path

def test_missing_file(tmp_path):
    with pytest.raises(OSError):
        SUPFile(tmp_path / "nope.sup")

def test_segments_and_displaysets(sup_path):
    sup = SUPFile(sup_path)
    assert len(sup.segments()) == 10
    assert [ds.pts for ds in sup.displaysets()] == [0, 100, 200, 300, 400]

def test_epochs(sup_path):
    epochs = SUPFile(str(sup_path)).epochs()
    assert all(isinstance(epoch, Epoch) for epoch in epochs)
    assert [len(epoch) for epoch in epochs] == [3, 2]
    assert (epochs[0].t_in, epochs[0].t_out) == (0, 200)
    assert epochs[1].t_in == 300

def test_empty_file(tmp_path):
    path = tmp_path / "empty.sup"
    path.write_bytes(b'')
    sup = SUPFile(path)
    assert sup.displaysets() == []
    assert sup.epochs() == []

def test_pad_short_rows_option(tmp_path):
    path = tmp_path / "short.sup"
    path.write_bytes(pcs(0x80) + ods_segments(0, b'\x01\x00\x00', 2, 1)[0] + end_segment())
    with pytest.raises(RowLengthMismatch):
        SUPFile(path).displaysets()
    ds, = SUPFile(path, pad_short_rows=True).displaysets()
    assert ds.bitmap_objects[0].indexed_pixels.tolist() == [1, 0]

def test_errors_are_logged(tmp_path, caplog):
    path = tmp_path / "cut.sup"
    path.write_bytes(pcs(0x80))
    with caplog.at_level(logging.ERROR, logger='SUPdec'):
        with pytest.raises(UnterminatedDisplaySet):
            SUPFile(path).displaysets()
    assert any('UnterminatedDisplaySet' in rec.getMessage() for rec in caplog.records)
