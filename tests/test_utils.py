import logging
import pytest

from SUPdec.utils import ByteCursor, LogFacility
from SUPdec.errors import UnexpectedEndOfStream

def test_cursor_reads():
    cursor = ByteCursor(b'\x01\x02\x03\x04\x05\x06\x07\x08\x09\x0a', base=100)
    assert cursor.read_u8() == 1
    assert cursor.read_u16() == 0x0203
    assert cursor.read_u24() == 0x040506
    assert cursor.offset == 106 and cursor.pos == 6
    assert cursor.peek(2) == b'\x07\x08'
    assert cursor.read_u32() == 0x0708090a
    assert cursor.eof() and cursor.remaining == 0

def test_cursor_failed_read_does_not_move():
    cursor = ByteCursor(bytearray(b'\x00\x01\x02'), base=10)
    cursor.read(1)
    with pytest.raises(UnexpectedEndOfStream) as e:
        cursor.read_u32()
    assert e.value.offset == 11
    assert cursor.pos == 1
    assert cursor.read_rest() == b'\x01\x02'

def test_low_debug_level():
    logger = LogFacility.get_logger('SUPdec')
    assert hasattr(logger, 'ldebug')
    assert logging.getLevelName(logging.DEBUG - 5) == 'LDEBUG'

def test_file_log(tmp_path):
    logger = LogFacility.get_logger('SUPdec.test', with_handler=False)
    LogFacility.set_file_log(logger, str(tmp_path / "dec.log"), logging.WARNING, simple_format=True)
    try:
        logger.warning("segment 3 is odd")
        logger.handlers[-1].flush()
    finally:
        handler = logger.handlers.pop()
        handler.close()
    assert (tmp_path / "dec.log").read_text().strip() == "segment 3 is odd"
