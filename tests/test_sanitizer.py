"""Unit tests for the CSV pre-sanitizer."""
from lodge_ledger.etl.sanitizer import decode_csv, _strip_invalid_chars, _fix_encoding


class TestStripInvalidChars:
    def test_clean_text_unchanged(self):
        text = "Room No.,Tenant Name\n101,Asha\n"
        clean, warnings = _strip_invalid_chars(text)
        assert clean == text
        assert warnings == []

    def test_null_byte_removed(self):
        clean, warnings = _strip_invalid_chars("101,As\x00ha\n")
        assert clean == "101,Asha\n"
        assert len(warnings) == 1
        assert "invalid control character" in warnings[0]

    def test_tab_newline_carriage_return_preserved(self):
        text = "101\tAsha\r\n"
        clean, warnings = _strip_invalid_chars(text)
        assert clean == text
        assert warnings == []


class TestFixEncoding:
    def test_utf8_passthrough(self):
        text, enc = _fix_encoding("Room,Tenant\n101,Aśha\n".encode("utf-8"))
        assert "Aśha" in text
        assert enc in ("utf-8", "utf-8-sig")

    def test_windows1252_converted(self):
        text, enc = _fix_encoding("101,José\n".encode("windows-1252"))
        assert enc in ("windows-1252", "latin-1")
        assert "José" in text

    def test_utf8_bom_stripped(self):
        text, _ = _fix_encoding(b"\xef\xbb\xbfRoom No.,Rent\n")
        assert text.startswith("Room No.")

    def test_utf16_bom(self):
        text, enc = _fix_encoding(b"\xff\xfe" + "Room,Rent\n".encode("utf-16-le"))
        assert enc == "utf-16-le"
        assert text == "Room,Rent\n"


class TestDecodeCsv:
    def test_plain_utf8_has_no_warnings(self):
        text, warnings = decode_csv(b"Room,Rent\n101,5000\n", source_path="a.csv")
        assert text == "Room,Rent\n101,5000\n"
        assert warnings == []

    def test_reencoding_reported(self):
        _, warnings = decode_csv("101,José\n".encode("windows-1252"), source_path="a.csv")
        assert any("Re-encoded" in w for w in warnings)

    def test_raw_backup_written(self, tmp_path):
        raw = b"Room,Rent\n101,5000\n"
        decode_csv(raw, source_path="/in/june.csv", backup_dir=tmp_path / "bak")
        backups = list((tmp_path / "bak").glob("june_*.csv.bak"))
        assert len(backups) == 1
        assert backups[0].read_bytes() == raw

    def test_empty_input_handled(self):
        text, warnings = decode_csv(b"", source_path="empty.csv")
        assert text == ""
        assert warnings == []
