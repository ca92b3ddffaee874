"""Test transfer history persistence"""

import json

import pytest

from filebeam.history import Direction, TransferHistory, TransferRecord


class TestTransferRecord:
    """Test record formatting"""

    @pytest.mark.parametrize("size, expected", [
        (0, "0 B"),
        (1023, "1023 B"),
        (1536, "1.50 KB"),
        (5 * 1024 * 1024, "5.00 MB"),
        (3 * 1024 ** 3, "3.00 GB"),
    ])
    def test_formatted_size(self, size, expected):
        record = TransferRecord("a.bin", size, Direction.SENT)
        assert record.formatted_size == expected

    def test_dict_conversion(self):
        record = TransferRecord("a.bin", 10, Direction.RECEIVED, timestamp=1700000000.0)
        data = record.to_dict()

        assert data['direction'] == "RECEIVED"
        assert TransferRecord.from_dict(data) == record

    def test_str(self):
        record = TransferRecord("a.bin", 10, Direction.SENT)
        assert str(record).startswith("a.bin | ")
        assert str(record).endswith("10 B | Sent")


class TestTransferHistory:
    """Test history storage"""

    def test_add_and_reload(self, temp_dir):
        path = temp_dir / "history.json"
        history = TransferHistory(path)
        history.add_record(TransferRecord("one.txt", 1, Direction.SENT))
        history.add_record(TransferRecord("two.txt", 2, Direction.RECEIVED))

        reloaded = TransferHistory(path)

        assert [r.file_name for r in reloaded.records()] == ["one.txt", "two.txt"]
        assert reloaded.records()[1].direction is Direction.RECEIVED

    def test_clear(self, temp_dir):
        path = temp_dir / "history.json"
        history = TransferHistory(path)
        history.add_record(TransferRecord("one.txt", 1, Direction.SENT))

        history.clear()

        assert history.records() == []
        assert TransferHistory(path).records() == []

    def test_listeners(self, temp_dir):
        history = TransferHistory(temp_dir / "history.json")
        seen = []
        history.add_listener(seen.append)

        history.add_record(TransferRecord("one.txt", 1, Direction.SENT))
        history.clear()

        assert [len(snapshot) for snapshot in seen] == [1, 0]

    def test_malformed_entries_skipped(self, temp_dir):
        path = temp_dir / "history.json"
        good = TransferRecord("ok.txt", 3, Direction.SENT).to_dict()
        path.write_text(json.dumps([good, {"file_name": "broken"}, {**good, "direction": "SIDEWAYS"}]))

        history = TransferHistory(path)

        assert [r.file_name for r in history.records()] == ["ok.txt"]

    def test_corrupt_file(self, temp_dir):
        path = temp_dir / "history.json"
        path.write_text("{not json")

        assert TransferHistory(path).records() == []
