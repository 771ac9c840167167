"""Unit tests for the line classifier."""

from meterdata.classifier import LineKind, classify_line


class TestClassifyLine:
    """Tests for classify_line function."""

    def test_date_header(self) -> None:
        line = classify_line("DD;01-10-2025;;")
        assert line.kind is LineKind.DATE_HEADER
        assert line.date == "2025-10-01"

    def test_empty_date_header(self) -> None:
        line = classify_line("DD;;;")
        assert line.kind is LineKind.DATE_HEADER
        assert line.date == ""

    def test_cooperative_header(self) -> None:
        line = classify_line("kSE; SEPN ;;")
        assert line.kind is LineKind.COOPERATIVE_HEADER
        assert line.cooperative_id == "SEPN"

    def test_empty_cooperative_header(self) -> None:
        line = classify_line("kSE;;;")
        assert line.kind is LineKind.COOPERATIVE_HEADER
        assert line.cooperative_id == ""

    def test_data_row(self) -> None:
        line = classify_line("PL0001;CP;kWh;.739,+;.500,+\r\n")
        assert line.kind is LineKind.DATA_ROW
        assert line.identifier == "PL0001"
        assert line.channel == "CP"

    def test_data_row_tags(self) -> None:
        assert classify_line("M1;CO;kWh;1,+").channel == "CO"
        assert classify_line("M1;CB;kWh;1,+").channel == "CB"

    def test_unknown_tag_ignored(self) -> None:
        assert classify_line("M1;XX;kWh;1,+").kind is LineKind.IGNORED

    def test_empty_identifier_ignored(self) -> None:
        assert classify_line(";CP;kWh;1,+").kind is LineKind.IGNORED

    def test_metadata_token_ignored(self) -> None:
        """Test that metadata rows carrying a channel tag are not data rows."""
        assert classify_line("kOSD;CP;;").kind is LineKind.IGNORED
        assert classify_line("VV;CB;;").kind is LineKind.IGNORED

    def test_blank_and_single_field_lines_ignored(self) -> None:
        assert classify_line("").kind is LineKind.IGNORED
        assert classify_line("DD").kind is LineKind.IGNORED

    def test_hour_cells_padded(self) -> None:
        """Test that short rows are padded with None up to 24 hours."""
        cells = classify_line("M1;CP;kWh;.1,+;.2,+").hour_cells()
        assert len(cells) == 24
        assert cells[:2] == [".1,+", ".2,+"]
        assert cells[2:] == [None] * 22

    def test_hour_cells_from_column_three(self) -> None:
        fields = ["M1", "CP", "kWh"] + [f"{h},+" for h in range(1, 27)]
        cells = classify_line(";".join(fields)).hour_cells()
        assert cells[0] == "1,+"
        assert cells[-1] == "24,+"
