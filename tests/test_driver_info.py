"""Tests for the driver line of the ap kara command."""
from apkara.driver_info import after_driver_text, parse_driver_info


class TestParseDriverInfo:
    """Second line: name, 4-digit license, optional trailing fields."""

    def test_name_license_and_trailing_text(self):
        info = parse_driver_info("ap kara\nRAM KUMAR - 4521 some extra text")

        assert info.driver_name == "RAM KUMAR"
        assert info.driver_license == "4521"
        assert info.found
        assert info.additional.is_empty()

    def test_trailing_fields_go_through_extractor(self):
        text = "ap kara\nSHYAM 7788 9876543210\nMH14XY4321\nSATARA 18 MT"

        info = parse_driver_info(text)

        assert info.driver_name == "SHYAM"
        assert info.driver_license == "7788"
        assert info.additional.phone_num == "9876543210"
        assert info.additional.vehicle_num == "MH14XY4321"
        assert info.additional.weight == "18"
        assert info.additional.destination == "SATARA"

    def test_name_without_separator(self):
        info = parse_driver_info("Ap Kara\n  Ganesh Patil 1200  ")

        assert info.driver_name == "Ganesh Patil"
        assert info.driver_license == "1200"

    def test_license_only(self):
        info = parse_driver_info("ap kara\n4521")

        assert info.driver_name is None
        assert info.driver_license == "4521"

    def test_single_line_command(self):
        info = parse_driver_info("ap kara")

        assert not info.found

    def test_blank_lines_do_not_count(self):
        info = parse_driver_info("ap kara\n\n\nRAM - 4521")

        assert info.driver_name == "RAM"
        assert info.driver_license == "4521"

    def test_no_four_digit_token(self):
        info = parse_driver_info("ap kara\nRAM KUMAR 45210")

        assert not info.found
        assert info.driver_name is None


class TestAfterDriverText:
    def test_lines_after_driver(self):
        assert after_driver_text("ap kara\nRAM 4521\nC-9\nextra") == "C-9\nextra"

    def test_nothing_after_driver(self):
        assert after_driver_text("ap kara\nRAM 4521") == ""
