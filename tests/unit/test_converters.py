"""
Unit tests for the converters module.

Tests brightness scaling, hex colour parsing/encoding and HSV conversion.
"""

import pytest

from mqtt_matter_bridge.converters import (
    HSV,
    RGB,
    brightness_to_level,
    encode_color_hex,
    hex_to_hsv,
    hsv_to_hex,
    hsv_to_rgb,
    level_to_brightness,
    parse_brightness,
    parse_color_hex,
    rgb_to_hsv,
)


class TestBrightness:
    """Tests for brightness_to_level / level_to_brightness"""

    def test_round_trip_saturates_at_254(self):
        """Test every wire brightness survives the round trip capped at 254"""
        for brightness in range(256):
            level = level_to_brightness(brightness_to_level(brightness))
            assert 0 <= level <= 254
            assert level == min(brightness, 254)

    def test_top_of_range_is_lossy(self):
        """Test 254 and 255 both map to level 254"""
        assert brightness_to_level(254) == 254
        assert brightness_to_level(255) == 254

    def test_out_of_range_values_are_clamped(self):
        """Test values outside the wire range are clamped"""
        assert brightness_to_level(-5) == 0
        assert brightness_to_level(1000) == 254
        assert level_to_brightness(300) == 254
        assert level_to_brightness(-1) == 0


class TestParseBrightness:
    """Tests for parse_brightness"""

    @pytest.mark.parametrize(
        ("payload", "expected"),
        [("0", 0), ("128", 128), ("255", 255), (" 42\n", 42), ("+7", 7)],
    )
    def test_valid_payloads(self, payload, expected):
        """Test decimal payloads in range are accepted"""
        assert parse_brightness(payload) == expected

    @pytest.mark.parametrize(("payload", "expected"), [("12.5", 12), ("200.99", 200), ("64.", 64)])
    def test_fraction_truncated(self, payload, expected):
        """Test a fractional part is dropped rather than rounded"""
        assert parse_brightness(payload) == expected

    @pytest.mark.parametrize("payload", ["", "abc", "-1", "256", "0x10", "1e2", ".5", "12abc"])
    def test_invalid_payloads(self, payload):
        """Test non-numeric or out-of-range payloads are rejected"""
        assert parse_brightness(payload) is None

    @pytest.mark.parametrize("payload", ["1_0", "٣", "１２"])
    def test_non_ascii_decimal_forms_rejected(self, payload):
        """Test digit separators and non-ASCII digits are not read as brightness"""
        assert parse_brightness(payload) is None


class TestColorHex:
    """Tests for parse_color_hex / encode_color_hex"""

    def test_parse_plain_hex(self):
        """Test a bare RRGGBB string parses"""
        assert parse_color_hex("ff8000") == RGB(255, 128, 0)

    def test_parse_with_prefix(self):
        """Test the configured prefix is stripped before parsing"""
        assert parse_color_hex("#00FF7f", "#") == RGB(0, 255, 127)

    def test_parse_without_prefix_when_prefix_configured(self):
        """Test a bare value is still accepted when a prefix is configured"""
        assert parse_color_hex("0000ff", "#") == RGB(0, 0, 255)

    @pytest.mark.parametrize("payload", ["", "fff", "ff00zz", "ff00ff00", "#ff00ff", "0xff00ff"])
    def test_parse_invalid(self, payload):
        """Test malformed hex strings are rejected"""
        assert parse_color_hex(payload) is None

    @pytest.mark.parametrize(
        ("hex_str", "prefix"),
        [("a1b2c3", None), ("A1B2C3", None), ("#00ff7f", "#"), ("#ABCDEF", "#"), ("0x123456", "0x")],
    )
    def test_encode_inverts_parse(self, hex_str, prefix):
        """Test encoding a parsed value reproduces the input, case-normalized"""
        rgb = parse_color_hex(hex_str, prefix)
        assert rgb is not None
        assert encode_color_hex(rgb, prefix) == hex_str.lower()

    def test_encode_clamps_and_rounds(self):
        """Test out-of-range channels are clamped"""
        assert encode_color_hex(RGB(300, -4, 15)) == "ff000f"


class TestHsv:
    """Tests for rgb_to_hsv / hsv_to_rgb"""

    def test_red(self):
        """Test pure red converts to hue 0 with full saturation and value"""
        assert rgb_to_hsv(RGB(255, 0, 0)) == HSV(0, 254, 254)

    def test_grey_has_zero_hue_and_saturation(self):
        """Test achromatic colours get hue 0 and saturation 0"""
        hsv = rgb_to_hsv(RGB(128, 128, 128))
        assert hsv.hue == 0
        assert hsv.saturation == 0

    def test_black(self):
        """Test black converts to all zeros"""
        assert rgb_to_hsv(RGB(0, 0, 0)) == HSV(0, 0, 0)
        assert hsv_to_rgb(HSV(0, 0, 0)) == RGB(0, 0, 0)

    def test_zero_saturation_gives_grey(self):
        """Test any hue with zero saturation gives equal channels"""
        rgb = hsv_to_rgb(HSV(100, 0, 254))
        assert rgb == RGB(255, 255, 255)

    def test_round_trip_sweep_within_three(self):
        """Test RGB -> HSV -> RGB stays within 3 per channel across the colour cube"""
        worst = (0, None, None)
        for r in range(256):
            for g in range(0, 256, 5):
                for b in range(0, 256, 5):
                    rgb = RGB(r, g, b)
                    back = hsv_to_rgb(rgb_to_hsv(rgb))
                    error = max(abs(original - converted) for original, converted in zip(rgb, back, strict=True))
                    if error > worst[0]:
                        worst = (error, rgb, back)

        assert worst[0] <= 3, worst

    def test_hue_quantization_exceeds_two(self):
        """Test a saturated colour whose 254-step hue lands 3 away on one channel"""
        assert hsv_to_rgb(rgb_to_hsv(RGB(0, 5, 240))) == RGB(0, 8, 240)

    @pytest.mark.parametrize("channel", [0, 1, 64, 127, 128, 200, 254, 255])
    def test_greys_round_trip_within_one(self, channel):
        """Test achromatic colours only lose value rounding"""
        back = hsv_to_rgb(rgb_to_hsv(RGB(channel, channel, channel)))
        assert back.r == back.g == back.b
        assert abs(back.r - channel) <= 1

    def test_hex_helpers(self):
        """Test hex_to_hsv / hsv_to_hex compose the parse and encode steps"""
        assert hex_to_hsv("#ff0000", "#") == HSV(0, 254, 254)
        assert hex_to_hsv("nope") is None
        assert hsv_to_hex(HSV(0, 254, 254), "#") == "#ff0000"
        assert hsv_to_hex(HSV(0, 0, 254)) == "ffffff"
