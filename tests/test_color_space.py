"""Tests for color parsing, conversion and theme encodings.

Tests cover:
- Parsing hex, rgb(a), hsl(a) and named colors
- Normalization and opacity handling
- HSL and OKLCH conversions
- Contrast ratios
- Output encodings and dark-mode adjustment
"""

import pytest

from color_space import (
    RGBA,
    adjust_brand_for_dark_mode,
    adjust_for_dark_mode,
    contrast_ratio,
    default_color,
    format_color,
    has_opacity,
    hex_to_hsl,
    hsl_to_hex,
    normalize_to_hex,
    oklch_to_hex,
    parse_color,
    parse_to_rgb,
    strip_opacity,
    to_hsl,
    to_oklch,
)

SAMPLE_HEXES = ('#1a73e8', '#ff0000', '#00ff00', '#0000ff', '#808080', '#e40089', '#262a82', '#fefce8', '#0a1f44')


def _channels(hex_value):
    return [int(hex_value[i:i + 2], 16) for i in (1, 3, 5)]


# =============================================================================
# PARSING TESTS
# =============================================================================


class TestParseColor:
    """Tests for parse_color and parse_to_rgb."""

    def test_short_hex(self):
        """Three-digit hex expands each digit."""
        assert parse_color('#fff') == RGBA(255, 255, 255, 1.0)

    def test_hex_with_alpha(self):
        """Eight-digit hex carries alpha."""
        rgba = parse_color('#ff000080')
        assert (rgba.r, rgba.g, rgba.b) == (255, 0, 0)
        assert rgba.a == pytest.approx(128 / 255)

    def test_space_syntax_rgb(self):
        """Modern space-separated rgb() with slash alpha."""
        rgba = parse_color('rgb(255 0 0 / 50%)')
        assert (rgba.r, rgba.g, rgba.b) == (255, 0, 0)
        assert rgba.a == pytest.approx(0.5)

    def test_hsl(self):
        """hsl() converts to RGB channels."""
        rgba = parse_color('hsl(120, 100%, 50%)')
        assert rgba.g == pytest.approx(255)
        assert rgba.r == pytest.approx(0)

    def test_named_color(self):
        """Named colors resolve through the keyword table."""
        assert parse_color('navy') == RGBA(0, 0, 128, 1.0)

    @pytest.mark.parametrize('value', ['not-a-color', '#12', '#ggg', 'rgb(1, 2)', '', None])
    def test_unparseable(self, value):
        """Anything that isn't a color parses to None."""
        assert parse_color(value) is None

    def test_parse_to_rgb_falls_back_to_black(self):
        """parse_to_rgb never fails."""
        assert parse_to_rgb('bogus') == RGBA(0, 0, 0, 1.0)


# =============================================================================
# NORMALIZATION TESTS
# =============================================================================


class TestNormalization:
    """Tests for normalize_to_hex, has_opacity and strip_opacity."""

    @pytest.mark.parametrize('value,expected', [
        ('#ABC', '#aabbcc'),
        ('rgba(0,0,0,0.1)', '#000000'),
        ('hsl(0, 100%, 50%)', '#ff0000'),
        ('white', '#ffffff'),
        ('#1A73E8', '#1a73e8'),
    ])
    def test_normalize(self, value, expected):
        """Every literal normalizes to lowercase #rrggbb without alpha."""
        assert normalize_to_hex(value) == expected

    def test_normalize_is_idempotent(self):
        """Normalizing a normalized hex changes nothing."""
        for value in ('#ABC', 'rgb(26, 115, 232)', 'hsla(200, 50%, 40%, 0.3)', 'teal'):
            once = normalize_to_hex(value)
            assert normalize_to_hex(once) == once

    @pytest.mark.parametrize('value,expected', [
        ('#1234', True),
        ('#123', False),
        ('#11223344', True),
        ('rgba(0,0,0,0.1)', True),
        ('rgb(0,0,0)', False),
        ('transparent', True),
    ])
    def test_has_opacity(self, value, expected):
        """Alpha channels are detected in every syntax."""
        assert has_opacity(value) is expected

    @pytest.mark.parametrize('value,expected', [
        ('rgba(0, 0, 0, 0.1)', 'rgb(0, 0, 0)'),
        ('rgba(0,0,0,0.1)', 'rgb(0, 0, 0)'),
        ('hsla(10, 20%, 30%, 0.5)', 'hsl(10, 20%, 30%)'),
        ('#11223344', '#112233'),
        ('#1234', '#123'),
        ('#abcdef', '#abcdef'),
    ])
    def test_strip_opacity_truncates(self, value, expected):
        """Alpha is dropped, not composited."""
        assert strip_opacity(value) == expected


# =============================================================================
# CONVERSION TESTS
# =============================================================================


class TestConversions:
    """Tests for HSL and OKLCH conversions."""

    def test_to_hsl_integers(self):
        """to_hsl returns rounded integer bands."""
        assert to_hsl('#ff0000') == (0, 100, 50)
        assert to_hsl('#808080') == (0, 0, 50)
        assert to_hsl('#1a73e8') == (214, 82, 51)

    @pytest.mark.parametrize('hex_value', SAMPLE_HEXES)
    def test_hsl_round_trip(self, hex_value):
        """hex -> hsl -> hex stays within one unit per channel."""
        back = hsl_to_hex(*hex_to_hsl(hex_value))
        for a, b in zip(_channels(hex_value), _channels(back)):
            assert abs(a - b) <= 1

    @pytest.mark.parametrize('hex_value', SAMPLE_HEXES)
    def test_oklch_round_trip(self, hex_value):
        """hex -> oklch -> hex stays within one unit per channel."""
        back = oklch_to_hex(*to_oklch(hex_value))
        for a, b in zip(_channels(hex_value), _channels(back)):
            assert abs(a - b) <= 1

    def test_achromatic_hue_is_zero(self):
        """Grays have no OKLCH hue."""
        _, chroma, hue = to_oklch('#808080')
        assert chroma < 1e-3
        assert hue == 0


class TestContrast:
    """Tests for WCAG contrast ratios."""

    def test_black_on_white(self):
        """Maximum contrast is 21:1."""
        assert contrast_ratio('#ffffff', '#000000') == pytest.approx(21.0)

    def test_symmetric(self):
        """Order of arguments doesn't matter."""
        assert contrast_ratio('#1a73e8', '#ffffff') == pytest.approx(contrast_ratio('#ffffff', '#1a73e8'))

    def test_same_color(self):
        """A color against itself has ratio 1."""
        assert contrast_ratio('#777777', '#777777') == pytest.approx(1.0)


# =============================================================================
# ENCODING TESTS
# =============================================================================


class TestFormatColor:
    """Tests for format_color and default colors."""

    def test_hsl(self):
        """hsl encoding is the bare `h s% l%` triple."""
        assert format_color('#ff0000', 'hsl') == '0 100% 50%'

    def test_hex(self):
        """hex encoding normalizes."""
        assert format_color('rgb(255, 0, 0)', 'hex') == '#ff0000'

    def test_oklch(self):
        """oklch encoding uses three decimals."""
        assert format_color('#ffffff', 'oklch').startswith('oklch(1.000 0.000')

    def test_unknown_encoding(self):
        """Unknown encodings raise ValueError."""
        with pytest.raises(ValueError):
            format_color('#ffffff', 'cmyk')

    def test_default_color(self):
        """Built-in neutrals exist in every encoding."""
        assert default_color('white', 'hex') == '#ffffff'
        assert default_color('white', 'hsl') == '0 0% 100%'


class TestDarkMode:
    """Tests for dark-mode lightness adjustment."""

    def test_background_is_darkened(self):
        """Backgrounds are capped at 15% lightness."""
        assert adjust_for_dark_mode('#ffffff', 'background', 'hsl') == '0 0% 15%'

    def test_foreground_is_lightened(self):
        """Foregrounds are raised to at least 90% lightness."""
        assert adjust_for_dark_mode('#000000', 'foreground', 'hsl') == '0 0% 90%'

    def test_border_is_scaled_and_clamped(self):
        """Borders scale down then clamp to their band."""
        assert adjust_for_dark_mode('#e5e5e5', 'border', 'hsl') == '0 0% 35%'

    def test_unknown_role(self):
        """Roles without a dark band raise ValueError."""
        with pytest.raises(ValueError):
            adjust_for_dark_mode('#ffffff', 'primary')

    def test_mid_lightness_brand_unchanged(self):
        """Brand colors already in the visible band keep their value."""
        assert adjust_brand_for_dark_mode('#1a73e8', 'hsl') == format_color('#1a73e8', 'hsl')

    def test_dark_brand_is_lifted(self):
        """Very dark brand colors gain lightness."""
        assert adjust_brand_for_dark_mode('#0a1f44', 'hsl').endswith(' 35%')

    def test_oklch_output(self):
        """OKLCH adjustment stays in OKLCH."""
        assert adjust_for_dark_mode('#ffffff', 'background', 'oklch').startswith('oklch(0.150')
