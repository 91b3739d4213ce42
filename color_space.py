"""
Color space engine.

Parses CSS color literals, converts between hex / rgb(a) / hsl(a) / OKLCH / LAB,
strips alpha to a solid equivalent, and computes WCAG luminance and contrast.
Everything here is a pure function; unparseable input degrades to black rather
than raising.
"""

import logging
import math
import re
from typing import NamedTuple, Optional

import numpy as np

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

ENCODINGS = ('hsl', 'oklch', 'hex')  # Theme output encodings

# Color literal as it appears inside a CSS value
COLOR_LITERAL_RE = re.compile(r'(#[0-9a-fA-F]{3,8}\b|rgba?\([^)]*\)|hsla?\([^)]*\))')
COLOR_FUNCTION_RE = re.compile(r'(rgba?|hsla?)\((.*)\)', re.DOTALL)
HEX_DIGITS_RE = re.compile(r'[0-9a-f]+')

# Keywords collected by the extractor when a color property has no literal
CSS_COLOR_KEYWORDS = (
    'red', 'blue', 'green', 'black', 'white', 'gray', 'grey', 'yellow', 'orange',
    'purple', 'pink', 'brown', 'cyan', 'magenta', 'lime', 'navy', 'olive', 'teal',
    'silver', 'maroon', 'fuchsia', 'aqua',
)

NAMED_COLORS = {
    'red': '#ff0000', 'blue': '#0000ff', 'green': '#008000', 'black': '#000000',
    'white': '#ffffff', 'gray': '#808080', 'grey': '#808080', 'yellow': '#ffff00',
    'orange': '#ffa500', 'purple': '#800080', 'pink': '#ffc0cb', 'brown': '#a52a2a',
    'cyan': '#00ffff', 'magenta': '#ff00ff', 'lime': '#00ff00', 'navy': '#000080',
    'olive': '#808000', 'teal': '#008080', 'silver': '#c0c0c0', 'maroon': '#800000',
    'fuchsia': '#ff00ff', 'aqua': '#00ffff', 'gold': '#ffd700', 'indigo': '#4b0082',
    'violet': '#ee82ee', 'crimson': '#dc143c', 'coral': '#ff7f50', 'tomato': '#ff6347',
    'rebeccapurple': '#663399', 'whitesmoke': '#f5f5f5', 'lightgray': '#d3d3d3',
    'darkgray': '#a9a9a9', 'dimgray': '#696969', 'slategray': '#708090',
}

ACHROMATIC_CHROMA = 1e-4  # OKLCH chroma below this has no meaningful hue

# OKLab matrices (Björn Ottosson)
SRGB_TO_LMS = np.array([
    [0.4122214708, 0.5363325363, 0.0514459929],
    [0.2119034982, 0.6806995451, 0.1073969566],
    [0.0883024619, 0.2817188376, 0.6299787005],
])
LMS_TO_OKLAB = np.array([
    [0.2104542553, 0.7936177850, -0.0040720468],
    [1.9779984951, -2.4285922050, 0.4505937099],
    [0.0259040371, 0.7827717662, -0.8086757660],
])
OKLAB_TO_LMS = np.array([
    [1.0, 0.3963377774, 0.2158037573],
    [1.0, -0.1055613458, -0.0638541728],
    [1.0, -0.0894841775, -1.2914855480],
])
LMS_TO_SRGB = np.array([
    [4.0767416621, -3.3077115913, 0.2309699292],
    [-1.2684380046, 2.6097574011, -0.3413193965],
    [-0.0041960863, -0.7034186147, 1.7076147010],
])

# Dark-mode lightness bands in percent: role -> (scale, floor, ceiling)
DARK_MODE_LIGHTNESS = {
    'background': (1.0, None, 15),
    'foreground': (1.0, 90, None),
    'border': (0.4, 20, 35),
    'muted': (0.5, 25, 40),
}

# Built-in neutral colors, pre-rendered per encoding
NEUTRAL_DEFAULTS = {
    'white': {'hsl': '0 0% 100%', 'oklch': 'oklch(1 0 0)', 'hex': '#ffffff'},
    'black': {'hsl': '0 0% 0%', 'oklch': 'oklch(0 0 0)', 'hex': '#000000'},
    'darkGray': {'hsl': '240 2% 14%', 'oklch': 'oklch(0.141 0.005 285.823)', 'hex': '#141414'},
    'lightGray': {'hsl': '210 40% 96%', 'oklch': 'oklch(0.967 0.001 286.375)', 'hex': '#f5f5f5'},
    'mutedGray': {'hsl': '240 6% 27%', 'oklch': 'oklch(0.274 0.006 286.033)', 'hex': '#454545'},
    'borderGray': {'hsl': '240 6% 20%', 'oklch': 'oklch(0.2 0.004 286.32)', 'hex': '#333333'},
    'destructiveRed': {'hsl': '0 84% 60%', 'oklch': 'oklch(0.577 0.245 27.325)', 'hex': '#dc2626'},
}

# Dark surfaces used when no background role was detected
DARK_SURFACE_DEFAULTS = {
    'background': {'hsl': '240 9% 2%', 'oklch': 'oklch(0.141 0.005 285.823)', 'hex': '#0a0a0a'},
    'card': {'hsl': '240 6% 10%', 'oklch': 'oklch(0.21 0.006 285.885)', 'hex': '#1a1a1a'},
}


class RGBA(NamedTuple):
    """Color channels: r, g, b in 0-255 and alpha in 0-1."""
    r: float
    g: float
    b: float
    a: float = 1.0


# =============================================================================
# Parsing
# =============================================================================

def _round(x: float) -> int:
    """Round half up, matching browser number formatting."""
    return int(math.floor(x + 0.5))


def _clamp(x: float, low: float, high: float) -> float:
    return max(low, min(high, x))


def _split_args(body: str) -> list:
    """Split a color function body in comma or space syntax, alpha last."""
    alpha = None
    if '/' in body:
        body, alpha = body.rsplit('/', 1)
    parts = [p for p in re.split(r'[\s,]+', body.strip()) if p]
    if alpha is not None and alpha.strip():
        parts.append(alpha.strip())
    return parts


def _parse_channel(token: str) -> float:
    if token.endswith('%'):
        return _clamp(float(token[:-1]) * 2.55, 0, 255)
    return _clamp(float(token), 0, 255)


def _parse_alpha(token: str) -> float:
    if token.endswith('%'):
        return _clamp(float(token[:-1]) / 100, 0, 1)
    return _clamp(float(token), 0, 1)


def _parse_hue(token: str) -> float:
    if token.endswith('deg'):
        return float(token[:-3])
    if token.endswith('grad'):
        return float(token[:-4]) * 0.9
    if token.endswith('rad'):
        return math.degrees(float(token[:-3]))
    if token.endswith('turn'):
        return float(token[:-4]) * 360
    return float(token)


def _parse_percent(token: str) -> float:
    return _clamp(float(token.rstrip('%')), 0, 100)


def parse_color(value: str) -> Optional[RGBA]:
    """Parse a CSS color literal, returning None when it is not a color."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip().lower()

    if text.startswith('#'):
        digits = text[1:]
        if not HEX_DIGITS_RE.fullmatch(digits):
            return None
        if len(digits) in (3, 4):
            digits = ''.join(ch * 2 for ch in digits)
        if len(digits) not in (6, 8):
            return None
        r, g, b = (int(digits[i:i + 2], 16) for i in (0, 2, 4))
        a = int(digits[6:8], 16) / 255 if len(digits) == 8 else 1.0
        return RGBA(r, g, b, a)

    match = COLOR_FUNCTION_RE.fullmatch(text)
    if match:
        name, body = match.groups()
        parts = _split_args(body)
        if len(parts) < 3:
            return None
        try:
            alpha = _parse_alpha(parts[3]) if len(parts) > 3 else 1.0
            if name.startswith('rgb'):
                r, g, b = (_parse_channel(p) for p in parts[:3])
                return RGBA(r, g, b, alpha)
            h = _parse_hue(parts[0])
            s = _parse_percent(parts[1])
            l = _parse_percent(parts[2])
            r, g, b = hsl_to_rgb(h, s, l)
            return RGBA(r, g, b, alpha)
        except ValueError:
            return None

    if text == 'transparent':
        return RGBA(0, 0, 0, 0.0)
    if text in NAMED_COLORS:
        return parse_color(NAMED_COLORS[text])
    return None


def parse_to_rgb(value: str) -> RGBA:
    """Parse a color, falling back to opaque black for unparseable input."""
    rgba = parse_color(value)
    if rgba is None:
        logger.debug("Unparseable color %r, using black", value)
        return RGBA(0, 0, 0, 1.0)
    return rgba


def find_color_literals(text: str) -> list:
    """Return every hex / rgb(a) / hsl(a) literal in a CSS value, in order."""
    return COLOR_LITERAL_RE.findall(text or '')


def has_opacity(value: str) -> bool:
    """Whether a color literal carries an alpha channel."""
    text = (value or '').strip().lower()
    if text.startswith('#'):
        return len(text) in (5, 9)
    match = COLOR_FUNCTION_RE.fullmatch(text)
    if match:
        return len(_split_args(match.group(2))) > 3
    return text == 'transparent'


def strip_opacity(value: str) -> str:
    """
    Drop the alpha channel from a color literal.

    This truncates rather than compositing against a background, so
    rgba(0, 0, 0, 0.1) becomes rgb(0, 0, 0), not a light gray.
    """
    text = (value or '').strip()
    lower = text.lower()
    if lower.startswith('#'):
        if len(lower) == 9:
            return text[:7]
        if len(lower) == 5:
            return text[:4]
        return text
    match = COLOR_FUNCTION_RE.fullmatch(lower)
    if not match:
        return text
    name, body = match.groups()
    parts = _split_args(body)
    if len(parts) < 3:
        return text
    return f"{name.rstrip('a')}({', '.join(parts[:3])})"


# =============================================================================
# RGB / HSL
# =============================================================================

def rgb_to_hsl(r: float, g: float, b: float) -> tuple[float, float, float]:
    """Convert 0-255 RGB to HSL with hue in degrees and s, l in percent."""
    r, g, b = r / 255, g / 255, b / 255
    high = max(r, g, b)
    low = min(r, g, b)
    diff = high - low
    l = (high + low) / 2

    if diff == 0:
        return 0.0, 0.0, l * 100

    s = diff / (2 - high - low) if l > 0.5 else diff / (high + low)
    if high == r:
        h = (g - b) / diff + (6 if g < b else 0)
    elif high == g:
        h = (b - r) / diff + 2
    else:
        h = (r - g) / diff + 4
    return (h * 60) % 360, s * 100, l * 100


def _hue_to_channel(p: float, q: float, t: float) -> float:
    if t < 0:
        t += 1
    if t > 1:
        t -= 1
    if t < 1 / 6:
        return p + (q - p) * 6 * t
    if t < 1 / 2:
        return q
    if t < 2 / 3:
        return p + (q - p) * (2 / 3 - t) * 6
    return p


def hsl_to_rgb(h: float, s: float, l: float) -> tuple[float, float, float]:
    """Convert HSL (degrees, percent, percent) to 0-255 RGB floats."""
    h = (h % 360) / 360
    s = _clamp(s, 0, 100) / 100
    l = _clamp(l, 0, 100) / 100

    if s == 0:
        return l * 255, l * 255, l * 255

    q = l * (1 + s) if l < 0.5 else l + s - l * s
    p = 2 * l - q
    return (
        _hue_to_channel(p, q, h + 1 / 3) * 255,
        _hue_to_channel(p, q, h) * 255,
        _hue_to_channel(p, q, h - 1 / 3) * 255,
    )


def rgb_to_hex(r: float, g: float, b: float) -> str:
    r, g, b = (_round(_clamp(c, 0, 255)) for c in (r, g, b))
    return f"#{r:02x}{g:02x}{b:02x}"


def hex_to_hsl(hex_value: str) -> tuple[float, float, float]:
    """Unrounded HSL for a hex color."""
    rgba = parse_to_rgb(hex_value)
    return rgb_to_hsl(rgba.r, rgba.g, rgba.b)


def hsl_to_hex(h: float, s: float, l: float) -> str:
    return rgb_to_hex(*hsl_to_rgb(h, s, l))


def to_hsl(value: str) -> tuple[int, int, int]:
    """Integer HSL for any supported literal, as used by the classification bands."""
    h, s, l = hex_to_hsl(value)
    return _round(h) % 360, _round(s), _round(l)


def normalize_to_hex(value: str) -> str:
    """Lowercase, alpha-stripped #rrggbb form of a color literal."""
    rgba = parse_to_rgb(value)
    return rgb_to_hex(rgba.r, rgba.g, rgba.b)


# =============================================================================
# OKLab / OKLCH
# =============================================================================

def srgb_to_linear(rgb: np.ndarray) -> np.ndarray:
    """Linearize an Nx3 array of 0-255 sRGB values."""
    c = rgb.astype(np.float64) / 255.0
    return np.where(c <= 0.04045, c / 12.92, ((c + 0.055) / 1.055) ** 2.4)


def linear_to_srgb(linear: np.ndarray) -> np.ndarray:
    """Gamma-encode linear light back to 0-255 sRGB floats."""
    c = np.where(
        linear <= 0.0031308,
        12.92 * linear,
        1.055 * np.power(np.clip(linear, 0, None), 1 / 2.4) - 0.055,
    )
    return np.clip(c * 255, 0, 255)


def rgb_to_oklab(rgb: np.ndarray) -> np.ndarray:
    """Convert an Nx3 array of 0-255 sRGB to OKLab."""
    linear = srgb_to_linear(np.atleast_2d(rgb))
    lms = linear @ SRGB_TO_LMS.T
    return np.cbrt(lms) @ LMS_TO_OKLAB.T


def oklab_to_rgb(lab: np.ndarray) -> np.ndarray:
    """Convert an Nx3 OKLab array to clipped 0-255 sRGB floats."""
    lms = (np.atleast_2d(lab) @ OKLAB_TO_LMS.T) ** 3
    return linear_to_srgb(lms @ LMS_TO_SRGB.T)


def oklab_to_oklch(lab: np.ndarray) -> np.ndarray:
    lab = np.atleast_2d(lab)
    L = np.clip(lab[:, 0], 0, 1)
    C = np.maximum(np.hypot(lab[:, 1], lab[:, 2]), 0)
    H = np.degrees(np.arctan2(lab[:, 2], lab[:, 1])) % 360
    H = np.where(C < ACHROMATIC_CHROMA, 0.0, H)
    return np.column_stack([L, C, H])


def oklch_to_oklab(lch: np.ndarray) -> np.ndarray:
    lch = np.atleast_2d(lch)
    hue = np.radians(lch[:, 2])
    return np.column_stack([lch[:, 0], lch[:, 1] * np.cos(hue), lch[:, 1] * np.sin(hue)])


def to_oklch(value: str) -> tuple[float, float, float]:
    """OKLCH (lightness 0-1, chroma, hue degrees) for a color literal."""
    rgba = parse_to_rgb(value)
    lch = oklab_to_oklch(rgb_to_oklab(np.array([[rgba.r, rgba.g, rgba.b]])))[0]
    return float(lch[0]), float(lch[1]), float(lch[2])


def oklch_to_hex(l: float, c: float, h: float) -> str:
    rgb = oklab_to_rgb(oklch_to_oklab(np.array([[l, c, h]])))[0]
    return rgb_to_hex(*rgb)


def format_oklch(l: float, c: float, h: float) -> str:
    return f"oklch({l:.3f} {c:.3f} {h:.3f})"


# =============================================================================
# LAB (CIE, D65)
# =============================================================================

def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """Convert RGB array (0-255) to LAB color space."""
    linear = srgb_to_linear(np.atleast_2d(rgb))

    # RGB to XYZ matrix
    r, g, b = linear[:, 0], linear[:, 1], linear[:, 2]
    x = r * 0.4124564 + g * 0.3575761 + b * 0.1804375
    y = r * 0.2126729 + g * 0.7151522 + b * 0.0721750
    z = r * 0.0193339 + g * 0.1191920 + b * 0.9503041

    # XYZ to LAB (D65 reference white)
    x, y, z = x / 0.95047, y / 1.0, z / 1.08883

    epsilon = 0.008856
    kappa = 903.3
    fx = np.where(x > epsilon, np.cbrt(x), (kappa * x + 16) / 116)
    fy = np.where(y > epsilon, np.cbrt(y), (kappa * y + 16) / 116)
    fz = np.where(z > epsilon, np.cbrt(z), (kappa * z + 16) / 116)

    return np.column_stack([116 * fy - 16, 500 * (fx - fy), 200 * (fy - fz)])


def lab_to_rgb(lab: np.ndarray) -> np.ndarray:
    """Convert LAB array to RGB (0-255)."""
    lab = np.atleast_2d(lab)
    L, a, b = lab[:, 0], lab[:, 1], lab[:, 2]

    fy = (L + 16) / 116
    fx = a / 500 + fy
    fz = fy - b / 200

    epsilon = 0.008856
    kappa = 903.3
    x = np.where(fx**3 > epsilon, fx**3, (116 * fx - 16) / kappa) * 0.95047
    y = np.where(L > kappa * epsilon, ((L + 16) / 116) ** 3, L / kappa)
    z = np.where(fz**3 > epsilon, fz**3, (116 * fz - 16) / kappa) * 1.08883

    r = x * 3.2404542 - y * 1.5371385 - z * 0.4985314
    g = -x * 0.9692660 + y * 1.8760108 + z * 0.0415560
    b_out = x * 0.0556434 - y * 0.2040259 + z * 1.0572252

    return np.round(linear_to_srgb(np.column_stack([r, g, b_out]))).astype(np.uint8)


def lab_to_hex(lab: np.ndarray) -> str:
    """Convert a single LAB triple to a hex string."""
    rgb = lab_to_rgb(lab)[0]
    return f"#{rgb[0]:02x}{rgb[1]:02x}{rgb[2]:02x}"


# =============================================================================
# Luminance & Contrast
# =============================================================================

def relative_luminance(value: str) -> float:
    """WCAG relative luminance of a color literal."""
    rgba = parse_to_rgb(value)
    channels = []
    for c in (rgba.r / 255, rgba.g / 255, rgba.b / 255):
        channels.append(c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4)
    r, g, b = channels
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def contrast_ratio(color_a: str, color_b: str) -> float:
    l1 = relative_luminance(color_a)
    l2 = relative_luminance(color_b)
    lighter, darker = max(l1, l2), min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


# =============================================================================
# Encoding & Dark Mode
# =============================================================================

def default_color(name: str, encoding: str) -> str:
    """Built-in neutral color rendered in the requested encoding."""
    return NEUTRAL_DEFAULTS[name][_check_encoding(encoding)]


def _check_encoding(encoding: str) -> str:
    if encoding not in ENCODINGS:
        raise ValueError(f"Unknown color encoding: {encoding!r} (expected one of {', '.join(ENCODINGS)})")
    return encoding


def _format_hsl(h: float, s: float, l: float, encoding: str) -> str:
    if encoding == 'hex':
        return hsl_to_hex(h, s, l)
    return f"{_round(h) % 360} {_round(s)}% {_round(l)}%"


def format_color(value: str, encoding: str = 'hsl') -> str:
    """Render a color literal as `h s% l%`, `oklch(l c h)` or `#rrggbb`."""
    _check_encoding(encoding)
    if encoding == 'oklch':
        return format_oklch(*to_oklch(value))
    if encoding == 'hex':
        return normalize_to_hex(value)
    return _format_hsl(*to_hsl(value), encoding)


def _dark_lightness(lightness: float, role: str) -> float:
    scale, floor, ceiling = DARK_MODE_LIGHTNESS[role]
    lightness *= scale
    if floor is not None:
        lightness = max(lightness, floor)
    if ceiling is not None:
        lightness = min(lightness, ceiling)
    return lightness


def _brand_lightness(lightness: float) -> float:
    if lightness < 30:
        return min(lightness + 20, 50)
    if lightness > 80:
        return max(lightness - 15, 65)
    return lightness


def adjust_for_dark_mode(value: str, role: str, encoding: str = 'hsl') -> str:
    """
    Move a surface color into its dark-theme lightness band.

    Args:
        value: Any supported color literal
        role: 'background', 'foreground', 'border' or 'muted'
        encoding: Output encoding; OKLCH colors are adjusted in OKLCH space

    Returns:
        The adjusted color in the requested encoding, hue and saturation kept.
    """
    if role not in DARK_MODE_LIGHTNESS:
        raise ValueError(f"No dark-mode band for role {role!r}")
    _check_encoding(encoding)

    if encoding == 'oklch':
        l, c, h = to_oklch(value)
        return format_oklch(_dark_lightness(l * 100, role) / 100, c, h)

    h, s, l = to_hsl(value)
    return _format_hsl(h, s, _dark_lightness(l, role), encoding)


def adjust_brand_for_dark_mode(value: str, encoding: str = 'hsl') -> str:
    """Nudge a brand color into a visible dark-theme band, keeping hue and chroma."""
    _check_encoding(encoding)

    if encoding == 'oklch':
        l, c, h = to_oklch(value)
        return format_oklch(_brand_lightness(l * 100) / 100, c, h)

    h, s, l = to_hsl(value)
    return _format_hsl(h, s, _brand_lightness(l), encoding)
