"""
Map extracted tokens onto Tailwind's default scales.

Spacing, font sizes and radii snap to the nearest scale step within a
tolerance; colors match the nearest palette entry by LAB distance.
"""

import logging
import re
from typing import Optional

import numpy as np

from color_space import normalize_to_hex, parse_color, rgb_to_lab

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

REM_PX = 16.0  # Browser default root font size

SPACING_TOLERANCE = 0.125  # rem
FONT_SIZE_TOLERANCE = 0.125  # rem
RADIUS_TOLERANCE = 0.0625  # rem
COLOR_MATCH_DISTANCE = 12.0  # Max CIE76 distance for a palette match (~5 JND)

TAILWIND_SPACING = (
    ('0', 0), ('0.5', 0.125), ('1', 0.25), ('1.5', 0.375), ('2', 0.5), ('2.5', 0.625),
    ('3', 0.75), ('3.5', 0.875), ('4', 1), ('5', 1.25), ('6', 1.5), ('7', 1.75), ('8', 2),
    ('9', 2.25), ('10', 2.5), ('11', 2.75), ('12', 3), ('14', 3.5), ('16', 4), ('20', 5),
    ('24', 6), ('28', 7), ('32', 8), ('36', 9), ('40', 10), ('44', 11), ('48', 12),
    ('52', 13), ('56', 14), ('60', 15), ('64', 16), ('72', 18), ('80', 20), ('96', 24),
)

TAILWIND_FONT_SIZES = (
    ('xs', 0.75), ('sm', 0.875), ('base', 1), ('lg', 1.125), ('xl', 1.25), ('2xl', 1.5),
    ('3xl', 1.875), ('4xl', 2.25), ('5xl', 3), ('6xl', 3.75), ('7xl', 4.5), ('8xl', 6), ('9xl', 8),
)

TAILWIND_RADII = (
    ('none', 0), ('sm', 0.125), ('', 0.25), ('md', 0.375), ('lg', 0.5), ('xl', 0.75),
    ('2xl', 1), ('3xl', 1.5),
)

# Class suffix -> hex for the default palette families used in utility classes
TAILWIND_PALETTE = {
    'red-50': '#fef2f2', 'red-100': '#fee2e2', 'red-200': '#fecaca', 'red-300': '#fca5a5',
    'red-400': '#f87171', 'red-500': '#ef4444', 'red-600': '#dc2626', 'red-700': '#b91c1c',
    'red-800': '#991b1b', 'red-900': '#7f1d1d', 'red-950': '#450a0a',

    'blue-50': '#eff6ff', 'blue-100': '#dbeafe', 'blue-200': '#bfdbfe', 'blue-300': '#93c5fd',
    'blue-400': '#60a5fa', 'blue-500': '#3b82f6', 'blue-600': '#2563eb', 'blue-700': '#1d4ed8',
    'blue-800': '#1e40af', 'blue-900': '#1e3a8a', 'blue-950': '#172554',

    'green-50': '#f0fdf4', 'green-100': '#dcfce7', 'green-200': '#bbf7d0', 'green-300': '#86efac',
    'green-400': '#4ade80', 'green-500': '#22c55e', 'green-600': '#16a34a', 'green-700': '#15803d',
    'green-800': '#166534', 'green-900': '#14532d', 'green-950': '#052e16',

    'purple-50': '#faf5ff', 'purple-100': '#f3e8ff', 'purple-200': '#e9d5ff', 'purple-300': '#d8b4fe',
    'purple-400': '#c084fc', 'purple-500': '#a855f7', 'purple-600': '#9333ea', 'purple-700': '#7e22ce',
    'purple-800': '#6b21a8', 'purple-900': '#581c87', 'purple-950': '#3b0764',

    'yellow-50': '#fefce8', 'yellow-100': '#fef9c3', 'yellow-200': '#fef08a', 'yellow-300': '#fde047',
    'yellow-400': '#facc15', 'yellow-500': '#eab308', 'yellow-600': '#ca8a04', 'yellow-700': '#a16207',
    'yellow-800': '#854d0e', 'yellow-900': '#713f12', 'yellow-950': '#422006',

    'lime-50': '#f7fee7', 'lime-100': '#ecfccb', 'lime-200': '#d9f99d', 'lime-300': '#bef264',
    'lime-400': '#a3e635', 'lime-500': '#84cc16', 'lime-600': '#65a30d', 'lime-700': '#4d7c0f',
    'lime-800': '#3f6212', 'lime-900': '#365314', 'lime-950': '#1a2e05',

    'emerald-50': '#ecfdf5', 'emerald-100': '#d1fae5', 'emerald-200': '#a7f3d0', 'emerald-300': '#6ee7b7',
    'emerald-400': '#34d399', 'emerald-500': '#10b981', 'emerald-600': '#059669', 'emerald-700': '#047857',
    'emerald-800': '#065f46', 'emerald-900': '#064e3b', 'emerald-950': '#022c22',

    'gray-50': '#f9fafb', 'gray-100': '#f3f4f6', 'gray-200': '#e5e7eb', 'gray-300': '#d1d5db',
    'gray-400': '#9ca3af', 'gray-500': '#6b7280', 'gray-600': '#4b5563', 'gray-700': '#374151',
    'gray-800': '#1f2937', 'gray-900': '#111827', 'gray-950': '#030712',

    'indigo-50': '#eef2ff', 'indigo-100': '#e0e7ff', 'indigo-200': '#c7d2fe', 'indigo-300': '#a5b4fc',
    'indigo-400': '#818cf8', 'indigo-500': '#6366f1', 'indigo-600': '#4f46e5', 'indigo-700': '#4338ca',
    'indigo-800': '#3730a3', 'indigo-900': '#312e81', 'indigo-950': '#1e1b4b',

    'pink-50': '#fdf2f8', 'pink-100': '#fce7f3', 'pink-200': '#fbcfe8', 'pink-300': '#f9a8d4',
    'pink-400': '#f472b6', 'pink-500': '#ec4899', 'pink-600': '#db2777', 'pink-700': '#be185d',
    'pink-800': '#9d174d', 'pink-900': '#831843', 'pink-950': '#500724',

    'orange-50': '#fff7ed', 'orange-100': '#ffedd5', 'orange-200': '#fed7aa', 'orange-300': '#fdba74',
    'orange-400': '#fb923c', 'orange-500': '#f97316', 'orange-600': '#ea580c', 'orange-700': '#c2410c',
    'orange-800': '#9a3412', 'orange-900': '#7c2d12', 'orange-950': '#431407',

    'white': '#ffffff', 'black': '#000000',
}

_PALETTE_NAMES = tuple(TAILWIND_PALETTE)
_PALETTE_LAB = rgb_to_lab(np.array([
    [int(h[i:i + 2], 16) for i in (1, 3, 5)] for h in TAILWIND_PALETTE.values()
]))

NUMBER_RE = re.compile(r'^-?[\d.]+')


# =============================================================================
# Scale Matching
# =============================================================================

def normalize_to_rem(value: str) -> Optional[float]:
    """Convert px / rem / em to rem; em is treated as rem. Other units give None."""
    value = value.strip().lower()
    if value in ('0', '0px'):
        return 0.0
    match = NUMBER_RE.match(value)
    if not match:
        return None
    try:
        number = float(match.group(0))
    except ValueError:
        return None
    if value.endswith('rem') or value.endswith('em'):
        return number
    if value.endswith('px'):
        return number / REM_PX
    return None


def _closest(scale: tuple, rem: float, tolerance: float) -> Optional[str]:
    name, step = min(scale, key=lambda entry: abs(entry[1] - rem))
    if abs(step - rem) <= tolerance:
        return name
    return None


def find_closest_spacing(value: str) -> list:
    rem = normalize_to_rem(value)
    if rem is None:
        return []
    step = _closest(TAILWIND_SPACING, rem, SPACING_TOLERANCE)
    if step is None:
        return []
    return [f"space-{step}", f"p-{step}", f"m-{step}", f"gap-{step}"]


def find_closest_font_size(value: str) -> list:
    rem = normalize_to_rem(value)
    if rem is None:
        return []
    step = _closest(TAILWIND_FONT_SIZES, rem, FONT_SIZE_TOLERANCE)
    return [f"text-{step}"] if step is not None else []


def find_closest_border_radius(value: str) -> list:
    rem = normalize_to_rem(value)
    if rem is None:
        return []
    step = _closest(TAILWIND_RADII, rem, RADIUS_TOLERANCE)
    if step is None:
        return []
    return [f"rounded-{step}" if step else 'rounded']


def find_similar_tailwind_colors(value: str, max_distance: float = COLOR_MATCH_DISTANCE) -> list:
    """
    Find the nearest Tailwind palette color.

    Returns [family, class suffix] for the closest entry within max_distance
    LAB units, e.g. ['blue', 'blue-600'], ['white'] for exact white, or [].
    """
    if parse_color(value) is None:
        return []
    hex_value = normalize_to_hex(value)
    if hex_value == '#ffffff':
        return ['white']
    if hex_value == '#000000':
        return ['black']

    rgb = np.array([[int(hex_value[i:i + 2], 16) for i in (1, 3, 5)]])
    distances = np.linalg.norm(_PALETTE_LAB - rgb_to_lab(rgb), axis=1)
    idx = int(np.argmin(distances))
    if distances[idx] > max_distance:
        return []

    name = _PALETTE_NAMES[idx]
    family = name.split('-')[0]
    return [family, name] if family != name else [name]


def map_font_family(font_family: str) -> list:
    family = font_family.lower().strip()
    if 'inter' in family or 'system-ui' in family or 'sans' in family:
        return ['font-sans']
    if 'mono' in family or 'courier' in family or 'consolas' in family:
        return ['font-mono']
    if 'serif' in family or 'times' in family or 'georgia' in family:
        return ['font-serif']
    return ['font-sans']


# =============================================================================
# Report
# =============================================================================

def generate_tailwind_correlations(tokens) -> dict:
    """Correlate a TokenSet's colors, spacing, font sizes, radii and families with Tailwind classes."""
    correlations = {
        'colors': {},
        'spacing': {},
        'fontSize': {},
        'borderRadius': {},
        'fontFamily': {},
    }

    for color in tokens.group('colors').values:
        if color.startswith('#'):
            matches = find_similar_tailwind_colors(color)
            if matches:
                correlations['colors'][color] = matches

    for key, kind, finder in (
        ('spacing', 'spacing', find_closest_spacing),
        ('fontSize', 'fontSizes', find_closest_font_size),
        ('borderRadius', 'radii', find_closest_border_radius),
    ):
        for value in tokens.group(kind).values:
            classes = finder(value)
            if classes:
                correlations[key][value] = classes

    for family in tokens.group('fontFamilies').values:
        correlations['fontFamily'][family] = map_font_family(family)

    logger.debug("Tailwind correlations: %d colors, %d spacing values",
                 len(correlations['colors']), len(correlations['spacing']))
    return correlations
