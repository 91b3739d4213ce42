"""
Render classified colors as a shadcn-style theme.

The light map always carries every base role variable; roles the page
doesn't provide fall back to built-in neutrals. A dark map is derived only
when the palette has some color to carry over.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from color_space import (
    DARK_SURFACE_DEFAULTS,
    adjust_brand_for_dark_mode,
    adjust_for_dark_mode,
    default_color,
    format_color,
    strip_opacity,
    to_hsl,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

RADIUS = '0.5rem'

LIGHT_FOREGROUND_THRESHOLD = 50  # HSL lightness below this gets a white foreground
DARK_FOREGROUND_THRESHOLD = 60
DARK_THEME_MIN_SATURATION = 30  # Some color must exceed this for a dark map

FALLBACK_SECONDARY_SATURATION = 30
VIBRANT_SATURATION = 60
VIBRANT_LIGHTNESS = (30, 80)


@dataclass
class Theme:
    """Light and optional dark custom-property maps."""
    light: dict
    dark: Optional[dict] = None

    def to_dict(self) -> dict:
        result = {'light': self.light}
        if self.dark is not None:
            result['dark'] = self.dark
        return result


# =============================================================================
# Helpers
# =============================================================================

def foreground_for(value: str, encoding: str = 'hsl', light: bool = True) -> str:
    """White text on dark fills, dark gray text on light ones."""
    threshold = LIGHT_FOREGROUND_THRESHOLD if light else DARK_FOREGROUND_THRESHOLD
    _, _, l = to_hsl(value)
    return default_color('white' if l < threshold else 'darkGray', encoding)


def _by_role(analyses: list, role: str) -> list:
    matches = [a for a in analyses if a.role == role]
    return [a.hex for a in sorted(matches, key=lambda a: -(a.confidence or 0))]


def _pick_secondary(analyses: list, roles: dict) -> Optional[str]:
    for role in ('secondary', 'accent', 'muted'):
        if roles[role]:
            return roles[role][0]
    saturated = [a for a in analyses if a.role != 'primary' and a.saturation > FALLBACK_SECONDARY_SATURATION]
    if saturated:
        return max(saturated, key=lambda a: a.saturation).hex
    return None


def _pick_accent(analyses: list, roles: dict, secondary: Optional[str]) -> Optional[str]:
    if roles['accent']:
        return roles['accent'][0]
    if len(roles['secondary']) > 1:
        return roles['secondary'][1]
    low, high = VIBRANT_LIGHTNESS
    vibrant = [
        a for a in analyses
        if a.role != 'primary' and a.hex != secondary
        and a.saturation > VIBRANT_SATURATION and low < a.lightness < high
    ]
    if vibrant:
        return max(vibrant, key=lambda a: a.saturation).hex
    return secondary


def _set_surface(theme: dict, names: tuple, value: str) -> None:
    for name in names:
        theme[name] = value


# =============================================================================
# Light Theme
# =============================================================================

def _light_theme(roles: dict, primary, secondary, accent, encoding: str) -> dict:
    def default(name):
        return default_color(name, encoding)

    def paired(key, value):
        theme[key] = format_color(value, encoding)
        theme[f"{key}-foreground"] = foreground_for(value, encoding, light=True)

    theme = {'--radius': RADIUS}

    background = format_color(roles['background'][0], encoding) if roles['background'] else default('white')
    _set_surface(theme, ('--background', '--card', '--popover'), background)

    foreground = format_color(roles['foreground'][0], encoding) if roles['foreground'] else default('darkGray')
    _set_surface(theme, ('--foreground', '--card-foreground', '--popover-foreground'), foreground)

    if primary:
        solid = strip_opacity(primary)
        paired('--primary', solid)
        theme['--ring'] = format_color(solid, encoding)
    else:
        theme['--primary'] = default('darkGray')
        theme['--primary-foreground'] = default('white')
        theme['--ring'] = default('darkGray')

    if secondary:
        paired('--secondary', strip_opacity(secondary))
    else:
        theme['--secondary'] = default('lightGray')
        theme['--secondary-foreground'] = default('darkGray')

    if accent:
        paired('--accent', accent)
    else:
        theme['--accent'] = default('lightGray')
        theme['--accent-foreground'] = default('darkGray')

    if roles['muted']:
        muted = roles['muted'][0]
        theme['--muted'] = format_color(muted, encoding)
        _, _, l = to_hsl(muted)
        theme['--muted-foreground'] = default('white' if l < LIGHT_FOREGROUND_THRESHOLD else 'mutedGray')
    else:
        theme['--muted'] = default('lightGray')
        theme['--muted-foreground'] = default('mutedGray')

    if roles['destructive']:
        paired('--destructive', roles['destructive'][0])
    else:
        theme['--destructive'] = default('destructiveRed')
        theme['--destructive-foreground'] = default('white')

    border = format_color(roles['border'][0], encoding) if roles['border'] else default('borderGray')
    _set_surface(theme, ('--border', '--input'), border)

    return theme


# =============================================================================
# Dark Theme
# =============================================================================

def _dark_theme(roles: dict, primary, secondary, accent, encoding: str) -> dict:
    def default(name):
        return default_color(name, encoding)

    def brand(key, value, fallback):
        if value:
            theme[key] = adjust_brand_for_dark_mode(value, encoding)
            theme[f"{key}-foreground"] = foreground_for(value, encoding, light=False)
        else:
            theme[key] = default(fallback)
            theme[f"{key}-foreground"] = default('white')

    theme = {'--radius': RADIUS}

    if roles['background']:
        dark_bg = adjust_for_dark_mode(roles['background'][0], 'background', encoding)
        _set_surface(theme, ('--background', '--card', '--popover'), dark_bg)
    else:
        theme['--background'] = DARK_SURFACE_DEFAULTS['background'][encoding]
        theme['--card'] = DARK_SURFACE_DEFAULTS['card'][encoding]
        theme['--popover'] = DARK_SURFACE_DEFAULTS['card'][encoding]

    if roles['foreground']:
        dark_fg = adjust_for_dark_mode(roles['foreground'][0], 'foreground', encoding)
    else:
        dark_fg = default('white')
    _set_surface(theme, ('--foreground', '--card-foreground', '--popover-foreground'), dark_fg)

    if primary:
        theme['--primary'] = adjust_brand_for_dark_mode(primary, encoding)
        theme['--primary-foreground'] = foreground_for(primary, encoding, light=False)
        theme['--ring'] = theme['--primary']
    else:
        theme['--primary'] = default('white')
        theme['--primary-foreground'] = default('darkGray')
        theme['--ring'] = default('white')

    brand('--secondary', secondary, 'mutedGray')
    brand('--accent', accent, 'mutedGray')
    brand('--destructive', roles['destructive'][0] if roles['destructive'] else None, 'destructiveRed')

    if roles['border']:
        _set_surface(theme, ('--border', '--input'), adjust_for_dark_mode(roles['border'][0], 'border', encoding))
    else:
        theme['--border'] = default('borderGray')
        theme['--input'] = default('mutedGray')

    if roles['muted']:
        theme['--muted'] = adjust_for_dark_mode(roles['muted'][0], 'muted', encoding)
    else:
        theme['--muted'] = default('mutedGray')
    theme['--muted-foreground'] = default('white')

    return theme


# =============================================================================
# Main Entry
# =============================================================================

def generate_theme(analyses: list, encoding: str = 'hsl') -> Theme:
    """
    Build light and dark theme maps from classified colors.

    Args:
        analyses: ColorAnalysis list from the brand classifier or the merger
        encoding: 'hsl', 'oklch' or 'hex'

    Returns:
        Theme whose dark map is None for an all-grayscale palette

    Raises:
        ValueError: For an unknown encoding
    """
    default_color('white', encoding)

    roles = {
        role: _by_role(analyses, role)
        for role in ('primary', 'background', 'foreground', 'secondary', 'accent', 'border', 'muted', 'destructive')
    }
    primary = roles['primary'][0] if roles['primary'] else None
    secondary = _pick_secondary(analyses, roles)
    accent = _pick_accent(analyses, roles, secondary)

    light = _light_theme(roles, primary, secondary, accent, encoding)

    dark = None
    if any(a.saturation > DARK_THEME_MIN_SATURATION for a in analyses):
        dark = _dark_theme(roles, primary, secondary, accent, encoding)

    logger.debug("Theme: primary=%s secondary=%s accent=%s dark=%s",
                 primary, secondary, accent, dark is not None)
    return Theme(light, dark)
