"""
Output formats for a finished site analysis.

Every format reads the same SiteAnalysis (tokens, classified colors, theme,
semantic summary) and only reshapes it; nothing is re-analyzed here.

    json              flat token dump plus alias relationships
    style-dictionary  nested `properties` map
    shadcn            `:root {}` / `.dark {}` CSS with layout, brand and button extras
    tailwind          correlation report with recommendations
    theme-json        custom-property map plus a color list
"""

import logging

from color_space import format_color, normalize_to_hex, parse_color, to_hsl
from extract_tokens import TOKEN_KINDS
from render_theme import foreground_for
from tailwind_correlations import generate_tailwind_correlations

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

FORMATS = ('json', 'style-dictionary', 'shadcn', 'tailwind', 'theme-json')

# style-dictionary category and item prefix per token kind
STYLE_DICTIONARY_KINDS = (
    ('colors', 'color', 'color'),
    ('fontSizes', 'size', 'fontSize'),
    ('spacing', 'size', 'spacing'),
    ('radii', 'radius', 'radius'),
    ('shadows', 'shadow', 'shadow'),
    ('gradients', 'gradient', 'gradient'),
    ('breakpoints', 'breakpoint', 'breakpoint'),
    ('zIndices', 'zIndex', 'zIndex'),
    ('transitions', 'transition', 'transition'),
    ('opacity', 'opacity', 'opacity'),
    ('aspectRatios', 'aspectRatio', 'aspectRatio'),
    ('borderWidths', 'borderWidth', 'borderWidth'),
    ('borderStyles', 'borderStyle', 'borderStyle'),
    ('fontFamilies', 'font', 'fontFamily'),
    ('fontWeights', 'font', 'fontWeight'),
    ('lineHeights', 'font', 'lineHeight'),
    ('letterSpacings', 'font', 'letterSpacing'),
)

# (semantic context, variable prefix) for shadcn layout zones, first unused color wins
LAYOUT_ZONES = (
    ('header', '--header'),
    ('hero', '--hero'),
    ('brand', '--footer'),
    ('accent', '--section'),
)

MAX_BUTTON_COLORS = 5
MAX_BRAND_COLORS = 3
MAX_BRAND_ACCENTS = 2
MIN_EXTRA_ALPHA = 0.2  # Nearly transparent overlays are not brand colors
THEME_JSON_BUTTONS = 3

EXTREME_HEXES = frozenset({'#ffffff', '#000000'})


# =============================================================================
# Token Serialization
# =============================================================================

def custom_property_to_dict(prop) -> dict:
    entry = {
        'value': prop.raw_value,
        'resolvedValue': prop.resolved_value,
        'references': prop.reference_count,
    }
    if prop.alias_of:
        entry['refVariable'] = prop.alias_of
    return entry


def tokens_to_dict(tokens) -> dict:
    """A TokenSet as camelCase JSON-ready data."""
    result = {
        'customProperties': {
            name: custom_property_to_dict(prop) for name, prop in tokens.custom_properties.items()
        },
    }
    for kind in TOKEN_KINDS:
        group = tokens.group(kind)
        result[kind] = {
            'values': list(group.values),
            'frequency': [
                {'value': t.raw_value, 'count': t.occurrence_count, 'prevalence': t.prevalence}
                for t in group.frequency
            ],
        }
    result['colorsFromVariables'] = list(tokens.colors_from_variables)
    return result


def alias_relationships(tokens) -> dict:
    return {
        name: {'aliasOf': prop.alias_of}
        for name, prop in tokens.custom_properties.items()
        if prop.alias_of
    }


def color_analysis_summary(analyses: list) -> list:
    return [
        {
            'color': a.hex,
            'role': a.role,
            'frequency': a.frequency,
            'lightness': a.lightness,
            'saturation': a.saturation,
        }
        for a in analyses
    ]


# =============================================================================
# json / style-dictionary
# =============================================================================

def format_json(analysis, compact: bool = False) -> dict:
    tokens = analysis.tokens
    if not compact:
        return {
            'meta': analysis.meta,
            'tokens': tokens_to_dict(tokens),
            'relationships': alias_relationships(tokens),
        }

    custom = {}
    for name, prop in tokens.custom_properties.items():
        entry = {'v': prop.raw_value}
        if prop.reference_count:
            entry['r'] = prop.reference_count
        if prop.alias_of:
            entry['ref'] = prop.alias_of
        custom[name] = entry['v'] if len(entry) == 1 else entry

    compact_tokens = {'customProperties': custom}
    for kind in TOKEN_KINDS:
        compact_tokens[kind] = list(tokens.group(kind).values)

    return {
        'meta': analysis.meta,
        'tokens': compact_tokens,
        'relationships': alias_relationships(tokens),
    }


def format_style_dictionary(analysis) -> dict:
    tokens = analysis.tokens
    properties = {category: {} for _, category, _ in STYLE_DICTIONARY_KINDS}
    properties['customProperties'] = {}

    for kind, category, prefix in STYLE_DICTIONARY_KINDS:
        for i, value in enumerate(tokens.group(kind).values, start=1):
            properties[category][f"{prefix}{i}"] = {'value': value}

    for name, prop in tokens.custom_properties.items():
        entry = {'value': prop.raw_value, 'references': prop.reference_count}
        if prop.alias_of:
            entry['ref'] = prop.alias_of
        properties['customProperties'][name] = entry

    return {
        'meta': analysis.meta,
        'properties': properties,
        'relationships': alias_relationships(tokens),
    }


# =============================================================================
# shadcn
# =============================================================================

def is_extra_color(value: str, solid_only: bool = False) -> bool:
    """Whether a semantic color is usable as an extra theme variable."""
    rgba = parse_color(value)
    if rgba is None:
        return False
    if normalize_to_hex(value) in EXTREME_HEXES:
        return False
    if solid_only:
        return rgba.a >= 1.0
    return rgba.a >= MIN_EXTRA_ALPHA


def _css_block(selector: str, variables: dict, extras: list) -> str:
    lines = [f"{selector} {{"]
    lines.extend(f"  {key}: {value};" for key, value in variables.items())
    for title, block in extras:
        if block:
            lines.append('')
            lines.append(f"  /* {title} */")
            lines.extend(f"  {key}: {value};" for key, value in block.items())
    lines.append('}')
    return '\n'.join(lines)


def shadcn_extras(summary: dict, light_theme: dict, encoding: str) -> tuple:
    """Layout-zone, brand and button variables from the semantic summary."""
    used = {light_theme.get(key) for key in ('--primary', '--secondary', '--accent')}

    def fmt(value):
        return format_color(value, encoding)

    buttons = {}
    for value in summary.get('buttonColors', []):
        if len(buttons) == MAX_BUTTON_COLORS:
            break
        if is_extra_color(value) and fmt(value) not in used:
            buttons[f"--button-{len(buttons) + 1}"] = fmt(value)

    layout = {}
    taken = []
    by_context = summary.get('colorsByContext', {})
    for context, prefix in LAYOUT_ZONES:
        value = next(
            (c for c in by_context.get(context, [])
             if is_extra_color(c, solid_only=True) and fmt(c) not in used and c not in taken),
            None,
        )
        if value is None:
            continue
        taken.append(value)
        layout[f"{prefix}-background"] = fmt(value)
        layout[f"{prefix}-foreground"] = foreground_for(value, encoding, light=True)

    brand = {}
    brand_count = 0
    for value in summary.get('brandColors', []):
        if brand_count == MAX_BRAND_COLORS:
            break
        if is_extra_color(value) and fmt(value) not in used:
            brand_count += 1
            brand[f"--brand-{brand_count}"] = fmt(value)

    already = set(buttons.values()) | set(layout.values()) | set(brand.values()) | used
    accent_count = 0
    for value in summary.get('highestWeightColors', []):
        if accent_count == MAX_BRAND_ACCENTS:
            break
        if is_extra_color(value) and fmt(value) not in already:
            accent_count += 1
            brand[f"--brand-accent-{accent_count}"] = fmt(value)
            already.add(fmt(value))

    return layout, brand, buttons


def format_shadcn(analysis) -> dict:
    theme = analysis.theme
    layout, brand, buttons = {}, {}, {}
    if analysis.semantic is not None:
        layout, brand, buttons = shadcn_extras(analysis.semantic.summary(), theme.light, analysis.encoding)

    extras = [
        ('Layout Zone Colors', layout),
        ('Additional Brand Colors', brand),
        ('Button Colors', buttons),
    ]
    css = _css_block(':root', theme.light, extras)
    if theme.dark is not None:
        css += '\n\n' + _css_block('.dark', theme.dark, extras)

    return {
        'meta': {
            **analysis.meta,
            'format': 'shadcn',
            'colorAnalysis': color_analysis_summary(analysis.color_analyses),
        },
        'css': css,
        'theme': {
            **theme.to_dict(),
            'layoutZoneColors': layout,
            'additionalBrandColors': brand,
            'buttonColors': buttons,
        },
        'tokens': {
            kind: list(analysis.tokens.group(kind).values)
            for kind in ('colors', 'fontSizes', 'spacing', 'radii')
        },
    }


# =============================================================================
# tailwind / theme-json
# =============================================================================

def format_tailwind(analysis) -> dict:
    correlations = generate_tailwind_correlations(analysis.tokens)
    analyses = analysis.color_analyses

    def by_role(role, limit):
        return [a.to_dict() for a in analyses if a.role == role][:limit]

    return {
        'meta': {**analysis.meta, 'format': 'tailwind'},
        'correlations': correlations,
        'colorAnalysis': [a.to_dict() for a in analyses],
        'recommendations': {
            'primaryColors': by_role('primary', 3),
            'secondaryColors': by_role('secondary', 2),
            'accentColors': by_role('accent', 3),
            'spacingSystem': list(correlations['spacing'])[:10],
            'fontSizes': list(correlations['fontSize'])[:8],
            'borderRadius': list(correlations['borderRadius'])[:5],
        },
        'tokens': tokens_to_dict(analysis.tokens),
    }


def _black_or_white(hex_value: str) -> str:
    _, _, l = to_hsl(hex_value)
    return '#ffffff' if l < 50 else '#000000'


def format_theme_json(analysis) -> dict:
    analyses = analysis.color_analyses
    custom = {}
    for role in ('primary', 'secondary', 'accent', 'destructive'):
        match = next((a for a in analyses if a.role == role), None)
        if match is not None:
            custom[f"--{role}"] = match.hex
            custom[f"--{role}-foreground"] = _black_or_white(match.hex)

    if analysis.semantic is not None:
        by_context = analysis.semantic.colors_by_context
        for context in ('header', 'hero', 'brand'):
            if by_context.get(context):
                custom[f"--{context}-background"] = by_context[context][0]
        for i, value in enumerate(analysis.semantic.button_colors[:THEME_JSON_BUTTONS], start=1):
            custom[f"--button-{i}"] = value

    tokens = analysis.tokens
    return {
        'meta': {
            **analysis.meta,
            'format': 'theme-json',
            'colorAnalysis': color_analysis_summary(analyses),
        },
        'theme': {
            'customProperties': custom,
            'colors': [a.hex for a in sorted(analyses, key=lambda a: -a.frequency)],
            'fontSizes': list(tokens.group('fontSizes').values),
            'spacing': list(tokens.group('spacing').values),
            'radii': list(tokens.group('radii').values),
        },
    }


# =============================================================================
# Main Entry
# =============================================================================

def format_output(analysis, fmt: str = 'json', compact: bool = False) -> dict:
    """
    Render a SiteAnalysis in one of FORMATS.

    Raises:
        ValueError: For an unknown format
    """
    if fmt == 'json':
        return format_json(analysis, compact)
    if fmt == 'style-dictionary':
        return format_style_dictionary(analysis)
    if fmt == 'shadcn':
        return format_shadcn(analysis)
    if fmt == 'tailwind':
        return format_tailwind(analysis)
    if fmt == 'theme-json':
        return format_theme_json(analysis)
    raise ValueError(f"Unknown format: {fmt!r} (expected one of {', '.join(FORMATS)})")
