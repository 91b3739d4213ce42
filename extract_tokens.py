"""
Extract design tokens from a CSS text blob.

Walks the stylesheet with tinycss2 (descending into @media, @supports and the
other block at-rules), collects per-kind frequency tables for colors,
typography, spacing, radii and the rest, and resolves custom properties
through their var() chains.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

import tinycss2

from color_space import CSS_COLOR_KEYWORDS, find_color_literals

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Selectors whose colors are usually browser defaults, not design choices
PSEUDO_STATE_PATTERNS = tuple(re.compile(p, re.IGNORECASE) for p in (
    r':hover',
    r':focus',
    r':visited',
    r':link',
    r':active',
    r'a:not\(',
    r'\*:focus',
    r'(?:input|button|textarea|select):focus',
    r':focus-visible',
    r':target',
))

COLOR_PROPERTY_RE = re.compile(
    r'color|background|border|fill|stroke|shadow|outline|caret|text-decoration|accent-color',
    re.IGNORECASE,
)
SIZE_VALUE_RE = re.compile(r'[\d.]+(?:px|rem|em|%|vw|vh)')
RADIUS_VALUE_RE = re.compile(r'[\d.]+(?:px|rem|em|%)')
BREAKPOINT_RE = re.compile(r'(min|max)-width:\s*([\d.]+(?:px|em|rem|vw|vh))', re.IGNORECASE)
GRADIENT_RE = re.compile(r'gradient', re.IGNORECASE)

VAR_REFERENCE_RE = re.compile(r'var\(\s*(--[\w-]+)')
VAR_CALL_RE = re.compile(r'var\(\s*(--[\w-]+)\s*(?:,([^()]*))?\)')
ALIAS_RE = re.compile(r'^var\(\s*(--[\w-]+)\s*\)$')

# At-rules whose block holds further rules
NESTED_AT_RULES = frozenset({
    'media', 'supports', 'layer', 'container', 'document', '-moz-document',
    'keyframes', '-webkit-keyframes',
})
# At-rules whose block holds declarations directly
DECLARATION_AT_RULES = frozenset({'font-face', 'page', 'property', 'counter-style', 'font-palette-values'})

# Token kind -> (property pattern, value collector); colors and breakpoints are handled separately
PROPERTY_KINDS = (
    ('fontSizes', re.compile(r'font-size', re.IGNORECASE), 'sizes'),
    ('fontFamilies', re.compile(r'font-family', re.IGNORECASE), 'families'),
    ('fontWeights', re.compile(r'font-weight', re.IGNORECASE), 'value'),
    ('lineHeights', re.compile(r'line-height', re.IGNORECASE), 'value'),
    ('letterSpacings', re.compile(r'letter-spacing', re.IGNORECASE), 'value'),
    ('spacing', re.compile(r'margin|padding|gap', re.IGNORECASE), 'sizes'),
    ('radii', re.compile(r'radius', re.IGNORECASE), 'radii'),
    ('shadows', re.compile(r'box-shadow|text-shadow', re.IGNORECASE), 'value'),
    ('zIndices', re.compile(r'z-index', re.IGNORECASE), 'value'),
    ('transitions', re.compile(r'transition|animation', re.IGNORECASE), 'value'),
    ('opacity', re.compile(r'opacity', re.IGNORECASE), 'value'),
    ('aspectRatios', re.compile(r'aspect-ratio', re.IGNORECASE), 'value'),
    ('borderWidths', re.compile(r'border-width', re.IGNORECASE), 'value'),
    ('borderStyles', re.compile(r'border-style', re.IGNORECASE), 'value'),
)

TOKEN_KINDS = (
    'colors', 'fontSizes', 'fontFamilies', 'fontWeights', 'lineHeights', 'letterSpacings',
    'spacing', 'radii', 'shadows', 'gradients', 'breakpoints', 'zIndices', 'transitions',
    'opacity', 'aspectRatios', 'borderWidths', 'borderStyles',
)


# =============================================================================
# Data Types
# =============================================================================

@dataclass(frozen=True)
class Token:
    """One distinct raw value of a token kind with its frequency."""
    kind: str
    raw_value: str
    occurrence_count: int
    prevalence: float  # Percent of all values of this kind


@dataclass
class TokenGroup:
    """All values collected for one token kind."""
    kind: str
    values: list  # Distinct raw values, first-seen order
    frequency: list  # list[Token], count descending


@dataclass(frozen=True)
class CustomProperty:
    """A `--name: value` declaration with its resolved value."""
    name: str
    raw_value: str
    resolved_value: str
    reference_count: int  # var(--name) occurrences in the stylesheet
    alias_of: Optional[str] = None  # Set when the raw value is exactly var(--other)


@dataclass(frozen=True)
class VariableColor:
    """A color defined by a custom property."""
    variable: str
    value: str
    references: int


@dataclass
class TokenSet:
    """Everything extracted from one stylesheet."""
    custom_properties: dict = field(default_factory=dict)  # name -> CustomProperty
    groups: dict = field(default_factory=dict)  # kind -> TokenGroup
    colors_from_variables: list = field(default_factory=list)  # Color literals seen inside custom properties

    def group(self, kind: str) -> TokenGroup:
        return self.groups.get(kind) or TokenGroup(kind, [], [])

    @property
    def colors(self) -> list:
        return self.group('colors').frequency

    def total_tokens(self) -> dict:
        """Occurrence totals per kind, plus the custom property count."""
        totals = {'customProperties': len(self.custom_properties)}
        for kind in TOKEN_KINDS:
            totals[kind] = sum(t.occurrence_count for t in self.group(kind).frequency)
        return totals


@dataclass
class CssDeclaration:
    """A declaration with its value serialized back to text."""
    name: str  # Lowercased, except custom property names which are case-sensitive
    value: str
    important: bool = False


@dataclass
class StyleRule:
    """A style rule flattened out of any enclosing at-rules."""
    selector: str
    declarations: list  # list[CssDeclaration]


@dataclass
class ParsedStylesheet:
    rules: list  # list[StyleRule]
    media_queries: list  # @media preludes, in document order


# =============================================================================
# Parsing
# =============================================================================

def _convert_declarations(nodes: list, context: str) -> list:
    declarations = []
    for node in nodes:
        if node.type == 'error':
            logger.debug("Skipping malformed declaration in %s: %s", context, node.message)
            continue
        if node.type != 'declaration':
            continue
        name = node.name if node.name.startswith('--') else node.lower_name
        value = tinycss2.serialize(node.value).strip()
        declarations.append(CssDeclaration(name, value, node.important))
    return declarations


def parse_declarations(text: str, context: str = 'inline style') -> list:
    """Parse a declaration list such as an inline style attribute."""
    nodes = tinycss2.parse_declaration_list(text or '', skip_comments=True, skip_whitespace=True)
    return _convert_declarations(nodes, context)


def _walk_rules(nodes: list, parsed: ParsedStylesheet) -> None:
    for node in nodes:
        if node.type == 'error':
            logger.debug("Skipping unparseable rule: %s", node.message)
            continue

        if node.type == 'qualified-rule':
            selector = tinycss2.serialize(node.prelude).strip()
            declarations = tinycss2.parse_declaration_list(
                node.content, skip_comments=True, skip_whitespace=True
            )
            parsed.rules.append(StyleRule(selector, _convert_declarations(declarations, selector)))

        elif node.type == 'at-rule':
            keyword = node.lower_at_keyword
            if keyword == 'media':
                parsed.media_queries.append(tinycss2.serialize(node.prelude).strip())
            if node.content is None:
                continue
            if keyword in NESTED_AT_RULES:
                children = tinycss2.parse_rule_list(node.content, skip_comments=True, skip_whitespace=True)
                _walk_rules(children, parsed)
            elif keyword in DECLARATION_AT_RULES:
                declarations = tinycss2.parse_declaration_list(
                    node.content, skip_comments=True, skip_whitespace=True
                )
                parsed.rules.append(StyleRule(f"@{keyword}", _convert_declarations(declarations, keyword)))


def flatten_stylesheet(css: str) -> ParsedStylesheet:
    """Parse CSS into a flat list of style rules and the @media preludes."""
    parsed = ParsedStylesheet(rules=[], media_queries=[])
    nodes = tinycss2.parse_stylesheet(css or '', skip_comments=True, skip_whitespace=True)
    _walk_rules(nodes, parsed)
    return parsed


def iter_style_rules(css: str):
    """Yield every style rule in the stylesheet, at-rule nesting flattened."""
    yield from flatten_stylesheet(css).rules


def is_pseudo_state_selector(selector: str) -> bool:
    return any(pattern.search(selector) for pattern in PSEUDO_STATE_PATTERNS)


# =============================================================================
# Custom Properties
# =============================================================================

def resolve_var(value: str, custom_properties: dict, seen: frozenset = frozenset()) -> str:
    """
    Substitute var() references in a value.

    Args:
        value: Raw CSS value
        custom_properties: name -> raw value for every defined property
        seen: Property names already being resolved on this branch

    Returns:
        The value with every resolvable reference substituted. References
        that would cycle, and undefined ones without a fallback, are left as-is.
    """
    def substitute(match):
        name, fallback = match.group(1), match.group(2)
        if name in seen:
            return match.group(0)
        if name in custom_properties:
            return resolve_var(custom_properties[name], custom_properties, seen | {name})
        if fallback is not None:
            return resolve_var(fallback.strip(), custom_properties, seen)
        return match.group(0)

    return VAR_CALL_RE.sub(substitute, value)


def count_var_references(css: str) -> Counter:
    return Counter(VAR_REFERENCE_RE.findall(css or ''))


def build_custom_properties(raw_properties: dict, references: Counter) -> dict:
    result = {}
    for name, raw in raw_properties.items():
        alias = ALIAS_RE.match(raw.strip())
        result[name] = CustomProperty(
            name=name,
            raw_value=raw,
            resolved_value=resolve_var(raw, raw_properties, frozenset({name})),
            reference_count=references.get(name, 0),
            alias_of=alias.group(1) if alias else None,
        )
    return result


def variable_colors(tokens: TokenSet) -> list:
    """Custom properties whose resolved value contains a color literal."""
    results = []
    for prop in tokens.custom_properties.values():
        literals = find_color_literals(prop.resolved_value)
        if literals:
            results.append(VariableColor(prop.name, literals[0], prop.reference_count))
    return results


# =============================================================================
# Frequency Tables
# =============================================================================

def frequency_table(kind: str, values: list) -> list:
    """Count raw values into Tokens sorted by count, ties in first-seen order."""
    counts = Counter(values)
    total = len(values)
    tokens = [
        Token(kind, value, count, round(count / total * 100, 2))
        for value, count in counts.items()
    ]
    return sorted(tokens, key=lambda t: -t.occurrence_count)


def build_group(kind: str, values: list) -> TokenGroup:
    return TokenGroup(kind, list(dict.fromkeys(values)), frequency_table(kind, values))


# =============================================================================
# Extraction
# =============================================================================

def _collect_colors(decl: CssDeclaration, out: list) -> None:
    literals = find_color_literals(decl.value)
    out.extend(literals)
    if not literals and COLOR_PROPERTY_RE.search(decl.name):
        out.extend(word for word in decl.value.split() if word.lower() in CSS_COLOR_KEYWORDS)


def _collect_property_values(decl: CssDeclaration, collected: dict) -> None:
    for kind, pattern, collector in PROPERTY_KINDS:
        if not pattern.search(decl.name):
            continue
        if collector == 'sizes':
            collected[kind].extend(SIZE_VALUE_RE.findall(decl.value))
        elif collector == 'radii':
            collected[kind].extend(RADIUS_VALUE_RE.findall(decl.value))
        elif collector == 'families':
            collected[kind].extend(
                f.strip().strip('\'"') for f in decl.value.split(',') if f.strip()
            )
        else:
            collected[kind].append(decl.value)

    if GRADIENT_RE.search(decl.value):
        collected['gradients'].append(decl.value)


def extract_tokens(css: str) -> TokenSet:
    """
    Extract every token kind from a CSS text blob.

    Malformed rules and declarations are skipped; this never raises on bad CSS.
    """
    parsed = flatten_stylesheet(css)
    collected = {kind: [] for kind in TOKEN_KINDS}
    raw_properties = {}
    colors_from_variables = []

    for rule in parsed.rules:
        skip_colors = is_pseudo_state_selector(rule.selector)
        for decl in rule.declarations:
            if decl.name.startswith('--'):
                raw_properties[decl.name] = decl.value
                colors_from_variables.extend(find_color_literals(decl.value))
            if not skip_colors:
                _collect_colors(decl, collected['colors'])
            _collect_property_values(decl, collected)

    for prelude in parsed.media_queries:
        collected['breakpoints'].extend(m.group(2) for m in BREAKPOINT_RE.finditer(prelude))

    tokens = TokenSet(
        custom_properties=build_custom_properties(raw_properties, count_var_references(css)),
        groups={kind: build_group(kind, values) for kind, values in collected.items()},
        colors_from_variables=list(dict.fromkeys(colors_from_variables)),
    )

    logger.info(
        "Extracted %d rules: %d colors, %d custom properties",
        len(parsed.rules), len(tokens.group('colors').values), len(tokens.custom_properties),
    )
    return tokens
