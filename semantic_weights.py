"""
Semantic color weighting from page structure.

Colors that appear on buttons, navigation, headers and other brand-carrying
elements matter more than colors buried in utility rules. This module walks the
HTML with BeautifulSoup, finds those elements through a fixed selector table,
and records a weighted signal for every color reaching them through inline
styles, plausibly matching CSS rules, context-specific CSS patterns or
Tailwind utility classes.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

import soupsieve
from bs4 import BeautifulSoup

from color_space import find_color_literals, normalize_to_hex, parse_color
from extract_tokens import flatten_stylesheet, parse_declarations
from tailwind_correlations import TAILWIND_PALETTE

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# (selector, context, weight), evaluated in order
SEMANTIC_SELECTORS = (
    # Buttons
    ('button, [role="button"], input[type="submit"], input[type="button"]', 'button', 100),
    ('.btn, .button, .cta-button, [class*="btn-"], [class*="button-"]', 'button', 95),
    ('.cta, .call-to-action, [class*="cta-"], .hero-cta, .primary-cta', 'cta', 90),

    # Navigation
    ('nav, .nav, .navbar, .navigation, .menu', 'navigation', 85),
    ('nav a, .nav a, .navbar a, .menu a, .nav-link, .menu-item', 'navigation', 80),

    # Brand, header and hero zones
    ('.logo, .brand, [class*="logo"], [class*="brand"], [alt*="logo"]', 'brand', 95),
    ('header, .header, .masthead, .site-header, .page-header', 'header', 90),
    ('.header-wrapper, .header-container, [class*="header-"], [class*="masthead"], [class*="topbar"]', 'header', 85),
    ('.hero, .banner, .jumbotron, [class*="hero-"], .hero-section', 'hero', 85),
    ('.hero-wrapper, .hero-container, .hero-banner', 'hero', 80),
    ('footer, .footer, [class*="footer"], .site-footer', 'brand', 80),
    ('.footer-wrapper, .footer-container, .footer-section', 'brand', 75),

    # Layout zones
    ('.sidebar, [class*="sidebar"], aside, .aside', 'brand', 70),
    ('main, .main, [role="main"], .content, .main-content', 'brand', 60),
    ('.section, [class*="section"], .section-wrapper', 'accent', 65),
    ('.container, [class*="container"], .wrapper, [class*="wrapper"]', 'accent', 55),
    ('.card, [class*="card"], .panel, [class*="panel"]', 'accent', 65),
    ('.modal, [class*="modal"], .overlay, [class*="overlay"]', 'accent', 65),
    ('[class*="framer-"], .framer', 'brand', 70),

    # Forms and state
    ('input:focus, textarea:focus, select:focus, [class*="focus"]', 'form', 70),
    ('.form-control:focus, .input:focus, .form-input:focus', 'form', 70),
    ('.active, .current, .selected, [aria-selected="true"], [aria-current]', 'status', 75),
    ('.badge, .tag, .label, [class*="badge"], [class*="tag"]', 'status', 65),
    ('.alert, .notification, .toast, [role="alert"]', 'status', 60),

    ('a[class*="primary"], a[class*="button"], .link-primary', 'link', 60),
    ('.accent, .highlight, .featured, [class*="accent"]', 'accent', 70),
    ('h1, .title, .page-title, [class*="title"]', 'header', 50),
)

COLOR_PROPERTIES = frozenset({
    'color', 'background-color', 'background', 'border-color',
    'border-top-color', 'border-right-color', 'border-bottom-color', 'border-left-color',
    'outline-color', 'text-decoration-color', 'fill', 'stroke',
})

BUTTON_ATTRIBUTE_SELECTORS = ('[type="submit"]', '[type="button"]', '[role="button"]')

_BACKGROUND = r'[^{]*\{[^}]*background(?:-color)?[^:]*:\s*([^;}]+)'
_BACKGROUND_OR_COLOR = r'[^{]*\{[^}]*(?:background(?:-color)?|color)[^:]*:\s*([^;}]+)'

# Raw-CSS patterns per context, for pages whose markup is rendered client-side
CONTEXT_CSS_PATTERNS = {
    'button': tuple(re.compile(p + _BACKGROUND, re.IGNORECASE)
                    for p in (r'\.btn', r'button', r'\.cta', r'\.primary')),
    'header': tuple(re.compile(p + _BACKGROUND, re.IGNORECASE)
                    for p in (r'header', r'\.header', r'\.masthead', r'\.topbar',
                              r'\.site-header', r'\.page-header')),
    'hero': tuple(re.compile(p + _BACKGROUND, re.IGNORECASE)
                  for p in (r'\.hero', r'\.banner', r'\.jumbotron')),
    'navigation': tuple(re.compile(p + _BACKGROUND, re.IGNORECASE)
                        for p in (r'nav', r'\.nav', r'\.navbar')),
    'brand': (
        re.compile(r'\.logo' + _BACKGROUND_OR_COLOR, re.IGNORECASE),
        re.compile(r'\.brand' + _BACKGROUND_OR_COLOR, re.IGNORECASE),
        re.compile(r'footer' + _BACKGROUND, re.IGNORECASE),
        re.compile(r'\.footer' + _BACKGROUND, re.IGNORECASE),
    ),
}
CONTEXT_CUSTOM_PROPERTY_RE = re.compile(r'--(?:header|brand|primary|main)[^:]*:\s*([^;}]+)', re.IGNORECASE)
CONTEXT_CUSTOM_PROPERTY_CONTEXTS = frozenset({'header', 'brand'})
CUSTOM_PROPERTY_FREQUENCY = 2  # Context custom properties count double

# Tailwind utility classes: (pattern, property, arbitrary value)
TAILWIND_COLOR_PATTERNS = (
    (re.compile(r'\bbg-(\w+(?:-\d+)?)\b'), 'background-color', False),
    (re.compile(r'\bbg-\[(#[0-9a-fA-F]{3,8})\]'), 'background-color', True),
    (re.compile(r'\btext-(\w+(?:-\d+)?)\b'), 'color', False),
    (re.compile(r'\btext-\[(#[0-9a-fA-F]{3,8})\]'), 'color', True),
    (re.compile(r'\bborder-(\w+(?:-\d+)?)\b'), 'border-color', False),
    (re.compile(r'\bborder-\[(#[0-9a-fA-F]{3,8})\]'), 'border-color', True),
    (re.compile(r'\bring-(\w+(?:-\d+)?)\b'), 'ring-color', False),
    (re.compile(r'\bfill-(\w+(?:-\d+)?)\b'), 'fill', False),
    (re.compile(r'\bstroke-(\w+(?:-\d+)?)\b'), 'stroke', False),
)
TAILWIND_COLOR_CLASS_RE = re.compile(r'\b(?:bg|text|border|ring|fill|stroke)-\w+(?:-\d+)?\b')
TAILWIND_INDICATORS = (
    TAILWIND_COLOR_CLASS_RE,
    re.compile(r'\b(?:p|m|px|py|mx|my)-\d+\b'),
    re.compile(r'\b(?:w|h)-\d+\b'),
    re.compile(r'\bflex\b'),
    re.compile(r'\bgrid\b'),
    re.compile(r'\bhidden\b'),
    re.compile(r'\bblock\b'),
)
TAILWIND_DETECTION_THRESHOLD = 10  # Indicator classes needed before Tailwind colors count
TAILWIND_WEIGHT = 60

BRAND_CONTEXTS = ('brand', 'hero', 'header')
TOP_SIGNALS = 10  # Signals considered for highest_weight_colors


# =============================================================================
# Data Types
# =============================================================================

@dataclass
class SemanticSignal:
    """A color seen in a semantic context, accumulated over elements."""
    color: str
    context: str
    weight: int
    property: str
    element: str  # Tag name, 'css-pattern' or 'tailwind-class'
    selector: str
    frequency: int = 1
    dom_depth: Optional[int] = None  # Distance from <body>
    first_seen_index: Optional[int] = None  # Order the color was first met in this run
    document_position: Optional[float] = None  # 0 = first element, 1 = last
    element_count: int = 1

    def to_dict(self) -> dict:
        return {
            'color': self.color,
            'context': self.context,
            'weight': self.weight,
            'property': self.property,
            'element': self.element,
            'selector': self.selector,
            'frequency': self.frequency,
            'domDepth': self.dom_depth,
            'firstSeenIndex': self.first_seen_index,
            'documentPosition': self.document_position,
            'elementCount': self.element_count,
        }


@dataclass
class TailwindColor:
    color: str
    property: str
    class_name: str
    frequency: int


@dataclass
class TailwindUsage:
    """Tailwind utility usage found in class attributes."""
    detected: bool
    total_classes: int
    color_classes: list
    colors: list  # list[TailwindColor]


@dataclass
class SemanticColorAnalysis:
    """All semantic signals for a page plus their summary views."""
    signals: list = field(default_factory=list)  # Sorted by weight * frequency
    colors_by_context: dict = field(default_factory=dict)
    button_colors: list = field(default_factory=list)
    brand_colors: list = field(default_factory=list)
    highest_weight_colors: list = field(default_factory=list)
    total_elements: int = 0
    tailwind: Optional[TailwindUsage] = None

    def summary(self) -> dict:
        return {
            'totalElements': self.total_elements,
            'colorsByContext': self.colors_by_context,
            'highestWeightColors': self.highest_weight_colors,
            'buttonColors': self.button_colors,
            'brandColors': self.brand_colors,
        }


@dataclass
class EnhancedColor:
    """A color frequency entry with the semantic weight folded in."""
    value: str
    count: float
    source: str = 'css'
    semantic_weight: float = 0
    contexts: list = field(default_factory=list)


# =============================================================================
# Signal Collection
# =============================================================================

class SignalCollector:
    """Accumulates signals keyed by (color, context, property)."""

    def __init__(self):
        self.signals = {}
        self.first_seen = {}

    def first_seen_index(self, color: str) -> int:
        key = normalize_to_hex(color)
        if key not in self.first_seen:
            self.first_seen[key] = len(self.first_seen)
        return self.first_seen[key]

    def add(self, color: str, context: str, weight: int, prop: str, element: str, selector: str,
            frequency: int = 1, dom_depth: Optional[int] = None,
            document_position: Optional[float] = None, track_order: bool = False) -> None:
        """Record one hit. Only hits with track_order (inline styles on elements) claim a first-seen index."""
        color = color.strip().lower()
        if parse_color(color) is None:
            logger.debug("Skipping unparseable semantic color %r", color)
            return

        first_seen = self.first_seen_index(color) if track_order else None
        key = (color, context, prop)
        existing = self.signals.get(key)
        if existing is None:
            self.signals[key] = SemanticSignal(
                color=color, context=context, weight=weight, property=prop,
                element=element, selector=selector, frequency=frequency,
                dom_depth=dom_depth, first_seen_index=first_seen,
                document_position=document_position,
            )
            return

        existing.frequency += frequency
        existing.element_count += 1
        if existing.dom_depth is None:
            existing.dom_depth = dom_depth
        if existing.document_position is None:
            existing.document_position = document_position
        if existing.first_seen_index is None:
            existing.first_seen_index = first_seen


def dom_depth(element) -> int:
    """Number of ancestors between the element and <body>."""
    depth = 0
    for parent in element.parents:
        if parent.name in ('body', '[document]'):
            break
        depth += 1
    return depth


def _inline_colors(element) -> list:
    style = element.get('style')
    if not style:
        return []
    colors = []
    for decl in parse_declarations(style):
        if decl.name in COLOR_PROPERTIES:
            colors.extend((color, decl.name) for color in find_color_literals(decl.value))
    return colors


def _rule_targets_elements(selector: str, tags: set, classes: set, ids: set, context: str) -> bool:
    for tag in tags:
        if re.search(rf'(?<![\w.#-]){re.escape(tag)}(?![\w-])', selector):
            return True
    for cls in classes:
        if re.search(rf'\.{re.escape(cls)}(?![\w-])', selector) or f'[class*="{cls}"]' in selector:
            return True
    for element_id in ids:
        if re.search(rf'#{re.escape(element_id)}(?![\w-])', selector):
            return True
    if context == 'button':
        return any(attr in selector for attr in BUTTON_ATTRIBUTE_SELECTORS)
    return False


def _css_rule_colors(color_rules: list, elements: list, context: str) -> list:
    """Color declarations from rules whose selector plausibly targets the elements."""
    tags, classes, ids = set(), set(), set()
    for element in elements:
        tags.add(element.name.lower())
        classes.update(c.lower() for c in element.get('class', []))
        if element.get('id'):
            ids.add(element['id'].lower())

    colors = []
    for selector, declarations in color_rules:
        if _rule_targets_elements(selector, tags, classes, ids, context):
            for decl in declarations:
                colors.extend((color, decl.name) for color in find_color_literals(decl.value))
    return colors


def _context_pattern_colors(css: str, context: str) -> list:
    """(color, frequency) pairs from raw-CSS patterns for a context."""
    colors = []
    for pattern in CONTEXT_CSS_PATTERNS.get(context, ()):
        for match in pattern.finditer(css):
            colors.extend((color, 1) for color in find_color_literals(match.group(1)))
    if context in CONTEXT_CUSTOM_PROPERTY_CONTEXTS:
        for match in CONTEXT_CUSTOM_PROPERTY_RE.finditer(css):
            colors.extend((color, CUSTOM_PROPERTY_FREQUENCY) for color in find_color_literals(match.group(1)))
    return colors


# =============================================================================
# Tailwind
# =============================================================================

def _class_tokens(soup: BeautifulSoup) -> list:
    tokens = []
    for element in soup.find_all(class_=True):
        tokens.extend(element.get('class', []))
    return tokens


def extract_tailwind_colors(class_tokens: list) -> list:
    frequency = {}
    for cls in class_tokens:
        frequency[cls] = frequency.get(cls, 0) + 1

    colors = []
    for pattern, prop, arbitrary in TAILWIND_COLOR_PATTERNS:
        for class_name, count in frequency.items():
            for match in pattern.finditer(class_name):
                color = match.group(1) if arbitrary else TAILWIND_PALETTE.get(match.group(1))
                if color:
                    colors.append(TailwindColor(color, prop, class_name, count))
    return colors


def analyze_tailwind_usage(soup: BeautifulSoup) -> TailwindUsage:
    """Count Tailwind indicator classes and resolve color utilities to hex."""
    class_tokens = _class_tokens(soup)
    class_text = ' '.join(class_tokens)
    total = sum(len(pattern.findall(class_text)) for pattern in TAILWIND_INDICATORS)
    color_classes = list(dict.fromkeys(TAILWIND_COLOR_CLASS_RE.findall(class_text)))
    return TailwindUsage(
        detected=total > TAILWIND_DETECTION_THRESHOLD,
        total_classes=total,
        color_classes=color_classes,
        colors=extract_tailwind_colors(class_tokens),
    )


def _tailwind_context(item: TailwindColor) -> str:
    if 'btn' in item.class_name or 'button' in item.class_name:
        return 'button'
    if item.property == 'background-color':
        return 'brand'
    return 'accent'


# =============================================================================
# Analysis
# =============================================================================

def summarize_signals(signals: list) -> dict:
    colors_by_context = {}
    button_colors = []
    brand_colors = []
    for signal in signals:
        bucket = colors_by_context.setdefault(signal.context, [])
        if signal.color not in bucket:
            bucket.append(signal.color)
        if signal.context == 'button' and signal.color not in button_colors:
            button_colors.append(signal.color)
        if signal.context in BRAND_CONTEXTS and signal.color not in brand_colors:
            brand_colors.append(signal.color)

    highest = list(dict.fromkeys(s.color for s in signals[:TOP_SIGNALS]))
    return {
        'colors_by_context': colors_by_context,
        'button_colors': button_colors,
        'brand_colors': brand_colors,
        'highest_weight_colors': highest,
    }


def analyze_semantic_colors(html: str, css: str) -> SemanticColorAnalysis:
    """
    Weight page colors by the semantic role of the elements that carry them.

    Args:
        html: Rendered page markup
        css: All stylesheet text for the page

    Returns:
        SemanticColorAnalysis with signals sorted by weight * frequency.
    """
    soup = BeautifulSoup(html or '', 'html.parser')
    all_elements = soup.find_all(True)
    positions = {id(el): i for i, el in enumerate(all_elements)}
    last_index = max(len(all_elements) - 1, 1)

    color_rules = []
    for rule in flatten_stylesheet(css).rules:
        declarations = [d for d in rule.declarations if d.name in COLOR_PROPERTIES]
        if declarations:
            color_rules.append((rule.selector.lower(), declarations))

    collector = SignalCollector()

    tailwind = analyze_tailwind_usage(soup)
    if tailwind.detected:
        logger.info("Tailwind detected: %d classes, %d color instances",
                    tailwind.total_classes, len(tailwind.colors))
        for item in tailwind.colors:
            collector.add(item.color, _tailwind_context(item), TAILWIND_WEIGHT, item.property,
                          'tailwind-class', item.class_name, frequency=item.frequency)

    patterns_applied = set()
    for selector, context, weight in SEMANTIC_SELECTORS:
        try:
            elements = soup.select(selector)
        except soupsieve.SelectorSyntaxError as e:
            logger.debug("Skipping selector %r: %s", selector, e)
            continue
        if not elements:
            continue
        logger.debug("%d elements for %s (%s)", len(elements), context, selector)

        for element in elements:
            depth = dom_depth(element)
            position = positions.get(id(element), 0) / last_index
            for color, prop in _inline_colors(element):
                collector.add(color, context, weight, prop, element.name, selector,
                              dom_depth=depth, document_position=position, track_order=True)

        representative = elements[0].name
        for color, prop in _css_rule_colors(color_rules, elements, context):
            collector.add(color, context, weight, prop, representative, selector)

        if context not in patterns_applied:
            patterns_applied.add(context)
            for color, frequency in _context_pattern_colors(css or '', context):
                collector.add(color, context, weight, 'background-color', 'css-pattern',
                              selector, frequency=frequency)

    signals = sorted(collector.signals.values(), key=lambda s: -(s.weight * s.frequency))
    summary = summarize_signals(signals)

    logger.info("Found %d semantic color signals (%d button, %d brand)",
                len(signals), len(summary['button_colors']), len(summary['brand_colors']))

    return SemanticColorAnalysis(
        signals=signals,
        total_elements=len(signals),
        tailwind=tailwind if tailwind.detected else None,
        **summary,
    )


def enhance_colors_with_semantic(css_colors: list, analysis: SemanticColorAnalysis) -> list:
    """
    Fold semantic signals into a color frequency list.

    Args:
        css_colors: Tokens, EnhancedColor-like items, image-merge dicts or (value, count) pairs
        analysis: Result of analyze_semantic_colors

    Returns:
        list[EnhancedColor] sorted by count + 0.5 * semantic_weight
    """
    enhanced = []
    by_hex = {}
    for item in css_colors:
        if isinstance(item, tuple):
            value, count = item
            source = 'css'
        elif isinstance(item, dict):
            value, count = item['value'], item['count']
            source = item.get('source', 'css')
        else:
            value = getattr(item, 'raw_value', None) or item.value
            count = getattr(item, 'occurrence_count', None)
            count = item.count if count is None else count
            source = getattr(item, 'source', 'css')
        entry = EnhancedColor(value, count, source)
        enhanced.append(entry)
        if parse_color(value) is not None:
            by_hex.setdefault(normalize_to_hex(value), entry)

    for signal in analysis.signals:
        boost = signal.weight * signal.frequency
        key = normalize_to_hex(signal.color)
        existing = by_hex.get(key)
        if existing is None:
            existing = EnhancedColor(signal.color, signal.frequency, 'semantic', 0, [])
            enhanced.append(existing)
            by_hex[key] = existing
        existing.semantic_weight += boost
        if signal.context not in existing.contexts:
            existing.contexts.append(signal.context)

    return sorted(enhanced, key=lambda c: -(c.count + c.semantic_weight * 0.5))
