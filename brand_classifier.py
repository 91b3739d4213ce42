"""
Brand color classification.

Takes color frequencies from the extractor (plus variable-defined colors and
optional semantic signals), consolidates variants of the same color, scores
each candidate for brand relevance and assigns one role per color:
primary, secondary, accent, background, foreground, border, muted,
destructive or neutral.

Four steps:
1. Candidates - group raw values by normalized hex, pick a representative
2. Grouping - fold near-identical hues into one candidate
3. Scoring - explicit heuristics, every constant on ScoringWeights
4. Roles - first matching rule wins in score order, then at most one primary
"""

import logging
import math
import re
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Optional

from bs4 import BeautifulSoup

from color_space import (
    contrast_ratio,
    has_opacity,
    normalize_to_hex,
    parse_color,
    to_hsl,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Values that name no concrete color
NON_COLOR_VALUES = frozenset({'transparent', 'inherit', 'initial', 'unset', 'currentcolor', 'none'})

COMMON_WEB_COLORS = frozenset({
    '#ffffff', '#fff', '#000000', '#000',
    '#f5f5f5', '#f0f0f0', '#e5e5e5', '#e0e0e0', '#d0d0d0', '#cccccc', '#c0c0c0',
    '#999999', '#888888', '#777777', '#666666', '#555555', '#444444', '#333333',
    '#f8f9fa', '#e9ecef', '#dee2e6', '#ced4da', '#adb5bd', '#6c757d', '#495057', '#343a40', '#212529',
})

# Link, visited, focus-ring and OS accent blues/purples
BROWSER_DEFAULT_COLORS = frozenset({
    '#0000ee', '#0000ff', '#0066cc', '#0080ff', '#0099ff', '#1e90ff', '#4169e1',
    '#800080', '#8b008b', '#9932cc', '#663399',
    '#005fcc', '#0078d4', '#0066ff', '#217ce8', '#2563eb',
    '#0078d7', '#106ebe',
    '#66afe9', '#80bdff', '#007bff',
    '#1976d2', '#2196f3', '#42a5f5',
})

# Stock palette colors of popular UI frameworks
FRAMEWORK_COLORS = frozenset({
    # Bootstrap 5
    '#0d6efd', '#6610f2', '#6f42c1', '#d63384', '#dc3545', '#fd7e14',
    '#ffc107', '#198754', '#20c997', '#0dcaf0',
    # Bootstrap 4
    '#007bff', '#6c757d', '#28a745', '#17a2b8',
    '#f8f9fa', '#e9ecef', '#dee2e6', '#ced4da', '#adb5bd', '#495057', '#343a40', '#212529',
    # Material
    '#1976d2', '#388e3c', '#f57c00', '#7b1fa2', '#5d4037', '#455a64', '#e53935',
    '#00acc1', '#fbc02d', '#ff5722', '#795548', '#607d8b',
    # Tailwind
    '#3b82f6', '#ef4444', '#10b981', '#f59e0b', '#8b5cf6', '#06b6d4', '#84cc16',
    '#f97316', '#ec4899', '#6366f1',
    # Bootstrap 3
    '#5cb85c', '#5bc0de', '#337ab7', '#d9534f', '#f0ad4e', '#0073e6',
})

# name -> class patterns (class attributes), variable patterns (CSS), selector patterns (CSS), stock colors
FRAMEWORK_SIGNATURES = {
    'bootstrap': {
        'classes': (r'\bbtn\b', r'\bbtn-primary\b', r'\bbtn-secondary\b', r'\bcontainer\b', r'\brow\b',
                    r'\bcol-', r'\bnavbar\b', r'\bcard\b', r'\balert\b', r'\bbadge\b', r'\btable\b'),
        'variables': (r'--bs-[\w-]+',),
        'selectors': (r'\.btn-primary', r'\.bg-primary', r'\.text-primary', r'\.navbar-', r'\.card-'),
        'colors': ('#0d6efd', '#6610f2', '#6f42c1', '#dc3545', '#198754', '#ffc107', '#20c997'),
    },
    'material': {
        'classes': (r'\bmat-', r'\bmdc-', r'\bmd-', r'\bmaterial-', r'\bmui-'),
        'variables': (r'--mdc-[\w-]+', r'--mat-[\w-]+'),
        'selectors': (r'\.mdc-button', r'\.mat-button', r'\.material-'),
        'colors': ('#1976d2', '#388e3c', '#f57c00', '#7b1fa2', '#e53935', '#00acc1'),
    },
    'tailwind': {
        'classes': (r'\bbg-\w+(?:-\d+)?', r'\btext-\w+(?:-\d+)?', r'\bborder-\w+(?:-\d+)?', r'\bp-\d+',
                    r'\bm-\d+', r'\bflex\b', r'\bgrid\b', r'\bhidden\b', r'\bblock\b'),
        'variables': (r'--tw-[\w-]+',),
        'selectors': (r'\.(?:bg|text|border)-\w+', r'\.(?:p|m|px|py)-\d+'),
        'colors': ('#3b82f6', '#ef4444', '#10b981', '#f59e0b', '#8b5cf6', '#06b6d4'),
    },
    'semantic': {
        'classes': (r'\bui\b', r'\bui\.button', r'\bui\.primary', r'\bui\.menu'),
        'variables': (),
        'selectors': (r'\.ui\.button', r'\.ui\.primary', r'\.ui\.menu'),
        'colors': ('#21ba45', '#2185d0', '#db2828', '#f2711c', '#a333c8'),
    },
    'antd': {
        'classes': (r'\bant-', r'\bant-btn', r'\bant-button', r'\bant-menu'),
        'variables': (r'--ant-[\w-]+',),
        'selectors': (r'\.ant-btn', r'\.ant-button', r'\.ant-menu'),
        'colors': ('#1890ff', '#52c41a', '#faad14', '#f5222d', '#722ed1'),
    },
}

FRAMEWORK_DETECTION_THRESHOLD = 20
CLASS_SCORE = (2, 50)  # (points per match, cap)
VARIABLE_SCORE = (3, 60)
SELECTOR_SCORE = (1.5, 40)

PRIMARY_FREQUENCY_GAP = 10  # Closer frequencies than this rank primaries by confidence

ROLES = ('primary', 'secondary', 'accent', 'background', 'foreground',
         'border', 'muted', 'destructive', 'neutral')


@dataclass(frozen=True)
class ScoringWeights:
    """Every tunable constant of brand scoring and role assignment."""
    # Frequency: log(freq + 1) * scale
    frequency_scale: float = 10.0

    # Saturation: (minimum exclusive, bonus), first match wins
    saturation_bonuses: tuple = ((80, 40), (60, 25), (40, 15))
    grayscale_saturation: float = 10
    grayscale_penalty: float = -20

    # Lightness
    core_lightness: tuple = (25, 75)
    core_lightness_bonus: float = 20
    wide_lightness: tuple = (15, 85)
    wide_lightness_bonus: float = 10
    extreme_lightness_penalty: float = -30  # l > 95 or l < 5

    # Known non-brand palettes
    common_web_penalty: float = -25
    detected_framework_penalty: float = -200
    static_framework_penalty: float = -150
    browser_default_penalty: float = -100

    contrast_threshold: float = 4.5
    contrast_bonus: float = 15

    # Share of all color occurrences
    relative_frequency_window: tuple = (0.01, 0.3)
    relative_frequency_bonus: float = 10
    dominant_share: float = 0.5
    dominant_penalty: float = -15
    single_use_saturation: float = 80
    single_use_penalty: float = -5

    # Semantic signals
    semantic_bonus: float = 100
    first_seen_limit: int = 5
    first_seen_base: float = 15
    first_seen_step: float = 2
    depth_limit: int = 3
    depth_base: float = 10
    depth_step: float = 2
    above_fold_position: float = 0.3
    above_fold_bonus: float = 8
    context_weight_bonuses: tuple = ((90, 25), (80, 15), (70, 10))
    header_weight: int = 90
    header_bonus: float = 20
    no_semantic_penalty: float = -20

    variable_bonus: float = 75

    # Role thresholds
    primary_threshold: float = 30
    vibrant_primary_threshold: float = 45
    primary_min_saturation: float = 30
    secondary_threshold: float = 20
    vibrant_secondary_threshold: float = 30
    vibrant_min_hue_bins: int = 3
    max_primaries: int = 1

    group_similar: bool = True


DEFAULT_WEIGHTS = ScoringWeights()


# =============================================================================
# Data Types
# =============================================================================

@dataclass
class FrequencyItem:
    """A raw color value with its occurrence count."""
    value: str
    count: float
    source: str = 'css'  # css | variable | image | semantic


@dataclass(frozen=True)
class ColorVariant:
    raw_value: str
    occurrence_count: float
    has_opacity: bool
    source: str


@dataclass
class ColorCandidate:
    """All raw spellings of one color, keyed by normalized hex."""
    normalized_hex: str
    variants: list  # list[ColorVariant]
    representative: str  # Raw value standing in for the group
    merged_hexes: list = field(default_factory=list)  # Other hexes folded in by similarity grouping

    @property
    def frequency(self) -> float:
        return sum(v.occurrence_count for v in self.variants)

    @property
    def sources(self) -> list:
        return list(dict.fromkeys(v.source for v in self.variants))


@dataclass
class FrameworkDetection:
    detected: list  # Framework names over the threshold
    confidence: dict  # name -> score
    colors: frozenset  # Stock colors of detected frameworks


@dataclass
class SignalSummary:
    """Semantic signals for one color, collapsed to their strongest values."""
    weight: int
    first_seen_index: Optional[int] = None
    dom_depth: Optional[int] = None
    document_position: Optional[float] = None
    header_bonus: bool = False

    def merge(self, other: 'SignalSummary') -> 'SignalSummary':
        return SignalSummary(
            weight=max(self.weight, other.weight),
            first_seen_index=_min_optional(self.first_seen_index, other.first_seen_index),
            dom_depth=_min_optional(self.dom_depth, other.dom_depth),
            document_position=_min_optional(self.document_position, other.document_position),
            header_bonus=self.header_bonus or other.header_bonus,
        )


@dataclass
class ColorAnalysis:
    """Classification result for one distinct color."""
    hex: str  # Normalized #rrggbb
    role: str
    lightness: int
    saturation: int
    hue: int
    contrast_vs_white: float
    contrast_vs_black: float
    frequency: float
    sources: list
    confidence: float
    score: float = 0.0
    representative: str = ''  # Raw value the color was written as
    merged_hexes: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'hex': self.hex,
            'role': self.role,
            'lightness': self.lightness,
            'saturation': self.saturation,
            'hue': self.hue,
            'contrast': round(self.contrast_vs_white, 2),
            'contrastVsBlack': round(self.contrast_vs_black, 2),
            'frequency': self.frequency,
            'sources': list(self.sources),
            'confidence': self.confidence,
            'score': round(self.score, 2),
            'representative': self.representative,
        }


def _min_optional(a, b):
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


# =============================================================================
# Framework Detection
# =============================================================================

_COMPILED_SIGNATURES = {
    name: {key: tuple(re.compile(p) for p in sig[key]) for key in ('classes', 'variables', 'selectors')}
    for name, sig in FRAMEWORK_SIGNATURES.items()
}


def _class_attribute_text(html: str) -> str:
    soup = BeautifulSoup(html or '', 'html.parser')
    return ' '.join(' '.join(el.get('class', [])) for el in soup.find_all(class_=True))


def _capped(patterns: tuple, text: str, score: tuple) -> float:
    per_match, cap = score
    matches = sum(len(p.findall(text)) for p in patterns)
    return min(matches * per_match, cap) if matches else 0


def detect_frameworks(html: str, css: str) -> FrameworkDetection:
    """Score each known UI framework by its class, variable and selector fingerprints."""
    class_text = _class_attribute_text(html)
    css = css or ''

    detected = []
    confidence = {}
    colors = set()
    for name, patterns in _COMPILED_SIGNATURES.items():
        score = (
            _capped(patterns['classes'], class_text, CLASS_SCORE)
            + _capped(patterns['variables'], css, VARIABLE_SCORE)
            + _capped(patterns['selectors'], css, SELECTOR_SCORE)
        )
        confidence[name] = score
        if score > FRAMEWORK_DETECTION_THRESHOLD:
            detected.append(name)
            colors.update(FRAMEWORK_SIGNATURES[name]['colors'])

    return FrameworkDetection(detected, confidence, frozenset(colors))


# =============================================================================
# Candidates
# =============================================================================

def _coerce_item(item) -> Optional[FrequencyItem]:
    if isinstance(item, FrequencyItem):
        return item
    if isinstance(item, tuple):
        value, count = item[:2]
        return FrequencyItem(value, count, item[2] if len(item) > 2 else 'css')
    if isinstance(item, dict):
        return FrequencyItem(item.get('value'), item.get('count', 0), item.get('source', 'css'))
    if hasattr(item, 'raw_value'):
        return FrequencyItem(item.raw_value, item.occurrence_count)
    if hasattr(item, 'value') and hasattr(item, 'count'):
        return FrequencyItem(item.value, item.count, getattr(item, 'source', 'css'))
    return None


def build_candidates(color_frequencies: list, variable_colors: list = ()) -> list:
    """
    Consolidate raw color values into one candidate per normalized hex.

    Args:
        color_frequencies: Tokens, FrequencyItems, EnhancedColors or (value, count) pairs
        variable_colors: VariableColor entries, counted by their reference counts

    Returns:
        list[ColorCandidate] in first-seen order
    """
    items = [_coerce_item(item) for item in color_frequencies]
    items.extend(FrequencyItem(v.value, v.references, 'variable') for v in variable_colors)

    groups = {}
    for item in items:
        if item is None or not isinstance(item.value, str):
            continue
        value = item.value.strip()
        if value.lower() in NON_COLOR_VALUES:
            logger.debug("Skipping non-color value %r", value)
            continue
        if parse_color(value) is None:
            logger.debug("Skipping unparseable color %r", value)
            continue
        variant = ColorVariant(value, item.count, has_opacity(value), item.source)
        groups.setdefault(normalize_to_hex(value), []).append(variant)

    candidates = []
    for hex_value, variants in groups.items():
        best = sorted(variants, key=lambda v: (v.has_opacity, -v.occurrence_count))[0]
        candidates.append(ColorCandidate(hex_value, variants, best.raw_value))
    return candidates


def similarity_key(hex_value: str) -> str:
    """Bin a color for similar-color grouping."""
    h, s, l = to_hsl(hex_value)
    if s < 10:
        return f"gray-{l // 20 * 20}"
    if (h < 30 or h > 330) and s > 50:
        return 'red-brand'
    tier = 'high' if s > 70 else 'med' if s > 30 else 'low'
    return f"hue-{h // 30 * 30}-sat-{tier}"


def group_similar_colors(candidates: list) -> list:
    """Collapse each similarity bin into its most frequent member."""
    bins = {}
    for candidate in candidates:
        bins.setdefault(similarity_key(candidate.normalized_hex), []).append(candidate)

    grouped = []
    for members in bins.values():
        if len(members) == 1:
            grouped.append(members[0])
            continue
        members = sorted(members, key=lambda c: -c.frequency)
        top = members[0]
        grouped.append(ColorCandidate(
            normalized_hex=top.normalized_hex,
            variants=[v for m in members for v in m.variants],
            representative=top.representative,
            merged_hexes=[m.normalized_hex for m in members[1:]],
        ))
    return sorted(grouped, key=lambda c: -c.frequency)


def analyze_candidate(candidate: ColorCandidate) -> ColorAnalysis:
    h, s, l = to_hsl(candidate.normalized_hex)
    frequency = candidate.frequency
    return ColorAnalysis(
        hex=candidate.normalized_hex,
        role='neutral',
        lightness=l,
        saturation=s,
        hue=h,
        contrast_vs_white=contrast_ratio(candidate.normalized_hex, '#ffffff'),
        contrast_vs_black=contrast_ratio(candidate.normalized_hex, '#000000'),
        frequency=frequency,
        sources=candidate.sources,
        confidence=0.8 if frequency > 10 else 0.5,
        representative=candidate.representative,
        merged_hexes=list(candidate.merged_hexes),
    )


# =============================================================================
# Scoring
# =============================================================================

def aggregate_signals(signals: list, weights: ScoringWeights = DEFAULT_WEIGHTS) -> dict:
    """Collapse semantic signals to one SignalSummary per normalized hex."""
    summaries = {}
    for signal in signals or ():
        if parse_color(signal.color) is None:
            continue
        summary = SignalSummary(
            weight=signal.weight,
            first_seen_index=signal.first_seen_index,
            dom_depth=signal.dom_depth,
            document_position=signal.document_position,
            header_bonus=signal.context == 'header' and signal.weight >= weights.header_weight,
        )
        key = normalize_to_hex(signal.color)
        summaries[key] = summaries[key].merge(summary) if key in summaries else summary
    return summaries


def _signal_for(analysis: ColorAnalysis, summaries: dict) -> Optional[SignalSummary]:
    found = None
    for hex_value in [analysis.hex] + analysis.merged_hexes:
        summary = summaries.get(hex_value)
        if summary is not None:
            found = summary if found is None else found.merge(summary)
    return found


def score_color(analysis: ColorAnalysis, total_frequency: float, signal: Optional[SignalSummary] = None,
                framework_colors: frozenset = frozenset(), from_variable: bool = False,
                weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    """Brand relevance score for one color."""
    w = weights
    s, l = analysis.saturation, analysis.lightness
    score = math.log(analysis.frequency + 1) * w.frequency_scale

    for minimum, bonus in w.saturation_bonuses:
        if s > minimum:
            score += bonus
            break
    else:
        if s < w.grayscale_saturation:
            score += w.grayscale_penalty

    if w.core_lightness[0] <= l <= w.core_lightness[1]:
        score += w.core_lightness_bonus
    elif w.wide_lightness[0] <= l <= w.wide_lightness[1]:
        score += w.wide_lightness_bonus
    elif l > 95 or l < 5:
        score += w.extreme_lightness_penalty

    if analysis.hex in COMMON_WEB_COLORS:
        score += w.common_web_penalty
    if analysis.hex in framework_colors:
        score += w.detected_framework_penalty
    elif analysis.hex in FRAMEWORK_COLORS:
        score += w.static_framework_penalty
    if analysis.hex in BROWSER_DEFAULT_COLORS:
        score += w.browser_default_penalty

    if analysis.contrast_vs_white > w.contrast_threshold or analysis.contrast_vs_black > w.contrast_threshold:
        score += w.contrast_bonus

    share = analysis.frequency / total_frequency if total_frequency else 0
    low, high = w.relative_frequency_window
    if low < share < high:
        score += w.relative_frequency_bonus
    elif share > w.dominant_share:
        score += w.dominant_penalty
    elif analysis.frequency == 1 and s > w.single_use_saturation:
        score += w.single_use_penalty

    if signal is not None:
        score += w.semantic_bonus
        if signal.first_seen_index is not None and signal.first_seen_index < w.first_seen_limit:
            score += w.first_seen_base - signal.first_seen_index * w.first_seen_step
        if signal.dom_depth is not None and signal.dom_depth <= w.depth_limit:
            score += w.depth_base - signal.dom_depth * w.depth_step
        if signal.document_position is not None and signal.document_position < w.above_fold_position:
            score += w.above_fold_bonus
        for minimum, bonus in w.context_weight_bonuses:
            if signal.weight >= minimum:
                score += bonus
                break
        if signal.header_bonus:
            score += w.header_bonus
    else:
        score += w.no_semantic_penalty

    if from_variable:
        score += w.variable_bonus

    return score


def is_vibrant_palette(analyses: list, weights: ScoringWeights = DEFAULT_WEIGHTS) -> bool:
    """Whether saturated mid-lightness colors span enough distinct hue bins."""
    bins = {a.hue // 30 for a in analyses if a.saturation > 60 and 20 < a.lightness < 80}
    return len(bins) >= weights.vibrant_min_hue_bins


# =============================================================================
# Role Assignment
# =============================================================================

def assign_roles(analyses: list, signals: list = None, framework_colors: frozenset = frozenset(),
                 variable_hexes: frozenset = frozenset(), weights: ScoringWeights = DEFAULT_WEIGHTS) -> list:
    """
    Score every color and assign roles in descending score order.

    Mutates and returns the analyses. Each unique role (primary, secondary,
    accent, destructive) goes to at most one color here.
    """
    summaries = aggregate_signals(signals, weights)
    total = sum(a.frequency for a in analyses)
    for analysis in analyses:
        analysis.role = 'neutral'
        analysis.score = score_color(
            analysis, total,
            signal=_signal_for(analysis, summaries),
            framework_colors=framework_colors,
            from_variable='variable' in analysis.sources or analysis.hex in variable_hexes,
            weights=weights,
        )

    vibrant = is_vibrant_palette(analyses, weights)
    primary_threshold = weights.vibrant_primary_threshold if vibrant else weights.primary_threshold
    secondary_threshold = weights.vibrant_secondary_threshold if vibrant else weights.secondary_threshold

    taken = set()
    for analysis in sorted(analyses, key=lambda a: -a.score):
        h, s, l, freq = analysis.hue, analysis.saturation, analysis.lightness, analysis.frequency
        extreme = l > 95 or l < 5

        if 'destructive' not in taken and (h >= 340 or h <= 20) and s > 50 and 25 < l < 75:
            role = 'destructive'
        elif extreme and freq > 20:
            role = 'background'
        elif s < 15 and (l > 90 or l < 15) and freq > 30:
            role = 'foreground'
        elif 'primary' not in taken and analysis.score > primary_threshold and s > weights.primary_min_saturation:
            role = 'primary'
        elif 'secondary' not in taken and analysis.score > secondary_threshold:
            role = 'secondary'
        elif 'accent' not in taken and s > 60 and freq < 50 and 20 < l < 80:
            role = 'accent'
        elif s < 25 and 70 < l < 95:
            role = 'border'
        elif s < 30 and not extreme:
            role = 'muted'
        else:
            role = 'neutral'

        analysis.role = role
        if role in ('destructive', 'primary', 'secondary', 'accent'):
            taken.add(role)

    return analyses


def _compare_primaries(a, b) -> float:
    gap = b.frequency - a.frequency
    if abs(gap) >= PRIMARY_FREQUENCY_GAP:
        return gap
    return b.confidence - a.confidence


def redistribute_vibrant_roles(analyses: list, max_primaries: int = DEFAULT_WEIGHTS.max_primaries) -> list:
    """Keep the strongest primaries and demote the rest by saturation and usage."""
    primaries = [a for a in analyses if a.role == 'primary']
    if len(primaries) <= max_primaries:
        return analyses

    ranked = sorted(primaries, key=cmp_to_key(_compare_primaries))
    keep = {id(a) for a in ranked[:max_primaries]}

    for analysis in primaries:
        if id(analysis) in keep:
            continue
        if analysis.saturation > 70 and analysis.frequency < 50:
            analysis.role, analysis.confidence = 'accent', 0.75
        elif analysis.saturation > 40 and analysis.frequency >= 20:
            analysis.role, analysis.confidence = 'secondary', 0.65
        elif analysis.saturation < 30:
            analysis.role, analysis.confidence = 'muted', 0.5
        else:
            analysis.role, analysis.confidence = 'accent', 0.6
        logger.debug("Demoted extra primary %s to %s", analysis.hex, analysis.role)

    return analyses


# =============================================================================
# Main Entry
# =============================================================================

def analyze_colors(color_frequencies: list, variable_colors: list = (), semantic_signals: list = None,
                   html: str = None, css: str = None,
                   weights: ScoringWeights = DEFAULT_WEIGHTS,
                   frameworks: Optional[FrameworkDetection] = None) -> list:
    """
    Classify a page's colors into brand roles.

    Args:
        color_frequencies: Tokens, FrequencyItems, EnhancedColors or (value, count) pairs
        variable_colors: VariableColor entries from the extractor
        semantic_signals: SemanticSignal list from the semantic weighter
        html, css: Page markup and styles, enabling framework detection
        weights: Scoring constants
        frameworks: A detection already run on the same page; skips re-parsing html

    Returns:
        list[ColorAnalysis] sorted by frequency, one per distinct color, at
        most weights.max_primaries of them holding the primary role.
    """
    framework_colors = frozenset()
    if frameworks is None and html and css:
        frameworks = detect_frameworks(html, css)
        logger.info("Detected frameworks: %s", ', '.join(frameworks.detected) or 'none')
    if frameworks is not None:
        framework_colors = frameworks.colors

    candidates = build_candidates(color_frequencies, variable_colors)
    if weights.group_similar:
        candidates = group_similar_colors(candidates)

    analyses = sorted((analyze_candidate(c) for c in candidates), key=lambda a: -a.frequency)
    variable_hexes = frozenset(
        normalize_to_hex(v.value) for v in variable_colors if parse_color(v.value) is not None
    )

    assign_roles(analyses, semantic_signals, framework_colors, variable_hexes, weights)
    redistribute_vibrant_roles(analyses, weights.max_primaries)

    roles = {a.role: a.hex for a in analyses if a.role != 'neutral'}
    logger.info("Classified %d colors: %s", len(analyses),
                ', '.join(f"{role}={hex_value}" for role, hex_value in roles.items()) or 'no roles')
    return analyses
