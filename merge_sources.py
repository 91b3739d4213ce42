"""
Merge design tokens extracted from several pages of the same brand.

Each source gets an authority weight from its URL (a design-system site
outranks a marketing page) and the size of its CSS. Frequencies are combined
as authority-weighted sums, colors are classified per source and unified by
hex, and disagreements between sources are reported as conflicts.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from brand_classifier import DEFAULT_WEIGHTS, analyze_colors, redistribute_vibrant_roles
from extract_tokens import TOKEN_KINDS, Token, TokenGroup, TokenSet, variable_colors

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

SOURCE_TYPE_WEIGHTS = {
    'design-system': 100,
    'documentation': 80,
    'application': 60,
    'marketing': 40,
    'unknown': 20,
}

# (source type, URL substrings), first match wins
SOURCE_TYPE_MARKERS = (
    ('design-system', ('design.', '/design', 'styleguide', 'tokens')),
    ('documentation', ('docs', 'documentation', 'guide')),
    ('application', ('app.', 'portal.', 'dashboard')),
)
MARKETING_URL_RE = re.compile(r'\.(com|org|net)/?$')

# (minimum CSS length exclusive, bonus)
CSS_LENGTH_BONUSES = ((50_000, 20), (20_000, 10))

# Confidence multipliers for colors by source type
SOURCE_CONFIDENCE_MULTIPLIERS = {
    'design-system': 2.0,
    'documentation': 1.5,
    'application': 1.2,
}
CROSS_SOURCE_MULTIPLIER = 1.3  # Color seen in two or more sources

# Brand candidate filter
BRAND_MIN_SATURATION = 40
BRAND_LIGHTNESS = (15, 85)
BRAND_MIN_CONTRAST = 2.5


# =============================================================================
# Data Types
# =============================================================================

@dataclass(frozen=True)
class SourceMetadata:
    """One analyzed page and its authority."""
    url: str
    source_type: str  # marketing | design-system | documentation | application | unknown
    authority_weight: int
    css_length: int

    def to_dict(self) -> dict:
        return {
            'url': self.url,
            'type': self.source_type,
            'weight': self.authority_weight,
            'cssLength': self.css_length,
        }


@dataclass
class TokenConflict:
    """The same token described differently by two or more sources."""
    token_type: str
    value: str
    sources: list  # [{url, frequency, role?, value?}]
    resolution: str  # source-weight | confidence
    chosen: dict  # {value, source, reason}

    def to_dict(self) -> dict:
        return {
            'tokenType': self.token_type,
            'value': self.value,
            'sources': self.sources,
            'resolution': self.resolution,
            'chosen': self.chosen,
        }


@dataclass
class MergedTokens:
    merged_tokens: TokenSet
    conflicts: list = field(default_factory=list)  # list[TokenConflict]
    color_analyses: list = field(default_factory=list)  # Unified ColorAnalysis list
    brand_candidates: list = field(default_factory=list)  # hexes
    sources: list = field(default_factory=list)  # list[SourceMetadata]


# =============================================================================
# Source Metadata
# =============================================================================

def detect_source_type(url: str) -> str:
    url = url.lower()
    for source_type, markers in SOURCE_TYPE_MARKERS:
        if any(marker in url for marker in markers):
            return source_type
    if MARKETING_URL_RE.search(url):
        return 'marketing'
    return 'unknown'


def source_weight(source_type: str, css_length: int) -> int:
    """Base authority for the source type plus a bonus for large stylesheets."""
    weight = SOURCE_TYPE_WEIGHTS.get(source_type, SOURCE_TYPE_WEIGHTS['unknown'])
    for minimum, bonus in CSS_LENGTH_BONUSES:
        if css_length > minimum:
            return weight + bonus
    return weight


def build_source_metadata(url: str, css_length: int, source_type: Optional[str] = None) -> SourceMetadata:
    source_type = source_type or detect_source_type(url)
    return SourceMetadata(url, source_type, source_weight(source_type, css_length), css_length)


# =============================================================================
# Token Merging
# =============================================================================

def merge_frequencies(kind: str, token_sets: list, sources: list) -> TokenGroup:
    """
    Combine one token kind across sources.

    Each occurrence contributes weight/100 of a count. Prevalence is the
    authority-weighted mean over the sources that have this kind at all,
    counting a value missing from such a source as 0.
    """
    counts = {}
    prevalence = {}
    weight_total = 0.0

    for tokens, source in zip(token_sets, sources):
        frequency = tokens.group(kind).frequency
        if not frequency:
            continue
        factor = source.authority_weight / 100
        weight_total += source.authority_weight
        for token in frequency:
            counts[token.raw_value] = counts.get(token.raw_value, 0) + token.occurrence_count * factor
            prevalence[token.raw_value] = prevalence.get(token.raw_value, 0) + token.prevalence * source.authority_weight

    merged = [
        Token(kind, value, round(count, 2), round(prevalence[value] / weight_total, 2))
        for value, count in counts.items()
    ]
    merged.sort(key=lambda t: -t.occurrence_count)
    return TokenGroup(kind, [t.raw_value for t in merged], merged)


def merge_custom_properties(token_sets: list, sources: list) -> dict:
    """Weighted reference counts; the value comes from the highest-weight source."""
    merged = {}
    owner_weight = {}
    for tokens, source in zip(token_sets, sources):
        factor = source.authority_weight / 100
        for name, prop in tokens.custom_properties.items():
            existing = merged.get(name)
            if existing is None:
                merged[name] = prop.__class__(
                    name=name,
                    raw_value=prop.raw_value,
                    resolved_value=prop.resolved_value,
                    reference_count=round(prop.reference_count * factor, 2),
                    alias_of=prop.alias_of,
                )
                owner_weight[name] = source.authority_weight
                continue

            references = round(existing.reference_count + prop.reference_count * factor, 2)
            if source.authority_weight > owner_weight[name]:
                owner_weight[name] = source.authority_weight
                existing = prop
            merged[name] = existing.__class__(
                name=name,
                raw_value=existing.raw_value,
                resolved_value=existing.resolved_value,
                reference_count=references,
                alias_of=existing.alias_of,
            )
    return merged


# =============================================================================
# Color Merging
# =============================================================================

def adjust_confidence(confidence: float, source: SourceMetadata, cross_source: bool) -> float:
    confidence *= SOURCE_CONFIDENCE_MULTIPLIERS.get(source.source_type, 1.0)
    if cross_source:
        confidence *= CROSS_SOURCE_MULTIPLIER
    return confidence * (source.authority_weight / 100)


def analyze_colors_per_source(token_sets: list, sources: list, weights=DEFAULT_WEIGHTS) -> list:
    """Classify each source's colors on its own; returns [(source, [ColorAnalysis])]."""
    per_source = []
    for tokens, source in zip(token_sets, sources):
        analyses = analyze_colors(tokens.colors, variable_colors(tokens), weights=weights)
        per_source.append((source, analyses))

    seen_in = {}
    for source, analyses in per_source:
        for analysis in analyses:
            seen_in.setdefault(analysis.hex, set()).add(source.url)

    for source, analyses in per_source:
        for analysis in analyses:
            analysis.sources = [source.url]
            analysis.confidence = adjust_confidence(
                analysis.confidence, source, len(seen_in[analysis.hex]) > 1
            )
    return per_source


def unify_color_analyses(per_source: list, max_primaries: int = DEFAULT_WEIGHTS.max_primaries) -> list:
    """Merge per-source analyses by hex: sum frequencies, keep the most confident role."""
    unified = {}
    for _, analyses in per_source:
        for analysis in analyses:
            existing = unified.get(analysis.hex)
            if existing is None:
                unified[analysis.hex] = analysis
                continue
            existing.frequency += analysis.frequency
            existing.sources = list(dict.fromkeys(existing.sources + analysis.sources))
            if analysis.confidence > existing.confidence:
                existing.role = analysis.role
                existing.confidence = analysis.confidence
                existing.score = analysis.score

    result = sorted(unified.values(), key=lambda a: -a.confidence)
    return redistribute_vibrant_roles(result, max_primaries)


def is_potential_brand_color(analysis) -> bool:
    return (
        analysis.saturation > BRAND_MIN_SATURATION
        and BRAND_LIGHTNESS[0] < analysis.lightness < BRAND_LIGHTNESS[1]
        and analysis.contrast_vs_white > BRAND_MIN_CONTRAST
        and analysis.frequency > 1
    )


# =============================================================================
# Conflicts
# =============================================================================

def detect_property_conflicts(token_sets: list, sources: list) -> list:
    """Custom properties that resolve to different values in different sources."""
    by_name = {}
    for tokens, source in zip(token_sets, sources):
        for name, prop in tokens.custom_properties.items():
            by_name.setdefault(name, []).append((source, prop))

    conflicts = []
    for name, entries in by_name.items():
        if len({prop.resolved_value for _, prop in entries}) < 2:
            continue
        winner_source, winner = max(entries, key=lambda e: e[0].authority_weight)
        conflicts.append(TokenConflict(
            token_type='customProperty',
            value=name,
            sources=[
                {'url': s.url, 'frequency': p.reference_count, 'value': p.resolved_value}
                for s, p in entries
            ],
            resolution='source-weight',
            chosen={
                'value': winner.resolved_value,
                'source': winner_source.url,
                'reason': f"highest authority ({winner_source.source_type}, weight {winner_source.authority_weight})",
            },
        ))
    return conflicts


def detect_role_conflicts(per_source: list) -> list:
    """Colors given different non-neutral roles by different sources."""
    by_hex = {}
    for source, analyses in per_source:
        for analysis in analyses:
            if analysis.role != 'neutral':
                by_hex.setdefault(analysis.hex, []).append((source, analysis))

    conflicts = []
    for hex_value, entries in by_hex.items():
        if len({a.role for _, a in entries}) < 2:
            continue
        winner_source, winner = max(entries, key=lambda e: e[1].confidence)
        conflicts.append(TokenConflict(
            token_type='color',
            value=hex_value,
            sources=[
                {'url': s.url, 'frequency': a.frequency, 'role': a.role}
                for s, a in entries
            ],
            resolution='confidence',
            chosen={
                'value': winner.role,
                'source': winner_source.url,
                'reason': f"highest confidence ({winner.confidence:.2f})",
            },
        ))
    return conflicts


# =============================================================================
# Main Entry
# =============================================================================

def merge_sources(token_sets: list, sources: list, weights=DEFAULT_WEIGHTS) -> MergedTokens:
    """
    Merge per-source token sets into one authority-weighted view.

    Args:
        token_sets: One TokenSet per analyzed page
        sources: SourceMetadata for each page, same order
        weights: Scoring constants passed to the per-source classification

    Raises:
        ValueError: If the two lists differ in length
    """
    if len(token_sets) != len(sources):
        raise ValueError(f"Got {len(token_sets)} token sets but {len(sources)} source descriptions")

    merged = TokenSet(
        custom_properties=merge_custom_properties(token_sets, sources),
        groups={kind: merge_frequencies(kind, token_sets, sources) for kind in TOKEN_KINDS},
        colors_from_variables=list(dict.fromkeys(
            color for tokens in token_sets for color in tokens.colors_from_variables
        )),
    )

    per_source = analyze_colors_per_source(token_sets, sources, weights)
    conflicts = detect_property_conflicts(token_sets, sources) + detect_role_conflicts(per_source)
    color_analyses = unify_color_analyses(per_source, weights.max_primaries)
    brand_candidates = [a.hex for a in color_analyses if is_potential_brand_color(a)]

    logger.info("Merged %d sources: %d colors, %d conflicts, %d brand candidates",
                len(sources), len(merged.group('colors').values), len(conflicts), len(brand_candidates))

    return MergedTokens(
        merged_tokens=merged,
        conflicts=conflicts,
        color_analyses=color_analyses,
        brand_candidates=brand_candidates,
        sources=list(sources),
    )
