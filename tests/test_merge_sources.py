"""Tests for multi-source merging.

Tests cover:
- Source type detection and authority weights
- Authority-weighted frequency and custom property merging
- Per-source color classification and unification
- Property and role conflicts
"""

import pytest

from extract_tokens import extract_tokens
from merge_sources import (
    SourceMetadata,
    adjust_confidence,
    build_source_metadata,
    detect_property_conflicts,
    detect_role_conflicts,
    detect_source_type,
    merge_custom_properties,
    merge_sources,
    source_weight,
    unify_color_analyses,
)

RED_CSS = ' '.join(f".r{i} {{ color: #ff0000 }}" for i in range(10))

DESIGN = build_source_metadata('https://design.acme.com', len(RED_CSS))
MARKETING = build_source_metadata('https://acme.com', len(RED_CSS))


@pytest.fixture
def merged():
    return merge_sources([extract_tokens(RED_CSS), extract_tokens(RED_CSS)], [DESIGN, MARKETING])


# =============================================================================
# SOURCE METADATA
# =============================================================================


class TestSourceMetadata:
    """Tests for source typing and weighting."""

    @pytest.mark.parametrize('url,expected', [
        ('https://design.acme.com', 'design-system'),
        ('https://acme.com/styleguide/colors', 'design-system'),
        ('https://docs.acme.com/start', 'documentation'),
        ('https://app.acme.com/home', 'application'),
        ('https://acme.com', 'marketing'),
        ('https://acme.org/', 'marketing'),
        ('https://acme.io/about', 'unknown'),
    ])
    def test_detect_source_type(self, url, expected):
        """URL markers win over the marketing suffix."""
        assert detect_source_type(url) == expected

    @pytest.mark.parametrize('source_type,css_length,expected', [
        ('design-system', 100, 100),
        ('marketing', 60_000, 60),
        ('documentation', 30_000, 90),
        ('unknown', 0, 20),
        ('nonsense', 0, 20),
    ])
    def test_source_weight(self, source_type, css_length, expected):
        """Base weight plus the large-stylesheet bonus."""
        assert source_weight(source_type, css_length) == expected

    def test_explicit_type_overrides_url(self):
        """A caller-supplied type is used as-is."""
        meta = build_source_metadata('https://acme.com', 10, 'documentation')
        assert meta.source_type == 'documentation'
        assert meta.authority_weight == 80

    def test_to_dict(self):
        """Metadata serializes with camelCase keys."""
        assert DESIGN.to_dict() == {
            'url': 'https://design.acme.com', 'type': 'design-system', 'weight': 100, 'cssLength': len(RED_CSS),
        }


# =============================================================================
# TOKEN MERGING
# =============================================================================


class TestTokenMerging:
    """Tests for authority-weighted token merging."""

    def test_weighted_frequency(self, merged):
        """Ten uses at weight 100 plus ten at weight 40 count 14."""
        red = merged.merged_tokens.colors[0]
        assert red.raw_value == '#ff0000'
        assert red.occurrence_count == pytest.approx(14)
        assert red.prevalence == pytest.approx(100)

    def test_prevalence_counts_missing_values_as_zero(self):
        """A value absent from one source is diluted by that source's weight."""
        a = extract_tokens('.a { color: #ff0000 }')
        b = extract_tokens('.b { color: #0000ff }')
        result = merge_sources([a, b], [DESIGN, MARKETING])
        prevalence = {t.raw_value: t.prevalence for t in result.merged_tokens.colors}
        assert prevalence['#ff0000'] == pytest.approx(round(100 * 100 / 140, 2))
        assert prevalence['#0000ff'] == pytest.approx(round(100 * 40 / 140, 2))

    def test_custom_property_references_weighted(self):
        """References are weighted; the value comes from the strongest source."""
        a = extract_tokens(':root { --x: #111111 } a { color: var(--x) }')
        b = extract_tokens(':root { --x: #222222 } a { color: var(--x) }')
        props = merge_custom_properties([b, a], [MARKETING, DESIGN])
        assert props['--x'].reference_count == pytest.approx(1.4)
        assert props['--x'].raw_value == '#111111'

    def test_length_mismatch(self):
        """Token sets and metadata must pair up."""
        with pytest.raises(ValueError):
            merge_sources([extract_tokens(RED_CSS)], [DESIGN, MARKETING])


# =============================================================================
# COLOR MERGING
# =============================================================================


class TestColorMerging:
    """Tests for per-source classification and unification."""

    def test_unified_by_hex(self, merged):
        """One analysis per hex with summed frequency and both sources."""
        red = [a for a in merged.color_analyses if a.hex == '#ff0000']
        assert len(red) == 1
        assert red[0].frequency == 20
        assert red[0].sources == ['https://design.acme.com', 'https://acme.com']

    def test_brand_candidates(self, merged):
        """Saturated, mid-lightness, repeated colors are brand candidates."""
        assert merged.brand_candidates == ['#ff0000']

    def test_adjust_confidence(self):
        """Source type, cross-source and weight multipliers stack."""
        source = SourceMetadata('https://design.acme.com', 'design-system', 100, 0)
        assert adjust_confidence(0.5, source, cross_source=True) == pytest.approx(1.3)
        marketing = SourceMetadata('https://acme.com', 'marketing', 40, 0)
        assert adjust_confidence(0.5, marketing, cross_source=False) == pytest.approx(0.2)

    def test_unify_keeps_most_confident_role(self, make_analysis):
        """The higher-confidence role wins and primaries stay exclusive."""
        per_source = [
            (DESIGN, [make_analysis('#1a73e8', 'primary', 10, 0.9), make_analysis('#ff00ff', 'primary', 5, 0.4)]),
            (MARKETING, [make_analysis('#1a73e8', 'secondary', 4, 0.3)]),
        ]
        unified = {a.hex: a for a in unify_color_analyses(per_source)}
        assert unified['#1a73e8'].role == 'primary'
        assert unified['#1a73e8'].frequency == 14
        assert unified['#ff00ff'].role == 'accent'

    def test_close_frequencies_rank_by_confidence(self, make_analysis):
        """A confident design-system primary beats a slightly more frequent marketing one."""
        per_source = [
            (DESIGN, [make_analysis('#1a73e8', 'primary', 12, 1.6)]),
            (MARKETING, [make_analysis('#e8711a', 'primary', 15, 0.32)]),
        ]
        roles = {a.hex: a.role for a in unify_color_analyses(per_source)}
        assert roles == {'#1a73e8': 'primary', '#e8711a': 'accent'}

    def test_large_frequency_gap_ranks_by_frequency(self, make_analysis):
        """A gap of ten or more uses keeps the more frequent primary."""
        per_source = [
            (DESIGN, [make_analysis('#1a73e8', 'primary', 5, 1.6)]),
            (MARKETING, [make_analysis('#e8711a', 'primary', 15, 0.32)]),
        ]
        roles = {a.hex: a.role for a in unify_color_analyses(per_source)}
        assert roles['#e8711a'] == 'primary'


# =============================================================================
# CONFLICTS
# =============================================================================


class TestConflicts:
    """Tests for conflict detection."""

    def test_property_conflict(self):
        """A custom property with different values resolves by source weight."""
        conflicts = detect_property_conflicts(
            [extract_tokens(':root { --brand: #222222 }'), extract_tokens(':root { --brand: #111111 }')],
            [MARKETING, DESIGN],
        )
        assert len(conflicts) == 1
        conflict = conflicts[0].to_dict()
        assert conflict['tokenType'] == 'customProperty'
        assert conflict['value'] == '--brand'
        assert conflict['resolution'] == 'source-weight'
        assert conflict['chosen']['value'] == '#111111'
        assert conflict['chosen']['source'] == 'https://design.acme.com'

    def test_matching_properties_do_not_conflict(self):
        """Identical values across sources are not a conflict."""
        tokens = extract_tokens(':root { --brand: #111111 }')
        assert detect_property_conflicts([tokens, tokens], [DESIGN, MARKETING]) == []

    def test_role_conflict(self, make_analysis):
        """Different non-neutral roles for one hex resolve by confidence."""
        conflicts = detect_role_conflicts([
            (DESIGN, [make_analysis('#1a73e8', 'primary', confidence=0.9)]),
            (MARKETING, [make_analysis('#1a73e8', 'secondary', confidence=0.4)]),
        ])
        assert len(conflicts) == 1
        assert conflicts[0].resolution == 'confidence'
        assert conflicts[0].chosen['value'] == 'primary'
        assert [s['role'] for s in conflicts[0].sources] == ['primary', 'secondary']

    def test_neutral_roles_ignored(self, make_analysis):
        """A neutral in one source doesn't conflict with a role elsewhere."""
        conflicts = detect_role_conflicts([
            (DESIGN, [make_analysis('#1a73e8', 'primary')]),
            (MARKETING, [make_analysis('#1a73e8', 'neutral')]),
        ])
        assert conflicts == []
