"""Tests for semantic color weighting.

Tests cover:
- Inline style signals with DOM depth and position
- CSS rules and raw-CSS context patterns
- Signal accumulation
- Tailwind detection
- Folding signals into color frequencies
"""

import pytest
from bs4 import BeautifulSoup

from extract_tokens import extract_tokens
from semantic_weights import (
    SemanticColorAnalysis,
    SemanticSignal,
    SignalCollector,
    analyze_semantic_colors,
    analyze_tailwind_usage,
    dom_depth,
    enhance_colors_with_semantic,
)

TAILWIND_HTML = (
    '<div class="flex bg-blue-500 text-white p-4 m-2 grid hidden block w-10 h-10 px-2 py-2">x</div>'
)


def _signal(analysis, color, context):
    return next(s for s in analysis.signals if s.color == color and s.context == context)


# =============================================================================
# SIGNAL COLLECTION
# =============================================================================


class TestInlineSignals:
    """Tests for colors found in style attributes."""

    def test_header_inline_color(self):
        """A header background becomes a header signal at depth 0."""
        html = '<body><header style="background-color: #123456"><h2>Hi</h2></header></body>'
        analysis = analyze_semantic_colors(html, '')
        signal = _signal(analysis, '#123456', 'header')
        assert signal.weight == 90
        assert signal.dom_depth == 0
        assert signal.document_position == 0.5
        assert '#123456' in analysis.brand_colors

    def test_button_inline_color(self):
        """Button colors land in button_colors."""
        html = '<main><button style="background: #1a73e8; color: #ffffff">Go</button></main>'
        analysis = analyze_semantic_colors(html, '')
        assert '#1a73e8' in analysis.button_colors
        assert _signal(analysis, '#1a73e8', 'button').property == 'background'

    def test_accumulates_across_elements(self):
        """The same color on two buttons is one signal with frequency 2."""
        html = '<button style="color: #ff0000">a</button><button style="color: #ff0000">b</button>'
        signal = _signal(analyze_semantic_colors(html, ''), '#ff0000', 'button')
        assert signal.frequency == 2
        assert signal.element_count == 2

    def test_non_color_properties_ignored(self):
        """Only color properties produce signals."""
        html = '<button style="width: 10px; content: \'#ff0000\'">a</button>'
        assert analyze_semantic_colors(html, '').signals == []

    def test_empty_page(self):
        """No markup means no signals."""
        analysis = analyze_semantic_colors('', '')
        assert analysis.signals == []
        assert analysis.total_elements == 0
        assert analysis.tailwind is None


class TestCssSignals:
    """Tests for colors reaching elements through stylesheets."""

    def test_rule_targeting_matched_class(self):
        """A rule for a matched element's class contributes its colors."""
        analysis = analyze_semantic_colors('<div class="hero">Hi</div>', '.hero { background-color: #ff6600 }')
        assert '#ff6600' in analysis.colors_by_context['hero']
        assert '#ff6600' in analysis.brand_colors

    def test_unrelated_rule_ignored(self):
        """Rules for elements not on the page contribute nothing."""
        analysis = analyze_semantic_colors('<div class="hero">Hi</div>', '.pricing { color: #abcdef }')
        assert '#abcdef' not in [s.color for s in analysis.signals]

    def test_brand_custom_property_counts_double(self):
        """--brand-* custom properties count twice in header context."""
        analysis = analyze_semantic_colors('<header>Hi</header>', ':root { --brand-primary: #aa3366; }')
        assert _signal(analysis, '#aa3366', 'header').frequency == 2

    def test_signals_sorted_by_strength(self):
        """Signals come out strongest first."""
        html = '<header style="color: #111111">a</header><footer style="color: #222222">b</footer>'
        signals = analyze_semantic_colors(html, '').signals
        strengths = [s.weight * s.frequency for s in signals]
        assert strengths == sorted(strengths, reverse=True)

    def test_summary_keys(self, brand_html, brand_css):
        """The summary uses camelCase keys."""
        summary = analyze_semantic_colors(brand_html, brand_css).summary()
        assert set(summary) == {'totalElements', 'colorsByContext', 'highestWeightColors',
                                'buttonColors', 'brandColors'}
        assert '#1a73e8' in summary['buttonColors']


class TestSignalCollector:
    """Tests for SignalCollector."""

    def test_skips_unparseable(self):
        """Unparseable colors are dropped."""
        collector = SignalCollector()
        collector.add('var(--x)', 'button', 100, 'color', 'button', 'button')
        assert collector.signals == {}

    def test_first_seen_by_normalized_hex(self):
        """Different spellings of one color share a first-seen index."""
        collector = SignalCollector()
        collector.add('#FFF', 'button', 100, 'color', 'button', 'button', track_order=True)
        collector.add('#00ff00', 'header', 90, 'color', 'header', 'header', track_order=True)
        collector.add('#ffffff', 'header', 90, 'color', 'header', 'header', track_order=True)
        indexes = {key[0]: s.first_seen_index for key, s in collector.signals.items()}
        assert indexes == {'#fff': 0, '#00ff00': 1, '#ffffff': 0}

    def test_untracked_hits_have_no_order(self):
        """Stylesheet hits leave the first-seen index empty until an element hit fills it."""
        collector = SignalCollector()
        collector.add('#123456', 'hero', 85, 'color', 'css-pattern', '.hero')
        assert collector.signals[('#123456', 'hero', 'color')].first_seen_index is None
        collector.add('#123456', 'hero', 85, 'color', 'div', '.hero', track_order=True)
        assert collector.signals[('#123456', 'hero', 'color')].first_seen_index == 0

    def test_fills_missing_position(self):
        """Later hits fill in positional data the first one lacked."""
        collector = SignalCollector()
        collector.add('#123456', 'hero', 85, 'color', 'css-pattern', '.hero')
        collector.add('#123456', 'hero', 85, 'color', 'div', '.hero', dom_depth=2, document_position=0.5)
        signal = collector.signals[('#123456', 'hero', 'color')]
        assert signal.dom_depth == 2
        assert signal.document_position == 0.5
        assert signal.frequency == 2


def test_dom_depth():
    """Depth counts ancestors up to <body>."""
    soup = BeautifulSoup('<body><div><p><span>x</span></p></div></body>', 'html.parser')
    assert dom_depth(soup.find('span')) == 2
    assert dom_depth(soup.find('div')) == 0


# =============================================================================
# TAILWIND
# =============================================================================


class TestTailwind:
    """Tests for Tailwind utility detection."""

    def test_detected_over_threshold(self):
        """More than ten indicator classes switch Tailwind on."""
        usage = analyze_tailwind_usage(BeautifulSoup(TAILWIND_HTML, 'html.parser'))
        assert usage.detected
        assert usage.total_classes == 12
        assert {c.color for c in usage.colors} == {'#3b82f6', '#ffffff'}

    def test_not_detected_for_few_classes(self):
        """A couple of utility-looking classes are not enough."""
        usage = analyze_tailwind_usage(BeautifulSoup('<div class="flex bg-blue-500">x</div>', 'html.parser'))
        assert not usage.detected

    def test_signals_added(self):
        """Detected Tailwind colors become weight-60 signals."""
        analysis = analyze_semantic_colors(TAILWIND_HTML, '')
        signal = _signal(analysis, '#3b82f6', 'brand')
        assert signal.weight == 60
        assert signal.element == 'tailwind-class'
        assert analysis.tailwind is not None

    def test_inline_colors_come_first(self):
        """Tailwind colors take no first-seen index ahead of inline element colors."""
        html = '<header style="background-color: #7a2be2">Hi</header>' + TAILWIND_HTML
        analysis = analyze_semantic_colors(html, '')
        assert analysis.tailwind is not None
        assert _signal(analysis, '#7a2be2', 'header').first_seen_index == 0
        assert _signal(analysis, '#3b82f6', 'brand').first_seen_index is None

    def test_arbitrary_value(self):
        """Bracketed hex values are read directly."""
        html = '<div class="bg-[#123abc]">x</div>'
        usage = analyze_tailwind_usage(BeautifulSoup(html, 'html.parser'))
        assert [c.color for c in usage.colors] == ['#123abc']


# =============================================================================
# ENHANCEMENT
# =============================================================================


class TestEnhanceColors:
    """Tests for enhance_colors_with_semantic."""

    @pytest.fixture
    def analysis(self):
        return SemanticColorAnalysis(signals=[
            SemanticSignal('#1A73E8', 'button', 100, 'background', 'button', 'button', frequency=2),
            SemanticSignal('#ff00ff', 'hero', 85, 'color', 'div', '.hero'),
        ])

    def test_boosts_existing_color(self, analysis):
        """A known color gains weight * frequency and moves up."""
        enhanced = enhance_colors_with_semantic([('#ffffff', 10), ('#1a73e8', 3)], analysis)
        assert enhanced[0].value == '#1a73e8'
        assert enhanced[0].semantic_weight == 200
        assert enhanced[0].contexts == ['button']

    def test_adds_semantic_only_color(self, analysis):
        """Colors only seen in markup are added with source semantic."""
        enhanced = enhance_colors_with_semantic([('#ffffff', 10)], analysis)
        added = next(c for c in enhanced if c.value == '#ff00ff')
        assert added.source == 'semantic'
        assert added.count == 1

    def test_accepts_tokens_and_dicts(self, analysis):
        """Tokens and image-merge dicts keep their counts and sources."""
        tokens = extract_tokens('.a { color: #1a73e8 }').colors
        enhanced = enhance_colors_with_semantic(
            tokens + [{'value': '#00aa00', 'count': 150, 'source': 'image'}], analysis,
        )
        by_value = {c.value: c for c in enhanced}
        assert by_value['#1a73e8'].count == 1
        assert by_value['#00aa00'].source == 'image'
