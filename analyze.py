"""
Unified design-token analysis pipeline.

Turns a rendered page (HTML, CSS and any fetched images) into design tokens,
brand color roles and a theme, then renders the result in the requested
output format. Five stages: Extract → Images → Semantics → Classify → Render

Fetching pages and images is the caller's job; everything here is pure.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from brand_classifier import DEFAULT_WEIGHTS, ScoringWeights, analyze_colors, detect_frameworks
from color_space import ENCODINGS
from extract_tokens import TokenSet, extract_tokens, variable_colors
from formatters import FORMATS, format_output
from image_colors import DEFAULT_MAX_IMAGES, ImageAnalysisResult, analyze_images, merge_image_colors_with_css
from merge_sources import build_source_metadata, merge_sources
from render_theme import Theme, generate_theme
from semantic_weights import SemanticColorAnalysis, analyze_semantic_colors, enhance_colors_with_semantic

logger = logging.getLogger(__name__)


# =============================================================================
# Inputs
# =============================================================================

# JSON request key -> (attribute, expected type)
REQUEST_FIELDS = {
    'url': ('url', str),
    'format': ('format', str),
    'colorFormat': ('color_format', str),
    'semanticAnalysis': ('semantic_analysis', bool),
    'includeImages': ('include_images', bool),
    'compact': ('compact', bool),
    'maxImages': ('max_images', int),
}


@dataclass
class AnalysisRequest:
    """Per-run options."""
    url: str = ''
    format: str = 'json'
    color_format: str = 'hsl'
    semantic_analysis: bool = True
    include_images: bool = False
    compact: bool = False
    max_images: int = DEFAULT_MAX_IMAGES

    @classmethod
    def from_dict(cls, payload: dict) -> 'AnalysisRequest':
        """
        Build a request from its JSON form.

        Raises:
            ValueError: If the payload is not an object, a field has the wrong
                type, or the options fail validation
        """
        if not isinstance(payload, dict):
            raise ValueError('Request body must be a JSON object')

        kwargs = {}
        for key, (attr, expected) in REQUEST_FIELDS.items():
            if key not in payload or payload[key] is None:
                continue
            value = payload[key]
            # bool is an int subclass
            if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
                raise ValueError(f"Field {key!r} must be of type {expected.__name__}")
            kwargs[attr] = value

        request = cls(**kwargs)
        request.validate()
        return request

    def validate(self) -> None:
        if self.format not in FORMATS:
            raise ValueError(f"Unknown format: {self.format!r} (expected one of {', '.join(FORMATS)})")
        if self.color_format not in ENCODINGS:
            raise ValueError(f"Unknown color format: {self.color_format!r} (expected one of {', '.join(ENCODINGS)})")
        if self.max_images < 0:
            raise ValueError(f"maxImages must not be negative, got {self.max_images}")


@dataclass
class PageInput:
    """A fetched page: markup, concatenated stylesheets and optional images."""
    url: str
    html: str = ''
    css: str = ''
    images: list = field(default_factory=list)  # list[ImageInput]


@dataclass
class SiteAnalysis:
    """Everything the output formats need, computed once."""
    tokens: TokenSet
    meta: dict
    color_analyses: list  # list[ColorAnalysis]
    theme: Theme
    encoding: str = 'hsl'
    semantic: Optional[SemanticColorAnalysis] = None
    image_analysis: Optional[ImageAnalysisResult] = None
    sources: list = field(default_factory=list)  # list[SourceMetadata]
    conflicts: list = field(default_factory=list)  # list[TokenConflict]
    brand_candidates: list = field(default_factory=list)


# =============================================================================
# Meta
# =============================================================================

def build_meta(source, tokens: TokenSet, semantic: Optional[SemanticColorAnalysis] = None,
               image_analysis: Optional[ImageAnalysisResult] = None, frameworks: list = ()) -> dict:
    """Describe where the tokens came from and what optional stages ran."""
    return {
        'source': source,
        'extractedAt': datetime.now(timezone.utc).isoformat(),
        'totalTokens': tokens.total_tokens(),
        'semanticAnalysis': semantic.summary() if semantic is not None else None,
        'imageAnalysis': image_analysis.to_dict() if image_analysis is not None else None,
        'frameworks': list(frameworks),
    }


def _check_page(page: PageInput) -> None:
    if not (page.css or '').strip() and not (page.html or '').strip():
        raise ValueError(f"Nothing to analyze for {page.url or 'page'}: no HTML and no CSS")


# =============================================================================
# Main Pipeline
# =============================================================================

def run_pipeline(page: PageInput, request: AnalysisRequest,
                 weights: ScoringWeights = DEFAULT_WEIGHTS) -> SiteAnalysis:
    """
    Run every stage for one page.

    Raises:
        ValueError: For an empty page or invalid request options
    """
    request.validate()
    _check_page(page)

    # Stage 1: Extract
    tokens = extract_tokens(page.css)
    colors = tokens.colors

    # Stage 2: Images
    image_analysis = None
    if request.include_images and page.images:
        image_analysis = analyze_images(page.images, request.max_images)
        colors = merge_image_colors_with_css(colors, image_analysis)

    # Stage 3: Semantics
    semantic = None
    if request.semantic_analysis and page.html:
        semantic = analyze_semantic_colors(page.html, page.css)
        colors = enhance_colors_with_semantic(colors, semantic)

    # Stage 4: Classify
    detection = None
    if page.html and page.css:
        detection = detect_frameworks(page.html, page.css)
        logger.info("Detected frameworks: %s", ', '.join(detection.detected) or 'none')
    analyses = analyze_colors(
        colors,
        variable_colors(tokens),
        semantic.signals if semantic is not None else None,
        weights=weights,
        frameworks=detection,
    )

    # Stage 5: Render
    theme = generate_theme(analyses, request.color_format)

    return SiteAnalysis(
        tokens=tokens,
        meta=build_meta(page.url, tokens, semantic, image_analysis,
                        detection.detected if detection is not None else ()),
        color_analyses=analyses,
        theme=theme,
        encoding=request.color_format,
        semantic=semantic,
        image_analysis=image_analysis,
    )


def analyze_page(page: PageInput, request: AnalysisRequest) -> dict:
    """Analyze one page and render it in the requested format."""
    analysis = run_pipeline(page, request)
    return format_output(analysis, request.format, request.compact)


def analyze_pages(pages: list, request: AnalysisRequest, source_types: Optional[list] = None,
                  weights: ScoringWeights = DEFAULT_WEIGHTS) -> dict:
    """
    Analyze several pages of one site and merge them by source authority.

    Args:
        pages: PageInput list
        request: Output options
        source_types: Optional explicit source type per page; detected from the URL otherwise

    Returns:
        The formatted merged analysis plus `sources`, `conflicts` and `brandCandidates`

    Raises:
        ValueError: For no pages, an empty page, mismatched source types or invalid options
    """
    request.validate()
    if not pages:
        raise ValueError('No pages to analyze')
    if source_types is not None and len(source_types) != len(pages):
        raise ValueError(f"Got {len(pages)} pages but {len(source_types)} source types")

    token_sets = []
    sources = []
    for i, page in enumerate(pages):
        _check_page(page)
        token_sets.append(extract_tokens(page.css))
        source_type = source_types[i] if source_types is not None else None
        sources.append(build_source_metadata(page.url, len(page.css or ''), source_type))

    merged = merge_sources(token_sets, sources, weights)
    theme = generate_theme(merged.color_analyses, request.color_format)

    frameworks = []
    for page in pages:
        if page.html and page.css:
            for name in detect_frameworks(page.html, page.css).detected:
                if name not in frameworks:
                    frameworks.append(name)

    analysis = SiteAnalysis(
        tokens=merged.merged_tokens,
        meta=build_meta([page.url for page in pages], merged.merged_tokens, frameworks=frameworks),
        color_analyses=merged.color_analyses,
        theme=theme,
        encoding=request.color_format,
        sources=merged.sources,
        conflicts=merged.conflicts,
        brand_candidates=merged.brand_candidates,
    )

    output = format_output(analysis, request.format, request.compact)
    output['sources'] = [s.to_dict() for s in analysis.sources]
    output['conflicts'] = [c.to_dict() for c in analysis.conflicts]
    output['brandCandidates'] = analysis.brand_candidates
    return output
