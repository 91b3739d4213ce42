"""
Pytest configuration and shared fixtures.

Provides sample pages, classified colors and in-memory images.
"""

import io

import pytest
from PIL import Image

from analyze import AnalysisRequest, PageInput, run_pipeline
from brand_classifier import ColorAnalysis
from color_space import contrast_ratio, to_hsl

BRAND_CSS = """
:root {
  --brand: #1a73e8;
  --brand-dark: var(--brand);
  --radius-lg: 8px;
}
body { color: #202124; background-color: #ffffff; font-family: "Inter", sans-serif; }
.btn { background: var(--brand); color: #ffffff; padding: 8px 16px; border-radius: 4px; }
.btn-primary { background-color: #1a73e8; }
.card { border: 1px solid #e5e5e5; margin: 16px; box-shadow: 0 1px 2px rgba(0, 0, 0, 0.1); }
h1 { font-size: 2rem; font-weight: 700; line-height: 1.2; }
a:hover { color: #0000ee; }
@media (min-width: 768px) {
  .card { padding: 24px; }
}
"""

BRAND_HTML = """
<html>
<body>
  <header class="site-header" style="background-color: #1a73e8">
    <nav><a href="/">Home</a></nav>
  </header>
  <main>
    <h1>Welcome</h1>
    <button class="btn btn-primary" style="background: #1a73e8; color: #ffffff">Sign up</button>
    <div class="card">Card</div>
  </main>
</body>
</html>
"""


@pytest.fixture
def brand_css():
    """Stylesheet with a blue brand color, neutrals and a custom property alias."""
    return BRAND_CSS


@pytest.fixture
def brand_html():
    """Markup with a header, navigation and a primary button."""
    return BRAND_HTML


@pytest.fixture
def brand_page():
    return PageInput(url='https://acme.com', html=BRAND_HTML, css=BRAND_CSS)


@pytest.fixture
def site_analysis(brand_page):
    """Full pipeline result for the brand page."""
    return run_pipeline(brand_page, AnalysisRequest(url=brand_page.url))


@pytest.fixture
def make_analysis():
    """Factory for ColorAnalysis entries with HSL and contrast filled in."""
    def _make(hex_value, role='neutral', frequency=1, confidence=0.5, score=0.0):
        h, s, l = to_hsl(hex_value)
        return ColorAnalysis(
            hex=hex_value,
            role=role,
            lightness=l,
            saturation=s,
            hue=h,
            contrast_vs_white=contrast_ratio(hex_value, '#ffffff'),
            contrast_vs_black=contrast_ratio(hex_value, '#000000'),
            frequency=frequency,
            sources=['css'],
            confidence=confidence,
            score=score,
            representative=hex_value,
        )
    return _make


@pytest.fixture
def make_png():
    """Factory for PNG bytes; `fills` is a list of (box, color) painted over the base."""
    def _make(color=(255, 0, 0), size=(20, 20), mode='RGB', fills=()):
        img = Image.new(mode, size, color)
        for box, fill in fills:
            img.paste(fill, box)
        buffer = io.BytesIO()
        img.save(buffer, format='PNG')
        return buffer.getvalue()
    return _make
