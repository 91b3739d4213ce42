"""Tests for image color extraction.

Tests cover:
- Dominant colors from in-memory PNGs
- Decode and size limits
- Image type detection and weights
- Image discovery in markup and CSS
- Batch analysis and merging into CSS frequencies
"""

import pytest

from extract_tokens import extract_tokens
from image_colors import (
    ImageAnalysisResult,
    ImageColorData,
    ImageInput,
    analyze_images,
    detect_image_type,
    discover_images,
    extract_dominant_colors,
    image_weight,
    merge_image_colors_with_css,
)


# =============================================================================
# DOMINANT COLORS
# =============================================================================


class TestDominantColors:
    """Tests for extract_dominant_colors."""

    def test_solid_image(self, make_png):
        """A single-color image has one dominant color."""
        result = extract_dominant_colors(make_png((255, 0, 0)))
        assert result.colors == ['#ff0000']
        assert result.coverage == [1.0]
        assert result.size == (20, 20)
        assert not result.has_transparency

    def test_two_halves(self, make_png):
        """Two distant colors are kept apart with equal coverage."""
        data = make_png((255, 0, 0), fills=[((0, 0, 10, 20), (0, 0, 255))])
        result = extract_dominant_colors(data)
        assert set(result.colors) == {'#ff0000', '#0000ff'}
        assert result.coverage == [0.5, 0.5]

    def test_small_regions_dropped(self, make_png):
        """Clusters under the minimum coverage are not dominant."""
        data = make_png((255, 0, 0), size=(100, 100), fills=[((0, 0, 1, 1), (0, 0, 255))])
        assert extract_dominant_colors(data).colors == ['#ff0000']

    def test_max_colors(self, make_png):
        """The result is capped at max_colors."""
        data = make_png((255, 0, 0), fills=[((0, 0, 10, 20), (0, 0, 255))])
        assert len(extract_dominant_colors(data, max_colors=1).colors) == 1

    def test_fully_transparent(self, make_png):
        """Transparent pixels are ignored."""
        result = extract_dominant_colors(make_png((0, 0, 0, 0), mode='RGBA'))
        assert result.colors == []
        assert result.has_transparency

    def test_not_an_image(self):
        """Undecodable bytes raise ValueError."""
        with pytest.raises(ValueError):
            extract_dominant_colors(b'not an image')

    def test_oversized_dimension(self, make_png):
        """Images over the per-side limit are refused."""
        with pytest.raises(ValueError, match='exceed maximum'):
            extract_dominant_colors(make_png(size=(10_001, 1)))


# =============================================================================
# CLASSIFICATION
# =============================================================================


class TestImageType:
    """Tests for detect_image_type and image_weight."""

    @pytest.mark.parametrize('kwargs,expected', [
        ({'url': 'https://acme.com/img/logo.svg'}, 'logo'),
        ({'url': 'https://acme.com/a.png', 'alt': 'Acme Logo'}, 'logo'),
        ({'url': 'https://acme.com/a.jpg', 'class_name': 'hero-image'}, 'hero'),
        ({'url': 'https://acme.com/favicon.ico'}, 'icon'),
        ({'url': 'https://acme.com/products/shoe.jpg'}, 'product'),
        ({'url': 'https://acme.com/img/texture.jpg', 'context': 'background-image'}, 'background'),
        ({'url': 'https://acme.com/photo.jpg'}, 'unknown'),
    ])
    def test_detect_image_type(self, kwargs, expected):
        """URL, alt text, classes and context all count."""
        assert detect_image_type(**kwargs) == expected

    @pytest.mark.parametrize('image_type,size,expected', [
        ('logo', (20, 20), 150),
        ('logo', (400, 300), 170),
        ('hero', (200, 100), 90),
        ('icon', (100, 100), 120),
        ('mystery', None, 30),
    ])
    def test_image_weight(self, image_type, size, expected):
        """Type weight plus a bonus for large images."""
        assert image_weight(image_type, size) == expected


def test_discover_images():
    """<img> sources and CSS backgrounds are resolved against the page URL."""
    html = (
        '<img src="/logo.png" alt="Acme" class="site-logo">'
        '<img src="https://cdn.acme.com/hero.jpg">'
        '<img src="data:image/png;base64,AAAA">'
        '<img src="/logo.png">'
    )
    css = '.hero { background-image: url("/img/bg.jpg"); }'
    images = discover_images(html, css, 'https://acme.com')

    assert [i.url for i in images] == [
        'https://acme.com/logo.png',
        'https://cdn.acme.com/hero.jpg',
        'https://acme.com/img/bg.jpg',
    ]
    assert images[0].alt == 'Acme'
    assert images[0].class_name == 'site-logo'
    assert images[0].context == 'img'
    assert images[2].context == 'background-image'


# =============================================================================
# BATCH / MERGE
# =============================================================================


class TestAnalyzeImages:
    """Tests for analyze_images."""

    def test_skips_missing_and_broken(self, make_png):
        """Only decodable images are analyzed; all count toward the total."""
        images = [
            ImageInput('https://acme.com/logo.png', data=make_png((255, 0, 0))),
            ImageInput('https://acme.com/missing.png'),
            ImageInput('https://acme.com/broken.png', data=b'garbage'),
        ]
        result = analyze_images(images)
        assert result.total_images == 3
        assert len(result.images) == 1

        logo = result.images[0]
        assert logo.image_type == 'logo'
        assert logo.weight == 150
        assert logo.is_monochrome
        assert result.logo_colors == ['#ff0000']
        assert result.hero_colors == []
        assert result.average_colors_per_image == 1.0

    def test_max_images(self, make_png):
        """Images past max_images are not analyzed."""
        images = [ImageInput(f"https://acme.com/{i}.png", data=make_png()) for i in range(3)]
        assert len(analyze_images(images, max_images=2).images) == 2

    def test_declared_size_used_for_weight(self, make_png):
        """Caller-supplied dimensions override the decoded size."""
        image = ImageInput('https://acme.com/hero.png', data=make_png((0, 0, 255)), width=400, height=300)
        result = analyze_images([image])
        assert result.images[0].weight == 100
        assert result.hero_colors == ['#0000ff']

    def test_to_dict(self, make_png):
        """Results serialize with camelCase keys."""
        result = analyze_images([ImageInput('https://acme.com/logo.png', data=make_png())])
        data = result.to_dict()
        assert data['totalImages'] == 1
        assert data['images'][0]['type'] == 'logo'
        assert data['images'][0]['analysis']['colorCount'] == 1


def test_merge_image_colors_with_css():
    """Known colors are boosted by image weight; new ones are added."""
    logo = ImageColorData(
        url='https://acme.com/logo.png', image_type='logo', dominant_colors=['#FF0000', '#0000ff'],
        weight=150, color_count=2, average_saturation=100.0, is_monochrome=True, has_transparency=False,
    )
    merged = merge_image_colors_with_css(
        extract_tokens('.a { color: #ff0000 }').colors, ImageAnalysisResult(images=[logo], total_images=1),
    )
    assert merged == [
        {'value': '#ff0000', 'count': 151, 'source': 'css', 'imageType': None},
        {'value': '#0000ff', 'count': 150, 'source': 'image', 'imageType': 'logo'},
    ]
