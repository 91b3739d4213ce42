"""
Dominant colors of page images, weighted by what the image is.

A logo says more about a brand than a background photo, so each image is
classified (logo, icon, hero, product, background) and its colors carry a
matching weight when folded into the CSS color frequencies.

Pixels are quantized in LAB at a coarse JND scale and nearby bins are merged
into clusters; the largest clusters above a minimum coverage are the image's
dominant colors.
"""

import io
import logging
import re
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urljoin

import numpy as np
from bs4 import BeautifulSoup
from PIL import Image, UnidentifiedImageError

from color_space import lab_to_hex, rgb_to_hsl, rgb_to_lab

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

JND = 2.3  # Just Noticeable Difference in LAB units
COARSE_SCALE = 5.0  # Coarse bins: ~12 LAB units
GROUP_DISTANCE = 15.0  # Max LAB distance for merging bins into one cluster
MIN_COVERAGE = 0.02  # Share of opaque pixels a cluster needs to count
DEFAULT_MAX_COLORS = 5
DEFAULT_MAX_IMAGES = 20

# Security limits to prevent decompression bombs
MAX_IMAGE_PIXELS = 50_000_000  # 50 megapixels
MAX_IMAGE_DIMENSION = 10_000  # 10k pixels per side
SAMPLE_SIZE = 200  # Images are downsampled to fit this box before binning
ALPHA_CUTOFF = 128  # Pixels below this alpha are ignored

IMAGE_TYPE_WEIGHTS = {
    'logo': 150,
    'icon': 120,
    'hero': 80,
    'product': 60,
    'background': 40,
    'unknown': 30,
}
# (minimum area exclusive, bonus)
IMAGE_AREA_BONUSES = ((100_000, 20), (10_000, 10))

MONOCHROME_MAX_COLORS = 2
MONOCHROME_MAX_SATURATION = 10

BACKGROUND_IMAGE_RE = re.compile(r'background(?:-image)?\s*:[^;{}]*?url\(\s*[\'"]?([^\'")\s]+)[\'"]?\s*\)', re.IGNORECASE)


# =============================================================================
# Data Types
# =============================================================================

@dataclass
class ImageInput:
    """An image reference from the page plus the bytes the caller fetched for it."""
    url: str
    data: Optional[bytes] = None
    alt: str = ''
    class_name: str = ''
    context: str = ''  # 'img' or 'background-image'
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass
class DominantColors:
    """Clusters found in one image."""
    colors: list  # hex, largest cluster first
    coverage: list  # share of opaque pixels per color
    has_transparency: bool
    size: tuple  # (width, height) before downsampling


@dataclass
class ImageColorData:
    url: str
    image_type: str
    dominant_colors: list
    weight: int
    color_count: int
    average_saturation: float
    is_monochrome: bool
    has_transparency: bool

    def to_dict(self) -> dict:
        return {
            'url': self.url,
            'type': self.image_type,
            'dominantColors': self.dominant_colors,
            'weight': self.weight,
            'analysis': {
                'colorCount': self.color_count,
                'averageSaturation': self.average_saturation,
                'isMonochrome': self.is_monochrome,
                'hasTransparency': self.has_transparency,
            },
        }


@dataclass
class ImageAnalysisResult:
    images: list = field(default_factory=list)  # list[ImageColorData]
    total_images: int = 0
    logo_colors: list = field(default_factory=list)
    hero_colors: list = field(default_factory=list)
    average_colors_per_image: float = 0.0

    def to_dict(self) -> dict:
        return {
            'images': [image.to_dict() for image in self.images],
            'totalImages': self.total_images,
            'logoColors': self.logo_colors,
            'heroColors': self.hero_colors,
            'averageColorsPerImage': self.average_colors_per_image,
        }


# =============================================================================
# Classification
# =============================================================================

def detect_image_type(url: str, alt: str = '', class_name: str = '', context: str = '') -> str:
    """Guess what an image is from its URL, alt text, classes and where it was found."""
    url, alt, class_name, context = url.lower(), alt.lower(), class_name.lower(), context.lower()

    if 'logo' in url or 'logo' in alt or 'logo' in class_name or 'brand' in url or 'logo' in context:
        return 'logo'
    if any(marker in class_name or marker in url for marker in ('hero', 'banner')) or 'hero' in context:
        return 'hero'
    if 'icon' in url or 'icon' in alt or 'icon' in class_name or '.ico' in url:
        return 'icon'
    if 'product' in url or 'product' in alt or 'product' in class_name:
        return 'product'
    if ('background' in url or 'bg-' in url or 'background' in class_name
            or 'background-image' in context):
        return 'background'
    return 'unknown'


def image_weight(image_type: str, size: Optional[tuple] = None) -> int:
    weight = IMAGE_TYPE_WEIGHTS.get(image_type, IMAGE_TYPE_WEIGHTS['unknown'])
    if size:
        area = size[0] * size[1]
        for minimum, bonus in IMAGE_AREA_BONUSES:
            if area > minimum:
                return weight + bonus
    return weight


# =============================================================================
# Discovery
# =============================================================================

def _absolute(url: str, base_url: str) -> str:
    if url.startswith('http://') or url.startswith('https://') or not base_url:
        return url
    return urljoin(base_url, url)


def discover_images(html: str, css: str, base_url: str = '') -> list:
    """
    Collect image references from <img src> and CSS background images.

    Data URIs are skipped. Returns ImageInput entries without bytes, first
    occurrence of each absolute URL only.
    """
    found = {}

    soup = BeautifulSoup(html or '', 'html.parser')
    for img in soup.find_all('img'):
        src = (img.get('src') or '').strip()
        if not src or src.startswith('data:'):
            continue
        url = _absolute(src, base_url)
        if url not in found:
            found[url] = ImageInput(
                url=url,
                alt=img.get('alt') or '',
                class_name=' '.join(img.get('class', [])),
                context='img',
            )

    for match in BACKGROUND_IMAGE_RE.finditer(css or ''):
        src = match.group(1)
        if src.startswith('data:'):
            continue
        url = _absolute(src, base_url)
        if url not in found:
            found[url] = ImageInput(url=url, context='background-image')

    logger.debug("Discovered %d images", len(found))
    return list(found.values())


# =============================================================================
# Pixel Analysis
# =============================================================================

def load_image(data: bytes) -> Image.Image:
    """
    Decode image bytes with size validation.

    Raises:
        ValueError: If the bytes are not an image or exceed size limits
    """
    try:
        img = Image.open(io.BytesIO(data))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ValueError(f"Could not open image: {e}")

    width, height = img.size
    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        raise ValueError(
            f"Image dimensions {width}x{height} exceed maximum "
            f"{MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION}"
        )
    if width * height > MAX_IMAGE_PIXELS:
        raise ValueError(
            f"Image has {width * height:,} pixels, exceeding maximum {MAX_IMAGE_PIXELS:,}"
        )
    return img


def quantize_pixels(lab: np.ndarray, bin_size: float) -> np.ndarray:
    """
    Bin LAB pixels and return one row per bin: [L, a, b, pixels].

    The LAB value of each bin is the mean of its pixels, not the bin center.
    Sorted by pixel count descending.
    """
    binned = np.round(lab / bin_size).astype(np.int32)
    _, inverse, counts = np.unique(binned, axis=0, return_inverse=True, return_counts=True)
    inverse = inverse.reshape(-1)

    sums = np.zeros((len(counts), 3))
    np.add.at(sums, inverse, lab)
    means = sums / counts[:, None]

    results = np.column_stack([means, counts.astype(np.float64)])
    return results[results[:, 3].argsort()[::-1]]


def group_bins(bins: np.ndarray, distance_threshold: float = GROUP_DISTANCE) -> np.ndarray:
    """Merge bins into clusters by LAB distance, weighted by pixel count."""
    clusters = []
    for row in bins:
        lab, pixels = row[:3], row[3]
        for cluster in clusters:
            center = cluster[:3] / cluster[3]
            if np.linalg.norm(lab - center) < distance_threshold:
                cluster[:3] += lab * pixels
                cluster[3] += pixels
                break
        else:
            clusters.append(np.array([*(lab * pixels), pixels]))

    results = np.array(clusters)
    results[:, :3] /= results[:, 3:4]
    return results[results[:, 3].argsort()[::-1]]


def extract_dominant_colors(data: bytes, max_colors: int = DEFAULT_MAX_COLORS) -> DominantColors:
    """
    Find the dominant colors of an encoded image.

    Args:
        data: Encoded image bytes (PNG, JPEG, GIF, WebP...)
        max_colors: Upper bound on returned colors

    Returns:
        DominantColors with hex values, largest cluster first

    Raises:
        ValueError: If the bytes are not a usable image
    """
    img = load_image(data)
    size = img.size

    has_alpha = img.mode in ('RGBA', 'LA', 'PA') or 'transparency' in img.info
    try:
        img = img.convert('RGBA')
    except OSError as e:
        raise ValueError(f"Could not decode image: {e}")
    img.thumbnail((SAMPLE_SIZE, SAMPLE_SIZE))

    pixels = np.array(img).reshape(-1, 4)
    has_transparency = bool(has_alpha and (pixels[:, 3] < 255).any())
    opaque = pixels[pixels[:, 3] >= ALPHA_CUTOFF][:, :3]
    if len(opaque) == 0:
        return DominantColors([], [], has_transparency, size)

    lab = rgb_to_lab(opaque)
    clusters = group_bins(quantize_pixels(lab, COARSE_SCALE * JND))

    total = clusters[:, 3].sum()
    clusters = clusters[clusters[:, 3] / total >= MIN_COVERAGE][:max_colors]

    colors = [lab_to_hex(c[:3]) for c in clusters]
    coverage = [round(float(c[3] / total), 4) for c in clusters]
    return DominantColors(colors, coverage, has_transparency, size)


def _average_saturation(hex_colors: list) -> float:
    if not hex_colors:
        return 0.0
    saturations = []
    for value in hex_colors:
        r, g, b = (int(value[i:i + 2], 16) for i in (1, 3, 5))
        saturations.append(rgb_to_hsl(r, g, b)[1])
    return round(sum(saturations) / len(saturations), 1)


# =============================================================================
# Main Entry
# =============================================================================

def analyze_images(images: list, max_images: int = DEFAULT_MAX_IMAGES,
                   max_colors: int = DEFAULT_MAX_COLORS) -> ImageAnalysisResult:
    """
    Extract weighted dominant colors from fetched images.

    Images without bytes or with unreadable bytes are skipped with a log
    line; they still count toward total_images.
    """
    result = ImageAnalysisResult(total_images=len(images))
    logo_colors, hero_colors = [], []

    for image in images[:max_images]:
        if not image.data:
            logger.debug("No bytes for image %s, skipping", image.url)
            continue
        try:
            dominant = extract_dominant_colors(image.data, max_colors)
        except ValueError as e:
            logger.warning("Skipping image %s: %s", image.url, e)
            continue

        image_type = detect_image_type(image.url, image.alt, image.class_name, image.context)
        size = (image.width, image.height) if image.width and image.height else dominant.size
        saturation = _average_saturation(dominant.colors)

        result.images.append(ImageColorData(
            url=image.url,
            image_type=image_type,
            dominant_colors=dominant.colors,
            weight=image_weight(image_type, size),
            color_count=len(dominant.colors),
            average_saturation=saturation,
            is_monochrome=(len(dominant.colors) <= MONOCHROME_MAX_COLORS
                           or saturation < MONOCHROME_MAX_SATURATION),
            has_transparency=dominant.has_transparency,
        ))
        if image_type == 'logo':
            logo_colors.extend(dominant.colors)
        elif image_type == 'hero':
            hero_colors.extend(dominant.colors)

    result.logo_colors = list(dict.fromkeys(logo_colors))
    result.hero_colors = list(dict.fromkeys(hero_colors))
    if result.images:
        result.average_colors_per_image = sum(i.color_count for i in result.images) / len(result.images)

    logger.info("Analyzed %d of %d images: %d logo colors, %d hero colors",
                len(result.images), result.total_images, len(result.logo_colors), len(result.hero_colors))
    return result


def merge_image_colors_with_css(css_colors: list, image_analysis: ImageAnalysisResult) -> list:
    """
    Fold image colors into CSS color frequencies.

    A color already present (same literal, case-insensitive) is boosted by
    the image weight; others are added with source 'image'.

    Args:
        css_colors: Tokens or anything with raw_value/occurrence_count or value/count

    Returns:
        list of {value, count, source, imageType} dicts sorted by count descending
    """
    merged = []
    index = {}
    for item in css_colors:
        value = getattr(item, 'raw_value', None) or getattr(item, 'value', None)
        count = getattr(item, 'occurrence_count', None)
        if count is None:
            count = getattr(item, 'count', 0)
        entry = {'value': value, 'count': count, 'source': 'css', 'imageType': None}
        index.setdefault(value.lower(), entry)
        merged.append(entry)

    for image in image_analysis.images:
        for color in image.dominant_colors:
            existing = index.get(color.lower())
            if existing is not None:
                existing['count'] += image.weight
                continue
            entry = {'value': color, 'count': image.weight, 'source': 'image', 'imageType': image.image_type}
            index[color.lower()] = entry
            merged.append(entry)

    return sorted(merged, key=lambda e: -e['count'])
