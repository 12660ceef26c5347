"""Catalog of the available headshot styles."""

from typing import Dict, List

from .generator import require_complete
from ..models.enums import StyleType
from ..models.schemas import StyleInfo

STYLE_CATALOG: Dict[StyleType, StyleInfo] = {
    StyleType.CORPORATE: StyleInfo(
        id=StyleType.CORPORATE,
        name="Corporate Classic",
        description="Traditional business headshot, neutral background, formal lighting",
    ),
    StyleType.CREATIVE: StyleInfo(
        id=StyleType.CREATIVE,
        name="Creative Professional",
        description="Modern dynamic styling, artistic background, contemporary lighting",
    ),
    StyleType.EXECUTIVE: StyleInfo(
        id=StyleType.EXECUTIVE,
        name="Executive Portrait",
        description="Premium, formal styling, sophisticated lighting",
    ),
}

require_complete(STYLE_CATALOG, "STYLE_CATALOG")


def list_styles() -> List[StyleInfo]:
    """Styles in declaration order."""
    return [STYLE_CATALOG[style] for style in StyleType]
