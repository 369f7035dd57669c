"""Extract Product entities from JSON-LD embedded in HTML pages."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from selectolax.parser import HTMLParser

logger = logging.getLogger(__name__)


@dataclass
class JsonLdBlock:
    """Decode outcome for one ``application/ld+json`` script."""
    data: Any = None
    ok: bool = False
    error: Optional[str] = None


@dataclass
class ProductIdentity:
    """Name and brand declared by a Product entity."""
    name: str = ""
    brand: str = ""


def decode_json_ld(text: str) -> JsonLdBlock:
    """Decode one script body; failures become an explicit no-data outcome."""
    if not text or not text.strip():
        return JsonLdBlock(error="empty")
    try:
        return JsonLdBlock(data=json.loads(text), ok=True)
    except (json.JSONDecodeError, ValueError) as e:
        return JsonLdBlock(error=str(e))


def extract_json_ld(tree: HTMLParser) -> List[JsonLdBlock]:
    """Decode every JSON-LD script in the page, one outcome per script."""
    blocks = []
    for script in tree.css('script[type="application/ld+json"]'):
        block = decode_json_ld(script.text())
        if not block.ok:
            logger.debug(f"Skipping undecodable JSON-LD block: {block.error}")
        blocks.append(block)
    return blocks


def iter_entities(data: Any) -> Iterator[Dict[str, Any]]:
    """Yield entity dicts from a decoded block (top level, lists and @graph)."""
    if isinstance(data, list):
        for item in data:
            yield from iter_entities(item)
    elif isinstance(data, dict):
        yield data
        graph = data.get("@graph")
        if isinstance(graph, list):
            for item in graph:
                yield from iter_entities(item)


def is_product_type(entity: Dict[str, Any]) -> bool:
    """True when any declared @type names a product (case-insensitive)."""
    declared = entity.get("@type")
    if isinstance(declared, str):
        declared = [declared]
    if not isinstance(declared, list):
        return False
    return any(isinstance(t, str) and "product" in t.lower() for t in declared)


def _brand_name(brand: Any) -> str:
    if isinstance(brand, str):
        return brand
    if isinstance(brand, dict):
        name = brand.get("name")
        return name if isinstance(name, str) else ""
    if isinstance(brand, list):
        for item in brand:
            name = _brand_name(item)
            if name:
                return name
    return ""


def extract_product_identities(blocks: List[JsonLdBlock]) -> List[ProductIdentity]:
    """
    Collect name/brand pairs from Product entities of successfully decoded blocks.

    Brand may be a plain string or an object exposing ``name``.
    """
    identities = []
    for block in blocks:
        if not block.ok:
            continue
        for entity in iter_entities(block.data):
            if not is_product_type(entity):
                continue
            name = entity.get("name")
            identities.append(
                ProductIdentity(
                    name=name if isinstance(name, str) else "",
                    brand=_brand_name(entity.get("brand")),
                )
            )
    return identities
