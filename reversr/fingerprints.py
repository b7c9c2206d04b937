"""Request fingerprints for the response cache.

Each call site has its own versioned fingerprint function naming exactly the
arguments that change the generated result. Bump the version when a prompt
or schema change makes old cached results stale.
"""

import hashlib
import json
from typing import Any, Optional

ANALYZE_VERSION = 1
APPLY_PATTERN_VERSION = 1
TECHNICAL_SPEC_VERSION = 1
SCHEMATIC_VERSION = 1
BOM_VERSION = 1
SKETCH_VERSION = 1


def fingerprint(operation: str, version: int, **arguments: Any) -> str:
    """Build a fingerprint from an operation and its arguments.

    Arguments are serialized in the order given, so a call site must always
    pass them in the same order.

    Args:
        operation: Operation name
        version: Call-site fingerprint version
        **arguments: Arguments that affect the result

    Returns:
        Hex digest
    """
    payload = json.dumps(
        [operation, version, list(arguments.items())],
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def analyze_fingerprint(description: str, image: Optional[str] = None) -> Optional[str]:
    """Fingerprint for product analysis.

    Requests with an attached image are never cached.
    """
    if image:
        return None
    return fingerprint("analyze", ANALYZE_VERSION, description=description.strip())


def apply_pattern_fingerprint(analysis: dict[str, Any], pattern: str, context: str = "") -> str:
    return fingerprint(
        "apply_pattern",
        APPLY_PATTERN_VERSION,
        product=analysis.get("productName"),
        components=analysis.get("components"),
        resources=analysis.get("neighborhoodResources"),
        boundary=analysis.get("closedWorldBoundary"),
        pattern=pattern,
        context=context,
    )


def technical_spec_fingerprint(innovation: dict[str, Any]) -> str:
    return fingerprint(
        "technical_spec",
        TECHNICAL_SPEC_VERSION,
        concept=innovation.get("conceptName"),
        description=innovation.get("conceptDescription"),
        pattern=innovation.get("patternUsed"),
    )


def schematic_fingerprint(innovation: dict[str, Any]) -> str:
    return fingerprint(
        "schematic",
        SCHEMATIC_VERSION,
        concept=innovation.get("conceptName"),
        description=innovation.get("conceptDescription"),
    )


def bom_fingerprint(innovation: dict[str, Any], analysis: Optional[dict[str, Any]] = None) -> str:
    return fingerprint(
        "bill_of_materials",
        BOM_VERSION,
        concept=innovation.get("conceptName"),
        description=innovation.get("conceptDescription"),
        product=(analysis or {}).get("productName"),
        components=(analysis or {}).get("components"),
    )


def sketch_fingerprint(innovation: dict[str, Any]) -> str:
    return fingerprint(
        "sketch",
        SKETCH_VERSION,
        concept=innovation.get("conceptName"),
        description=innovation.get("conceptDescription"),
        pattern=innovation.get("patternUsed"),
        benefit=innovation.get("marketBenefit"),
    )
