"""Rewrite references to relocated assets inside text content."""

import re
from collections.abc import Mapping

# A reference must sit between delimiters so ``logo.png`` never matches
# inside ``mylogo.png`` or ``logo.png.bak``.
_LEADING = r"""(["'`(\s]|\A)"""
_TRAILING = r"""(?=["'`)\s]|\Z)"""


def path_variants(original_path: str) -> list[str]:
    """Spellings under which a package path may be referenced, most specific first."""
    normalized = original_path.removeprefix("./")
    variants = [f"../{normalized}", f"./{normalized}"]
    if normalized != original_path:
        variants.append(original_path)
    variants.append(normalized)
    return list(dict.fromkeys(variants))


def rewrite_references(content: str, asset_map: Mapping[str, str]) -> str:
    """Replace references to mapped paths with their hosted URLs.

    All spellings of all mapped paths are matched in a single pass, so text
    produced by a substitution is never rewritten again. When two mappings
    share a spelling, the one inserted first wins.

    Args:
        content: Document, stylesheet or script text.
        asset_map: Original package path -> hosted URL.

    Returns:
        The rewritten text (``content`` itself when the map is empty).

    Raises:
        TypeError: If ``content`` is not a string or ``asset_map`` is not a mapping.
    """
    if not isinstance(content, str):
        msg = "content must be a string"
        raise TypeError(msg)
    if not isinstance(asset_map, Mapping):
        msg = "asset_map must be a mapping of path to URL"
        raise TypeError(msg)

    targets: dict[str, str] = {}
    for original_path, hosted_url in asset_map.items():
        if not original_path or not hosted_url:
            continue
        for variant in path_variants(original_path):
            targets.setdefault(variant, hosted_url)
    if not targets:
        return content

    alternatives = "|".join(re.escape(v) for v in sorted(targets, key=len, reverse=True))
    pattern = re.compile(_LEADING + "(" + alternatives + ")" + _TRAILING)
    return pattern.sub(lambda m: m.group(1) + targets[m.group(2)], content)
