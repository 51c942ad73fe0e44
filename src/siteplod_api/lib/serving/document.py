"""HTML adjustments applied to a site's document when it is served."""

import html
import re

_HEAD_OPEN = re.compile(r"<head(?:\s[^>]*)?>", re.IGNORECASE)
_HTML_OPEN = re.compile(r"<html(?:\s[^>]*)?>", re.IGNORECASE)


def inject_base_directive(document: str, base_href: str) -> str:
    """Insert ``<base href=...>`` so relative references resolve under ``base_href``.

    The tag goes right after the opening ``<head>``. Without a head, one is
    created after the opening ``<html>``; without either, a head is prepended.
    """
    base_tag = f'<base href="{html.escape(base_href, quote=True)}">\n'

    match = _HEAD_OPEN.search(document)
    if match:
        return f"{document[: match.end()]}\n  {base_tag}{document[match.end() :]}"

    match = _HTML_OPEN.search(document)
    if match:
        return f"{document[: match.end()]}\n<head>\n  {base_tag}</head>\n{document[match.end() :]}"

    return f"<head>\n  {base_tag}</head>\n{document}"
