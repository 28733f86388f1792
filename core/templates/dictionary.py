"""Lookup dictionary extraction from the XSLT dictionary document."""

from __future__ import annotations

import re

from core.templates.models import Dictionaries, Option

_TEMPLATE_RE = re.compile(r'<xsl:template name="(.*?)">([\s\S]*?)</xsl:template>')
_OPTION_RE = re.compile(r"\|(\d+)\|(.*?)\|")


def extract_dictionary(text: str) -> Dictionaries:
    """Parse every named ``xsl:template`` block into an ordered option list.

    Rules:
    - Entries are ``|digits|label|`` in appearance order, duplicates kept.
    - A block without entries maps to an empty list.
    - Unterminated blocks are not matched and are left out.
    - A repeated block name keeps the last block.
    """

    dictionaries: Dictionaries = {}
    for block in _TEMPLATE_RE.finditer(text):
        name, content = block.group(1), block.group(2)
        dictionaries[name] = [
            Option(value=entry.group(1), label=entry.group(2))
            for entry in _OPTION_RE.finditer(content)
        ]
    return dictionaries
