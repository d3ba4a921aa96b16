"""
QuestionBot - Release Notes
===========================

Extracts the newest release section from README.md.

Sections start with a bold underlined heading (``__**v1.2**__``) and run
until the next one; only the first section is announced.
"""

import re
from pathlib import Path
from typing import Optional, Union

from questionbot.core.logger import logger


RELEASE_NOTE_PATTERN = re.compile(r"(__\*\*.*\*\*__[^_]*)__\*\*")


def extract_release_notes(text: str) -> Optional[str]:
    """Return the first release section of ``text``, or None if there is none."""
    match = RELEASE_NOTE_PATTERN.search(text or "")
    if match is None:
        return None
    return match.group(1)


def read_release_notes(path: Union[str, Path]) -> Optional[str]:
    """Read ``path`` and extract its newest release section."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        logger.warning("Could Not Read Release Notes", [
            ("Path", str(path)),
            ("Error", str(e)),
        ])
        return None
    return extract_release_notes(text)


__all__ = ["RELEASE_NOTE_PATTERN", "extract_release_notes", "read_release_notes"]
