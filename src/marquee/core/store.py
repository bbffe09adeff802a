"""Advert document persistence: read, validate, and write back defaults.

The document is JSON. ``//`` and ``/* */`` comments outside strings are
tolerated so operators can annotate it. A missing or near-empty file is
replaced with the generated default; a malformed one raises
``ConfigDocumentError`` and is left alone on disk.
"""

from __future__ import annotations

import json
import logging
import pathlib
import re
from typing import Any

from pydantic import ValidationError

from marquee.models.advert import AdvertConfig, make_default_config

logger = logging.getLogger(__name__)

# Files smaller than this are treated as stubs and regenerated.
MIN_DOCUMENT_BYTES = 50

# A string literal (kept verbatim) or a // line / /* block */ comment (dropped).
_COMMENT_OR_STRING = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)

DEFAULT_COMMENT = [
    "This is the default Marquee advert config.",
    "Edit ads, welcome_message and language_messages to taste.",
    "POST /api/admin/reload to apply changes without a restart.",
]


class ConfigDocumentError(ValueError):
    """The advert document exists but could not be parsed or validated."""


def build_document(config: AdvertConfig, comment: list[str] | None = None) -> dict[str, Any]:
    """Serialise a generation in document key order, nulls dropped."""
    body = config.model_dump(mode="json", by_alias=True, exclude_none=True)
    return {"_comment": list(comment or DEFAULT_COMMENT), **body}


def strip_comments(text: str) -> str:
    """Drop ``//`` and ``/* */`` comments, leaving string literals untouched."""
    return _COMMENT_OR_STRING.sub(lambda m: m.group(1) or "", text)


def parse_document(text: str) -> AdvertConfig:
    """Parse document text into a validated generation."""
    try:
        raw = json.loads(strip_comments(text))
    except json.JSONDecodeError as exc:
        msg = f"Advert document is not valid JSON: {exc}"
        raise ConfigDocumentError(msg) from exc
    if not isinstance(raw, dict):
        msg = f"Advert document must be a JSON object, got {type(raw).__name__}"
        raise ConfigDocumentError(msg)
    try:
        return AdvertConfig.model_validate(raw)
    except ValidationError as exc:
        msg = f"Advert document failed validation: {exc}"
        raise ConfigDocumentError(msg) from exc


class ConfigStore:
    """Loads and saves the advert document at a fixed path."""

    def __init__(self, path: pathlib.Path | str) -> None:
        self.path = pathlib.Path(path)

    def needs_default(self) -> bool:
        return not self.path.exists() or self.path.stat().st_size < MIN_DOCUMENT_BYTES

    def ensure_default(self) -> bool:
        """Write the default document if none usable exists. Returns True if written."""
        if not self.needs_default():
            return False
        self.save(make_default_config())
        logger.info("config_default_created path=%s", self.path)
        return True

    def load(self) -> AdvertConfig:
        """Read the document, generating the default first if needed."""
        if self.ensure_default():
            return make_default_config()
        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"Advert document {self.path} could not be read: {exc}"
            raise ConfigDocumentError(msg) from exc
        return parse_document(text)

    def save(self, config: AdvertConfig) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        text = json.dumps(build_document(config), indent=2, ensure_ascii=False)
        self.path.write_text(text + "\n", encoding="utf-8")
