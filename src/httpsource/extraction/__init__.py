"""Response-to-item extraction strategies."""

from httpsource.extraction.extractor import DataExtractor
from httpsource.extraction.json_extractor import JsonExtractor
from httpsource.extraction.lines_extractor import TextLinesExtractor
from httpsource.extraction.registry import build_extractor, register_extractor

register_extractor("json", JsonExtractor)
register_extractor("lines", TextLinesExtractor)

__all__ = ["DataExtractor", "JsonExtractor", "TextLinesExtractor", "build_extractor"]
