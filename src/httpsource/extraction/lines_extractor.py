"""Line-oriented text extractor."""

from __future__ import annotations

import httpx

from httpsource.extraction.extractor import DataExtractor
from httpsource.models import Offset, Partition


class TextLinesExtractor(DataExtractor):
    """One item per non-blank line of the body, surrounding whitespace stripped."""

    def extract(
        self, partition: Partition, offset: Offset, response: httpx.Response,
    ) -> list[str]:
        return [line.strip() for line in response.text.splitlines() if line.strip()]
