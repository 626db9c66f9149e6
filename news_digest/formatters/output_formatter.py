"""
Output formatting
Renders a digest as JSON, plain text, Markdown or a Telegram HTML message
"""

import html
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List

from ..core.models import Item
from ..core.pipeline import DigestResult
from ..utils import truncate_text

logger = logging.getLogger(__name__)


def _group_by_category(items: List[Item]) -> Dict[str, List[Item]]:
    """Group items by category, keeping first-appearance order."""
    groups: Dict[str, List[Item]] = {}
    for item in items:
        groups.setdefault(item.category, []).append(item)
    return groups


class OutputFormatter:
    """Digest renderer for one output format"""

    FORMATS = ('json', 'text', 'markdown', 'telegram')

    def __init__(self, fmt: str = 'json'):
        """
        Initialize the formatter

        Args:
            fmt: one of ``FORMATS``
        """
        if fmt not in self.FORMATS:
            raise ValueError(f"Unknown output format: {fmt}")
        self.fmt = fmt

    def format_json(self, result: DigestResult) -> str:
        return json.dumps(result.to_dict(), ensure_ascii=False, indent=2)

    def format_text(self, result: DigestResult) -> str:
        lines = [f"=== News Digest ({result.generated}) ===", ""]
        for item in result.items:
            lines.append(f"[{item.category}] {item.title}")
            lines.append(f"  {item.url}")
            if item.summary:
                lines.append(f"  {item.summary[:150]}")
            lines.append("")
        lines.append(f"--- {len(result.items)} items from {result.feed_count} feeds ---")
        return "\n".join(lines)

    def format_markdown(self, result: DigestResult) -> str:
        lines = [f"# News Digest - {result.generated[:10]}", ""]
        for category, items in _group_by_category(result.items).items():
            lines.append(f"## {category[:1].upper()}{category[1:]}")
            lines.append("")
            for item in items:
                lines.append(f"- **[{item.title}]({item.url})** *({item.source})*")
                if item.summary:
                    lines.append(f"  {item.summary[:120]}...")
            lines.append("")
        return "\n".join(lines)

    def format_telegram(self, result: DigestResult) -> str:
        """
        Telegram message in its HTML parse mode

        Only ``<b>`` and ``<a>`` are emitted; all feed text is escaped.
        """
        lines = [f"<b>📰 News Digest</b> ({result.generated[:10]})", ""]
        for item in result.items:
            lines.append(f"<b>{html.escape(item.title, quote=False)}</b>")
            lines.append(f'<a href="{html.escape(item.url)}">{html.escape(item.source, quote=False)}</a>')
            if item.summary:
                lines.append(html.escape(truncate_text(item.summary, 200), quote=False))
            lines.append("")
        if not result.items:
            lines.append("<i>No new items.</i>")
        return "\n".join(lines).rstrip() + "\n"

    def render(self, result: DigestResult) -> str:
        """
        Render a digest in the configured format

        Args:
            result: pipeline result

        Returns:
            rendered digest
        """
        renderers: Dict[str, Callable[[DigestResult], str]] = {
            'json': self.format_json,
            'text': self.format_text,
            'markdown': self.format_markdown,
            'telegram': self.format_telegram,
        }
        return renderers[self.fmt](result)

    def save(self, result: DigestResult, output_path: str) -> str:
        """
        Write the digest to a file

        Args:
            result: pipeline result
            output_path: destination file, parent directories are created

        Returns:
            the path written
        """
        report = self.render(result)
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(report)
            if not report.endswith("\n"):
                f.write("\n")

        logger.info(f"Digest saved to: {output_path}")
        return str(path)

    def print_report(self, result: DigestResult):
        """Write the digest to standard output."""
        report = self.render(result)
        sys.stdout.write(report if report.endswith("\n") else report + "\n")
