"""摘要文章生成与写入."""

import html
import logging
import time
from collections.abc import Sequence
from datetime import datetime
from hashlib import md5

from feeddigest.core.eligibility import SUMMARY_GUID_PREFIX, TRANSLATION_GUID_PREFIX
from feeddigest.core.repository import EntryRepository
from feeddigest.llm.base import SummaryResult
from feeddigest.models.entry import Entry, new_entry_id
from feeddigest.models.feed import Feed

logger = logging.getLogger(__name__)

SUMMARY_AUTHOR = "AI Summary"


def _escape(value: str) -> str:
    return html.escape(value or "", quote=True)


def format_summary_content(
    entries: Sequence[Entry], summaries: Sequence[SummaryResult]
) -> str:
    """把一批摘要拼接为 HTML."""
    parts = ['<div class="llm-summary">']

    for entry, summary in zip(entries, summaries, strict=True):
        parts.append('<div class="summary-item">')
        parts.append(
            f'<h3><a href="{_escape(entry.link)}" target="_blank">'
            f"{_escape(summary.title)}</a></h3>"
        )
        parts.append(f"<p>{_escape(summary.summary)}</p>")
        parts.append("</div>")
        parts.append("<hr>")

    parts.append("</div>")
    return "".join(parts)


def format_translation_content(entry: Entry, result: SummaryResult) -> str:
    """摘要横幅 + 译文（或原文）."""
    banner = (
        '<div class="llm-summary">'
        f"<h3>{_escape(result.title)}</h3>"
        f"<p>{_escape(result.summary)}</p>"
        "</div><hr>"
    )

    if result.translated_content is None:
        # 原文已是目标语言
        return banner + (entry.content or "")

    body = _escape(result.translated_content)
    body = body.replace("\r\n", "\n").replace("\n", "<br>\n")
    return banner + body


def build_summary_entry(
    feed: Feed,
    entries: Sequence[Entry],
    summaries: Sequence[SummaryResult],
    now: int | None = None,
) -> Entry:
    """生成一批文章的合并摘要文章."""
    timestamp = now if now is not None else int(time.time())
    content = format_summary_content(entries, summaries)
    stamp = datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")

    return Entry(
        id=new_entry_id(),
        guid=f"{SUMMARY_GUID_PREFIX}{feed.id}-{timestamp}",
        feed_id=feed.id,
        title=f"[Summary] {feed.name} - {stamp}",
        author=SUMMARY_AUTHOR,
        content=content,
        link=(entries[0].link if entries else "") or feed.website,
        date=timestamp,
        last_seen=timestamp,
        hash=md5(content.encode("utf-8")).hexdigest(),
        is_read=False,
        is_favorite=False,
        tags="",
    )


def build_translation_entry(
    entry: Entry,
    result: SummaryResult,
    now: int | None = None,
) -> Entry:
    """生成单篇文章的译文文章."""
    timestamp = now if now is not None else int(time.time())
    content = format_translation_content(entry, result)

    return Entry(
        id=new_entry_id(),
        guid=f"{TRANSLATION_GUID_PREFIX}{entry.id}-{timestamp}",
        feed_id=entry.feed_id,
        title=result.title,
        author=entry.author,
        content=content,
        link=entry.link,
        date=entry.date,
        last_seen=timestamp,
        hash=md5(content.encode("utf-8")).hexdigest(),
        is_read=False,
        is_favorite=False,
        tags=entry.tags,
    )


class ArtifactWriter:
    """写入摘要文章，成功后才把原文标记为已读."""

    def __init__(self, entries: EntryRepository) -> None:
        self.entries = entries

    async def write(
        self,
        feed: Feed,
        batch: Sequence[Entry],
        summaries: Sequence[SummaryResult],
        translate: bool,
    ) -> list[Entry]:
        """按模式生成摘要文章并提交."""
        if translate:
            artifacts = [
                build_translation_entry(entry, result)
                for entry, result in zip(batch, summaries, strict=True)
            ]
        else:
            artifacts = [build_summary_entry(feed, batch, summaries)]

        for artifact in artifacts:
            await self.entries.add_entry(artifact)

        # 插入失败会直接抛出，原文保持未读
        await self.entries.mark_read([entry.id for entry in batch])
        logger.info(
            f"已写入 {len(artifacts)} 篇摘要文章，{len(batch)} 篇原文已标记为已读"
        )
        return artifacts
