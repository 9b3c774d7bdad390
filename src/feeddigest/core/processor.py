"""摘要处理引擎 - 分类、分批、调用模型、写入摘要."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from feeddigest.config import ProcessingConfig
from feeddigest.core.batcher import make_batches
from feeddigest.core.eligibility import (
    EligibilityClassifier,
    VerdictKind,
    annotate_skipped,
)
from feeddigest.core.repository import EntryRepository, FeedRepository
from feeddigest.core.writer import ArtifactWriter
from feeddigest.llm.client import ModelClient
from feeddigest.llm.parser import parse_response
from feeddigest.llm.prompts import (
    build_articles_prompt,
    build_system_prompt,
    is_translate_mode,
)
from feeddigest.models.entry import Entry
from feeddigest.models.feed import Feed

logger = logging.getLogger(__name__)


# 处理状态常量
class FeedStage:
    """单个 Feed 的处理阶段."""

    IDLE = "idle"
    FETCHING = "fetching"
    CLASSIFYING = "classifying"
    INSUFFICIENT = "insufficient"
    BATCHING = "batching"
    DONE = "done"
    FAILED = "failed"


@dataclass
class FeedDigestStats:
    """单个 Feed 的处理统计."""

    feed_id: int | None
    feed_name: str
    stage: str = FeedStage.IDLE
    fetched: int = 0  # 取到的未读文章
    eligible: int = 0  # 可摘要
    skipped: int = 0  # 图片多文字少或已处理
    processed: int = 0  # 已摘要并标记为已读
    batches: int = 0  # 尝试的批次数
    failed_batches: int = 0
    artifacts: int = 0  # 新生成的摘要文章
    waiting: int = 0  # 不足一批或失败，留待下次

    @property
    def remaining(self) -> int:
        """仍保持未读的文章数."""
        return self.waiting + self.skipped


class DigestProcessor:
    """按 Feed 顺序处理摘要，每个 Feed、每个批次依次完成."""

    def __init__(
        self,
        session: AsyncSession,
        client: ModelClient,
        classifier: EligibilityClassifier | None = None,
    ) -> None:
        self.session = session
        self.client = client
        self.entries = EntryRepository(session)
        self.feeds = FeedRepository(session)
        self.classifier = classifier or EligibilityClassifier()
        self.writer = ArtifactWriter(self.entries)

    async def run(self, config: ProcessingConfig) -> list[FeedDigestStats]:
        """处理所有开启摘要的 Feed，单个 Feed 失败不影响其他 Feed."""
        # 回滚会使会话中的对象过期，只保留 ID 和名称
        targets = [
            (feed.id, feed.name)
            for feed in await self.feeds.list_feeds()
            if feed.digest_enabled and feed.id is not None
        ]
        if not targets:
            logger.warning("没有开启摘要的 Feed")
            return []

        results: list[FeedDigestStats] = []
        for feed_id, feed_name in targets:
            try:
                feed = await self.feeds.get(feed_id)
                if feed is None:
                    msg = f"Feed 不存在: {feed_id}"
                    raise LookupError(msg)
                results.append(await self.process_feed(feed, config))
            except Exception:
                # 文章保持未读，下次重试
                logger.exception(f"处理 Feed 失败: {feed_name}")
                results.append(
                    FeedDigestStats(
                        feed_id=feed_id, feed_name=feed_name, stage=FeedStage.FAILED
                    )
                )
        return results

    async def process_feed(
        self, feed: Feed, config: ProcessingConfig
    ) -> FeedDigestStats:
        """处理单个 Feed：取未读文章、分类、按批摘要."""
        feed_id, feed_name = feed.id, feed.name
        stats = FeedDigestStats(feed_id=feed_id, feed_name=feed_name)
        batch_size = feed.batch_size

        stats.stage = FeedStage.FETCHING
        unread = await self.entries.list_unread_by_feed(feed_id)
        stats.fetched = len(unread)
        if not unread:
            stats.stage = FeedStage.DONE
            return stats

        stats.stage = FeedStage.CLASSIFYING
        eligible = await self._classify(unread, stats)
        stats.eligible = len(eligible)

        if len(eligible) < batch_size:
            # 不标记已读，等待更多文章
            stats.stage = FeedStage.INSUFFICIENT
            stats.waiting = len(eligible)
            logger.warning(
                f"跳过 {feed_name}: 只有 {len(eligible)} 篇文章可摘要 "
                f"(批次大小: {batch_size})"
            )
            return stats

        stats.stage = FeedStage.BATCHING
        batches, remainder = make_batches(eligible, batch_size)
        stats.waiting = len(remainder)
        batch_ids = [[entry.id for entry in batch] for batch in batches]

        reload = False
        for number, (ids, batch) in enumerate(
            zip(batch_ids, batches, strict=True), start=1
        ):
            stats.batches = number
            if reload:
                feed, batch = await self._reload(feed_id, ids)
            if await self._process_batch(feed, batch, number, config, feed_name):
                stats.processed += len(ids)
                stats.artifacts += 1 if batch_size > 1 else len(ids)
            else:
                stats.failed_batches += 1
                stats.waiting += len(ids)
                # 写入失败时会话已回滚，后续批次需要重新加载
                reload = True

        stats.stage = FeedStage.DONE
        logger.info(
            f"{feed_name} 完成: 处理了 {stats.processed} 篇文章，"
            f"共 {stats.batches} 批，{stats.remaining} 篇保持未读 "
            f"({stats.waiting} 篇等待下一批，{stats.skipped} 篇已跳过)"
        )
        return stats

    async def _reload(
        self, feed_id: int, entry_ids: list[int]
    ) -> tuple[Feed, list[Entry]]:
        """重新加载 Feed 和一批文章."""
        feed = await self.feeds.get(feed_id)
        if feed is None:
            msg = f"Feed 不存在: {feed_id}"
            raise LookupError(msg)
        return feed, await self.entries.get_many(entry_ids)

    async def _classify(
        self, unread: list[Entry], stats: FeedDigestStats
    ) -> list[Entry]:
        """分类文章，并立即给需跳过的文章加上说明."""
        eligible: list[Entry] = []

        for entry in unread:
            verdict = self.classifier.classify(entry)

            if verdict.kind is VerdictKind.ELIGIBLE:
                eligible.append(entry)
            elif verdict.kind is VerdictKind.SKIP:
                stats.skipped += 1
                if annotate_skipped(entry, verdict.reason or ""):
                    await self.entries.update_entry(entry)
                    logger.info(f"已添加跳过说明: {entry.title}")
            elif verdict.kind is VerdictKind.ALREADY_PROCESSED:
                stats.skipped += 1

        return eligible

    async def _process_batch(
        self,
        feed: Feed,
        batch: list[Entry],
        number: int,
        config: ProcessingConfig,
        feed_name: str,
    ) -> bool:
        """处理一批文章，失败时记录日志并保持未读."""
        translate = is_translate_mode(len(batch))
        logger.info(f"正在处理 {feed_name} 第 {number} 批 - {len(batch)} 篇文章")

        try:
            system_prompt = build_system_prompt(feed, config.dest_language, translate)
            user_prompt = build_articles_prompt(
                batch, config.max_content_length, translate=translate
            )
            raw = await self.client.complete(system_prompt, user_prompt)
            summaries = parse_response(raw, len(batch), translate)
            await self.writer.write(feed, batch, summaries, translate)
        except Exception as e:
            # 本批失败，继续处理下一批
            logger.error(f"{feed_name} 第 {number} 批失败: {type(e).__name__}: {e}")
            return False

        logger.info(f"{feed_name} 第 {number} 批处理成功")
        return True
