"""文章摘要资格判断."""

import html
import time
from dataclasses import dataclass
from enum import Enum
from hashlib import md5
from typing import ClassVar

from feeddigest.models.entry import Entry
from feeddigest.utils.html_parser import count_images, html_to_text

SUMMARY_GUID_PREFIX = "llm-summary-"
TRANSLATION_GUID_PREFIX = "llm-translation-"
LEGACY_TITLE_PREFIX = "[Summary]"

# 摘要文章容器的 class，同时作为"已处理"标记
SUMMARY_CONTAINER_MARKER = 'class="llm-summary"'
SKIP_BANNER_MARKER = "Feed Digest:</strong> This article was not summarized"

MIN_TEXT_WITH_IMAGES = 200
IMAGE_SKIP_REASON = (
    "Article contains images but has insufficient text "
    f"(less than {MIN_TEXT_WITH_IMAGES} characters)"
)


class VerdictKind(str, Enum):
    """资格判断结果类型."""

    ARTIFACT = "artifact"
    ALREADY_PROCESSED = "already_processed"
    SKIP = "skip"
    ELIGIBLE = "eligible"


@dataclass(frozen=True)
class EligibilityVerdict:
    """单篇文章的判断结果."""

    kind: VerdictKind
    reason: str | None = None  # 仅 SKIP 使用

    @property
    def is_eligible(self) -> bool:
        """是否可以参与摘要."""
        return self.kind is VerdictKind.ELIGIBLE


ARTIFACT = EligibilityVerdict(VerdictKind.ARTIFACT)
ALREADY_PROCESSED = EligibilityVerdict(VerdictKind.ALREADY_PROCESSED)
ELIGIBLE = EligibilityVerdict(VerdictKind.ELIGIBLE)


class EligibilityClassifier:
    """判断文章是否需要摘要."""

    ARTIFACT_GUID_PREFIXES: ClassVar[tuple[str, ...]] = (
        SUMMARY_GUID_PREFIX,
        TRANSLATION_GUID_PREFIX,
    )
    PROCESSED_MARKERS: ClassVar[tuple[str, ...]] = (
        SKIP_BANNER_MARKER,
        SUMMARY_CONTAINER_MARKER,
    )

    def classify(self, entry: Entry) -> EligibilityVerdict:
        """
        判断单篇文章.

        顺序：本服务生成的文章 -> 已处理文章 -> 图片多文字少 -> 可摘要。
        """
        if self.is_artifact(entry):
            return ARTIFACT

        content = entry.content or ""
        if any(marker in content for marker in self.PROCESSED_MARKERS):
            return ALREADY_PROCESSED

        reason = self.skip_reason(content)
        if reason is not None:
            return EligibilityVerdict(VerdictKind.SKIP, reason)

        return ELIGIBLE

    def is_artifact(self, entry: Entry) -> bool:
        """是否为本服务生成的摘要 / 译文文章."""
        if (entry.guid or "").startswith(self.ARTIFACT_GUID_PREFIXES):
            return True
        return (entry.title or "").startswith(LEGACY_TITLE_PREFIX)

    def skip_reason(self, content: str) -> str | None:
        """含图片且纯文本少于 200 字符时返回跳过原因，否则返回 None."""
        if count_images(content) == 0:
            return None
        if len(html_to_text(content)) < MIN_TEXT_WITH_IMAGES:
            return IMAGE_SKIP_REASON
        return None


def skip_banner(reason: str) -> str:
    """生成跳过说明横幅."""
    return (
        '<div style="background-color: #fff3cd; border-left: 4px solid #ffc107; '
        'padding: 10px; margin-bottom: 15px;">'
        "<strong>Feed Digest:</strong> This article was not summarized. Reason: "
        f"{html.escape(reason, quote=True)}"
        "</div>"
    )


def annotate_skipped(entry: Entry, reason: str) -> bool:
    """在正文前添加跳过说明（幂等），返回是否修改了文章."""
    content = entry.content or ""
    if SKIP_BANNER_MARKER in content:
        return False

    entry.content = skip_banner(reason) + content
    entry.hash = md5(entry.content.encode("utf-8")).hexdigest()
    entry.last_seen = int(time.time())
    return True
