"""HTML 解析工具."""

import re

from bs4 import BeautifulSoup

_WHITESPACE = re.compile(r"\s+")


def html_to_text(html: str) -> str:
    """
    将 HTML 转换为单行纯文本.

    去掉标签（相邻标签之间不插入空格）、解码实体，并把所有连续空白合并为一个空格。

    Args:
        html: HTML 内容

    Returns:
        提取的纯文本内容
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "lxml")

    # 移除 script 和 style 标签
    for element in soup(["script", "style"]):
        element.decompose()

    text = soup.get_text()
    return _WHITESPACE.sub(" ", text).strip()


def html_to_paragraphs(html: str) -> str:
    """
    将 HTML 转换为保留段落的纯文本.

    每个文本块一段，段落之间用空行分隔，段内空白合并。
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "lxml")

    for element in soup(["script", "style"]):
        element.decompose()

    text = soup.get_text(separator="\n")

    # 清理多余空白
    paragraphs = []
    for line in text.split("\n"):
        line = _WHITESPACE.sub(" ", line).strip()
        if line:
            paragraphs.append(line)

    return "\n\n".join(paragraphs)


def count_images(html: str) -> int:
    """统计 HTML 中的 <img> 标签数量."""
    if not html:
        return 0

    soup = BeautifulSoup(html, "lxml")
    return len(soup.find_all("img"))
