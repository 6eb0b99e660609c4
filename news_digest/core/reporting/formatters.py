"""
formatters.py

Digest text generation: per-city grouping, Telegram HTML message and a plain
text rendition for the archived copy.
"""
from __future__ import annotations

import html
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from news_digest.domain.models import ScoredCandidate

DIGEST_TITLE = "台灣六都市政府秘書處新聞摘要"
DIVIDER = "━" * 30
ITEMS_PER_CITY = 5
TITLE_PREVIEW_CHARS = 60
SUMMARY_PREVIEW_CHARS = 80
# Telegram rejects longer sendMessage texts
MAX_MESSAGE_CHARS = 4096


def roc_date(dt: datetime) -> str:
    """Format a date the way zh-TW locales print it (e.g., 2025/1/7)."""
    return f"{dt.year}/{dt.month}/{dt.day}"


def roc_timestamp(dt: datetime) -> str:
    hour = dt.hour % 12 or 12
    meridiem = "上午" if dt.hour < 12 else "下午"
    return f"{roc_date(dt)} {meridiem}{hour}:{dt.minute:02d}:{dt.second:02d}"


def group_by_city(items: Sequence[ScoredCandidate]) -> Dict[str, List[ScoredCandidate]]:
    """Group items by city label, keeping first-seen city order and item order."""
    grouped: Dict[str, List[ScoredCandidate]] = {}
    for item in items:
        grouped.setdefault(item.city, []).append(item)
    return grouped


# ─────────────────────────────────────────────────────────────────────────────
# Telegram HTML message
# ─────────────────────────────────────────────────────────────────────────────
def _item_block(counter: int, item: ScoredCandidate) -> List[str]:
    title = html.escape(item.title[:TITLE_PREVIEW_CHARS])
    summary = html.escape(item.summary[:SUMMARY_PREVIEW_CHARS])
    url = html.escape(item.url or "", quote=True)
    source = html.escape(item.source or "")
    return [
        f"{counter}. <b>{title}</b>",
        f"   {summary}...",
        f'   🔗 <a href="{url}">閱讀全文</a>',
        f"   📌 {source} | 分類: {html.escape(item.category)}",
        "",
    ]


def render_digest_message(
    items: Sequence[ScoredCandidate],
    *,
    now: Optional[datetime] = None,
    max_chars: int = MAX_MESSAGE_CHARS,
) -> str:
    """
    Render the digest as a Telegram HTML message.

    Cities appear in the order their first item appears in ``items``; each city
    block lists at most five items, numbered across the whole message.

    Items are only added whole, so the markup stays balanced: once the next
    item would push the message past ``max_chars`` the remaining items are
    replaced by a one-line note and the footer is still written.
    """
    now = now or datetime.now()
    header = [f"📰 <b>{DIGEST_TITLE}</b>", f"📅 {roc_date(now)}"]
    if not items:
        return "\n".join(header) + "\n\n⚠️ 今日無相關新聞。"

    footer = [
        DIVIDER,
        f"共 {len(items)} 則新聞",
        f"⏰ {roc_timestamp(now)}",
        "",
        "💡 提示：點擊「閱讀全文」查看完整新聞內容",
    ]
    grouped = group_by_city(items)
    listable = sum(min(len(city_items), ITEMS_PER_CITY) for city_items in grouped.values())
    reserved = len("\n".join(footer)) + len(_omitted_note(listable)) + 3

    lines: List[str] = header + [DIVIDER, ""]
    used = len("\n".join(lines))
    counter = 0
    full = False
    for city, city_items in grouped.items():
        city_header = f"<b>【{html.escape(city)}】</b> ({len(city_items)} 則)"
        for position, item in enumerate(city_items[:ITEMS_PER_CITY]):
            block = _item_block(counter + 1, item)
            if position == 0:
                block.insert(0, city_header)
            size = len("\n".join(block)) + 1
            if used + size + reserved > max_chars:
                full = True
                break
            lines.extend(block)
            used += size
            counter += 1
        if full:
            break

    if counter < listable:
        lines.append(_omitted_note(listable - counter))
        lines.append("")
    lines.extend(footer)
    return "\n".join(lines)


def _omitted_note(count: int) -> str:
    return f"…另有 {count} 則未列出"


# ─────────────────────────────────────────────────────────────────────────────
# Plain text archive
# ─────────────────────────────────────────────────────────────────────────────
def render_digest_text(items: Sequence[ScoredCandidate], *, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    blocks: List[str] = [f"{DIGEST_TITLE} {roc_date(now)}"]
    for city, city_items in group_by_city(items).items():
        block = [f"【{city}】共 {len(city_items)} 則"]
        for item in city_items:
            block.append(f"[{item.score}] {item.title}")
            if item.summary:
                block.append(item.summary)
            meta = " | ".join(part for part in (item.source, item.category, item.url) if part)
            if meta:
                block.append(meta)
        blocks.append("\n".join(block))
    return "\n\n".join(blocks)


__all__ = [
    "DIGEST_TITLE",
    "MAX_MESSAGE_CHARS",
    "group_by_city",
    "render_digest_message",
    "render_digest_text",
    "roc_date",
    "roc_timestamp",
]
