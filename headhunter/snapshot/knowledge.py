"""Knowledge base digest: recent articles, popular tags, stale content."""

from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timedelta

from headhunter.numbers import to_iso
from headhunter.repositories.models import KnowledgeArticle

RECENT_LIMIT = 5
TAG_LIMIT = 5
STALE_AFTER = timedelta(days=180)


def build_knowledge_base(articles: Sequence[KnowledgeArticle], now: datetime) -> dict:
    recent = sorted(
        articles,
        key=lambda a: (a.updated_at.timestamp() if a.updated_at else float("-inf"), a.id),
        reverse=True,
    )
    tags = Counter(tag.lower() for article in articles for tag in article.tags)
    return {
        "totalArticles": len(articles),
        "recentArticles": [
            {
                "id": a.id,
                "title": a.title,
                "summary": a.summary,
                "tags": list(a.tags),
                "updatedAt": to_iso(a.updated_at),
                "usageCount": a.usage_count,
            }
            for a in recent[:RECENT_LIMIT]
        ],
        "popularTags": [
            {"tag": tag, "count": count}
            for tag, count in sorted(tags.items(), key=lambda t: (-t[1], t[0]))[:TAG_LIMIT]
        ],
        "staleArticles": sum(
            1 for a in articles if a.updated_at is None or now - a.updated_at > STALE_AFTER
        ),
    }
