#!/usr/bin/env python3
"""
Vice City - Sample Content Generator
Generates wiki pages and news articles in the stored document shape.
Used for development and demo environments.

Usage:
    python scripts/seed-content.py
    python scripts/seed-content.py --pages 40 --articles 10 --output sample-content.json
    PYTHONPATH=backend python scripts/seed-content.py --load   # write through the repositories
"""

import argparse
import asyncio
import json
import random
from datetime import datetime, timedelta, timezone
from typing import Any


# ── Configuration ───────────────────────────────────────────

WIKI_CATEGORIES = {
    "characters": ["Lucia", "Jason", "Cal Hampton", "Boobie Ike", "Real Dimez"],
    "locations": ["Vice City", "Leonida Keys", "Grassrivers", "Port Gellhorn", "Ambrosia", "Mount Kalaga"],
    "vehicles": ["Grotti Cheetah", "Vapid Dominator", "Declasse Tampa", "Speedophile Seashark"],
    "missions": ["Bank Job", "Keys Run", "Swamp Deal"],
    "gameplay-mechanics": ["Wanted Level", "Heists", "Property Ownership"],
}
NEWS_CATEGORIES = ["news", "features", "guides"]
EDITORS = [
    {"uid": "seed-admin", "displayName": "Site Admin"},
    {"uid": "seed-editor", "displayName": "Wiki Editor"},
]
TAGS = ["leonida", "trailer", "map", "story", "online", "vehicles", "heists", "wildlife"]

LOREM = (
    "Vice City is the sun-soaked heart of Leonida. Neon strips, beach towns and "
    "backwater swamps all sit within a short drive of each other."
)


def _slug(title: str) -> str:
    return "-".join(title.lower().split())


class SampleContentGenerator:
    """Generates sample wiki and news documents."""

    def __init__(self, seed: int = 42):
        random.seed(seed)
        self.now = datetime.now(timezone.utc)

    def _past_date(self, max_days: int = 120) -> str:
        delta = timedelta(days=random.randint(0, max_days), hours=random.randint(0, 23))
        return (self.now - delta).isoformat()

    def _markdown(self, title: str) -> str:
        sections = random.sample(["Overview", "History", "Trivia", "Gallery", "Overview"], 3)
        body = [f"# {title}", "", LOREM, ""]
        for section in sections:
            body += [f"## {section}", "", LOREM, ""]
        return "\n".join(body)

    # ── Generators ──────────────────────────────────────────

    def generate_wiki_page(self, category: str, title: str) -> dict:
        editor = random.choice(EDITORS)
        return {
            "title": title,
            "slug": _slug(title),
            "category": category,
            "description": f"{title} in Grand Theft Auto VI.",
            "content": self._markdown(title),
            "tags": random.sample(TAGS, 2),
            "details": [{"label": "Category", "value": category, "type": "badge"}],
            "status": random.choice(["published", "published", "published", "draft"]),
            "featured": random.random() > 0.8,
            "createdBy": editor,
            "createdAt": self._past_date(),
        }

    def generate_news_article(self, index: int) -> dict:
        title = f"Leonida dispatch #{index + 1}"
        return {
            "title": title,
            "excerpt": LOREM[:80],
            "content": self._markdown(title),
            "category": random.choice(NEWS_CATEGORIES),
            "author": random.choice(EDITORS)["displayName"],
            "status": "published",
            "featured": index == 0,
            "createdAt": self._past_date(30),
        }

    def generate_all(self, pages: int, articles: int) -> dict[str, Any]:
        titles = [(c, t) for c, names in WIKI_CATEGORIES.items() for t in names]
        wiki = [self.generate_wiki_page(c, t) for c, t in titles[:pages]]
        news = [self.generate_news_article(i) for i in range(articles)]
        return {
            "generated_at": self.now.isoformat(),
            "counts": {"wiki_pages": len(wiki), "news_articles": len(news)},
            "data": {"wiki-pages": wiki, "news-articles": news},
        }


# ── Loading ─────────────────────────────────────────────────

async def load(data: dict[str, Any]) -> None:
    from content import EditorIdentity
    from database import init_db
    from services import get_content_services

    try:
        await init_db()
    except Exception as e:
        print(f"⚠️  Primary store unavailable ({e}); content goes to the local cache")
    services = get_content_services()
    for page in data["data"]["wiki-pages"]:
        editor = EditorIdentity.model_validate(page.pop("createdBy"))
        page.pop("createdAt", None)
        await services.wiki.create(page, editor)
    for article in data["data"]["news-articles"]:
        article.pop("createdAt", None)
        await services.news.create(article, EditorIdentity(uid="seed-admin", display_name="Site Admin"))


# ── CLI ─────────────────────────────────────────────────────

def main():
    parser = argparse.ArgumentParser(description="Vice City Sample Content Generator")
    parser.add_argument("--pages", type=int, default=20, help="Number of wiki pages")
    parser.add_argument("--articles", type=int, default=6, help="Number of news articles")
    parser.add_argument("--output", type=str, default="sample-content.json", help="Output file")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--load", action="store_true", help="Create the content through the repositories")
    args = parser.parse_args()

    generator = SampleContentGenerator(seed=args.seed)
    data = generator.generate_all(args.pages, args.articles)

    if args.load:
        asyncio.run(load(data))
        print(f"✅ Loaded {data['counts']['wiki_pages']} wiki pages and {data['counts']['news_articles']} news articles")
        return

    with open(args.output, "w") as f:
        json.dump(data, f, indent=2, default=str)

    counts = data["counts"]
    print(f"✅ Sample content generated: {args.output}")
    print(f"   Wiki pages: {counts['wiki_pages']}")
    print(f"   News articles: {counts['news_articles']}")


if __name__ == "__main__":
    main()
