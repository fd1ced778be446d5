from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Optional

from rich import print

from seo_audit.config import Settings, configure_logging, get_settings
from seo_audit.engine.analyzer import analyze
from seo_audit.engine.fetcher import Fetcher


async def analyze_one(
    url: str,
    out_path: str = "outputs/report.json",
    fetcher: Optional[Fetcher] = None,
    settings: Optional[Settings] = None,
) -> dict:
    settings = settings or get_settings()
    fetcher = fetcher or Fetcher(user_agent=settings.user_agent, default_timeout=settings.primary_timeout_seconds)
    async with fetcher:
        result = await analyze(url, fetcher, settings)

    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(result, f, ensure_ascii=False, indent=2)

    scores = result["analysis"]["scores"]
    print("[green]SEO audit OK[/green]")
    print(f"Saved: {out_path}")
    print(
        f"Scores: technical {scores['technical']} | content {scores['content']} | "
        f"performance {scores['performance']}"
    )
    print(f"[bold]Overall score: {scores['overall']}[/bold]")
    print(f"Recommendations: {len(result['recommendations'])}")
    for item in result["recommendations"]:
        print(f" - {item}")
    return result


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run a single-page SEO audit.")
    parser.add_argument("url")
    parser.add_argument("--out", default="outputs/report.json")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)
    asyncio.run(analyze_one(args.url, args.out, settings=settings))


if __name__ == "__main__":
    main()
