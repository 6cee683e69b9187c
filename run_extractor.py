#!/usr/bin/env python3
"""
CLI script to extract and analyze article HTML files.

Each file goes through the extraction tiers and the threat analyzer; the
results are written as one JSON list.

Selectors for the primary tier come from --selectors (a JSON object, e.g.
'{"titleSelector": "h1.headline"}') or from the selector cache under the
--source key. With both, the given selectors are also saved to the cache.
"""

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

from pydantic import ValidationError

from article_intel.ai_extractor import AIFieldExtractor
from article_intel.config import PipelineSettings
from article_intel.exceptions import AIExtractionError, ConfigurationError
from article_intel.main import ThreatIntelPipeline
from article_intel.schemas import SelectorConfig
from article_intel.selector_cache import SelectorCache


def load_selectors(args, cache: SelectorCache):
    if args.selectors:
        try:
            selectors = SelectorConfig.model_validate(json.loads(args.selectors))
        except (json.JSONDecodeError, ValidationError) as e:
            sys.exit(f"Invalid --selectors: {e}")
        if args.source:
            cache.put(selectors, source_name=args.source)
        return selectors

    if args.source:
        selectors = cache.get(source_name=args.source)
        if selectors is None:
            print(f"No cached selectors for '{args.source}', using generic extraction")
        return selectors

    return None


def main():
    parser = argparse.ArgumentParser(description="Extract and analyze news articles from HTML files")
    parser.add_argument("files", nargs="+", help="HTML files to process")
    parser.add_argument("--url", "-u", help="Source URL of the page (single file runs)")
    parser.add_argument("--selectors", "-s", help="SelectorConfig as a JSON object")
    parser.add_argument("--source", help="Selector cache key, usually the site domain")
    parser.add_argument("--cache-dir", help="Selector cache directory")
    parser.add_argument("--config", "-c", help="Pipeline settings JSON file")
    parser.add_argument("--ai", action="store_true", help="Enable the LLM field extractor")
    parser.add_argument("--output", "-o", help="Output JSON file")
    args = parser.parse_args()

    try:
        settings = PipelineSettings.load(args.config)
    except ConfigurationError as e:
        sys.exit(f"Configuration error: {e.message}")

    ai_extractor = None
    if args.ai or settings.ai_enabled:
        try:
            ai_extractor = AIFieldExtractor()
        except AIExtractionError as e:
            print(f"AI extraction disabled: {e.message}")

    cache = SelectorCache(args.cache_dir)
    selectors = load_selectors(args, cache)
    pipeline = ThreatIntelPipeline(settings, ai_extractor=ai_extractor)

    results = []
    for filepath in args.files:
        path = Path(filepath)
        print(f"Processing: {path.name}")

        try:
            report = pipeline.process_file(path, source_url=args.url, selectors=selectors)
        except OSError as e:
            results.append({"file": path.name, "status": "error", "error": str(e)})
            print(f"  ✗ Error: {e}")
            continue

        article, analysis = report.article, report.analysis
        results.append({"file": path.name, "status": "success", **report.model_dump(mode="json")})
        print(f"  ✓ {article.extraction_method} ({article.confidence:.1f}): {article.title[:60]}")
        print(f"    severity {analysis.severity.value}, {len(analysis.threats)} threats, "
              f"{len(analysis.products)} products")

    output = json.dumps(results, indent=2, ensure_ascii=False)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"\nSaved to: {args.output}")
    else:
        print("\n" + output)


if __name__ == "__main__":
    main()
