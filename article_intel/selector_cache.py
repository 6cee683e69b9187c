"""
File-based store for per-source selector configurations.

Selector detection is expensive and done once per source; the scraping
layer keeps the result here and hands it back to the orchestrator on every
article from that source. Entries are plain JSON so a wrong selector can be
fixed by editing the file.
"""

import hashlib
import json
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from .logger import get_module_logger
from .schemas import SelectorConfig

logger = get_module_logger("selector_cache")


class SelectorCache:
    """
    SelectorConfig files keyed by source.

    The key is the source name when given (a domain or feed id), otherwise
    a hash of the first 10KB of the page.
    """

    def __init__(self, cache_dir: Optional[Union[str, Path]] = None):
        """
        Args:
            cache_dir: Directory for cache files. Defaults to ./selector_cache/
        """
        self.cache_dir = Path(cache_dir) if cache_dir else Path.cwd() / "selector_cache"
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Selector cache at: {self.cache_dir}")

    def key_for(self, source_name: Optional[str] = None, html: Optional[str] = None) -> str:
        if source_name:
            # Readable file names; keep alnum, dash, underscore, dot
            return "".join(c if c.isalnum() or c in '-_.' else '_' for c in source_name)
        if html is None:
            raise ValueError("source_name or html is required")
        sample = html[:10000]
        return hashlib.md5(sample.encode('utf-8', errors='replace')).hexdigest()[:12]

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    def get(self, source_name: Optional[str] = None, html: Optional[str] = None) -> Optional[SelectorConfig]:
        """
        Load a cached configuration.

        Returns:
            SelectorConfig, or None on a miss or an unreadable entry
        """
        key = self.key_for(source_name, html)
        cache_file = self._path(key)
        if not cache_file.exists():
            logger.debug(f"Cache miss for key: {key}")
            return None

        try:
            data = json.loads(cache_file.read_text(encoding='utf-8'))
            config = SelectorConfig.model_validate(data["selectors"])
        except (OSError, json.JSONDecodeError, KeyError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable cache entry {cache_file}: {e}")
            return None

        logger.info(f"Cache hit for key: {key}")
        return config

    def put(
        self,
        config: SelectorConfig,
        source_name: Optional[str] = None,
        html: Optional[str] = None,
        extra_info: Optional[dict] = None
    ) -> str:
        """
        Store a configuration.

        Returns:
            The cache key used
        """
        key = self.key_for(source_name, html)
        cache_file = self._path(key)
        entry = {
            "cache_key": key,
            "source_name": source_name,
            "created_at": datetime.now().isoformat(),
            # by_alias keeps the camelCase shape other tools write
            "selectors": config.model_dump(by_alias=True, exclude_none=True),
            "extra_info": extra_info or {},
        }
        cache_file.write_text(json.dumps(entry, indent=2), encoding='utf-8')
        logger.info(f"Cached selectors with key: {key} -> {cache_file}")
        return key

    def delete(self, source_name: Optional[str] = None, html: Optional[str] = None) -> bool:
        cache_file = self._path(self.key_for(source_name, html))
        if cache_file.exists():
            cache_file.unlink()
            logger.info(f"Deleted cache entry: {cache_file.name}")
            return True
        return False

    def clear(self) -> int:
        """Remove every entry. Returns the number of files deleted."""
        count = 0
        for cache_file in self.cache_dir.glob("*.json"):
            cache_file.unlink()
            count += 1
        logger.info(f"Cleared {count} cached selector files")
        return count

    def list_cached(self) -> list[dict]:
        entries = []
        for cache_file in sorted(self.cache_dir.glob("*.json")):
            try:
                data = json.loads(cache_file.read_text(encoding='utf-8'))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Skipping unreadable cache entry {cache_file}: {e}")
                continue
            entries.append({
                "cache_key": data.get("cache_key"),
                "source_name": data.get("source_name"),
                "created_at": data.get("created_at"),
                "file": str(cache_file),
            })
        return entries
