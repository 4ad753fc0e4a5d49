"""Reference document loading."""

from __future__ import annotations

from collections import OrderedDict

import aiofiles
import aiofiles.os

from utils import get_logger

from .errors import ReferenceNotFound, ReferenceUnreadable
from .types import ReferenceContent

logger = get_logger(__name__)


class ReferenceLoader:
    """Read reference documents as UTF-8 text.

    With caching enabled, content is kept per path and re-read whenever the
    file's modification time or size changes. At most ``max_entries`` paths
    are cached; the least recently used one is dropped first.
    """

    DEFAULT_MAX_ENTRIES = 64

    def __init__(self, cache: bool = False, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self.cache_enabled = cache
        self.max_entries = max_entries
        self._cache: OrderedDict[str, tuple[tuple[int, int], str]] = OrderedDict()

    async def load(self, path: str) -> ReferenceContent:
        try:
            stat = await aiofiles.os.stat(path)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise ReferenceNotFound(path) from e
        except PermissionError as e:
            raise ReferenceUnreadable(path, "permission denied") from e
        except OSError as e:
            raise ReferenceUnreadable(path, e.strerror or str(e)) from e

        signature = (stat.st_mtime_ns, stat.st_size)
        if self.cache_enabled:
            cached = self._cache.get(path)
            if cached is not None and cached[0] == signature:
                self._cache.move_to_end(path)
                logger.debug("Reference cache hit: %s", path)
                return ReferenceContent(path=path, text=cached[1])

        try:
            async with aiofiles.open(path, encoding="utf-8") as handle:
                text = await handle.read()
        except FileNotFoundError as e:
            raise ReferenceNotFound(path) from e
        except IsADirectoryError as e:
            raise ReferenceUnreadable(path, "is a directory") from e
        except PermissionError as e:
            raise ReferenceUnreadable(path, "permission denied") from e
        except UnicodeDecodeError as e:
            raise ReferenceUnreadable(path, f"not valid UTF-8: {e.reason}") from e
        except OSError as e:
            raise ReferenceUnreadable(path, e.strerror or str(e)) from e

        if self.cache_enabled:
            self._remember(path, signature, text)
        logger.debug("Loaded reference %s (%d chars)", path, len(text))
        return ReferenceContent(path=path, text=text)

    def _remember(self, path: str, signature: tuple[int, int], text: str) -> None:
        self._cache[path] = (signature, text)
        self._cache.move_to_end(path)
        while len(self._cache) > self.max_entries:
            evicted, _ = self._cache.popitem(last=False)
            logger.debug("Reference cache evicted: %s", evicted)

    def clear(self) -> None:
        self._cache.clear()
