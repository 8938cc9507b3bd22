"""
Breadth-first crawl of a Drive folder tree.

One folder and one page at a time, to stay within API rate limits. Any
failed page request aborts the whole crawl: a partial song list must never
replace a previously complete one.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional

from ..errors import ParseError, SyncCancelled
from ..library.models import RawRemoteFile

logger = logging.getLogger(__name__)


@dataclass
class CrawlResult:
    """Everything found under one root."""
    root_folder_id: str
    files: list[RawRemoteFile] = field(default_factory=list)
    visited_folder_ids: set[str] = field(default_factory=set)


class FolderQueue:
    """FIFO of folder ids plus the set already processed."""

    def __init__(self, root_folder_id: str):
        self._pending: deque[str] = deque([root_folder_id])
        self.processed: set[str] = set()

    def __bool__(self) -> bool:
        return bool(self._pending)

    def push(self, folder_id: str):
        self._pending.append(folder_id)

    def next_unprocessed(self) -> Optional[str]:
        """Pop ids until one not yet processed turns up; mark and return it."""
        while self._pending:
            folder_id = self._pending.popleft()
            if folder_id in self.processed:
                continue
            self.processed.add(folder_id)
            return folder_id
        return None


class FolderTraversal:
    """Walks a Drive folder tree collecting audio files."""

    def __init__(self, client, cancel_event: Optional[threading.Event] = None):
        """
        Args:
            client: DriveClient (or anything with list_folders/list_audio_files)
            cancel_event: Checked before every page request
        """
        self.client = client
        self.cancel_event = cancel_event

    def _check_cancelled(self):
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise SyncCancelled("Crawl cancelled")

    def _pages(self, fetch: Callable, folder_id: str) -> Iterator[list[dict]]:
        """Yield item lists page by page until nextPageToken is empty or absent."""
        page_token = None
        seen_tokens = set()

        while True:
            self._check_cancelled()
            page = fetch(folder_id, page_token)
            yield page.items

            page_token = page.next_page_token
            if not page_token:
                return
            if page_token in seen_tokens:
                raise ParseError(f"Listing for {folder_id} repeated page token {page_token!r}")
            seen_tokens.add(page_token)

    def crawl(
        self,
        root_folder_id: str,
        recursive: bool = True,
        progress: Optional[Callable[[int, int], None]] = None,
    ) -> CrawlResult:
        """
        Crawl root_folder_id (and, if recursive, every folder below it).

        Args:
            root_folder_id: Folder to start from
            recursive: Descend into subfolders
            progress: Optional callback(folders_done, files_found)

        Returns:
            CrawlResult with raw files tagged by the folder they sit in

        Raises:
            ApiError/ParseError on any failed page, SyncCancelled if cancelled
        """
        result = CrawlResult(root_folder_id=root_folder_id)
        queue = FolderQueue(root_folder_id)

        while queue:
            folder_id = queue.next_unprocessed()
            if folder_id is None:
                break

            for items in self._pages(self.client.list_audio_files, folder_id):
                for item in items:
                    if not item.get("id"):
                        continue
                    result.files.append(RawRemoteFile.from_api(item, folder_id))

            if recursive:
                for items in self._pages(self.client.list_folders, folder_id):
                    for item in items:
                        subfolder_id = item.get("id")
                        if subfolder_id:
                            queue.push(subfolder_id)

            if progress:
                progress(len(queue.processed), len(result.files))

        result.visited_folder_ids = set(queue.processed)
        logger.debug(
            "Crawled %s: %d folders, %d files",
            root_folder_id, len(result.visited_folder_ids), len(result.files),
        )
        return result
