# ============================================================================
# File: pipeline/runner.py
# Description: Idempotent photo publishing pass with per-photo failure isolation
# ============================================================================
"""
Sync Job - publishes newly uploaded photos as posts, exactly once each.

One pass:
1. Read the checkpoint and compute the next one
2. List photos uploaded since the checkpoint
3. For each photo without a successful status: download, upload, reconcile
   tags, create the post, then record the outcome
4. Advance the checkpoint

A failing photo is recorded with ``success=False`` and retried on the next
run; it never aborts the batch or holds back the checkpoint.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Any, List, Optional, Callable, Union
import logging

from pipeline.base import PhotoSource, Publisher, CheckpointStore
from schemas.photo import Photo, PhotoStatus, PostDraft
from models.base import CheckpointPolicy, RunStatus
from core.config import settings
from core.exceptions import SyncException

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def describe_error(error: Exception) -> str:
    """Human-readable failure text stored on the photo status"""
    if isinstance(error, SyncException):
        if error.original_exception is not None:
            return f"{error.message}: {error.original_exception}"
        return error.message
    return str(error) or type(error).__name__


class SyncJob:
    """
    Photo-to-post synchronization pass.

    Responsibilities:
    - Decide the scan window from the stored checkpoint
    - Skip photos already published (per-photo status is the idempotence guard)
    - Publish the rest sequentially, capturing each failure
    - Advance the checkpoint once per run
    """

    def __init__(
        self,
        photo_source: PhotoSource,
        publisher: Publisher,
        store: CheckpointStore,
        fixed_tag: Optional[str] = None,
        checkpoint_policy: Union[CheckpointPolicy, str, None] = None,
        safety_margin: Optional[timedelta] = None,
        initial_check_time: Optional[int] = None,
        scratch_dir: Union[str, Path, None] = None,
        clock: Callable[[], datetime] = _utcnow
    ):
        self.photo_source = photo_source
        self.publisher = publisher
        self.store = store
        self.fixed_tag = fixed_tag if fixed_tag is not None else settings.FIXED_TAG
        self.checkpoint_policy = CheckpointPolicy(checkpoint_policy or settings.CHECKPOINT_POLICY)
        self.safety_margin = (
            safety_margin if safety_margin is not None
            else timedelta(hours=settings.CHECKPOINT_MARGIN_HOURS)
        )
        self.initial_check_time = (
            initial_check_time if initial_check_time is not None
            else settings.INITIAL_CHECK_TIME
        )
        self.scratch_dir = Path(scratch_dir or settings.SCRATCH_DIR)
        self.clock = clock

    # --------------------------------------------------
    # Helpers
    # --------------------------------------------------

    def compute_next_check_time(self, now: datetime) -> int:
        """Checkpoint to persist at the end of a run started at ``now``"""
        if self.checkpoint_policy == CheckpointPolicy.SAFETY_MARGIN:
            now = now - self.safety_margin
        return int(now.timestamp())

    def build_tag_list(self, photo: Photo) -> List[str]:
        """Photo tag tokens plus the fixed tag, deduplicated and sorted"""
        tags = set(photo.tag_tokens())
        if self.fixed_tag:
            tags.add(self.fixed_tag)
        return sorted(tags)

    @staticmethod
    def build_post(photo: Photo, image_url: str, tags: List[str]) -> PostDraft:
        return PostDraft(
            title=photo.title,
            html=f"<p>{photo.description}</p>",
            status="published",
            tags=tags,
            feature_image=image_url,
            published_at=photo.uploaded_at.isoformat().replace("+00:00", "Z"),
        )

    def _remove_scratch_file(self, path: Path, photo: Photo):
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not delete temporary file {path} for photo {photo.id}: {e}")

    async def _ensure_tags(self, tags: List[str]):
        existing = set(await self.publisher.list_tag_names())
        for tag in tags:
            if tag not in existing:
                logger.info(f"Creating tag '{tag}'")
                await self.publisher.create_tag(name=tag, slug=tag)

    # --------------------------------------------------
    # Per-photo publish
    # --------------------------------------------------

    async def publish_photo(self, photo: Photo) -> Dict[str, Any]:
        """
        Download, upload, tag and post a single photo.

        The local copy is deleted once the upload attempt finishes, whatever
        its outcome.

        Returns:
            The created post as returned by the publisher
        """
        logger.info(f"Downloading {photo.id} ({photo.title})")
        path = await self.photo_source.download_photo(photo, self.scratch_dir)

        try:
            logger.info(f"Uploading {photo.id} ({photo.title})")
            image_url = await self.publisher.upload_image(path)
        finally:
            self._remove_scratch_file(path, photo)

        tags = self.build_tag_list(photo)
        await self._ensure_tags(tags)

        logger.info(f"Creating post for {photo.id} ({photo.title})")
        post = self.build_post(photo, image_url, tags)
        return await self.publisher.create_post(post, source="html")

    # --------------------------------------------------
    # Run
    # --------------------------------------------------

    async def run(self) -> Dict[str, Any]:
        """
        Execute one sync pass.

        Returns:
            Dictionary with run statistics:
            - status: "success" or "partial_success"
            - checkpoint_before / checkpoint_after: unix timestamps
            - photos_found, published, skipped, failed: counts
            - error_details: per-photo failures (if any)

        Raises:
            CheckpointError: If the checkpoint store cannot be read or written
            PhotoSourceError: If listing photos fails
        """
        # --------------------------------------------------
        # STEP 1: WINDOW
        # --------------------------------------------------
        last_check_time = await self.store.get_last_check_time()
        if last_check_time is None:
            logger.warning(
                f"No checkpoint stored, scanning from initial check time {self.initial_check_time}"
            )
            last_check_time = self.initial_check_time

        next_check_time = self.compute_next_check_time(self.clock())

        logger.info(
            "Fetching photos posted since "
            f"{datetime.fromtimestamp(last_check_time, tz=timezone.utc).isoformat()}"
        )

        # --------------------------------------------------
        # STEP 2: CANDIDATES
        # --------------------------------------------------
        photos = await self.photo_source.list_photos_since(last_check_time)
        logger.info(f"Fetched {len(photos)} candidate photos")

        self.scratch_dir.mkdir(parents=True, exist_ok=True)

        # --------------------------------------------------
        # STEP 3: PUBLISH, ONE PHOTO AT A TIME
        # --------------------------------------------------
        published = 0
        skipped = 0
        error_details = []

        for photo in photos:
            current_status = await self.store.get_photo_status(photo.id)
            if current_status is not None and current_status.success:
                logger.info(f"Skipping {photo.id} ({photo.title}), already published")
                skipped += 1
                continue

            try:
                await self.publish_photo(photo)
                status = PhotoStatus.from_photo(photo, success=True)
                published += 1
            except Exception as e:
                status = PhotoStatus.from_photo(photo, success=False, error=describe_error(e))
                error_detail = {
                    "photo_id": photo.id,
                    "error_type": type(e).__name__,
                    "error_message": status.error
                }
                error_details.append(error_detail)
                logger.error(
                    f"Publishing failed for {photo.id} ({photo.title}): {status.error}",
                    extra={"error_context": e.to_dict() if isinstance(e, SyncException) else error_detail}
                )

            await self.store.set_photo_status(status)

        # --------------------------------------------------
        # STEP 4: ADVANCE CHECKPOINT
        # --------------------------------------------------
        await self.store.set_last_check_time(next_check_time)

        result = {
            "status": (RunStatus.SUCCESS if not error_details else RunStatus.PARTIAL).value,
            "checkpoint_before": last_check_time,
            "checkpoint_after": next_check_time,
            "photos_found": len(photos),
            "published": published,
            "skipped": skipped,
            "failed": len(error_details),
        }
        if error_details:
            result["error_details"] = error_details

        logger.info(
            f"Sync run completed: {result['status']} - Found: {len(photos)}, "
            f"Published: {published}, Skipped: {skipped}, Failed: {len(error_details)}"
        )

        return result
