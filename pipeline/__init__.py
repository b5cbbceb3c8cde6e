"""
Photo sync pipeline: Flickr uploads republished as Ghost posts.

Modules:
    base: Abstract collaborators (PhotoSource, Publisher, CheckpointStore)
    checkpoint: SQLAlchemy-backed checkpoint store
    runner: SyncJob, one idempotent publishing pass
    scheduler: APScheduler integration running the job on an interval

Subpackages:
    sources: Photo sources (Flickr)
    publishers: Publishing platforms (Ghost)

Architecture:
    Each pass reads the checkpoint, lists photos uploaded since then and
    publishes them one at a time. Per-photo status records make reruns
    safe: a photo is published at most once and a failed photo is retried
    on the next pass.

Usage:
    from pipeline.runner import SyncJob
    from pipeline.checkpoint import SQLAlchemyCheckpointStore
    from pipeline.sources.flickr import FlickrPhotoSource
    from pipeline.publishers.ghost import GhostPublisher

Example:
    async with async_session_maker() as session:
        job = SyncJob(
            photo_source=FlickrPhotoSource(),
            publisher=GhostPublisher(),
            store=SQLAlchemyCheckpointStore(session),
        )
        result = await job.run()

    print(f"Published {result['published']} photos")
"""

__all__ = [
    "PhotoSource",
    "Publisher",
    "CheckpointStore",
    "SQLAlchemyCheckpointStore",
    "SyncJob",
    "SyncScheduler",
    "FlickrPhotoSource",
    "GhostPublisher",
]
