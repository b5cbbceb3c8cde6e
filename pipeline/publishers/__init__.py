from pipeline.publishers.ghost import GhostPublisher

__all__ = ["GhostPublisher"]
