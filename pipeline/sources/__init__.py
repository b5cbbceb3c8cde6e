from pipeline.sources.flickr import FlickrPhotoSource

__all__ = ["FlickrPhotoSource"]
