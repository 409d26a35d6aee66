from cloudx.managers.bucket.bucket import BucketManager

__all__ = ["BucketManager"]
