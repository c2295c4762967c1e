"""
bucketing/__init__.py

Public API for the bucketing sub-package.
"""

from .base import BaseAggregator
from .batch import BatchAggregator
from .granularity import EPOCH, Granularity, bucket_key, iter_bucket_keys
from .stream import StreamAggregator

__all__ = [
    "BaseAggregator",
    "BatchAggregator",
    "StreamAggregator",
    "Granularity",
    "bucket_key",
    "iter_bucket_keys",
    "EPOCH",
]
