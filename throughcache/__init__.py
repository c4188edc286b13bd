"""throughcache: a read-through / write-through caching layer.

Sits in front of a system of record, serves reads from memory when it can,
falls through to the backing source on a miss and keeps entries coherent
with writes issued through it.
"""

__version__ = "0.1.0"
