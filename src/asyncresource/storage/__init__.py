"""Storage adapters for :class:`~asyncresource.resource.LocalResource`.

This package provides the :class:`Storage` protocol and two adapters:

* :class:`FileStorage` -- a native file, written atomically.
* :class:`KeyValueStorage` -- an entry in a :mod:`diskcache` store.
"""

from asyncresource.storage.base import Storage
from asyncresource.storage.file import FileStorage
from asyncresource.storage.keyvalue import KeyValueStorage

__all__ = ["Storage", "FileStorage", "KeyValueStorage"]
