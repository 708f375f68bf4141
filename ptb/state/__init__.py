"""
ptb.state — object store, reference resolution and the write journal.
"""

from .journal import Journal
from .resolver import ReferenceResolver
from .store import (ZERO_ADDRESS, AddressOwner, Immutable, ObjectOwner,
                    ObjectStore, Owner, Shared, StoredObject)

__all__ = [
    "ObjectStore",
    "StoredObject",
    "Owner",
    "AddressOwner",
    "ObjectOwner",
    "Shared",
    "Immutable",
    "ZERO_ADDRESS",
    "ReferenceResolver",
    "Journal",
]
