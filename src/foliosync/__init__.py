"""
FolioSync - Portfolio CMS Collection Sync

Client-side data layer for a personal-portfolio CMS: a persisted,
stale-while-revalidate collection cache with last-fetch-wins requests and
optimistic create/update/delete.
"""

__version__ = "0.1.0"
__author__ = "FolioSync Team"

from .services import CollectionHandle, use_collection
from .shared.models import Record, Skill

__all__ = [
    "CollectionHandle",
    "Record",
    "Skill",
    "use_collection",
]
