"""
Client side of the declaration tracker: HTTP wrapper, paged lists and the
sync controller that drives them.
"""
from app.client.api import Page, TrackerClient  # noqa: F401
from app.client.pagination import ListState, PagedList  # noqa: F401
from app.client.sync import DeclarationStats, SyncController  # noqa: F401
from app.client.type_registry import DeclarationTypeRegistry, merge_declaration_types  # noqa: F401
