"""Application services."""

from workdesk.application.services.activity_reconciler import ActivityReconciler
from workdesk.application.services.display_name_cache import DisplayNameCache
from workdesk.application.services.record_update_pipeline import RecordUpdatePipeline
from workdesk.application.services.reference_resolver import ReferenceResolver
from workdesk.application.services.session_service import SessionService
from workdesk.application.services.work_items import WorkItemService

__all__ = [
    "ActivityReconciler",
    "DisplayNameCache",
    "RecordUpdatePipeline",
    "ReferenceResolver",
    "SessionService",
    "WorkItemService",
]
