"""Business services for stock-recount documents."""

from recount_service.services.document_service import DocumentService
from recount_service.services.export_service import ExportService
from recount_service.services.import_service import ImportService
from recount_service.services.merge_service import MergeService
from recount_service.services.update_service import UpdateService
from recount_service.services.workflow_service import WorkflowService

__all__ = [
    "DocumentService",
    "ExportService",
    "ImportService",
    "MergeService",
    "UpdateService",
    "WorkflowService",
]
