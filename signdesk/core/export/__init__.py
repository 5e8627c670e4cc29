from .export_worker import STATUS_EXPORTING, ExportWorker

__all__ = ['ExportWorker', 'STATUS_EXPORTING']
