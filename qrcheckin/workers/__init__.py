# =======================================================================================
# qrcheckin/workers/__init__.py - Workers Package
# =======================================================================================
from .scanner_worker import ScannerWorker

__all__ = ["ScannerWorker"]
