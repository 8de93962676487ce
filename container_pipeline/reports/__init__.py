from .reporter import log_summary, save_report

__all__ = ["log_summary", "save_report"]
