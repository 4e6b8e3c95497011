"""Run report adapters."""

from .yaml_report import report_to_dict, write_report

__all__ = ["report_to_dict", "write_report"]
