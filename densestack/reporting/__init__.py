"""Reporting utilities for densestack."""

from .artifacts import write_report
from .metrics import CsvSink, JsonlSink
from .plots import PlotAdapter

__all__ = ["write_report", "CsvSink", "JsonlSink", "PlotAdapter"]
