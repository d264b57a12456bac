"""
Adapters for reading workbook files.

Implements the adapter pattern for the decoding engines:
- OpenpyxlAdapter: OOXML workbooks (.xlsx/.xlsm), formula text preserved
- CalamineAdapter: legacy and other containers (.xls/.xlsb/.ods) via python-calamine
- WorkbookAccessor: signature-based engine selection and scoped open/close
"""

from xlquery.adapters.calamine_adapter import CalamineAdapter
from xlquery.adapters.openpyxl_adapter import OpenpyxlAdapter
from xlquery.adapters.workbook_accessor import ContainerFormat, WorkbookAccessor

__all__ = [
    "CalamineAdapter",
    "OpenpyxlAdapter",
    "WorkbookAccessor",
    "ContainerFormat",
]
