"""
GUI tabs for the Linen RFID Dashboard.
"""

from .workflow_tab import WorkflowTab, LinenCleanTab, DeliveryTab
from .grouping_tab import GroupingTab
from .register_tab import RegisterTab
from .sorting_tab import SortingTab

__all__ = [
    'WorkflowTab',
    'LinenCleanTab',
    'DeliveryTab',
    'GroupingTab',
    'RegisterTab',
    'SortingTab'
]
