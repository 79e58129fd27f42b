"""
Workflow module for the Linen RFID Dashboard.

This module contains the scanning workflows built on the EPC cache:
- Linen Clean
- Delivery
- Grouping
- RFID Registration
- Sorting
"""

from .base import BaseWorkflow, WorkflowError
from .linen_clean import LinenCleanWorkflow
from .delivery import DeliveryWorkflow
from .grouping import GroupingWorkflow, LinenInfo
from .register import RegisterWorkflow
from .sorting import SortingWorkflow

__all__ = [
    'BaseWorkflow',
    'WorkflowError',
    'LinenCleanWorkflow',
    'DeliveryWorkflow',
    'GroupingWorkflow',
    'LinenInfo',
    'RegisterWorkflow',
    'SortingWorkflow',
]
