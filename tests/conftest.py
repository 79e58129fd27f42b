import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.epc_cache import EPCCache

from tests.helpers import EPC_A, EPC_B, EPC_C, FakeLookup, make_record


@pytest.fixture
def lookup():
    return FakeLookup({
        EPC_A: make_record(EPC_A, "C1", "R1", "Bed Sheet"),
        EPC_B: make_record(EPC_B, "C1", "R2", "Pillow Case"),
        EPC_C: make_record(EPC_C, "C2", "R9", "Towel"),
    })


@pytest.fixture
def cache(lookup):
    return EPCCache(lookup)
