import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from core.epc_cache import EPCCache
from core.models import LinenRow, TagReading
from workflows import (
    DeliveryWorkflow,
    GroupingWorkflow,
    LinenCleanWorkflow,
    RegisterWorkflow,
    SortingWorkflow,
    WorkflowError,
)
from workflows.grouping import NOT_REGISTERED

from tests.helpers import EPC_A, EPC_B, EPC_C, EPC_UNKNOWN


def tags(*epcs, antenna=1):
    return [TagReading(epc=epc, antenna_id=antenna) for epc in epcs]


@pytest.fixture
def api():
    api = MagicMock()
    api.submit_linen_clean.return_value = {"success": True, "message": "Saved"}
    api.submit_delivery.return_value = {"success": True, "message": "Saved"}
    api.register_rfid.return_value = {"success": True, "message": "Saved"}
    return api


# ----------------------------------------------------------------------
# Shared behaviour
# ----------------------------------------------------------------------

def test_repeated_scans_call_lookup_once(cache, lookup, api):
    workflow = LinenCleanWorkflow(cache, api=api)

    for _ in range(5):
        workflow.handle_tags(tags(EPC_A, EPC_UNKNOWN, EPC_A))

    assert sorted(lookup.calls) == sorted([EPC_A, EPC_UNKNOWN])
    assert [row.epc for row in workflow.get_rows()] == [EPC_A]


def test_remove_row_rescans_from_cache(cache, lookup, api):
    workflow = LinenCleanWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_A))

    assert workflow.remove_row(0)
    assert workflow.get_rows() == []

    workflow.handle_tags(tags(EPC_A))
    assert [row.epc for row in workflow.get_rows()] == [EPC_A]
    assert lookup.calls == [EPC_A]


def test_clear_all_resets_rows_tags_and_cache(cache, lookup, api):
    workflow = LinenCleanWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_A))

    workflow.clear_all()

    assert workflow.get_rows() == []
    assert workflow.processed_tags == set()
    assert len(cache) == 0

    workflow.handle_tags(tags(EPC_A))
    assert lookup.calls == [EPC_A, EPC_A]


def test_scope_change_revalidates_without_lookup(cache, lookup, api):
    workflow = LinenCleanWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_A, EPC_C))
    calls = list(lookup.calls)

    workflow.set_scope("C1")
    rows = {row.epc: row for row in workflow.get_rows()}
    assert rows[EPC_A].is_valid_customer is True
    assert rows[EPC_C].is_valid_customer is False
    assert rows[EPC_C].error_message == "Tag belongs to Hospital C2 (C2)"

    workflow.set_scope("C1", "R2")
    rows = {row.epc: row for row in workflow.get_rows()}
    assert rows[EPC_A].is_valid_customer is False
    assert rows[EPC_A].error_message == "Tag assigned to room Room R1 (R1)"

    workflow.set_scope(None)
    assert workflow.invalid_count() == 0
    assert lookup.calls == calls


def test_executor_runs_lookups(cache, lookup, api):
    with ThreadPoolExecutor(max_workers=4) as executor:
        workflow = LinenCleanWorkflow(cache, api=api, executor=executor)
        workflow.handle_tags(tags(EPC_A, EPC_B, EPC_C, EPC_UNKNOWN))

    assert {row.epc for row in workflow.get_rows()} == {EPC_A, EPC_B, EPC_C}
    assert len(lookup.calls) == 4


def test_summarize_groups_by_room_and_linen(cache, api):
    workflow = LinenCleanWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_A, EPC_B, EPC_C))

    summary = workflow.summarize()

    assert list(summary.columns) == ["room_name", "linen_name", "quantity"]
    assert summary["quantity"].sum() == 3
    assert set(summary["room_name"]) == {"Room R1", "Room R2", "Room R9"}


def test_summarize_empty(cache, api):
    summary = LinenCleanWorkflow(cache, api=api).summarize()
    assert summary.empty
    assert list(summary.columns) == ["room_name", "linen_name", "quantity"]


def test_ui_log_receives_messages(cache, api):
    log = MagicMock()
    workflow = LinenCleanWorkflow(cache, api=api, log=log)

    workflow.handle_tags(tags(EPC_A))

    log.info.assert_called()


# ----------------------------------------------------------------------
# Linen clean
# ----------------------------------------------------------------------

def test_linen_clean_drops_unregistered(cache, api):
    workflow = LinenCleanWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_UNKNOWN, EPC_A))
    assert [row.epc for row in workflow.get_rows()] == [EPC_A]


def test_linen_clean_manual_entry(cache, api):
    workflow = LinenCleanWorkflow(cache, api=api)

    assert workflow.enter_manual_epc(EPC_A)
    assert not workflow.enter_manual_epc(EPC_A)
    assert not workflow.enter_manual_epc(EPC_UNKNOWN)
    assert not workflow.enter_manual_epc("123")
    assert EPC_UNKNOWN not in workflow.processed_tags
    assert len(workflow.get_rows()) == 1


def test_linen_clean_submit(cache, api):
    workflow = LinenCleanWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_A, EPC_B))
    workflow.set_scope("C1")

    result = workflow.submit()

    assert result["success"]
    api.submit_linen_clean.assert_called_once_with({
        "customerId": "C1",
        "linenQty": 2,
        "linens": [
            {"epc": EPC_A, "status_id": 1},
            {"epc": EPC_B, "status_id": 1},
        ],
    })
    assert workflow.get_rows() == []


def test_linen_clean_submit_preconditions(cache, api):
    workflow = LinenCleanWorkflow(cache, api=api)

    with pytest.raises(WorkflowError):
        workflow.submit()

    workflow.set_scope("C1")
    with pytest.raises(WorkflowError):
        workflow.submit()

    workflow.handle_tags(tags(EPC_A, EPC_C))
    with pytest.raises(WorkflowError, match="do not belong"):
        workflow.submit()
    api.submit_linen_clean.assert_not_called()


def test_submit_without_api(cache):
    workflow = LinenCleanWorkflow(cache)
    with pytest.raises(WorkflowError):
        workflow.submit()


# ----------------------------------------------------------------------
# Delivery
# ----------------------------------------------------------------------

def test_delivery_flags_unregistered(cache, api):
    workflow = DeliveryWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_A, EPC_UNKNOWN))

    rows = {row.epc: row for row in workflow.get_rows()}
    assert not rows[EPC_A].loading
    assert rows[EPC_A].linen_name == "Bed Sheet"
    assert rows[EPC_UNKNOWN].is_non_exist
    assert rows[EPC_UNKNOWN].error_message == "EPC not registered"
    assert not workflow.is_data_valid()

    workflow.remove_row(workflow.find_row(EPC_UNKNOWN))
    assert workflow.is_data_valid()


def test_delivery_manual_duplicate(cache, api):
    workflow = DeliveryWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_A))

    assert not workflow.enter_manual_epc(EPC_A)
    rows = workflow.get_rows()
    assert len(rows) == 2
    assert rows[1].is_duplicate
    assert rows[1].error_message == "Duplicate EPC"
    assert not workflow.is_data_valid()


def test_delivery_manual_invalid_format(cache, lookup, api):
    workflow = DeliveryWorkflow(cache, api=api)

    assert not workflow.enter_manual_epc("NOT-HEX!")
    assert lookup.calls == []
    assert workflow.get_rows()[0].is_non_exist


def test_delivery_validate_all(cache, lookup, api):
    workflow = DeliveryWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_A, EPC_C))

    workflow.validate_all("C1")

    assert workflow.valid_count() == 1
    assert workflow.invalid_count() == 1
    assert len(lookup.calls) == 2


def test_delivery_submit(cache, api):
    workflow = DeliveryWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_A, EPC_B))
    workflow.validate_all("C1")

    workflow.submit("Budi", "B 1234 XY")

    payload = api.submit_delivery.call_args[0][0]
    assert payload["customerId"] == "C1"
    assert payload["qty"] == 2
    assert payload["driverName"] == "Budi"
    assert payload["plateNumber"] == "B 1234 XY"
    assert [item["epc"] for item in payload["linens"]] == [EPC_A, EPC_B]
    assert workflow.get_rows() == []


def test_delivery_submit_refuses_invalid_rows(cache, api):
    workflow = DeliveryWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_A, EPC_UNKNOWN))
    workflow.validate_all("C1")

    with pytest.raises(WorkflowError, match="cannot be delivered"):
        workflow.submit("Budi", "B 1234 XY")
    api.submit_delivery.assert_not_called()


def test_delivery_rescan_waits_for_running_lookup(api):
    started = threading.Event()
    release = threading.Event()

    def slow_lookup(epc):
        started.set()
        release.wait(5)
        return []

    executor = ThreadPoolExecutor(max_workers=2)
    workflow = DeliveryWorkflow(EPCCache(slow_lookup), api=api, executor=executor)
    workflow.set_scope("C1")
    workflow.handle_tags(tags(EPC_UNKNOWN))
    assert started.wait(5)

    loading = workflow.get_rows()[0]
    assert loading.loading
    assert not loading.is_valid
    assert not workflow.is_data_valid()
    with pytest.raises(WorkflowError, match="still being checked"):
        workflow.submit("Budi", "B 1234 XY")

    assert workflow.remove_row(0)
    workflow.handle_tags(tags(EPC_UNKNOWN))
    release.set()
    executor.shutdown(wait=True)

    rows = workflow.get_rows()
    assert len(rows) == 1
    assert not rows[0].loading
    assert rows[0].is_non_exist
    assert workflow.valid_count() == 0
    with pytest.raises(WorkflowError):
        workflow.submit("Budi", "B 1234 XY")
    api.submit_delivery.assert_not_called()


def test_delivery_malformed_scan_warns_once(cache, lookup, api):
    log = MagicMock()
    workflow = DeliveryWorkflow(cache, api=api, log=log)

    workflow.handle_tags(tags("XYZ"))
    workflow.handle_tags(tags("XYZ"))

    assert log.warning.call_count == 1
    assert workflow.get_rows() == []
    assert lookup.calls == []


def test_delivery_build_label(cache, api):
    workflow = DeliveryWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_A, EPC_B))

    label = workflow.build_label("Hospital C1", driver_name="Budi")

    assert label.customer == "Hospital C1"
    assert label.room == "Various rooms"
    assert label.total_linen == 2
    assert label.driver_name == "Budi"
    assert {(item.name, item.quantity) for item in label.items} == {
        ("Bed Sheet", 1), ("Pillow Case", 1)
    }


def test_delivery_build_label_single_room(cache, api):
    workflow = DeliveryWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_A))

    assert workflow.build_label("Hospital C1").room == "Room R1"
    assert DeliveryWorkflow(cache, api=api).build_label("").room == "-"


# ----------------------------------------------------------------------
# Grouping
# ----------------------------------------------------------------------

def test_grouping_current_linen_info(cache, api):
    workflow = GroupingWorkflow(cache, api=api)

    workflow.handle_tags(tags(EPC_A))
    info = workflow.current_linen_info
    assert info.epc == EPC_A
    assert info.linen_name == "Bed Sheet"
    assert info.customer_name == "Hospital C1"

    workflow.handle_tags(tags(EPC_UNKNOWN))
    info = workflow.current_linen_info
    assert info.epc == ""
    assert info.linen_name == NOT_REGISTERED
    assert info.room_name == NOT_REGISTERED


def test_grouping_filter_tags(cache, api):
    workflow = GroupingWorkflow(cache, api=api)
    batch = tags(EPC_A, EPC_UNKNOWN, EPC_B)

    assert workflow.filter_tags(batch) == []

    workflow.handle_tags(batch)

    assert [t.epc for t in workflow.filter_tags(batch)] == [EPC_A, EPC_B]
    assert workflow.filter_tags([]) == []


def test_grouping_clear_resets_info(cache, api):
    workflow = GroupingWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_A))

    workflow.clear_all()

    assert workflow.current_linen_info.epc == ""
    assert workflow.current_linen_info.linen_name == ""


# ----------------------------------------------------------------------
# Register
# ----------------------------------------------------------------------

def test_register_accepts_without_lookup(cache, lookup, api):
    workflow = RegisterWorkflow(cache, api=api)

    workflow.handle_tags(tags(EPC_A, EPC_UNKNOWN, EPC_A))
    assert not workflow.process_scanned_epc("XYZ")

    assert [row.epc for row in workflow.get_rows()] == [EPC_A, EPC_UNKNOWN]
    assert lookup.calls == []


def test_register_malformed_scan_warns_once(cache, api):
    log = MagicMock()
    workflow = RegisterWorkflow(cache, api=api, log=log)

    workflow.handle_tags(tags("XYZ"))
    workflow.handle_tags(tags("XYZ"))

    assert log.warning.call_count == 1
    assert not workflow.get_rows()[0].has_epc


def test_register_keeps_one_row(cache, api):
    workflow = RegisterWorkflow(cache, api=api)
    assert len(workflow.get_rows()) == 1
    assert not workflow.remove_row(0)

    workflow.process_scanned_epc(EPC_A)
    workflow.add_row()
    assert workflow.remove_row(1)
    assert not workflow.remove_row(0)


def test_register_form_validation(cache, api):
    workflow = RegisterWorkflow(cache, api=api)
    workflow.process_scanned_epc(EPC_A)

    assert not workflow.is_form_valid("C1", "New sheets", "L1")

    workflow.update_row(0, room_id="R1")
    assert workflow.is_form_valid("C1", "New sheets", "L1")
    assert not workflow.is_form_valid("C1", "New sheets")
    assert not workflow.is_form_valid("", "New sheets", "L1")
    assert not workflow.is_form_valid("C1", "  ", "L1")

    workflow.update_row(0, linen_id="L7")
    assert workflow.is_form_valid("C1", "New sheets")


def test_register_submit(cache, api):
    workflow = RegisterWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_A, EPC_B))
    workflow.update_row(0, room_id="R1")

    workflow.submit("C1", "L1", "New sheets", "LOC1")

    api.register_rfid.assert_called_once_with({
        "customerId": "C1",
        "linenId": "L1",
        "rfidRegisterDescription": "New sheets",
        "locationId": "LOC1",
        "linens": [{"epc": EPC_A, "linenId": "L1", "roomId": "R1"}],
    })
    rows = workflow.get_rows()
    assert len(rows) == 1
    assert not rows[0].has_epc


def test_register_submit_invalid_form(cache, api):
    workflow = RegisterWorkflow(cache, api=api)
    workflow.process_scanned_epc(EPC_A)

    with pytest.raises(WorkflowError):
        workflow.submit("C1", "L1", "New sheets")
    api.register_rfid.assert_not_called()


def test_register_manual_epc_edit(cache, api):
    workflow = RegisterWorkflow(cache, api=api)
    index = workflow.add_row()

    workflow.update_row(index, epc=EPC_B)

    assert EPC_B in workflow.processed_tags
    assert workflow.find_row(EPC_B) == index
    assert workflow.filled_count() == 1


# ----------------------------------------------------------------------
# Sorting
# ----------------------------------------------------------------------

def test_sorting_splits_by_antenna(cache, api):
    workflow = SortingWorkflow(cache, api=api)

    workflow.handle_tags(tags(EPC_A) + tags(EPC_B, EPC_UNKNOWN, antenna=2))

    assert [row.epc for row in workflow.left_rows()] == [EPC_A]
    right = {row.epc: row for row in workflow.right_rows()}
    assert set(right) == {EPC_B, EPC_UNKNOWN}
    assert right[EPC_UNKNOWN].is_non_exist


def test_sorting_tag_moves_between_tables(cache, lookup, api):
    workflow = SortingWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_A))

    workflow.handle_tags(tags(EPC_A, antenna=2))

    assert workflow.left_rows() == []
    assert [row.epc for row in workflow.right_rows()] == [EPC_A]
    assert lookup.calls == [EPC_A]


def test_sorting_uses_latest_reading(cache, api):
    workflow = SortingWorkflow(cache, api=api)
    now = datetime.now()
    batch = [
        TagReading(epc=EPC_A, antenna_id=2, timestamp=now),
        TagReading(epc=EPC_A, antenna_id=1, timestamp=now - timedelta(seconds=2)),
    ]

    workflow.handle_tags(batch)

    assert workflow.left_rows() == []
    assert [row.epc for row in workflow.right_rows()] == [EPC_A]


def test_sorting_tables(cache, api):
    workflow = SortingWorkflow(cache, api=api)
    workflow.handle_tags(tags(EPC_A) + tags(EPC_C, antenna=2))

    tables = workflow.tables()

    assert set(tables) == {1, 2}
    assert isinstance(tables[1][0], LinenRow)
