"""Tests for TopologyReconciler."""

from unittest.mock import Mock

import pytest
from google.api_core import exceptions as google_api_exceptions

from chatsink.bucket.reconciler import TopologyReconciler
from chatsink.exceptions import MissingTableCreationError, SchemaUpdateError
from chatsink.objects.reconciliation import OutcomeStatus, PlannedAction
from chatsink.objects.storage_options import FailurePolicy
from chatsink.objects.table_definition import ColumnSpec, TableDefinition, Topology
from tests.fake_table_store import FakeTableStore


def _changed(definition: TableDefinition) -> TableDefinition:
    """Copy of ``definition`` with one extra column."""
    columns = list(definition.columns or []) + [ColumnSpec(name="lang", type="STRING", max_length=2)]
    return definition.model_copy(update={"columns": columns})


def test_creates_missing_tables_in_empty_dataset(
    fake_store: FakeTableStore, topology: Topology
) -> None:
    """Test that base tables are created and the view is deferred in the same pass."""
    reconciler = TopologyReconciler(fake_store)

    report = reconciler.sync(topology)

    assert report.status_of("events") == OutcomeStatus.CREATED
    assert report.status_of("sessions") == OutcomeStatus.CREATED
    assert report.status_of("daily_events") == OutcomeStatus.DEFERRED
    assert set(fake_store.tables) == {"events", "sessions"}
    assert fake_store.tables["events"] == topology.tables[0].to_metadata()
    assert ("create_table", "daily_events") not in fake_store.calls


def test_outcomes_follow_topology_order(fake_store: FakeTableStore, topology: Topology) -> None:
    report = TopologyReconciler(fake_store).sync(topology)
    assert [o.name for o in report.outcomes] == ["events", "sessions", "daily_events"]


def test_single_listing_call_and_no_existence_probes(
    fake_store: FakeTableStore, topology: Topology
) -> None:
    TopologyReconciler(fake_store).sync(topology)

    assert fake_store.count("list_tables") == 1
    assert fake_store.count("table_exists") == 0


def test_deferred_view_is_created_on_next_pass(fake_store: FakeTableStore, topology: Topology) -> None:
    """Test that a deferred view heals itself once its source table exists."""
    reconciler = TopologyReconciler(fake_store)
    reconciler.sync(topology)

    report = reconciler.sync(topology)

    assert report.status_of("daily_events") == OutcomeStatus.CREATED
    assert report.status_of("events") == OutcomeStatus.UNCHANGED
    assert "daily_events" in fake_store.tables


def test_reconcile_up_to_date_topology_is_idempotent(
    synced_store: FakeTableStore, topology: Topology
) -> None:
    """Test that an up-to-date dataset costs one listing and one read per table."""
    report = TopologyReconciler(synced_store).sync(topology)

    assert report.by_status(OutcomeStatus.UNCHANGED) == ["events", "sessions", "daily_events"]
    assert synced_store.count("list_tables") == 1
    assert synced_store.count("get_metadata") == len(topology.tables)
    assert synced_store.mutating_calls == []


def test_type_aliases_match_remote_names() -> None:
    """Test that a table declared with INT64/BOOL is up to date against INTEGER/BOOLEAN."""
    remote = {
        "schema": {
            "fields": [
                {"name": "count", "type": "INTEGER"},
                {"name": "flag", "type": "BOOLEAN", "mode": "REQUIRED"},
            ]
        }
    }
    store = FakeTableStore({"counters": remote})
    definition = TableDefinition(
        name="counters",
        columns=[
            ColumnSpec(name="count", type="INT64"),
            ColumnSpec(name="flag", type="BOOL", mode="REQUIRED"),
        ],
    )

    report = TopologyReconciler(store).sync([definition])

    assert report.status_of("counters") == OutcomeStatus.UNCHANGED
    assert store.mutating_calls == []


def test_changed_table_is_updated_with_merged_metadata(
    synced_store: FakeTableStore, events_definition: TableDefinition
) -> None:
    """Test that remote-only keys survive the update and desired keys win."""
    synced_store.tables["events"]["description"] = "kept"
    desired = _changed(events_definition)

    report = TopologyReconciler(synced_store).reconcile([desired], synced_store.list_tables())

    assert report.status_of("events") == OutcomeStatus.UPDATED
    assert synced_store.count("set_metadata") == 1
    updated = synced_store.tables["events"]
    assert updated["description"] == "kept"
    assert updated["schema"] == desired.to_metadata()["schema"]


def test_update_sends_remote_etag(
    synced_store: FakeTableStore, events_definition: TableDefinition
) -> None:
    store = Mock(wraps=synced_store)
    TopologyReconciler(store).reconcile([_changed(events_definition)], synced_store.list_tables())

    sent = store.set_metadata.call_args[0][1]
    assert sent["etag"] == "abc123"


def test_changed_view_is_dropped_and_recreated(
    synced_store: FakeTableStore, topology: Topology, daily_view_definition: TableDefinition
) -> None:
    """Test that a view whose query changed is deleted and created again."""
    assert daily_view_definition.materialized_view is not None
    view = daily_view_definition.model_copy(
        update={
            "materialized_view": daily_view_definition.materialized_view.model_copy(
                update={"query": "SELECT 2"}
            )
        }
    )
    desired = Topology(tables=[topology.tables[0], topology.tables[1], view])

    report = TopologyReconciler(synced_store).sync(desired)

    assert report.status_of("daily_events") == OutcomeStatus.UPDATED
    calls = [c for c in synced_store.calls if c[1] == "daily_events"]
    assert calls == [
        ("get_metadata", "daily_events"),
        ("delete_table", "daily_events"),
        ("create_table", "daily_events"),
    ]
    assert synced_store.tables["daily_events"]["materializedView"]["query"] == "SELECT 2"
    assert synced_store.count("set_metadata") == 0


def test_recreate_tolerates_view_already_deleted(
    synced_store: FakeTableStore, topology: Topology
) -> None:
    """Test that a view deleted between listing and recreate is still recreated."""
    listing = synced_store.list_tables()
    synced_store.tables["daily_events"] = {"materializedView": {"query": "old", "enableRefresh": True}}
    original_delete = synced_store.delete_table

    def delete_twice(table_name: str, ignore_not_found: bool = True) -> None:
        synced_store.tables.pop(table_name, None)
        original_delete(table_name, ignore_not_found=ignore_not_found)

    synced_store.delete_table = delete_twice  # type: ignore[method-assign]

    report = TopologyReconciler(synced_store).reconcile(topology, listing)

    assert report.status_of("daily_events") == OutcomeStatus.UPDATED
    assert "daily_events" in synced_store.tables


def test_view_with_missing_source_is_deferred_even_if_view_exists(
    daily_view_definition: TableDefinition, events_definition: TableDefinition
) -> None:
    store = FakeTableStore({"daily_events": daily_view_definition.to_metadata()})
    topology = Topology(tables=[events_definition, daily_view_definition])

    report = TopologyReconciler(store).reconcile(topology, store.list_tables())

    assert report.status_of("daily_events") == OutcomeStatus.DEFERRED
    assert ("get_metadata", "daily_events") not in store.calls


@pytest.mark.parametrize("policy", [FailurePolicy.LENIENT, FailurePolicy.STRICT])
def test_missing_table_creation_failure_is_always_fatal(
    fake_store: FakeTableStore, topology: Topology, policy: FailurePolicy
) -> None:
    """Test that failing to create a missing table raises under every policy."""
    fake_store.fail_on["create_table:sessions"] = google_api_exceptions.Forbidden("denied")

    with pytest.raises(MissingTableCreationError) as exc_info:
        TopologyReconciler(fake_store, policy=policy).sync(topology)

    assert exc_info.value.table == "sessions"
    assert isinstance(exc_info.value.__cause__, google_api_exceptions.Forbidden)
    # independent entries were still attempted
    assert "events" in fake_store.tables


def test_update_failures_are_logged_in_lenient_mode(
    synced_store: FakeTableStore,
    events_definition: TableDefinition,
    sessions_definition: TableDefinition,
    mock_log: Mock,
) -> None:
    """Test that failing updates do not raise and log one error per entry."""
    synced_store.fail_on["set_metadata"] = google_api_exceptions.BadRequest("bad schema")
    desired = [_changed(events_definition), _changed(sessions_definition)]

    report = TopologyReconciler(synced_store, log=mock_log).sync(desired)

    assert [o.name for o in report.failed] == ["events", "sessions"]
    assert all(isinstance(o.error, SchemaUpdateError) for o in report.failed)
    assert mock_log.error.call_count == 2


def test_update_failures_raise_in_strict_mode(
    synced_store: FakeTableStore,
    events_definition: TableDefinition,
    sessions_definition: TableDefinition,
) -> None:
    synced_store.fail_on["set_metadata"] = google_api_exceptions.BadRequest("bad schema")
    desired = [_changed(events_definition), _changed(sessions_definition)]

    with pytest.raises(SchemaUpdateError) as exc_info:
        TopologyReconciler(synced_store, policy=FailurePolicy.STRICT).sync(desired)

    assert exc_info.value.table == "events"
    assert synced_store.count("set_metadata") == 2


def test_metadata_read_failure_on_existing_table_is_update_failure(
    synced_store: FakeTableStore, topology: Topology
) -> None:
    synced_store.fail_on["get_metadata:events"] = google_api_exceptions.ServiceUnavailable("down")

    report = TopologyReconciler(synced_store).sync(topology)

    assert report.status_of("events") == OutcomeStatus.FAILED
    assert report.status_of("sessions") == OutcomeStatus.UNCHANGED


def test_listing_failure_propagates(fake_store: FakeTableStore, topology: Topology) -> None:
    fake_store.fail_on["list_tables"] = google_api_exceptions.ServiceUnavailable("down")

    with pytest.raises(google_api_exceptions.ServiceUnavailable):
        TopologyReconciler(fake_store).sync(topology)


def test_plan_does_not_mutate(synced_store: FakeTableStore, topology: Topology) -> None:
    """Test that planning reports actions without calling mutating methods."""
    desired = Topology(
        tables=[
            _changed(topology.tables[0]),
            topology.tables[1],
            topology.tables[2],
            TableDefinition(name="new", columns=[ColumnSpec(name="a", type="STRING")]),
        ]
    )

    plans = TopologyReconciler(synced_store).plan(desired, synced_store.list_tables())

    assert [(p.name, p.action) for p in plans] == [
        ("events", PlannedAction.UPDATE),
        ("sessions", PlannedAction.SKIP),
        ("daily_events", PlannedAction.SKIP),
        ("new", PlannedAction.CREATE),
    ]
    assert synced_store.mutating_calls == []


def test_empty_topology(fake_store: FakeTableStore) -> None:
    report = TopologyReconciler(fake_store).sync([])

    assert report.outcomes == []
    assert fake_store.count("list_tables") == 1


def test_report_succeeded(synced_store: FakeTableStore, topology: Topology) -> None:
    assert TopologyReconciler(synced_store).sync(topology).succeeded is True


def test_report_with_deferred_view_still_succeeds(
    fake_store: FakeTableStore, topology: Topology
) -> None:
    report = TopologyReconciler(fake_store).sync(topology)

    assert report.by_status(OutcomeStatus.DEFERRED) == ["daily_events"]
    assert report.succeeded is True


def test_report_with_lenient_failure_does_not_succeed(
    synced_store: FakeTableStore, events_definition: TableDefinition
) -> None:
    synced_store.fail_on["set_metadata"] = google_api_exceptions.BadRequest("bad schema")

    report = TopologyReconciler(synced_store).sync([_changed(events_definition)])

    assert report.succeeded is False


def _changed_view_topology(topology: Topology, daily_view_definition: TableDefinition) -> Topology:
    assert daily_view_definition.materialized_view is not None
    view = daily_view_definition.model_copy(
        update={
            "materialized_view": daily_view_definition.materialized_view.model_copy(
                update={"query": "SELECT 2"}
            )
        }
    )
    return Topology(tables=[topology.tables[0], topology.tables[1], view])


@pytest.mark.parametrize("failing_call", ["delete_table:daily_events", "create_table:daily_events"])
def test_view_recreate_failure_is_logged_in_lenient_mode(
    synced_store: FakeTableStore,
    topology: Topology,
    daily_view_definition: TableDefinition,
    mock_log: Mock,
    failing_call: str,
) -> None:
    """Test that a failed drop or recreate of an existing view is a lenient failure."""
    synced_store.fail_on[failing_call] = google_api_exceptions.Forbidden("denied")
    desired = _changed_view_topology(topology, daily_view_definition)

    report = TopologyReconciler(synced_store, log=mock_log).sync(desired)

    assert report.status_of("daily_events") == OutcomeStatus.FAILED
    assert isinstance(report.failed[0].error, SchemaUpdateError)
    assert report.status_of("events") == OutcomeStatus.UNCHANGED
    mock_log.error.assert_called_once()


@pytest.mark.parametrize("failing_call", ["delete_table:daily_events", "create_table:daily_events"])
def test_view_recreate_failure_raises_in_strict_mode(
    synced_store: FakeTableStore,
    topology: Topology,
    daily_view_definition: TableDefinition,
    failing_call: str,
) -> None:
    synced_store.fail_on[failing_call] = google_api_exceptions.Forbidden("denied")
    desired = _changed_view_topology(topology, daily_view_definition)

    with pytest.raises(SchemaUpdateError) as exc_info:
        TopologyReconciler(synced_store, policy=FailurePolicy.STRICT).sync(desired)

    assert exc_info.value.table == "daily_events"
    assert isinstance(exc_info.value.__cause__, google_api_exceptions.Forbidden)
