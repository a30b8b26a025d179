"""Hypothesis property-based tests for the bill store."""

from __future__ import annotations

from hypothesis import given, settings, strategies as st

from splitbill.storage.store import BillStore

# ---------------------------------------------------------------------------
# Reusable strategies
# ---------------------------------------------------------------------------

names = st.text(max_size=12)
percentages = st.floats(min_value=0, max_value=100, allow_nan=False, allow_infinity=False)
amounts = st.floats(allow_nan=False, allow_infinity=False, min_value=-1e9, max_value=1e9)
ids = st.integers(min_value=0, max_value=30)

operations = st.one_of(
    st.tuples(st.just("add"), names),
    st.tuples(st.just("remove"), ids),
    st.tuples(st.just("percent"), ids, percentages),
    st.tuples(st.just("update"), ids, names, percentages),
    st.tuples(st.just("batch"), st.lists(st.tuples(ids, percentages), max_size=5)),
    st.tuples(st.just("amount"), amounts),
)


def _apply(store: BillStore, op: tuple) -> None:
    kind = op[0]
    if kind == "add":
        store.add_person(op[1])
    elif kind == "remove":
        store.remove_person(op[1])
    elif kind == "percent":
        store.update_percentage(op[1], op[2])
    elif kind == "update":
        store.update_person(op[1], op[2], op[3])
    elif kind == "batch":
        store.batch_update_percentages(op[1])
    elif kind == "amount":
        store.set_bill_amount(op[1])


@given(st.lists(names, max_size=40))
@settings(max_examples=50)
def test_add_person_ids_are_distinct(batch):
    store = BillStore()
    returned = [store.add_person(name) for name in batch]
    assert len(set(returned)) == len(returned)
    assert returned == list(range(len(batch)))


@given(st.lists(operations, max_size=40))
@settings(max_examples=100)
def test_total_percentage_always_matches_people(ops):
    store = BillStore()
    for op in ops:
        _apply(store, op)
        details = store.get_bill_details()
        assert details["total_percentage"] == sum(p["percentage"] for p in details["people"])


@given(st.lists(operations, max_size=40))
@settings(max_examples=100)
def test_ids_are_never_reused(ops):
    store = BillStore()
    seen: set[int] = set()
    for op in ops:
        if op[0] == "add":
            new_id = store.add_person(op[1])
            assert new_id not in seen
            seen.add(new_id)
        else:
            _apply(store, op)
    people_ids = [p["id"] for p in store.get_bill_details()["people"]]
    assert people_ids == sorted(people_ids)
    assert set(people_ids) <= seen


@given(amounts)
def test_bill_amount_round_trip(amount):
    store = BillStore()
    store.set_bill_amount(amount)
    assert store.get_bill_details()["bill_amount"] == amount
