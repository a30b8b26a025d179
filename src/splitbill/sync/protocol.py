"""JSON request/response envelopes and the method dispatch table.

Every WebSocket frame carries one JSON object::

    request   {"id": 7, "method": "addPerson", "params": ["Alice"]}
    success   {"id": 7, "ok": true, "result": 0}
    failure   {"id": 7, "ok": false, "error": {"code": "...", "message": "..."}}

Snapshots cross the wire with camelCase keys (``totalPercentage``,
``billAmount``); :func:`snapshot_to_wire` and :func:`snapshot_from_wire`
translate to and from the Python shape.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

from splitbill.core.bill import BillSnapshot, Participant, make_participant, share_amount
from splitbill.storage.store import BillStore

logger = logging.getLogger(__name__)

BAD_REQUEST = "BAD_REQUEST"
UNKNOWN_METHOD = "UNKNOWN_METHOD"
INVALID_PARAMS = "INVALID_PARAMS"
INTERNAL = "INTERNAL"


class ProtocolError(Exception):
    """A frame that cannot be parsed or dispatched."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


# ---------------------------------------------------------------------------
# Snapshot translation
# ---------------------------------------------------------------------------


def snapshot_to_wire(snapshot: BillSnapshot, *, with_amounts: bool = False) -> dict:
    """Python snapshot -> wire dict.

    With *with_amounts*, each person also gets the dollar ``amount`` they owe.
    That key is informational and not part of the store protocol.
    """
    people = [dict(p) for p in snapshot["people"]]
    if with_amounts:
        for person in people:
            person["amount"] = share_amount(snapshot["bill_amount"], person["percentage"])
    return {
        "people": people,
        "totalPercentage": snapshot["total_percentage"],
        "billAmount": snapshot["bill_amount"],
    }


def snapshot_from_wire(data: dict) -> BillSnapshot:
    """Wire dict -> Python snapshot.  A missing ``billAmount`` means unset.

    Raises:
        ProtocolError: If required keys are missing or malformed.
    """
    try:
        people: list[Participant] = [
            make_participant(
                int(p["id"]),
                p.get("name", ""),
                float(p.get("percentage", 0)),
                p.get("avatar"),
            )
            for p in data["people"]
        ]
        bill_amount = data.get("billAmount")
        return {
            "people": people,
            "total_percentage": float(data["totalPercentage"]),
            "bill_amount": None if bill_amount is None else float(bill_amount),
        }
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ProtocolError(BAD_REQUEST, f"Malformed snapshot: {exc}") from None


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


def encode_request(request_id: int, method: str, params: list) -> str:
    return json.dumps({"id": request_id, "method": method, "params": params})


def encode_result(request_id: int | None, result: object) -> str:
    return json.dumps({"id": request_id, "ok": True, "result": result})


def encode_error(request_id: int | None, code: str, message: str) -> str:
    return json.dumps(
        {"id": request_id, "ok": False, "error": {"code": code, "message": message}}
    )


def decode_request(raw: str | bytes) -> tuple[int | None, str, list]:
    """Parse a request frame into ``(id, method, params)``.

    Raises:
        ProtocolError: With code ``BAD_REQUEST`` for anything malformed.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ProtocolError(BAD_REQUEST, f"Invalid JSON: {exc}") from None
    if not isinstance(data, dict):
        raise ProtocolError(BAD_REQUEST, "Request must be a JSON object")

    request_id = data.get("id")
    if request_id is not None and (isinstance(request_id, bool) or not isinstance(request_id, int)):
        raise ProtocolError(BAD_REQUEST, "Request id must be an integer")
    method = data.get("method")
    if not isinstance(method, str) or not method:
        raise ProtocolError(BAD_REQUEST, "Request is missing 'method'")
    params = data.get("params", [])
    if not isinstance(params, list):
        raise ProtocolError(BAD_REQUEST, "'params' must be a list")
    return request_id, method, params


def decode_response(raw: str | bytes) -> dict:
    """Parse a response frame.  Returns the envelope dict unchanged.

    Raises:
        ProtocolError: If the frame is not a response envelope.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ProtocolError(BAD_REQUEST, f"Invalid JSON: {exc}") from None
    if not isinstance(data, dict) or not isinstance(data.get("ok"), bool):
        raise ProtocolError(BAD_REQUEST, "Response must be an object with 'ok'")
    if not data["ok"] and not isinstance(data.get("error"), dict):
        raise ProtocolError(BAD_REQUEST, "Error response is missing 'error'")
    return data


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def _get_bill_details(store: BillStore) -> dict:
    return snapshot_to_wire(store.get_bill_details())


def _set_bill_amount(store: BillStore, amount: float) -> None:
    store.set_bill_amount(amount)


def _add_person(store: BillStore, name: str) -> int:
    return store.add_person(name)


def _remove_person(store: BillStore, person_id: int) -> bool:
    return store.remove_person(person_id)


def _update_person(
    store: BillStore,
    person_id: int,
    name: str,
    percentage: float,
    avatar: str | None = None,
) -> bool:
    return store.update_person(person_id, name, percentage, avatar)


def _batch_update_people(store: BillStore, updates: list) -> bool:
    if not isinstance(updates, list):
        raise ValueError("batchUpdatePeople expects a list of updates")
    return store.batch_update_people(updates)


def _update_percentage(store: BillStore, person_id: int, percentage: float) -> bool:
    return store.update_percentage(person_id, percentage)


def _batch_update_percentages(store: BillStore, updates: list) -> bool:
    if not isinstance(updates, list):
        raise ValueError("batchUpdatePercentages expects a list of updates")
    return store.batch_update_percentages(updates)


METHODS: dict[str, Callable[..., object]] = {
    "getBillDetails": _get_bill_details,
    "setBillAmount": _set_bill_amount,
    "addPerson": _add_person,
    "removePerson": _remove_person,
    "updatePerson": _update_person,
    "batchUpdatePeople": _batch_update_people,
    "updatePercentage": _update_percentage,
    "batchUpdatePercentages": _batch_update_percentages,
}


def dispatch(store: BillStore, method: str, params: list) -> object:
    """Invoke *method* on *store* and return a JSON-ready result.

    Raises:
        ProtocolError: ``UNKNOWN_METHOD`` or ``INVALID_PARAMS``.
    """
    handler = METHODS.get(method)
    if handler is None:
        raise ProtocolError(UNKNOWN_METHOD, f"Unknown method: {method}")
    try:
        return handler(store, *params)
    except TypeError as exc:
        raise ProtocolError(INVALID_PARAMS, f"{method}: {exc}") from None
    except ValueError as exc:
        raise ProtocolError(INVALID_PARAMS, f"{method}: {exc}") from None


def handle_frame(store: BillStore, raw: str | bytes) -> str:
    """Decode one request frame, dispatch it, and encode the response.

    Never raises for bad input; every failure becomes an error envelope.
    """
    try:
        request_id, method, params = decode_request(raw)
    except ProtocolError as exc:
        logger.warning("splitbill: bad request: %s", exc.message)
        return encode_error(None, exc.code, exc.message)
    try:
        result = dispatch(store, method, params)
    except ProtocolError as exc:
        return encode_error(request_id, exc.code, exc.message)
    except Exception as exc:
        logger.exception("splitbill: %s failed", method)
        return encode_error(request_id, INTERNAL, str(exc))
    return encode_result(request_id, result)
