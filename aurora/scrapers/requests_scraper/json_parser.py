import json

from aurora.core.errors import ParseError
from aurora.core.selection import RecordKind
from aurora.data.records import CardData, CardTransaction, NetData, StudentData


def _load(payload, kind):
    """Decode a JSON document; a one-element list is unwrapped."""
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise ParseError(kind, f"invalid JSON: {e}") from e

    if isinstance(data, list):
        if not data:
            raise ParseError(kind, "empty document")
        data = data[0]
    if not isinstance(data, dict):
        raise ParseError(kind, f"expected an object, got {type(data).__name__}")
    return data


def _require(data, key, kind):
    value = data.get(key)
    if value in (None, ''):
        raise ParseError(kind, f"missing field {key}")
    return value


def _number(value, kind, key):
    if value in (None, ''):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ParseError(kind, f"{key} is not a number: {value!r}") from None


def json2student(payload):
    kind = RecordKind.STUDENT
    data = _load(payload, kind)
    return StudentData(
        student_id=str(_require(data, 'ID_NUMBER', kind)),
        name=_require(data, 'USER_NAME', kind),
        gender=data.get('USER_SEX') or '',
        college=data.get('UNIT_NAME') or '',
        major=data.get('MAJOR_NAME') or '',
        class_name=data.get('CLASS_NAME') or '',
        identity=data.get('ID_TYPE') or ''
    )


def json2net(payload):
    kind = RecordKind.NETWORK
    data = _load(payload, kind)
    return NetData(
        balance=_number(_require(data, 'fare', kind), kind, 'fare'),
        used_flow=str(data.get('usedflow') or ''),
        used_time=str(data.get('usedtime') or ''),
        package=data.get('package') or ''
    )


def json2card(payload):
    """Campus card balance plus the recent transactions the portal lists."""
    kind = RecordKind.CARD
    data = _load(payload, kind)
    transactions = []
    for item in data.get('list') or []:
        transactions.append(CardTransaction(
            time=item.get('time', ''),
            place=item.get('place', ''),
            amount=_number(item.get('amount'), kind, 'amount'),
            balance=_number(item['balance'], kind, 'balance') if item.get('balance') not in (None, '') else None
        ))
    return CardData(
        balance=_number(_require(data, 'balance', kind), kind, 'balance'),
        transactions=transactions
    )
