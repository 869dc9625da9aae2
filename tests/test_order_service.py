import json
import re
from datetime import datetime

import pytest

from trynex.models import OrderStatus
from trynex.services import OrderError
from trynex.services.order_service import (
    can_transition,
    find_promo_code,
    generate_tracking_id,
    mask_phone,
    normalize_phone,
    parse_order_items,
    parse_status,
    validate_payment_info,
)

ITEMS = [{'product_id': 1, 'name': 'Mug', 'quantity': 2}]


def test_parse_items_accepts_list_and_json():
    assert parse_order_items(ITEMS) == ITEMS
    assert parse_order_items(json.dumps(ITEMS)) == ITEMS


def test_parse_items_double_encoded():
    assert parse_order_items(json.dumps(json.dumps(ITEMS))) == ITEMS


@pytest.mark.parametrize('raw', [None, '', 'not json', '42', '"text"'])
def test_parse_items_garbage_is_empty(raw):
    assert parse_order_items(raw) == []


def test_parse_items_single_object_and_non_dict_entries():
    assert parse_order_items('{"product_id": 3}') == [{'product_id': 3}]
    assert parse_order_items('[1, {"product_id": 3}]') == [{'product_id': 3}]


@pytest.mark.parametrize('raw,expected', [
    ('01712345678', '01712345678'),
    ('+8801712345678', '01712345678'),
    ('8801912345678', '01912345678'),
    ('017-1234 5678', '01712345678'),
    ('01212345678', None),
    ('0171234567', None),
    ('', None),
    (None, None),
])
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_mask_phone():
    assert mask_phone('01712345678') == '017*****678'


def test_tracking_id_format(app):
    tracking_id = generate_tracking_id(datetime(2026, 3, 9))
    assert re.fullmatch(r'TRN260309[A-Z0-9]{6}', tracking_id)


@pytest.mark.parametrize('current,new,allowed', [
    (OrderStatus.PENDING, OrderStatus.PROCESSING, True),
    (OrderStatus.PENDING, OrderStatus.SHIPPED, True),
    (OrderStatus.PENDING, OrderStatus.CANCELLED, True),
    (OrderStatus.PROCESSING, OrderStatus.CANCELLED, True),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED, True),
    (OrderStatus.DELIVERED, OrderStatus.COMPLETED, True),
    (OrderStatus.SHIPPED, OrderStatus.CANCELLED, False),
    (OrderStatus.SHIPPED, OrderStatus.PENDING, False),
    (OrderStatus.CANCELLED, OrderStatus.PENDING, False),
    (OrderStatus.COMPLETED, OrderStatus.DELIVERED, False),
])
def test_status_transitions(current, new, allowed):
    assert can_transition(current, new) is allowed


def test_parse_status():
    assert parse_status(' Shipped ') == OrderStatus.SHIPPED
    with pytest.raises(OrderError):
        parse_status('lost')


def test_payment_info_validation():
    assert validate_payment_info({
        'method': 'Nagad',
        'transaction_id': ' TX1 ',
        'sender_number': '+8801812345678',
    }) == {
        'method': 'nagad',
        'transaction_id': 'TX1',
        'sender_number': '01812345678',
    }
    assert validate_payment_info({'method': 'cash_on_delivery'}) == {
        'method': 'cash_on_delivery'}

    with pytest.raises(OrderError):
        validate_payment_info({'method': 'rocket'})
    with pytest.raises(OrderError):
        validate_payment_info({'method': 'paypal', 'transaction_id': 'x'})
    with pytest.raises(OrderError):
        validate_payment_info(None)


def test_find_promo_code_with_lock(make_promo):
    promo = make_promo(code='SAVE10')
    assert find_promo_code(' save10 ', lock=True) is promo
    assert find_promo_code('missing', lock=True) is None
    assert find_promo_code('') is None
