"""
Unit tests for resource name derivation.
"""

import pytest

from bot_orchestrator.core.naming import derive_names, instance_name_for, validate_bot_id, volume_name_for
from bot_orchestrator.errors import InvalidBotId


def test_names_use_fixed_prefixes():
    names = derive_names("b1")
    assert names.instance_name == "bot-b1"
    assert names.volume_name == "bot-data-b1"


def test_names_are_deterministic():
    assert derive_names("my-bot_2.0") == derive_names("my-bot_2.0")
    assert instance_name_for("abc") == "bot-abc"
    assert volume_name_for("abc") == "bot-data-abc"


def test_distinct_ids_get_distinct_names():
    ids = ["b1", "b2", "B1", "b-1", "b_1", "b.1", "1b"]
    instance_names = {instance_name_for(i) for i in ids}
    volume_names = {volume_name_for(i) for i in ids}
    assert len(instance_names) == len(ids)
    assert len(volume_names) == len(ids)


@pytest.mark.parametrize("bad_id", ["", "-lead", ".lead", "has space", "a/b", "semi;colon", "ünïcode"])
def test_invalid_ids_are_rejected(bad_id):
    with pytest.raises(InvalidBotId):
        validate_bot_id(bad_id)


def test_invalid_bot_id_is_a_value_error():
    with pytest.raises(ValueError):
        derive_names("a b")
