import keyvalue.memory as memory_mod
from core.models import NULL, Present
from keyvalue.memory import estimate_entry_memory, value_byte_length


def test_value_byte_length_null_is_zero():
    assert value_byte_length(NULL) == 0
    assert value_byte_length(Present(b"")) == 0
    assert value_byte_length(Present(b"abc")) == 3


def test_estimate_uses_overhead_key_chars_and_value():
    size = estimate_entry_memory("key1", Present(b"hello"))
    assert size == memory_mod.ENTRY_OVERHEAD + 4 * memory_mod.BYTES_PER_CHAR + 5


def test_estimate_default_constants():
    assert memory_mod.ENTRY_OVERHEAD == 100
    assert memory_mod.BYTES_PER_CHAR == 2
    assert estimate_entry_memory("ab", NULL) == 104


def test_estimate_with_pinned_constants(monkeypatch):
    monkeypatch.setattr(memory_mod, "ENTRY_OVERHEAD", 16)
    monkeypatch.setattr(memory_mod, "BYTES_PER_CHAR", 2)

    assert estimate_entry_memory("ab", Present(bytes(10))) == 30


def test_estimate_counts_characters_not_utf8_bytes():
    # "é" is one character, two UTF-8 bytes
    assert estimate_entry_memory("é", NULL) == estimate_entry_memory("e", NULL)
