"""Tests for keypair generation and address derivation."""
import re

import pytest

from custody.keys import SECP256K1_N, KeyGenerator, derive_address

ADDRESS_RE = re.compile(r'^0x[0-9a-fA-F]{40}$')
PRIVATE_KEY_RE = re.compile(r'^0x[0-9a-f]{64}$')


@pytest.fixture
def pair():
    return KeyGenerator().generate()


def test_private_key_format(pair):
    assert PRIVATE_KEY_RE.match(pair.private_key)
    assert 0 < int(pair.private_key, 16) < SECP256K1_N


def test_address_format(pair):
    assert ADDRESS_RE.match(pair.address)


def test_address_derived_from_private_key(pair):
    assert derive_address(pair.private_key) == pair.address


def test_known_vector():
    # Private key 1 maps to the well-known generator-point address.
    key = '0x' + '00' * 31 + '01'
    assert derive_address(key) == '0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf'


def test_keys_are_fresh():
    generator = KeyGenerator()
    keys = {generator.generate().private_key for _ in range(20)}
    assert len(keys) == 20


def test_repr_hides_private_key(pair):
    assert pair.private_key not in repr(pair)
    assert pair.address in repr(pair)
