"""Keypair generation for custodial wallets (secp256k1, EVM address encoding)."""
import secrets
from dataclasses import dataclass, field

from eth_account import Account

# Order of the secp256k1 group; a valid private key k satisfies 0 < k < n.
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
PRIVATE_KEY_BYTES = 32


@dataclass(frozen=True)
class KeyPair:
    private_key: str = field(repr=False)
    address: str


def derive_address(private_key: str) -> str:
    """Return the EIP-55 checksummed address for a 0x-prefixed hex private key."""
    return Account.from_key(private_key).address


class KeyGenerator:
    """Draws private keys from the OS CSPRNG and derives their addresses."""

    def generate(self) -> KeyPair:
        while True:
            raw = secrets.token_bytes(PRIVATE_KEY_BYTES)
            if 0 < int.from_bytes(raw, 'big') < SECP256K1_N:
                break
        private_key = '0x' + raw.hex()
        return KeyPair(private_key=private_key, address=derive_address(private_key))
