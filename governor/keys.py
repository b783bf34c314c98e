"""
Account keys: an account is identified by its compressed secp256k1
public key in hex, and proves who is calling by signing the request
"""

import hashlib
import json
import time
from ecdsa import SigningKey, SECP256k1, VerifyingKey, BadSignatureError, MalformedPointError
from typing import Dict, Tuple


def canonical_payload(payload: dict) -> bytes:
    """Stable byte encoding of a request payload, signature excluded"""
    body = {k: v for k, v in payload.items() if k != 'signature'}
    return json.dumps(body, sort_keys=True, separators=(',', ':')).encode()


class AccountKey:
    """secp256k1 key pair for a governance account"""

    def __init__(self, private_key: bytes = None):
        self._last_nonce = 0
        if private_key:
            self.private_key = SigningKey.from_string(private_key, curve=SECP256k1)
        else:
            self.private_key = SigningKey.generate(curve=SECP256k1)

        self.public_key = self.private_key.get_verifying_key()

    @property
    def account_id(self) -> str:
        """Compressed public key in hex"""
        return self.public_key.to_string("compressed").hex()

    def sign_message(self, message: bytes) -> str:
        """Sign message and return signature in hex"""
        signature = self.private_key.sign(message, hashfunc=hashlib.sha256)
        return signature.hex()

    def next_nonce(self) -> int:
        """Strictly increasing per key, also across restarts"""
        self._last_nonce = max(self._last_nonce + 1, time.time_ns())
        return self._last_nonce

    def sign_payload(self, payload: dict) -> dict:
        """Return a copy of `payload` with caller, nonce and signature filled in"""
        signed = dict(payload, caller=self.account_id)
        signed.setdefault('nonce', self.next_nonce())
        signed['signature'] = self.sign_message(canonical_payload(signed))
        return signed

    @staticmethod
    def verify_signature(message: bytes, signature_hex: str, account_id: str) -> bool:
        """Verify signature against message and the account's public key"""
        try:
            vk = VerifyingKey.from_string(bytes.fromhex(account_id), curve=SECP256k1)
            return vk.verify(bytes.fromhex(signature_hex), message, hashfunc=hashlib.sha256)
        except (BadSignatureError, MalformedPointError, ValueError):
            return False

    @classmethod
    def verify_payload(cls, payload: dict) -> bool:
        caller = payload.get('caller')
        signature = payload.get('signature')
        if not isinstance(caller, str) or not isinstance(signature, str):
            return False
        return cls.verify_signature(canonical_payload(payload), signature, caller)

    @staticmethod
    def generate_key_pair() -> Tuple[str, str]:
        """Generate new key pair and return (private_key_hex, account_id)"""
        key = AccountKey()
        return key.private_key.to_string().hex(), key.account_id


class NonceRegistry:
    """Highest nonce seen per account; a signed request is accepted once"""

    def __init__(self, last_seen: Dict[str, int] = None):
        self._last_seen = dict(last_seen or {})

    def consume(self, account: str, nonce) -> bool:
        """Accept `nonce` only if it is above every nonce seen for `account`"""
        if isinstance(nonce, bool) or not isinstance(nonce, int):
            return False
        if nonce <= self._last_seen.get(account, -1):
            return False
        self._last_seen[account] = nonce
        return True

    def clear(self) -> None:
        self._last_seen.clear()

    def to_dict(self) -> dict:
        return dict(self._last_seen)
