"""
Unit tests for signer address recovery.
"""

import pytest

from credshare import LocalAccountSigner, RecoverableSignature, SignatureError, recover_address
from credshare.signature import SECP256K1_N

MESSAGE = b'{"action":"share_access","credentialId":"1","nonce":"n-1","maxViews":1,"timestamp":0}'


class TestRecoverAddress:
    """Tests for recover_address()."""

    def test_recovers_signer(self, owner_signer):
        """Recovered address is the signer's address."""
        signature = owner_signer.sign(MESSAGE)
        assert recover_address(MESSAGE, signature) == owner_signer.address

    def test_known_key_address(self):
        """Private key 1 maps to its well-known address."""
        signer = LocalAccountSigner(private_key="0x" + "00" * 31 + "01")
        signature = signer.sign(b"hello")
        assert recover_address(b"hello", signature) == "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"

    def test_deterministic(self, owner_signer):
        """Repeated recovery yields the same address."""
        signature = owner_signer.sign(MESSAGE)
        addresses = {recover_address(MESSAGE, signature) for _ in range(5)}
        assert addresses == {owner_signer.address}

    def test_accepts_bytes_and_scalars(self, owner_signer):
        """Hex, raw bytes and RecoverableSignature forms are equivalent."""
        hex_sig = owner_signer.sign(MESSAGE)
        parsed = RecoverableSignature.from_hex(hex_sig)

        assert recover_address(MESSAGE, parsed.to_bytes()) == owner_signer.address
        assert recover_address(MESSAGE, parsed) == owner_signer.address
        assert recover_address(MESSAGE, hex_sig[2:]) == owner_signer.address

    def test_zero_one_recovery_id(self, owner_signer):
        """v encoded as 0/1 is normalized to 27/28."""
        parsed = RecoverableSignature.from_hex(owner_signer.sign(MESSAGE))
        raw = parsed.to_bytes()[:64] + bytes([parsed.v - 27])
        assert recover_address(MESSAGE, raw) == owner_signer.address

    def test_different_message_different_address(self, owner_signer):
        """A signature replayed over another message recovers someone else."""
        signature = owner_signer.sign(MESSAGE)
        tampered = MESSAGE.replace(b'"credentialId":"1"', b'"credentialId":"2"')
        assert recover_address(tampered, signature) != owner_signer.address


class TestRecoverAddressErrors:
    """Malformed inputs raise SignatureError."""

    def test_empty_message(self, owner_signer):
        signature = owner_signer.sign(b"x")
        with pytest.raises(SignatureError):
            recover_address(b"", signature)

    def test_not_hex(self):
        with pytest.raises(SignatureError):
            recover_address(MESSAGE, "0xnothex")

    def test_wrong_length(self):
        with pytest.raises(SignatureError):
            recover_address(MESSAGE, "0x" + "ab" * 64)

    def test_invalid_recovery_id(self, owner_signer):
        raw = RecoverableSignature.from_hex(owner_signer.sign(MESSAGE)).to_bytes()
        with pytest.raises(SignatureError):
            recover_address(MESSAGE, raw[:64] + bytes([5]))

    def test_zero_r(self):
        raw = (0).to_bytes(32, "big") + (1).to_bytes(32, "big") + bytes([27])
        with pytest.raises(SignatureError):
            recover_address(MESSAGE, raw)

    def test_r_not_below_order(self):
        raw = SECP256K1_N.to_bytes(32, "big") + (1).to_bytes(32, "big") + bytes([27])
        with pytest.raises(SignatureError):
            recover_address(MESSAGE, raw)

    def test_high_s_rejected(self, owner_signer):
        """The malleated (r, n - s) twin of a valid signature is rejected."""
        parsed = RecoverableSignature.from_hex(owner_signer.sign(MESSAGE))
        raw = (
            parsed.r.to_bytes(32, "big")
            + (SECP256K1_N - parsed.s).to_bytes(32, "big")
            + bytes([55 - parsed.v])
        )
        with pytest.raises(SignatureError):
            recover_address(MESSAGE, raw)

    def test_unsupported_type(self):
        with pytest.raises(SignatureError):
            recover_address(MESSAGE, 12345)


class TestRecoverableSignature:
    """Tests for the signature value type."""

    def test_hex_round_trip(self, owner_signer):
        hex_sig = owner_signer.sign(MESSAGE)
        assert RecoverableSignature.from_hex(hex_sig).to_hex() == hex_sig.lower()

    def test_signer_emits_low_s(self, owner_signer):
        parsed = RecoverableSignature.from_hex(owner_signer.sign(MESSAGE))
        assert parsed.s <= SECP256K1_N // 2
        assert parsed.v in (27, 28)
