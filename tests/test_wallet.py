"""
Test suite for velcoin_core.wallet: wallet identity.

Covers:
  - Wallet.create() key / address consistency
  - Wallet.from_private_key(): k*G, address kept verbatim, InvalidKey
  - to_dict / from_dict and malformed records
  - Encrypted backup export / import
"""

import unittest

from velcoin_core.crypto_utils import derive_address, private_key_to_public
from velcoin_core.errors import InvalidKey
from velcoin_core.wallet import MAX_KDF_ITERATIONS, Wallet

KEY_ONE = "0" * 63 + "1"
GENERATOR_HEX = (
    "04"
    "79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
    "483ada7726a3c4655da4fbfc0e1108a8fd17b448a68554199c47d08ffb10d4b8"
)


class TestWalletCreate(unittest.TestCase):

    def test_create_generates_keys(self):
        w = Wallet.create()
        self.assertEqual(len(w.private_key), 64)
        self.assertEqual(len(w.public_key), 130)

    def test_create_derives_address(self):
        w = Wallet.create()
        self.assertEqual(w.address, derive_address(w.public_key))
        self.assertEqual(len(w.address), 40)

    def test_keypair_consistent(self):
        w = Wallet.create()
        self.assertEqual(private_key_to_public(w.private_key), w.public_key)

    def test_create_unique(self):
        self.assertNotEqual(Wallet.create().address, Wallet.create().address)

    def test_repr_hides_private_key(self):
        w = Wallet.create()
        self.assertNotIn(w.private_key, repr(w))
        self.assertIn(w.address, repr(w))


class TestWalletImport(unittest.TestCase):

    def test_public_key_recomputed(self):
        w = Wallet.from_private_key(KEY_ONE, "someaddress")
        self.assertEqual(w.public_key, GENERATOR_HEX)

    def test_supplied_address_kept_verbatim(self):
        """The importer's address is trusted even when it is not derive(pub)."""
        w = Wallet.from_private_key(KEY_ONE, "legacy-address-XYZ")
        self.assertEqual(w.address, "legacy-address-XYZ")
        self.assertNotEqual(w.address, derive_address(w.public_key))

    def test_roundtrip_of_generated_wallet(self):
        original = Wallet.create()
        imported = Wallet.from_private_key(original.private_key, original.address)
        self.assertEqual(imported, original)

    def test_short_key_is_padded(self):
        w = Wallet.from_private_key("1", "addr")
        self.assertEqual(w.private_key, KEY_ONE)

    def test_invalid_hex(self):
        with self.assertRaises(InvalidKey):
            Wallet.from_private_key("not a key", "addr")

    def test_zero_scalar(self):
        with self.assertRaises(InvalidKey):
            Wallet.from_private_key("00", "addr")

    def test_scalar_above_order(self):
        with self.assertRaises(InvalidKey):
            Wallet.from_private_key("f" * 64, "addr")


class TestWalletSerialization(unittest.TestCase):

    def test_to_dict_fields(self):
        w = Wallet.create()
        self.assertEqual(
            w.to_dict(),
            {"private_key": w.private_key, "public_key": w.public_key, "address": w.address},
        )

    def test_from_dict_roundtrip(self):
        w = Wallet.create()
        self.assertEqual(Wallet.from_dict(w.to_dict()), w)

    def test_from_dict_rejects_malformed(self):
        w = Wallet.create().to_dict()
        bad_records = [
            None,
            [],
            "wallet",
            {},
            {**w, "address": None},
            {**w, "public_key": 123},
            {k: v for k, v in w.items() if k != "private_key"},
        ]
        for record in bad_records:
            with self.subTest(record=record), self.assertRaises(ValueError):
                Wallet.from_dict(record)


class TestEncryptedBackup(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.wallet = Wallet.from_private_key(KEY_ONE, "backup-address")
        cls.exported = cls.wallet.export_encrypted("correct horse")

    def test_export_hides_private_key(self):
        self.assertNotIn(KEY_ONE, str(self.exported))
        self.assertEqual(self.exported["address"], "backup-address")
        self.assertEqual(self.exported["public_key"], GENERATOR_HEX)

    def test_import_roundtrip(self):
        restored = Wallet.import_encrypted(self.exported, "correct horse")
        self.assertEqual(restored, self.wallet)

    def test_wrong_passphrase(self):
        with self.assertRaises(InvalidKey):
            Wallet.import_encrypted(self.exported, "wrong")

    def test_tampered_ciphertext(self):
        data = dict(self.exported)
        ct = bytearray(bytes.fromhex(data["encrypted_private_key"]))
        ct[0] ^= 0x01
        data["encrypted_private_key"] = ct.hex()
        with self.assertRaises(InvalidKey):
            Wallet.import_encrypted(data, "correct horse")

    def test_malformed_document(self):
        with self.assertRaises(InvalidKey):
            Wallet.import_encrypted({"address": "x"}, "correct horse")

    def test_edited_address_rejected(self):
        data = dict(self.exported, address="attacker-address")
        with self.assertRaises(InvalidKey):
            Wallet.import_encrypted(data, "correct horse")

    def test_iteration_count_out_of_range(self):
        for iterations in [0, -1, 10 ** 12, MAX_KDF_ITERATIONS + 1]:
            data = dict(self.exported, kdf_iterations=iterations)
            with self.subTest(iterations=iterations), self.assertRaises(InvalidKey):
                Wallet.import_encrypted(data, "correct horse")

    def test_iteration_count_must_be_integer(self):
        for iterations in ["600000", 600000.0, True, None]:
            data = dict(self.exported, kdf_iterations=iterations)
            with self.subTest(iterations=iterations), self.assertRaises(InvalidKey):
                Wallet.import_encrypted(data, "correct horse")
