"""
Unit tests for utils.keys module.

Tests:
- load_keys_from_env() with hex and nsec keys
- KeysConfig auto-loading from the environment
- KeysSigner public key and signing
"""

import pytest
from nostr_sdk import EventBuilder, Keys
from pydantic import ValidationError

from curator.models import EventRecord
from curator.utils.keys import ENV_PRIVATE_KEY, KeysConfig, KeysSigner, load_keys_from_env


# Valid secp256k1 test keys (DO NOT USE IN PRODUCTION)
VALID_HEX_KEY = (
    "67dea2ed018072d675f5415ecfaed7d2597555e202d85b3d65ea4e58d2d92ffa"  # pragma: allowlist secret
)
VALID_NSEC_KEY = (
    "nsec1vl029mgpspedva04g90vltkh6fvh240zqtv9k0t9af8935ke9laqsnlfe5"  # pragma: allowlist secret
)


class TestLoadKeysFromEnv:
    """load_keys_from_env()."""

    def test_hex(self, monkeypatch):
        monkeypatch.setenv("TEST_KEY", VALID_HEX_KEY)
        keys = load_keys_from_env("TEST_KEY")
        assert keys.public_key().to_hex() == Keys.parse(VALID_HEX_KEY).public_key().to_hex()

    def test_nsec_matches_hex(self, monkeypatch):
        monkeypatch.setenv("TEST_KEY", VALID_NSEC_KEY)
        keys = load_keys_from_env("TEST_KEY")
        assert keys.public_key().to_hex() == Keys.parse(VALID_HEX_KEY).public_key().to_hex()

    def test_missing(self, monkeypatch):
        monkeypatch.delenv("TEST_KEY", raising=False)
        with pytest.raises(ValueError, match="TEST_KEY is not set"):
            load_keys_from_env("TEST_KEY")

    def test_blank(self, monkeypatch):
        monkeypatch.setenv("TEST_KEY", "   ")
        with pytest.raises(ValueError, match="is not set"):
            load_keys_from_env("TEST_KEY")


class TestKeysConfig:
    """KeysConfig model."""

    def test_default_env_var(self, monkeypatch):
        monkeypatch.setenv(ENV_PRIVATE_KEY, VALID_HEX_KEY)
        config = KeysConfig.model_validate({})
        assert config.keys_env == ENV_PRIVATE_KEY
        assert isinstance(config.keys, Keys)

    def test_custom_env_var(self, monkeypatch):
        monkeypatch.setenv("CURATOR_KEY", VALID_HEX_KEY)
        config = KeysConfig.model_validate({"keys_env": "CURATOR_KEY"})
        assert config.keys_env == "CURATOR_KEY"

    def test_missing_env_var(self, monkeypatch):
        monkeypatch.delenv(ENV_PRIVATE_KEY, raising=False)
        with pytest.raises(ValidationError):
            KeysConfig.model_validate({})

    def test_explicit_keys(self):
        keys = Keys.parse(VALID_HEX_KEY)
        assert KeysConfig(keys=keys).keys is keys

    def test_public_key_and_signer(self, monkeypatch):
        monkeypatch.setenv(ENV_PRIVATE_KEY, VALID_HEX_KEY)
        config = KeysConfig.model_validate({})
        assert config.public_key == Keys.parse(VALID_HEX_KEY).public_key().to_hex()
        assert config.signer().public_key == config.public_key


class TestKeysSigner:
    """KeysSigner."""

    def test_public_key(self):
        keys = Keys.parse(VALID_HEX_KEY)
        assert KeysSigner(keys).public_key == keys.public_key().to_hex()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv(ENV_PRIVATE_KEY, VALID_HEX_KEY)
        signer = KeysSigner.from_env()
        assert signer.public_key == Keys.parse(VALID_HEX_KEY).public_key().to_hex()

    async def test_sign(self):
        signer = KeysSigner(Keys.parse(VALID_HEX_KEY))
        record = await signer.sign(EventBuilder.text_note("signed"))
        assert isinstance(record, EventRecord)
        assert record.pubkey == signer.public_key
        assert record.to_nostr().verify() is True
