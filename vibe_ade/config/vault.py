"""Settings vault: the key/value settings store.

Layout::

    ~/.vibe-ade/
      vault.json    # VaultData (credential stored Fernet-encrypted)
      vault.key     # Fernet key, created on first use (mode 0600)

The vault is read on every command submission and every session spawn, so
callers never hold on to a copy of the execution mode.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from cryptography.fernet import Fernet, InvalidToken
from loguru import logger

from vibe_ade.config.schema import ExecutionMode, VaultData, VaultSettings
from vibe_ade.errors import VaultError
from vibe_ade.utils.helpers import ensure_dir, get_data_path

_VAULT_FILE = "vault.json"
_KEY_FILE = "vault.key"

_TEXT_FIELDS = ("cloud_api_base_url", "local_model", "cloud_model")


class SettingsVault:
    """JSON-backed settings store with an encrypted cloud credential.

    Thread safety: all reads/writes happen on the host event loop; the
    vault does no locking of its own.
    """

    def __init__(self, root: Path | None = None) -> None:
        self._root = ensure_dir(root or get_data_path())
        self._path = self._root / _VAULT_FILE
        self._key_path = self._root / _KEY_FILE
        self._fernet: Fernet | None = None
        self._data = self._read()

    # ------------------------------------------------------------------ #
    # Public API                                                           #
    # ------------------------------------------------------------------ #

    def get(self) -> VaultSettings:
        """Return all settings with the credential decrypted."""
        data = self._data
        return VaultSettings(
            cloud_api_key=self._decrypt(data.cloud_api_key_encrypted),
            cloud_api_base_url=data.cloud_api_base_url,
            local_model=data.local_model,
            cloud_model=data.cloud_model,
            execution_mode=data.execution_mode,
            system_wide_acknowledged=data.system_wide_acknowledged,
        )

    def set(self, **partial: Any) -> None:
        """Apply a partial update.

        Accepted keys: cloud_api_key, cloud_api_base_url, local_model,
        cloud_model, execution_mode, system_wide_acknowledged. Unknown keys
        raise VaultError. Switching to system-wide requires acknowledgement,
        given in this call or earlier.
        """
        known = set(_TEXT_FIELDS) | {"cloud_api_key", "execution_mode", "system_wide_acknowledged"}
        unknown = sorted(set(partial) - known)
        if unknown:
            raise VaultError(f"Unknown vault setting(s): {', '.join(unknown)}")

        data = self._data.model_copy()

        acknowledged = partial.get("system_wide_acknowledged")
        if isinstance(acknowledged, bool):
            data.system_wide_acknowledged = acknowledged

        raw_mode = partial.get("execution_mode")
        mode: ExecutionMode | None = None
        if raw_mode is not None:
            try:
                mode = ExecutionMode(raw_mode)
            except ValueError as exc:
                raise VaultError(f"Unknown execution mode '{raw_mode}'") from exc
            if mode is ExecutionMode.SYSTEM_WIDE and not data.system_wide_acknowledged:
                raise VaultError("System-Wide mode requires acknowledgement in Settings Vault.")

        key = partial.get("cloud_api_key")
        if isinstance(key, str):
            data.cloud_api_key_encrypted = self._encrypt(key)
        for name in _TEXT_FIELDS:
            value = partial.get(name)
            if isinstance(value, str):
                setattr(data, name, value)
        if mode is not None:
            data.execution_mode = mode

        self._data = data
        self._write()
        changed = [name for name in partial if name != "cloud_api_key"]
        if "cloud_api_key" in partial:
            changed.append("cloud_api_key(<redacted>)")
        logger.info(f"Vault updated: {', '.join(changed) or 'nothing'}")

    @property
    def execution_mode(self) -> ExecutionMode:
        return self._data.execution_mode

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------ #
    # Private helpers                                                      #
    # ------------------------------------------------------------------ #

    def _read(self) -> VaultData:
        if not self._path.exists():
            return VaultData()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return VaultData.model_validate(raw if isinstance(raw, dict) else {})
        except (json.JSONDecodeError, ValueError) as exc:
            logger.warning(f"Vault at {self._path} is unreadable ({exc}); using defaults")
            return VaultData()

    def _write(self) -> None:
        self._path.write_text(
            json.dumps(self._data.model_dump(mode="json"), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )

    def _cipher(self) -> Fernet:
        if self._fernet is not None:
            return self._fernet
        if self._key_path.exists():
            key = self._key_path.read_bytes().strip()
        else:
            key = Fernet.generate_key()
            self._key_path.write_bytes(key)
            try:
                os.chmod(self._key_path, 0o600)
            except OSError:
                logger.debug(f"Could not restrict permissions on {self._key_path}")
        self._fernet = Fernet(key)
        return self._fernet

    def _encrypt(self, raw: str) -> str:
        if not raw:
            return ""
        return self._cipher().encrypt(raw.encode("utf-8")).decode("ascii")

    def _decrypt(self, encoded: str) -> str:
        if not encoded:
            return ""
        try:
            return self._cipher().decrypt(encoded.encode("ascii")).decode("utf-8")
        except (InvalidToken, ValueError):
            logger.warning("Stored cloud credential could not be decrypted; treating as missing")
            return ""
