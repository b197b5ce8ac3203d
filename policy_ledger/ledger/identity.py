"""
Identity provider and credential loading.

An Identity is the organization id plus the certificate bytes; the peer
validates the certificate, we never do. CredentialsProvider rebuilds the
Identity/Signer pair from the key material directories for every session, or
once per process when caching is enabled (construction is deterministic, so a
cached pair is indistinguishable from a fresh one).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .contracts.interfaces import Identity
from .keys import load_key_material
from .signer import Signer, make_signer

logger = logging.getLogger(__name__)


def make_identity(organization_id: str, certificate: bytes) -> Identity:
    return Identity(organization_id=organization_id, certificate=bytes(certificate))


@dataclass(frozen=True)
class Credentials:
    identity: Identity
    signer: Signer


class CredentialsProvider:
    def __init__(
        self,
        organization_id: str,
        key_directory: Union[str, Path],
        cert_directory: Union[str, Path],
        cache: bool = False,
    ) -> None:
        self.organization_id = organization_id
        self.key_directory = Path(key_directory)
        self.cert_directory = Path(cert_directory)
        self.cache = cache
        self._cached: Optional[Credentials] = None
        self._lock = threading.Lock()

    def load(self) -> Credentials:
        if not self.cache:
            return self._build()
        with self._lock:
            if self._cached is None:
                self._cached = self._build()
            return self._cached

    def _build(self) -> Credentials:
        material = load_key_material(self.key_directory, self.cert_directory)
        credentials = Credentials(
            identity=make_identity(self.organization_id, material.certificate),
            signer=make_signer(material.private_key),
        )
        logger.debug("Loaded credentials for %s (%s)", self.organization_id, credentials.signer.algorithm)
        return credentials


class StaticCredentialsProvider:
    """Serves one pre-built Identity/Signer pair; used by scripts and tests."""

    def __init__(self, credentials: Credentials) -> None:
        self._credentials = credentials

    def load(self) -> Credentials:
        return self._credentials
