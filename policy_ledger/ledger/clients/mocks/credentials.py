"""
Throwaway credentials for the mock peer.

LEDGER_MODE=mock on a machine without the test-network crypto material still
needs an identity whose signatures the mock peer can verify. This mints an
in-memory P-256 key and a self-signed certificate for it; nothing is written
to disk.
"""

import datetime
import logging

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from ...contracts.interfaces import KeyMaterial
from ...identity import Credentials, StaticCredentialsProvider, make_identity
from ...signer import make_signer

logger = logging.getLogger(__name__)


def generate_key_material(common_name: str = "User1@org1.example.com", days_valid: int = 365) -> KeyMaterial:
    private_key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(minutes=1))
        .not_valid_after(now + datetime.timedelta(days=days_valid))
        .sign(private_key, hashes.SHA256())
    )
    return KeyMaterial(
        private_key=private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ),
        certificate=certificate.public_bytes(serialization.Encoding.PEM),
    )


def ephemeral_credentials_provider(organization_id: str) -> StaticCredentialsProvider:
    material = generate_key_material()
    logger.warning("Using ephemeral self-signed credentials for %s (mock ledger only)", organization_id)
    return StaticCredentialsProvider(
        Credentials(
            identity=make_identity(organization_id, material.certificate),
            signer=make_signer(material.private_key),
        )
    )
