"""TLS credential loading and SSL context construction.

This module is not part of the public API and should only be used internally.
"""

import logging
import os
import ssl
import tempfile
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    pkcs12,
)

from etcdkv.types import ConfigurationError

logger = logging.getLogger(__name__)

# Option fields naming files whose bytes replace the path at configuration time
CREDENTIAL_FIELDS = ("ca", "key", "cert", "pfx")


def load_ssl_material(ssl_options: Mapping[str, Any]) -> Dict[str, Any]:
    """Read credential files and substitute their bytes for the paths.

    All other fields pass through unchanged.

    Raises:
        ConfigurationError: If a credential file is missing or unreadable
    """
    material: Dict[str, Any] = {}
    for name, value in ssl_options.items():
        if name in CREDENTIAL_FIELDS:
            material[name] = _read_credential(name, value)
        else:
            material[name] = value
    return material


def _read_credential(name: str, path: Union[str, "os.PathLike[str]"]) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except (OSError, TypeError) as e:
        raise ConfigurationError(f"Cannot read TLS {name} file {path!r}: {e}") from e


def build_ssl_context(material: Mapping[str, Any]) -> ssl.SSLContext:
    """Build the reusable client SSL context from loaded TLS material.

    Recognized fields:
        ca: CA bundle bytes (PEM or DER); replaces the system trust store
        key, cert: client private key and certificate (PEM)
        pfx: PKCS#12 bundle, takes precedence over key/cert
        passphrase: password for the key or the PKCS#12 bundle
        ciphers: OpenSSL cipher list
        reject_unauthorized: False disables server certificate verification

    Raises:
        ConfigurationError: If the material cannot be loaded
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    password = material.get("passphrase")

    try:
        ca: Optional[bytes] = material.get("ca")
        if ca is not None:
            cadata: Union[str, bytes] = ca.decode("ascii") if b"-----BEGIN" in ca else ca
            context.load_verify_locations(cadata=cadata)
        else:
            context.load_default_certs(ssl.Purpose.SERVER_AUTH)

        if material.get("pfx") is not None:
            cert_pem, key_pem = _decode_pkcs12(material["pfx"], password)
            _load_cert_chain(context, cert_pem, key_pem, None)
        elif material.get("cert") is not None:
            _load_cert_chain(context, material["cert"], material.get("key"), password)
        elif material.get("key") is not None:
            raise ConfigurationError("TLS key given without a matching cert")

        if material.get("ciphers"):
            context.set_ciphers(material["ciphers"])
    except (ssl.SSLError, ValueError) as e:
        raise ConfigurationError(f"Invalid TLS material: {e}") from e

    if material.get("reject_unauthorized") is False:
        logger.warning("Server certificate verification disabled (reject_unauthorized=False)")
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    return context


def _decode_pkcs12(data: bytes, password: Optional[Union[str, bytes]]) -> Tuple[bytes, bytes]:
    if isinstance(password, str):
        password = password.encode("utf-8")
    key, cert, additional = pkcs12.load_key_and_certificates(data, password)
    if key is None or cert is None:
        raise ConfigurationError("PKCS#12 bundle must contain a private key and a certificate")

    cert_pem = cert.public_bytes(Encoding.PEM)
    for extra in additional:
        cert_pem += extra.public_bytes(Encoding.PEM)
    key_pem = key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, NoEncryption())
    return cert_pem, key_pem


def _load_cert_chain(
    context: ssl.SSLContext,
    cert: bytes,
    key: Optional[bytes],
    password: Optional[Union[str, bytes]],
) -> None:
    # SSLContext only loads certificate chains from files
    with tempfile.TemporaryDirectory(prefix="etcdkv-") as tmp:
        cert_path = os.path.join(tmp, "cert.pem")
        with open(cert_path, "wb") as f:
            f.write(cert)

        key_path: Optional[str] = None
        if key is not None:
            key_path = os.path.join(tmp, "key.pem")
            with open(key_path, "wb") as f:
                f.write(key)

        context.load_cert_chain(cert_path, key_path, password)
