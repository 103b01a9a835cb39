"""Shared fixtures: throwaway TLS credentials and a stub etcd server."""

import asyncio
import datetime
import threading
from pathlib import Path
from typing import Any, Dict, Generator, List, NamedTuple

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    pkcs12,
)
from cryptography.x509.oid import NameOID


class Credentials(NamedTuple):
    cert: Path
    key: Path
    pfx: Path


@pytest.fixture(scope="session")
def credentials(tmp_path_factory: pytest.TempPathFactory) -> Credentials:
    """Self-signed certificate, its key, and the pair bundled as PKCS#12."""
    directory = tmp_path_factory.mktemp("tls")
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "etcdkv-test")])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=1))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )

    cert_path = directory / "client.crt"
    cert_path.write_bytes(cert.public_bytes(Encoding.PEM))
    key_path = directory / "client.key"
    key_path.write_bytes(key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()))
    pfx_path = directory / "client.p12"
    pfx_path.write_bytes(
        pkcs12.serialize_key_and_certificates(b"etcdkv-test", key, cert, None, NoEncryption())
    )
    return Credentials(cert=cert_path, key=key_path, pfx=pfx_path)


class RecordedRequest(NamedTuple):
    method: str
    path: str
    query: Dict[str, str]
    form: Dict[str, str]


class StubEtcd(NamedTuple):
    url: str
    requests: List[RecordedRequest]


@pytest.fixture(scope="session")
def _aio_loop() -> Generator[asyncio.AbstractEventLoop, None, None]:
    """Provide a background event loop for the stub server."""
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, name="test-io", daemon=True)
    thread.start()
    yield loop
    loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=5)
    loop.close()


@pytest.fixture
def stub_etcd(_aio_loop: asyncio.AbstractEventLoop) -> Generator[StubEtcd, None, None]:
    """Minimal etcd v2 lookalike that records every request it receives."""
    recorded: List[RecordedRequest] = []

    async def handle(request: web.Request) -> web.Response:
        form = await request.post()
        recorded.append(
            RecordedRequest(
                method=request.method,
                path=request.path,
                query=dict(request.query),
                form={k: str(v) for k, v in form.items()},
            )
        )
        payload: Dict[str, Any] = {"action": request.method.lower(), "node": {"key": request.path}}
        return web.json_response(payload, headers={"X-Etcd-Index": "42"})

    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", handle)
    server = TestServer(app, host="127.0.0.1")

    asyncio.run_coroutine_threadsafe(server.start_server(), _aio_loop).result(timeout=10)
    yield StubEtcd(url=str(server.make_url("")).rstrip("/"), requests=recorded)
    asyncio.run_coroutine_threadsafe(server.close(), _aio_loop).result(timeout=10)
