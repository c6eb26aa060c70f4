"""HTTP health endpoint checks.

An HTTPHealthzChecker GETs one URL and hands a 200 response body to a
ResponseValidator. Two validators exist: the plain ``ok`` body served by
Kubernetes components, and the JSON health flag served by etcd.
"""

from __future__ import annotations

import json
import logging
import ssl
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

import httpx

from k8status.context import CheckContext, ContextError

from .probe import NO_ERROR_DETAIL, Probe, ProbeStatus, new_probe_from_err, new_success_probe
from .reporter import Checker, Reporter

logger = logging.getLogger(__name__)

HEALTHZ_CHECK_TIMEOUT = 1.0  # seconds, per request; bounds connect and TLS handshake too

DEFAULT_KEEPALIVE_PERIOD = 30.0


class ResponseError(ValueError):
    """A 200 response whose payload does not denote a healthy service."""


# ── Response validators ──────────────────────────────────────────────────────


def kube_healthz(payload: bytes) -> None:
    """Healthy iff the body is exactly ``ok``."""
    if payload != b"ok":
        raise ResponseError(f"unexpected healthz response: {payload.decode(errors='replace')}")


def etcd_health(payload: bytes) -> None:
    """Healthy iff the JSON ``health`` field is ``"true"`` or ``true``.

    etcd releases disagree on the type of the field, so both the string and
    the boolean shape are accepted.
    """
    text = payload.decode(errors="replace")
    if not etcd_status(payload):
        raise ResponseError(f"unexpected etcd status: {text}")


def etcd_status(payload: bytes) -> bool:
    """Parse an etcd health payload; raises ResponseError if it is unreadable."""
    try:
        doc = json.loads(payload)
    except ValueError as e:
        raise ResponseError(f"failed to parse etcd status: {e}") from e
    if not isinstance(doc, dict):
        raise ResponseError(f"failed to parse etcd status: expected an object, got {type(doc).__name__}")

    # Field names match case-insensitively, as etcd clients historically did.
    value = next((v for k, v in doc.items() if k.lower() == "health"), None)

    # String shape first, boolean shape as fallback.
    if isinstance(value, str):
        return value == "true"
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    raise ResponseError(
        f"failed to parse etcd status: health is a {type(value).__name__}, want string or bool"
    )


class ResponseValidator(str, Enum):
    """Closed set of response validators, dispatched by tag."""

    KUBE_HEALTHZ = "kube-healthz"
    ETCD_HEALTH = "etcd-health"

    def validate(self, payload: bytes) -> None:
        RESPONSE_VALIDATORS[self](payload)


RESPONSE_VALIDATORS: dict[ResponseValidator, Callable[[bytes], None]] = {
    ResponseValidator.KUBE_HEALTHZ: kube_healthz,
    ResponseValidator.ETCD_HEALTH: etcd_health,
}


# ── Checker ──────────────────────────────────────────────────────────────────


class HTTPHealthzChecker(Checker):
    """Validates service health over HTTP."""

    def __init__(
        self,
        name: str,
        url: str,
        validator: ResponseValidator,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._name = name
        self.url = url
        self.validator = validator
        self._client = httpx.Client(transport=transport, timeout=HEALTHZ_CHECK_TIMEOUT)

    def name(self) -> str:
        return self._name

    def check(self, ctx: CheckContext, reporter: Reporter) -> None:
        reporter.add(self._probe(ctx))

    def _probe(self, ctx: CheckContext) -> Probe:
        try:
            request = self._client.build_request(
                "GET", self.url, timeout=ctx.timeout(HEALTHZ_CHECK_TIMEOUT),
            )
        except (httpx.InvalidURL, ValueError) as e:
            return new_probe_from_err(self._name, NO_ERROR_DETAIL, f"failed to create request: {e}")

        try:
            ctx.raise_if_done()
            resp = self._client.send(request)
        except (httpx.HTTPError, ContextError) as e:
            logger.debug("healthz %s (%s) failed: %s", self._name, self.url, e)
            return new_probe_from_err(self._name, NO_ERROR_DETAIL, f"healthz check failed: {e}")

        if resp.status_code != httpx.codes.OK:
            return Probe(
                checker=self._name,
                status=ProbeStatus.FAILED,
                error=f"unexpected HTTP status: {httpx.codes.get_reason_phrase(resp.status_code)}",
                code=str(resp.status_code),
            )

        try:
            self.validator.validate(resp.content)
        except ResponseError as e:
            return new_probe_from_err(self._name, NO_ERROR_DETAIL, e)
        return new_success_probe(self._name)

    def close(self) -> None:
        self._client.close()


def new_http_healthz_checker(
    name: str, url: str, validator: ResponseValidator,
) -> HTTPHealthzChecker:
    """Checker for an HTTP health endpoint over the default transport."""
    return HTTPHealthzChecker(name, url, validator)


def new_http_healthz_checker_with_transport(
    name: str, url: str, transport: httpx.BaseTransport, validator: ResponseValidator,
) -> HTTPHealthzChecker:
    return HTTPHealthzChecker(name, url, validator, transport=transport)


def new_unix_socket_healthz_checker(
    name: str, url: str, socket_path: str, validator: ResponseValidator,
) -> HTTPHealthzChecker:
    """Checker for an HTTP health endpoint served on a unix domain socket."""
    transport = httpx.HTTPTransport(uds=socket_path)
    return HTTPHealthzChecker(name, url, validator, transport=transport)


# ── Transport ────────────────────────────────────────────────────────────────


class TransportConfigError(Exception):
    """TLS material could not be loaded."""


@dataclass
class EtcdConfig:
    """Parameters for reaching etcd endpoints."""

    # etcd server endpoints
    endpoints: list[str] = field(default_factory=list)
    # CA bundle used to verify the etcd servers
    ca_file: str = ""
    # client certificate and key presented to etcd
    cert_file: str = ""
    key_file: str = ""
    # skip verification of the server's certificate chain and host name
    insecure_skip_verify: bool = False

    def empty(self) -> bool:
        return not (self.ca_file or self.cert_file or self.key_file)

    def client_ssl_context(self) -> ssl.SSLContext | None:
        """SSL context for mutual TLS, or None when no TLS material is set."""
        if self.empty():
            return None
        if not (self.cert_file and self.key_file):
            raise TransportConfigError("etcd TLS needs both a client certificate and a key")

        ssl_ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        try:
            ssl_ctx.load_cert_chain(certfile=self.cert_file, keyfile=self.key_file)
            if self.ca_file:
                ssl_ctx.load_verify_locations(cafile=self.ca_file)
            else:
                ssl_ctx.load_default_certs()
        except (OSError, ssl.SSLError) as e:
            raise TransportConfigError(f"failed to load etcd TLS material: {e}") from e

        if self.insecure_skip_verify:
            ssl_ctx.check_hostname = False
            ssl_ctx.verify_mode = ssl.CERT_NONE
        return ssl_ctx

    def new_http_transport(self) -> httpx.HTTPTransport:
        """Transport for the etcd health checkers."""
        limits = httpx.Limits(keepalive_expiry=DEFAULT_KEEPALIVE_PERIOD)
        ssl_ctx = self.client_ssl_context()
        if ssl_ctx is None:
            return httpx.HTTPTransport(limits=limits)
        return httpx.HTTPTransport(verify=ssl_ctx, limits=limits)
