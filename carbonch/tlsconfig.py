"""TLS client settings: versions, curves, cipher suites and SSL contexts."""

from __future__ import annotations

import enum
import ssl
from dataclasses import dataclass, field


class TLSVersion(enum.IntEnum):
    """TLS protocol versions by wire value."""

    TLS10 = 0x0301
    TLS11 = 0x0302
    TLS12 = 0x0303
    TLS13 = 0x0304

    def to_ssl(self) -> ssl.TLSVersion:
        """Return the matching :class:`ssl.TLSVersion`."""
        return ssl.TLSVersion(int(self))


class ClientAuthType(enum.IntEnum):
    """Server policy for client certificates."""

    NO_CLIENT_CERT = 0
    REQUEST_CLIENT_CERT = 1
    REQUIRE_ANY_CLIENT_CERT = 2
    VERIFY_CLIENT_CERT_IF_GIVEN = 3
    REQUIRE_AND_VERIFY_CLIENT_CERT = 4


_CLIENT_AUTHS = {
    "NoClientCert": ClientAuthType.NO_CLIENT_CERT,
    "RequestClientCert": ClientAuthType.REQUEST_CLIENT_CERT,
    "RequireAnyClientCert": ClientAuthType.REQUIRE_ANY_CLIENT_CERT,
    "VerifyClientCertIfGiven": ClientAuthType.VERIFY_CLIENT_CERT_IF_GIVEN,
    "RequireAndVerifyClientCert": ClientAuthType.REQUIRE_AND_VERIFY_CLIENT_CERT,
}

_VERSIONS = {
    "TLS10": TLSVersion.TLS10,
    "TLS11": TLSVersion.TLS11,
    "TLS12": TLSVersion.TLS12,
    "TLS13": TLSVersion.TLS13,
    "": TLSVersion.TLS13,
}

# name -> (IANA curve id, OpenSSL group name)
_CURVES = {
    "CurveP256": (23, "prime256v1"),
    "CurveP384": (24, "secp384r1"),
    "CurveP521": (25, "secp521r1"),
    "X25519": (29, "X25519"),
}
_CURVE_OPENSSL = {curve_id: name for curve_id, name in _CURVES.values()}

# name -> (suite id, OpenSSL name for TLS 1.2 or None for TLS 1.3 suites)
_CIPHER_SUITES = {
    "TLS_RSA_WITH_AES_128_CBC_SHA": (0x002F, "AES128-SHA"),
    "TLS_RSA_WITH_AES_256_CBC_SHA": (0x0035, "AES256-SHA"),
    "TLS_RSA_WITH_AES_128_GCM_SHA256": (0x009C, "AES128-GCM-SHA256"),
    "TLS_RSA_WITH_AES_256_GCM_SHA384": (0x009D, "AES256-GCM-SHA384"),
    "TLS_AES_128_GCM_SHA256": (0x1301, None),
    "TLS_AES_256_GCM_SHA384": (0x1302, None),
    "TLS_CHACHA20_POLY1305_SHA256": (0x1303, None),
    "TLS_ECDHE_ECDSA_WITH_AES_128_CBC_SHA": (0xC009, "ECDHE-ECDSA-AES128-SHA"),
    "TLS_ECDHE_ECDSA_WITH_AES_256_CBC_SHA": (0xC00A, "ECDHE-ECDSA-AES256-SHA"),
    "TLS_ECDHE_RSA_WITH_AES_128_CBC_SHA": (0xC013, "ECDHE-RSA-AES128-SHA"),
    "TLS_ECDHE_RSA_WITH_AES_256_CBC_SHA": (0xC014, "ECDHE-RSA-AES256-SHA"),
    "TLS_ECDHE_ECDSA_WITH_AES_128_GCM_SHA256": (0xC02B, "ECDHE-ECDSA-AES128-GCM-SHA256"),
    "TLS_ECDHE_ECDSA_WITH_AES_256_GCM_SHA384": (0xC02C, "ECDHE-ECDSA-AES256-GCM-SHA384"),
    "TLS_ECDHE_RSA_WITH_AES_128_GCM_SHA256": (0xC02F, "ECDHE-RSA-AES128-GCM-SHA256"),
    "TLS_ECDHE_RSA_WITH_AES_256_GCM_SHA384": (0xC030, "ECDHE-RSA-AES256-GCM-SHA384"),
    "TLS_ECDHE_RSA_WITH_CHACHA20_POLY1305_SHA256": (0xCCA8, "ECDHE-RSA-CHACHA20-POLY1305"),
    "TLS_ECDHE_ECDSA_WITH_CHACHA20_POLY1305_SHA256": (0xCCA9, "ECDHE-ECDSA-CHACHA20-POLY1305"),
}
_CIPHER_OPENSSL = {suite_id: name for suite_id, name in _CIPHER_SUITES.values()}


@dataclass
class CertificatePair:
    """Paths of a client certificate and its private key."""

    key_file: str = ""
    cert_file: str = ""


@dataclass
class TLSSettings:
    """TLS options as read from configuration."""

    certificates: list[CertificatePair] = field(default_factory=list)
    ca_cert_files: list[str] = field(default_factory=list)
    client_auth: str = ""
    server_name: str = ""
    min_version: str = ""
    max_version: str = ""
    insecure_skip_verify: bool = False
    curves: list[str] = field(default_factory=list)
    cipher_suites: list[str] = field(default_factory=list)


def parse_tls_version(version: str) -> TLSVersion:
    """Parse ``"TLS10"``..``"TLS13"`` (also ``"TLS 1.2"``, ``"VersionTLS12"``).

    An empty string means TLS 1.3.
    """
    normalized = version.replace("Version", "").replace(".", "").replace(" ", "")
    try:
        return _VERSIONS[normalized]
    except KeyError:
        raise ValueError("unknown TLS version") from None


def parse_curves(curve_names: list[str]) -> list[int]:
    """Return the curve ids for the given names, without duplicates."""
    result = []
    for name in dict.fromkeys(curve_names):
        curve = _CURVES.get(name)
        if curve is None:
            raise ValueError(f"invalid curve name specified: {name}")
        result.append(curve[0])
    return result


def parse_client_auth_type(client_auth: str) -> ClientAuthType:
    """Return the client authentication policy with the given name."""
    if not client_auth:
        return ClientAuthType.NO_CLIENT_CERT
    try:
        return _CLIENT_AUTHS[client_auth]
    except KeyError:
        raise ValueError(f"invalid auth type specified: {client_auth}") from None


def cipher_suites_to_ids(ciphers: list[str]) -> tuple[list[int], list[str]]:
    """Return the suite ids for the names and the list of insecure suites.

    Only secure suites are known, so the insecure list is always empty.
    """
    ids = []
    for name in ciphers:
        suite = _CIPHER_SUITES.get(name)
        if suite is None:
            raise ValueError(
                f"unknown cipher specified: {name}, "
                f"supported ciphers: {sorted(_CIPHER_SUITES)}"
            )
        ids.append(suite[0])
    return ids, []


def parse_client_tls_config(config: TLSSettings) -> tuple[ssl.SSLContext, list[str]]:
    """Build a client SSL context for mutual TLS and return it with warnings.

    The server name is not part of the context; pass ``config.server_name``
    as ``server_hostname`` when wrapping sockets.
    """
    if not config.certificates:
        raise ValueError("no tls certificates provided")

    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    for ca_file in config.ca_cert_files:
        with open(ca_file, "rb") as fh:
            pem = fh.read()
        try:
            context.load_verify_locations(cadata=pem.decode("ascii", "ignore"))
        except (ssl.SSLError, ValueError):
            # files without usable certificates are ignored
            pass

    # every pair is validated; the first one stays loaded
    for pair in reversed(config.certificates):
        context.load_cert_chain(pair.cert_file, pair.key_file)

    min_version = parse_tls_version(config.min_version)
    max_version = parse_tls_version(config.max_version)
    curves = parse_curves(config.curves)
    ciphers, warnings = cipher_suites_to_ids(config.cipher_suites)

    if config.insecure_skip_verify:
        warnings.append(
            "InsecureSkipVerify is set to true, it's not recommended to use that in production"
        )
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    context.minimum_version = min_version.to_ssl()
    context.maximum_version = max_version.to_ssl()
    if curves:
        context.set_ecdh_curve(_CURVE_OPENSSL[curves[0]])
    tls12 = [_CIPHER_OPENSSL[c] for c in ciphers if _CIPHER_OPENSSL[c]]
    if tls12:
        context.set_ciphers(":".join(tls12))

    return context, warnings