"""
netcard_core.card
-----------------
Defines CardArchive, the business network card: one Identity plus one
ConnectionProfile, carried around as a zip archive.

Archive entries:
- metadata.json            identity fields (camelCase keys)
- connection.json          connection profile object
- credentials/certificate  PEM certificate, when present
- credentials/privateKey   PEM private key, when present
- manifest.json            sha256 of every entry above (content address)
- signature.json           optional Ed25519 signature over the manifest
"""

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple
import io, json, zipfile, zlib

from .constants import (
    ARCHIVE_VERSION,
    CERTIFICATE_ENTRY,
    CONNECTION_ENTRY,
    MANIFEST_ENTRY,
    METADATA_ENTRY,
    PRIVATE_KEY_ENTRY,
    SIGNATURE_ENTRY,
)
from .crypto import certificate_fingerprint, load_certificate, sign_manifest, verify_manifest
from .errors import FormatError, ValidationError
from .utils import canonical_json, pretty_json, sha256


@dataclass(frozen=True)
class Identity:
    user_name: str
    enrollment_secret: Optional[str] = field(default=None, repr=False)
    business_network: Optional[str] = None
    certificate: Optional[str] = field(default=None, repr=False)
    private_key: Optional[str] = field(default=None, repr=False)
    description: str = ""
    roles: Tuple[str, ...] = ()

    def __post_init__(self):
        if isinstance(self.roles, str):
            raise ValidationError("roles must be a list of strings, not a string")
        object.__setattr__(self, "roles", tuple(self.roles or ()))

    def to_metadata(self) -> Dict[str, Any]:
        meta: Dict[str, Any] = {"version": ARCHIVE_VERSION, "userName": self.user_name}
        if self.description:
            meta["description"] = self.description
        if self.business_network:
            meta["businessNetwork"] = self.business_network
        if self.enrollment_secret:
            meta["enrollmentSecret"] = self.enrollment_secret
        if self.roles:
            meta["roles"] = list(self.roles)
        return meta

    @classmethod
    def from_metadata(cls, meta: Dict[str, Any], certificate: Optional[str] = None,
                      private_key: Optional[str] = None) -> "Identity":
        return cls(
            user_name=meta.get("userName", ""),
            enrollment_secret=meta.get("enrollmentSecret"),
            business_network=meta.get("businessNetwork"),
            certificate=certificate,
            private_key=private_key,
            description=meta.get("description", ""),
            roles=meta.get("roles", ()),
        )


@dataclass(frozen=True)
class ConnectionProfile:
    name: str
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, **self.attributes}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConnectionProfile":
        attrs = {k: v for k, v in data.items() if k != "name"}
        return cls(name=data.get("name", ""), attributes=attrs)


def _validate(identity: Identity, profile: ConnectionProfile) -> None:
    if not isinstance(identity.user_name, str) or not identity.user_name:
        raise ValidationError("userName is required")
    if not identity.enrollment_secret and not identity.certificate:
        raise ValidationError(
            f"card for {identity.user_name} needs an enrollment secret or a certificate"
        )
    if not all(isinstance(r, str) for r in identity.roles):
        raise ValidationError("roles must be strings")
    if not isinstance(profile.name, str) or not profile.name:
        raise ValidationError("connection profile name is required")
    if "name" in profile.attributes:
        raise ValidationError("connection profile attributes must not contain name")
    if identity.certificate:
        try:
            load_certificate(identity.certificate)
        except ValueError as e:
            raise ValidationError(f"certificate for {identity.user_name} is not a PEM certificate") from e


class CardArchive:
    """A business network card. Immutable once built."""

    def __init__(self, identity: Identity, connection_profile: ConnectionProfile):
        _validate(identity, connection_profile)
        self._identity = identity
        self._profile = connection_profile

    @classmethod
    def create(cls, identity: Identity, connection_profile: ConnectionProfile) -> "CardArchive":
        return cls(identity, connection_profile)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def identity(self) -> Identity:
        return self._identity

    @property
    def card_name(self) -> str:
        """Default store key: user@network, or the bare user name."""
        if self._identity.business_network:
            return f"{self._identity.user_name}@{self._identity.business_network}"
        return self._identity.user_name

    def get_user_name(self) -> str:
        return self._identity.user_name

    def get_description(self) -> str:
        return self._identity.description

    def get_business_network_name(self) -> Optional[str]:
        return self._identity.business_network

    def get_roles(self) -> List[str]:
        return list(self._identity.roles)

    def get_connection_profile(self) -> ConnectionProfile:
        return self._profile

    def get_enrollment_credentials(self) -> Optional[Dict[str, str]]:
        if not self._identity.enrollment_secret:
            return None
        return {"secret": self._identity.enrollment_secret}

    def get_credentials(self) -> Dict[str, str]:
        creds = {}
        if self._identity.certificate:
            creds["certificate"] = self._identity.certificate
        if self._identity.private_key:
            creds["private_key"] = self._identity.private_key
        return creds

    def get_certificate_fingerprint(self) -> Optional[str]:
        if not self._identity.certificate:
            return None
        return certificate_fingerprint(self._identity.certificate)

    def __eq__(self, other):
        if not isinstance(other, CardArchive):
            return NotImplemented
        return self._identity == other._identity and self._profile == other._profile

    def __repr__(self):
        return f"CardArchive({self.card_name!r}, profile={self._profile.name!r})"

    # ------------------------------------------------------------------
    # Archive encoding
    # ------------------------------------------------------------------
    def _entries(self) -> Dict[str, bytes]:
        entries = {
            METADATA_ENTRY: pretty_json(self._identity.to_metadata()),
            CONNECTION_ENTRY: pretty_json(self._profile.to_dict()),
        }
        if self._identity.certificate:
            entries[CERTIFICATE_ENTRY] = self._identity.certificate.encode("utf-8")
        if self._identity.private_key:
            entries[PRIVATE_KEY_ENTRY] = self._identity.private_key.encode("utf-8")
        return entries

    def to_archive(self, signing_key: Optional[bytes] = None, key_id: str = "") -> bytes:
        """
        Serialize to zip bytes. The manifest lists a sha256 per entry; with
        ``signing_key`` (raw Ed25519 private key) the manifest is also signed.
        """
        entries = self._entries()
        manifest = {
            "version": ARCHIVE_VERSION,
            "entries": {path: sha256(data) for path, data in entries.items()},
        }
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
            for path, data in entries.items():
                zf.writestr(path, data)
            zf.writestr(MANIFEST_ENTRY, pretty_json(manifest))
            if signing_key is not None:
                zf.writestr(SIGNATURE_ENTRY, pretty_json(sign_manifest(manifest, signing_key, key_id)))
        return buf.getvalue()

    @classmethod
    def from_archive(cls, data: bytes, verify_key: Optional[bytes] = None) -> "CardArchive":
        """
        Parse zip bytes produced by to_archive().

        Every manifest digest is checked. With ``verify_key`` (raw Ed25519
        public key) the archive must also carry a valid signature.
        """
        entries = _read_zip(data)
        manifest = _json_entry(entries, MANIFEST_ENTRY, required=verify_key is not None)
        signature = _json_entry(entries, SIGNATURE_ENTRY, required=verify_key is not None)
        content = {p: b for p, b in entries.items() if p not in (MANIFEST_ENTRY, SIGNATURE_ENTRY)}

        if manifest is not None:
            _check_manifest(manifest, content)
        if verify_key is not None and not verify_manifest(manifest, signature, verify_key):
            raise FormatError("card archive signature does not verify")

        meta = _json_entry(content, METADATA_ENTRY, required=True)
        profile = _json_entry(content, CONNECTION_ENTRY, required=True)
        try:
            identity = Identity.from_metadata(
                meta,
                certificate=_text_entry(content, CERTIFICATE_ENTRY),
                private_key=_text_entry(content, PRIVATE_KEY_ENTRY),
            )
            return cls(identity, ConnectionProfile.from_dict(profile))
        except (ValidationError, TypeError) as e:
            raise FormatError(f"card archive holds an invalid card: {e}") from e


def archive_content_id(data: bytes) -> Optional[str]:
    """sha256 of the canonical manifest, or None for archives without one."""
    manifest = _json_entry(_read_zip(data), MANIFEST_ENTRY)
    if manifest is None:
        return None
    return sha256(canonical_json(manifest))


def _read_zip(data: bytes) -> Dict[str, bytes]:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            return {info.filename: zf.read(info) for info in zf.infolist() if not info.is_dir()}
    except (zipfile.BadZipFile, zlib.error, EOFError, TypeError, ValueError,
            RuntimeError, NotImplementedError) as e:
        # RuntimeError: encrypted entry, NotImplementedError: unknown compression
        raise FormatError(f"not a card archive: {e}") from e


def _json_entry(entries: Dict[str, bytes], path: str, required: bool = False) -> Optional[Dict[str, Any]]:
    raw = entries.get(path)
    if raw is None:
        if required:
            raise FormatError(f"card archive is missing {path}")
        return None
    try:
        obj = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FormatError(f"{path} is not valid JSON") from e
    if not isinstance(obj, dict):
        raise FormatError(f"{path} must hold a JSON object")
    return obj


def _text_entry(entries: Dict[str, bytes], path: str) -> Optional[str]:
    raw = entries.get(path)
    if raw is None:
        return None
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FormatError(f"{path} is not UTF-8 text") from e


def _check_manifest(manifest: Dict[str, Any], content: Dict[str, bytes]) -> None:
    listed = manifest.get("entries")
    if not isinstance(listed, dict):
        raise FormatError("manifest.json has no entries")
    if set(listed) != set(content):
        raise FormatError("card archive entries do not match its manifest")
    for path, digest in listed.items():
        if sha256(content[path]) != digest:
            raise FormatError(f"digest mismatch for {path}")
