"""
File-backed key material provider.

Keys are stored as PEM files: the private half as unencrypted PKCS#8, the
public half as SubjectPublicKeyInfo. Both must be P-256 keys.
"""
import contextlib
import hashlib
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from core.domain.exceptions import KeyMaterialError
from licenses.ports.key_material_provider import KeyMaterialProvider

logger = logging.getLogger(__name__)

DEFAULT_PRIVATE_KEY_NAME = "private.pem"
DEFAULT_PUBLIC_KEY_NAME = "public.pem"


def _private_pem(private_key: ec.EllipticCurvePrivateKey) -> bytes:
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def _public_pem(public_key: ec.EllipticCurvePublicKey) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def _public_der(public_key: ec.EllipticCurvePublicKey) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def _is_p256(key) -> bool:
    return isinstance(key, (ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey)) and isinstance(
        key.curve, ec.SECP256R1
    )


class FileKeyMaterialProvider(KeyMaterialProvider):
    """
    Key material provider reading and writing PEM files in a directory.

    Existing key material is never regenerated. When the directory holds no
    keys, a new P-256 keypair is generated and persisted with atomic
    create-if-absent writes, so concurrent processes starting against an
    empty directory converge on a single keypair. If persisting fails for any
    other reason, the generated keypair is kept in memory for the lifetime of
    this provider and the degraded state is logged.
    """

    def __init__(
        self,
        key_dir: Union[str, Path],
        private_name: str = DEFAULT_PRIVATE_KEY_NAME,
        public_name: str = DEFAULT_PUBLIC_KEY_NAME,
    ):
        """
        Initialize provider.

        Args:
            key_dir: Directory holding the key files
            private_name: File name of the PKCS#8 private key
            public_name: File name of the SPKI public key
        """
        self.key_dir = Path(key_dir)
        self.private_path = self.key_dir / private_name
        self.public_path = self.key_dir / public_name
        self._private_key: Optional[ec.EllipticCurvePrivateKey] = None
        self._public_key: Optional[ec.EllipticCurvePublicKey] = None
        self._lock = threading.Lock()

    def get_signing_key(self) -> ec.EllipticCurvePrivateKey:
        self._ensure_loaded()
        return self._private_key

    def get_verification_key(self) -> ec.EllipticCurvePublicKey:
        self._ensure_loaded()
        return self._public_key

    def provision(self) -> bool:
        """
        Load existing key material or create it if absent.

        Returns:
            True if this call generated a new keypair

        Raises:
            KeyMaterialError: If persisted key material is unusable
        """
        with self._lock:
            if self._private_key is not None:
                return False
            return self._load_or_create()

    def public_key_fingerprint(self) -> str:
        """SHA-256 hex digest of the DER-encoded public key."""
        return hashlib.sha256(_public_der(self.get_verification_key())).hexdigest()

    def _ensure_loaded(self) -> None:
        if self._private_key is not None:
            return
        with self._lock:
            if self._private_key is None:
                self._load_or_create()

    def _load_or_create(self) -> bool:
        # The private key is always persisted before the public key.
        public_present = self.public_path.exists()
        if self.private_path.exists():
            self._load_existing()
            return False
        if public_present:
            raise KeyMaterialError(
                f"Public key {self.public_path} exists without its private key "
                f"{self.private_path}; refusing to generate a replacement"
            )
        return self._generate_and_persist()

    def _load_existing(self) -> None:
        private_key = self._read_private_key()
        derived_public = private_key.public_key()

        if self.public_path.exists():
            public_key = self._read_public_key()
            if _public_der(public_key) != _public_der(derived_public):
                raise KeyMaterialError(
                    f"Public key {self.public_path} does not match private key "
                    f"{self.private_path}"
                )
        else:
            public_key = derived_public
            logger.warning(
                "Public key missing, deriving it from the private key",
                extra={"public_key_path": str(self.public_path)},
            )
            try:
                self._write_exclusive(self.public_path, _public_pem(public_key), 0o644)
            except FileExistsError:
                public_key = self._read_public_key()
                if _public_der(public_key) != _public_der(derived_public):
                    raise KeyMaterialError(
                        f"Public key {self.public_path} does not match private key "
                        f"{self.private_path}"
                    )
            except OSError as e:
                logger.error(
                    "Could not write derived public key: %s",
                    e,
                    extra={"public_key_path": str(self.public_path)},
                )

        self._private_key = private_key
        self._public_key = public_key

    def _generate_and_persist(self) -> bool:
        private_key = ec.generate_private_key(ec.SECP256R1())
        public_key = private_key.public_key()
        logger.warning(
            "No license signing key found, generated a new P-256 keypair",
            extra={"key_dir": str(self.key_dir)},
        )

        try:
            self.key_dir.mkdir(parents=True, exist_ok=True)
            self._write_exclusive(self.private_path, _private_pem(private_key), 0o600)
        except FileExistsError:
            if not self.private_path.exists():
                return self._keep_in_memory(private_key, FileExistsError(str(self.key_dir)))
            logger.info(
                "Signing key was provisioned concurrently, loading it",
                extra={"private_key_path": str(self.private_path)},
            )
            self._load_existing()
            return False
        except OSError as e:
            return self._keep_in_memory(private_key, e)

        try:
            self._write_exclusive(self.public_path, _public_pem(public_key), 0o644)
        except FileExistsError:
            self._load_existing()
            return True
        except OSError as e:
            logger.error(
                "Could not persist public key: %s",
                e,
                extra={"public_key_path": str(self.public_path)},
            )

        self._private_key = private_key
        self._public_key = public_key
        return True

    def _keep_in_memory(self, private_key: ec.EllipticCurvePrivateKey, error: OSError) -> bool:
        logger.error(
            "Could not persist signing key: %s. Using an in-memory keypair; "
            "tokens signed by this process will not verify after a restart",
            error,
            extra={"private_key_path": str(self.private_path)},
        )
        self._private_key = private_key
        self._public_key = private_key.public_key()
        return True

    def _read_private_key(self) -> ec.EllipticCurvePrivateKey:
        try:
            data = self.private_path.read_bytes()
        except OSError as e:
            raise KeyMaterialError(f"Cannot read private key {self.private_path}: {e}") from e
        try:
            key = serialization.load_pem_private_key(data, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise KeyMaterialError(f"Malformed private key {self.private_path}: {e}") from e
        if not _is_p256(key):
            raise KeyMaterialError(f"Private key {self.private_path} is not a P-256 key")
        return key

    def _read_public_key(self) -> ec.EllipticCurvePublicKey:
        try:
            data = self.public_path.read_bytes()
        except OSError as e:
            raise KeyMaterialError(f"Cannot read public key {self.public_path}: {e}") from e
        try:
            key = serialization.load_pem_public_key(data)
        except (ValueError, UnsupportedAlgorithm) as e:
            raise KeyMaterialError(f"Malformed public key {self.public_path}: {e}") from e
        if not _is_p256(key):
            raise KeyMaterialError(f"Public key {self.public_path} is not a P-256 key")
        return key

    @staticmethod
    def _write_exclusive(path: Path, data: bytes, mode: int) -> None:
        """
        Write a file only if it does not exist yet.

        The content is written to a temporary file first and hard-linked into
        place, so readers never observe a partial file.

        Raises:
            FileExistsError: If the target already exists
        """
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_name, mode)
            os.link(tmp_name, path)
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
