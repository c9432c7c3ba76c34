"""Signer certificates inside a managed key store.

Existence cannot be read from security.xml alone: the key store entry
gives location, type and password, and keytool lists the alias.
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional

from ..errors import ExternalToolError, RefusedOperationError
from ..reconcile_engine.diff import AttributeSpec
from ..reconcile_engine.jython import task_args
from ..reconcile_engine.schema import EntitySnapshot, ResourceChange, ResourceDesiredState
from .base import ResourceHandler

logger = logging.getLogger(__name__)

FINGERPRINT_RE = re.compile(r"Certificate fingerprint \((SHA[-\w]*)\):\s*([0-9A-Fa-f:]+)")
ENTRY_RE = re.compile(r"^(?P<alias>[^,\n]+),\s*(?P<created>.+?),\s*(?P<entry_type>\w+),\s*$", re.MULTILINE)


@dataclass
class SignerCertificateDesiredState(ResourceDesiredState):
    """Desired state of a signer certificate; ``name`` is its alias."""
    key_store_name: Optional[str] = None
    cert_file_path: Optional[str] = None
    base_64_encoded: bool = True
    fingerprint: Optional[str] = None   # colon-separated hex

    kind = "signer_certificate"


class SignerCertificateHandler(ResourceHandler):
    """Signer alias of a key store in a management scope."""

    kind = "signer_certificate"
    desired_type = SignerCertificateDesiredState
    attributes = (
        AttributeSpec("fingerprint", "fingerprint", immutable=True),
    )

    def label(self, desired: SignerCertificateDesiredState) -> str:
        return f"{desired.key_store_name}/{desired.name}"

    def values(self, desired: SignerCertificateDesiredState) -> dict:
        fingerprint = desired.fingerprint.upper() if desired.fingerprint else None
        return {"fingerprint": fingerprint}

    def read(self, desired: SignerCertificateDesiredState) -> EntitySnapshot:
        if not desired.key_store_name:
            raise RefusedOperationError(f"Signer certificate {desired.name} needs key_store_name")

        scope = self.scope(desired)
        keystore = self.reader.read_named(
            scope.file, "keyStores", desired.key_store_name, scope_xml=scope.xml
        )
        if not keystore.exists:
            logger.debug(f"Key store {desired.key_store_name} not found; no signer can exist")
            return EntitySnapshot.absent()

        location = keystore.attributes.get("location", "")
        password = keystore.attributes.get("password", "")
        if password:
            password = self.codec.deobfuscate(password)

        argv = [
            self.runner.config.keytool_path, "-list",
            "-storetype", keystore.attributes.get("type", ""),
            "-keystore", location,
            "-alias", desired.name,
        ]
        result = self.runner.run_command(argv, self.principal(desired), input_text=password + "\n")
        return self.parse_keytool_output(result.output, desired.name, location)

    @staticmethod
    def parse_keytool_output(output: str, alias: str, location: str) -> EntitySnapshot:
        """Classify ``keytool -list -alias`` output."""
        if f"Alias <{alias}> does not exist" in output:
            return EntitySnapshot.absent()
        if "Keystore file does not exist" in output:
            raise ExternalToolError(f"Unable to open key store file {location}", output=output)

        fingerprint = FINGERPRINT_RE.search(output)
        if fingerprint is None:
            raise ExternalToolError(f"Unexpected keytool output for alias {alias}", output=output)

        attributes = {
            "alias": alias,
            "fingerprint_algorithm": fingerprint.group(1),
            "fingerprint": fingerprint.group(2).upper(),
        }
        entry = ENTRY_RE.search(output)
        if entry:
            attributes["created"] = entry.group("created")
            attributes["entry_type"] = entry.group("entry_type")
        return EntitySnapshot(exists=True, attributes=attributes)

    def create_script(self, desired: SignerCertificateDesiredState, change: ResourceChange) -> list[str]:
        if not desired.cert_file_path:
            raise RefusedOperationError(
                f"Cannot add signer certificate {desired.name} without cert_file_path"
            )
        args = task_args([
            ("keyStoreScope", self.scope(desired).xml),
            ("certificateAlias", desired.name),
            ("keyStoreName", desired.key_store_name),
            ("certificateFilePath", desired.cert_file_path),
            ("base64Encoded", desired.base_64_encoded),
        ])
        return [f"AdminTask.addSignerCertificate({args})"]

    def modify_script(self, desired: SignerCertificateDesiredState, change: ResourceChange) -> list[str]:
        # Only the fingerprint is compared and it cannot change in place
        raise RefusedOperationError(f"Signer certificate {desired.name} cannot be modified")

    def destroy_script(self, desired: SignerCertificateDesiredState, change: ResourceChange) -> list[str]:
        args = task_args([
            ("keyStoreName", desired.key_store_name),
            ("keyStoreScope", self.scope(desired).xml),
            ("certificateAlias", desired.name),
        ])
        return [f"AdminTask.deleteSignerCertificate({args})"]
