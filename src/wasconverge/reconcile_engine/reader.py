"""Read entity state out of WebSphere configuration documents.

The documents are flat: an entity's scope and its relationships to other
entities are attribute values holding another element's xmi:id, not XML
nesting. Each document is parsed once into a DocumentIndex keyed by id,
and lookups walk that index:

    scope name -> scope id -> entity by (tag, scope id, name) -> referenced ids
"""
import logging
import os
import xml.etree.ElementTree as ET
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional

import defusedxml.ElementTree as DefusedET
from defusedxml.common import DefusedXmlException

from ..errors import DocumentError
from ..utils.logging_config import timed
from .schema import (
    ClassLoaderInstance,
    ClassLoaderMode,
    ConfigEntity,
    EntitySnapshot,
    ManagementScope,
)

logger = logging.getLogger(__name__)

XMI_NS = "http://www.omg.org/XMI"
XMI_ID = f"{{{XMI_NS}}}id"
XMI_TYPE = f"{{{XMI_NS}}}type"

CONFIG_ROOT_TOKEN = "${CONFIG_ROOT}"

# Root element of each configuration domain
SECURITY_ROOT = "Security"
APP_SECURITY_ROOT = "AppSecurity"
SERVER_ROOT = "Server"
RESOURCES_ROOT = "XMI"

# Snapshot key carrying an entry's xmi:type
XMI_TYPE_KEY = "xmi:type"


def _local(name: str) -> str:
    """Strip the namespace from an element tag or attribute name."""
    return name.rsplit("}", 1)[-1]


def _plain_attributes(element: ET.Element) -> dict[str, str]:
    """Element attributes without the xmi:id / xmi:type bookkeeping."""
    return {
        _local(key): value
        for key, value in element.attrib.items()
        if key not in (XMI_ID, XMI_TYPE)
    }


class DocumentIndex:
    """In-memory tables of one parsed configuration document."""

    def __init__(self, root: ET.Element):
        self.root_tag = _local(root.tag)
        self.root_id = root.get(XMI_ID)
        self.root_attributes = _plain_attributes(root)

        self.scopes_by_id: dict[str, ManagementScope] = {}
        self.scopes_by_name: dict[str, ManagementScope] = {}
        self.entities_by_id: dict[str, ConfigEntity] = {}
        self._by_tag: dict[str, list[ConfigEntity]] = defaultdict(list)
        self._children: dict[Optional[str], list[ConfigEntity]] = defaultdict(list)

        self._walk(root, self.root_id)

    def _walk(self, element: ET.Element, parent_id: Optional[str]) -> None:
        for child in element:
            if not isinstance(child.tag, str):
                continue  # comments and processing instructions

            attributes = _plain_attributes(child)
            entity = ConfigEntity(
                id=child.get(XMI_ID, ""),
                type_tag=_local(child.tag),
                attributes=attributes,
                scope_ref=attributes.get("managementScope"),
                xmi_type=child.get(XMI_TYPE),
                parent_id=parent_id,
            )

            self._by_tag[entity.type_tag].append(entity)
            self._children[parent_id].append(entity)
            if entity.id:
                self.entities_by_id[entity.id] = entity

            if entity.type_tag == "managementScopes" and entity.id:
                scope = ManagementScope(
                    id=entity.id,
                    name=attributes.get("scopeName", ""),
                    kind=attributes.get("scopeType", ""),
                )
                self.scopes_by_id[scope.id] = scope
                # First occurrence wins
                self.scopes_by_name.setdefault(scope.name, scope)

            self._walk(child, entity.id or parent_id)

    def scope(self, scope_id: Optional[str]) -> Optional[ManagementScope]:
        return self.scopes_by_id.get(scope_id) if scope_id else None

    def scope_named(self, name: str) -> Optional[ManagementScope]:
        return self.scopes_by_name.get(name)

    def entity(self, entity_id: Optional[str]) -> Optional[ConfigEntity]:
        return self.entities_by_id.get(entity_id) if entity_id else None

    def find(
        self,
        tag: str,
        attributes: Optional[dict[str, str]] = None,
        scope_ref: Optional[str] = None,
        xmi_type: Optional[str] = None,
    ) -> list[ConfigEntity]:
        """All entities with the given tag matching every given filter, in document order."""
        matches = []
        for entity in self._by_tag.get(tag, []):
            if scope_ref is not None and entity.scope_ref != scope_ref:
                continue
            if xmi_type is not None and entity.xmi_type != xmi_type:
                continue
            if attributes and any(
                entity.attributes.get(k) != v for k, v in attributes.items()
            ):
                continue
            matches.append(entity)
        return matches

    def children(self, parent_id: Optional[str], tag: Optional[str] = None) -> list[ConfigEntity]:
        return [
            e for e in self._children.get(parent_id, [])
            if tag is None or e.type_tag == tag
        ]


@dataclass(frozen=True)
class ReferenceRule:
    """Follow an id-valued attribute to the entity it points at.

    ``fields`` maps snapshot keys to attributes of the referenced entity;
    ``scope_fields`` maps snapshot keys to ``name`` or ``kind`` of the
    referenced entity's own management scope.
    """
    attribute: str
    target_tag: str
    fields: dict[str, str] = field(default_factory=dict)
    scope_fields: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ProviderRule:
    """Select the provider element whose children are the wanted entries.

    ``id`` matches the provider's xmi:id; ``match`` its plain attributes.
    """
    tag: str
    id: Optional[str] = None
    match: dict[str, str] = field(default_factory=dict)


class ConfigStateReader:
    """Produce entity snapshots from configuration documents."""

    def __init__(self, config_root: str):
        """
        Args:
            config_root: Profile config directory substituted for ${CONFIG_ROOT}
        """
        self.config_root = config_root.rstrip("/")

    @timed("parse_document")
    def load(self, path: str) -> Optional[DocumentIndex]:
        """
        Parse a configuration document.

        Returns:
            DocumentIndex, or None if the file does not exist

        Raises:
            DocumentError: If the file exists but cannot be read, is not
                well-formed XML, or declares entities
        """
        if not os.path.exists(path):
            logger.debug(f"Configuration document not found: {path}")
            return None

        try:
            tree = DefusedET.parse(path)
        except ET.ParseError as e:
            raise DocumentError(path, str(e)) from e
        except DefusedXmlException as e:
            raise DocumentError(path, f"refused unsafe XML: {e}") from e
        except OSError as e:
            raise DocumentError(path, e.strerror or str(e)) from e

        return DocumentIndex(tree.getroot())

    def expand(self, value: str) -> str:
        """Substitute the profile config root for a leading ${CONFIG_ROOT}."""
        if value.startswith(CONFIG_ROOT_TOKEN):
            return self.config_root + value[len(CONFIG_ROOT_TOKEN):]
        return value

    def read_named(
        self,
        path: str,
        tag: str,
        name: str,
        scope_xml: Optional[str] = None,
        name_attribute: str = "name",
        match: Optional[dict[str, str]] = None,
        references: tuple[ReferenceRule, ...] = (),
        expected_root: str = SECURITY_ROOT,
    ) -> EntitySnapshot:
        """
        Look up one named entity.

        Args:
            path: Configuration document to read
            tag: Element tag of the entity (e.g. "keyStores")
            name: Value of the name-bearing attribute
            scope_xml: Management scope name; None for unscoped entities
            name_attribute: Attribute holding the entity's name
            match: Further attribute values the entity must carry
            references: Id-valued attributes to resolve into readable values
            expected_root: Local name of the document's root element

        Returns:
            EntitySnapshot; exists=False if the document, the scope or the
            entity cannot be found
        """
        doc = self.load(path)
        if doc is None or not self._has_root(doc, expected_root, path):
            return EntitySnapshot.absent()

        scope_ref = None
        if scope_xml is not None:
            scope = doc.scope_named(scope_xml)
            if scope is None:
                logger.debug(f"No management scope {scope_xml} in {path}")
                return EntitySnapshot.absent()
            scope_ref = scope.id

        wanted = {name_attribute: name, **(match or {})}
        candidates = doc.find(tag, wanted, scope_ref=scope_ref)
        if not candidates:
            logger.debug(f"No {tag} {name!r} in scope {scope_xml or '-'}")
            return EntitySnapshot.absent()
        if len(candidates) > 1:
            logger.warning(
                f"{len(candidates)} {tag} entries named {name!r} in scope "
                f"{scope_xml or '-'}; using the first"
            )

        entity = candidates[0]
        attributes = {k: self.expand(v) for k, v in entity.attributes.items()}
        for rule in references:
            self._resolve_reference(doc, attributes, rule)

        logger.debug(f"Found {tag} {name!r} as {entity.id}")
        return EntitySnapshot(exists=True, attributes=attributes, entity_id=entity.id)

    def read_provider_entry(
        self,
        path: str,
        provider: ProviderRule,
        tag: str,
        name: str,
        xmi_types: tuple[str, ...] = (),
        nested: tuple[str, ...] = (),
        property_sets: tuple[str, ...] = (),
    ) -> EntitySnapshot:
        """
        Look up a named entry under a resource provider of a resources.xml.

        The entry's own attributes are kept as they are, plus its xmi:type
        under ``xmi:type``. Attributes of each ``nested`` child element are
        flattened to ``<child>/<attribute>``. resourceProperties name/value
        pairs are read from the entry itself when ``property_sets`` holds
        "", or from a named child element, keyed ``<child>/<name>``; an
        arbitraryProperties value of comma-separated ``k="v"`` items is
        split into one key per item.

        Args:
            path: The scope's resources.xml
            provider: Which provider element holds the entries
            tag: Element tag of the entries (e.g. "factories")
            name: Value of the entry's name attribute
            xmi_types: Accepted xmi:type values; any when empty

        Returns:
            EntitySnapshot; exists=False if the document, the provider or
            the entry cannot be found
        """
        doc = self.load(path)
        if doc is None or not self._has_root(doc, RESOURCES_ROOT, path):
            return EntitySnapshot.absent()

        providers = [
            p for p in doc.find(provider.tag, provider.match or None)
            if provider.id is None or p.id == provider.id
        ]
        if not providers:
            logger.debug(f"No {provider.tag} {provider.id or provider.match} in {path}")
            return EntitySnapshot.absent()

        candidates = [
            e for e in doc.children(providers[0].id, tag)
            if e.attributes.get("name") == name
            and (not xmi_types or e.xmi_type in xmi_types)
        ]
        if not candidates:
            logger.debug(f"No {tag} {name!r} under {provider.tag} in {path}")
            return EntitySnapshot.absent()
        if len(candidates) > 1:
            logger.warning(f"{len(candidates)} {tag} entries named {name!r}; using the first")

        entry = candidates[0]
        attributes = {k: self.expand(v) for k, v in entry.attributes.items()}
        if entry.xmi_type:
            attributes[XMI_TYPE_KEY] = entry.xmi_type

        for child in doc.children(entry.id):
            if child.type_tag in nested:
                for key, value in child.attributes.items():
                    attributes[f"{child.type_tag}/{key}"] = self.expand(value)

        for holder in property_sets:
            holders = [entry] if not holder else doc.children(entry.id, holder)
            prefix = f"{holder}/" if holder else ""
            for parent in holders:
                for prop in doc.children(parent.id, "resourceProperties"):
                    self._read_property(prop, prefix, attributes)

        logger.debug(f"Found {tag} {name!r} as {entry.id}")
        return EntitySnapshot(exists=True, attributes=attributes, entity_id=entry.id)

    def _read_property(self, prop: ConfigEntity, prefix: str, attributes: dict[str, str]) -> None:
        name = prop.attributes.get("name")
        if not name:
            return
        value = prop.attributes.get("value", "")
        if name != "arbitraryProperties":
            attributes[prefix + name] = value
            return
        for item in value.split(","):
            key, sep, item_value = item.partition("=")
            if sep and key.strip():
                attributes[prefix + key.strip()] = item_value.strip().strip('"')

    def read_trust_association(self, path: str, global_domain: bool = True) -> EntitySnapshot:
        """
        Look up the LTPA trust association of a security domain.

        The global domain keeps it under the active auth mechanism of
        security.xml; a named domain under the LTPA mechanism of its
        domain-security.xml.
        """
        expected_root = SECURITY_ROOT if global_domain else APP_SECURITY_ROOT
        doc = self.load(path)
        if doc is None or not self._has_root(doc, expected_root, path):
            return EntitySnapshot.absent()

        if global_domain:
            active = doc.root_attributes.get("activeAuthMechanism")
            mechanism = doc.entity(active)
            if mechanism is not None and mechanism.xmi_type != "security:LTPA":
                mechanism = None
        else:
            mechanisms = doc.find("authMechanisms", xmi_type="security:LTPA")
            mechanism = mechanisms[0] if mechanisms else None

        if mechanism is None:
            logger.debug(f"No LTPA auth mechanism in {path}")
            return EntitySnapshot.absent()

        entries = doc.children(mechanism.id, "trustAssociation")
        if not entries:
            return EntitySnapshot.absent()

        entry = entries[0]
        return EntitySnapshot(
            exists=True,
            attributes=dict(entry.attributes),
            entity_id=entry.id or None,
        )

    def read_class_loaders(
        self,
        path: str,
        cluster: Optional[str] = None,
    ) -> Optional[list[ClassLoaderInstance]]:
        """
        List the anonymous class loaders of an application server.

        Args:
            path: The server's server.xml
            cluster: If given, the server must be a member of this cluster

        Returns:
            Class loaders in document order, or None if the document or
            the application server component is absent
        """
        doc = self.load(path)
        if doc is None or not self._has_root(doc, SERVER_ROOT, path):
            return None

        if cluster is not None and doc.root_attributes.get("clusterName") != cluster:
            logger.debug(f"{path} is not a member of cluster {cluster}")
            return None

        components = doc.find(
            "components", xmi_type="applicationserver:ApplicationServer"
        )
        if not components:
            return None

        instances = []
        for loader in doc.children(components[0].id, "classloaders"):
            if "Classloader_" not in loader.id:
                continue
            try:
                mode = ClassLoaderMode(loader.attributes.get("mode", ""))
            except ValueError:
                logger.warning(
                    f"Ignoring class loader {loader.id} with mode "
                    f"{loader.attributes.get('mode')!r}"
                )
                continue

            libraries = tuple(
                lib.attributes["libraryName"]
                for lib in doc.children(loader.id, "libraries")
                if "libraryName" in lib.attributes
            )
            instances.append(ClassLoaderInstance(id=loader.id, mode=mode, libraries=libraries))

        return instances

    def _resolve_reference(
        self,
        doc: DocumentIndex,
        attributes: dict[str, str],
        rule: ReferenceRule,
    ) -> None:
        ref_id = attributes.get(rule.attribute)
        target = doc.entity(ref_id)
        if target is None or target.type_tag != rule.target_tag:
            if ref_id:
                logger.warning(f"{rule.attribute}={ref_id} does not name a {rule.target_tag}")
            for key in list(rule.fields) + list(rule.scope_fields):
                attributes[key] = ""
            return

        for key, attribute in rule.fields.items():
            attributes[key] = self.expand(target.attributes.get(attribute, ""))

        scope = doc.scope(target.scope_ref)
        for key, part in rule.scope_fields.items():
            attributes[key] = getattr(scope, part) if scope else ""

    def _has_root(self, doc: DocumentIndex, expected: str, path: str) -> bool:
        if doc.root_tag != expected:
            logger.warning(f"{path}: expected root element {expected}, found {doc.root_tag}")
            return False
        return True
