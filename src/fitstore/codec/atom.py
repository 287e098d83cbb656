"""
Atom (XML feed/entry) codec.

Document shapes:

    <feed xmlns="http://www.w3.org/2005/Atom" xmlns:m=... xmlns:d=...>
      <m:count>2</m:count>                         (optional)
      <entry>
        <id>http://host/Customers(1)</id>          (optional)
        <category term="#NS.Customer" scheme=.../> (optional)
        <content type="application/xml">
          <m:properties>
            <d:PersonID m:type="Int32">1</d:PersonID>
            <d:Name>Bob</d:Name>
            <d:Phone m:null="true"/>
          </m:properties>
        </content>
      </entry>
      <m:ref id="http://host/Orders(7)"/>          (reference-only entity)
      <link rel="next" href="..."/>                (optional)
    </feed>

A single entity is an <entry> root, or an <m:ref> root when reference-only.
"""

from __future__ import annotations

from lxml import etree

from fitstore.codec.base import FormatCodec, Model
from fitstore.codec.formats import FormatKind
from fitstore.model import EdmType, Entity, EntitySet, Property
from fitstore.model.edm import from_text, to_text

ATOM_NS = "http://www.w3.org/2005/Atom"
METADATA_NS = "http://docs.oasis-open.org/odata/ns/metadata"
DATA_NS = "http://docs.oasis-open.org/odata/ns/data"
SCHEME_NS = "http://docs.oasis-open.org/odata/ns/scheme"

NSMAP = {None: ATOM_NS, "m": METADATA_NS, "d": DATA_NS}

FEED = f"{{{ATOM_NS}}}feed"
ENTRY = f"{{{ATOM_NS}}}entry"
ID = f"{{{ATOM_NS}}}id"
CATEGORY = f"{{{ATOM_NS}}}category"
CONTENT = f"{{{ATOM_NS}}}content"
LINK = f"{{{ATOM_NS}}}link"
REF = f"{{{METADATA_NS}}}ref"
COUNT = f"{{{METADATA_NS}}}count"
PROPERTIES = f"{{{METADATA_NS}}}properties"
M_TYPE = f"{{{METADATA_NS}}}type"
M_NULL = f"{{{METADATA_NS}}}null"

NEXT_REL = "next"


def _parser() -> etree.XMLParser:
    # No DTD entity expansion and no network fetches for untrusted payloads
    return etree.XMLParser(resolve_entities=False, no_network=True, load_dtd=False)


def _elements(parent: etree._Element) -> list[etree._Element]:
    """Child elements, skipping comments and processing instructions."""
    return [child for child in parent if isinstance(child.tag, str)]


class AtomCodec(FormatCodec):
    """Codec for the Atom feed/entry format."""

    @property
    def format_kind(self) -> FormatKind:
        return FormatKind.ATOM

    # --- encoding ---

    def _encode_entity(self, entity: Entity) -> bytes:
        if entity.is_reference:
            root = etree.Element(REF, nsmap=NSMAP)
            root.set("id", entity.reference)
        else:
            root = etree.Element(ENTRY, nsmap=NSMAP)
            self._fill_entry(root, entity)
        return self._serialize(root)

    def _encode_entity_set(self, entity_set: EntitySet) -> bytes:
        feed = etree.Element(FEED, nsmap=NSMAP)
        if entity_set.count is not None:
            etree.SubElement(feed, COUNT).text = str(entity_set.count)
        for entity in entity_set.entities:
            if entity.is_reference:
                etree.SubElement(feed, REF, id=entity.reference)
            else:
                self._fill_entry(etree.SubElement(feed, ENTRY), entity)
        if entity_set.next_link is not None:
            etree.SubElement(feed, LINK, rel=NEXT_REL, href=entity_set.next_link)
        return self._serialize(feed)

    @staticmethod
    def _fill_entry(entry: etree._Element, entity: Entity) -> None:
        if entity.id is not None:
            etree.SubElement(entry, ID).text = entity.id
        if entity.type_name is not None:
            etree.SubElement(entry, CATEGORY, term=f"#{entity.type_name}", scheme=SCHEME_NS)
        content = etree.SubElement(entry, CONTENT, type="application/xml")
        properties = etree.SubElement(content, PROPERTIES)
        for prop in entity.properties:
            element = etree.SubElement(properties, f"{{{DATA_NS}}}{prop.name}")
            edm_type = prop.edm_type
            if edm_type is None:
                element.set(M_NULL, "true")
                continue
            # Edm.String is the default and stays unannotated
            if edm_type is not EdmType.STRING:
                element.set(M_TYPE, edm_type.short_name)
            element.text = to_text(prop.value)

    @staticmethod
    def _serialize(root: etree._Element) -> bytes:
        return etree.tostring(root, xml_declaration=True, encoding="UTF-8")

    # --- decoding ---

    def _decode(self, data: bytes) -> Model:
        try:
            root = etree.fromstring(data, _parser())
        except etree.XMLSyntaxError as exc:
            raise self.malformed(f"invalid XML: {exc}") from exc

        if root.tag == FEED:
            return self._decode_feed(root)
        if root.tag == ENTRY:
            return self._decode_entry(root)
        if root.tag == REF:
            return self._decode_ref(root)
        raise self.malformed(f"unexpected root element {root.tag!r}")

    def _decode_feed(self, feed: etree._Element) -> EntitySet:
        entities: list[Entity] = []
        count: int | None = None
        next_link: str | None = None

        for child in _elements(feed):
            if child.tag == ENTRY:
                entities.append(self._decode_entry(child))
            elif child.tag == REF:
                entities.append(self._decode_ref(child))
            elif child.tag == COUNT:
                count = int((child.text or "").strip())
            elif child.tag == LINK and child.get("rel") == NEXT_REL:
                next_link = child.get("href")
                if not next_link:
                    raise self.malformed("next link without href")
            # Other feed-level elements (id, title, updated, ...) carry no model data

        return EntitySet(entities=tuple(entities), next_link=next_link, count=count)

    def _decode_ref(self, element: etree._Element) -> Entity:
        reference = element.get("id")
        if not reference:
            raise self.malformed("m:ref element without id")
        return Entity(reference=reference)

    def _decode_entry(self, entry: etree._Element) -> Entity:
        entity_id: str | None = None
        type_name: str | None = None
        properties_element: etree._Element | None = None

        for child in _elements(entry):
            if child.tag == ID:
                entity_id = child.text or None
            elif child.tag == CATEGORY and child.get("scheme") == SCHEME_NS:
                type_name = (child.get("term") or "").removeprefix("#") or None
            elif child.tag == CONTENT:
                properties_element = child.find(PROPERTIES)
            elif child.tag == PROPERTIES:
                # Media entities carry properties next to the content element
                properties_element = child

        properties: list[Property] = []
        if properties_element is not None:
            for element in _elements(properties_element):
                properties.append(self._decode_property(element))

        return Entity(properties=tuple(properties), id=entity_id, type_name=type_name)

    def _decode_property(self, element: etree._Element) -> Property:
        qname = etree.QName(element)
        if qname.namespace != DATA_NS:
            raise self.malformed(f"property element outside data namespace: {element.tag!r}")
        if _elements(element):
            raise self.malformed(f"structured property {qname.localname!r} is not supported")

        if element.get(M_NULL) == "true":
            return Property(name=qname.localname, value=None)

        type_attr = element.get(M_TYPE)
        edm_type = EdmType.parse(type_attr) if type_attr else EdmType.STRING
        return Property(name=qname.localname, value=from_text(element.text or "", edm_type))
