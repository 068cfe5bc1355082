"""
Content-safety transform for uploaded blog documents.

Word packages lose their macro projects, ActiveX controls, embedded OLE
objects and script-scheme hyperlinks. Legacy HTML and markdown documents
lose script-bearing elements and inline event handlers.

A document that carries none of these comes back byte-for-byte unchanged,
so running the transform twice is the same as running it once.
"""

from io import BytesIO
from posixpath import dirname, join, normpath
from xml.etree.ElementTree import Element, tostring
from zipfile import BadZipFile, ZipFile

from bs4 import BeautifulSoup
from defusedxml import DefusedXmlException
from defusedxml.ElementTree import ParseError, fromstring
from fastapi.concurrency import run_in_threadpool

from app.errors.upload import InvalidContentError
from app.monitoring.logging import get_logger

logger = get_logger(__name__)

CONTENT_TYPES_PART = "[Content_Types].xml"
RELS_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
CONTENT_TYPES_NS = "http://schemas.openxmlformats.org/package/2006/content-types"

DOCX_MAIN_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"
MACRO_MAIN_TYPE = "application/vnd.ms-word.document.macroEnabled.main+xml"
VBA_PROJECT_TYPE = "application/vnd.ms-office.vbaProject"

UNSAFE_PART_NAMES = frozenset({"vbaproject.bin", "vbadata.xml"})
UNSAFE_PART_DIRS = ("word/activex/",)
UNSAFE_SCHEMES = ("javascript:", "vbscript:", "data:")

UNSAFE_TAGS = ["script", "iframe", "object", "embed", "style", "frame", "frameset", "applet"]
URL_ATTRS = frozenset({"href", "src", "action", "formaction", "xlink:href", "background"})

HTML_EXTENSIONS = frozenset({".html", ".htm", ".md"})


def _is_unsafe_part(name: str) -> bool:
    lowered = name.lower()
    basename = lowered.rsplit("/", 1)[-1]
    if basename in UNSAFE_PART_NAMES:
        return True
    if lowered.startswith(UNSAFE_PART_DIRS):
        return True
    return lowered.startswith("word/embeddings/") and basename.startswith("oleobject")


def _has_unsafe_scheme(value: str) -> bool:
    return "".join(value.split()).lower().startswith(UNSAFE_SCHEMES)


def _parse(xml: bytes) -> Element:
    return fromstring(xml, forbid_dtd=True)


def _serialize(root: Element, namespace: str) -> bytes:
    """Write a package part back out with `namespace` as its default namespace."""
    qualifier = f"{{{namespace}}}"
    for element in root.iter():
        if element.tag.startswith(qualifier):
            element.tag = element.tag.removeprefix(qualifier)
    root.set("xmlns", namespace)
    return tostring(root, encoding="UTF-8", xml_declaration=True)


def _rels_base(rels_name: str) -> str:
    """Directory relationship targets in a `.rels` part are relative to."""
    return dirname(dirname(rels_name))


def _clean_relationships(xml: bytes, base: str, dropped: set[str]) -> bytes | None:
    """
    Drop relationships to removed parts or to script-scheme URLs.

    Returns:
        bytes | None: Rewritten part, or None when nothing was removed
    """
    root = _parse(xml)
    removed: list[Element] = []
    for rel in root:
        target = rel.get("Target", "")
        rel_type = rel.get("Type", "")
        if rel.get("TargetMode") == "External":
            if _has_unsafe_scheme(target):
                removed.append(rel)
            continue
        resolved = target.lstrip("/") if target.startswith("/") else normpath(join(base, target))
        if resolved in dropped or rel_type.endswith("/vbaProject"):
            removed.append(rel)

    if not removed:
        return None
    for rel in removed:
        root.remove(rel)
    return _serialize(root, RELS_NS)


def _clean_content_types(xml: bytes, dropped: set[str]) -> bytes | None:
    """Drop overrides for removed parts and demote a macro-enabled main part."""
    root = _parse(xml)
    changed = False
    for entry in list(root):
        content_type = entry.get("ContentType", "")
        part_name = entry.get("PartName", "").lstrip("/")
        if part_name in dropped or content_type == VBA_PROJECT_TYPE:
            root.remove(entry)
            changed = True
        elif content_type == MACRO_MAIN_TYPE:
            entry.set("ContentType", DOCX_MAIN_TYPE)
            changed = True

    if not changed:
        return None
    return _serialize(root, CONTENT_TYPES_NS)


def sanitize_docx(data: bytes) -> bytes:
    """
    Strip executable parts from a Word package.

    Args:
        data: Raw `.docx` bytes

    Returns:
        bytes: Cleaned package, or `data` itself when already clean

    Raises:
        InvalidContentError: If `data` is not a readable Word package
    """
    try:
        source = ZipFile(BytesIO(data))
    except BadZipFile as e:
        raise InvalidContentError from e

    with source:
        names = source.namelist()
        if CONTENT_TYPES_PART not in names:
            raise InvalidContentError

        dropped = {name for name in names if _is_unsafe_part(name)}
        rewritten: dict[str, bytes] = {}
        try:
            for name in names:
                if name in dropped:
                    continue
                if name.endswith(".rels"):
                    cleaned = _clean_relationships(source.read(name), _rels_base(name), dropped)
                elif name == CONTENT_TYPES_PART:
                    cleaned = _clean_content_types(source.read(name), dropped)
                else:
                    continue
                if cleaned is not None:
                    rewritten[name] = cleaned
        except (ParseError, DefusedXmlException, BadZipFile) as e:
            raise InvalidContentError from e

        if not dropped and not rewritten:
            return data

        output = BytesIO()
        with ZipFile(output, "w") as target:
            for info in source.infolist():
                if info.filename in dropped:
                    continue
                payload = rewritten.get(info.filename)
                target.writestr(info, payload if payload is not None else source.read(info))

    logger.info(
        "Stripped unsafe document parts",
        dropped=sorted(dropped),
        rewritten=sorted(rewritten),
    )
    return output.getvalue()


def sanitize_html(data: bytes) -> bytes:
    """
    Remove script-bearing markup from an HTML or markdown document.

    Args:
        data: UTF-8 encoded document

    Returns:
        bytes: Cleaned document, or `data` itself when already clean
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidContentError("Content file must be UTF-8 encoded") from e

    soup = BeautifulSoup(text, "html.parser")
    changed = False
    for tag in soup.find_all(UNSAFE_TAGS):
        tag.decompose()
        changed = True

    for tag in soup.find_all(True):
        for attr in list(tag.attrs):
            value = tag.attrs[attr]
            if attr.lower().startswith("on") or (
                attr.lower() in URL_ATTRS and isinstance(value, str) and _has_unsafe_scheme(value)
            ):
                del tag.attrs[attr]
                changed = True

    return str(soup).encode("utf-8") if changed else data


class ContentSanitizer:
    """Dispatches uploaded content to the transform for its document type."""

    def sanitize(self, data: bytes, extension: str) -> bytes:
        extension = extension.lower()
        if extension == ".docx":
            return sanitize_docx(data)
        if extension in HTML_EXTENSIONS:
            return sanitize_html(data)
        raise InvalidContentError(f"Unsupported content document type {extension!r}")

    async def transform(self, data: bytes, extension: str) -> bytes:
        """
        Run the transform off the event loop.

        Args:
            data: Raw uploaded bytes
            extension: Normalized file extension, e.g. ``.docx``

        Returns:
            bytes: Safe document bytes
        """
        return await run_in_threadpool(self.sanitize, data, extension)
