# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Document structure objects: catalog, page tree, resources and trees."""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pikepdf import Array, Dictionary, Name, String

from ..metadata import format_pdf_date
from .base import PdfObject, PdfStream, Ref, name, pdf_value

if TYPE_CHECKING:
    from .graphics import (
        ExtGState,
        ICCBasedColorSpace,
        ICCStream,
        Pattern,
        SeparationColorSpace,
        Shading,
    )
    from .navigation import FileSpec, Link, Navigator, Outline

logger = logging.getLogger(__name__)

# Procedure sets listed in every resource dictionary
_PROC_SET = ("PDF", "Text", "ImageB", "ImageC", "ImageI")

# Page label numbering styles
PAGE_LABEL_STYLES = frozenset({"D", "R", "r", "A", "a"})


class Root(PdfObject):
    """The document catalog."""

    kind = "root"

    def __init__(self, pages: "Pages") -> None:
        super().__init__()
        self.pages = pages
        self.names: Names | None = None
        self.outline_root: Outline | None = None
        self.page_labels: PageLabels | None = None
        self.metadata: Metadata | None = None
        self.page_mode: str | None = None
        self.language: str | None = None
        self.output_intents: list[OutputIntent] = []
        self.layers: list[Layer] = []

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        catalog = Dictionary(Type=Name.Catalog, Pages=ref(self.pages))
        if self.names is not None:
            catalog[Name.Names] = ref(self.names)
        if self.outline_root is not None:
            catalog[Name.Outlines] = ref(self.outline_root)
        if self.page_labels is not None:
            catalog[Name.PageLabels] = ref(self.page_labels)
        if self.metadata is not None:
            catalog[Name.Metadata] = ref(self.metadata)
        if self.page_mode:
            catalog[Name.PageMode] = name(self.page_mode)
        if self.language:
            catalog[Name.Lang] = String(self.language)
        if self.output_intents:
            catalog[Name.OutputIntents] = Array(
                [ref(intent) for intent in self.output_intents]
            )
        if self.layers:
            catalog[Name.OCProperties] = self._optional_content(ref)
        return catalog

    def _optional_content(self, ref: Ref) -> Dictionary:
        layers = [ref(layer) for layer in self.layers]
        default = Dictionary(
            Order=Array(layers),
            ON=Array([ref(layer) for layer in self.layers if layer.visible]),
        )
        hidden = [ref(layer) for layer in self.layers if not layer.visible]
        if hidden:
            default[Name.OFF] = Array(hidden)
        return Dictionary(OCGs=Array(layers), D=default)


class Pages(PdfObject):
    """Root node of the page tree."""

    kind = "pages"

    def __init__(self) -> None:
        super().__init__()
        self.kids: list[Page] = []

    def add_page(self, page: "Page") -> None:
        page.parent = self
        self.kids.append(page)

    @property
    def count(self) -> int:
        return len(self.kids)

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        return Dictionary(
            Type=Name.Pages,
            Kids=Array([ref(kid) for kid in self.kids]),
            Count=self.count,
        )


class Page(PdfObject):
    """A page with its media box, resources and content streams."""

    kind = "page"

    def __init__(
        self,
        resources: "Resources",
        page_index: int,
        media_box: tuple[float, float, float, float],
    ) -> None:
        super().__init__()
        self.resources = resources
        self.page_index = page_index
        self.media_box = tuple(media_box)
        self.parent: Pages | None = None
        self.contents: list[PdfStream] = []
        self.annotations: list[Link] = []
        self.pres_steps: Navigator | None = None

    def add_contents(self, stream: PdfStream) -> None:
        self.contents.append(stream)

    def add_annotation(self, link: "Link") -> None:
        if link not in self.annotations:
            self.annotations.append(link)

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        page = Dictionary(
            Type=Name.Page,
            MediaBox=Array(list(self.media_box)),
            Resources=ref(self.resources),
        )
        if self.parent is not None:
            page[Name.Parent] = ref(self.parent)
        if len(self.contents) == 1:
            page[Name.Contents] = ref(self.contents[0])
        elif self.contents:
            page[Name.Contents] = Array([ref(c) for c in self.contents])
        if self.annotations:
            page[Name.Annots] = Array([ref(a) for a in self.annotations])
        if self.pres_steps is not None:
            page[Name.PresSteps] = ref(self.pres_steps)
        return page


class Resources(PdfObject):
    """Resource dictionary shared by the pages of a document.

    Shadings, patterns, graphics states, color spaces and layers get
    generated resource names (``Sh1``, ``Pa1``, ``GS1``, ``CS1``, ``OC1``)
    the first time they are added. Fonts, and color spaces with an
    explicit name, are added under the key chosen by the caller.
    """

    kind = "resources"

    def __init__(self) -> None:
        super().__init__()
        self.fonts: dict[str, PdfObject] = {}
        self.shadings: dict[str, Shading] = {}
        self.patterns: dict[str, Pattern] = {}
        self.gstates: dict[str, ExtGState] = {}
        self.color_spaces: dict[str, SeparationColorSpace | ICCBasedColorSpace] = {}
        self.properties: dict[str, Layer] = {}

    def add_font(self, key: str, font: PdfObject) -> None:
        self.fonts[key] = font

    def _add(
        self,
        table: dict[str, Any],
        prefix: str,
        obj: Any,
        res_name: str | None = None,
    ) -> str:
        for existing_name, existing in table.items():
            if existing is obj:
                return existing_name
        if res_name is None:
            res_name = f"{prefix}{len(table) + 1}"
        table[res_name] = obj
        return res_name

    def add_shading(self, shading: "Shading") -> str:
        shading.name = self._add(self.shadings, "Sh", shading)
        return shading.name

    def add_pattern(self, pattern: "Pattern") -> str:
        pattern.name = self._add(self.patterns, "Pa", pattern)
        return pattern.name

    def add_gstate(self, gstate: "ExtGState") -> str:
        gstate.name = self._add(self.gstates, "GS", gstate)
        return gstate.name

    def add_color_space(
        self, color_space: "SeparationColorSpace | ICCBasedColorSpace"
    ) -> str:
        explicit_name = getattr(color_space, "explicit_name", None)
        color_space.name = self._add(
            self.color_spaces, "CS", color_space, explicit_name
        )
        return color_space.name

    def add_layer(self, layer: "Layer") -> str:
        """Adds a layer as a marked-content property list."""
        layer.name = self._add(self.properties, "OC", layer)
        return layer.name

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        resources = Dictionary(ProcSet=Array([name(p) for p in _PROC_SET]))
        for key, table in (
            ("Font", self.fonts),
            ("Shading", self.shadings),
            ("Pattern", self.patterns),
            ("ExtGState", self.gstates),
            ("ColorSpace", self.color_spaces),
            ("Properties", self.properties),
        ):
            if table:
                resources[name(key)] = Dictionary(
                    {f"/{k}": ref(v) for k, v in table.items()}
                )
        return resources


class Info(PdfObject):
    """Document information dictionary."""

    kind = "info"

    def __init__(self, producer: str | None = None) -> None:
        super().__init__()
        self.producer = producer
        self.creator: str | None = None
        self.title: str | None = None
        self.author: str | None = None
        self.subject: str | None = None
        self.keywords: str | None = None
        self.creation_date: datetime | None = None
        self.mod_date: datetime | None = None

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        info = Dictionary()
        for key, value in (
            ("Title", self.title),
            ("Author", self.author),
            ("Subject", self.subject),
            ("Keywords", self.keywords),
            ("Creator", self.creator),
            ("Producer", self.producer),
        ):
            if value:
                info[name(key)] = String(value)
        if self.creation_date is not None:
            info[Name.CreationDate] = String(format_pdf_date(self.creation_date))
        if self.mod_date is not None:
            info[Name.ModDate] = String(format_pdf_date(self.mod_date))
        return info


class Metadata(PdfStream):
    """XMP metadata stream of the catalog (never compressed)."""

    kind = "metadata"

    def __init__(self, xmp: bytes) -> None:
        super().__init__(xmp, Type=Name.Metadata, Subtype=Name.XML)


class NameTreeNode(PdfObject):
    """A node of a name tree.

    Leaf nodes hold ``names`` (key, object) pairs, intermediate nodes hold
    ``kids``. ``limits`` is the (lowest, highest) key below the node.
    """

    kind = "name_tree_node"

    def __init__(self) -> None:
        super().__init__()
        self.names: list[tuple[str, PdfObject]] | None = None
        self.kids: list[NameTreeNode] | None = None
        self.limits: tuple[str, str] | None = None

    def add_name(self, key: str, obj: PdfObject) -> None:
        if self.names is None:
            self.names = []
        self.names.append((key, obj))
        self.names.sort(key=lambda entry: entry[0])

    def find_name(self, key: str) -> PdfObject | None:
        for entry_key, obj in self.names or []:
            if entry_key == key:
                return obj
        return None

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        node = Dictionary()
        if self.names is not None:
            entries: list[Any] = []
            for key, obj in self.names:
                entries.extend([String(key), pdf_value(obj, ref)])
            node[Name.Names] = Array(entries)
        if self.kids is not None:
            node[Name.Kids] = Array([ref(kid) for kid in self.kids])
        if self.limits is not None:
            node[Name.Limits] = Array([String(k) for k in self.limits])
        return node


class Dests(NameTreeNode):
    """Root of the named destinations tree."""

    kind = "dests"


class EmbeddedFiles(NameTreeNode):
    """Root of the embedded files name tree (filename -> file spec)."""

    kind = "embedded_files"

    def find_file(self, filename: str) -> "FileSpec | None":
        return self.find_name(filename)  # type: ignore[return-value]


class Names(PdfObject):
    """The catalog's name dictionary."""

    kind = "names"

    def __init__(self) -> None:
        super().__init__()
        self.dests: Dests | None = None
        self.embedded_files: EmbeddedFiles | None = None

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        names = Dictionary()
        if self.dests is not None:
            names[Name.Dests] = ref(self.dests)
        if self.embedded_files is not None:
            names[Name.EmbeddedFiles] = ref(self.embedded_files)
        return names


class PageLabels(PdfObject):
    """Page label number tree (page index -> label style)."""

    kind = "page_labels"

    def __init__(self) -> None:
        super().__init__()
        self.labels: dict[int, dict[str, Any]] = {}

    def add_label(
        self,
        page_index: int,
        style: str | None = "D",
        prefix: str | None = None,
        start: int | None = None,
    ) -> None:
        """Starts a labelling range at a page.

        Raises:
            ValueError: If the style or start value is invalid.
        """
        if style is not None and style not in PAGE_LABEL_STYLES:
            raise ValueError(f"Invalid page label style: {style}")
        if start is not None and start < 1:
            raise ValueError("Page label start value must be at least 1")
        label: dict[str, Any] = {}
        if style is not None:
            label["S"] = name(style)
        if prefix:
            label["P"] = String(prefix)
        if start is not None:
            label["St"] = start
        self.labels[page_index] = label

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        nums: list[Any] = []
        for index in sorted(self.labels):
            nums.extend([index, pdf_value(self.labels[index], ref)])
        return Dictionary(Nums=Array(nums))


class OutputIntent(PdfObject):
    """Output intent of the catalog: the device the colors are meant for.

    Args:
        subtype: Output intent subtype, e.g. ``GTS_PDFA1``.
        output_condition_identifier: Name of the output condition.
        dest_output_profile: ICC profile of the output device.
        info: Human-readable description of the output condition.
        registry_name: Registry the identifier is defined in.
    """

    kind = "output_intent"

    def __init__(
        self,
        subtype: str,
        output_condition_identifier: str,
        dest_output_profile: "ICCStream | None" = None,
        *,
        info: str | None = None,
        registry_name: str | None = None,
        output_condition: str | None = None,
    ) -> None:
        super().__init__()
        self.subtype = subtype
        self.output_condition_identifier = output_condition_identifier
        self.dest_output_profile = dest_output_profile
        self.info = info
        self.registry_name = registry_name
        self.output_condition = output_condition

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        intent = Dictionary(
            Type=Name.OutputIntent,
            S=name(self.subtype),
            OutputConditionIdentifier=String(self.output_condition_identifier),
        )
        if self.output_condition:
            intent[Name.OutputCondition] = String(self.output_condition)
        if self.registry_name:
            intent[Name.RegistryName] = String(self.registry_name)
        if self.info:
            intent[Name.Info] = String(self.info)
        if self.dest_output_profile is not None:
            intent[Name.DestOutputProfile] = ref(self.dest_output_profile)
        return intent


class Layer(PdfObject):
    """Optional content group that viewers can show or hide.

    ``name`` is the resource name given when the layer is added to a
    resource dictionary; ``label`` is the name shown to the reader.
    """

    kind = "layer"

    def __init__(
        self,
        layer_id: str,
        label: str | None = None,
        visible: bool = True,
        intent: str | None = None,
    ) -> None:
        super().__init__()
        self.layer_id = layer_id
        self.label = label
        self.visible = visible
        self.intent = intent
        self.name: str | None = None

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        layer = Dictionary(Type=Name.OCG, Name=String(self.label or self.layer_id))
        if self.intent:
            layer[Name.Intent] = name(self.intent)
        return layer
