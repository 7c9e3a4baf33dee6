# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Factory for the objects of a document.

:class:`DocumentFactory` is the single entry point for creating objects:
it numbers and registers them, shares structurally equal functions,
shadings, patterns, links, destinations, actions and file
specifications, and drives font embedding and subsetting.
"""

import logging
from collections.abc import Sequence
from enum import Enum
from typing import Any

from .color_profile import (
    default_alternate,
    icc_component_count,
    validate_icc_profile,
)
from .colors import Color
from .constants import (
    EMBEDDED_FILE_PREFIX,
    FILE_URL_PREFIX,
    FULL_CFF_PDF_VERSION,
    HTTP_PREFIXES,
    ICC_REGISTRY_NAME,
    OPTIONAL_CONTENT_PDF_VERSION,
    OUTPUT_INTENT_PDF_VERSION,
    PDF_DEST_FRAGMENT,
    PDF_PAGE_FRAGMENT,
    PDFA_OUTPUT_INTENT,
)
from .document import DocumentContext
from .exceptions import (
    ConfigurationError,
    FontEmbeddingError,
    UnsupportedFontError,
)
from .fonts.cidset import pack_cid_set
from .fonts.constants import (
    IDENTITY_H,
    STANDARD_14_FONTS,
    SUBSET_PREFIX_DIGITS,
    SUBSET_PREFIX_START,
    SYMBOL_FONTS,
)
from .fonts.metrics import FontMetricsExtractor
from .fonts.model import CIDFont, EmbeddingMode, Font, FontType, SimpleFont
from .fonts.subsetter import extract_font, subsetter_for
from .fonts.tounicode import (
    generate_cidfont_tounicode_cmap,
    generate_tounicode_cmap_data,
)
from .fonts.type1 import read_type1_program
from .fonts.utils import check_fstype_restrictions, get_fstype
from .gradients import PdfGradientBuilder
from .metadata import create_xmp_metadata
from .objects import (
    CIDFontDescriptor,
    CIDFontDict,
    Destination,
    Dests,
    EmbeddedFile,
    EmbeddedFiles,
    Encoding,
    ExtGState,
    FileSpec,
    FontDescriptor,
    FontFile,
    Function,
    GoTo,
    GoToRemote,
    ICCBasedColorSpace,
    ICCStream,
    Info,
    JavaScript,
    Launch,
    Layer,
    Link,
    Metadata,
    Names,
    NameTreeNode,
    Navigator,
    Outline,
    OutputIntent,
    Page,
    PageLabels,
    Pages,
    Pattern,
    PdfObject,
    PdfStream,
    Resources,
    Root,
    SeparationColorSpace,
    SetOCGState,
    Shading,
    SimpleFontDict,
    ToUnicodeCMap,
    Transition,
    Type0Font,
    Uri,
)
from .objects.fonts import FONT_FILE, FONT_FILE2, FONT_FILE3
from .objects.graphics import FUNCTION_EXPONENTIAL
from .objects.navigation import to_pdf_string

logger = logging.getLogger(__name__)

Rect = tuple[float, float, float, float]


class LinkType(Enum):
    """Whether a link target is inside or outside the document."""

    INTERNAL = "internal"
    EXTERNAL = "external"


class DocumentFactory:
    """Creates, registers and shares the objects of one document.

    Args:
        context: The document being built.
    """

    def __init__(self, context: DocumentContext) -> None:
        self.context = context
        self.registry = context.registry
        self._subset_font_count = 0
        self._metrics = FontMetricsExtractor()
        self._gradients = PdfGradientBuilder(self)
        context.add_finalizer(self._finish_destinations)

    # Document structure

    def make_root(self, pages: Pages) -> Root:
        """Makes the catalog, written from the trailer."""
        root = Root(pages)
        self.registry.add_trailer_object(root)
        self.context.root = root
        return root

    def make_pages(self) -> Pages:
        pages = Pages()
        self.registry.add_trailer_object(pages)
        if self.context.pages is None:
            self.context.pages = pages
        return pages

    def make_resources(self) -> Resources:
        resources = Resources()
        self.registry.add_trailer_object(resources)
        if self.context.resources is None:
            self.context.resources = resources
        return resources

    def make_info(self, producer: str | None = None) -> Info:
        info = Info(producer or self.context.options.producer)
        self.registry.register(info)
        self.context.info = info
        return info

    def make_document_structure(self) -> Root:
        """Makes the page tree, shared resources, catalog and info."""
        pages = self.make_pages()
        self.make_resources()
        root = self.make_root(pages)
        self.make_info()
        return root

    def make_metadata(self, info: Info | None = None) -> Metadata:
        """Makes the XMP metadata stream from the info dictionary.

        The stream is attached to the catalog if there is one.
        """
        info = info or self.context.info
        fields: dict[str, Any] = {"producer": self.context.options.producer}
        if info is not None:
            fields.update(
                title=info.title,
                author=info.author,
                subject=info.subject,
                keywords=info.keywords,
                creator=info.creator,
                producer=info.producer or self.context.options.producer,
                creation_date=info.creation_date,
            )
        metadata = Metadata(create_xmp_metadata(fields))
        self.registry.register(metadata)
        if self.context.root is not None:
            self.context.root.metadata = metadata
        return metadata

    def make_output_intent(
        self,
        icc_stream: ICCStream,
        output_condition_identifier: str,
        *,
        subtype: str = PDFA_OUTPUT_INTENT,
        info: str | None = None,
        registry_name: str | None = ICC_REGISTRY_NAME,
    ) -> OutputIntent:
        """Makes an output intent, listed in the catalog if there is one.

        Raises the document to PDF 1.4. Adding a second intent of the same
        subtype is logged, since PDF/A allows only one.
        """
        self.context.require_pdf_version(OUTPUT_INTENT_PDF_VERSION)
        intent = OutputIntent(
            subtype,
            output_condition_identifier,
            icc_stream,
            info=info,
            registry_name=registry_name,
        )
        self.registry.register(intent)
        root = self.context.root
        if root is not None:
            if any(existing.subtype == subtype for existing in root.output_intents):
                logger.warning("Document already has a %s output intent", subtype)
            root.output_intents.append(intent)
        logger.debug(
            "Output intent %s created for %s", subtype, output_condition_identifier
        )
        return intent

    def make_page(
        self,
        media_box: Rect,
        resources: Resources | None = None,
        page_index: int | None = None,
    ) -> Page:
        """Makes a page and appends it to the page tree.

        Raises:
            ConfigurationError: If the document has no page tree or
                resources.
        """
        pages = self.context.pages
        if pages is None:
            raise ConfigurationError("No page tree present. Cannot create a page")
        resources = resources or self.context.resources
        if resources is None:
            raise ConfigurationError(
                "No resource dictionary present. Cannot create a page"
            )
        if page_index is None:
            page_index = pages.count
        page = Page(resources, page_index, media_box)
        self.registry.register(page)
        pages.add_page(page)
        return page

    def make_stream(self, data: bytes = b"", page: Page | None = None) -> PdfStream:
        """Makes a registered stream, added to a page's contents if given."""
        stream = PdfStream(data)
        self.registry.register(stream)
        if page is not None:
            page.add_contents(stream)
        return stream

    # Functions, shadings and patterns

    def make_function(
        self,
        function_type: int,
        domain: Sequence[float],
        range_: Sequence[float] | None = None,
        **parameters: Any,
    ) -> Function:
        """Makes a function, shared with any structurally equal one.

        ``parameters`` are the keyword arguments of :class:`Function` for
        the function type.
        """
        return self.register_function(
            Function(function_type, domain, range_, **parameters)
        )

    def register_function(self, function: Function) -> Function:
        return self.registry.find_or_register("function", function)

    def make_shading(
        self,
        shading_type: int,
        color_space: "str | SeparationColorSpace",
        function: Function,
        *,
        resources: Resources | None = None,
        **parameters: Any,
    ) -> Shading:
        """Makes a shading and adds it to the resources.

        ``parameters`` are the keyword arguments of :class:`Shading`.
        """
        shading = Shading(shading_type, color_space, function, **parameters)
        return self.register_shading(shading, resources)

    def register_shading(
        self, shading: Shading, resources: Resources | None = None
    ) -> Shading:
        """Shares or registers a shading and adds it to the resources."""
        shading = self.registry.find_or_register("shading", shading)
        target = resources or self.context.resources
        if target is not None:
            target.add_shading(shading)
        return shading

    def make_pattern(
        self,
        pattern_type: int,
        *,
        resources: Resources | None = None,
        **parameters: Any,
    ) -> Pattern:
        """Makes a tiling or shading pattern and adds it to the resources.

        ``parameters`` are the keyword arguments of :class:`Pattern`.
        """
        return self.register_pattern(Pattern(pattern_type, **parameters), resources)

    def register_pattern(
        self, pattern: Pattern, resources: Resources | None = None
    ) -> Pattern:
        pattern = self.registry.find_or_register("pattern", pattern)
        target = resources or self.context.resources
        if target is not None:
            target.add_pattern(pattern)
        return pattern

    def make_gradient(
        self,
        radial: bool,
        color_space: str,
        colors: list[Color],
        bounds: Sequence[float],
        coords: Sequence[float],
        matrix: Sequence[float] | None = None,
    ) -> Pattern:
        """Makes an axial or radial gradient pattern.

        Non-sRGB colors in ``colors`` are converted in place.

        Raises:
            GradientError: If the gradient definition is invalid.
        """
        return self._gradients.create_gradient(
            radial, color_space, colors, bounds, coords, matrix
        )

    # Navigation

    def make_destination(self, id_ref: str, goto: GoTo) -> Destination:
        """Makes a named destination, shared with an equal one.

        New destinations are collected for the /Dests name tree built when
        the document is closed.
        """
        candidate = Destination(id_ref, goto)
        destination = self.registry.find_or_register("destination", candidate)
        if destination is candidate:
            self.context.destinations.append(candidate)
        return destination

    def make_names(self) -> Names:
        names = Names()
        self.registry.add_trailer_object(names)
        return names

    def make_page_labels(self) -> PageLabels:
        page_labels = PageLabels()
        self.registry.add_trailer_object(page_labels)
        return page_labels

    def make_name_tree_node(self) -> NameTreeNode:
        node = NameTreeNode()
        self.registry.register(node)
        return node

    def make_dests(self, destinations: Sequence[Destination]) -> Dests:
        """Makes the /Dests name tree, one leaf node per destination."""
        dests = Dests()
        ordered = sorted(destinations, key=lambda d: d.id_ref)
        kids: list[NameTreeNode] = []
        for destination in ordered:
            node = self.make_name_tree_node()
            node.limits = (destination.id_ref, destination.id_ref)
            node.names = [(destination.id_ref, destination)]
            kids.append(node)
        dests.kids = kids
        if ordered:
            dests.limits = (ordered[0].id_ref, ordered[-1].id_ref)
        self.registry.register(dests)
        return dests

    def _finish_destinations(self) -> None:
        if not self.context.destinations or self.context.root is None:
            return
        root = self.context.root
        if root.names is None:
            root.names = self.make_names()
        root.names.dests = self.make_dests(self.context.destinations)

    def add_embedded_file(
        self,
        filename: str,
        data: bytes,
        description: str | None = None,
        mime_type: str | None = None,
    ) -> FileSpec:
        """Embeds a file and lists it in the /EmbeddedFiles name tree.

        The names dictionary and the tree are created when missing.

        Raises:
            ConfigurationError: If the document has no catalog.
        """
        root = self.context.root
        if root is None:
            raise ConfigurationError(
                f"No document catalog present. Cannot embed file: {filename}"
            )
        if root.names is None:
            root.names = self.make_names()
        if root.names.embedded_files is None:
            embedded_files = EmbeddedFiles()
            self.registry.register(embedded_files)
            root.names.embedded_files = embedded_files
        stream = EmbeddedFile(data, mime_type)
        self.registry.register(stream)
        pdf_name = to_pdf_string(filename)
        file_spec = FileSpec(pdf_name, filename, description, stream)
        self.registry.register(file_spec)
        root.names.embedded_files.add_name(pdf_name, file_spec)
        return file_spec

    def make_link(self, rect: Rect | None, action: PdfObject | None) -> Link | None:
        """Makes a link annotation for an action, None if either is missing."""
        if rect is None or action is None:
            return None
        link = Link(rect, action)
        self.registry.register(link)
        return link

    def make_goto_link(self, rect: Rect, page: Page, destination: str) -> Link:
        """Makes a link to a named destination on a page."""
        link = Link(rect)
        self.registry.register(link)
        goto = GoTo(page, destination=destination)
        self.registry.register(goto)
        link.action = goto
        return link

    def make_target_link(
        self,
        rect: Rect,
        target: "str | Page",
        link_type: LinkType,
        y_offset: float = 0.0,
    ) -> Link:
        """Makes a link to an external target or a page of this document.

        Args:
            rect: Active area of the link.
            target: External target string, or the page of an internal link.
            link_type: Kind of target.
            y_offset: Vertical position on the target page.
        """
        if link_type == LinkType.EXTERNAL:
            action = self.get_external_action(str(target), False)
        else:
            if not isinstance(target, Page):
                raise TypeError("Internal links target a Page")
            action = self.get_goto_reference(target, y_offset)
        return self.registry.find_or_register("link", Link(rect, action))

    def get_external_action(self, target: str, new_window: bool) -> PdfObject:
        """Makes the action that opens an external target.

        Routing: ``embedded-file:`` names launch an embedded file,
        ``http(s)://`` targets become URI actions, ``file://`` targets are
        launched, ``.pdf`` files (optionally with ``#page=`` or ``#dest=``)
        are opened with a remote go-to, and anything else is a URI.

        Raises:
            ConfigurationError: For an embedded file that is not in the
                document, or if actions are not allowed.
        """
        target_lo = target.lower()
        if target.startswith(EMBEDDED_FILE_PREFIX):
            filename = target[len(EMBEDDED_FILE_PREFIX) :]
            return self._get_action_for_embedded_file(filename)
        if target_lo.startswith(HTTP_PREFIXES):
            return Uri(target)
        if target_lo.startswith(FILE_URL_PREFIX):
            return self._get_launch_action(target[len(FILE_URL_PREFIX) :])
        if target_lo.endswith(".pdf"):
            return self._get_goto_pdf_action(target, None, -1, new_window)
        index = target_lo.find(PDF_PAGE_FRAGMENT)
        if index > 0:
            filename = target[: index + 4]
            page = int(target[index + len(PDF_PAGE_FRAGMENT) :])
            return self._get_goto_pdf_action(filename, None, page, new_window)
        index = target_lo.find(PDF_DEST_FRAGMENT)
        if index > 0:
            filename = target[: index + 4]
            destination = target[index + len(PDF_DEST_FRAGMENT) :]
            return self._get_goto_pdf_action(filename, destination, -1, new_window)
        return Uri(target)

    def _get_action_for_embedded_file(self, filename: str) -> JavaScript:
        root = self.context.root
        names = root.names if root is not None else None
        if names is None:
            raise ConfigurationError(
                "No Names dictionary present. Cannot create Launch Action for "
                f"embedded file: {filename}"
            )
        embedded_files = names.embedded_files
        if embedded_files is None:
            raise ConfigurationError(
                "No /EmbeddedFiles name tree present. Cannot create Launch Action "
                f"for embedded file: {filename}"
            )
        filename = to_pdf_string(filename)
        if embedded_files.find_file(filename) is None:
            raise ConfigurationError(f"No embedded file with name {filename} present.")
        # Launch and GoToE actions are not honoured by all viewers
        return JavaScript(f'this.exportDataObject({{cName:"{filename}", nLaunch:2}});')

    def _get_file_spec(self, filename: str) -> FileSpec:
        return self.registry.find_or_register("filespec", FileSpec(filename))

    def _get_goto_pdf_action(
        self, filename: str, destination: str | None, page: int, new_window: bool
    ) -> GoToRemote:
        self.context.verify_action_allowed()
        file_spec = self._get_file_spec(filename)
        remote = GoToRemote(file_spec, page, destination, new_window)
        return self.registry.find_or_register("goto_remote", remote)

    def _get_launch_action(self, filename: str) -> Launch:
        self.context.verify_action_allowed()
        file_spec = self._get_file_spec(filename)
        return self.registry.find_or_register("launch", Launch(file_spec))

    def get_goto(
        self, page: Page, position: tuple[float, float] | None = None
    ) -> GoTo:
        """Returns the go-to action for a page position, shared if equal.

        Raises:
            ConfigurationError: If actions are not allowed.
        """
        self.context.verify_action_allowed()
        return self.registry.find_or_register(
            "goto", GoTo(page, position), trailer=True
        )

    def get_goto_reference(self, page: Page, y_offset: float) -> GoTo:
        return self.get_goto(page, (0.0, y_offset))

    def get_outline_root(self) -> Outline:
        """Returns the document outline root, creating it when missing.

        Raises:
            ConfigurationError: If the document has no catalog.
        """
        root = self.context.root
        if root is None:
            raise ConfigurationError("No document catalog present. Cannot add outlines")
        if root.outline_root is None:
            outline_root = Outline()
            self.registry.register(outline_root)
            root.outline_root = outline_root
        return root.outline_root

    def make_outline(
        self,
        parent: Outline | None,
        label: str,
        action: PdfObject | None,
        show_sub_items: bool = True,
    ) -> Outline | None:
        """Makes an outline item below ``parent``; None without an action."""
        if action is None:
            return None
        outline = Outline(label, action, show_sub_items)
        if parent is not None:
            parent.add_outline(outline)
        self.registry.register(outline)
        return outline

    # Fonts

    def _create_subset_font_prefix(self) -> str:
        self._subset_font_count += 1
        counter = f"{self._subset_font_count:0{SUBSET_PREFIX_DIGITS}d}"
        # Digits 0..9 become letters A..J
        letters = "".join(chr(ord(digit) + 17) for digit in counter)
        return f"{SUBSET_PREFIX_START}{letters}+"

    def make_encoding(
        self, base_encoding: str | None, differences: list[int | str]
    ) -> Encoding:
        encoding = Encoding(base_encoding, differences)
        self.registry.register(encoding)
        return encoding

    def make_font(self, font_key: str, font: Font) -> PdfObject:
        """Makes the font dictionary for a font key.

        The same dictionary is returned for every request with the same
        key. Widths, descriptors, programs and ToUnicode CMaps depend on the
        glyphs used, so they are built when the document is closed.

        Raises:
            UnsupportedFontError: At close, if the font program type cannot
                be embedded.
        """
        existing = self.context.fonts.get(font_key)
        if existing is not None:
            return existing

        base_font = font.embed_font_name
        if (
            isinstance(font, SimpleFont)
            and not font.is_embeddable
            and font.font_name in STANDARD_14_FONTS
        ):
            pdf_font: PdfObject = self._make_base14_font(base_font, font)
        elif isinstance(font, CIDFont):
            pdf_font = self._make_type0_font(base_font, font)
        else:
            pdf_font = self._make_simple_font(base_font, font)

        self.context.fonts[font_key] = pdf_font
        if self.context.resources is not None:
            self.context.resources.add_font(font_key, pdf_font)
        logger.debug("Created font %s for '%s'", font_key, font.font_name)
        return pdf_font

    def _make_base14_font(self, base_font: str, font: SimpleFont) -> SimpleFontDict:
        pdf_font = SimpleFontDict(FontType.TYPE1.value, base_font)
        self.registry.register(pdf_font)
        encoding = font.encoding
        builtin = font.is_symbolic or font.font_name in SYMBOL_FONTS
        if not builtin and encoding.name:
            pdf_font.encoding = encoding.name
        if self.context.options.force_to_unicode and not encoding.is_predefined:
            pdf_font.to_unicode = self._make_to_unicode(
                generate_tounicode_cmap_data(font.to_unicode_map())
            )
        return pdf_font

    def _make_type0_font(self, base_font: str, font: CIDFont) -> Type0Font:
        prefix = ""
        if font.is_embeddable and font.is_subset_embedded:
            prefix = self._create_subset_font_prefix()
        cid_font = CIDFontDict(
            font.cid_type.value,
            prefix + base_font,
            registry=font.registry,
            ordering=font.ordering,
            supplement=font.supplement,
        )
        type0 = Type0Font(prefix + base_font, IDENTITY_H, cid_font)
        self.registry.register(type0)
        self.registry.register(cid_font)
        self.context.add_finalizer(
            lambda: self._finish_type0_font(font, type0, cid_font, prefix)
        )
        return type0

    def _finish_type0_font(
        self, font: CIDFont, type0: Type0Font, cid_font: CIDFontDict, prefix: str
    ) -> None:
        descriptor = self.make_font_descriptor(font, prefix)
        cid_font.descriptor = descriptor
        cid_font.default_width = font.default_width
        cid_font.w_array = self._metrics.build_w_array(font.cid_widths())
        font_file = descriptor.font_file
        if font.is_embeddable and font.is_subset_embedded:
            if font_file is None or not font_file.subset:
                # Program keeps the original glyph order; map CIDs explicitly
                cid_font.cid_to_gid_map = self._make_cid_to_gid_map(font)
        type0.to_unicode = self._make_to_unicode(
            generate_cidfont_tounicode_cmap(font.to_unicode_map())
        )

    def _make_cid_to_gid_map(self, font: CIDFont) -> PdfStream:
        data = bytearray()
        for cid in range(font.cid_set.number_of_glyphs):
            data += font.cid_set.original_glyph_index(cid).to_bytes(2, "big")
        stream = PdfStream(bytes(data))
        self.registry.register(stream)
        return stream

    def _make_simple_font(self, base_font: str, font: SimpleFont) -> SimpleFontDict:
        prefix = ""
        if font.is_subset_embedded and font.font_type == FontType.TYPE1:
            prefix = self._create_subset_font_prefix()
        pdf_font = SimpleFontDict(font.font_type.value, prefix + base_font)
        self.registry.register(pdf_font)
        self.context.add_finalizer(
            lambda: self._finish_simple_font(font, pdf_font, prefix)
        )
        return pdf_font

    def _finish_simple_font(
        self, font: SimpleFont, pdf_font: SimpleFontDict, prefix: str
    ) -> None:
        pdf_font.descriptor = self.make_font_descriptor(font, prefix)
        first, last = font.used_char_range()
        pdf_font.set_width_metrics(first, last, font.subset_widths())

        encoding = font.encoding
        force_to_unicode = self.context.options.force_to_unicode
        if font.is_symbolic:
            # Symbolic fonts use their built-in encoding
            if force_to_unicode:
                pdf_font.to_unicode = self._make_simple_to_unicode(font)
        elif encoding.is_predefined:
            pdf_font.encoding = encoding.name
        else:
            pdf_font.encoding = self.make_encoding(None, encoding.differences())
            if force_to_unicode:
                pdf_font.to_unicode = self._make_simple_to_unicode(font)

    def _make_simple_to_unicode(self, font: SimpleFont) -> ToUnicodeCMap:
        data = generate_tounicode_cmap_data(font.to_unicode_map())
        return self._make_to_unicode(data)

    def _make_to_unicode(self, data: bytes) -> ToUnicodeCMap:
        cmap = ToUnicodeCMap(data)
        self.registry.register(cmap)
        return cmap

    def make_font_descriptor(self, font: Font, prefix: str = "") -> FontDescriptor:
        """Makes the font descriptor, embedding the program if possible.

        Embedded CIDFonts also get a CIDSet stream when their program could
        be produced.

        Raises:
            UnsupportedFontError: If the font program type cannot be embedded.
        """
        metrics = font.metrics
        font_name = prefix + font.embed_font_name
        descriptor: FontDescriptor
        if isinstance(font, CIDFont):
            descriptor = CIDFontDescriptor(
                font_name,
                flags=metrics.flags,
                bbox=metrics.bbox,
                italic_angle=metrics.italic_angle,
                cap_height=metrics.cap_height,
                stem_v=metrics.stem_v,
            )
        else:
            descriptor = FontDescriptor(
                font_name,
                flags=metrics.flags,
                bbox=metrics.bbox,
                italic_angle=metrics.italic_angle,
                ascent=metrics.ascender,
                descent=metrics.descender,
                cap_height=metrics.cap_height,
                stem_v=metrics.stem_v,
                x_height=metrics.x_height,
            )
        self.registry.register(descriptor)

        if font.is_embeddable:
            font_file = self.make_font_file(font)
            if font_file is not None:
                self.registry.register(font_file)
                descriptor.set_font_file(font_file)
                if (
                    isinstance(font, CIDFont)
                    and isinstance(descriptor, CIDFontDescriptor)
                    and font_file.subset
                ):
                    descriptor.cid_set = self.build_cid_set(font)
        return descriptor

    def build_cid_set(self, font: CIDFont) -> PdfStream:
        """Makes the CIDSet stream: one bit per used original glyph index."""
        cid_set = PdfStream(pack_cid_set(font.cid_set.glyph_indices()))
        self.registry.register(cid_set)
        return cid_set

    def make_font_file(self, font: Font) -> FontFile | None:
        """Reads and, if requested, subsets the font program.

        Returns:
            The unregistered program stream, or None if the program is
            missing or unreadable (the font is then not embedded).

        Raises:
            UnsupportedFontError: If the font type cannot be embedded.
        """
        if font.font_type == FontType.OTHER:
            raise UnsupportedFontError(
                f"Font '{font.font_name}' has an unsupported program type"
            )
        try:
            data = font.read_program()
        except OSError as e:
            logger.error("Failed to embed font '%s': %s", font.font_name, e)
            return None
        if data is None:
            logger.error(
                "Font program for '%s' not available, font is not embedded",
                font.font_name,
            )
            return None

        try:
            if isinstance(font, CIDFont):
                return self._make_cid_font_file(font, data)
            if font.font_type == FontType.TYPE1:
                return self._make_type1_font_file(font, data)
            return FontFile(FONT_FILE2, data, lengths=(len(data),))
        except UnsupportedFontError:
            raise
        except FontEmbeddingError as e:
            logger.error("Failed to embed font '%s': %s", font.font_name, e)
            self.context.subsetting.fonts_skipped.append(f"{font.font_name}: {e}")
            return None

    def _make_cid_font_file(self, font: CIDFont, data: bytes) -> FontFile:
        subset = font.is_subset_embedded
        fstype = get_fstype(data, font.ttc_index)
        if subset and fstype is not None:
            _, subsetting_allowed, _ = check_fstype_restrictions(fstype)
            if not subsetting_allowed:
                logger.warning(
                    "Font '%s' does not allow subsetting, embedding full program",
                    font.font_name,
                )
                subset = False

        if not subset:
            program = extract_font(data, font.ttc_index)
            if font.is_otf:
                self.context.require_pdf_version(FULL_CFF_PDF_VERSION)
                return FontFile(FONT_FILE3, program, subtype="OpenType")
            return FontFile(FONT_FILE2, program, lengths=(len(program),))

        program = subsetter_for(font).subset(data, font)
        self.context.subsetting.record(font.font_name, len(data), len(program))
        if font.is_otf:
            return FontFile(FONT_FILE3, program, subtype="CIDFontType0C", subset=True)
        return FontFile(FONT_FILE2, program, lengths=(len(program),), subset=True)

    def _make_type1_font_file(self, font: SimpleFont, data: bytes) -> FontFile:
        if font.embedding_mode == EmbeddingMode.SUBSET:
            program = subsetter_for(font).subset(data, font)
            self.context.subsetting.record(
                font.font_name, len(data), len(program.data)
            )
        else:
            program = read_type1_program(data)
        return FontFile(
            FONT_FILE,
            program.data,
            lengths=(program.length1, program.length2, program.length3),
        )

    # Color spaces and graphics states

    def make_separation_color_space(
        self, color_name: str, color: Color, resources: Resources | None = None
    ) -> SeparationColorSpace:
        """Makes a Separation color space with an sRGB alternate.

        The tint transform maps 0 to white and 1 to the color.
        """
        rgb = color.to_srgb().components
        tint_function = self.make_function(
            FUNCTION_EXPONENTIAL,
            [0.0, 1.0],
            [0.0, 1.0, 0.0, 1.0, 0.0, 1.0],
            c0=[1.0, 1.0, 1.0],
            c1=list(rgb),
            interpolation=1.0,
        )
        color_space = SeparationColorSpace(color_name, tint_function)
        self.registry.register(color_space)
        target = resources or self.context.resources
        if target is not None:
            target.add_color_space(color_space)
        return color_space

    def make_icc_stream(
        self, profile: bytes, alternate: str | None = None
    ) -> ICCStream:
        """Makes an ICC profile stream.

        The component count is read from the profile's data color space.

        Args:
            profile: Raw ICC profile bytes.
            alternate: Color space for readers that cannot process the
                profile, the device space with the same component count
                by default.

        Raises:
            ColorProfileError: If the profile header is invalid.
        """
        validate_icc_profile(profile)
        components = icc_component_count(profile)
        icc_stream = ICCStream(
            profile, components, alternate or default_alternate(components)
        )
        self.registry.register(icc_stream)
        return icc_stream

    def make_icc_based_color_space(
        self,
        icc_stream: ICCStream,
        explicit_name: str | None = None,
        resources: Resources | None = None,
    ) -> ICCBasedColorSpace:
        """Makes an ICCBased color space and adds it to the resources."""
        color_space = ICCBasedColorSpace(icc_stream, explicit_name)
        self.registry.register(color_space)
        target = resources or self.context.resources
        if target is not None:
            target.add_color_space(color_space)
        return color_space

    def make_gstate(
        self, settings: dict[str, Any], resources: Resources | None = None
    ) -> ExtGState:
        """Returns a graphics state with the given settings, shared if equal.

        States are equal when their settings completed with the defaults
        are; the registered state holds only the given settings.
        """
        gstate = self.registry.find_or_register("gstate", ExtGState(settings))
        target = resources or self.context.resources
        if target is not None:
            target.add_gstate(gstate)
        return gstate

    # Optional content and presentations

    def make_layer(
        self,
        layer_id: str,
        label: str | None = None,
        visible: bool = True,
        resources: Resources | None = None,
    ) -> Layer:
        """Returns the layer with the given id, creating it when missing.

        New layers are listed in the catalog's optional content properties
        and added to the resources; the document is raised to PDF 1.5.

        Raises:
            ConfigurationError: If the document has no catalog.
        """
        root = self.context.root
        if root is None:
            raise ConfigurationError("No document catalog present. Cannot add layers")
        for layer in root.layers:
            if layer.layer_id == layer_id:
                return layer
        self.context.require_pdf_version(OPTIONAL_CONTENT_PDF_VERSION)
        layer = Layer(layer_id, label, visible)
        self.registry.register(layer)
        root.layers.append(layer)
        target = resources or self.context.resources
        if target is not None:
            target.add_layer(layer)
        return layer

    def get_layer(self, layer_id: str) -> Layer:
        """Raises ConfigurationError if no layer has the given id."""
        root = self.context.root
        for layer in root.layers if root is not None else []:
            if layer.layer_id == layer_id:
                return layer
        raise ConfigurationError(f"No layer with id {layer_id} present.")

    def make_set_ocg_state_action(
        self,
        action_id: str,
        state: Sequence[tuple[str, Sequence[str]]],
        preserve_rb: bool = True,
    ) -> SetOCGState:
        """Makes an action switching layers, referenced by their ids.

        Args:
            action_id: Identifier of the action.
            state: (operation, layer ids) pairs; operations are ``ON``,
                ``OFF`` and ``Toggle``.
            preserve_rb: Whether radio-button relationships are kept.

        Raises:
            ConfigurationError: If actions are not allowed or a layer id
                is unknown.
        """
        self.context.verify_action_allowed()
        resolved = [
            (operation, [self.get_layer(layer_id) for layer_id in layer_ids])
            for operation, layer_ids in state
        ]
        action = SetOCGState(action_id, resolved, preserve_rb)
        self.context.require_pdf_version(OPTIONAL_CONTENT_PDF_VERSION)
        self.registry.register(action)
        return action

    def make_transition_action(
        self, action_id: str, style: str = "R", duration: float = 1.0, **options: Any
    ) -> Transition:
        """Makes a page transition action.

        ``options`` are the keyword arguments of :class:`Transition`.

        Raises:
            ConfigurationError: If actions are not allowed.
        """
        self.context.verify_action_allowed()
        action = Transition(action_id, style, duration, **options)
        self.context.require_pdf_version(OPTIONAL_CONTENT_PDF_VERSION)
        self.registry.register(action)
        return action

    def make_navigator(
        self,
        navigator_id: str,
        next_action: PdfObject | None = None,
        prev_action: PdfObject | None = None,
        *,
        duration: float | None = None,
        previous: Navigator | None = None,
        page: Page | None = None,
    ) -> Navigator:
        """Makes a presentation navigation node.

        The node is linked after ``previous``, and becomes the first step
        of ``page`` unless the page already has one.
        """
        self.context.require_pdf_version(OPTIONAL_CONTENT_PDF_VERSION)
        navigator = Navigator(navigator_id, next_action, prev_action, duration)
        self.registry.register(navigator)
        if previous is not None:
            previous.link_next(navigator)
        if page is not None and page.pres_steps is None:
            page.pres_steps = navigator
        return navigator
