# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Navigation objects: destinations, actions, links and outlines."""

import logging
from typing import Any

from pikepdf import Array, Dictionary, Name, String

from .base import PdfObject, PdfStream, Ref, as_tuple, name, reference_key
from .structure import Layer, Page

logger = logging.getLogger(__name__)

# Operations of a SetOCGState action
OCG_STATE_OPERATIONS = frozenset({"ON", "OFF", "Toggle"})

# Page transition styles
TRANSITION_STYLES = frozenset(
    {
        "Split",
        "Blinds",
        "Box",
        "Wipe",
        "Dissolve",
        "Glitter",
        "R",
        "Fly",
        "Push",
        "Cover",
        "Uncover",
        "Fade",
    }
)


def to_pdf_string(text: str, replacement: str = "_") -> str:
    """Replaces every non-ASCII character of a file name."""
    return "".join(c if ord(c) < 128 else replacement for c in text)


class GoTo(PdfObject):
    """Go-to action targeting a position on a page or a named destination.

    Args:
        page: Target page.
        position: (x, y) of the view's top-left corner, None to keep the
            current view.
        destination: Named destination used instead of the position.
    """

    kind = "goto"

    def __init__(
        self,
        page: Page,
        position: tuple[float, float] | None = None,
        destination: str | None = None,
    ) -> None:
        super().__init__()
        self.page = page
        self.position = tuple(position) if position is not None else None
        self.destination = destination

    def structural_key(self) -> tuple:
        return (reference_key(self.page), self.position, self.destination)

    def destination_array(self, ref: Ref) -> Array:
        if self.position is None:
            return Array([ref(self.page), Name.XYZ, None, None, None])
        x, y = self.position
        return Array([ref(self.page), Name.XYZ, x, y, None])

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        if self.destination is not None:
            target: Any = String(self.destination)
        else:
            target = self.destination_array(ref)
        return Dictionary(S=Name.GoTo, D=target)


class Destination(PdfObject):
    """A named destination: an ID reference bound to a go-to target."""

    kind = "destination"

    def __init__(self, id_ref: str, goto: GoTo) -> None:
        super().__init__()
        self.id_ref = id_ref
        self.goto = goto

    def structural_key(self) -> tuple:
        return (self.id_ref, reference_key(self.goto))

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        return Dictionary(D=self.goto.destination_array(ref))


class EmbeddedFile(PdfStream):
    """Embedded file stream."""

    kind = "embedded_file"

    def __init__(self, data: bytes, mime_type: str | None = None) -> None:
        entries: dict[str, Any] = {
            "Type": Name.EmbeddedFile,
            "Params": {"Size": len(data)},
        }
        if mime_type:
            # qpdf writes the slash as #2F
            entries["Subtype"] = name(mime_type)
        super().__init__(data, **entries)


class FileSpec(PdfObject):
    """File specification, optionally with an embedded file stream."""

    kind = "filespec"

    def __init__(
        self,
        filename: str,
        unicode_filename: str | None = None,
        description: str | None = None,
        embedded_file: EmbeddedFile | None = None,
    ) -> None:
        super().__init__()
        self.filename = filename
        self.unicode_filename = unicode_filename
        self.description = description
        self.embedded_file = embedded_file

    def structural_key(self) -> tuple:
        return (
            self.filename,
            self.unicode_filename,
            self.description,
            reference_key(self.embedded_file),
        )

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        spec = Dictionary(Type=Name.Filespec, F=String(self.filename))
        if self.unicode_filename:
            spec[Name.UF] = String(self.unicode_filename)
        if self.description:
            spec[Name.Desc] = String(self.description)
        if self.embedded_file is not None:
            embedded = ref(self.embedded_file)
            spec[Name.EF] = Dictionary(F=embedded, UF=embedded)
        return spec


class GoToRemote(PdfObject):
    """Go-to action into another PDF file.

    The target is a page index, a named destination, or the first page if
    neither is given.
    """

    kind = "goto_remote"

    def __init__(
        self,
        file_spec: FileSpec,
        page_index: int = -1,
        destination: str | None = None,
        new_window: bool = False,
    ) -> None:
        super().__init__()
        self.file_spec = file_spec
        self.page_index = page_index
        self.destination = destination
        self.new_window = new_window

    def structural_key(self) -> tuple:
        return (
            reference_key(self.file_spec),
            self.page_index,
            self.destination,
            self.new_window,
        )

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        if self.destination is not None:
            target: Any = String(self.destination)
        else:
            target = Array([max(self.page_index, 0), Name.XYZ, None, None, None])
        action = Dictionary(S=Name.GoToR, F=ref(self.file_spec), D=target)
        if self.new_window:
            action[Name.NewWindow] = True
        return action


class Launch(PdfObject):
    """Launch action opening a file with its associated application."""

    kind = "launch"

    def __init__(self, file_spec: FileSpec) -> None:
        super().__init__()
        self.file_spec = file_spec

    def structural_key(self) -> tuple:
        return (reference_key(self.file_spec),)

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        return Dictionary(S=Name.Launch, F=ref(self.file_spec))


class Uri(PdfObject):
    """URI action, written inline."""

    kind = "uri"
    direct = True

    def __init__(self, uri: str) -> None:
        super().__init__()
        self.uri = uri

    def structural_key(self) -> tuple:
        return (self.uri,)

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        return Dictionary(S=Name.URI, URI=String(self.uri))


class JavaScript(PdfObject):
    """JavaScript action, written inline."""

    kind = "javascript"
    direct = True

    def __init__(self, script: str) -> None:
        super().__init__()
        self.script = script

    def structural_key(self) -> tuple:
        return (self.script,)

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        return Dictionary(S=Name.JavaScript, JS=String(self.script))


class Link(PdfObject):
    """Link annotation covering a rectangle of a page."""

    kind = "link"

    def __init__(
        self, rect: tuple[float, float, float, float], action: PdfObject | None = None
    ) -> None:
        super().__init__()
        self.rect = tuple(rect)
        self.action = action

    def structural_key(self) -> tuple:
        return (as_tuple(self.rect), reference_key(self.action))

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        link = Dictionary(
            Type=Name.Annot,
            Subtype=Name.Link,
            Rect=Array(list(self.rect)),
            Border=Array([0, 0, 0]),
        )
        if self.action is not None:
            link[Name.A] = ref(self.action)
        return link


class Outline(PdfObject):
    """Outline (bookmark) item, or the outline root when it has no title.

    Args:
        title: Label shown to the reader, None for the root.
        action: Action performed when the item is selected.
        show_sub_items: Whether the item starts expanded.
    """

    kind = "outline"

    def __init__(
        self,
        title: str | None = None,
        action: PdfObject | None = None,
        show_sub_items: bool = True,
    ) -> None:
        super().__init__()
        self.title = title
        self.action = action
        self.show_sub_items = show_sub_items
        self.parent: Outline | None = None
        self.kids: list[Outline] = []

    def add_outline(self, outline: "Outline") -> None:
        outline.parent = self
        self.kids.append(outline)

    @property
    def count(self) -> int:
        """Number of visible descendants."""
        total = 0
        for kid in self.kids:
            total += 1
            if kid.show_sub_items:
                total += kid.count
        return total

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        outline = Dictionary()
        if self.parent is None:
            outline[Name.Type] = Name.Outlines
        else:
            outline[Name.Title] = String(self.title or "")
            outline[Name.Parent] = ref(self.parent)
            siblings = self.parent.kids
            index = siblings.index(self)
            if index > 0:
                outline[Name.Prev] = ref(siblings[index - 1])
            if index < len(siblings) - 1:
                outline[Name.Next] = ref(siblings[index + 1])
            if self.action is not None:
                outline[Name.A] = ref(self.action)
        if self.kids:
            outline[Name.First] = ref(self.kids[0])
            outline[Name.Last] = ref(self.kids[-1])
            count = self.count
            if self.parent is not None and not self.show_sub_items:
                count = -len(self.kids)
            outline[Name.Count] = count
        return outline


class SetOCGState(PdfObject):
    """Action switching layers on, off or toggling them.

    Args:
        action_id: Identifier of the action within the document.
        state: (operation, layers) pairs applied in order; operations
            are ``ON``, ``OFF`` and ``Toggle``.
        preserve_rb: Whether radio-button relationships between layers
            are kept.

    Raises:
        ValueError: If an operation is unknown.
    """

    kind = "set_ocg_state"

    def __init__(
        self,
        action_id: str,
        state: list[tuple[str, list[Layer]]],
        preserve_rb: bool = True,
    ) -> None:
        super().__init__()
        for operation, _ in state:
            if operation not in OCG_STATE_OPERATIONS:
                raise ValueError(f"Unknown optional content operation: {operation}")
        self.action_id = action_id
        self.state = state
        self.preserve_rb = preserve_rb

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        entries: list[Any] = []
        for operation, layers in self.state:
            entries.append(name(operation))
            entries.extend(ref(layer) for layer in layers)
        action = Dictionary(S=Name.SetOCGState, State=Array(entries))
        if not self.preserve_rb:
            action[Name.PreserveRB] = False
        return action


class Transition(PdfObject):
    """Action playing a page transition.

    Args:
        action_id: Identifier of the action within the document.
        style: Transition style, ``R`` (replace) by default.
        duration: Duration in seconds.
        dimension: ``H`` or ``V`` for Split and Blinds.
        motion: ``I`` (inward) or ``O`` (outward) for Split, Box and Fly.
        direction: Direction angle in degrees for Wipe, Glitter, Fly,
            Cover, Uncover and Push.

    Raises:
        ValueError: If the style is unknown or the duration negative.
    """

    kind = "transition"

    def __init__(
        self,
        action_id: str,
        style: str = "R",
        duration: float = 1.0,
        *,
        dimension: str | None = None,
        motion: str | None = None,
        direction: int | None = None,
    ) -> None:
        super().__init__()
        if style not in TRANSITION_STYLES:
            raise ValueError(f"Unknown transition style: {style}")
        if duration < 0:
            raise ValueError("Transition duration must not be negative")
        self.action_id = action_id
        self.style = style
        self.duration = duration
        self.dimension = dimension
        self.motion = motion
        self.direction = direction

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        transition = Dictionary(Type=Name.Trans, S=name(self.style), D=self.duration)
        if self.dimension is not None:
            transition[Name.Dm] = name(self.dimension)
        if self.motion is not None:
            transition[Name.M] = name(self.motion)
        if self.direction is not None:
            transition[Name.Di] = self.direction
        return Dictionary(S=Name.Trans, Trans=transition)


class Navigator(PdfObject):
    """Navigation node stepping through a presentation.

    Nodes form a doubly linked list through ``next_node`` and
    ``prev_node``; the actions run when the reader moves forward or back.
    """

    kind = "navigator"

    def __init__(
        self,
        navigator_id: str,
        next_action: PdfObject | None = None,
        prev_action: PdfObject | None = None,
        duration: float | None = None,
    ) -> None:
        super().__init__()
        self.navigator_id = navigator_id
        self.next_action = next_action
        self.prev_action = prev_action
        self.duration = duration
        self.next_node: Navigator | None = None
        self.prev_node: Navigator | None = None

    def link_next(self, node: "Navigator") -> None:
        self.next_node = node
        node.prev_node = self

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        node = Dictionary(Type=Name.NavNode)
        if self.next_action is not None:
            node[Name.NA] = ref(self.next_action)
        if self.prev_action is not None:
            node[Name.PA] = ref(self.prev_action)
        if self.next_node is not None:
            node[Name.Next] = ref(self.next_node)
        if self.prev_node is not None:
            node[Name.Prev] = ref(self.prev_node)
        if self.duration is not None:
            node[Name.Dur] = self.duration
        return node
