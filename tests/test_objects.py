# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for the pikepdf conversion of document graph objects."""

from datetime import UTC, datetime

import pytest
from pikepdf import Dictionary, Name

from pdfloom.exceptions import StructureError
from pdfloom.objects import (
    EmbeddedFile,
    ExtGState,
    FileSpec,
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
    NameTreeNode,
    Navigator,
    Outline,
    OutputIntent,
    Page,
    PageLabels,
    Pages,
    PdfStream,
    Resources,
    Root,
    SeparationColorSpace,
    SetOCGState,
    Shading,
    Transition,
)
from pdfloom.objects.base import as_tuple, pdf_value
from pdfloom.objects.graphics import (
    FUNCTION_EXPONENTIAL,
    FUNCTION_POSTSCRIPT,
    FUNCTION_STITCHING,
    SHADING_AXIAL,
    SHADING_FUNCTION_BASED,
)
from pdfloom.objects.navigation import to_pdf_string

_next_number = iter(range(100, 10_000))


def _ref(obj):
    """Reference callback standing in for the serializer."""
    if obj.number is None:
        obj.set_number(next(_next_number))
    return obj.number


def _page() -> Page:
    page = Page(Resources(), 0, (0, 0, 612, 792))
    page.set_number(7)
    return page


def _function() -> Function:
    return Function(FUNCTION_EXPONENTIAL, [0, 1], c0=[0.0], c1=[1.0])


class TestBase:
    """Tests for the base object helpers."""

    def test_set_number_once(self):
        """A second number is a structure error."""
        stream = PdfStream()
        stream.set_number(3)
        assert stream.has_number
        with pytest.raises(StructureError, match="already has object number 3"):
            stream.set_number(4)

    def test_as_tuple_nested(self):
        """Nested lists freeze to nested tuples."""
        assert as_tuple([1, [2, 3], (4,)]) == (1, (2, 3), (4,))
        assert as_tuple(None) is None

    def test_pdf_value(self):
        """Python values convert to pikepdf values."""
        value = pdf_value({"Size": 3, "Name": Name.Foo, "S": "text"}, _ref)
        assert isinstance(value, Dictionary)
        assert value.Size == 3
        assert value.Name == Name.Foo
        assert str(value.S) == "text"

    def test_stream_entries(self):
        """Stream entries become the stream dictionary."""
        stream = PdfStream(b"abc", Filter=Name.FlateDecode)
        stream.add(b"def")
        assert stream.stream_data() == b"abcdef"
        assert stream.to_pikepdf(_ref).Filter == Name.FlateDecode


class TestNavigation:
    """Tests for actions, destinations and links."""

    def test_goto_position(self):
        """A position becomes an XYZ destination array."""
        action = GoTo(_page(), (10, 20)).to_pikepdf(_ref)
        assert action.S == Name.GoTo
        assert list(action.D) == [7, Name.XYZ, 10, 20, None]

    def test_goto_keeps_view(self):
        """Without a position the view is left unchanged."""
        action = GoTo(_page()).to_pikepdf(_ref)
        assert list(action.D) == [7, Name.XYZ, None, None, None]

    def test_goto_named_destination(self):
        """A named destination replaces the array."""
        action = GoTo(_page(), destination="chapter1").to_pikepdf(_ref)
        assert str(action.D) == "chapter1"

    def test_goto_structural_key(self):
        """Equal targets compare equal."""
        page = _page()
        assert GoTo(page, (1, 2)).structural_key() == (
            GoTo(page, [1, 2]).structural_key()
        )
        assert GoTo(page).structural_key() != GoTo(page, (0, 0)).structural_key()

    def test_goto_remote_page(self):
        """Remote go-to actions target a page index."""
        spec = FileSpec("other.pdf")
        action = GoToRemote(spec, page_index=3, new_window=True).to_pikepdf(_ref)
        assert action.S == Name.GoToR
        assert list(action.D)[0] == 3
        assert bool(action.NewWindow)

    def test_goto_remote_first_page(self):
        """Without page or destination the first page is targeted."""
        action = GoToRemote(FileSpec("other.pdf")).to_pikepdf(_ref)
        assert list(action.D)[0] == 0
        assert Name.NewWindow not in action

    def test_launch(self):
        """Launch actions reference their file specification."""
        spec = FileSpec("run.sh")
        action = Launch(spec).to_pikepdf(_ref)
        assert action.S == Name.Launch
        assert action.F == spec.number

    def test_javascript_inline(self):
        """JavaScript actions are direct objects."""
        action = JavaScript("app.alert(1)")
        assert action.direct
        assert str(action.to_pikepdf(_ref).JS) == "app.alert(1)"

    def test_file_spec(self):
        """File specifications reference the embedded file twice."""
        embedded = EmbeddedFile(b"data", "text/plain")
        spec = FileSpec("a.txt", "a.txt", "Notes", embedded).to_pikepdf(_ref)
        assert spec.Type == Name.Filespec
        assert str(spec.Desc) == "Notes"
        assert spec.EF.F == spec.EF.UF == embedded.number

    def test_embedded_file(self):
        """Embedded files record their size and MIME type."""
        stream = EmbeddedFile(b"12345", "text/plain").to_pikepdf(_ref)
        assert stream.Type == Name.EmbeddedFile
        assert stream.Params.Size == 5
        assert stream.Subtype == Name("/text/plain")

    def test_to_pdf_string(self):
        """Non-ASCII characters are replaced."""
        assert to_pdf_string("caf\u00e9.pdf") == "caf_.pdf"

    def test_link(self):
        """Links are borderless annotations."""
        link = Link((0, 0, 10, 10), JavaScript("x")).to_pikepdf(_ref)
        assert link.Subtype == Name.Link
        assert list(link.Border) == [0, 0, 0]
        assert list(link.Rect) == [0, 0, 10, 10]


class TestOutline:
    """Tests for outline items."""

    def _tree(self) -> tuple[Outline, Outline, Outline, Outline]:
        root = Outline()
        first = Outline("One")
        second = Outline("Two", show_sub_items=False)
        child = Outline("Two.1")
        root.add_outline(first)
        root.add_outline(second)
        second.add_outline(child)
        return root, first, second, child

    def test_count(self):
        """Closed items hide their descendants from the count."""
        root, first, second, _child = self._tree()
        assert root.count == 2
        second.show_sub_items = True
        assert root.count == 3

    def test_root_dictionary(self):
        """The root is typed and links its first and last child."""
        root, first, second, _child = self._tree()
        outline = root.to_pikepdf(_ref)
        assert outline.Type == Name.Outlines
        assert outline.First == first.number
        assert outline.Last == second.number
        assert outline.Count == 2

    def test_siblings(self):
        """Items link their parent and siblings."""
        root, first, second, _child = self._tree()
        item = first.to_pikepdf(_ref)
        assert str(item.Title) == "One"
        assert item.Parent == root.number
        assert item.Next == second.number
        assert Name.Prev not in item

    def test_closed_item_count(self):
        """Closed items have a negative count."""
        _root, _first, second, _child = self._tree()
        assert second.to_pikepdf(_ref).Count == -1


class TestStructure:
    """Tests for the page tree, resources and trees."""

    def test_pages(self):
        """The page tree counts its kids."""
        pages = Pages()
        page = _page()
        pages.add_page(page)
        tree = pages.to_pikepdf(_ref)
        assert page.parent is pages
        assert tree.Count == 1
        assert list(tree.Kids) == [7]

    def test_page_contents(self):
        """One content stream is referenced directly, several as array."""
        page = _page()
        page.add_contents(PdfStream())
        assert isinstance(page.to_pikepdf(_ref).Contents, int)
        page.add_contents(PdfStream())
        assert len(page.to_pikepdf(_ref).Contents) == 2

    def test_annotation_added_once(self):
        """The same link is not added twice."""
        page = _page()
        link = Link((0, 0, 1, 1))
        page.add_annotation(link)
        page.add_annotation(link)
        assert page.annotations == [link]

    def test_resource_names(self):
        """Resources get generated names, reused for the same object."""
        resources = Resources()
        first = Shading(SHADING_AXIAL, "DeviceRGB", _function(), coords=[0, 0, 1, 1])
        second = Shading(SHADING_AXIAL, "DeviceRGB", _function(), coords=[0, 0, 2, 2])
        assert resources.add_shading(first) == "Sh1"
        assert resources.add_shading(second) == "Sh2"
        assert resources.add_shading(first) == "Sh1"
        assert resources.add_gstate(ExtGState({"CA": 0.5})) == "GS1"
        assert second.name == "Sh2"

    def test_resource_dictionary(self):
        """Only non-empty resource categories are written."""
        resources = Resources()
        resources.add_font("F1", PdfStream())
        written = resources.to_pikepdf(_ref)
        assert Name.Font in written
        assert Name.Shading not in written
        assert Name.ImageC in list(written.ProcSet)

    def test_info(self):
        """Only set fields are written; dates use the PDF format."""
        info = Info("pdfloom")
        info.title = "Report"
        info.creation_date = datetime(2024, 1, 15, 12, 30, 45, tzinfo=UTC)
        written = info.to_pikepdf(_ref)
        assert str(written.Producer) == "pdfloom"
        assert str(written.CreationDate) == "D:20240115123045+00'00'"
        assert Name.Author not in written

    def test_name_tree_sorted(self):
        """Leaf entries are kept sorted by key."""
        node = NameTreeNode()
        second, first = PdfStream(), PdfStream()
        node.add_name("b", second)
        node.add_name("a", first)
        assert [key for key, _obj in node.names] == ["a", "b"]
        assert node.find_name("b") is second
        assert node.find_name("c") is None

    def test_page_labels(self):
        """Labels are written as a number tree."""
        labels = PageLabels()
        labels.add_label(2, "D", start=1)
        labels.add_label(0, "r", prefix="p-")
        nums = list(labels.to_pikepdf(_ref).Nums)
        assert nums[0] == 0
        assert nums[1].S == Name.r
        assert str(nums[1].P) == "p-"
        assert nums[2] == 2
        assert nums[3].St == 1

    @pytest.mark.parametrize(("style", "start"), [("X", None), ("D", 0)])
    def test_page_labels_invalid(self, style, start):
        """Unknown styles and start values below one are rejected."""
        with pytest.raises(ValueError):
            PageLabels().add_label(0, style, start=start)


class TestGraphics:
    """Tests for functions, shadings, color spaces and graphics states."""

    def test_unsupported_function_type(self):
        """Only function types 0, 2, 3 and 4 exist."""
        with pytest.raises(ValueError, match="Unsupported function type"):
            Function(1, [0, 1])

    def test_exponential(self):
        """Exponential functions are dictionaries with C0, C1 and N."""
        function = _function()
        written = function.to_pikepdf(_ref)
        assert function.stream_data() is None
        assert written.FunctionType == 2
        assert list(written.C1) == [1]
        assert written.N == 1

    def test_stitching(self):
        """Stitching functions reference their parts."""
        parts = [_function(), _function()]
        stitching = Function(
            FUNCTION_STITCHING,
            [0, 1],
            functions=parts,
            bounds=[0.5],
            encode=[0, 1, 0, 1],
        )
        written = stitching.to_pikepdf(_ref)
        assert list(written.Functions) == [parts[0].number, parts[1].number]
        assert len(written.Encode) == 4

    def test_postscript_function_stream(self):
        """PostScript functions are streams holding their code."""
        function = Function(FUNCTION_POSTSCRIPT, [0, 1], [0, 1], code="{ dup }")
        assert function.stream_data() == b"{ dup }"

    def test_function_based_matrix(self):
        """Only function-based shadings carry a matrix."""
        matrix = [1, 0, 0, 1, 0, 0]
        axial = Shading(SHADING_AXIAL, "DeviceRGB", _function(), matrix=matrix)
        based = Shading(SHADING_FUNCTION_BASED, "DeviceRGB", _function(), matrix=matrix)
        assert Name.Matrix not in axial.to_pikepdf(_ref)
        assert Name.Matrix in based.to_pikepdf(_ref)

    def test_shading_name_not_in_key(self):
        """The resource name does not affect equality."""
        first = Shading(SHADING_AXIAL, "DeviceRGB", _function())
        second = Shading(SHADING_AXIAL, "DeviceRGB", _function())
        first.name = "Sh1"
        assert first.structural_key() == second.structural_key()

    def test_separation(self):
        """Separation color spaces are arrays with an RGB alternate."""
        tint = _function()
        written = SeparationColorSpace("Gold", tint).to_pikepdf(_ref)
        assert list(written) == [
            Name.Separation,
            Name.Gold,
            Name.DeviceRGB,
            tint.number,
        ]

    def test_gstate_names(self):
        """Name parameters are written as names, others as values."""
        written = ExtGState({"BM": "Multiply", "CA": 0.5}).to_pikepdf(_ref)
        assert written.Type == Name.ExtGState
        assert written.BM == Name.Multiply
        assert float(written.CA) == 0.5
        assert Name.LW not in written

    def test_icc_stream_entries(self):
        """ICC streams carry their component count and alternate."""
        icc_stream = ICCStream(b"profile", 4, "DeviceCMYK")
        written = icc_stream.to_pikepdf(_ref)
        assert written.N == 4
        assert written.Alternate == Name.DeviceCMYK
        assert Name.Alternate not in ICCStream(b"profile", 1).to_pikepdf(_ref)

    def test_icc_based(self):
        """ICCBased color spaces are arrays over their stream."""
        icc_stream = ICCStream(b"profile", 3)
        written = ICCBasedColorSpace(icc_stream).to_pikepdf(_ref)
        assert list(written) == [Name.ICCBased, icc_stream.number]

    def test_color_space_names(self):
        """Explicit names are kept, others are generated."""
        resources = Resources()
        tint = SeparationColorSpace("Gold", _function())
        explicit = ICCBasedColorSpace(ICCStream(b"profile", 3), "DefaultRGB")
        assert resources.add_color_space(explicit) == "DefaultRGB"
        assert resources.add_color_space(tint) == "CS2"
        assert resources.add_color_space(explicit) == "DefaultRGB"


class TestOptionalContent:
    """Tests for output intents, layers, layer actions and navigators."""

    def test_output_intent(self):
        """Only the given optional entries are written."""
        profile = ICCStream(b"profile", 3)
        written = OutputIntent("GTS_PDFA1", "sRGB", profile).to_pikepdf(_ref)
        assert written.Type == Name.OutputIntent
        assert written.S == Name.GTS_PDFA1
        assert str(written.OutputConditionIdentifier) == "sRGB"
        assert written.DestOutputProfile == profile.number
        assert Name.Info not in written
        assert Name.RegistryName not in written

    def test_catalog_optional_content(self):
        """Hidden layers are listed under OFF, all of them under Order."""
        root = Root(Pages())
        shown, hidden = Layer("a"), Layer("b", visible=False)
        root.layers.extend([shown, hidden])
        properties = root.to_pikepdf(_ref).OCProperties
        assert list(properties.OCGs) == [shown.number, hidden.number]
        assert list(properties.D.Order) == [shown.number, hidden.number]
        assert list(properties.D.ON) == [shown.number]
        assert list(properties.D.OFF) == [hidden.number]

    def test_catalog_without_layers(self):
        """Documents without layers have no optional content properties."""
        written = Root(Pages()).to_pikepdf(_ref)
        assert Name.OCProperties not in written
        assert Name.OutputIntents not in written

    def test_layer(self):
        """The label is shown to the reader, the id when there is none."""
        assert str(Layer("a", "Notes").to_pikepdf(_ref).Name) == "Notes"
        written = Layer("a", intent="Design").to_pikepdf(_ref)
        assert written.Type == Name.OCG
        assert str(written.Name) == "a"
        assert written.Intent == Name.Design

    def test_set_ocg_state(self):
        """Operations precede the layers they apply to."""
        first, second = Layer("a"), Layer("b")
        action = SetOCGState("s", [("ON", [first, second]), ("Toggle", [first])])
        written = action.to_pikepdf(_ref)
        assert written.S == Name.SetOCGState
        assert list(written.State) == [
            Name.ON,
            first.number,
            second.number,
            Name.Toggle,
            first.number,
        ]
        assert Name.PreserveRB not in written

    def test_set_ocg_state_preserve_rb(self):
        """Radio-button relationships can be ignored."""
        written = SetOCGState("s", [], preserve_rb=False).to_pikepdf(_ref)
        assert not written.PreserveRB

    def test_set_ocg_state_unknown_operation(self):
        """Only ON, OFF and Toggle exist."""
        with pytest.raises(ValueError, match="Unknown optional content operation"):
            SetOCGState("s", [("Hide", [Layer("a")])])

    def test_transition(self):
        """The transition dictionary holds only the set options."""
        transition = Transition("t", "Split", 2.0, dimension="V", motion="O")
        trans = transition.to_pikepdf(_ref).Trans
        assert trans.Type == Name.Trans
        assert trans.S == Name.Split
        assert float(trans.D) == 2.0
        assert trans.Dm == Name.V
        assert trans.M == Name.O
        assert Name.Di not in trans

    @pytest.mark.parametrize(("style", "duration"), [("Spin", 1.0), ("R", -1.0)])
    def test_transition_invalid(self, style, duration):
        """Unknown styles and negative durations are rejected."""
        with pytest.raises(ValueError):
            Transition("t", style, duration)

    def test_navigator_links(self):
        """Linked nodes reference each other."""
        first = Navigator("n1", next_action=Transition("t"), duration=3.0)
        second = Navigator("n2")
        first.link_next(second)
        written = first.to_pikepdf(_ref)
        assert written.Type == Name.NavNode
        assert written.Next == second.number
        assert float(written.Dur) == 3.0
        assert Name.PA not in written
        assert second.to_pikepdf(_ref).Prev == first.number
