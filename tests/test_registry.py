# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for registry.py."""

import pytest

from pdfloom.exceptions import StructureError
from pdfloom.objects import ExtGState, Function, PdfStream, Uri, reference_key
from pdfloom.objects.graphics import FUNCTION_EXPONENTIAL
from pdfloom.registry import DEDUP_KINDS, ObjectRegistry


def _function(c1: float = 1.0) -> Function:
    return Function(
        FUNCTION_EXPONENTIAL, [0, 1], c0=[0.0], c1=[c1], interpolation=1.0
    )


class TestNumbering:
    """Tests for object number assignment."""

    def test_numbers_start_at_one(self):
        """First registered object gets number 1."""
        registry = ObjectRegistry()
        stream = registry.register(PdfStream())
        assert stream.number == 1

    def test_numbers_strictly_increase(self):
        """Numbers are handed out in registration order without gaps."""
        registry = ObjectRegistry()
        numbers = [registry.register(PdfStream()).number for _ in range(5)]
        assert numbers == [1, 2, 3, 4, 5]
        assert registry.object_count == 5

    def test_assign_number_twice_raises(self):
        """An object never gets a second number."""
        registry = ObjectRegistry()
        stream = PdfStream()
        registry.assign_number(stream)
        with pytest.raises(StructureError):
            registry.assign_number(stream)

    def test_register_twice_raises(self):
        """Registering the same object again is a structure error."""
        registry = ObjectRegistry()
        stream = registry.register(PdfStream())
        with pytest.raises(StructureError):
            registry.register(stream)

    def test_prenumbered_object_keeps_number(self):
        """register() reuses a number assigned earlier."""
        registry = ObjectRegistry()
        stream = PdfStream()
        registry.assign_number(stream)
        registry.register(PdfStream())
        registry.register(stream)
        assert stream.number == 1
        assert registry.get(1) is stream

    def test_objects_in_ascending_order(self):
        """objects() yields by object number, not registration order."""
        registry = ObjectRegistry()
        late = PdfStream()
        registry.assign_number(late)
        first = registry.register(PdfStream())
        registry.register(late)
        assert [obj.number for obj in registry.objects()] == [1, 2]
        assert list(registry.objects()) == [late, first]


class TestTrailerObjects:
    """Tests for trailer-referenced objects."""

    def test_add_trailer_object_registers(self):
        """Trailer objects are registered and flagged."""
        registry = ObjectRegistry()
        stream = registry.add_trailer_object(PdfStream())
        assert registry.is_registered(stream)
        assert stream.trailer is True
        assert registry.trailer_objects() == [stream]

    def test_add_registered_object_to_trailer(self):
        """An already registered object can become a trailer object."""
        registry = ObjectRegistry()
        stream = registry.register(PdfStream())
        registry.add_trailer_object(stream)
        assert len(registry) == 1
        assert stream.trailer is True


class TestFindOrRegister:
    """Tests for structural deduplication."""

    def test_equal_candidates_share_instance(self):
        """A structurally equal candidate returns the first instance."""
        registry = ObjectRegistry()
        first = registry.find_or_register("function", _function())
        second = registry.find_or_register("function", _function())
        assert second is first
        assert registry.count("function") == 1

    def test_idempotent(self):
        """Repeated requests never register new objects."""
        registry = ObjectRegistry()
        for _ in range(10):
            registry.find_or_register("function", _function())
        assert len(registry) == 1
        assert registry.object_count == 1

    def test_different_candidates_registered(self):
        """Different values produce distinct objects."""
        registry = ObjectRegistry()
        first = registry.find_or_register("function", _function(1.0))
        second = registry.find_or_register("function", _function(0.5))
        assert first is not second
        assert (first.number, second.number) == (1, 2)

    def test_find_without_register(self):
        """find() never registers."""
        registry = ObjectRegistry()
        assert registry.find("function", _function()) is None
        assert len(registry) == 0

    def test_unknown_kind_raises(self):
        """Only the canonicalized kinds have tables."""
        registry = ObjectRegistry()
        with pytest.raises(ValueError, match="not canonicalized"):
            registry.find_or_register("stream", PdfStream())

    def test_candidate_without_key_raises(self):
        """Objects without a structural key cannot be deduplicated."""
        registry = ObjectRegistry()
        with pytest.raises(ValueError, match="no structural key"):
            registry.find_or_register("link", PdfStream())

    def test_trailer_flag(self):
        """trailer=True registers the canonical instance as trailer object."""
        registry = ObjectRegistry()
        gstate = registry.find_or_register(
            "gstate", ExtGState({"CA": 0.5}), trailer=True
        )
        assert gstate.trailer is True
        assert registry.trailer_objects() == [gstate]

    def test_gstate_defaults_complete_key(self):
        """Graphics states equal after default completion are shared."""
        registry = ObjectRegistry()
        explicit = registry.find_or_register("gstate", ExtGState({"LW": 1.0}))
        implicit = registry.find_or_register("gstate", ExtGState({}))
        assert implicit is explicit

    def test_dedup_kinds(self):
        """The canonicalized kinds are fixed."""
        assert DEDUP_KINDS == {
            "function",
            "shading",
            "pattern",
            "link",
            "destination",
            "goto",
            "goto_remote",
            "launch",
            "filespec",
            "gstate",
        }


class TestReferenceKey:
    """Tests for reference_key()."""

    def test_value_key_for_structural_objects(self):
        """Objects with a structural key compare by value."""
        assert reference_key(Uri("https://a")) == reference_key(Uri("https://a"))

    def test_identity_key_for_plain_objects(self):
        """Objects without a structural key compare by identity."""
        first, second = PdfStream(), PdfStream()
        assert reference_key(first) != reference_key(second)
        assert reference_key(first) == ("id", id(first))

    def test_none(self):
        """None stays None."""
        assert reference_key(None) is None
