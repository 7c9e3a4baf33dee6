# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Glyph-index views of OpenType GDEF, GSUB and GPOS tables.

The views wrap the table objects parsed by fontTools and work on glyph
indices instead of glyph names. Only the lookups needed for simple text
runs are applied: single (type 1) and ligature (type 4) substitutions,
and pair adjustment (type 2) positioning. Extension lookups (GSUB type 7,
GPOS type 9) are unwrapped.
"""

import logging
from collections.abc import Sequence
from typing import Any

from .constants import PDF_GLYPH_UNITS

logger = logging.getLogger(__name__)

DEFAULT_SCRIPT = "DFLT"
DEFAULT_LANGUAGE = "dflt"

# Substitution features applied to every run, in order
DEFAULT_SUBSTITUTION_FEATURES = ("ccmp", "locl", "rlig", "liga")
DEFAULT_POSITIONING_FEATURES = ("kern",)

GDEF_MARK_CLASS = 3
_IGNORE_MARKS = 0x0008


class GlyphDefinitionTable:
    """Glyph classes from a GDEF table.

    Args:
        table: ``font["GDEF"].table`` as parsed by fontTools.
        glyph_order: Glyph names by glyph index.
    """

    def __init__(self, table: Any, glyph_order: Sequence[str]) -> None:
        self._glyph_order = list(glyph_order)
        class_def = getattr(table, "GlyphClassDef", None)
        self._classes: dict[str, int] = (
            dict(class_def.classDefs) if class_def is not None else {}
        )

    def glyph_class(self, glyph_index: int) -> int:
        """Returns the GDEF class (1 base, 2 ligature, 3 mark, 4 component)."""
        if not 0 <= glyph_index < len(self._glyph_order):
            return 0
        return self._classes.get(self._glyph_order[glyph_index], 0)

    def is_mark(self, glyph_index: int) -> bool:
        return self.glyph_class(glyph_index) == GDEF_MARK_CLASS


class _LayoutTable:
    """Script/language/feature resolution shared by GSUB and GPOS."""

    extension_type = 0

    def __init__(
        self,
        table: Any,
        glyph_order: Sequence[str],
        features: Sequence[str],
    ) -> None:
        self._table = table
        self._glyph_order = list(glyph_order)
        self._glyph_ids = {name: gid for gid, name in enumerate(self._glyph_order)}
        self._features = tuple(features)
        self._lookup_cache: dict[tuple[str, str], list[Any]] = {}

    def _name(self, glyph_index: int) -> str | None:
        if 0 <= glyph_index < len(self._glyph_order):
            return self._glyph_order[glyph_index]
        return None

    def _lang_sys(self, script: str, language: str) -> Any:
        script_list = getattr(self._table, "ScriptList", None)
        if script_list is None:
            return None
        records = {
            rec.ScriptTag.strip(): rec.Script for rec in script_list.ScriptRecord
        }
        script_table = (
            records.get(script)
            or records.get(script.lower())
            or records.get(DEFAULT_SCRIPT)
            or records.get("latn")
        )
        if script_table is None:
            return None
        for rec in script_table.LangSysRecord:
            if rec.LangSysTag.strip().lower() == language.lower():
                return rec.LangSys
        return script_table.DefaultLangSys

    def lookups(self, script: str, language: str) -> list[Any]:
        """Returns the lookups of the enabled features, in feature order."""
        key = (script, language)
        if key in self._lookup_cache:
            return self._lookup_cache[key]

        lang_sys = self._lang_sys(script, language)
        result: list[Any] = []
        if lang_sys is not None and self._table.FeatureList is not None:
            feature_records = self._table.FeatureList.FeatureRecord
            indices = list(lang_sys.FeatureIndex)
            if lang_sys.ReqFeatureIndex != 0xFFFF:
                indices.insert(0, lang_sys.ReqFeatureIndex)
            lookup_list = self._table.LookupList.Lookup
            seen: set[int] = set()
            for tag in self._features:
                for index in indices:
                    record = feature_records[index]
                    if record.FeatureTag != tag:
                        continue
                    for lookup_index in record.Feature.LookupListIndex:
                        if lookup_index not in seen:
                            seen.add(lookup_index)
                            result.append(lookup_list[lookup_index])
        self._lookup_cache[key] = result
        return result

    def subtables(self, lookup: Any) -> list[tuple[int, Any]]:
        """Returns (lookup type, subtable) pairs with extensions unwrapped."""
        result = []
        for subtable in lookup.SubTable:
            if lookup.LookupType == self.extension_type:
                result.append((subtable.ExtensionLookupType, subtable.ExtSubTable))
            else:
                result.append((lookup.LookupType, subtable))
        return result


class GlyphSubstitutionTable(_LayoutTable):
    """Single and ligature substitutions from a GSUB table."""

    extension_type = 7

    def __init__(
        self,
        table: Any,
        glyph_order: Sequence[str],
        features: Sequence[str] = DEFAULT_SUBSTITUTION_FEATURES,
    ) -> None:
        super().__init__(table, glyph_order, features)

    def substitute(
        self,
        glyphs: Sequence[int],
        script: str = DEFAULT_SCRIPT,
        language: str = DEFAULT_LANGUAGE,
    ) -> list[int]:
        """Applies the enabled substitution lookups to a glyph run.

        Args:
            glyphs: Input glyph indices.
            script: OpenType script tag.
            language: OpenType language system tag.

        Returns:
            Substituted glyph indices.
        """
        names = [self._name(gi) for gi in glyphs]
        for lookup in self.lookups(script, language):
            for lookup_type, subtable in self.subtables(lookup):
                if lookup_type == 1:
                    names = self._apply_single(subtable, names)
                elif lookup_type == 4:
                    names = self._apply_ligature(subtable, names)
        return [self._glyph_ids.get(name, 0) if name else 0 for name in names]

    @staticmethod
    def _apply_single(subtable: Any, names: list[str | None]) -> list[str | None]:
        mapping = subtable.mapping
        return [mapping.get(name, name) if name else name for name in names]

    @staticmethod
    def _apply_ligature(subtable: Any, names: list[str | None]) -> list[str | None]:
        ligatures = subtable.ligatures
        result: list[str | None] = []
        i = 0
        while i < len(names):
            name = names[i]
            for ligature in ligatures.get(name, []) if name else []:
                components = ligature.Component
                end = i + 1 + len(components)
                if names[i + 1 : end] == list(components):
                    result.append(ligature.LigGlyph)
                    i = end
                    break
            else:
                result.append(name)
                i += 1
        return result


class GlyphPositioningTable(_LayoutTable):
    """Pair adjustments from a GPOS table, in 1/1000 em.

    Args:
        table: ``font["GPOS"].table`` as parsed by fontTools.
        glyph_order: Glyph names by glyph index.
        units_per_em: Design units per em of the font.
        gdef: Glyph classes, used to skip marks when a lookup asks for it.
    """

    extension_type = 9

    def __init__(
        self,
        table: Any,
        glyph_order: Sequence[str],
        units_per_em: int,
        gdef: GlyphDefinitionTable | None = None,
        features: Sequence[str] = DEFAULT_POSITIONING_FEATURES,
    ) -> None:
        super().__init__(table, glyph_order, features)
        self._scale = PDF_GLYPH_UNITS / units_per_em if units_per_em else 1.0
        self._gdef = gdef

    def position(
        self,
        glyphs: Sequence[int],
        script: str = DEFAULT_SCRIPT,
        language: str = DEFAULT_LANGUAGE,
    ) -> list[list[int]] | None:
        """Computes pair adjustments for a glyph run.

        Returns:
            Per glyph ``[x placement, y placement, x advance, y advance]``,
            or None if no pair matched.
        """
        adjustments = [[0, 0, 0, 0] for _ in glyphs]
        adjusted = False
        for lookup in self.lookups(script, language):
            ignore_marks = bool(lookup.LookupFlag & _IGNORE_MARKS)
            sequence = [
                i
                for i, gi in enumerate(glyphs)
                if not (ignore_marks and self._gdef and self._gdef.is_mark(gi))
            ]
            for lookup_type, subtable in self.subtables(lookup):
                if lookup_type != 2:
                    continue
                for first, second in zip(sequence, sequence[1:]):
                    pair = self._pair_values(
                        subtable, self._name(glyphs[first]), self._name(glyphs[second])
                    )
                    if pair is None:
                        continue
                    value1, value2 = pair
                    adjusted |= self._add(adjustments[first], value1)
                    adjusted |= self._add(adjustments[second], value2)
        return adjustments if adjusted else None

    def _add(self, gpa: list[int], value: Any) -> bool:
        if value is None:
            return False
        changed = False
        for slot, attr in enumerate(
            ("XPlacement", "YPlacement", "XAdvance", "YAdvance")
        ):
            amount = getattr(value, attr, 0) or 0
            if amount:
                gpa[slot] += round(amount * self._scale)
                changed = True
        return changed

    @staticmethod
    def _pair_values(
        subtable: Any, first: str | None, second: str | None
    ) -> tuple[Any, Any] | None:
        if first is None or second is None:
            return None
        coverage = subtable.Coverage.glyphs
        if first not in coverage:
            return None
        if subtable.Format == 1:
            pair_set = subtable.PairSet[coverage.index(first)]
            for record in pair_set.PairValueRecord:
                if record.SecondGlyph == second:
                    return (
                        getattr(record, "Value1", None),
                        getattr(record, "Value2", None),
                    )
            return None
        if subtable.Format == 2:
            class1 = subtable.ClassDef1.classDefs.get(first, 0)
            class2 = subtable.ClassDef2.classDefs.get(second, 0)
            record = subtable.Class1Record[class1].Class2Record[class2]
            return (getattr(record, "Value1", None), getattr(record, "Value2", None))
        return None
