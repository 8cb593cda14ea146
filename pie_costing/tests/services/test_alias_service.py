"""Tests for the ingredient alias table."""

import logging

import pytest

from pie_costing.services import alias_service, ingredient_service
from pie_costing.services.exceptions import AliasConflict, IngredientNotFound, ValidationError


@pytest.fixture
def master_puff(test_db):
    return ingredient_service.create_ingredient(
        {"name": "Master Puff", "unit_of_measure": "kg", "cost_per_unit": "42.00"}
    )


class TestBuildAliasTable:
    def test_resolves_normalized_names(self):
        table = alias_service.build_alias_table({"Garlic": 3, "Garlic Flakes": 3})

        assert table.resolve("  GARLIC   flakes ") == 3
        assert table.resolve("garlic-flakes") == 3
        assert table.resolve("Saffron") is None
        assert table.resolve(None) is None
        assert "garlic" in table
        assert len(table) == 2

    def test_names_for(self):
        table = alias_service.build_alias_table([("Deeg", 1), ("Master Puff", 1), ("Salt", 2)])
        assert table.names_for(1) == ["deeg", "master puff"]

    def test_same_name_same_target_is_allowed(self):
        table = alias_service.build_alias_table([("Salt", 2), ("SALT", 2)])
        assert len(table) == 1

    def test_conflicting_targets_rejected(self):
        with pytest.raises(AliasConflict) as exc_info:
            alias_service.build_alias_table([("Salt", 2), (" salt ", 5)])

        assert exc_info.value.alias == "salt"
        assert exc_info.value.existing_id == 2
        assert exc_info.value.new_id == 5

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError, match="Alias for ingredient 4: Name is required"):
            alias_service.build_alias_table([("  ", 4)])

    def test_lookup_agrees_with_ingredient_slug(self):
        table = alias_service.build_alias_table({"Cake Flour (Sifted)": 7})

        assert table.resolve("Cake Flour Sifted") == 7
        assert table.resolve("cake_flour_sifted") == 7
        assert table.names_for(7) == ["cake flour (sifted)"]

    def test_names_sharing_a_slug_conflict(self):
        with pytest.raises(AliasConflict):
            alias_service.build_alias_table([("Cake Flour (Sifted)", 7), ("Cake Flour Sifted", 8)])


class TestPersistedAliases:
    def test_add_alias(self, master_puff):
        record = alias_service.add_alias(master_puff.id, "  Deeg ")

        assert record.alias == "deeg"
        assert [a.alias for a in alias_service.list_aliases(master_puff.id)] == ["deeg"]

    def test_add_alias_is_idempotent(self, master_puff):
        first = alias_service.add_alias(master_puff.id, "Deeg")
        second = alias_service.add_alias(master_puff.id, "DEEG")

        assert first.id == second.id
        assert len(alias_service.list_aliases()) == 1

    def test_alias_cannot_name_another_ingredient(self, master_puff, sample_flour):
        with pytest.raises(AliasConflict):
            alias_service.add_alias(sample_flour.id, "master puff")

    def test_alias_cannot_move_between_ingredients(self, master_puff, sample_flour):
        alias_service.add_alias(master_puff.id, "Deeg")
        with pytest.raises(AliasConflict):
            alias_service.add_alias(sample_flour.id, "deeg")

    def test_alias_with_same_slug_cannot_move(self, master_puff, sample_flour):
        alias_service.add_alias(master_puff.id, "Puff (Master)")
        with pytest.raises(AliasConflict):
            alias_service.add_alias(sample_flour.id, "puff master")

    def test_persisted_alias_matches_by_slug(self, master_puff):
        alias_service.add_alias(master_puff.id, "Deeg (Rolled)")
        table = alias_service.load_alias_table()
        assert table.resolve("deeg rolled") == master_puff.id

    def test_missing_ingredient(self, test_db):
        with pytest.raises(IngredientNotFound):
            alias_service.add_alias(99, "Deeg")

    def test_blank_alias(self, master_puff):
        with pytest.raises(ValidationError, match="Alias: This field is required"):
            alias_service.add_alias(master_puff.id, " ")


class TestLoadAliasTable:
    def test_includes_names_aliases_and_extras(self, master_puff, sample_flour):
        alias_service.add_alias(sample_flour.id, "Koekmeel")

        table = alias_service.load_alias_table({"Deeg": "Master Puff"})

        assert table.resolve("Master Puff") == master_puff.id
        assert table.resolve("deeg") == master_puff.id
        assert table.resolve("KOEKMEEL") == sample_flour.id
        assert table.resolve("cake flour") == sample_flour.id

    def test_unknown_canonical_name_is_skipped(self, master_puff, caplog):
        with caplog.at_level(logging.WARNING):
            table = alias_service.load_alias_table({"Garlic Flakes": "Garlic"})

        assert table.resolve("garlic flakes") is None
        assert "load_alias_table: unknown_canonical_name" in caplog.text

    def test_extra_alias_conflicting_with_a_name(self, master_puff, sample_flour):
        with pytest.raises(AliasConflict):
            alias_service.load_alias_table({"Cake Flour": "Master Puff"})
